import asyncio

import pytest

from console_datatable.application.engine import TableEngine
from console_datatable.domain.models import ColumnDefinition, SortDirection, TableMode
from console_datatable.errors import TableConfigError

PRODUCTS = [
    {"id": "p-1", "name": "Analytics", "slug": "analytics", "isPopular": True},
    {"id": "p-2", "name": "Billing", "slug": "billing", "isPopular": False},
    {"id": "p-3", "name": "CRM", "slug": "crm", "isPopular": True},
    {"id": "p-4", "name": "Docs", "slug": "docs", "isPopular": False},
]


def _columns() -> list[ColumnDefinition]:
    return [
        ColumnDefinition(id="name", header="Name", accessor="name"),
        ColumnDefinition(id="slug", header="Slug", accessor="slug"),
        ColumnDefinition(id="isPopular", header="Popular", accessor="isPopular", sortable=False),
        ColumnDefinition(id="actions", header="Actions"),
    ]


def _engine(scheduler, **config) -> TableEngine:
    return TableEngine.initialize(_columns(), TableMode.CLIENT, config, scheduler=scheduler)


def test_initialize_injects_row_number_column_first(scheduler) -> None:
    engine = _engine(scheduler)

    view = engine.get_view_model(PRODUCTS)

    assert view.column_ids == ["rowNumber", "name", "slug", "isPopular", "actions"]
    header = view.header_rows[0]
    assert header[0].header == "No"
    assert [cell.sortable for cell in header] == [False, True, True, False, False]
    assert view.body_rows[0].value("rowNumber") == 1


def test_row_number_column_can_be_disabled(scheduler) -> None:
    view = _engine(scheduler, show_row_number=False).get_view_model(PRODUCTS)

    assert view.column_ids[0] == "name"


def test_duplicate_column_id_is_rejected_at_initialize(scheduler) -> None:
    columns = _columns() + [ColumnDefinition(id="slug", accessor="slug")]

    with pytest.raises(TableConfigError) as exc_info:
        TableEngine.initialize(columns, TableMode.CLIENT, scheduler=scheduler)

    assert exc_info.value.code == "DUPLICATE_COLUMN_ID"
    assert exc_info.value.details == {"column_ids": ["slug"]}


def test_unknown_search_column_is_rejected_at_initialize(scheduler) -> None:
    with pytest.raises(TableConfigError) as exc_info:
        _engine(scheduler, search_column="email")

    assert exc_info.value.code == "UNKNOWN_SEARCH_COLUMN"


def test_user_sort_cycles_and_reorders_rows(scheduler) -> None:
    engine = _engine(scheduler)

    engine.on_user_sort("name")
    engine.on_user_sort("name")
    view = engine.get_view_model(PRODUCTS)

    assert [row.original["id"] for row in view.body_rows] == ["p-4", "p-3", "p-2", "p-1"]
    assert view.header_rows[0][1].sort_direction is SortDirection.DESC
    assert view.header_rows[0][2].sort_indicator == "none"
    assert view.row_numbers == [1, 2, 3, 4]

    engine.on_user_sort("name")
    view = engine.get_view_model(PRODUCTS)
    assert [row.original["id"] for row in view.body_rows] == ["p-1", "p-2", "p-3", "p-4"]


def test_sorting_non_sortable_column_is_ignored(scheduler) -> None:
    engine = _engine(scheduler)

    engine.on_user_sort("isPopular")
    engine.on_user_sort("rowNumber")

    assert engine.state.sorting == ()


def test_search_is_debounced_then_applied_as_global_filter(scheduler) -> None:
    engine = _engine(scheduler)

    engine.on_search_input("b")
    engine.on_search_input("bil")
    view = engine.get_view_model(PRODUCTS)
    assert len(view.body_rows) == 4
    assert view.search.value == "bil"
    assert view.search.show_typing_indicator is True

    scheduler.advance_ms(510)
    view = engine.get_view_model(PRODUCTS)

    assert engine.state.global_filter == "bil"
    assert [row.original["id"] for row in view.body_rows] == ["p-2"]
    assert view.search.is_debouncing is False


def test_search_column_restricts_matching(scheduler) -> None:
    engine = _engine(scheduler, search_column="slug", debounce_ms=0)

    engine.on_search_input("CR")
    view = engine.get_view_model(PRODUCTS)

    assert dict(engine.state.filters) == {"slug": "CR"}
    assert engine.state.global_filter == ""
    assert [row.original["id"] for row in view.body_rows] == ["p-3"]


def test_hidden_columns_disappear_from_header_and_body(scheduler) -> None:
    engine = _engine(scheduler)
    events = []
    engine.subscribe(lambda previous, current: events.append(current))

    engine.set_column_visibility("slug", True)
    assert events == []

    engine.set_column_visibility("slug", False)
    view = engine.get_view_model(PRODUCTS)

    assert "slug" not in view.column_ids
    assert all(cell.column_id != "slug" for cell in view.body_rows[0].cells)
    assert [column.column_id for column in engine.hideable_columns()] == ["name", "slug", "isPopular"]
    assert engine.hideable_columns()[1].visible is False


def test_page_size_change_resets_to_first_page(scheduler) -> None:
    engine = _engine(scheduler, default_page_size=2)
    engine.get_view_model(PRODUCTS)
    engine.on_page_change(+1)
    assert engine.state.pagination.page_index == 1

    engine.on_page_size_change(3)
    view = engine.get_view_model(PRODUCTS)

    assert view.pagination_summary.page_index == 0
    assert view.pagination_summary.page_size == 3
    assert view.pagination_summary.page_count == 2

    engine.on_page_size_change(0)
    assert engine.state.pagination.page_size == 3


def test_page_index_is_clamped_when_filter_shrinks_rows(scheduler) -> None:
    engine = _engine(scheduler, default_page_size=1)
    engine.get_view_model(PRODUCTS)
    engine.on_page_change(+3)
    assert engine.state.pagination.page_index == 3

    view = engine.get_view_model(PRODUCTS[:2])

    assert view.pagination_summary.page_index == 1
    assert view.row_numbers == [2]


def test_empty_message_reflects_loading_and_no_results(scheduler) -> None:
    engine = _engine(scheduler)

    assert engine.get_view_model([], fetching=True).empty_message == "Loading..."
    assert engine.get_view_model([]).empty_message == "No results found."
    assert engine.get_view_model(PRODUCTS).empty_message is None
    assert engine.get_view_model(PRODUCTS, fetching=True).pagination_summary.is_loading is True


def test_pagination_meta_is_ignored_in_client_mode(scheduler) -> None:
    engine = _engine(scheduler)

    view = engine.get_view_model(PRODUCTS, {"currentPage": 5, "pageSize": 50, "totalItems": 900, "totalPages": 18})

    assert view.pagination_summary.page_number == 1
    assert view.pagination_summary.total_items == 4


def test_callable_accessor_and_attribute_rows(scheduler) -> None:
    class Workspace:
        def __init__(self, name: str, members: int) -> None:
            self.name = name
            self.members = members

    columns = [
        ColumnDefinition(id="name", accessor="name"),
        ColumnDefinition(id="size", accessor=lambda workspace: workspace.members * 10),
    ]
    engine = TableEngine.initialize(columns, "client", {"show_row_number": False}, scheduler=scheduler)

    engine.on_user_sort("size")
    view = engine.get_view_model([Workspace("b", 3), Workspace("a", 1)])

    assert [row.value("size") for row in view.body_rows] == [10, 30]
    assert [row.value("name") for row in view.body_rows] == ["a", "b"]


def test_page_change_before_first_render_is_kept_until_rows_arrive(scheduler) -> None:
    rows = [{"name": f"workspace-{index}", "slug": f"w-{index}", "isPopular": False} for index in range(25)]
    engine = _engine(scheduler)

    engine.on_page_change(+1)
    view = engine.get_view_model(rows)

    assert view.pagination_summary.page_number == 2
    assert view.row_numbers[0] == 11


def test_get_view_model_does_not_notify_listeners(scheduler) -> None:
    engine = _engine(scheduler, default_page_size=1)
    engine.get_view_model(PRODUCTS)
    engine.on_page_change(+3)
    events = []
    engine.subscribe(lambda previous, current: events.append(current))

    view = engine.get_view_model(PRODUCTS[:2])

    assert view.pagination_summary.page_index == 1
    assert events == []
    assert engine.can_next_page() is False

    engine.on_page_change(-1)
    assert engine.state.pagination.page_index == 0
    assert len(events) == 1


def test_missing_event_loop_is_reported_at_initialize() -> None:
    with pytest.raises(TableConfigError) as exc_info:
        TableEngine.initialize(_columns(), TableMode.CLIENT)

    assert exc_info.value.code == "SCHEDULER_REQUIRED"


def test_zero_debounce_needs_no_scheduler() -> None:
    engine = TableEngine.initialize(_columns(), TableMode.CLIENT, {"debounce_ms": 0})

    engine.on_search_input("crm")

    assert [row.original["id"] for row in engine.get_view_model(PRODUCTS).body_rows] == ["p-3"]


def test_running_event_loop_is_used_when_no_scheduler_given() -> None:
    async def _scenario() -> list[str]:
        engine = TableEngine.initialize(_columns(), TableMode.CLIENT, {"debounce_ms": 20})
        engine.on_search_input("bill")
        await asyncio.sleep(0.1)
        return [row.original["id"] for row in engine.get_view_model(PRODUCTS).body_rows]

    assert asyncio.run(_scenario()) == ["p-2"]
