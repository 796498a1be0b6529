from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from console_datatable.domain.models import SortDirection, TableMode

T = TypeVar("T")


class TableLabels(BaseModel):
    """UI strings, defaulting to the English values of the console's translations."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    row_number: str = "No"
    search_placeholder: str = "Search..."
    loading: str = "Loading..."
    no_results: str = "No results found."
    typing: str = "Typing..."
    showing: str = "Showing"
    of: str = "of"
    pages: str = "page(s)"
    rows_per_page: str = "Rows per page"
    previous: str = "Previous"
    next: str = "Next"
    columns: str = "Columns"


@dataclass(frozen=True)
class HeaderCell:
    column_id: str
    header: Any
    sortable: bool
    sort_direction: SortDirection | None = None
    width: Any = None

    @property
    def sort_indicator(self) -> str:
        return self.sort_direction.value if self.sort_direction else "none"


@dataclass(frozen=True)
class BodyCell:
    column_id: str
    value: Any


@dataclass(frozen=True)
class BodyRow(Generic[T]):
    index: int
    original: T
    cells: tuple[BodyCell, ...]
    row_number: int | None = None

    def value(self, column_id: str) -> Any:
        for cell in self.cells:
            if cell.column_id == column_id:
                return cell.value
        raise KeyError(column_id)


@dataclass(frozen=True)
class PaginationSummary:
    page_index: int
    page_count: int
    page_size: int
    total_items: int
    can_previous_page: bool
    can_next_page: bool
    page_size_options: tuple[int, ...]
    is_loading: bool = False
    first_row_number: int | None = None
    last_row_number: int | None = None

    @property
    def page_number(self) -> int:
        return self.page_index + 1

    def describe(self, labels: TableLabels | None = None) -> str:
        labels = labels or TableLabels()
        return f"{labels.showing} {self.page_number} {labels.of} {self.page_count} {labels.pages}"


@dataclass(frozen=True)
class SearchSummary:
    value: str
    is_debouncing: bool
    placeholder: str
    search_column: str | None = None

    @property
    def show_typing_indicator(self) -> bool:
        return self.is_debouncing and bool(self.value)


@dataclass(frozen=True)
class HideableColumn:
    column_id: str
    header: Any
    visible: bool


@dataclass(frozen=True)
class TableViewModel(Generic[T]):
    mode: TableMode
    header_rows: tuple[tuple[HeaderCell, ...], ...]
    body_rows: tuple[BodyRow[T], ...]
    pagination_summary: PaginationSummary
    search: SearchSummary
    empty_message: str | None = None

    @property
    def column_ids(self) -> list[str]:
        if not self.header_rows:
            return []
        return [cell.column_id for cell in self.header_rows[0]]

    @property
    def row_numbers(self) -> list[int | None]:
        return [row.row_number for row in self.body_rows]
