from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from console_datatable.domain.models import ColumnDefinition, PaginationState, SortEntry, TableMode
from console_datatable.domain.sort_cycle import next_sorting

StateListener = Callable[["TableState", "TableState"], None]

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class TableState:
    """Snapshot of everything a table instance owns.

    ``pagination`` only exists in client mode; in server mode paging belongs
    to the host and the field stays ``None``.
    """

    mode: TableMode
    sorting: tuple[SortEntry, ...] = ()
    filters: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    visibility: Mapping[str, bool] = field(default_factory=lambda: _EMPTY)
    global_filter: str = ""
    pagination: PaginationState | None = None

    def is_visible(self, column_id: str) -> bool:
        return self.visibility.get(column_id, True)


def initial_state(mode: TableMode, default_page_size: int) -> TableState:
    mode = TableMode(mode)
    pagination = PaginationState(page_index=0, page_size=default_page_size) if mode is TableMode.CLIENT else None
    return TableState(mode=mode, pagination=pagination)


def _with_mapping(source: Mapping[str, Any], key: str, value: Any) -> Mapping[str, Any]:
    updated = dict(source)
    if value is None:
        updated.pop(key, None)
    else:
        updated[key] = value
    return MappingProxyType(updated)


def _first_page(state: TableState) -> PaginationState | None:
    if state.pagination is None or state.pagination.page_index == 0:
        return state.pagination
    return replace(state.pagination, page_index=0)


def set_sort(state: TableState, column: ColumnDefinition[Any]) -> TableState:
    if not column.can_sort:
        return state
    sorting = next_sorting(state.mode, state.sorting, column.id)
    if sorting == state.sorting:
        return state
    return replace(state, sorting=sorting, pagination=_first_page(state))


def set_column_visibility(state: TableState, column: ColumnDefinition[Any], visible: bool) -> TableState:
    if not column.can_hide and not visible:
        return state
    if state.is_visible(column.id) == bool(visible):
        return state
    # Visible is the default, so showing a column drops its entry.
    return replace(state, visibility=_with_mapping(state.visibility, column.id, None if visible else False))


def set_filter(state: TableState, column_id: str, value: Any) -> TableState:
    if value == "":
        value = None
    if state.filters.get(column_id) == value:
        return state
    return replace(state, filters=_with_mapping(state.filters, column_id, value), pagination=_first_page(state))


def set_global_filter(state: TableState, value: str | None) -> TableState:
    value = value or ""
    if state.global_filter == value:
        return state
    return replace(state, global_filter=value, pagination=_first_page(state))


def set_page_index(state: TableState, page_index: int, page_count: int | None = None) -> TableState:
    if state.pagination is None:
        return state
    target = max(0, int(page_index))
    if page_count is not None:
        target = min(target, max(0, page_count - 1))
    if target == state.pagination.page_index:
        return state
    return replace(state, pagination=replace(state.pagination, page_index=target))


def set_page_size(state: TableState, page_size: int) -> TableState:
    if state.pagination is None or page_size <= 0:
        return state
    if page_size == state.pagination.page_size:
        return state
    return replace(state, pagination=PaginationState(page_index=0, page_size=int(page_size)))


class TableStateStore:
    """Holds one TableState and notifies listeners on real transitions only."""

    def __init__(self, columns: Sequence[ColumnDefinition[Any]], mode: TableMode, default_page_size: int) -> None:
        self._columns = {column.id: column for column in columns}
        self._state = initial_state(mode, default_page_size)
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> TableState:
        return self._state

    @property
    def mode(self) -> TableMode:
        return self._state.mode

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_sort(self, column_id: str) -> TableState:
        column = self._columns.get(column_id)
        if column is None:
            return self._state
        return self._apply(set_sort(self._state, column))

    def set_column_visibility(self, column_id: str, visible: bool) -> TableState:
        column = self._columns.get(column_id)
        if column is None:
            return self._state
        return self._apply(set_column_visibility(self._state, column, visible))

    def set_filter(self, column_id: str, value: Any) -> TableState:
        if column_id not in self._columns:
            return self._state
        return self._apply(set_filter(self._state, column_id, value))

    def set_global_filter(self, value: str | None) -> TableState:
        return self._apply(set_global_filter(self._state, value))

    def set_page_index(self, page_index: int, page_count: int | None = None) -> TableState:
        return self._apply(set_page_index(self._state, page_index, page_count))

    def set_page_size(self, page_size: int) -> TableState:
        return self._apply(set_page_size(self._state, page_size))

    def clear(self) -> None:
        self._listeners.clear()

    def _apply(self, new_state: TableState) -> TableState:
        previous = self._state
        if new_state is previous:
            return previous
        self._state = new_state
        for listener in list(self._listeners):
            listener(previous, new_state)
        return new_state
