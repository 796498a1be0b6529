from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from console_datatable.application.debouncer import Debouncer, Scheduler
from console_datatable.application.row_model import filter_rows, page_count, paginate, sort_rows
from console_datatable.application.state.table_state import StateListener, TableState, TableStateStore, set_page_index
from console_datatable.config import TableConfig, build_config, settings
from console_datatable.domain.models import (
    ROW_NUMBER_COLUMN_ID,
    ColumnDefinition,
    PaginationMeta,
    SortDirection,
    TableMode,
)
from console_datatable.domain.row_numbers import row_number, row_number_column
from console_datatable.domain.sort_cycle import current_direction
from console_datatable.errors import TableConfigError, TableUsageError
from console_datatable.infrastructure.logging.logger import get_logger, log_table_event
from console_datatable.ui.view_model import (
    BodyCell,
    BodyRow,
    HeaderCell,
    HideableColumn,
    PaginationSummary,
    SearchSummary,
    TableViewModel,
)

T = TypeVar("T")

_table_ids = itertools.count(1)


@dataclass(frozen=True)
class ServerCallbacks:
    """Host hooks for server mode. Each receives the intent plus its request epoch."""

    on_search_change: Callable[[str, int], None] | None = None
    on_sort_change: Callable[[str, SortDirection, int], None] | None = None
    on_page_change: Callable[[int, int], None] | None = None
    on_page_size_change: Callable[[int, int], None] | None = None


class TableEngine(Generic[T]):
    """One table instance: column model, state store and search debouncer.

    In client mode the engine filters, sorts and slices rows itself. In server
    mode rows arrive already paged and sort/search/page intents are forwarded
    to the host through ``ServerCallbacks``.
    """

    def __init__(
        self,
        columns: Sequence[ColumnDefinition[T]],
        config: TableConfig | dict[str, Any] | None = None,
        *,
        mode: TableMode | str | None = None,
        callbacks: ServerCallbacks | None = None,
        scheduler: Scheduler | None = None,
        logger: logging.Logger | None = None,
        table_id: str | None = None,
    ) -> None:
        self.table_id = table_id or f"table-{next(_table_ids)}"
        self.logger = logger or get_logger("console_datatable.engine", settings.LOG_LEVEL.upper())
        overrides = {"mode": mode} if mode is not None else {}
        try:
            self.config = build_config(config, **overrides)
            self.columns = self._build_columns(columns, self.config)
            scheduler = self._resolve_scheduler(scheduler, self.config.debounce_ms)
        except TableConfigError as error:
            requested_mode = getattr(mode, "value", mode) or "unknown"
            log_table_event(
                self.logger, self.table_id, "initialize", str(requested_mode), "config_error",
                level=logging.ERROR, code=error.code,
            )
            raise
        self.mode = self.config.mode
        self.callbacks = callbacks or ServerCallbacks()
        self._columns_by_id = {column.id: column for column in self.columns}
        self._store = TableStateStore(self.columns, self.mode, self.config.default_page_size)
        self._debouncer: Debouncer[str] = Debouncer(self._on_search_debounced, self.config.debounce_ms, scheduler)
        self._search_input = ""
        self._last_search_sent = ""
        self._epoch = 0
        self._filtered_count: int | None = None
        self._last_meta: PaginationMeta | None = None
        self._disposed = False
        log_table_event(
            self.logger, self.table_id, "initialize", self.mode.value, "success", columns=len(self.columns)
        )

    @classmethod
    def initialize(
        cls,
        columns: Sequence[ColumnDefinition[T]],
        mode: TableMode | str | None = None,
        config: TableConfig | dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> "TableEngine[T]":
        return cls(columns, config, mode=mode, **kwargs)

    @staticmethod
    def _build_columns(columns: Sequence[ColumnDefinition[T]], config: TableConfig) -> tuple[ColumnDefinition[T], ...]:
        resolved = list(columns)
        if config.show_row_number:
            resolved.insert(0, row_number_column(config.labels.row_number))
        seen: set[str] = set()
        duplicates: set[str] = set()
        for column in resolved:
            if column.id in seen:
                duplicates.add(column.id)
            seen.add(column.id)
        if duplicates:
            raise TableConfigError(
                code="DUPLICATE_COLUMN_ID",
                message="Column ids must be unique within a table",
                details={"column_ids": sorted(duplicates)},
            )
        if config.search_column is not None and config.search_column not in seen:
            raise TableConfigError(
                code="UNKNOWN_SEARCH_COLUMN",
                message=f"search_column '{config.search_column}' does not match any column id",
                details={"search_column": config.search_column},
            )
        return tuple(resolved)

    @staticmethod
    def _resolve_scheduler(scheduler: Scheduler | None, debounce_ms: int) -> Scheduler | None:
        if scheduler is not None or debounce_ms == 0:
            return scheduler
        try:
            return asyncio.get_running_loop()
        except RuntimeError as error:
            raise TableConfigError(
                code="SCHEDULER_REQUIRED",
                message="No running asyncio loop; pass a scheduler with call_later or set debounce_ms to 0",
                details={"debounce_ms": debounce_ms},
            ) from error

    # -- state -----------------------------------------------------------

    @property
    def state(self) -> TableState:
        return self._store.state

    @property
    def state_store(self) -> TableStateStore:
        return self._store

    @property
    def search_input(self) -> str:
        return self._search_input

    @property
    def is_debouncing(self) -> bool:
        return self._debouncer.pending

    @property
    def latest_epoch(self) -> int:
        return self._epoch

    @property
    def disposed(self) -> bool:
        return self._disposed

    def is_stale(self, epoch: int) -> bool:
        return epoch < self._epoch

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def hideable_columns(self) -> list[HideableColumn]:
        state = self._store.state
        return [
            HideableColumn(column_id=column.id, header=column.header, visible=state.is_visible(column.id))
            for column in self.columns
            if column.has_accessor and column.can_hide
        ]

    def set_column_visibility(self, column_id: str, visible: bool) -> None:
        if self._disposed:
            return
        self._store.set_column_visibility(column_id, visible)

    def set_filter(self, column_id: str, value: Any) -> None:
        if self._disposed:
            return
        if self.mode is TableMode.SERVER:
            self._ignored("set_filter", "server_mode")
            return
        self._store.set_filter(column_id, value)

    # -- pagination ------------------------------------------------------

    def page_count(self) -> int:
        if self.mode is TableMode.SERVER:
            return max(1, self._last_meta.total_pages) if self._last_meta else 1
        return page_count(self._filtered_count or 0, self._store.state.pagination.page_size)

    def can_previous_page(self) -> bool:
        if self.mode is TableMode.SERVER:
            return bool(self._last_meta and self._last_meta.current_page > 1)
        return self._current_page_index() > 0

    def can_next_page(self) -> bool:
        if self.mode is TableMode.SERVER:
            return bool(self._last_meta and self._last_meta.current_page < self._last_meta.total_pages)
        return self._current_page_index() < self.page_count() - 1

    def _current_page_index(self) -> int:
        # Stored index may point past the last page after the host's rows shrink.
        page_index = self._store.state.pagination.page_index
        if self._filtered_count is None:
            return page_index
        return min(page_index, self.page_count() - 1)

    # -- intents ---------------------------------------------------------

    def on_user_sort(self, column_id: str) -> None:
        if self._disposed:
            return
        column = self._columns_by_id.get(column_id)
        if column is None or not column.can_sort:
            self._ignored("sort", "not_sortable", column_id=column_id)
            return
        if self.mode is TableMode.CLIENT:
            self._store.set_sort(column_id)
            return
        if self.callbacks.on_sort_change is None:
            self._ignored("sort", "no_callback", column_id=column_id)
            return
        state = self._store.set_sort(column_id)
        direction = current_direction(state.sorting, column_id)
        epoch = self._next_epoch()
        log_table_event(
            self.logger, self.table_id, "forward_sort", self.mode.value, "forwarded",
            epoch=epoch, column_id=column_id, direction=direction.value,
        )
        self.callbacks.on_sort_change(column_id, direction, epoch)

    def on_search_input(self, raw_value: str | None) -> None:
        if self._disposed:
            return
        self._search_input = raw_value or ""
        if self.mode is TableMode.SERVER and self.callbacks.on_search_change is None:
            return
        self._debouncer.schedule(self._search_input)

    def on_page_change(self, direction: int) -> None:
        if self._disposed or direction == 0:
            return
        if self.mode is TableMode.CLIENT:
            # Row count is unknown until the first render; get_view_model clamps then.
            upper = self.page_count() if self._filtered_count is not None else None
            self._store.set_page_index(self._current_page_index() + direction, upper)
            return
        if self.callbacks.on_page_change is None:
            self._ignored("page_change", "no_callback")
            return
        if self._last_meta is None:
            self._ignored("page_change", "no_pagination_meta")
            return
        last_page = max(1, self._last_meta.total_pages)
        target = min(max(1, self._last_meta.current_page + direction), last_page)
        if target == self._last_meta.current_page:
            return
        epoch = self._next_epoch()
        log_table_event(
            self.logger, self.table_id, "forward_page", self.mode.value, "forwarded", epoch=epoch, page=target
        )
        self.callbacks.on_page_change(target, epoch)

    def on_page_size_change(self, size: int) -> None:
        if self._disposed:
            return
        if size <= 0:
            self._ignored("page_size_change", "invalid_page_size", page_size=size)
            return
        if self.mode is TableMode.CLIENT:
            self._store.set_page_size(size)
            return
        if self.callbacks.on_page_size_change is None:
            self._ignored("page_size_change", "no_callback")
            return
        current_size = self._last_meta.page_size if self._last_meta else self.config.default_page_size
        if size == current_size:
            return
        epoch = self._next_epoch()
        log_table_event(
            self.logger, self.table_id, "forward_page_size", self.mode.value, "forwarded", epoch=epoch, page_size=size
        )
        self.callbacks.on_page_size_change(size, epoch)

    def _on_search_debounced(self, value: str) -> None:
        if self.mode is TableMode.CLIENT:
            if self.config.search_column:
                self._store.set_filter(self.config.search_column, value)
            else:
                self._store.set_global_filter(value)
            return
        if value == self._last_search_sent:
            return
        self._last_search_sent = value
        epoch = self._next_epoch()
        log_table_event(
            self.logger, self.table_id, "forward_search", self.mode.value, "forwarded", epoch=epoch, length=len(value)
        )
        self.callbacks.on_search_change(value, epoch)

    def _next_epoch(self) -> int:
        self._epoch += 1
        return self._epoch

    def _ignored(self, action: str, reason: str, **context: Any) -> None:
        log_table_event(
            self.logger, self.table_id, "intent_ignored", self.mode.value, reason,
            level=logging.DEBUG, intent=action, **context,
        )

    # -- view model ------------------------------------------------------

    def get_view_model(
        self,
        rows: Sequence[T],
        pagination_meta: PaginationMeta | Mapping[str, Any] | None = None,
        *,
        fetching: bool = False,
    ) -> TableViewModel[T]:
        """Derive the rendered table. Read-only: the store is never written and listeners never fire."""
        if self.mode is TableMode.CLIENT:
            page_rows, summary, numbering = self._client_page(rows, fetching)
        else:
            page_rows, summary, numbering = self._server_page(rows, pagination_meta, fetching)

        state = self._store.state
        visible = [column for column in self.columns if state.is_visible(column.id)]
        header = tuple(
            HeaderCell(
                column_id=column.id,
                header=column.header,
                sortable=column.can_sort,
                sort_direction=current_direction(state.sorting, column.id),
                width=column.width,
            )
            for column in visible
        )
        body = tuple(
            BodyRow(
                index=index,
                original=row,
                row_number=numbering(index),
                cells=tuple(
                    BodyCell(column_id=column.id, value=numbering(index) if column.id == ROW_NUMBER_COLUMN_ID else column.value_of(row))
                    for column in visible
                ),
            )
            for index, row in enumerate(page_rows)
        )
        if fetching:
            empty_message = self.config.labels.loading
        elif not body:
            empty_message = self.config.labels.no_results
        else:
            empty_message = None
        search = SearchSummary(
            value=self._search_input,
            is_debouncing=self.is_debouncing,
            placeholder=self.config.labels.search_placeholder,
            search_column=self.config.search_column,
        )
        return TableViewModel(
            mode=self.mode,
            header_rows=(header,),
            body_rows=body,
            pagination_summary=summary,
            search=search,
            empty_message=empty_message,
        )

    def _client_page(self, rows: Sequence[T], fetching: bool) -> tuple[list[T], PaginationSummary, Callable[[int], int]]:
        state = self._store.state
        filtered = filter_rows(rows, self._columns_by_id, state.filters, state.global_filter)
        ordered = sort_rows(filtered, self._columns_by_id, state.sorting)
        self._filtered_count = len(ordered)
        pages = page_count(len(ordered), state.pagination.page_size)
        pagination = set_page_index(state, state.pagination.page_index, pages).pagination
        page_rows = paginate(ordered, pagination)
        summary = PaginationSummary(
            page_index=pagination.page_index,
            page_count=pages,
            page_size=pagination.page_size,
            total_items=len(ordered),
            can_previous_page=pagination.page_index > 0,
            can_next_page=pagination.page_index < pages - 1,
            page_size_options=self.config.page_size_options,
            is_loading=fetching,
            first_row_number=row_number(self.mode, 0, pagination) if page_rows else None,
            last_row_number=row_number(self.mode, len(page_rows) - 1, pagination) if page_rows else None,
        )
        return page_rows, summary, lambda index: row_number(self.mode, index, pagination)

    def _server_page(
        self, rows: Sequence[T], pagination_meta: Any, fetching: bool
    ) -> tuple[list[T], PaginationSummary, Callable[[int], int]]:
        if pagination_meta is None:
            raise TableUsageError(
                code="PAGINATION_META_REQUIRED",
                message="Server mode needs pagination metadata from the host",
            )
        meta = pagination_meta if isinstance(pagination_meta, PaginationMeta) else PaginationMeta.model_validate(pagination_meta)
        self._last_meta = meta
        page_rows = list(rows)
        summary = PaginationSummary(
            page_index=meta.current_page - 1,
            page_count=max(1, meta.total_pages),
            page_size=meta.page_size,
            total_items=meta.total_items,
            can_previous_page=meta.current_page > 1,
            can_next_page=meta.current_page < meta.total_pages,
            page_size_options=self.config.page_size_options,
            is_loading=fetching,
            first_row_number=row_number(self.mode, 0, meta) if page_rows else None,
            last_row_number=row_number(self.mode, len(page_rows) - 1, meta) if page_rows else None,
        )
        return page_rows, summary, lambda index: row_number(self.mode, index, meta)

    # -- lifecycle -------------------------------------------------------

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._debouncer.dispose()
        self._store.clear()
        log_table_event(self.logger, self.table_id, "dispose", self.mode.value, "success")

    def __enter__(self) -> "TableEngine[T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()
