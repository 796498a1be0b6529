from __future__ import annotations

from typing import Any

from console_datatable.domain.models import (
    ROW_NUMBER_COLUMN_ID,
    ColumnDefinition,
    PaginationMeta,
    PaginationState,
    TableMode,
)

ROW_NUMBER_WIDTH = 60


def row_number(mode: TableMode, row_index_within_page: int, pagination: PaginationState | PaginationMeta) -> int:
    if TableMode(mode) is TableMode.CLIENT:
        if not isinstance(pagination, PaginationState):
            raise TypeError("client mode numbers rows from PaginationState")
        return pagination.page_index * pagination.page_size + row_index_within_page + 1
    if not isinstance(pagination, PaginationMeta):
        raise TypeError("server mode numbers rows from PaginationMeta")
    return (pagination.current_page - 1) * pagination.page_size + row_index_within_page + 1


def row_number_column(header: Any = "No") -> ColumnDefinition[Any]:
    return ColumnDefinition(
        id=ROW_NUMBER_COLUMN_ID,
        header=header,
        accessor=None,
        sortable=False,
        hideable=False,
        width=ROW_NUMBER_WIDTH,
    )
