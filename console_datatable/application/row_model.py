from __future__ import annotations

import math
import numbers
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any, TypeVar

from console_datatable.domain.models import ColumnDefinition, PaginationState, SortDirection, SortEntry

T = TypeVar("T")

_NUMERIC_TYPES = (numbers.Real, Decimal)
_SEARCHABLE_TYPES = (str, *_NUMERIC_TYPES)


def matches_text(value: Any, needle: str) -> bool:
    if value is None or isinstance(value, bool) or not isinstance(value, _SEARCHABLE_TYPES):
        return False
    return needle.lower() in str(value).lower()


def _column_matches(column: ColumnDefinition[T], row: T, filter_value: Any) -> bool:
    value = column.value_of(row)
    if column.filter_fn is not None:
        return bool(column.filter_fn(value, filter_value))
    if callable(filter_value):
        return bool(filter_value(value))
    if isinstance(filter_value, str):
        return matches_text(value, filter_value)
    return value == filter_value


def filter_rows(
    rows: Iterable[T],
    columns: Mapping[str, ColumnDefinition[T]],
    filters: Mapping[str, Any],
    global_filter: str = "",
) -> list[T]:
    active = [(columns[key], value) for key, value in filters.items() if key in columns and value not in (None, "")]
    searchable = [column for column in columns.values() if column.has_accessor]
    result: list[T] = []
    for row in rows:
        if not all(_column_matches(column, row, value) for column, value in active):
            continue
        if global_filter and not any(_column_matches(column, row, global_filter) for column in searchable):
            continue
        result.append(row)
    return result


def sort_rows(rows: Sequence[T], columns: Mapping[str, ColumnDefinition[T]], sorting: Sequence[SortEntry]) -> list[T]:
    ordered = list(rows)
    # Stable sort applied from lowest to highest precedence.
    for entry in reversed(list(sorting)):
        column = columns.get(entry.column_id)
        if column is None or not column.can_sort:
            continue
        present = [row for row in ordered if column.value_of(row) is not None]
        missing = [row for row in ordered if column.value_of(row) is None]
        present.sort(key=lambda row: _sort_key(column, column.value_of(row)), reverse=entry.direction is SortDirection.DESC)
        ordered = present + missing
    return ordered


def _sort_key(column: ColumnDefinition[Any], value: Any) -> tuple[int, Any]:
    if column.sort_key is not None:
        return (0, column.sort_key(value))
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, _NUMERIC_TYPES):
        return (0, value)
    if isinstance(value, str):
        return (1, value.lower())
    return (2, str(value).lower())


def page_count(total_items: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return max(1, math.ceil(total_items / page_size))


def paginate(rows: Sequence[T], pagination: PaginationState) -> list[T]:
    start = pagination.page_index * pagination.page_size
    return list(rows[start : start + pagination.page_size])
