from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

ROW_NUMBER_COLUMN_ID = "rowNumber"
ACTIONS_COLUMN_ID = "actions"
RESERVED_COLUMN_IDS = frozenset({ROW_NUMBER_COLUMN_ID, ACTIONS_COLUMN_ID})


class TableMode(str, Enum):
    CLIENT = "client"
    SERVER = "server"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ColumnDefinition(Generic[T]):
    """Column model for one table.

    ``accessor`` is either a key (mapping lookup or attribute name) or a
    callable taking the row. Columns without an accessor are display-only.
    """

    id: str
    header: Any = None
    accessor: str | Callable[[T], Any] | None = None
    sortable: bool = True
    hideable: bool = True
    width: Any = None
    sort_key: Callable[[Any], Any] | None = None
    filter_fn: Callable[[Any, Any], bool] | None = None

    @property
    def is_reserved(self) -> bool:
        return self.id in RESERVED_COLUMN_IDS

    @property
    def has_accessor(self) -> bool:
        return self.accessor is not None

    @property
    def can_sort(self) -> bool:
        return self.sortable and self.has_accessor and not self.is_reserved

    @property
    def can_hide(self) -> bool:
        return self.hideable and not self.is_reserved

    def value_of(self, row: T) -> Any:
        if self.accessor is None:
            return None
        if callable(self.accessor):
            return self.accessor(row)
        if isinstance(row, Mapping):
            return row.get(self.accessor)
        return getattr(row, self.accessor, None)


@dataclass(frozen=True)
class SortEntry:
    column_id: str
    direction: SortDirection


@dataclass(frozen=True)
class PaginationState:
    page_index: int = 0
    page_size: int = 10


class PaginationMeta(BaseModel):
    """Pagination metadata supplied by the host in server mode."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    current_page: int = Field(default=1, ge=1, alias="currentPage")
    page_size: int = Field(gt=0, alias="pageSize")
    total_items: int = Field(default=0, ge=0, alias="totalItems")
    total_pages: int = Field(default=1, ge=0, alias="totalPages")

