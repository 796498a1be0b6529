from .application.debouncer import Debouncer, PendingEmission, RunningLoopScheduler
from .application.engine import ServerCallbacks, TableEngine
from .application.state.table_state import TableState, TableStateStore
from .config import TableConfig, TableSettings, build_config
from .domain.models import (
    ACTIONS_COLUMN_ID,
    ROW_NUMBER_COLUMN_ID,
    ColumnDefinition,
    PaginationMeta,
    PaginationState,
    SortDirection,
    SortEntry,
    TableMode,
)
from .domain.row_numbers import row_number, row_number_column
from .domain.sort_cycle import next_direction, next_sorting
from .errors import TableConfigError, TableError, TableUsageError
from .ui.table_printer import print_table, render_table
from .ui.view_model import TableLabels, TableViewModel

__all__ = [
    "ACTIONS_COLUMN_ID",
    "ROW_NUMBER_COLUMN_ID",
    "ColumnDefinition",
    "Debouncer",
    "PaginationMeta",
    "PaginationState",
    "PendingEmission",
    "RunningLoopScheduler",
    "ServerCallbacks",
    "SortDirection",
    "SortEntry",
    "TableConfig",
    "TableConfigError",
    "TableEngine",
    "TableError",
    "TableLabels",
    "TableMode",
    "TableSettings",
    "TableState",
    "TableStateStore",
    "TableUsageError",
    "TableViewModel",
    "build_config",
    "next_direction",
    "next_sorting",
    "print_table",
    "render_table",
    "row_number",
    "row_number_column",
]
