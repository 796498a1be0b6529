from __future__ import annotations

from collections.abc import Sequence

from console_datatable.domain.models import SortDirection, SortEntry, TableMode

# None stands for "unsorted" in client mode and "not the selected column" in server mode.
_CLIENT_CYCLE: dict[SortDirection | None, SortDirection | None] = {
    None: SortDirection.ASC,
    SortDirection.ASC: SortDirection.DESC,
    SortDirection.DESC: None,
}

_SERVER_CYCLE: dict[SortDirection | None, SortDirection] = {
    None: SortDirection.ASC,
    SortDirection.ASC: SortDirection.DESC,
    SortDirection.DESC: SortDirection.ASC,
}

_CYCLES = {TableMode.CLIENT: _CLIENT_CYCLE, TableMode.SERVER: _SERVER_CYCLE}


def next_direction(mode: TableMode, current: SortDirection | None) -> SortDirection | None:
    return _CYCLES[TableMode(mode)][current]


def current_direction(sorting: Sequence[SortEntry], column_id: str) -> SortDirection | None:
    for entry in sorting:
        if entry.column_id == column_id:
            return entry.direction
    return None


def next_sorting(mode: TableMode, sorting: Sequence[SortEntry], column_id: str) -> tuple[SortEntry, ...]:
    """Single-column sort transition.

    Any other column's entry is dropped, so a newly selected column always
    starts from ``None`` and lands on ``asc`` in both modes.
    """
    direction = next_direction(mode, current_direction(sorting, column_id))
    if direction is None:
        return ()
    return (SortEntry(column_id=column_id, direction=direction),)
