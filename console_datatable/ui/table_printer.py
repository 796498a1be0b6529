from __future__ import annotations

from datetime import datetime
from typing import Any

from console_datatable.ui.view_model import TableLabels, TableViewModel

EMPTY_VALUE = "—"
_SORT_MARKERS = {"asc": " ↑", "desc": " ↓", "none": ""}


def format_cell(value: Any) -> str:
    if value is None:
        return EMPTY_VALUE
    if isinstance(value, str):
        return value.strip() or EMPTY_VALUE
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, datetime):
        return value.astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
    return str(value)


def render_table(view_model: TableViewModel[Any], labels: TableLabels | None = None) -> str:
    """Plain-text rendering of a view model for terminal hosts."""
    labels = labels or TableLabels()
    header_cells = view_model.header_rows[0] if view_model.header_rows else ()
    headers = [f"{format_cell(cell.header)}{_SORT_MARKERS[cell.sort_indicator]}" for cell in header_cells]
    body = [[format_cell(cell.value) for cell in row.cells] for row in view_model.body_rows]

    lines: list[str] = []
    if view_model.search.show_typing_indicator:
        lines.append(f"[{labels.typing}] {view_model.search.value}")

    widths = [max([len(header)] + [len(line[idx]) for line in body]) for idx, header in enumerate(headers)]
    lines.append(" | ".join(header.ljust(widths[idx]) for idx, header in enumerate(headers)))
    lines.append("-+-".join("-" * width for width in widths))
    if view_model.empty_message:
        lines.append(view_model.empty_message)
    else:
        for line in body:
            lines.append(" | ".join(value.ljust(widths[idx]) for idx, value in enumerate(line)))

    summary = view_model.pagination_summary
    lines.append(f"{summary.describe(labels)} · {labels.rows_per_page}: {summary.page_size}")
    return "\n".join(line.rstrip() for line in lines)


def print_table(view_model: TableViewModel[Any], labels: TableLabels | None = None) -> None:
    print(render_table(view_model, labels))
