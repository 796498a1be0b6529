from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class TableError(Exception):
    code: str
    message: str
    details: dict[str, Any] | list[Any] | str | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class TableConfigError(TableError):
    """Invalid table configuration, raised once at initialize."""


class TableUsageError(TableError):
    """The host called the engine with inputs its mode cannot work with."""
