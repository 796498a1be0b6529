from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from console_datatable.domain.models import TableMode
from console_datatable.errors import TableConfigError
from console_datatable.ui.view_model import TableLabels

DEFAULT_PAGE_SIZE = 10
DEFAULT_PAGE_SIZE_OPTIONS = (5, 10, 20, 50, 100)
DEFAULT_DEBOUNCE_MS = 500


class TableSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="CONSOLE_TABLE_", extra="ignore")

    DEFAULT_PAGE_SIZE: int = DEFAULT_PAGE_SIZE
    PAGE_SIZE_OPTIONS: list[int] = list(DEFAULT_PAGE_SIZE_OPTIONS)
    DEBOUNCE_MS: int = DEFAULT_DEBOUNCE_MS
    SHOW_ROW_NUMBER: bool = True
    LOG_LEVEL: str = "INFO"


class TableConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: TableMode = TableMode.CLIENT
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    page_size_options: tuple[int, ...] = DEFAULT_PAGE_SIZE_OPTIONS
    show_row_number: bool = True
    search_column: str | None = None
    debounce_ms: int = Field(default=DEFAULT_DEBOUNCE_MS, ge=0)
    labels: TableLabels = Field(default_factory=TableLabels)

    @field_validator("page_size_options")
    @classmethod
    def _positive_options(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("page_size_options must not be empty")
        if any(option <= 0 for option in value):
            raise ValueError("page_size_options must be greater than 0")
        return tuple(dict.fromkeys(value))

    @field_validator("search_column")
    @classmethod
    def _blank_search_column(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @classmethod
    def from_settings(cls, table_settings: TableSettings | None = None, **overrides: Any) -> "TableConfig":
        source = table_settings or settings
        values: dict[str, Any] = {
            "default_page_size": source.DEFAULT_PAGE_SIZE,
            "page_size_options": tuple(source.PAGE_SIZE_OPTIONS),
            "debounce_ms": source.DEBOUNCE_MS,
            "show_row_number": source.SHOW_ROW_NUMBER,
        }
        values.update(overrides)
        return build_config(values)


def build_config(config: TableConfig | dict[str, Any] | None = None, **overrides: Any) -> TableConfig:
    """Normalize caller input into a TableConfig, mapping validation failures to TableConfigError."""
    if isinstance(config, TableConfig):
        if not overrides:
            return config
        payload = config.model_dump()
    else:
        payload = dict(config or {})
    payload.update(overrides)
    try:
        return TableConfig.model_validate(payload)
    except ValidationError as error:
        details = [
            {"field": ".".join(str(part) for part in item.get("loc", ())) or None, "message": item.get("msg")}
            for item in error.errors()
        ]
        raise TableConfigError(code="INVALID_CONFIG", message="Invalid table configuration", details=details) from error


settings = TableSettings()
