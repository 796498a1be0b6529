import json
import logging
from datetime import datetime, timezone
from typing import Any


def get_logger(name: str, level: str | int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def log_table_event(
    logger: logging.Logger,
    table_id: str,
    action: str,
    mode: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    if not logger.isEnabledFor(level):
        return
    logger.log(
        level,
        json.dumps(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "level": logging.getLevelName(level),
                "table_id": table_id,
                "mode": mode,
                "action": action,
                "outcome": outcome,
                **context,
            },
            ensure_ascii=False,
            default=str,
        ),
    )
