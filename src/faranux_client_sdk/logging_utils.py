import json
import logging
from datetime import datetime, timezone
from typing import Any


def get_logger(name: str, level: str | int | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    if logger.handlers:
        return logger
    if level is None:
        logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def log_action(
    logger: logging.Logger,
    module: str,
    action: str,
    outcome: str,
    **context: Any,
) -> None:
    level = logging.INFO if outcome == "success" else logging.WARNING
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": logging.getLevelName(level),
        "module": module,
        "action": action,
        "outcome": outcome,
    }
    record.update({key: value for key, value in context.items() if value is not None})
    logger.log(level, json.dumps(record, default=str))
