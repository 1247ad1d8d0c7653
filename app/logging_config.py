"""
Structured JSON logging for the Bank Cards API.

Modules log through the standard library:

    logger = logging.getLogger(__name__)
    logger.info("card_created", extra={"card_id": str(card.id)})

configure_logging() attaches a single handler to the "app" logger that renders
each record as one JSON object, merging any `extra=` fields into the payload.
Card numbers and CVVs must never be passed to a logger, masked or not.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID


APP_LOGGER_NAME = "app"

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return repr(obj)


class JSONFormatter(logging.Formatter):
    """Render a log record, including its extra fields, as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _STDLIB_KEYS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=_json_default)


def configure_logging(level: str = "INFO", json_output: bool = True) -> logging.Logger:
    """
    Configure the application logger.

    Safe to call more than once: previously installed handlers are replaced,
    not duplicated.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Emit JSON lines when True, plain text otherwise.

    Returns:
        The configured "app" logger.
    """
    logger = logging.getLogger(APP_LOGGER_NAME)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
