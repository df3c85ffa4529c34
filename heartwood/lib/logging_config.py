"""JSON log lines for the API, the watcher and the CLI.

Each record becomes one JSON object on stdout. Request handlers get the
active correlation ID stamped on their records through
``correlation_id_var``; ad-hoc fields go through ``log_with_context``.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

# Correlation ID of the request currently being handled (set by middleware)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Record attributes copied into the JSON line when present
CONTEXT_FIELDS = ("correlation_id", "script_name", "file_name")

EXTRA_PREFIX = "extra_"

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON object tagged with the service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def _exception(self, record: logging.LogRecord) -> dict[str, Any]:
        exc_type, exc_value, _ = record.exc_info
        return {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "traceback": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "service": self.service_name,
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        entry.update(
            (field, getattr(record, field)) for field in CONTEXT_FIELDS if hasattr(record, field)
        )
        entry.update(
            (key[len(EXTRA_PREFIX):], value)
            for key, value in vars(record).items()
            if key.startswith(EXTRA_PREFIX)
        )

        if record.exc_info:
            entry["exception"] = self._exception(record)

        return json.dumps(entry, default=str)


class CorrelationFilter(logging.Filter):
    """Stamp records with the correlation ID of the current request.

    An ID already set on the record (e.g. via ``log_with_context``) wins.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current = correlation_id_var.get()
        if current and not hasattr(record, "correlation_id"):
            record.correlation_id = current
        return True


def setup_logging(service_name: str, level: str = "INFO") -> CorrelationFilter:
    """Replace the root handlers with one JSON stdout handler.

    Args:
        service_name: Value of the ``service`` field (e.g. "heartwood", "watcher")
        level: Root level name; unknown names fall back to INFO

    Returns:
        The CorrelationFilter attached to the handler
    """
    correlation_filter = CorrelationFilter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(service_name))
    handler.addFilter(correlation_filter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return correlation_filter


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    correlation_id: Optional[str] = None,
    **extra_fields: Any,
):
    """Log ``message`` with ``extra_fields`` as top-level JSON keys.

    Example:
        log_with_context(logger, "info", "Script ran", script="default", tier="builtin")
    """
    extra: dict[str, Any] = {f"{EXTRA_PREFIX}{key}": value for key, value in extra_fields.items()}
    if correlation_id:
        extra["correlation_id"] = correlation_id

    getattr(logger, level.lower())(message, extra=extra)
