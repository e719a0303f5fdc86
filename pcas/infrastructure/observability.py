"""Structured Logging — JSON formatter and setup for client diagnostics.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (section, cache_key, path, status_code, error_code) surfaced when present
    - JSON format by default, human-readable when log_format != "json"

Design Decisions:
    - JSONFormatter over third-party libs: stdlib logging is enough for one process
    - setup_logging called once by the composition root (Portal.create)
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_KEYS = (
    "section", "cache_key", "method", "path", "status_code",
    "error_code", "user_id",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure root logging for the client. Replaces a handler it installed before."""
    for existing in list(logging.root.handlers):
        if getattr(existing, "_pcas_handler", False):
            logging.root.removeHandler(existing)
    handler = logging.StreamHandler()
    handler._pcas_handler = True  # type: ignore[attr-defined]
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
