"""Monetra — Structured JSON Logging.

One JSON object per line on stdout. Module loggers are children of the
``monetra`` logger, which carries the only handler.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from monetra.config import settings

ROOT_LOGGER = "monetra"

# Context passed through ``extra=`` by the request pipeline and the services
EXTRA_FIELDS = (
    "endpoint",
    "user_id",
    "project_id",
    "status_code",
    "error_code",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = settings.log_level) -> logging.Logger:
    """Attach the JSON handler to the ``monetra`` logger once and set its level."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    """``get_logger("services.dashboard")`` → ``monetra.services.dashboard``."""
    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
