from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime

# Structured fields copied from `extra=` into the JSON line when present.
EXTRA_KEYS = (
    "service",
    "run_id",
    "component",
    "rule_spec",
    "outcome",
    "field_failures",
    "attachment_failures",
    "attachments_total",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key in EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_logger.setLevel(logging.getLevelNamesMapping().get(resolved, logging.INFO))
