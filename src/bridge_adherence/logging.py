"""Structured logging for the adherence report tools.

Controlled via BRIDGE_LOG_FORMAT env var: "json" (default) or "text".
Records may carry ``bridge_*`` extras (stream count, row count, percent);
the JSON formatter copies them onto the emitted object.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

EXTRA_PREFIX = "bridge_"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
        }

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        log_entry.update(
            (key, value) for key, value in record.__dict__.items() if key.startswith(EXTRA_PREFIX)
        )
        return json.dumps(log_entry, default=str)


def setup_logging(log_format: str, level: int = logging.INFO, stream: TextIO | None = None) -> None:
    """Route the root logger to one stderr handler in JSON or plaintext format."""
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
