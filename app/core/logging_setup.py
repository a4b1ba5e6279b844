"""
Process-wide logging for the API and the CLI.

The ledger handlers never log; the routes and CLI commands that call them log
failures and pass the ledger coordinates (resource, kind, actor) as ``extra``
so they show up as their own fields in the JSON output.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# LogRecord attributes lifted into the JSON payload when a caller sets them
LEDGER_FIELDS = ("resource_id", "kind", "actor_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, ledger coordinates included when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in LEDGER_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", structured: bool = True) -> None:
    """
    Configure the root logger once at process start.

    Adds a stream handler when none is installed (uvicorn and click's test
    runner may already have one) and switches every root handler to
    JsonFormatter when structured output is on.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    if structured:
        formatter = JsonFormatter()
        for handler in root.handlers:
            handler.setFormatter(formatter)
