"""
Logging setup for the relay.

Logs always go to stderr so stdout stays free for the MCP stdio transport.
Production mode emits one JSON object per line.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Mapping

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SECRET_MARKERS = ("token", "key", "authorization", "password", "secret")
REDACTED = "***"

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Structured one-line JSON log records."""

    def __init__(self, service: str = "", version: str = ""):
        super().__init__()
        self.service = service
        self.version = version

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            entry["service"] = self.service
            entry["version"] = self.version
        for attr, value in vars(record).items():
            if attr not in _RECORD_ATTRS and not attr.startswith("_"):
                entry[attr] = value
        if record.exc_info:
            entry["stack"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "info",
    json_output: bool = False,
    service: str = "",
    version: str = "",
) -> None:
    """Configure root logging to stderr.

    Args:
        level: debug, info, warning or error
        json_output: Emit JSON records instead of the plain text format
        service: Service name stamped on JSON records
        version: Service version stamped on JSON records
    """
    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JsonFormatter(service, version))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO; the client already logs upstream calls
    logging.getLogger("httpx").setLevel(logging.WARNING)


def redact(values: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of `values` with secret-looking keys masked, recursing into dicts."""
    result = {}
    for key, value in values.items():
        if any(marker in str(key).lower() for marker in SECRET_MARKERS):
            result[key] = REDACTED
        elif isinstance(value, Mapping):
            result[key] = redact(value)
        else:
            result[key] = value
    return result
