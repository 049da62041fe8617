"""
Centralized Logging

Architectural Intent:
- One place to configure the "nexus" logger hierarchy
- Optional structured JSON output; dispatch context attached to records via
  `extra` (event, listener_index) is carried into the JSON payload
- Log level can be given as an int or as a name taken from config ("DEBUG")
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import IO, Optional, Union

# Record attributes the dispatcher attaches through `extra=`
CONTEXT_FIELDS = ("event", "listener_index", "mode")


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    level: Union[int, str] = logging.INFO,
    json_format: bool = False,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Configure the nexus logger hierarchy.

    Args:
        level: Logging level as int or name (DEBUG, INFO, WARNING, ...)
        json_format: If True, use JSON structured output. Otherwise human-readable.
        stream: Destination stream. Defaults to stderr.
    """
    level = resolve_level(level)
    root = logging.getLogger("nexus")
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )

    root.addHandler(handler)
    return root
