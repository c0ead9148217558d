"""Log formatters for vconv.

JSONFormatter writes one object per line. Records emitted while a
conversion run is active (see vconv.logging.context) carry a "run" object
with the run id and input file, so the lines of one ffmpeg run can be
grouped with a single filter.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has, plus the ones the formatter or
# RunContextFilter set; anything else came from extra=
_RESERVED: frozenset[str] = frozenset(
    vars(logging.makeLogRecord({}))
) | {"message", "asctime", "run_id", "input_path", "run_tag"}

TEXT_FORMAT = "%(asctime)s - %(run_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def text_formatter() -> logging.Formatter:
    """Plain-text formatter; records must pass through RunContextFilter."""
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects.

    Keys:
    - timestamp: ISO-8601 UTC
    - level, logger (omitted for root), message
    - run: {"id", "input"} while a conversion run is active
    - context: values passed via extra=
    - exception: formatted traceback, when present
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
        }
        if record.name != "root":
            entry["logger"] = record.name
        entry["message"] = record.getMessage()

        run_id = getattr(record, "run_id", None)
        if run_id:
            entry["run"] = {
                "id": run_id,
                "input": getattr(record, "input_path", None),
            }

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if extra:
            entry["context"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
