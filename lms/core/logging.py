"""Root logger setup for the LMS service.

LOG_JSON picks the output format:

  text  one line per record for a terminal or `docker logs`; records at
        WARNING and above end with the emitting [file:line].
  json  one object per line for the log aggregator.  Anything passed via
        ``extra=`` (request_id, user_id, course_id, module_number, ...)
        becomes a top-level key.
"""

from __future__ import annotations

import json
import logging
import sys

_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Attributes every LogRecord has; anything else came in through extra=.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

_NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpcore",
    "httpx",
    "sqlalchemy.engine",
)


class _ContainerFormatter(logging.Formatter):
    """``2026-10-17T09:30:12.042+0000 WARNING  lms.api.errors  msg  [errors.py:51]``"""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-8s %(name)s  %(message)s", datefmt=_DATEFMT
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = super().formatTime(record, datefmt)
        # Milliseconds go before the +HHMM offset.
        return f"{stamp[:-5]}.{int(record.msecs):03d}{stamp[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if record.levelno < logging.WARNING:
            return line
        head, sep, trace = line.partition("\n")
        return f"{head}  [{record.filename}:{record.lineno}]{sep}{trace}"


class _JsonFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(datefmt=_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith("_") and value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Replace the root handlers with one stdout handler.

    Unknown level names fall back to INFO.  Chatty third-party loggers are
    held at WARNING or above.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
