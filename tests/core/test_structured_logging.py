"""JSON log output.

The aggregator indexes these lines by key; plain text or a missing
request_id would make a failed save impossible to trace.
"""

from __future__ import annotations

import json
import logging
import sys

from lms.core.logging import _ContainerFormatter, _JsonFormatter


def _record(msg: str = "Module %d marked %s", args: tuple = (1, "complete"), **extra):
    record = logging.LogRecord(
        "lms.services.progress_service", logging.INFO, "svc.py", 7, msg, args, None
    )
    record.__dict__.update(extra)
    return record


def test_json_line_has_core_fields() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "lms.services.progress_service"
    assert parsed["message"] == "Module 1 marked complete"
    assert "timestamp" in parsed


def test_extra_fields_become_top_level_keys() -> None:
    record = _record(
        request_id="req-9", user_id="learner-1", course_id=1, module_number=2
    )
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "req-9"
    assert parsed["user_id"] == "learner-1"
    assert parsed["course_id"] == 1
    assert parsed["module_number"] == 2


def test_standard_record_attributes_are_not_repeated() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    for noise in ("args", "msg", "pathname", "lineno", "levelno", "thread"):
        assert noise not in parsed
    assert "status_code" not in parsed


def test_none_extras_are_dropped() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(user_id=None)))
    assert "user_id" not in parsed


def test_exception_is_serialised() -> None:
    try:
        raise ValueError("bad progress row")
    except ValueError:
        record = _record("Progress save failed", ())
        record.exc_info = sys.exc_info()
    parsed = json.loads(_JsonFormatter().format(record))
    assert "ValueError: bad progress row" in parsed["exception"]


def test_non_json_values_are_stringified() -> None:
    record = _record(details=frozenset({3}))
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["details"] == "frozenset({3})"


def test_container_format_is_not_json() -> None:
    output = _ContainerFormatter().format(_record())
    assert "lms.services.progress_service" in output
    assert output.lstrip()[0] != "{"
