"""JSON log lines must stay parseable and keep the domain fields."""

from __future__ import annotations

import json
import logging
import sys

from courseight.core.logging import _ContainerFormatter, _JsonFormatter


def _record(msg: str = "Enrolled", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="courseight.services.course_service",
        level=logging.INFO,
        pathname="course_service.py",
        lineno=7,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_emits_one_object() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "courseight.services.course_service"
    assert parsed["message"] == "Enrolled"
    assert "timestamp" in parsed


def test_json_formatter_lifts_request_and_domain_fields() -> None:
    record = _record(
        request_id="req-1",
        method="POST",
        path="/v1/assessments/{assessment_id}/submit",
        status_code=200,
        user_id="u-1",
        course_id="c-1",
        assessment_id="a-1",
    )
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "req-1"
    assert parsed["status_code"] == 200
    assert (parsed["user_id"], parsed["course_id"], parsed["assessment_id"]) == (
        "u-1",
        "c-1",
        "a-1",
    )


def test_json_formatter_skips_unset_fields() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    assert "request_id" not in parsed
    assert "course_id" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("projection failed")
    except ValueError:
        record = _record("Reprojection error")
        record.exc_info = sys.exc_info()
        output = _JsonFormatter().format(record)

    assert "ValueError: projection failed" in json.loads(output)["exception"]


def test_container_formatter_is_plain_text() -> None:
    output = _ContainerFormatter().format(_record("server started"))
    assert "INFO" in output
    assert "server started" in output
    assert not output.startswith("{")
