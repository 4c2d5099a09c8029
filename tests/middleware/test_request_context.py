"""Request id propagation and the per-request access log line."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from lms.middleware.request_context import install_request_id_factory
from tests.conftest import auth


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    uuid.UUID(resp.headers["x-request-id"])  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "lms-trace-42"})
    assert resp.headers["x-request-id"] == "lms-trace-42"


def test_each_request_gets_its_own_id(client: TestClient) -> None:
    first = client.get("/health").headers["x-request-id"]
    second = client.get("/health").headers["x-request-id"]
    assert first != second


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/v1/courses")  # no token → 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_access_line_level_follows_status(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="lms.middleware.request_context"):
        client.get("/health")
        client.get("/v1/courses")

    lines = [
        r for r in caplog.records if r.name == "lms.middleware.request_context"
    ]
    by_path = {(r.path, r.status_code): r.levelno for r in lines}  # type: ignore[attr-defined]
    assert by_path[("/health", 200)] == logging.INFO
    assert by_path[("/v1/courses", 401)] == logging.WARNING


def test_domain_logs_carry_request_id(
    client: TestClient, token: str, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="lms.services.progress_service"):
        client.put(
            "/v1/progress/1/modules/1",
            json={"completed": True},
            headers={**auth(token), "X-Request-ID": "toggle-req-1"},
        )

    service_records = [
        r for r in caplog.records if r.name == "lms.services.progress_service"
    ]
    assert service_records
    assert {r.request_id for r in service_records} == {"toggle-req-1"}  # type: ignore[attr-defined]


def test_records_outside_a_request_get_placeholder_id() -> None:
    install_request_id_factory()  # second install is a no-op
    record = logging.getLogRecordFactory()("x", logging.INFO, "x.py", 1, "msg", (), None)
    assert record.request_id == "-"  # type: ignore[attr-defined]
