"""Prometheus instrumentation tests.

prometheus_client keeps one process-wide registry and counters never go
down, so every assertion compares a sample before and after the request.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import auth, mint_token

_TOGGLE_ROUTE = "/v1/progress/{course_id}/modules/{module_number}"


def _sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def _toggle(client: TestClient, n: int, username: str = "metrics-learner"):
    return client.put(
        f"/v1/progress/1/modules/{n}",
        json={"completed": True},
        headers=auth(mint_token(username=username)),
    )


def test_requests_labelled_by_route_template(client: TestClient) -> None:
    labels = {"method": "PUT", "endpoint": _TOGGLE_ROUTE, "status_code": "200"}
    before = _sample("http_requests_total", labels)
    _toggle(client, 1)
    _toggle(client, 2)
    assert _sample("http_requests_total", labels) - before == 2


def test_concrete_paths_do_not_become_labels(client: TestClient) -> None:
    _toggle(client, 1)
    labels = {"method": "PUT", "endpoint": "/v1/progress/1/modules/1", "status_code": "200"}
    assert REGISTRY.get_sample_value("http_requests_total", labels) is None


def test_unmatched_paths_share_a_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "unmatched", "status_code": "404"}
    before = _sample("http_requests_total", labels)
    client.get("/no/such/page")
    client.get("/another/missing/page")
    assert _sample("http_requests_total", labels) - before == 2


def test_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _sample("http_request_duration_seconds_count", labels) - before == 1


def test_metrics_endpoint_exposes_domain_counters(client: TestClient) -> None:
    _toggle(client, 1)
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    for name in (
        "http_requests_total",
        "module_completion_toggles_total",
        "module_unlocks_total",
        "progress_save_failures_total",
        "cache_operations_total",
    ):
        assert name in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _sample("http_requests_total", labels) == before


def test_completion_and_unlock_counted(client: TestClient) -> None:
    toggles = _sample("module_completion_toggles_total", {"state": "complete"})
    unlocks = _sample("module_unlocks_total")

    assert _toggle(client, 1).status_code == 200

    assert _sample("module_completion_toggles_total", {"state": "complete"}) - toggles == 1
    assert _sample("module_unlocks_total") - unlocks == 1


def test_rejected_toggle_not_counted(client: TestClient) -> None:
    before = _sample("module_completion_toggles_total", {"state": "complete"})
    assert _toggle(client, 5).status_code == 403
    assert _sample("module_completion_toggles_total", {"state": "complete"}) == before
