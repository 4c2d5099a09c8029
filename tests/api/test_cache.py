"""Cache hit/miss/invalidation tests for learner progress reads.

Verifies the read-through cache pattern:
1. First GET is a cache miss (populates cache from the data store)
2. Second GET is a cache hit (returns same data without querying store)
3. A completion toggle invalidates the cache so the next GET sees it
4. Different learners have isolated cache entries
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from lms.services.cache import cache_service, progress_cache_key
from tests.conftest import auth, mint_token

_COURSE_ID = 1


def _hits() -> float:
    value = REGISTRY.get_sample_value("cache_operations_total", {"operation": "hit"})
    return value if value is not None else 0.0


def test_cache_miss_then_hit(client: TestClient) -> None:
    """First GET populates the cache; second GET returns the same data."""
    token = mint_token(username="cache-user")

    resp1 = client.get(f"/v1/progress/{_COURSE_ID}", headers=auth(token))
    assert resp1.status_code == 200
    key = progress_cache_key("cache-user", _COURSE_ID)
    assert key in cache_service._store  # type: ignore[attr-defined]

    before = _hits()
    resp2 = client.get(f"/v1/progress/{_COURSE_ID}", headers=auth(token))
    assert resp2.status_code == 200
    assert resp1.json() == resp2.json()
    assert _hits() - before == 1


def test_cache_invalidated_on_toggle(client: TestClient) -> None:
    """After a completion change, the cached progress should reflect it."""
    token = mint_token(username="cache-invalidation-user")

    resp1 = client.get(f"/v1/progress/{_COURSE_ID}", headers=auth(token))
    assert resp1.json()["completed_module_numbers"] == []

    client.put(
        f"/v1/progress/{_COURSE_ID}/modules/1",
        json={"completed": True},
        headers=auth(token),
    )

    resp2 = client.get(f"/v1/progress/{_COURSE_ID}", headers=auth(token))
    assert resp2.json()["completed_module_numbers"] == [1]


def test_cache_is_learner_isolated(client: TestClient) -> None:
    """Learner A's cached progress should not leak to learner B."""
    token_a = mint_token(username="user-a")
    token_b = mint_token(username="user-b")

    client.put(
        f"/v1/progress/{_COURSE_ID}/modules/1",
        json={"completed": True},
        headers=auth(token_a),
    )
    client.get(f"/v1/progress/{_COURSE_ID}", headers=auth(token_a))

    resp = client.get(f"/v1/progress/{_COURSE_ID}", headers=auth(token_b))
    assert resp.status_code == 200
    assert resp.json()["completed_module_numbers"] == []
