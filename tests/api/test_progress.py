"""Tests for the progress endpoints: toggling, opening and reviewing."""

from __future__ import annotations

from fastapi.testclient import TestClient

from lms.api.dependencies import progress_repo
from lms.repos.progress_repo import ProgressPersistenceError
from tests.conftest import auth, mint_token


def _complete(client: TestClient, token: str, n: int, completed: bool = True):
    return client.put(
        f"/v1/progress/1/modules/{n}",
        json={"completed": completed},
        headers=auth(token),
    )


# ---- 401: unauthenticated ----


def test_toggle_rejects_missing_token(client: TestClient) -> None:
    resp = client.put("/v1/progress/1/modules/1", json={"completed": True})
    assert resp.status_code == 401


# ---- reading ----


def test_get_progress_for_new_learner(client: TestClient, token: str) -> None:
    resp = client.get("/v1/progress/1", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["learner_id"] == "test-user"
    assert body["completed_module_numbers"] == []
    assert body["progress_percentage"] == 0
    assert body["last_accessed_module_number"] is None


def test_get_progress_unknown_course(client: TestClient, token: str) -> None:
    assert client.get("/v1/progress/42", headers=auth(token)).status_code == 404


# ---- toggling ----


def test_complete_first_module(client: TestClient, token: str) -> None:
    resp = _complete(client, token, 1)
    assert resp.status_code == 200
    body = resp.json()
    assert body["saved"] is True
    assert body["progress"]["completed_module_numbers"] == [1]
    assert body["progress"]["progress_percentage"] == 13
    assert body["unlocked_module_number"] == 2
    messages = [n["message"] for n in body["notifications"]]
    assert messages[0] == "Module marked as complete"
    assert messages[1].startswith("Module 2 unlocked")


def test_complete_six_modules_reaches_seventy_five(
    client: TestClient, token: str
) -> None:
    for n in range(1, 7):
        assert _complete(client, token, n).status_code == 200
    body = client.get("/v1/progress/1", headers=auth(token)).json()
    assert body["completed_module_numbers"] == [1, 2, 3, 4, 5, 6]
    assert body["progress_percentage"] == 75


def test_toggle_is_idempotent(client: TestClient, token: str) -> None:
    first = _complete(client, token, 1).json()
    second = _complete(client, token, 1).json()
    assert first["progress"]["completed_module_numbers"] == [1]
    assert second["progress"]["completed_module_numbers"] == [1]
    # Already unlocked, so nothing new to announce.
    assert second["unlocked_module_number"] is None


def test_mark_incomplete(client: TestClient, token: str) -> None:
    _complete(client, token, 1)
    body = _complete(client, token, 1, completed=False).json()
    assert body["progress"]["completed_module_numbers"] == []
    assert body["progress"]["progress_percentage"] == 0
    assert body["notifications"][0]["message"] == "Module marked as incomplete"


def test_completing_locked_module_is_forbidden(client: TestClient, token: str) -> None:
    resp = _complete(client, token, 4)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "module 4 is locked"


def test_out_of_range_module_is_not_found(client: TestClient, token: str) -> None:
    _complete(client, token, 1)
    for n in (0, 9):
        resp = _complete(client, token, n)
        assert resp.status_code == 404
    body = client.get("/v1/progress/1", headers=auth(token)).json()
    assert body["completed_module_numbers"] == [1]


def test_toggle_requires_boolean_body(client: TestClient, token: str) -> None:
    resp = client.put("/v1/progress/1/modules/1", json={}, headers=auth(token))
    assert resp.status_code == 422


def test_failed_save_answers_503_with_stored_state(
    client: TestClient, token: str, monkeypatch
) -> None:
    _complete(client, token, 1)

    async def _reject(progress) -> None:
        raise ProgressPersistenceError("database unavailable")

    monkeypatch.setattr(progress_repo, "save_progress", _reject)
    resp = _complete(client, token, 2)

    assert resp.status_code == 503
    body = resp.json()
    assert body["saved"] is False
    assert body["progress"]["completed_module_numbers"] == [1]
    assert body["progress"]["progress_percentage"] == 13
    assert body["notifications"][0]["level"] == "error"


# ---- opening modules ----


def test_open_module_records_last_accessed(client: TestClient, token: str) -> None:
    resp = client.post("/v1/progress/1/modules/1/open", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["last_accessed_module_number"] == 1
    # Opening is not completing.
    assert body["completed_module_numbers"] == []


def test_open_locked_module_is_forbidden(client: TestClient, token: str) -> None:
    resp = client.post("/v1/progress/1/modules/2/open", headers=auth(token))
    assert resp.status_code == 403


def test_staff_can_open_any_module(client: TestClient, staff_token: str) -> None:
    resp = client.post("/v1/progress/1/modules/8/open", headers=auth(staff_token))
    assert resp.status_code == 200


# ---- staff review ----


def test_roster_lists_learners(client: TestClient, staff_token: str) -> None:
    _complete(client, mint_token(username="alice"), 1)
    _complete(client, mint_token(username="bob"), 1)

    resp = client.get("/v1/progress/1/learners", headers=auth(staff_token))
    assert resp.status_code == 200
    assert [p["learner_id"] for p in resp.json()] == ["alice", "bob"]


def test_staff_reads_one_learner(client: TestClient, staff_token: str) -> None:
    _complete(client, mint_token(username="alice"), 1)
    resp = client.get("/v1/progress/1/learners/alice", headers=auth(staff_token))
    assert resp.status_code == 200
    assert resp.json()["completed_module_numbers"] == [1]


def test_learner_reads_own_record_by_id(client: TestClient) -> None:
    token = mint_token(username="alice")
    resp = client.get("/v1/progress/1/learners/alice", headers=auth(token))
    assert resp.status_code == 200


def test_learner_cannot_read_someone_else(client: TestClient) -> None:
    token = mint_token(username="alice")
    resp = client.get("/v1/progress/1/learners/bob", headers=auth(token))
    assert resp.status_code == 403


def test_staff_view_of_unknown_learner_is_empty(
    client: TestClient, staff_token: str
) -> None:
    resp = client.get("/v1/progress/1/learners/nobody", headers=auth(staff_token))
    assert resp.status_code == 200
    assert resp.json()["progress_percentage"] == 0
    # Looking does not enrol them.
    assert ("nobody", 1) not in progress_repo._store
