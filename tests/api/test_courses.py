"""Tests for course listing, course detail and enrollment endpoints."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from lms.api.dependencies import course_repo
from lms.models.course import CourseDefinition
from tests.conftest import auth, mint_token

# ---- 401: unauthenticated ----


def test_list_courses_rejects_missing_token(client: TestClient) -> None:
    resp = client.get("/v1/courses")
    assert resp.status_code == 401


def test_enroll_rejects_missing_token(client: TestClient) -> None:
    resp = client.post("/v1/courses/1/enroll")
    assert resp.status_code == 401


def test_list_courses_rejects_garbage_token(client: TestClient) -> None:
    resp = client.get("/v1/courses", headers=auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


# ---- 200: list courses ----


def test_list_courses_returns_catalog(client: TestClient, token: str) -> None:
    resp = client.get("/v1/courses", headers=auth(token))
    assert resp.status_code == 200
    courses = resp.json()
    assert [c["id"] for c in courses] == [1, 2, 3, 4]
    first = courses[0]
    assert first["title"] == "Financial Auditing 101"
    assert first["total_modules"] == 8


def test_list_courses_search_is_case_insensitive(
    client: TestClient, token: str
) -> None:
    resp = client.get("/v1/courses", params={"q": "RISK"}, headers=auth(token))
    assert resp.status_code == 200
    assert [c["title"] for c in resp.json()] == ["Risk Assessment in Auditing"]


def test_list_courses_search_matches_instructor(
    client: TestClient, token: str
) -> None:
    resp = client.get("/v1/courses", params={"q": "jane smith"}, headers=auth(token))
    assert [c["id"] for c in resp.json()] == [1]


def test_list_courses_search_without_match(client: TestClient, token: str) -> None:
    resp = client.get("/v1/courses", params={"q": "astrophysics"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == []


# ---- course detail ----


def test_course_detail_for_new_student(client: TestClient, token: str) -> None:
    resp = client.get("/v1/courses/1", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["progress_percentage"] == 0
    assert body["completed_modules"] == 0
    states = [m["state"] for m in body["modules"]]
    assert states == ["unlocked"] + ["locked"] * 7
    assert body["modules"][0]["resources"][0]["title"] == "Course Syllabus"


def test_course_detail_reflects_completion(client: TestClient, token: str) -> None:
    for n in (1, 2):
        client.put(
            f"/v1/progress/1/modules/{n}",
            json={"completed": True},
            headers=auth(token),
        )
    body = client.get("/v1/courses/1", headers=auth(token)).json()
    states = [m["state"] for m in body["modules"]]
    assert states[:3] == ["completed", "completed", "unlocked"]
    assert states[3:] == ["locked"] * 5
    assert body["progress_percentage"] == 25


def test_course_detail_for_staff_has_no_locks(
    client: TestClient, staff_token: str
) -> None:
    body = client.get("/v1/courses/2", headers=auth(staff_token)).json()
    assert body["total_modules"] == 12
    assert {m["state"] for m in body["modules"]} == {"unlocked"}


def test_course_detail_not_found(client: TestClient, token: str) -> None:
    resp = client.get("/v1/courses/999", headers=auth(token))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "course not found"


def test_course_without_modules_is_rejected(client: TestClient, token: str) -> None:
    asyncio.run(course_repo.add(CourseDefinition(course_id=50, title="Empty")))
    resp = client.get("/v1/courses/50", headers=auth(token))
    assert resp.status_code == 422


# ---- 201: enrollment ----


def test_enroll_success(client: TestClient, token: str) -> None:
    resp = client.post("/v1/courses/1/enroll", headers=auth(token))
    assert resp.status_code == 201
    body = resp.json()
    assert body["course_id"] == 1
    assert body["learner_id"] == "test-user"
    assert body["progress_percentage"] == 0
    assert body["enrolled_at"] is not None
    assert body["notifications"] == [
        {"level": "success", "message": "Enrolled in Financial Auditing 101"}
    ]


def test_enroll_twice_conflicts(client: TestClient) -> None:
    token = mint_token(username="repeat-learner")
    assert client.post("/v1/courses/3/enroll", headers=auth(token)).status_code == 201
    resp = client.post("/v1/courses/3/enroll", headers=auth(token))
    assert resp.status_code == 409


# ---- 404: course not found ----


def test_enroll_course_not_found(client: TestClient, token: str) -> None:
    resp = client.post("/v1/courses/999/enroll", headers=auth(token))
    assert resp.status_code == 404
