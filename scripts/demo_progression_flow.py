"""Demo: walk a learner through module unlocks using FastAPI TestClient.

Run with:
    python scripts/demo_progression_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from lms.main import app
from lms.services import token_service

COURSE_ID = 1
LEARNER = "demo-learner"


def _bearer(sub: str, roles: list[str]) -> dict[str, str]:
    # Stands in for the college identity provider.
    token = token_service.create_access_token(sub=sub, roles=roles)
    return {"Authorization": f"Bearer {token}"}


def _states(client: TestClient, headers: dict[str, str]) -> str:
    body = client.get(f"/v1/courses/{COURSE_ID}", headers=headers).json()
    marks = {"completed": "x", "unlocked": "o", "locked": "-"}
    return "".join(marks[m["state"]] for m in body["modules"])


def main() -> None:
    client = TestClient(app)
    learner = _bearer(LEARNER, ["student"])
    staff = _bearer("demo-staff", ["staff"])
    admin = _bearer("demo-admin", ["admin"])

    # ── Step 1: enroll ────────────────────────────────────────────
    r = client.post(f"/v1/courses/{COURSE_ID}/enroll", headers=learner)
    print(f"1. POST /enroll            → {r.status_code}  {r.json()['notifications']}")
    print(f"   modules                   {_states(client, learner)}")

    # ── Step 2: try to skip ahead ─────────────────────────────────
    r = client.put(
        f"/v1/progress/{COURSE_ID}/modules/3",
        json={"completed": True},
        headers=learner,
    )
    print(f"2. PUT  module 3 (locked)  → {r.status_code}  {r.json()['detail']}")

    # ── Step 3: work through modules 1-6 ──────────────────────────
    for n in range(1, 7):
        client.post(f"/v1/progress/{COURSE_ID}/modules/{n}/open", headers=learner)
        r = client.put(
            f"/v1/progress/{COURSE_ID}/modules/{n}",
            json={"completed": True},
            headers=learner,
        )
        body = r.json()
        print(
            f"3. PUT  module {n}          → {r.status_code}  "
            f"{body['progress']['progress_percentage']:>3}%  "
            f"unlocked={body['unlocked_module_number']}"
        )
    print(f"   modules                   {_states(client, learner)}")

    # ── Step 4: undo module 3 ─────────────────────────────────────
    r = client.put(
        f"/v1/progress/{COURSE_ID}/modules/3",
        json={"completed": False},
        headers=learner,
    )
    print(
        f"4. PUT  module 3 (undo)    → {r.status_code}  "
        f"{r.json()['progress']['progress_percentage']}%"
    )
    print(f"   modules                   {_states(client, learner)}")

    # ── Step 5: staff view ────────────────────────────────────────
    print(f"5. staff modules             {_states(client, staff)}")
    r = client.get(f"/v1/progress/{COURSE_ID}/learners", headers=staff)
    roster = [(p["learner_id"], p["progress_percentage"]) for p in r.json()]
    print(f"   GET  /learners          → {r.status_code}  {roster}")

    # ── Step 6: admin activity log ────────────────────────────────
    r = client.get("/admin/activity-logs", params={"limit": 5}, headers=admin)
    print(f"6. GET  /admin/activity-logs → {r.status_code}")
    for entry in r.json():
        print(f"   {entry['action']:<20} {entry['details']}")

    print("\nAll steps completed.")


if __name__ == "__main__":
    main()
