from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from lms.api.dependencies import activity_log_repo, course_repo, progress_repo
from lms.main import app
from lms.services import token_service
from lms.services.cache import cache_service
from lms.services.progress_service import progress_locks

# Ensure repo root is on sys.path so `import lms` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_catalog() -> None:
    """Restore the sample catalog (tests may add courses)."""
    course_repo._by_id.clear()
    course_repo.seed()


@pytest.fixture(autouse=True)
def reset_progress_state() -> None:
    """Clear learner progress and activity logs between tests."""
    progress_repo._store.clear()
    activity_log_repo._entries.clear()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_progress_locks() -> None:
    """Drop per-learner locks; each TestClient request runs its own event loop."""
    progress_locks._locks.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


@pytest.fixture
def token() -> str:
    """Token with default role (student)."""
    return mint_token()


@pytest.fixture
def staff_token() -> str:
    """Token with staff role."""
    return mint_token(username="test-staff", roles=["staff"])


@pytest.fixture
def admin_token() -> str:
    """Token with admin role."""
    return mint_token(username="test-admin", roles=["admin"])


def auth(token: str | None) -> dict[str, str]:
    """Authorization header for a token (empty for anonymous requests)."""
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}
