"""Security edge cases: token validation, role checks on imports, password hashing."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient, ASGITransport
from jose import jwt
from unittest.mock import AsyncMock, MagicMock

from fleetdesk.core.config import settings
from fleetdesk.core.deps import get_current_user
from fleetdesk.core.limiter import limiter
from fleetdesk.core.security import create_access_token, decode_token, hash_password, verify_password
from fleetdesk.db.session import get_session
from fleetdesk.main import app


# ─── Fixtures ─────────────────────────────────────────────────────────────────

class FakeUser:
    """Minimal user stub for dependency overrides."""

    def __init__(self, role: str = "ADMIN", is_active: bool = True):
        self.id = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")
        self.email = "admin@example.com"
        self.name = "Admin User"
        self.role = role
        self.is_active = is_active
        self.deleted_at = None
        self.password_hash = "$2b$12$shouldneverleak"


def make_session_override(user):
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = user

    mock_session = AsyncMock()
    mock_session.execute = AsyncMock(return_value=mock_result)

    async def _override():
        yield mock_session
    return _override


@pytest.fixture(autouse=True)
def _reset_overrides():
    limiter.enabled = False
    yield
    limiter.enabled = True
    app.dependency_overrides.clear()


async def _get(path: str, token: str | None = None):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.get(path, headers=headers)


# ─── Token validation ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_me_endpoint_excludes_password_hash():
    """GET /api/v1/auth/me must never return password_hash."""
    user = FakeUser()
    app.dependency_overrides[get_session] = make_session_override(user)

    response = await _get("/api/v1/auth/me", create_access_token(subject=str(user.id), role="ADMIN"))

    assert response.status_code == 200
    assert "password_hash" not in response.json()


@pytest.mark.asyncio
async def test_expired_token_rejected():
    expired = jwt.encode(
        {"sub": str(uuid.uuid4()), "role": "ADMIN", "type": "access",
         "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    response = await _get("/api/v1/auth/me", expired)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_secret_rejected():
    forged = jwt.encode(
        {"sub": str(uuid.uuid4()), "role": "ADMIN", "type": "access",
         "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "not-the-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    response = await _get("/api/v1/auth/me", forged)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_non_access_token_type_rejected():
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "type": "refresh",
         "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    response = await _get("/api/v1/auth/me", token)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_rejected():
    user = FakeUser(is_active=False)
    app.dependency_overrides[get_session] = make_session_override(user)

    response = await _get("/api/v1/auth/me", create_access_token(subject=str(user.id), role="ADMIN"))
    assert response.status_code == 401


# ─── Role checks on import endpoints ──────────────────────────────────────────

@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["AGENT", "VIEWER"])
async def test_non_import_roles_cannot_upload(role):
    app.dependency_overrides[get_current_user] = lambda: FakeUser(role=role)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/stickers/stock/upload",
            files={"file": ("stock.csv", b"serial_number\nSTK1\n", "text/csv")},
        )
    assert response.status_code == 403


# ─── Passwords ────────────────────────────────────────────────────────────────

def test_password_hash_verifies_and_is_salted():
    first = hash_password("changeme123")
    second = hash_password("changeme123")
    assert first != second
    assert verify_password("changeme123", first)
    assert not verify_password("wrong", first)


def test_access_token_round_trip():
    token = create_access_token(subject="abc", role="MANAGER")
    payload = decode_token(token)
    assert payload["sub"] == "abc"
    assert payload["role"] == "MANAGER"
    assert payload["type"] == "access"
