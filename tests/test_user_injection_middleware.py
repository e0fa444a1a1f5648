import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.config import settings
from bookstore.core.security import create_access_token
from bookstore.models.user import User
import jwt


@pytest.mark.asyncio
async def test_user_injection_with_valid_token(client: AsyncClient, auth_headers: dict):
    """A valid token resolves the user for protected routes."""
    response = await client.get("/auth/me", headers=auth_headers)

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_public_route_with_invalid_token(client: AsyncClient):
    """An invalid token on a public route is ignored (fail gracefully)."""
    response = await client.get(
        "/",
        headers={"Authorization": "Bearer invalid_token_here"}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_protected_route_with_invalid_token(client: AsyncClient):
    response = await client.get(
        "/auth/me",
        headers={"Authorization": "Bearer invalid_token_here"}
    )

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_user_injection_with_expired_token(client: AsyncClient, registered_user: dict):
    """An expired JWT leaves the request unauthenticated."""
    past_time = datetime.now(timezone.utc) - timedelta(minutes=10)
    expired_token = jwt.encode(
        {"sub": registered_user["id"], "exp": past_time},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    response = await client.get(
        "/auth/me",
        headers={"Authorization": f"Bearer {expired_token}"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_user_injection_with_wrong_signature(client: AsyncClient, registered_user: dict):
    forged_token = jwt.encode(
        {"sub": registered_user["id"]},
        "not-the-real-secret",
        algorithm=settings.JWT_ALGORITHM,
    )

    response = await client.get(
        "/auth/me",
        headers={"Authorization": f"Bearer {forged_token}"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_user_is_reloaded_on_every_request(
    client: AsyncClient, registered_user: dict, auth_headers: dict, db_session: AsyncSession
):
    """A token for a user that no longer exists is rejected."""
    assert (await client.get("/auth/me", headers=auth_headers)).status_code == 200

    await db_session.execute(delete(User).where(User.id == registered_user["id"]))
    await db_session.commit()

    response = await client.get("/auth/me", headers=auth_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user(client: AsyncClient):
    token = create_access_token("00000000-0000-0000-0000-000000000000")

    response = await client.get(
        "/auth/me",
        headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_bearer_prefix(client: AsyncClient, auth_token: str):
    response = await client.get("/auth/me", headers={"Authorization": auth_token})

    assert response.status_code == 401
