"""Tests for Authentication."""
import pytest
from httpx import AsyncClient

from advisor_desk.core.deps import COOKIE_NAME
from advisor_desk.services import auth_service

from conftest import CSRF_HEADERS, TEST_PASSWORD


@pytest.mark.asyncio
async def test_protected_endpoint_requires_session(client: AsyncClient):
    response = await client.get("/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_meetings_requires_session(client: AsyncClient):
    response = await client.get("/meetings")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_sets_session_cookie(client: AsyncClient, manager_user, test_org):
    response = await client.post(
        "/auth/login",
        json={"username": manager_user.username, "password": TEST_PASSWORD},
        headers=CSRF_HEADERS,
    )

    assert response.status_code == 200
    assert COOKIE_NAME in response.cookies
    data = response.json()
    assert data["org_id"] == str(test_org.id)
    assert data["role"] == "manager"


@pytest.mark.asyncio
async def test_login_rejects_wrong_password(client: AsyncClient, manager_user):
    response = await client.post(
        "/auth/login",
        json={"username": manager_user.username, "password": "not-the-password"},
        headers=CSRF_HEADERS,
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_refuses_disabled_account(client: AsyncClient, db, viewer_user):
    viewer_user.is_active = False
    db.flush()

    response = await client.post(
        "/auth/login",
        json={"username": viewer_user.username, "password": TEST_PASSWORD},
        headers=CSRF_HEADERS,
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_requires_csrf_header(client: AsyncClient, manager_user):
    response = await client.post(
        "/auth/login",
        json={"username": manager_user.username, "password": TEST_PASSWORD},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_me_lists_role_permissions(viewer_client: AsyncClient, viewer_user):
    response = await viewer_client.get("/auth/me")

    assert response.status_code == 200
    data = response.json()
    assert data["username"] == viewer_user.username
    assert "view_meetings" in data["permissions"]
    assert "edit_meetings" not in data["permissions"]
    assert "view_activity" not in data["permissions"]


@pytest.mark.asyncio
async def test_revoked_sessions_are_rejected(manager_client: AsyncClient, db, manager_user):
    auth_service.revoke_sessions(db, manager_user)

    response = await manager_client.get("/auth/me")
    assert response.status_code == 401
