"""
Shared fixtures: an in-memory SQLite database per test, service-level
contexts, and an HTTP client bound to the app with the session overridden.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import crm_backend.models  # noqa: F401
from crm_backend.core.context import RequestContext
from crm_backend.core.permissions import PermissionSet
from crm_backend.core.security import get_password_hash
from crm_backend.database import get_session
from crm_backend.main import app
from crm_backend.repositories.user_repo import UserRepository, OrganizationMemberRepository


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def owner(session):
    """A registered user owning a fresh organization."""
    user, org, membership = await UserRepository(session).create_with_org(
        email="owner@acme.io",
        password_hash=get_password_hash("secret-password"),
        org_name="Acme",
        full_name="Olivia Owner"
    )
    return user


@pytest.fixture
def owner_ctx(owner):
    return RequestContext(
        user_id=owner.id,
        org_id=owner.current_org_id,
        role="owner",
        permissions=PermissionSet.full()
    )


@pytest.fixture
def make_member(session, owner):
    """Add a user to the owner's organization with the given grants and return their context."""

    async def _make(email: str, grants: dict) -> RequestContext:
        user = await UserRepository(session).create({
            "email": email,
            "password_hash": get_password_hash("secret-password"),
            "current_org_id": owner.current_org_id,
            "full_name": email.split("@")[0].title()
        })
        await OrganizationMemberRepository(session).create({
            "user_id": user.id,
            "org_id": owner.current_org_id,
            "role": "member",
            "permissions": grants
        })
        return RequestContext(
            user_id=user.id,
            org_id=owner.current_org_id,
            role="member",
            permissions=PermissionSet.from_grants(grants)
        )

    return _make


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def register_and_login(client: AsyncClient, email: str, org_name: str = "Acme") -> dict:
    response = await client.post("/api/auth/register", json={
        "email": email,
        "password": "secret-password",
        "org_name": org_name,
        "full_name": email.split("@")[0].title()
    })
    assert response.status_code == 201, response.text

    response = await client.post(
        "/api/auth/login",
        data={"username": email, "password": "secret-password"}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def auth_headers(client):
    return await register_and_login(client, "owner@acme.io")


@pytest.fixture
def member_headers(client, auth_headers):
    """Register a second user, invite them into the owner's organization and switch them into it."""

    async def _login(email: str, permissions: dict = None, role: str = "member") -> dict:
        headers = await register_and_login(client, email, org_name=f"{email} workspace")
        me = await client.get("/api/auth/me", headers=auth_headers)
        org_id = me.json()["org_id"]

        invite = {"email": email, "role": role}
        if permissions is not None:
            invite["permissions"] = permissions
        response = await client.post(f"/api/organizations/{org_id}/invite", json=invite, headers=auth_headers)
        assert response.status_code == 201, response.text

        response = await client.post(f"/api/organizations/switch/{org_id}", headers=headers)
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
