"""Shared pytest fixtures for testing."""

import os
from typing import AsyncGenerator, Dict, Optional

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# Set test environment
os.environ["ENVIRONMENT"] = "development"
os.environ.setdefault("FIELD_ENCRYPTION_KEY", "0f" * 32)

from agentdesk_core.api.app import AppConfig, create_app  # noqa: E402
from agentdesk_core.database.base import DatabaseManager, close_database, init_database  # noqa: E402
from agentdesk_core.database.repositories import (  # noqa: E402
    AgentRepository,
    OrganizationRepository,
    UserRepository,
)

TEST_DATABASE_URL = "sqlite+aiosqlite://"

ORG_A = "org-a"
ORG_B = "org-b"
USER_A = "user-a"
USER_B = "user-b"
ADMIN_A = "admin-a"


def caller_headers(
    organization_id: str,
    user_id: Optional[str] = None,
    role: Optional[str] = None,
) -> Dict[str, str]:
    """Headers the upstream gateway sets for an authenticated caller."""
    headers = {"X-Organization-ID": organization_id}
    if user_id:
        headers["X-User-ID"] = user_id
    if role:
        headers["X-User-Role"] = role
    return headers


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseManager, None]:
    """Fresh in-memory database with the full schema."""
    db = init_database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await close_database()


@pytest_asyncio.fixture
async def db_session(database: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    """Session that commits when the test finishes cleanly."""
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def org_a(db_session: AsyncSession):
    return await OrganizationRepository(db_session).create(id=ORG_A, name="Org A")


@pytest_asyncio.fixture
async def org_b(db_session: AsyncSession):
    return await OrganizationRepository(db_session).create(id=ORG_B, name="Org B")


@pytest_asyncio.fixture
async def agent_x(db_session: AsyncSession, org_a):
    """Agent owned by organization A."""
    return await AgentRepository(db_session).create(
        organization_id=org_a.id,
        external_agent_id="ext-agent-x",
        name="Agent X",
    )


# =============================================================================
# API Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def tenants(database: DatabaseManager) -> Dict[str, str]:
    """Two committed organizations with one user each, plus an org A admin."""
    async with database.session() as session:
        orgs = OrganizationRepository(session)
        await orgs.create(id=ORG_A, name="Org A")
        await orgs.create(id=ORG_B, name="Org B")

        users = UserRepository(session)
        await users.create(id=USER_A, organization_id=ORG_A, email="a@example.com")
        await users.create(id=USER_B, organization_id=ORG_B, email="b@example.com")
        await users.create(
            id=ADMIN_A,
            organization_id=ORG_A,
            email="admin@example.com",
            is_admin=True,
        )
    return {"org_a": ORG_A, "org_b": ORG_B}


@pytest.fixture
def app(database: DatabaseManager) -> FastAPI:
    """Test application bound to the fixture database.

    ASGITransport does not run the lifespan, so the database fixture stands
    in for startup.
    """
    return create_app(AppConfig(database_url=TEST_DATABASE_URL, docs_enabled=False))


def _client(app: FastAPI, headers: Dict[str, str]) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=headers,
    )


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client without caller headers."""
    async with _client(app, {}) as ac:
        yield ac


@pytest_asyncio.fixture
async def client_a(app: FastAPI, tenants) -> AsyncGenerator[AsyncClient, None]:
    """Client acting as a regular user of organization A."""
    async with _client(app, caller_headers(ORG_A, USER_A)) as ac:
        yield ac


@pytest_asyncio.fixture
async def client_b(app: FastAPI, tenants) -> AsyncGenerator[AsyncClient, None]:
    """Client acting as a regular user of organization B."""
    async with _client(app, caller_headers(ORG_B, USER_B)) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(app: FastAPI, tenants) -> AsyncGenerator[AsyncClient, None]:
    """Client acting as the ``is_admin`` user of organization A."""
    async with _client(app, caller_headers(ORG_A, ADMIN_A)) as ac:
        yield ac


@pytest.fixture
def client_factory(app: FastAPI, tenants):
    """Build a client for arbitrary caller headers; use as an async context manager."""
    def make(organization_id: str, user_id: Optional[str] = None, role: Optional[str] = None):
        return _client(app, caller_headers(organization_id, user_id, role))
    return make


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def agent_payload() -> dict:
    """Sample agent create request."""
    return {
        "external_agent_id": "ext-agent-001",
        "name": "Support Agent",
        "description": "Answers support calls",
        "first_message": "Hello! How can I help you today?",
        "system_prompt": "You are a helpful support assistant.",
        "language": "en",
        "voice_settings": {"stability": 0.6},
        "llm_settings": {"model": "gpt-4o", "temperature": 0.3},
    }
