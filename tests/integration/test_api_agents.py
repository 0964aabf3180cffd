"""Integration tests for agents API."""

import pytest
from httpx import AsyncClient

from agentdesk_core.database.repositories import OrganizationRepository


async def _create_agent(client: AsyncClient, payload: dict) -> dict:
    response = await client.post("/api/v1/agents", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCallerContext:
    """Tests for caller identity headers."""

    @pytest.mark.asyncio
    async def test_missing_organization_header(self, client: AsyncClient, tenants):
        response = await client.get("/api/v1/agents")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_1001"

    @pytest.mark.asyncio
    async def test_unknown_organization(self, client: AsyncClient, tenants):
        response = await client.get(
            "/api/v1/agents", headers={"X-Organization-ID": "org-missing"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_role(self, client: AsyncClient, tenants):
        response = await client.get(
            "/api/v1/agents",
            headers={"X-Organization-ID": "org-a", "X-User-Role": "overlord"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "X-User-Role"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client_a: AsyncClient):
        response = await client_a.get("/api/v1/agents", headers={"X-Request-ID": "req-123"})

        assert response.headers["x-request-id"] == "req-123"


class TestAgentsAPI:
    """Tests for agent management endpoints."""

    @pytest.mark.asyncio
    async def test_create_agent(self, client_a: AsyncClient, agent_payload: dict):
        """Test creating an agent."""
        data = await _create_agent(client_a, agent_payload)

        assert data["name"] == "Support Agent"
        assert data["organization_id"] == "org-a"
        assert data["external_agent_id"] == "ext-agent-001"
        assert data["is_active"] is True
        assert data["voice_settings"]["stability"] == 0.6
        assert data["voice_settings"]["similarity_boost"] == 0.75
        assert data["llm_settings"]["model"] == "gpt-4o"
        assert data["tools"]["system_tools"]["end_call"]["enabled"] is True

    @pytest.mark.asyncio
    async def test_create_agent_validation(self, client_a: AsyncClient):
        """Test agent creation validation."""
        response = await client_a.post("/api/v1/agents", json={"description": "Missing name"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_agent_rejects_bad_settings(self, client_a: AsyncClient, agent_payload):
        agent_payload["voice_settings"] = {"stability": 3}

        response = await client_a.post("/api/v1/agents", json=agent_payload)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_agent_limit(self, client_a: AsyncClient, database, agent_payload):
        async with database.session() as session:
            await OrganizationRepository(session).update("org-a", max_agents=1)
        await _create_agent(client_a, agent_payload)

        response = await client_a.post("/api/v1/agents", json=agent_payload)

        assert response.status_code == 409
        assert response.json()["error"]["details"] == {"max_agents": 1}

    @pytest.mark.asyncio
    async def test_list_agents_with_pagination(self, client_a: AsyncClient, agent_payload):
        """Test listing agents with pagination."""
        for i in range(3):
            await _create_agent(client_a, {**agent_payload, "name": f"Agent {i}"})

        response = await client_a.get("/api/v1/agents", params={"page": 1, "page_size": 2})

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"]["total_items"] == 3
        assert body["pagination"]["has_next"] is True

    @pytest.mark.asyncio
    async def test_update_agent(self, client_a: AsyncClient, agent_payload):
        agent = await _create_agent(client_a, agent_payload)

        response = await client_a.patch(
            f"/api/v1/agents/{agent['id']}",
            json={"name": "Renamed", "llm_settings": {"temperature": 1.2}},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Renamed"
        assert data["llm_settings"]["temperature"] == 1.2
        assert data["llm_settings"]["model"] == "gpt-4o-mini"
        assert data["description"] == agent_payload["description"]

    @pytest.mark.asyncio
    async def test_update_agent_null_clears_text_fields(self, client_a: AsyncClient, agent_payload):
        agent = await _create_agent(client_a, agent_payload)

        response = await client_a.patch(
            f"/api/v1/agents/{agent['id']}",
            json={"description": None, "first_message": None, "name": None},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["description"] is None
        assert data["first_message"] is None
        assert data["name"] == agent_payload["name"]
        assert data["system_prompt"] == agent_payload["system_prompt"]

        fetched = (await client_a.get(f"/api/v1/agents/{agent['id']}")).json()["data"]
        assert fetched["description"] is None

    @pytest.mark.asyncio
    async def test_get_missing_agent(self, client_a: AsyncClient):
        response = await client_a.get("/api/v1/agents/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RES_3001"


class TestAgentIsolation:
    """Organizations cannot see or change each other's agents."""

    @pytest.mark.asyncio
    async def test_other_org_read_is_not_found(
        self, client_a: AsyncClient, client_b: AsyncClient, agent_payload
    ):
        agent = await _create_agent(client_a, agent_payload)

        response = await client_b.get(f"/api/v1/agents/{agent['id']}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_org_list_is_empty(
        self, client_a: AsyncClient, client_b: AsyncClient, agent_payload
    ):
        await _create_agent(client_a, agent_payload)

        response = await client_b.get("/api/v1/agents")

        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_other_org_update_is_not_found(
        self, client_a: AsyncClient, client_b: AsyncClient, agent_payload
    ):
        agent = await _create_agent(client_a, agent_payload)

        response = await client_b.patch(f"/api/v1/agents/{agent['id']}", json={"name": "Mine"})

        assert response.status_code == 404
        kept = await client_a.get(f"/api/v1/agents/{agent['id']}")
        assert kept.json()["data"]["name"] == "Support Agent"

    @pytest.mark.asyncio
    async def test_delete_scenario(
        self, client_a: AsyncClient, client_b: AsyncClient, agent_payload
    ):
        """B's delete is a silent no-op; A's delete removes; repeating is a no-op."""
        agent = await _create_agent(client_a, agent_payload)
        url = f"/api/v1/agents/{agent['id']}"

        assert (await client_b.delete(url)).status_code == 204
        assert (await client_a.get(url)).status_code == 200

        assert (await client_a.delete(url)).status_code == 204
        assert (await client_a.get(url)).status_code == 404

        assert (await client_a.delete(url)).status_code == 204

    @pytest.mark.asyncio
    async def test_delete_nonexistent(self, client_a: AsyncClient):
        response = await client_a.delete("/api/v1/agents/does-not-exist")

        assert response.status_code == 204
        assert response.content == b""

