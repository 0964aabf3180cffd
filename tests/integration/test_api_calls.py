"""Integration tests for call log and analytics API."""

import pytest
from httpx import AsyncClient


@pytest.fixture
def call_event() -> dict:
    """Post-call event as reported by the voice provider."""
    return {
        "external_agent_id": "ext-agent-001",
        "conversation_id": "conv-001",
        "external_call_id": "call-001",
        "duration": 95,
        "transcript": [{"role": "agent", "message": "Hello!"}],
        "cost": "0.42",
    }


async def _agent(client: AsyncClient, agent_payload: dict) -> dict:
    response = await client.post("/api/v1/agents", json=agent_payload)
    return response.json()["data"]


class TestCallLogsAPI:
    """Tests for call history endpoints."""

    @pytest.mark.asyncio
    async def test_record_resolves_external_agent(self, client_a: AsyncClient, agent_payload, call_event):
        agent = await _agent(client_a, agent_payload)

        response = await client_a.post("/api/v1/call-logs", json=call_event)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["agent_id"] == agent["id"]
        assert data["duration"] == 95
        assert data["cost"] == pytest.approx(0.42)
        assert data["transcript"][0]["message"] == "Hello!"
        assert data["status"] == "completed"

    @pytest.mark.asyncio
    async def test_record_is_idempotent_on_provider_call_id(self, client_a: AsyncClient, call_event):
        first = (await client_a.post("/api/v1/call-logs", json=call_event)).json()["data"]
        second = (await client_a.post("/api/v1/call-logs", json=call_event)).json()["data"]

        assert first["id"] == second["id"]
        listing = await client_a.get("/api/v1/call-logs")
        assert listing.json()["pagination"]["total_items"] == 1

    @pytest.mark.asyncio
    async def test_list_filters_by_agent(self, client_a: AsyncClient, agent_payload, call_event):
        agent = await _agent(client_a, agent_payload)
        await client_a.post("/api/v1/call-logs", json=call_event)
        await client_a.post(
            "/api/v1/call-logs",
            json={"agent_id": "another-agent", "external_call_id": "call-002", "duration": 10},
        )

        response = await client_a.get("/api/v1/call-logs", params={"agent_id": agent["id"]})

        body = response.json()
        assert body["pagination"]["total_items"] == 1
        assert body["pagination"]["page_size"] == 50
        assert body["data"][0]["external_call_id"] == "call-001"

    @pytest.mark.asyncio
    async def test_call_logs_are_isolated(self, client_a: AsyncClient, client_b: AsyncClient, call_event):
        call = (await client_a.post("/api/v1/call-logs", json=call_event)).json()["data"]

        assert (await client_b.get(f"/api/v1/call-logs/{call['id']}")).status_code == 404
        assert (await client_b.get("/api/v1/call-logs")).json()["data"] == []
        assert (await client_a.get(f"/api/v1/call-logs/{call['id']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_call_logs_survive_agent_deletion(self, client_a: AsyncClient, agent_payload, call_event):
        agent = await _agent(client_a, agent_payload)
        call = (await client_a.post("/api/v1/call-logs", json=call_event)).json()["data"]

        await client_a.delete(f"/api/v1/agents/{agent['id']}")

        response = await client_a.get(f"/api/v1/call-logs/{call['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["agent_id"] == agent["id"]


class TestAnalyticsAPI:
    """Tests for the organization dashboard stats."""

    @pytest.mark.asyncio
    async def test_organization_stats(self, client_a: AsyncClient, client_b: AsyncClient,
                                      agent_payload, call_event):
        await _agent(client_a, agent_payload)
        await client_a.post("/api/v1/call-logs", json=call_event)
        await client_a.post(
            "/api/v1/call-logs",
            json={**call_event, "external_call_id": "call-002", "duration": 25, "cost": "0.08"},
        )

        stats = (await client_a.get("/api/v1/analytics/organization")).json()["data"]

        assert stats["total_calls"] == 2
        assert stats["total_minutes"] == 2
        assert stats["estimated_cost"] == pytest.approx(0.50)
        assert stats["active_agents"] == 1
        assert stats["last_sync"] is not None

        empty = (await client_b.get("/api/v1/analytics/organization")).json()["data"]
        assert empty["total_calls"] == 0
        assert empty["last_sync"] is None
