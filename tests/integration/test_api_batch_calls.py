"""Integration tests for batch calls API."""

import pytest
import pytest_asyncio
from httpx import AsyncClient


@pytest_asyncio.fixture
async def agent(client_a: AsyncClient, agent_payload) -> dict:
    response = await client_a.post("/api/v1/agents", json=agent_payload)
    return response.json()["data"]


async def _create_batch(client: AsyncClient, agent_id: str) -> dict:
    response = await client.post(
        "/api/v1/batch-calls", json={"name": "Renewals", "agent_id": agent_id}
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _add(client: AsyncClient, batch_id: str, *numbers: str) -> list:
    response = await client.post(
        f"/api/v1/batch-calls/{batch_id}/recipients",
        json={"recipients": [{"phone_number": n, "variables": {"name": n}} for n in numbers]},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestBatchCallsAPI:
    """Tests for batch call endpoints."""

    @pytest.mark.asyncio
    async def test_create(self, client_a: AsyncClient, agent):
        batch = await _create_batch(client_a, agent["id"])

        assert batch["status"] == "draft"
        assert batch["total_recipients"] == 0
        assert batch["user_id"] == "user-a"

    @pytest.mark.asyncio
    async def test_create_with_other_orgs_agent(self, client_b: AsyncClient, agent):
        response = await client_b.post(
            "/api/v1/batch-calls", json={"name": "Renewals", "agent_id": agent["id"]}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_create_with_unknown_phone(self, client_a: AsyncClient, agent):
        response = await client_a.post(
            "/api/v1/batch-calls",
            json={"name": "Renewals", "agent_id": agent["id"], "phone_number_id": "missing"},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_recipients_in_detail(self, client_a: AsyncClient, agent):
        batch = await _create_batch(client_a, agent["id"])
        await _add(client_a, batch["id"], "+15555550001", "+15555550002")

        detail = (await client_a.get(f"/api/v1/batch-calls/{batch['id']}")).json()["data"]

        assert detail["total_recipients"] == 2
        assert {r["phone_number"] for r in detail["recipients"]} == {"+15555550001", "+15555550002"}
        assert all(r["status"] == "pending" for r in detail["recipients"])

    @pytest.mark.asyncio
    async def test_status_rollup(self, client_a: AsyncClient, agent):
        batch = await _create_batch(client_a, agent["id"])
        first, second = await _add(client_a, batch["id"], "+15555550001", "+15555550002")
        base = f"/api/v1/batch-calls/{batch['id']}/recipients"

        calling = await client_a.patch(f"{base}/{first['id']}", json={"status": "calling"})
        assert calling.json()["data"]["called_at"] is not None
        running = (await client_a.get(f"/api/v1/batch-calls/{batch['id']}")).json()["data"]
        assert running["status"] == "running"
        assert running["started_at"] is not None

        await client_a.patch(
            f"{base}/{first['id']}",
            json={"status": "completed", "call_duration": 42, "call_cost": "0.21"},
        )
        await client_a.patch(f"{base}/{second['id']}", json={"status": "no_answer"})

        done = (await client_a.get(f"/api/v1/batch-calls/{batch['id']}")).json()["data"]
        assert done["completed_calls"] == 1
        assert done["failed_calls"] == 1
        assert done["status"] == "completed"
        assert done["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_recipient_updates_are_scoped(self, client_a: AsyncClient, client_b: AsyncClient, agent):
        batch = await _create_batch(client_a, agent["id"])
        (recipient,) = await _add(client_a, batch["id"], "+15555550001")

        foreign = await client_b.patch(
            f"/api/v1/batch-calls/{batch['id']}/recipients/{recipient['id']}",
            json={"status": "completed"},
        )
        missing = await client_a.patch(
            f"/api/v1/batch-calls/{batch['id']}/recipients/missing",
            json={"status": "completed"},
        )
        adding = await client_b.post(
            f"/api/v1/batch-calls/{batch['id']}/recipients",
            json={"recipients": [{"phone_number": "+15555550009"}]},
        )

        assert foreign.status_code == 404
        assert missing.status_code == 404
        assert adding.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, client_a: AsyncClient, client_b: AsyncClient, agent):
        batch = await _create_batch(client_a, agent["id"])
        await _add(client_a, batch["id"], "+15555550001")
        url = f"/api/v1/batch-calls/{batch['id']}"

        assert (await client_b.delete(url)).status_code == 204
        assert (await client_a.get(url)).status_code == 200
        assert (await client_a.delete(url)).status_code == 204
        assert (await client_a.get(url)).status_code == 404
        assert (await client_a.get("/api/v1/batch-calls")).json()["data"] == []
