"""Integration tests for phone numbers API."""

import pytest
from httpx import AsyncClient


@pytest.fixture
def twilio_number() -> dict:
    return {
        "label": "Support line",
        "phone_number": "+15555550100",
        "provider": "twilio",
        "twilio_account_sid": "AC0123456789",
        "twilio_auth_token": "twilio-secret-token",
    }


async def _create(client: AsyncClient, payload: dict) -> dict:
    response = await client.post("/api/v1/phone-numbers", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestPhoneNumbersAPI:
    """Tests for phone number endpoints."""

    @pytest.mark.asyncio
    async def test_create_masks_secret(self, client_a: AsyncClient, twilio_number):
        data = await _create(client_a, twilio_number)

        assert data["provider"] == "twilio"
        assert data["status"] == "pending"
        assert data["twilio_auth_token"].endswith("oken")
        assert "twilio-secret" not in data["twilio_auth_token"]

    @pytest.mark.asyncio
    async def test_provider_fields_required(self, client_a: AsyncClient):
        response = await client_a.post(
            "/api/v1/phone-numbers",
            json={"label": "SIP", "phone_number": "+15555550101", "provider": "sip_trunk"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update(self, client_a: AsyncClient, twilio_number):
        phone = await _create(client_a, twilio_number)

        response = await client_a.patch(
            f"/api/v1/phone-numbers/{phone['id']}",
            json={"label": "Sales line", "status": "active", "metadata": {"region": "us"}},
        )

        data = response.json()["data"]
        assert data["label"] == "Sales line"
        assert data["status"] == "active"
        assert data["metadata"] == {"region": "us"}

    @pytest.mark.asyncio
    async def test_update_null_clears_optional_fields(self, client_a: AsyncClient, twilio_number):
        phone = await _create(client_a, {**twilio_number, "external_phone_id": "ext-phone-1"})
        url = f"/api/v1/phone-numbers/{phone['id']}"
        await client_a.patch(url, json={"metadata": {"region": "us"}})

        response = await client_a.patch(
            url,
            json={"external_phone_id": None, "metadata": None, "label": None, "status": None},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["external_phone_id"] is None
        assert data["metadata"] == {}
        assert data["label"] == "Support line"
        assert data["status"] == "pending"

    @pytest.mark.asyncio
    async def test_assign_and_clear_agent(self, client_a: AsyncClient, twilio_number, agent_payload):
        phone = await _create(client_a, twilio_number)
        agent = (await client_a.post("/api/v1/agents", json=agent_payload)).json()["data"]
        url = f"/api/v1/phone-numbers/{phone['id']}/assign-agent"

        assigned = (await client_a.patch(url, json={"agent_id": agent["id"]})).json()["data"]
        assert assigned["agent_id"] == agent["id"]
        assert assigned["external_agent_id"] == agent["external_agent_id"]

        cleared = (await client_a.patch(url, json={"agent_id": None})).json()["data"]
        assert cleared["agent_id"] is None

    @pytest.mark.asyncio
    async def test_cannot_assign_other_orgs_agent(
        self, client_a: AsyncClient, client_b: AsyncClient, twilio_number, agent_payload
    ):
        phone = await _create(client_b, twilio_number)
        agent = (await client_a.post("/api/v1/agents", json=agent_payload)).json()["data"]

        response = await client_b.patch(
            f"/api/v1/phone-numbers/{phone['id']}/assign-agent",
            json={"agent_id": agent["id"]},
        )

        assert response.status_code == 404
        kept = (await client_b.get(f"/api/v1/phone-numbers/{phone['id']}")).json()["data"]
        assert kept["agent_id"] is None

    @pytest.mark.asyncio
    async def test_create_with_other_orgs_agent(
        self, client_a: AsyncClient, client_b: AsyncClient, twilio_number, agent_payload
    ):
        agent = (await client_a.post("/api/v1/agents", json=agent_payload)).json()["data"]

        response = await client_b.post(
            "/api/v1/phone-numbers", json={**twilio_number, "agent_id": agent["id"]}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_is_scoped(self, client_a: AsyncClient, client_b: AsyncClient, twilio_number):
        phone = await _create(client_a, twilio_number)
        url = f"/api/v1/phone-numbers/{phone['id']}"

        assert (await client_b.delete(url)).status_code == 204
        assert (await client_a.get(url)).status_code == 200
        assert (await client_a.delete(url)).status_code == 204
        assert (await client_a.get(url)).status_code == 404
