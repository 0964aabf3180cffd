"""Integration tests for the prompt catalog API."""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from agentdesk_core.database.seed import DEFAULT_QUICK_ACTIONS, seed_quick_action_buttons


@pytest_asyncio.fixture
async def system_buttons(database):
    async with database.session() as session:
        return [b.id for b in await seed_quick_action_buttons(session)]


@pytest.fixture
def button_payload() -> dict:
    return {
        "name": "Refund Policy",
        "prompt": "Explain our refund policy in two sentences.",
        "category": "support",
    }


async def _create_button(client: AsyncClient, payload: dict) -> dict:
    response = await client.post("/api/v1/quick-action-buttons", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestSystemTemplates:
    """Template catalog for tenants and administrators."""

    @pytest.mark.asyncio
    async def test_admin_create_update_delete(self, admin_client: AsyncClient):
        created = await admin_client.post(
            "/api/v1/admin/system-templates",
            json={"name": "Escalation", "content": "Hand off to a human when asked.", "sort_order": 4},
        )
        assert created.status_code == 201
        template = created.json()["data"]
        url = f"/api/v1/admin/system-templates/{template['id']}"

        updated = await admin_client.patch(url, json={"icon": "Phone", "content": None})
        assert updated.json()["data"]["icon"] == "Phone"
        assert updated.json()["data"]["content"] == "Hand off to a human when asked."

        assert (await admin_client.delete(url)).status_code == 204
        assert (await admin_client.get("/api/v1/admin/system-templates")).json()["data"] == []

    @pytest.mark.asyncio
    async def test_tenants_see_active_templates_in_order(
        self, admin_client: AsyncClient, client_b: AsyncClient
    ):
        url = "/api/v1/admin/system-templates"
        await admin_client.post(url, json={"name": "Second", "content": "b", "sort_order": 2})
        await admin_client.post(url, json={"name": "First", "content": "a", "sort_order": 1})
        await admin_client.post(
            url, json={"name": "Retired", "content": "c", "sort_order": 0, "is_active": False}
        )

        tenant_view = (await client_b.get("/api/v1/system-templates")).json()["data"]
        admin_view = (await admin_client.get(url)).json()["data"]

        assert [t["name"] for t in tenant_view] == ["First", "Second"]
        assert [t["name"] for t in admin_view] == ["Retired", "First", "Second"]

    @pytest.mark.asyncio
    async def test_update_missing_template(self, admin_client: AsyncClient):
        response = await admin_client.patch(
            "/api/v1/admin/system-templates/missing", json={"name": "X"}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, client_a: AsyncClient):
        response = await client_a.post(
            "/api/v1/admin/system-templates", json={"name": "Mine", "content": "x"}
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTH_1004"


class TestQuickActionButtons:
    """Tenant quick action buttons next to the system set."""

    @pytest.mark.asyncio
    async def test_system_buttons_listed_first(
        self, client_a: AsyncClient, system_buttons, button_payload
    ):
        mine = await _create_button(client_a, {**button_payload, "sort_order": -1})

        data = (await client_a.get("/api/v1/quick-action-buttons")).json()["data"]

        assert len(data) == len(DEFAULT_QUICK_ACTIONS) + 1
        assert all(b["is_system"] for b in data[:-1])
        assert data[-1]["id"] == mine["id"]

    @pytest.mark.asyncio
    async def test_create_sets_owner(self, client_a: AsyncClient, button_payload):
        data = await _create_button(client_a, button_payload)

        assert data["organization_id"] == "org-a"
        assert data["created_by"] == "user-a"
        assert data["is_system"] is False
        assert data["icon"] == "Sparkles"

    @pytest.mark.asyncio
    async def test_other_org_buttons_hidden(
        self, client_a: AsyncClient, client_b: AsyncClient, button_payload
    ):
        await _create_button(client_a, button_payload)

        data = (await client_b.get("/api/v1/quick-action-buttons")).json()["data"]

        assert data == []

    @pytest.mark.asyncio
    async def test_update_and_delete_own_button(self, client_a: AsyncClient, button_payload):
        button = await _create_button(client_a, button_payload)
        url = f"/api/v1/quick-action-buttons/{button['id']}"

        updated = await client_a.patch(url, json={"category": None, "name": "Refunds"})
        assert updated.status_code == 200
        assert updated.json()["data"]["category"] is None
        assert updated.json()["data"]["name"] == "Refunds"

        assert (await client_a.delete(url)).status_code == 204
        assert (await client_a.get("/api/v1/quick-action-buttons")).json()["data"] == []

    @pytest.mark.asyncio
    async def test_system_button_not_editable_by_tenant(self, client_a: AsyncClient, system_buttons):
        url = f"/api/v1/quick-action-buttons/{system_buttons[0]}"

        assert (await client_a.patch(url, json={"name": "Hijacked"})).status_code == 404
        assert (await client_a.delete(url)).status_code == 204

        data = (await client_a.get("/api/v1/quick-action-buttons")).json()["data"]
        assert len(data) == len(DEFAULT_QUICK_ACTIONS)
        assert "Hijacked" not in {b["name"] for b in data}

    @pytest.mark.asyncio
    async def test_other_org_button_untouched(
        self, client_a: AsyncClient, client_b: AsyncClient, button_payload
    ):
        button = await _create_button(client_a, button_payload)
        url = f"/api/v1/quick-action-buttons/{button['id']}"

        assert (await client_b.patch(url, json={"name": "Mine"})).status_code == 404
        assert (await client_b.delete(url)).status_code == 204

        kept = (await client_a.get("/api/v1/quick-action-buttons")).json()["data"]
        assert [b["name"] for b in kept] == ["Refund Policy"]


class TestQuickActionButtonAdmin:
    """System quick action buttons."""

    @pytest.mark.asyncio
    async def test_admin_create_update_delete(
        self, admin_client: AsyncClient, client_b: AsyncClient, button_payload
    ):
        created = await admin_client.post("/api/v1/admin/quick-action-buttons", json=button_payload)
        assert created.status_code == 201
        button = created.json()["data"]
        assert button["is_system"] is True
        assert button["organization_id"] is None
        assert button["created_by"] == "admin-a"
        url = f"/api/v1/admin/quick-action-buttons/{button['id']}"

        visible = (await client_b.get("/api/v1/quick-action-buttons")).json()["data"]
        assert [b["id"] for b in visible] == [button["id"]]

        updated = await admin_client.patch(url, json={"is_active": False})
        assert updated.json()["data"]["is_active"] is False
        assert (await client_b.get("/api/v1/quick-action-buttons")).json()["data"] == []

        assert (await admin_client.delete(url)).status_code == 204
        assert (await admin_client.get("/api/v1/admin/quick-action-buttons")).json()["data"] == []

    @pytest.mark.asyncio
    async def test_admin_list_excludes_tenant_buttons(
        self, admin_client: AsyncClient, client_b: AsyncClient, system_buttons, button_payload
    ):
        await _create_button(client_b, button_payload)

        data = (await admin_client.get("/api/v1/admin/quick-action-buttons")).json()["data"]

        assert sorted(b["id"] for b in data) == sorted(system_buttons)

    @pytest.mark.asyncio
    async def test_tenant_button_not_reachable_from_admin(
        self, admin_client: AsyncClient, client_b: AsyncClient, button_payload
    ):
        button = await _create_button(client_b, button_payload)
        url = f"/api/v1/admin/quick-action-buttons/{button['id']}"

        assert (await admin_client.patch(url, json={"name": "Promoted"})).status_code == 404
        assert (await admin_client.delete(url)).status_code == 204

        kept = (await client_b.get("/api/v1/quick-action-buttons")).json()["data"]
        assert [b["name"] for b in kept] == ["Refund Policy"]

    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, client_a: AsyncClient):
        response = await client_a.get("/api/v1/admin/quick-action-buttons")

        assert response.status_code == 403
