"""
Unit Tests for Organization-Scoped Mutations

Deletes and updates only touch rows owned by the caller's organization.
A mutation that matches nothing succeeds silently and leaves a
``scoped_mutation_noop`` warning behind.
"""

import pytest
from structlog.testing import capture_logs

from agentdesk_core.database.models import CallLog, PhoneNumber
from agentdesk_core.database.repositories import (
    AgentRepository,
    CallLogRepository,
    PhoneNumberRepository,
)


# =============================================================================
# Delete
# =============================================================================


class TestScopedDelete:
    """Tests for ScopedRepository.delete."""

    @pytest.mark.asyncio
    async def test_delete_by_owner_removes_entity(self, db_session, org_a, agent_x):
        repo = AgentRepository(db_session)

        affected = await repo.delete(agent_x.id, org_a.id)

        assert affected == 1
        assert await repo.exists(agent_x.id, org_a.id) is False

    @pytest.mark.asyncio
    async def test_delete_by_other_org_keeps_entity(self, db_session, org_a, org_b, agent_x):
        repo = AgentRepository(db_session)

        affected = await repo.delete(agent_x.id, org_b.id)

        assert affected == 0
        assert await repo.exists(agent_x.id, org_a.id) is True

    @pytest.mark.asyncio
    async def test_delete_nonexistent_succeeds(self, db_session, org_a):
        repo = AgentRepository(db_session)

        affected = await repo.delete("does-not-exist", org_a.id)

        assert affected == 0

    @pytest.mark.asyncio
    async def test_delete_twice_is_idempotent(self, db_session, org_a, agent_x):
        repo = AgentRepository(db_session)

        first = await repo.delete(agent_x.id, org_a.id)
        second = await repo.delete(agent_x.id, org_a.id)

        assert (first, second) == (1, 0)
        assert await repo.exists(agent_x.id, org_a.id) is False

    @pytest.mark.asyncio
    async def test_two_org_scenario(self, db_session, org_a, org_b, agent_x):
        """Org B cannot delete A's agent; A can, and repeating it is a no-op."""
        repo = AgentRepository(db_session)

        await repo.delete(agent_x.id, org_b.id)
        assert await repo.get(agent_x.id, org_a.id) is not None

        await repo.delete(agent_x.id, org_a.id)
        assert await repo.get(agent_x.id, org_a.id) is None

        assert await repo.delete(agent_x.id, org_a.id) == 0
        assert await repo.get(agent_x.id, org_a.id) is None

    @pytest.mark.asyncio
    async def test_not_found_and_not_owned_look_the_same(self, db_session, org_b, agent_x):
        repo = AgentRepository(db_session)

        not_owned = await repo.delete(agent_x.id, org_b.id)
        not_found = await repo.delete("missing", org_b.id)

        assert not_owned == not_found == 0

    @pytest.mark.asyncio
    async def test_noop_delete_logs_warning(self, db_session, org_b, agent_x):
        repo = AgentRepository(db_session)

        with capture_logs() as logs:
            await repo.delete(agent_x.id, org_b.id)

        noop = [entry for entry in logs if entry["event"] == "scoped_mutation_noop"]
        assert len(noop) == 1
        assert noop[0]["log_level"] == "warning"
        assert noop[0]["operation"] == "delete"
        assert noop[0]["entity"] == "agents"
        assert noop[0]["entity_id"] == agent_x.id
        assert noop[0]["organization_id"] == org_b.id

    @pytest.mark.asyncio
    async def test_successful_delete_does_not_log_noop(self, db_session, org_a, agent_x):
        repo = AgentRepository(db_session)

        with capture_logs() as logs:
            await repo.delete(agent_x.id, org_a.id)

        assert [entry["event"] for entry in logs] == ["entity_deleted"]


# =============================================================================
# Update
# =============================================================================


class TestScopedUpdate:
    """Tests for ScopedRepository.update."""

    @pytest.mark.asyncio
    async def test_update_by_owner(self, db_session, org_a, agent_x):
        repo = AgentRepository(db_session)

        updated = await repo.update(agent_x.id, org_a.id, name="Renamed")

        assert updated is not None
        assert updated.name == "Renamed"

    @pytest.mark.asyncio
    async def test_update_by_other_org_is_noop(self, db_session, org_a, org_b, agent_x):
        repo = AgentRepository(db_session)

        with capture_logs() as logs:
            updated = await repo.update(agent_x.id, org_b.id, name="Hijacked")

        assert updated is None
        assert (await repo.get(agent_x.id, org_a.id)).name == "Agent X"
        assert logs[0]["event"] == "scoped_mutation_noop"
        assert logs[0]["operation"] == "update"

    @pytest.mark.asyncio
    async def test_update_cannot_move_entity_to_other_org(self, db_session, org_a, org_b, agent_x):
        repo = AgentRepository(db_session)

        await repo.update(agent_x.id, org_a.id, organization_id=org_b.id, id="new-id")

        assert await repo.exists(agent_x.id, org_a.id) is True
        assert await repo.exists(agent_x.id, org_b.id) is False

    @pytest.mark.asyncio
    async def test_update_without_values_returns_current(self, db_session, org_a, agent_x):
        repo = AgentRepository(db_session)

        current = await repo.update(agent_x.id, org_a.id)

        assert current is not None
        assert current.id == agent_x.id


# =============================================================================
# Agent deletion leaves history in place
# =============================================================================


class TestAgentDeletionKeepsReferences:
    """Deleting an agent does not cascade into calls or phone numbers."""

    @pytest.mark.asyncio
    async def test_call_logs_and_phone_numbers_survive(self, db_session, org_a, agent_x):
        call = await CallLogRepository(db_session).record(
            org_a.id,
            agent_id=agent_x.id,
            duration=90,
        )
        phone = await PhoneNumberRepository(db_session).create(
            organization_id=org_a.id,
            label="Main line",
            phone_number="+15555550100",
            provider="twilio",
            twilio_account_sid="AC123",
            agent_id=agent_x.id,
        )

        await AgentRepository(db_session).delete(agent_x.id, org_a.id)

        kept_call = await CallLogRepository(db_session).get(call.id, org_a.id)
        kept_phone = await PhoneNumberRepository(db_session).get(phone.id, org_a.id)
        assert isinstance(kept_call, CallLog)
        assert kept_call.agent_id == agent_x.id
        assert isinstance(kept_phone, PhoneNumber)
        assert kept_phone.agent_id == agent_x.id
