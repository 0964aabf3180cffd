"""
Unit Tests for the Approval Workflow

Integrations and RAG configurations start PENDING_APPROVAL with a review
task; an administrator's decision sets them ACTIVE or REJECTED.
"""

import pytest

from agentdesk_core.approvals import ApprovalError, ApprovalService
from agentdesk_core.database.models import (
    AdminTaskStatus,
    AdminTaskType,
    ApprovalStatus,
)
from agentdesk_core.database.repositories import (
    IntegrationRepository,
    RagConfigurationRepository,
)


@pytest.fixture
def service(db_session) -> ApprovalService:
    return ApprovalService(db_session)


class TestIntegrationReview:
    """Tests for integration submissions."""

    @pytest.mark.asyncio
    async def test_submit_creates_pending_task(self, service, org_a):
        integration = await service.submit_integration(org_a.id, "openai", "sk-1", requested_by="u1")

        assert integration.status == ApprovalStatus.PENDING_APPROVAL.value
        tasks = await service.list_tasks(AdminTaskStatus.PENDING)
        assert len(tasks) == 1
        assert tasks[0].type == AdminTaskType.INTEGRATION.value
        assert tasks[0].related_entity_id == integration.id
        assert tasks[0].organization_id == org_a.id
        assert tasks[0].requested_by == "u1"
        assert tasks[0].metadata_json == {"provider": "openai"}

    @pytest.mark.asyncio
    async def test_approve_activates_integration(self, service, db_session, org_a):
        integration = await service.submit_integration(org_a.id, "openai", "sk-1")
        task = (await service.list_tasks())[0]

        decided = await service.approve_task(task.id, "admin-1")

        assert decided.status == AdminTaskStatus.APPROVED.value
        assert decided.approved_by == "admin-1"
        assert decided.completed_at is not None
        refreshed = await IntegrationRepository(db_session).get(integration.id, org_a.id)
        assert refreshed.status == ApprovalStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_resubmitting_same_key_raises_no_new_task(self, service, org_a):
        await service.submit_integration(org_a.id, "openai", "sk-1")
        await service.approve_task((await service.list_tasks())[0].id, "admin-1")

        integration = await service.submit_integration(org_a.id, "openai", "sk-1")

        assert integration.status == ApprovalStatus.ACTIVE.value
        assert await service.count_tasks(AdminTaskStatus.PENDING) == 0

    @pytest.mark.asyncio
    async def test_changed_key_needs_new_review(self, service, org_a):
        await service.submit_integration(org_a.id, "openai", "sk-1")
        await service.approve_task((await service.list_tasks())[0].id, "admin-1")

        integration = await service.submit_integration(org_a.id, "openai", "sk-2")

        assert integration.status == ApprovalStatus.PENDING_APPROVAL.value
        assert await service.count_tasks(AdminTaskStatus.PENDING) == 1
        assert await service.count_tasks() == 2

    @pytest.mark.asyncio
    async def test_pending_task_is_reused(self, service, org_a):
        await service.submit_integration(org_a.id, "openai", "sk-1")
        await service.submit_integration(org_a.id, "openai", "sk-2")

        assert await service.count_tasks() == 1


class TestRagConfigurationReview:
    """Tests for RAG configuration submissions and re-review."""

    @pytest.mark.asyncio
    async def test_submit_sets_pending_and_first_saved(self, service, org_a):
        config = await service.submit_rag_configuration(
            org_a.id,
            name="Docs",
            webhook_url="https://rag.example.com/query",
            approval_status=ApprovalStatus.ACTIVE.value,
        )

        assert config.approval_status == ApprovalStatus.PENDING_APPROVAL.value
        assert config.first_saved_at is not None
        tasks = await service.list_tasks()
        assert tasks[0].related_entity_type == AdminTaskType.RAG_CONFIGURATION.value

    @pytest.mark.asyncio
    async def test_reject_records_reason(self, service, db_session, org_a):
        config = await service.submit_rag_configuration(org_a.id, name="Docs")
        task = (await service.list_tasks())[0]

        decided = await service.reject_task(task.id, "admin-1", reason="Webhook unreachable")

        assert decided.status == AdminTaskStatus.REJECTED.value
        assert decided.rejected_by == "admin-1"
        assert decided.metadata_json["rejection_reason"] == "Webhook unreachable"
        refreshed = await RagConfigurationRepository(db_session).get(config.id, org_a.id)
        assert refreshed.approval_status == ApprovalStatus.REJECTED.value
        assert refreshed.approved_by is None

    @pytest.mark.asyncio
    async def test_approve_stamps_approver(self, service, db_session, org_a):
        config = await service.submit_rag_configuration(org_a.id, name="Docs")
        await service.approve_task((await service.list_tasks())[0].id, "admin-1")

        refreshed = await RagConfigurationRepository(db_session).get(config.id, org_a.id)

        assert refreshed.approval_status == ApprovalStatus.ACTIVE.value
        assert refreshed.approved_by == "admin-1"
        assert refreshed.approved_at is not None

    @pytest.mark.asyncio
    async def test_editing_reviewed_field_returns_to_pending(self, service, org_a):
        config = await service.submit_rag_configuration(
            org_a.id, name="Docs", webhook_url="https://old.example.com"
        )
        await service.approve_task((await service.list_tasks())[0].id, "admin-1")

        updated = await service.update_rag_configuration(
            config.id, org_a.id, webhook_url="https://new.example.com"
        )

        assert updated.approval_status == ApprovalStatus.PENDING_APPROVAL.value
        assert updated.approved_by is None
        assert await service.count_tasks(AdminTaskStatus.PENDING) == 1

    @pytest.mark.asyncio
    async def test_editing_name_keeps_approval(self, service, org_a):
        config = await service.submit_rag_configuration(org_a.id, name="Docs")
        await service.approve_task((await service.list_tasks())[0].id, "admin-1")

        updated = await service.update_rag_configuration(config.id, org_a.id, name="Manuals")

        assert updated.name == "Manuals"
        assert updated.approval_status == ApprovalStatus.ACTIVE.value
        assert await service.count_tasks(AdminTaskStatus.PENDING) == 0

    @pytest.mark.asyncio
    async def test_update_from_other_org_is_noop(self, service, org_a, org_b):
        config = await service.submit_rag_configuration(org_a.id, name="Docs")

        assert await service.update_rag_configuration(config.id, org_b.id, name="Stolen") is None


class TestDecisions:
    """Tests for decision state rules."""

    @pytest.mark.asyncio
    async def test_missing_task_returns_none(self, service):
        assert await service.approve_task("missing", "admin-1") is None
        assert await service.reject_task("missing", "admin-1") is None

    @pytest.mark.asyncio
    async def test_decided_task_cannot_be_decided_again(self, service, org_a):
        await service.submit_integration(org_a.id, "openai", "sk-1")
        task = (await service.list_tasks())[0]
        await service.approve_task(task.id, "admin-1")

        with pytest.raises(ApprovalError) as exc_info:
            await service.reject_task(task.id, "admin-2")

        assert exc_info.value.task_id == task.id
        assert exc_info.value.current_status == AdminTaskStatus.APPROVED.value

    @pytest.mark.asyncio
    async def test_decision_is_scoped_to_task_organization(self, service, db_session, org_a, org_b):
        """A task only ever changes the entity of its own organization."""
        integration = await service.submit_integration(org_a.id, "openai", "sk-1")
        task = (await service.list_tasks())[0]
        foreign = await service.tasks.create(
            type=AdminTaskType.INTEGRATION.value,
            title="Forged",
            related_entity_id=integration.id,
            related_entity_type=AdminTaskType.INTEGRATION.value,
            organization_id=org_b.id,
        )

        await service.reject_task(foreign.id, "admin-1")

        unchanged = await IntegrationRepository(db_session).get(integration.id, org_a.id)
        assert unchanged.status == ApprovalStatus.PENDING_APPROVAL.value
        assert (await service.tasks.get_by_id(task.id)).status == AdminTaskStatus.PENDING.value
