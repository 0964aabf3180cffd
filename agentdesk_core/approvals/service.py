"""
Approval Workflow
=================

Integrations and RAG configurations start out ``PENDING_APPROVAL`` when they
are first saved, and an ``AdminTask`` is raised for an administrator to
review. Approving the task sets the entity ``ACTIVE``; rejecting it sets the
entity ``REJECTED``. The status is only stored here: nothing times out,
retries or reconciles it.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models import (
    AdminTask,
    AdminTaskStatus,
    AdminTaskType,
    ApprovalStatus,
    Integration,
    RagConfiguration,
)
from ..database.repositories import (
    AdminTaskRepository,
    IntegrationRepository,
    RagConfigurationRepository,
)

logger = structlog.get_logger(__name__)

# Changing any of these on a reviewed RAG configuration sends it back for review
RAG_REVIEWED_FIELDS = ("webhook_url", "configuration", "system_prompt")


# =============================================================================
# Exceptions
# =============================================================================


class ApprovalError(Exception):
    """Raised when a review task cannot move to the requested state."""

    def __init__(self, message: str, task_id: str, current_status: str):
        super().__init__(message)
        self.task_id = task_id
        self.current_status = current_status


# =============================================================================
# Service
# =============================================================================


class ApprovalService:
    """Creates review tasks and applies administrator decisions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tasks = AdminTaskRepository(session)
        self.integrations = IntegrationRepository(session)
        self.rag_configurations = RagConfigurationRepository(session)

    # -------------------------------------------------------------------------
    # Submissions
    # -------------------------------------------------------------------------

    async def submit_integration(
        self,
        organization_id: str,
        provider: str,
        api_key: str,
        requested_by: Optional[str] = None,
    ) -> Integration:
        """Save an integration key, raising a review task when it needs one."""
        integration, needs_review = await self.integrations.upsert(
            organization_id, provider, api_key
        )
        if needs_review:
            await self.request_review(
                task_type=AdminTaskType.INTEGRATION,
                entity_id=integration.id,
                organization_id=organization_id,
                title=f"Review {provider} integration",
                requested_by=requested_by,
                metadata={"provider": provider},
            )
        return integration

    async def submit_rag_configuration(
        self,
        organization_id: str,
        requested_by: Optional[str] = None,
        **values,
    ) -> RagConfiguration:
        """Create a RAG configuration in PENDING_APPROVAL with a review task."""
        values.pop("approval_status", None)
        config = await self.rag_configurations.create(
            organization_id=organization_id,
            approval_status=ApprovalStatus.PENDING_APPROVAL.value,
            first_saved_at=datetime.utcnow(),
            **values,
        )
        await self.request_review(
            task_type=AdminTaskType.RAG_CONFIGURATION,
            entity_id=config.id,
            organization_id=organization_id,
            title=f"Review RAG configuration '{config.name}'",
            description=config.description,
            requested_by=requested_by,
            metadata={"webhook_url": config.webhook_url},
        )
        return config

    async def update_rag_configuration(
        self,
        id: str,
        organization_id: str,
        requested_by: Optional[str] = None,
        **values,
    ) -> Optional[RagConfiguration]:
        """
        Update a RAG configuration owned by the organization.

        Editing a reviewed field of an approved or rejected configuration
        returns it to PENDING_APPROVAL and raises a fresh review task.
        """
        for key in ("approval_status", "approved_by", "approved_at", "first_saved_at"):
            values.pop(key, None)

        current = await self.rag_configurations.get(id, organization_id)
        if current is None:
            return await self.rag_configurations.update(id, organization_id, **values)

        changed = any(
            key in values and values[key] != getattr(current, key)
            for key in RAG_REVIEWED_FIELDS
        )
        needs_review = changed and current.approval_status != ApprovalStatus.PENDING_APPROVAL.value
        if needs_review:
            values.update(
                approval_status=ApprovalStatus.PENDING_APPROVAL.value,
                approved_by=None,
                approved_at=None,
            )

        config = await self.rag_configurations.update(id, organization_id, **values)
        if config is not None and needs_review:
            await self.request_review(
                task_type=AdminTaskType.RAG_CONFIGURATION,
                entity_id=config.id,
                organization_id=organization_id,
                title=f"Review RAG configuration '{config.name}'",
                description=config.description,
                requested_by=requested_by,
                metadata={"webhook_url": config.webhook_url},
            )
        return config

    async def request_review(
        self,
        task_type: AdminTaskType,
        entity_id: str,
        organization_id: str,
        title: str,
        description: Optional[str] = None,
        requested_by: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AdminTask:
        """Open a review task, reusing one that is still pending for the entity."""
        for task in await self.tasks.list_for_entity(task_type.value, entity_id):
            if task.status == AdminTaskStatus.PENDING.value:
                logger.info(
                    "review_already_pending",
                    task_id=task.id,
                    entity_type=task_type.value,
                    entity_id=entity_id,
                )
                return task

        task = await self.tasks.create(
            type=task_type.value,
            title=title,
            description=description,
            related_entity_id=entity_id,
            related_entity_type=task_type.value,
            organization_id=organization_id,
            requested_by=requested_by,
            metadata_json=metadata,
        )
        logger.info(
            "review_requested",
            task_id=task.id,
            entity_type=task_type.value,
            entity_id=entity_id,
            organization_id=organization_id,
        )
        return task

    # -------------------------------------------------------------------------
    # Decisions
    # -------------------------------------------------------------------------

    async def list_tasks(
        self,
        status: Optional[AdminTaskStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[AdminTask]:
        return await self.tasks.list_by_status(
            status.value if status else None,
            skip=skip,
            limit=limit,
        )

    async def count_tasks(self, status: Optional[AdminTaskStatus] = None) -> int:
        return await self.tasks.count_by_status(status.value if status else None)

    async def approve_task(self, task_id: str, admin_user_id: str) -> Optional[AdminTask]:
        """Approve a pending task and activate the entity under review."""
        task = await self._pending_task(task_id)
        if task is None:
            return None

        now = datetime.utcnow()
        await self._set_entity_status(task, ApprovalStatus.ACTIVE, admin_user_id, now)
        task = await self.tasks.update(
            task.id,
            status=AdminTaskStatus.APPROVED.value,
            approved_by=admin_user_id,
            completed_at=now,
        )
        logger.info("review_approved", task_id=task_id, admin_user_id=admin_user_id)
        return task

    async def reject_task(
        self,
        task_id: str,
        admin_user_id: str,
        reason: Optional[str] = None,
    ) -> Optional[AdminTask]:
        """Reject a pending task and mark the entity under review rejected."""
        task = await self._pending_task(task_id)
        if task is None:
            return None

        now = datetime.utcnow()
        await self._set_entity_status(task, ApprovalStatus.REJECTED, admin_user_id, now)

        metadata = dict(task.metadata_json or {})
        if reason:
            metadata["rejection_reason"] = reason
        task = await self.tasks.update(
            task.id,
            status=AdminTaskStatus.REJECTED.value,
            rejected_by=admin_user_id,
            completed_at=now,
            metadata_json=metadata,
        )
        logger.info("review_rejected", task_id=task_id, admin_user_id=admin_user_id)
        return task

    async def _pending_task(self, task_id: str) -> Optional[AdminTask]:
        task = await self.tasks.get_by_id(task_id)
        if task is None:
            return None
        if task.status != AdminTaskStatus.PENDING.value:
            raise ApprovalError(
                f"Task {task_id} is already {task.status}",
                task_id=task_id,
                current_status=task.status,
            )
        return task

    async def _set_entity_status(
        self,
        task: AdminTask,
        status: ApprovalStatus,
        admin_user_id: str,
        decided_at: datetime,
    ) -> None:
        # The entity is addressed through the task's organization, never globally
        if task.related_entity_type == AdminTaskType.INTEGRATION.value:
            entity = await self.integrations.update(
                task.related_entity_id,
                task.organization_id,
                status=status.value,
            )
        elif task.related_entity_type == AdminTaskType.RAG_CONFIGURATION.value:
            values: Dict[str, Any] = {"approval_status": status.value}
            if status == ApprovalStatus.ACTIVE:
                values.update(approved_by=admin_user_id, approved_at=decided_at)
            entity = await self.rag_configurations.update(
                task.related_entity_id,
                task.organization_id,
                **values,
            )
        else:
            logger.warning(
                "review_entity_type_unknown",
                task_id=task.id,
                entity_type=task.related_entity_type,
            )
            return

        if entity is None:
            logger.warning(
                "review_entity_missing",
                task_id=task.id,
                entity_type=task.related_entity_type,
                entity_id=task.related_entity_id,
            )
