"""
Database Repositories

Repository pattern implementation for data access.

Tenant-owned entities go through ``ScopedRepository``: every read, update and
delete filters on ``organization_id`` next to the primary key, in a single
statement. A mutation that matches nothing (missing row, or a row owned by a
different organization) is a successful no-op, so callers cannot tell the two
cases apart.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import and_, delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

import structlog

from .base import Base
from .models import (
    FAILED_RECIPIENT_STATUSES,
    AdminTask,
    Agent,
    ApprovalStatus,
    ApprovalWebhook,
    BatchCall,
    BatchCallRecipient,
    BatchCallStatus,
    BillingPackage,
    CallLog,
    Integration,
    Organization,
    Payment,
    PaymentStatus,
    PhoneNumber,
    QuickActionButton,
    RagConfiguration,
    RecipientStatus,
    SystemTemplate,
    User,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# Generic Type Variable
# =============================================================================


ModelType = TypeVar("ModelType", bound=Base)

# Columns a caller may never rewrite through an update
_PROTECTED_COLUMNS = frozenset({"id", "organization_id", "created_at", "updated_at"})


def _seconds_to_minutes(seconds: Optional[int]) -> int:
    """Whole minutes, rounding half up."""
    if not seconds:
        return 0
    return int((seconds + 30) // 60)


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


# =============================================================================
# Base Repositories
# =============================================================================


class BaseRepository(Generic[ModelType]):
    """Common plumbing shared by every repository."""

    model: Type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def entity_name(self) -> str:
        return self.model.__tablename__

    async def create(self, **kwargs) -> ModelType:
        """Create a new entity."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    def _log_noop(
        self,
        operation: str,
        id: str,
        organization_id: str,
        entity: Optional[str] = None,
    ) -> None:
        logger.warning(
            "scoped_mutation_noop",
            operation=operation,
            entity=entity or self.entity_name,
            entity_id=id,
            organization_id=organization_id,
        )

    def _writable(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Keep only real, non-protected columns."""
        columns = self.model.__table__.columns.keys()
        return {
            key: value
            for key, value in values.items()
            if key in columns and key not in _PROTECTED_COLUMNS
        }

    async def _fetch_one(self, *criteria: ColumnElement) -> Optional[ModelType]:
        result = await self.session.execute(
            select(self.model)
            .where(and_(*criteria))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _update_where(self, criteria: Sequence[ColumnElement], values: Dict[str, Any]) -> int:
        """Run one UPDATE and return the affected row count."""
        values = self._writable(values)
        if not values:
            return 0
        result = await self.session.execute(
            update(self.model)
            .where(and_(*criteria))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def _delete_where(self, criteria: Sequence[ColumnElement]) -> int:
        """Run one DELETE and return the affected row count."""
        result = await self.session.execute(
            delete(self.model)
            .where(and_(*criteria))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class GlobalRepository(BaseRepository[ModelType]):
    """Repository for tables that no tenant owns, reached by administrators."""

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """Get entity by ID."""
        return await self._fetch_one(self.model.id == id)

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ModelType]:
        """Get all entities with pagination."""
        result = await self.session.execute(
            select(self.model)
            .order_by(desc(self.model.created_at))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count all entities."""
        result = await self.session.execute(
            select(func.count()).select_from(self.model)
        )
        return result.scalar_one()

    async def update(self, id: str, /, **values) -> Optional[ModelType]:
        """Update an entity, returning it or None when it does not exist."""
        if not self._writable(values):
            return await self.get_by_id(id)
        affected = await self._update_where([self.model.id == id], values)
        if not affected:
            return None
        return await self.get_by_id(id)

    async def delete(self, id: str) -> int:
        """Delete an entity, returning the affected row count."""
        return await self._delete_where([self.model.id == id])


class ScopedReadRepository(BaseRepository[ModelType]):
    """Read access to tenant-owned entities, always filtered by organization."""

    def _scope(self, id: str, organization_id: str) -> List[ColumnElement]:
        return [
            self.model.id == id,
            self.model.organization_id == organization_id,
        ]

    async def get(self, id: str, organization_id: str) -> Optional[ModelType]:
        """Get an entity owned by the organization."""
        return await self._fetch_one(*self._scope(id, organization_id))

    async def exists(self, id: str, organization_id: str) -> bool:
        """Check if the organization owns an entity with this ID."""
        result = await self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(and_(*self._scope(id, organization_id)))
        )
        return result.scalar_one() > 0

    async def list_by_organization(
        self,
        organization_id: str,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ModelType]:
        """List entities owned by the organization, newest first."""
        result = await self.session.execute(
            select(self.model)
            .where(self.model.organization_id == organization_id)
            .order_by(desc(self.model.created_at))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_organization(self, organization_id: str) -> int:
        """Count entities owned by the organization."""
        result = await self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.organization_id == organization_id)
        )
        return result.scalar_one()


class ScopedRepository(ScopedReadRepository[ModelType]):
    """Read and write access to tenant-owned entities."""

    async def update(
        self,
        id: str,
        organization_id: str,
        /,
        **values,
    ) -> Optional[ModelType]:
        """
        Update an entity owned by the organization.

        Returns the updated entity, or None when nothing matched.
        ``id`` and ``organization_id`` themselves cannot be changed.
        """
        if not self._writable(values):
            return await self.get(id, organization_id)
        affected = await self._update_where(self._scope(id, organization_id), values)
        if not affected:
            self._log_noop("update", id, organization_id)
            return None
        return await self.get(id, organization_id)

    async def delete(self, id: str, organization_id: str) -> int:
        """
        Delete an entity owned by the organization.

        Returns the affected row count (0 or 1). Deleting a missing entity,
        or one owned by another organization, succeeds without effect.
        """
        affected = await self._delete_where(self._scope(id, organization_id))
        if not affected:
            self._log_noop("delete", id, organization_id)
        else:
            logger.info(
                "entity_deleted",
                entity=self.entity_name,
                entity_id=id,
                organization_id=organization_id,
            )
        return affected


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class OrganizationStats:
    total_calls: int = 0
    total_minutes: int = 0
    estimated_cost: float = 0.0
    active_agents: int = 0
    last_sync: Optional[datetime] = None


@dataclass
class OrganizationBillingSummary:
    id: str
    name: str
    user_count: int
    total_calls: int
    total_minutes: int
    estimated_cost: float
    billing_package: str
    per_call_rate: float
    per_minute_rate: float
    monthly_credits: int
    used_credits: int


@dataclass
class BillingOverview:
    total_users: int = 0
    total_organizations: int = 0
    total_calls: int = 0
    total_revenue: float = 0.0
    organizations: List[OrganizationBillingSummary] = field(default_factory=list)


# =============================================================================
# Organization / User Repositories
# =============================================================================


class OrganizationRepository(GlobalRepository[Organization]):
    """Repository for Organization entities."""

    model = Organization

    async def list_all(self) -> List[Organization]:
        result = await self.session.execute(
            select(Organization).order_by(Organization.name)
        )
        return list(result.scalars().all())

    async def get_by_name(self, name: str) -> Optional[Organization]:
        """Case-insensitive lookup by display name."""
        result = await self.session.execute(
            select(Organization)
            .where(func.lower(Organization.name) == name.strip().lower())
            .order_by(Organization.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_billing_overview(self) -> BillingOverview:
        """Platform-wide totals with a per-organization breakdown."""
        user_counts = dict(
            (await self.session.execute(
                select(User.organization_id, func.count(User.id))
                .group_by(User.organization_id)
            )).all()
        )

        call_rows = (await self.session.execute(
            select(
                CallLog.organization_id,
                func.count(CallLog.id),
                func.sum(CallLog.duration),
                func.sum(CallLog.cost),
            ).group_by(CallLog.organization_id)
        )).all()
        call_stats = {row[0]: row[1:] for row in call_rows}

        overview = BillingOverview()
        for org in await self.list_all():
            calls, seconds, cost = call_stats.get(org.id, (0, 0, None))
            overview.organizations.append(
                OrganizationBillingSummary(
                    id=org.id,
                    name=org.name,
                    user_count=user_counts.get(org.id, 0),
                    total_calls=calls,
                    total_minutes=_seconds_to_minutes(seconds),
                    estimated_cost=_as_float(cost),
                    billing_package=org.billing_package or "starter",
                    per_call_rate=_as_float(org.per_call_rate),
                    per_minute_rate=_as_float(org.per_minute_rate),
                    monthly_credits=org.monthly_credits or 0,
                    used_credits=org.used_credits or 0,
                )
            )

        overview.total_organizations = len(overview.organizations)
        overview.total_users = sum(user_counts.values())
        overview.total_calls = sum(row[1] for row in call_rows)
        overview.total_revenue = sum(_as_float(row[3]) for row in call_rows)
        return overview


class UserRepository(GlobalRepository[User]):
    """Repository for User entities."""

    model = User

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return await self._fetch_one(User.email == email)

    async def list_by_organization(
        self,
        organization_id: str,
        skip: int = 0,
        limit: int = 100,
    ) -> List[User]:
        """List users by organization."""
        result = await self.session.execute(
            select(User)
            .where(User.organization_id == organization_id)
            .order_by(User.email)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_organization(self, organization_id: str) -> int:
        """Count users in organization."""
        result = await self.session.execute(
            select(func.count())
            .select_from(User)
            .where(User.organization_id == organization_id)
        )
        return result.scalar_one()


# =============================================================================
# Agent Repository
# =============================================================================


class AgentRepository(ScopedRepository[Agent]):
    """Repository for Agent entities."""

    model = Agent

    async def get_by_external_id(
        self,
        external_agent_id: str,
        organization_id: str,
    ) -> Optional[Agent]:
        """Find the local mirror of a hosted agent."""
        return await self._fetch_one(
            Agent.external_agent_id == external_agent_id,
            Agent.organization_id == organization_id,
        )

    async def count_active(self, organization_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Agent)
            .where(
                and_(
                    Agent.organization_id == organization_id,
                    Agent.is_active == True,  # noqa: E712
                )
            )
        )
        return result.scalar_one()


# =============================================================================
# Call Log Repository
# =============================================================================


class CallLogRepository(ScopedReadRepository[CallLog]):
    """Repository for CallLog entities. Call history is append-only."""

    model = CallLog

    async def record(self, organization_id: str, **values) -> CallLog:
        """Append a call record for the organization."""
        call_log = await self.create(organization_id=organization_id, **values)
        logger.info(
            "call_log_recorded",
            call_log_id=call_log.id,
            organization_id=organization_id,
            agent_id=call_log.agent_id,
        )
        return call_log

    async def list_for_organization(
        self,
        organization_id: str,
        agent_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[CallLog]:
        """List call logs newest first, optionally for one agent."""
        conditions = [CallLog.organization_id == organization_id]
        if agent_id:
            conditions.append(CallLog.agent_id == agent_id)

        result = await self.session.execute(
            select(CallLog)
            .where(and_(*conditions))
            .order_by(desc(CallLog.created_at))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_organization(
        self,
        organization_id: str,
        agent_id: Optional[str] = None,
    ) -> int:
        conditions = [CallLog.organization_id == organization_id]
        if agent_id:
            conditions.append(CallLog.agent_id == agent_id)

        result = await self.session.execute(
            select(func.count()).select_from(CallLog).where(and_(*conditions))
        )
        return result.scalar_one()

    async def get_by_external_id(
        self,
        external_call_id: str,
        organization_id: str,
    ) -> Optional[CallLog]:
        """Get a call log by the provider's call ID."""
        return await self._fetch_one(
            CallLog.external_call_id == external_call_id,
            CallLog.organization_id == organization_id,
        )

    async def get_organization_stats(self, organization_id: str) -> OrganizationStats:
        """Call totals for the organization dashboard."""
        row = (await self.session.execute(
            select(
                func.count(CallLog.id),
                func.sum(CallLog.duration),
                func.sum(CallLog.cost),
                func.max(CallLog.created_at),
            ).where(CallLog.organization_id == organization_id)
        )).one()
        total_calls, total_seconds, total_cost, last_call = row

        active_agents = await AgentRepository(self.session).count_active(organization_id)

        return OrganizationStats(
            total_calls=total_calls or 0,
            total_minutes=_seconds_to_minutes(total_seconds),
            estimated_cost=_as_float(total_cost),
            active_agents=active_agents,
            last_sync=last_call,
        )


# =============================================================================
# Integration / RAG Repositories
# =============================================================================


class IntegrationRepository(ScopedRepository[Integration]):
    """Repository for Integration entities."""

    model = Integration

    async def get_by_provider(
        self,
        organization_id: str,
        provider: str,
    ) -> Optional[Integration]:
        return await self._fetch_one(
            Integration.organization_id == organization_id,
            Integration.provider == provider,
        )

    async def upsert(
        self,
        organization_id: str,
        provider: str,
        api_key: str,
    ) -> Tuple[Integration, bool]:
        """
        Create or update the organization's integration for a provider.

        A new integration, or an existing one whose key changed, goes back
        to PENDING_APPROVAL. Re-saving the same key keeps the current status.

        Returns:
            The integration and whether it now needs review.
        """
        existing = await self.get_by_provider(organization_id, provider)
        if existing is None:
            integration = await self.create(
                organization_id=organization_id,
                provider=provider,
                api_key=api_key,
                status=ApprovalStatus.PENDING_APPROVAL.value,
            )
            return integration, True

        if existing.api_key == api_key:
            return existing, False

        integration = await self.update(
            existing.id,
            organization_id,
            api_key=api_key,
            status=ApprovalStatus.PENDING_APPROVAL.value,
        )
        return integration, True


class RagConfigurationRepository(ScopedRepository[RagConfiguration]):
    """Repository for RagConfiguration entities."""

    model = RagConfiguration

    def _status_filter(self, organization_id: str, approval_status: ApprovalStatus):
        return and_(
            RagConfiguration.organization_id == organization_id,
            RagConfiguration.approval_status == approval_status.value,
        )

    async def list_by_status(
        self,
        organization_id: str,
        approval_status: ApprovalStatus,
        skip: int = 0,
        limit: int = 100,
    ) -> List[RagConfiguration]:
        result = await self.session.execute(
            select(RagConfiguration)
            .where(self._status_filter(organization_id, approval_status))
            .order_by(desc(RagConfiguration.created_at))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status(self, organization_id: str, approval_status: ApprovalStatus) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(RagConfiguration)
            .where(self._status_filter(organization_id, approval_status))
        )
        return result.scalar_one()


# =============================================================================
# Phone Number Repository
# =============================================================================


class PhoneNumberRepository(ScopedRepository[PhoneNumber]):
    """Repository for PhoneNumber entities."""

    model = PhoneNumber

    async def list_by_agent(self, agent_id: str, organization_id: str) -> List[PhoneNumber]:
        result = await self.session.execute(
            select(PhoneNumber).where(
                and_(
                    PhoneNumber.agent_id == agent_id,
                    PhoneNumber.organization_id == organization_id,
                )
            )
        )
        return list(result.scalars().all())

    async def assign_agent(
        self,
        id: str,
        organization_id: str,
        agent_id: Optional[str],
    ) -> Optional[PhoneNumber]:
        """
        Point a phone number at an agent, or clear the assignment.

        The agent must belong to the same organization; otherwise nothing
        changes and None is returned, same as for a missing phone number.
        """
        external_agent_id = None
        if agent_id is not None:
            agent = await AgentRepository(self.session).get(agent_id, organization_id)
            if agent is None:
                self._log_noop("assign_agent", id, organization_id)
                return None
            external_agent_id = agent.external_agent_id

        return await self.update(
            id,
            organization_id,
            agent_id=agent_id,
            external_agent_id=external_agent_id,
        )


# =============================================================================
# Batch Call Repository
# =============================================================================


class BatchCallRepository(ScopedRepository[BatchCall]):
    """Repository for BatchCall entities and their recipients.

    Recipients have no organization column of their own; every recipient
    access first goes through the owning batch.
    """

    model = BatchCall

    async def add_recipients(
        self,
        batch_call_id: str,
        organization_id: str,
        recipients: List[Dict[str, Any]],
    ) -> Optional[List[BatchCallRecipient]]:
        """Add recipients and bump ``total_recipients``. None if the batch is not owned."""
        if not await self.exists(batch_call_id, organization_id):
            self._log_noop("add_recipients", batch_call_id, organization_id)
            return None

        created = [
            BatchCallRecipient(
                batch_call_id=batch_call_id,
                phone_number=recipient["phone_number"],
                variables=recipient.get("variables"),
            )
            for recipient in recipients
        ]
        self.session.add_all(created)
        await self.session.flush()

        await self._update_where(
            self._scope(batch_call_id, organization_id),
            {"total_recipients": BatchCall.total_recipients + len(created)},
        )
        return created

    async def list_recipients(
        self,
        batch_call_id: str,
        organization_id: str,
        status: Optional[RecipientStatus] = None,
    ) -> List[BatchCallRecipient]:
        conditions = [
            BatchCallRecipient.batch_call_id == batch_call_id,
            BatchCall.organization_id == organization_id,
        ]
        if status is not None:
            conditions.append(BatchCallRecipient.status == status.value)

        result = await self.session.execute(
            select(BatchCallRecipient)
            .join(BatchCall, BatchCall.id == BatchCallRecipient.batch_call_id)
            .where(and_(*conditions))
            .order_by(BatchCallRecipient.created_at)
        )
        return list(result.scalars().all())

    async def update_recipient_status(
        self,
        batch_call_id: str,
        recipient_id: str,
        organization_id: str,
        status: RecipientStatus,
        **values,
    ) -> Optional[BatchCallRecipient]:
        """
        Persist a recipient status and roll the batch counters up.

        Moving a recipient into ``completed`` or a failed status counts it
        once; moving it back out undoes the count. When no recipient is left
        pending or calling, the batch itself is marked completed.
        """
        batch = await self.get(batch_call_id, organization_id)
        if batch is None:
            self._log_noop("update_recipient", batch_call_id, organization_id)
            return None

        recipient = (await self.session.execute(
            select(BatchCallRecipient).where(
                and_(
                    BatchCallRecipient.id == recipient_id,
                    BatchCallRecipient.batch_call_id == batch_call_id,
                )
            )
        )).scalar_one_or_none()
        if recipient is None:
            self._log_noop(
                "update_recipient",
                recipient_id,
                organization_id,
                entity=BatchCallRecipient.__tablename__,
            )
            return None

        previous = recipient.status
        now = datetime.utcnow()
        recipient.status = status.value
        for key in ("call_duration", "call_cost", "error_message", "conversation_id"):
            if key in values:
                setattr(recipient, key, values[key])
        if status == RecipientStatus.CALLING and recipient.called_at is None:
            recipient.called_at = now
        if status.value == RecipientStatus.COMPLETED.value or status.value in FAILED_RECIPIENT_STATUSES:
            recipient.completed_at = now
        else:
            recipient.completed_at = None

        completed_delta = _counter_delta(previous, status.value, {RecipientStatus.COMPLETED.value})
        failed_delta = _counter_delta(previous, status.value, FAILED_RECIPIENT_STATUSES)

        batch_values: Dict[str, Any] = {}
        if completed_delta:
            batch_values["completed_calls"] = BatchCall.completed_calls + completed_delta
        if failed_delta:
            batch_values["failed_calls"] = BatchCall.failed_calls + failed_delta
        if status == RecipientStatus.CALLING and batch.started_at is None:
            batch_values["started_at"] = now
            batch_values["status"] = BatchCallStatus.RUNNING.value
        await self.session.flush()

        outstanding = (await self.session.execute(
            select(func.count())
            .select_from(BatchCallRecipient)
            .where(
                and_(
                    BatchCallRecipient.batch_call_id == batch_call_id,
                    BatchCallRecipient.status.in_([
                        RecipientStatus.PENDING.value,
                        RecipientStatus.CALLING.value,
                    ]),
                )
            )
        )).scalar_one()
        if outstanding == 0:
            batch_values["status"] = BatchCallStatus.COMPLETED.value
            batch_values["completed_at"] = now
        elif batch.status == BatchCallStatus.COMPLETED.value:
            # A recipient was reopened
            batch_values["status"] = BatchCallStatus.RUNNING.value
            batch_values["completed_at"] = None

        if batch_values:
            await self._update_where(self._scope(batch_call_id, organization_id), batch_values)

        return recipient


def _counter_delta(previous: str, current: str, counted: Any) -> int:
    was = previous in counted
    now = current in counted
    if now and not was:
        return 1
    if was and not now:
        return -1
    return 0


# =============================================================================
# Billing Repositories
# =============================================================================


class PaymentRepository(ScopedRepository[Payment]):
    """Repository for Payment entities."""

    model = Payment

    async def total_completed(self, organization_id: str) -> Decimal:
        result = await self.session.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                and_(
                    Payment.organization_id == organization_id,
                    Payment.status == PaymentStatus.COMPLETED.value,
                )
            )
        )
        return Decimal(str(result.scalar_one()))

    def _filtered(self, query, organization_id: Optional[str], status: Optional[PaymentStatus]):
        if organization_id:
            query = query.where(Payment.organization_id == organization_id)
        if status:
            query = query.where(Payment.status == status.value)
        return query

    async def list_all(
        self,
        organization_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Payment]:
        """Administrative listing across every organization, newest first."""
        query = self._filtered(select(Payment), organization_id, status)
        result = await self.session.execute(
            query.order_by(desc(Payment.created_at))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_all(
        self,
        organization_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
    ) -> int:
        query = self._filtered(select(func.count()).select_from(Payment), organization_id, status)
        result = await self.session.execute(query)
        return result.scalar_one()


class BillingPackageRepository(GlobalRepository[BillingPackage]):
    """Repository for the billing package catalog."""

    model = BillingPackage

    async def get_by_name(self, name: str) -> Optional[BillingPackage]:
        return await self._fetch_one(BillingPackage.name == name)

    async def list_active(self) -> List[BillingPackage]:
        result = await self.session.execute(
            select(BillingPackage)
            .where(BillingPackage.is_active == True)  # noqa: E712
            .order_by(BillingPackage.monthly_price)
        )
        return list(result.scalars().all())


# =============================================================================
# Admin Task Repository
# =============================================================================


class AdminTaskRepository(GlobalRepository[AdminTask]):
    """Repository for AdminTask entities."""

    model = AdminTask

    async def list_by_status(
        self,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[AdminTask]:
        query = select(AdminTask)
        if status:
            query = query.where(AdminTask.status == status)
        result = await self.session.execute(
            query.order_by(desc(AdminTask.created_at)).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status(self, status: Optional[str] = None) -> int:
        query = select(func.count()).select_from(AdminTask)
        if status:
            query = query.where(AdminTask.status == status)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def list_for_entity(
        self,
        related_entity_type: str,
        related_entity_id: str,
    ) -> List[AdminTask]:
        result = await self.session.execute(
            select(AdminTask)
            .where(
                and_(
                    AdminTask.related_entity_type == related_entity_type,
                    AdminTask.related_entity_id == related_entity_id,
                )
            )
            .order_by(desc(AdminTask.created_at))
        )
        return list(result.scalars().all())


# =============================================================================
# Approval Webhook Repository
# =============================================================================


class ApprovalWebhookRepository(GlobalRepository[ApprovalWebhook]):
    """Repository for the approval webhook registry."""

    model = ApprovalWebhook

    async def list_subscribed(self, event: str) -> List[ApprovalWebhook]:
        """Active webhooks that listen for ``event``."""
        result = await self.session.execute(
            select(ApprovalWebhook)
            .where(ApprovalWebhook.is_active == True)  # noqa: E712
            .order_by(ApprovalWebhook.name)
        )
        # JSON list membership is checked in Python
        return [hook for hook in result.scalars().all() if event in (hook.events or [])]


# =============================================================================
# Prompt Catalog Repositories
# =============================================================================


class SystemTemplateRepository(GlobalRepository[SystemTemplate]):
    """Repository for the system template catalog."""

    model = SystemTemplate

    async def list_ordered(self, active_only: bool = False) -> List[SystemTemplate]:
        query = select(SystemTemplate)
        if active_only:
            query = query.where(SystemTemplate.is_active == True)  # noqa: E712
        result = await self.session.execute(
            query.order_by(SystemTemplate.sort_order, SystemTemplate.name)
        )
        return list(result.scalars().all())


class QuickActionButtonRepository(GlobalRepository[QuickActionButton]):
    """
    Repository for quick action buttons.

    System buttons belong to no organization and are changed by
    administrators only. Tenant buttons are read, updated and deleted with
    their owning organization in the same ``WHERE`` clause, the way
    ``ScopedRepository`` does it, so a system button or another tenant's
    button never matches a tenant mutation.
    """

    model = QuickActionButton

    def _writable(self, values: Dict[str, Any]) -> Dict[str, Any]:
        values = super()._writable(values)
        values.pop("is_system", None)
        values.pop("created_by", None)
        return values

    def _system(self, id: str) -> List[ColumnElement]:
        return [
            QuickActionButton.id == id,
            QuickActionButton.is_system == True,  # noqa: E712
        ]

    def _owned(self, id: str, organization_id: str) -> List[ColumnElement]:
        return [
            QuickActionButton.id == id,
            QuickActionButton.organization_id == organization_id,
            QuickActionButton.is_system == False,  # noqa: E712
        ]

    def _ordered(self, query):
        return query.order_by(QuickActionButton.sort_order, QuickActionButton.name)

    async def list_system(self) -> List[QuickActionButton]:
        result = await self.session.execute(
            self._ordered(
                select(QuickActionButton).where(QuickActionButton.is_system == True)  # noqa: E712
            )
        )
        return list(result.scalars().all())

    async def create_system(self, created_by: Optional[str], **values) -> QuickActionButton:
        return await self.create(
            is_system=True, organization_id=None, created_by=created_by, **values
        )

    async def get_system(self, id: str) -> Optional[QuickActionButton]:
        return await self._fetch_one(*self._system(id))

    async def update_system(self, id: str, /, **values) -> Optional[QuickActionButton]:
        if not self._writable(values):
            return await self.get_system(id)
        if not await self._update_where(self._system(id), values):
            return None
        return await self.get_system(id)

    async def delete_system(self, id: str) -> int:
        return await self._delete_where(self._system(id))

    async def list_visible(self, organization_id: str) -> List[QuickActionButton]:
        """Active system buttons followed by the organization's own buttons."""
        result = await self.session.execute(
            self._ordered(
                select(QuickActionButton).where(
                    or_(
                        and_(
                            QuickActionButton.is_system == True,  # noqa: E712
                            QuickActionButton.is_active == True,  # noqa: E712
                        ),
                        and_(
                            QuickActionButton.is_system == False,  # noqa: E712
                            QuickActionButton.organization_id == organization_id,
                        ),
                    )
                )
            )
        )
        buttons = list(result.scalars().all())
        return sorted(buttons, key=lambda button: not button.is_system)

    async def create_owned(
        self,
        organization_id: str,
        created_by: Optional[str],
        **values,
    ) -> QuickActionButton:
        return await self.create(
            is_system=False,
            organization_id=organization_id,
            created_by=created_by,
            **values,
        )

    async def get_owned(self, id: str, organization_id: str) -> Optional[QuickActionButton]:
        return await self._fetch_one(*self._owned(id, organization_id))

    async def update_owned(
        self,
        id: str,
        organization_id: str,
        /,
        **values,
    ) -> Optional[QuickActionButton]:
        if not self._writable(values):
            return await self.get_owned(id, organization_id)
        if not await self._update_where(self._owned(id, organization_id), values):
            self._log_noop("update", id, organization_id)
            return None
        return await self.get_owned(id, organization_id)

    async def delete_owned(self, id: str, organization_id: str) -> int:
        affected = await self._delete_where(self._owned(id, organization_id))
        if not affected:
            self._log_noop("delete", id, organization_id)
        return affected


__all__ = [
    "BaseRepository",
    "GlobalRepository",
    "ScopedReadRepository",
    "ScopedRepository",
    "OrganizationStats",
    "OrganizationBillingSummary",
    "BillingOverview",
    "OrganizationRepository",
    "UserRepository",
    "AgentRepository",
    "CallLogRepository",
    "IntegrationRepository",
    "RagConfigurationRepository",
    "PhoneNumberRepository",
    "BatchCallRepository",
    "PaymentRepository",
    "BillingPackageRepository",
    "AdminTaskRepository",
    "ApprovalWebhookRepository",
    "SystemTemplateRepository",
    "QuickActionButtonRepository",
]
