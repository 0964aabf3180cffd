"""
Database Models

SQLAlchemy ORM models for all platform entities.

Every tenant-owned table carries ``organization_id``. Tables that point at an
agent (call logs, phone numbers, batch calls) keep a plain ``agent_id`` column
without a foreign key: removing an agent leaves their history intact.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..agent_config import (
    AgentTools,
    DataCollection,
    EvaluationCriteria,
    LLMSettings,
    PromptTemplate,
    VoiceSettings,
)
from .base import Base, CreatedAtMixin, TimestampMixin
from .encrypted_types import EncryptedString
from .json_types import PydanticJSON, PydanticJSONList, json_variant

JSON = json_variant()


# =============================================================================
# Status Enums
# =============================================================================


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    AGENCY = "agency"
    CLIENT = "client"


class ApprovalStatus(str, Enum):
    """Review state of integrations and RAG configurations."""
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"


class AdminTaskStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class AdminTaskType(str, Enum):
    INTEGRATION = "integration"
    RAG_CONFIGURATION = "rag_configuration"


class ApprovalEvent(str, Enum):
    """Review events an approval webhook can subscribe to."""
    TASK_CREATED = "task_created"
    TASK_APPROVED = "task_approved"
    TASK_REJECTED = "task_rejected"


class PhoneNumberStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class BatchCallStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RecipientStatus(str, Enum):
    PENDING = "pending"
    CALLING = "calling"
    COMPLETED = "completed"
    FAILED = "failed"
    NO_ANSWER = "no_answer"
    BUSY = "busy"


# Recipient statuses counted as a failed call in batch rollups
FAILED_RECIPIENT_STATUSES = frozenset({
    RecipientStatus.FAILED.value,
    RecipientStatus.NO_ANSWER.value,
    RecipientStatus.BUSY.value,
})


# =============================================================================
# Organization Models
# =============================================================================


class Organization(Base, TimestampMixin):
    """Tenant root. Organizations are never hard-deleted."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Billing package and rates
    billing_package: Mapped[str] = mapped_column(String(50), default="starter")
    per_call_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        default=Decimal("0.3000"),
    )
    per_minute_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        default=Decimal("0.3000"),
    )
    custom_rate_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Quotas
    monthly_credits: Mapped[int] = mapped_column(Integer, default=0)
    used_credits: Mapped[int] = mapped_column(Integer, default=0)
    credit_reset_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    max_agents: Mapped[int] = mapped_column(Integer, default=5)
    max_users: Mapped[int] = mapped_column(Integer, default=10)

    # Payment gateway
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    subscription_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    billing_status: Mapped[str] = mapped_column(String(20), default="inactive")  # active, inactive, suspended
    last_payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class User(Base, TimestampMixin):
    """User model."""

    __tablename__ = "users"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Role
    role: Mapped[str] = mapped_column(String(20), default=UserRole.CLIENT.value)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index("ix_users_organization_id", "organization_id"),
    )

    @property
    def full_name(self) -> str:
        """Get full name."""
        parts = [self.first_name, self.last_name]
        return " ".join(p for p in parts if p) or self.email


# =============================================================================
# Billing Models
# =============================================================================


class BillingPackage(Base, TimestampMixin):
    """Catalog entry shared by all tenants."""

    __tablename__ = "billing_packages"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)

    per_call_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    per_minute_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    monthly_credits: Mapped[int] = mapped_column(Integer, nullable=False)
    max_agents: Mapped[int] = mapped_column(Integer, nullable=False)
    max_users: Mapped[int] = mapped_column(Integer, nullable=False)
    features: Mapped[List[str]] = mapped_column(JSON, default=list)

    monthly_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    yearly_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    stripe_product_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    stripe_price_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Payment(Base, TimestampMixin):
    """Payment made by an organization."""

    __tablename__ = "payments"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )
    package_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("billing_packages.id", ondelete="SET NULL"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="usd")
    status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value)

    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    failed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_payments_organization_id", "organization_id"),
        Index("ix_payments_org_created", "organization_id", "created_at"),
    )


# =============================================================================
# Integration / Review Models
# =============================================================================


class Integration(Base, TimestampMixin):
    """Third-party provider credentials for an organization."""

    __tablename__ = "integrations"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    api_key: Mapped[str] = mapped_column(EncryptedString(512), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ApprovalStatus.PENDING_APPROVAL.value,
    )
    last_tested: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("organization_id", "provider", name="uq_integrations_org_provider"),
        Index("ix_integrations_organization_id", "organization_id"),
    )


class AdminTask(Base, TimestampMixin):
    """Review request raised when an approval-gated entity is saved."""

    __tablename__ = "admin_tasks"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=AdminTaskStatus.PENDING.value)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # What is under review
    related_entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    related_entity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Who asked, who decided
    requested_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    rejected_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    metadata_json: Mapped[Optional[Dict]] = mapped_column(JSON, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_admin_tasks_status", "status"),
        Index("ix_admin_tasks_related_entity", "related_entity_type", "related_entity_id"),
    )


class RagConfiguration(Base, TimestampMixin):
    """Knowledge-base webhook configuration for an organization."""

    __tablename__ = "rag_configurations"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), default="Custom RAG")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    webhook_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    system_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    configuration: Mapped[Optional[Dict]] = mapped_column(JSON, nullable=True)

    # Review
    approval_status: Mapped[str] = mapped_column(
        String(20),
        default=ApprovalStatus.PENDING_APPROVAL.value,
    )
    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    first_saved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_rag_configurations_organization_id", "organization_id"),
    )


class ApprovalWebhook(Base, TimestampMixin):
    """Endpoint told about review events. Platform-wide, managed by admins."""

    __tablename__ = "approval_webhooks"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    webhook_url: Mapped[str] = mapped_column(String(500), nullable=False)
    secret: Mapped[Optional[str]] = mapped_column(EncryptedString(255), nullable=True)
    events: Mapped[List[str]] = mapped_column(JSON, default=list)
    headers: Mapped[Optional[Dict[str, str]]] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Delivery bookkeeping
    last_triggered: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    failure_count: Mapped[int] = mapped_column(Integer, default=0)


# =============================================================================
# Telephony Models
# =============================================================================


class PhoneNumber(Base, TimestampMixin):
    """Phone number provisioned through Twilio or a SIP trunk."""

    __tablename__ = "phone_numbers"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    label: Mapped[str] = mapped_column(String(100), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(50), nullable=False)
    country_code: Mapped[str] = mapped_column(String(10), default="+1")
    provider: Mapped[str] = mapped_column(String(20), nullable=False)  # twilio, sip_trunk

    # Twilio
    twilio_account_sid: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    twilio_auth_token: Mapped[Optional[str]] = mapped_column(EncryptedString(255), nullable=True)

    # SIP trunk
    sip_trunk_uri: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    sip_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sip_password: Mapped[Optional[str]] = mapped_column(EncryptedString(255), nullable=True)

    # Hosted provider mirror
    external_phone_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    agent_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    external_agent_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=PhoneNumberStatus.PENDING.value)
    last_synced: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    metadata_json: Mapped[Optional[Dict]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_phone_numbers_organization_id", "organization_id"),
        Index("ix_phone_numbers_agent_id", "agent_id"),
    )


# =============================================================================
# Agent Models
# =============================================================================


class Agent(Base, TimestampMixin):
    """Local mirror of a voice agent hosted by the conversational-voice provider."""

    __tablename__ = "agents"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )
    external_agent_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Basic info
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    first_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    system_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(10), default="en")
    voice_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Typed configuration
    voice_settings: Mapped[VoiceSettings] = mapped_column(
        PydanticJSON(VoiceSettings),
        default=lambda: VoiceSettings(),
        nullable=False,
    )
    llm_settings: Mapped[LLMSettings] = mapped_column(
        PydanticJSON(LLMSettings),
        default=lambda: LLMSettings(),
        nullable=False,
    )
    tools: Mapped[AgentTools] = mapped_column(
        PydanticJSON(AgentTools),
        default=lambda: AgentTools(),
        nullable=False,
    )
    dynamic_variables: Mapped[Dict[str, str]] = mapped_column(JSON, default=dict)
    evaluation_criteria: Mapped[EvaluationCriteria] = mapped_column(
        PydanticJSON(EvaluationCriteria),
        default=lambda: EvaluationCriteria(),
        nullable=False,
    )
    data_collection: Mapped[DataCollection] = mapped_column(
        PydanticJSON(DataCollection),
        default=lambda: DataCollection(),
        nullable=False,
    )
    prompt_templates: Mapped[List[PromptTemplate]] = mapped_column(
        PydanticJSONList(PromptTemplate),
        default=list,
        nullable=False,
    )

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        Index("ix_agents_organization_id", "organization_id"),
        Index("ix_agents_external_agent_id", "external_agent_id"),
    )


# =============================================================================
# Call Models
# =============================================================================


class CallLog(Base, CreatedAtMixin):
    """Record of one completed conversation. Append-only."""

    __tablename__ = "call_logs"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )
    agent_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    conversation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    external_call_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # seconds
    transcript: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    audio_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        Index("ix_call_logs_organization_id", "organization_id"),
        Index("ix_call_logs_agent_id", "agent_id"),
        Index("ix_call_logs_external_call_id", "external_call_id"),
        Index("ix_call_logs_org_created", "organization_id", "created_at"),
    )


# =============================================================================
# Batch Call Models
# =============================================================================


class BatchCall(Base, TimestampMixin):
    """Bulk outbound calling job."""

    __tablename__ = "batch_calls"

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=False,
    )
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    agent_id: Mapped[str] = mapped_column(String(36), nullable=False)
    phone_number_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    external_batch_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=BatchCallStatus.DRAFT.value)

    # Progress
    total_recipients: Mapped[int] = mapped_column(Integer, default=0)
    completed_calls: Mapped[int] = mapped_column(Integer, default=0)
    failed_calls: Mapped[int] = mapped_column(Integer, default=0)

    # Cost
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4), nullable=True)
    actual_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4), nullable=True)

    metadata_json: Mapped[Optional[Dict]] = mapped_column(JSON, nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_batch_calls_organization_id", "organization_id"),
        Index("ix_batch_calls_status", "status"),
    )


class BatchCallRecipient(Base, TimestampMixin):
    """One target number of a batch call."""

    __tablename__ = "batch_call_recipients"

    batch_call_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("batch_calls.id", ondelete="CASCADE"),
        nullable=False,
    )

    phone_number: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=RecipientStatus.PENDING.value)
    variables: Mapped[Optional[Dict]] = mapped_column(JSON, nullable=True)

    call_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    call_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    conversation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    called_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_batch_call_recipients_batch_call_id", "batch_call_id"),
        Index("ix_batch_call_recipients_status", "status"),
    )


# =============================================================================
# Prompt Catalog Models
# =============================================================================


class SystemTemplate(Base, TimestampMixin):
    """Prompt section template offered to every tenant."""

    __tablename__ = "system_templates"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class QuickActionButton(Base, TimestampMixin):
    """
    One-click prompt preset.

    System buttons (``is_system``) have no organization and are visible to
    every tenant. Tenant buttons belong to exactly one organization.
    """

    __tablename__ = "quick_action_buttons"

    organization_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("organizations.id"),
        nullable=True,
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default="Sparkles")
    color: Mapped[str] = mapped_column(String(255), default="bg-blue-500 hover:bg-blue-600")
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        Index("ix_quick_action_buttons_organization_id", "organization_id"),
    )


__all__ = [
    "UserRole",
    "ApprovalStatus",
    "AdminTaskStatus",
    "AdminTaskType",
    "ApprovalEvent",
    "PhoneNumberStatus",
    "PaymentStatus",
    "BatchCallStatus",
    "RecipientStatus",
    "FAILED_RECIPIENT_STATUSES",
    "Organization",
    "User",
    "BillingPackage",
    "Payment",
    "Integration",
    "AdminTask",
    "RagConfiguration",
    "ApprovalWebhook",
    "PhoneNumber",
    "Agent",
    "CallLog",
    "BatchCall",
    "BatchCallRecipient",
    "SystemTemplate",
    "QuickActionButton",
]
