"""
Database Module

Provides the schema, connection management and organization-scoped
repositories for the platform.
"""

from .base import (
    Base,
    CreatedAtMixin,
    DatabaseManager,
    TimestampMixin,
    close_database,
    generate_id,
    get_database,
    get_session,
    init_database,
)
from .models import (
    AdminTask,
    AdminTaskStatus,
    AdminTaskType,
    Agent,
    ApprovalEvent,
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
    PhoneNumberStatus,
    QuickActionButton,
    RagConfiguration,
    RecipientStatus,
    SystemTemplate,
    User,
    UserRole,
)
from .repositories import (
    AdminTaskRepository,
    AgentRepository,
    ApprovalWebhookRepository,
    BatchCallRepository,
    BillingPackageRepository,
    CallLogRepository,
    IntegrationRepository,
    OrganizationRepository,
    PaymentRepository,
    PhoneNumberRepository,
    QuickActionButtonRepository,
    RagConfigurationRepository,
    ScopedRepository,
    SystemTemplateRepository,
    UserRepository,
)

__all__ = [
    # Base
    "Base",
    "CreatedAtMixin",
    "DatabaseManager",
    "TimestampMixin",
    "close_database",
    "generate_id",
    "get_database",
    "get_session",
    "init_database",
    # Models
    "AdminTask",
    "AdminTaskStatus",
    "AdminTaskType",
    "Agent",
    "ApprovalEvent",
    "ApprovalStatus",
    "ApprovalWebhook",
    "BatchCall",
    "BatchCallRecipient",
    "BatchCallStatus",
    "BillingPackage",
    "CallLog",
    "Integration",
    "Organization",
    "Payment",
    "PaymentStatus",
    "PhoneNumber",
    "PhoneNumberStatus",
    "QuickActionButton",
    "RagConfiguration",
    "RecipientStatus",
    "SystemTemplate",
    "User",
    "UserRole",
    # Repositories
    "AdminTaskRepository",
    "AgentRepository",
    "ApprovalWebhookRepository",
    "BatchCallRepository",
    "BillingPackageRepository",
    "CallLogRepository",
    "IntegrationRepository",
    "OrganizationRepository",
    "PaymentRepository",
    "PhoneNumberRepository",
    "QuickActionButtonRepository",
    "RagConfigurationRepository",
    "ScopedRepository",
    "SystemTemplateRepository",
    "UserRepository",
]
