"""
Database Seeding

Idempotent seed data: the default billing package catalog, a demo
organization with a super-admin user, and the system prompt templates and
quick actions. Running the seed twice leaves the database unchanged the
second time.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    BillingPackage,
    Organization,
    QuickActionButton,
    SystemTemplate,
    User,
    UserRole,
)
from .repositories import (
    BillingPackageRepository,
    OrganizationRepository,
    QuickActionButtonRepository,
    SystemTemplateRepository,
    UserRepository,
)

logger = structlog.get_logger(__name__)


DEFAULT_PACKAGES = [
    {
        "name": "starter",
        "display_name": "Starter",
        "per_call_rate": Decimal("0.30"),
        "per_minute_rate": Decimal("0.30"),
        "monthly_credits": 500,
        "max_agents": 5,
        "max_users": 10,
        "features": ["Up to 5 agents", "Call history", "Email support"],
        "monthly_price": Decimal("49.00"),
        "yearly_price": Decimal("490.00"),
    },
    {
        "name": "professional",
        "display_name": "Professional",
        "per_call_rate": Decimal("0.25"),
        "per_minute_rate": Decimal("0.25"),
        "monthly_credits": 2500,
        "max_agents": 25,
        "max_users": 50,
        "features": ["Up to 25 agents", "Batch calling", "RAG knowledge base", "Priority support"],
        "monthly_price": Decimal("199.00"),
        "yearly_price": Decimal("1990.00"),
    },
    {
        "name": "enterprise",
        "display_name": "Enterprise",
        "per_call_rate": Decimal("0.20"),
        "per_minute_rate": Decimal("0.20"),
        "monthly_credits": 10000,
        "max_agents": 100,
        "max_users": 250,
        "features": ["Up to 100 agents", "Custom rates", "Dedicated support", "SIP trunking"],
        "monthly_price": Decimal("799.00"),
        "yearly_price": Decimal("7990.00"),
    },
]

DEFAULT_SYSTEM_TEMPLATES = [
    {
        "name": "Persona",
        "content": (
            "## Persona\n"
            "You are {agent_name}, a {role_description}.\n\n"
            "### Communication Style:\n"
            "{communication_style}"
        ),
        "icon": "User",
        "color": "bg-blue-500 hover:bg-blue-600",
        "sort_order": 1,
    },
    {
        "name": "Guardrails",
        "content": (
            "## Safety & Guidelines\n\n"
            "### Never:\n"
            "- Provide financial, medical, or legal advice\n"
            "- Share personal or confidential information\n\n"
            "### Always:\n"
            "- Be respectful and professional\n"
            "- Protect user privacy"
        ),
        "icon": "Shield",
        "color": "bg-red-500 hover:bg-red-600",
        "sort_order": 2,
    },
    {
        "name": "Tools",
        "content": (
            "## Tool Usage\n\n"
            "1. Check the knowledge base first for information queries\n"
            "2. Use the calendar for scheduling requests\n"
            "3. Trigger webhooks for external actions"
        ),
        "icon": "Sparkles",
        "color": "bg-purple-500 hover:bg-purple-600",
        "sort_order": 3,
    },
]

DEFAULT_QUICK_ACTIONS = [
    {
        "name": "Customer Support",
        "prompt": (
            "You are a helpful and empathetic customer support representative. "
            "Listen carefully, provide clear solutions and keep a friendly tone."
        ),
        "icon": "User",
        "color": "bg-blue-500 hover:bg-blue-600",
        "category": "Support",
        "sort_order": 1,
    },
    {
        "name": "Sales Assistant",
        "prompt": (
            "You are a knowledgeable sales assistant. Help customers understand our "
            "products and guide them toward the best fit. Be persuasive but not pushy."
        ),
        "icon": "DollarSign",
        "color": "bg-green-500 hover:bg-green-600",
        "category": "Sales",
        "sort_order": 2,
    },
    {
        "name": "Appointment Scheduler",
        "prompt": (
            "You are an appointment scheduling assistant. Book, reschedule or cancel "
            "appointments and confirm every detail clearly."
        ),
        "icon": "Calendar",
        "color": "bg-purple-500 hover:bg-purple-600",
        "category": "Scheduling",
        "sort_order": 3,
    },
    {
        "name": "Survey Collector",
        "prompt": (
            "You are conducting a brief customer satisfaction survey. Ask each question "
            "clearly, record the answers and thank the participant."
        ),
        "icon": "Sheet",
        "color": "bg-yellow-500 hover:bg-yellow-600",
        "category": "Feedback",
        "sort_order": 4,
    },
]

DEMO_ORG = {
    "id": "demo-org-001",
    "name": "Demo Organization",
    "billing_package": "starter",
}

DEMO_ADMIN = {
    "id": "demo-admin-001",
    "email": "admin@example.com",
    "first_name": "Demo",
    "last_name": "Admin",
    "role": UserRole.SUPER_ADMIN.value,
    "is_admin": True,
}


@dataclass
class SeedResult:
    packages: List[BillingPackage]
    organization: Organization
    admin: User
    templates: List[SystemTemplate] = field(default_factory=list)
    quick_actions: List[QuickActionButton] = field(default_factory=list)


async def seed_billing_packages(session: AsyncSession) -> List[BillingPackage]:
    """Create any default billing package that does not exist yet."""
    repo = BillingPackageRepository(session)
    packages = []
    for values in DEFAULT_PACKAGES:
        package = await repo.get_by_name(values["name"])
        if package is None:
            package = await repo.create(**values)
            logger.info("billing_package_seeded", package=package.name)
        packages.append(package)
    return packages


async def seed_demo_organization(session: AsyncSession) -> Organization:
    """Create the demo organization on the starter package."""
    repo = OrganizationRepository(session)
    org = await repo.get_by_id(DEMO_ORG["id"])
    if org is not None:
        return org

    starter = await BillingPackageRepository(session).get_by_name(DEMO_ORG["billing_package"])
    values = dict(DEMO_ORG)
    if starter is not None:
        values.update(
            per_call_rate=starter.per_call_rate,
            per_minute_rate=starter.per_minute_rate,
            monthly_credits=starter.monthly_credits,
            max_agents=starter.max_agents,
            max_users=starter.max_users,
        )
    org = await repo.create(**values)
    logger.info("organization_seeded", organization_id=org.id)
    return org


async def seed_demo_admin(session: AsyncSession, org: Organization) -> User:
    """Create the demo super admin."""
    repo = UserRepository(session)
    user = await repo.get_by_email(DEMO_ADMIN["email"])
    if user is not None:
        return user

    user = await repo.create(organization_id=org.id, **DEMO_ADMIN)
    logger.info("admin_user_seeded", user_id=user.id, organization_id=org.id)
    return user


async def seed_system_templates(session: AsyncSession) -> List[SystemTemplate]:
    """Fill the template catalog when it is empty."""
    repo = SystemTemplateRepository(session)
    if await repo.count():
        return await repo.list_ordered()

    templates = []
    for values in DEFAULT_SYSTEM_TEMPLATES:
        templates.append(await repo.create(**values))
    logger.info("system_templates_seeded", count=len(templates))
    return templates


async def seed_quick_action_buttons(session: AsyncSession) -> List[QuickActionButton]:
    """Create the system quick actions unless some already exist."""
    repo = QuickActionButtonRepository(session)
    existing = await repo.list_system()
    if existing:
        return existing

    buttons = []
    for values in DEFAULT_QUICK_ACTIONS:
        buttons.append(await repo.create_system(created_by="system", **values))
    logger.info("quick_action_buttons_seeded", count=len(buttons))
    return buttons


async def seed_all(session: AsyncSession) -> SeedResult:
    """Seed everything. Safe to run repeatedly."""
    packages = await seed_billing_packages(session)
    org = await seed_demo_organization(session)
    admin = await seed_demo_admin(session, org)
    return SeedResult(
        packages=packages,
        organization=org,
        admin=admin,
        templates=await seed_system_templates(session),
        quick_actions=await seed_quick_action_buttons(session),
    )


__all__ = [
    "DEFAULT_PACKAGES",
    "DEFAULT_SYSTEM_TEMPLATES",
    "DEFAULT_QUICK_ACTIONS",
    "DEMO_ORG",
    "DEMO_ADMIN",
    "SeedResult",
    "seed_billing_packages",
    "seed_demo_organization",
    "seed_demo_admin",
    "seed_system_templates",
    "seed_quick_action_buttons",
    "seed_all",
]
