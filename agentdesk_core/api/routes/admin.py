"""
Admin API Routes

Platform administration: review tasks and approval webhooks, organizations
and users, the billing package catalog, payments and the platform billing
overview. Every route requires a super admin, or a user flagged ``is_admin``.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...approvals import ApprovalService
from ...database.encrypted_types import mask_secret
from ...database.models import AdminTaskStatus, ApprovalEvent, PaymentStatus, UserRole
from ...database.repositories import (
    ApprovalWebhookRepository,
    BillingPackageRepository,
    OrganizationRepository,
    PaymentRepository,
    UserRepository,
)
from ..auth import CallerContext
from ..base import (
    ConflictError,
    ErrorCode,
    NotFoundError,
    ValidationError,
    paginated_response,
    success_response,
)
from ..dependencies import get_db_session, require_admin
from .billing import billing_package_to_response, payment_to_response


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# =============================================================================
# Request/Response Models
# =============================================================================


class RejectTaskRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class OrganizationUpdateRequest(BaseModel):
    """Administrative changes to an organization's plan and limits."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    billing_package: Optional[str] = None
    per_call_rate: Optional[Decimal] = Field(default=None, ge=0)
    per_minute_rate: Optional[Decimal] = Field(default=None, ge=0)
    custom_rate_enabled: Optional[bool] = None
    monthly_credits: Optional[int] = Field(default=None, ge=0)
    used_credits: Optional[int] = Field(default=None, ge=0)
    credit_reset_date: Optional[datetime] = None
    max_agents: Optional[int] = Field(default=None, ge=0)
    max_users: Optional[int] = Field(default=None, ge=0)
    billing_status: Optional[str] = None


class UserCreateRequest(BaseModel):
    """
    Create a user.

    The user joins ``organization_id`` when given. Otherwise
    ``company_name`` names the organization, which is created when no
    organization of that name (ignoring case) exists yet.
    """

    email: str = Field(..., min_length=3, max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    organization_id: Optional[str] = None
    company_name: Optional[str] = Field(default=None, max_length=255)
    role: UserRole = UserRole.CLIENT
    is_admin: bool = False


class UserUpdateRequest(BaseModel):
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    profile_image_url: Optional[str] = Field(default=None, max_length=500)
    role: Optional[UserRole] = None
    is_admin: Optional[bool] = None


class ApprovalWebhookCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    webhook_url: str = Field(..., min_length=1, max_length=500)
    secret: Optional[str] = Field(default=None, max_length=255)
    events: List[ApprovalEvent] = Field(..., min_length=1)
    headers: Optional[Dict[str, str]] = None
    is_active: bool = True


class ApprovalWebhookUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    webhook_url: Optional[str] = Field(default=None, min_length=1, max_length=500)
    secret: Optional[str] = Field(default=None, max_length=255)
    events: Optional[List[ApprovalEvent]] = Field(default=None, min_length=1)
    headers: Optional[Dict[str, str]] = None
    is_active: Optional[bool] = None


class BillingPackageCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    display_name: str = Field(..., min_length=1, max_length=100)
    per_call_rate: Decimal = Field(..., ge=0)
    per_minute_rate: Decimal = Field(..., ge=0)
    monthly_credits: int = Field(..., ge=0)
    max_agents: int = Field(..., ge=0)
    max_users: int = Field(..., ge=0)
    features: List[str] = Field(default_factory=list)
    monthly_price: Decimal = Field(..., ge=0)
    yearly_price: Optional[Decimal] = Field(default=None, ge=0)
    stripe_product_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    is_active: bool = True


class BillingPackageUpdateRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    per_call_rate: Optional[Decimal] = Field(default=None, ge=0)
    per_minute_rate: Optional[Decimal] = Field(default=None, ge=0)
    monthly_credits: Optional[int] = Field(default=None, ge=0)
    max_agents: Optional[int] = Field(default=None, ge=0)
    max_users: Optional[int] = Field(default=None, ge=0)
    features: Optional[List[str]] = None
    monthly_price: Optional[Decimal] = Field(default=None, ge=0)
    yearly_price: Optional[Decimal] = Field(default=None, ge=0)
    stripe_product_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    is_active: Optional[bool] = None


def task_to_response(task) -> dict:
    """Convert database admin task model to response dict."""
    return {
        "id": task.id,
        "type": task.type,
        "status": task.status,
        "title": task.title,
        "description": task.description,
        "related_entity_id": task.related_entity_id,
        "related_entity_type": task.related_entity_type,
        "organization_id": task.organization_id,
        "requested_by": task.requested_by,
        "approved_by": task.approved_by,
        "rejected_by": task.rejected_by,
        "metadata": task.metadata_json or {},
        "completed_at": task.completed_at,
        "created_at": task.created_at,
    }


def organization_to_response(org) -> dict:
    """Convert database organization model to response dict."""
    return {
        "id": org.id,
        "name": org.name,
        "billing_package": org.billing_package,
        "per_call_rate": float(org.per_call_rate),
        "per_minute_rate": float(org.per_minute_rate),
        "custom_rate_enabled": org.custom_rate_enabled,
        "monthly_credits": org.monthly_credits,
        "used_credits": org.used_credits,
        "credit_reset_date": org.credit_reset_date,
        "max_agents": org.max_agents,
        "max_users": org.max_users,
        "billing_status": org.billing_status,
        "last_payment_date": org.last_payment_date,
        "created_at": org.created_at,
        "updated_at": org.updated_at,
    }


def user_to_response(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "full_name": user.full_name,
        "profile_image_url": user.profile_image_url,
        "organization_id": user.organization_id,
        "role": user.role,
        "is_admin": user.is_admin,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def approval_webhook_to_response(hook) -> dict:
    """Convert database approval webhook model to response dict."""
    return {
        "id": hook.id,
        "name": hook.name,
        "description": hook.description,
        "webhook_url": hook.webhook_url,
        "secret": mask_secret(hook.secret),
        "events": hook.events or [],
        "headers": hook.headers or {},
        "is_active": hook.is_active,
        "last_triggered": hook.last_triggered,
        "failure_count": hook.failure_count,
        "created_at": hook.created_at,
        "updated_at": hook.updated_at,
    }


# =============================================================================
# Review Tasks
# =============================================================================


@router.get("/tasks", summary="List Review Tasks")
async def list_tasks(
    status: Optional[AdminTaskStatus] = Query(None, description="Filter by task status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    service = ApprovalService(db)

    tasks = await service.list_tasks(status, skip=(page - 1) * page_size, limit=page_size)
    total = await service.count_tasks(status)

    return paginated_response(
        items=[task_to_response(t) for t in tasks],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.post("/tasks/{task_id}/approve", summary="Approve Task")
async def approve_task(
    task_id: str = Path(..., description="Task ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Approve a review task; the entity under review becomes ACTIVE."""
    task = await ApprovalService(db).approve_task(task_id, caller.user_id)
    if not task:
        raise NotFoundError("AdminTask", task_id)

    logger.info(f"Task {task_id} approved by {caller.user_id}")

    return success_response(task_to_response(task))


@router.post("/tasks/{task_id}/reject", summary="Reject Task")
async def reject_task(
    request: RejectTaskRequest,
    task_id: str = Path(..., description="Task ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Reject a review task; the entity under review becomes REJECTED."""
    task = await ApprovalService(db).reject_task(task_id, caller.user_id, reason=request.reason)
    if not task:
        raise NotFoundError("AdminTask", task_id)

    logger.info(f"Task {task_id} rejected by {caller.user_id}")

    return success_response(task_to_response(task))


# =============================================================================
# Approval Webhooks
# =============================================================================


@router.get("/approval-webhooks", summary="List Approval Webhooks")
async def list_approval_webhooks(
    event: Optional[ApprovalEvent] = Query(None, description="Only active webhooks for this event"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    repo = ApprovalWebhookRepository(db)

    if event:
        hooks = await repo.list_subscribed(event.value)
    else:
        hooks = await repo.get_all()

    return success_response([approval_webhook_to_response(h) for h in hooks])


@router.post("/approval-webhooks", status_code=201, summary="Create Approval Webhook")
async def create_approval_webhook(
    request: ApprovalWebhookCreateRequest,
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    hook = await ApprovalWebhookRepository(db).create(**request.model_dump(mode="json"))

    logger.info(f"Approval webhook {hook.id} created by {caller.user_id}")

    return success_response(approval_webhook_to_response(hook))


@router.get("/approval-webhooks/{webhook_id}", summary="Get Approval Webhook")
async def get_approval_webhook(
    webhook_id: str = Path(..., description="Approval webhook ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    hook = await ApprovalWebhookRepository(db).get_by_id(webhook_id)
    if not hook:
        raise NotFoundError("ApprovalWebhook", webhook_id)

    return success_response(approval_webhook_to_response(hook))


@router.patch("/approval-webhooks/{webhook_id}", summary="Update Approval Webhook")
async def update_approval_webhook(
    request: ApprovalWebhookUpdateRequest,
    webhook_id: str = Path(..., description="Approval webhook ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    update_data = request.model_dump(mode="json", exclude_unset=True)
    # name, webhook_url, events and is_active cannot be cleared
    for required in ("name", "webhook_url", "events", "is_active"):
        if update_data.get(required, "") is None:
            del update_data[required]

    hook = await ApprovalWebhookRepository(db).update(webhook_id, **update_data)
    if not hook:
        raise NotFoundError("ApprovalWebhook", webhook_id)

    return success_response(approval_webhook_to_response(hook))


@router.delete(
    "/approval-webhooks/{webhook_id}",
    status_code=204,
    response_class=Response,
    summary="Delete Approval Webhook",
)
async def delete_approval_webhook(
    webhook_id: str = Path(..., description="Approval webhook ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    await ApprovalWebhookRepository(db).delete(webhook_id)
    return Response(status_code=204)


# =============================================================================
# Organizations / Users
# =============================================================================


@router.get("/organizations", summary="List Organizations")
async def list_organizations(
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    organizations = await OrganizationRepository(db).list_all()
    return success_response([organization_to_response(o) for o in organizations])


@router.patch("/organizations/{organization_id}", summary="Update Organization")
async def update_organization(
    request: OrganizationUpdateRequest,
    organization_id: str = Path(..., description="Organization ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Change an organization's plan, rates or limits."""
    update_data = request.model_dump(exclude_unset=True, exclude_none=True)

    if "billing_package" in update_data:
        package = await BillingPackageRepository(db).get_by_name(update_data["billing_package"])
        if not package:
            raise NotFoundError("BillingPackage", update_data["billing_package"])
        # Adopting a package brings its rates and limits unless overridden here
        for key in ("per_call_rate", "per_minute_rate", "monthly_credits", "max_agents", "max_users"):
            update_data.setdefault(key, getattr(package, key))

    organization = await OrganizationRepository(db).update(organization_id, **update_data)
    if not organization:
        raise NotFoundError("Organization", organization_id)

    logger.info(f"Organization {organization_id} updated by {caller.user_id}")

    return success_response(organization_to_response(organization))


@router.get("/users", summary="List Users")
async def list_users(
    organization_id: Optional[str] = Query(None, description="Only users of this organization"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    repo = UserRepository(db)
    skip = (page - 1) * page_size

    if organization_id:
        users = await repo.list_by_organization(organization_id, skip=skip, limit=page_size)
        total = await repo.count_by_organization(organization_id)
    else:
        users = await repo.get_all(skip=skip, limit=page_size)
        total = await repo.count()

    return paginated_response(
        items=[user_to_response(u) for u in users],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.post("/users", status_code=201, summary="Create User")
async def create_user(
    request: UserCreateRequest,
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a user in an existing or newly named organization."""
    users = UserRepository(db)
    organizations = OrganizationRepository(db)

    if await users.get_by_email(request.email):
        raise ConflictError(
            message=f"User with email '{request.email}' already exists",
            code=ErrorCode.RESOURCE_ALREADY_EXISTS,
        )

    if request.organization_id:
        organization = await organizations.get_by_id(request.organization_id)
        if not organization:
            raise NotFoundError("Organization", request.organization_id)
    elif request.company_name and request.company_name.strip():
        organization = await organizations.get_by_name(request.company_name)
        if not organization:
            organization = await organizations.create(name=request.company_name.strip())
            logger.info(f"Organization {organization.id} created for new user")
    else:
        raise ValidationError(
            "Either organization_id or company_name is required",
            field="organization_id",
        )

    user = await users.create(
        organization_id=organization.id,
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role.value,
        is_admin=request.is_admin,
    )

    logger.info(f"User {user.id} created by {caller.user_id}")

    return success_response(user_to_response(user))


@router.get("/users/{user_id}", summary="Get User")
async def get_user(
    user_id: str = Path(..., description="User ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    user = await UserRepository(db).get_by_id(user_id)
    if not user:
        raise NotFoundError("User", user_id)

    return success_response(user_to_response(user))


@router.patch("/users/{user_id}", summary="Update User")
async def update_user(
    request: UserUpdateRequest,
    user_id: str = Path(..., description="User ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Change a user's profile, role or admin flag."""
    repo = UserRepository(db)
    update_data = request.model_dump(mode="json", exclude_unset=True)
    for required in ("email", "role", "is_admin"):
        if update_data.get(required, "") is None:
            del update_data[required]

    if "email" in update_data:
        owner = await repo.get_by_email(update_data["email"])
        if owner and owner.id != user_id:
            raise ConflictError(
                message=f"User with email '{update_data['email']}' already exists",
                code=ErrorCode.RESOURCE_ALREADY_EXISTS,
            )

    user = await repo.update(user_id, **update_data)
    if not user:
        raise NotFoundError("User", user_id)

    logger.info(f"User {user_id} updated by {caller.user_id}")

    return success_response(user_to_response(user))


@router.delete(
    "/users/{user_id}",
    status_code=204,
    response_class=Response,
    summary="Delete User",
)
async def delete_user(
    user_id: str = Path(..., description="User ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    if await UserRepository(db).delete(user_id):
        logger.info(f"User {user_id} deleted by {caller.user_id}")
    return Response(status_code=204)


# =============================================================================
# Billing
# =============================================================================


@router.get("/billing", summary="Billing Overview")
async def billing_overview(
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Platform totals with a per-organization breakdown."""
    overview = await OrganizationRepository(db).get_billing_overview()

    return success_response({
        "total_users": overview.total_users,
        "total_organizations": overview.total_organizations,
        "total_calls": overview.total_calls,
        "total_revenue": overview.total_revenue,
        "organizations": [vars(org) for org in overview.organizations],
    })


@router.get("/payments", summary="List All Payments")
async def list_payments(
    organization_id: Optional[str] = Query(None, description="Only payments of this organization"),
    status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Payments of every organization, newest first."""
    repo = PaymentRepository(db)

    payments = await repo.list_all(
        organization_id=organization_id,
        status=status,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    total = await repo.count_all(organization_id=organization_id, status=status)

    return paginated_response(
        items=[payment_to_response(p) for p in payments],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.get("/billing-packages", summary="List All Billing Packages")
async def list_billing_packages(
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    packages = await BillingPackageRepository(db).get_all()
    return success_response([billing_package_to_response(p) for p in packages])


@router.post("/billing-packages", status_code=201, summary="Create Billing Package")
async def create_billing_package(
    request: BillingPackageCreateRequest,
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    repo = BillingPackageRepository(db)

    if await repo.get_by_name(request.name):
        raise ConflictError(
            message=f"Billing package '{request.name}' already exists",
            code=ErrorCode.RESOURCE_ALREADY_EXISTS,
        )

    package = await repo.create(**request.model_dump())

    logger.info(f"Billing package {package.name} created by {caller.user_id}")

    return success_response(billing_package_to_response(package))


@router.patch("/billing-packages/{package_id}", summary="Update Billing Package")
async def update_billing_package(
    request: BillingPackageUpdateRequest,
    package_id: str = Path(..., description="Billing package ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    package = await BillingPackageRepository(db).update(
        package_id, **request.model_dump(exclude_unset=True, exclude_none=True)
    )
    if not package:
        raise NotFoundError("BillingPackage", package_id)

    return success_response(billing_package_to_response(package))


@router.delete(
    "/billing-packages/{package_id}",
    status_code=204,
    response_class=Response,
    summary="Delete Billing Package",
)
async def delete_billing_package(
    package_id: str = Path(..., description="Billing package ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a package. Payments that referenced it keep their history."""
    await BillingPackageRepository(db).delete(package_id)
    return Response(status_code=204)
