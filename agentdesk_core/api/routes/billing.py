"""
Billing API Routes

Tenant-facing billing: the package catalog, the organization's own payment
history and its current rates and credits. Checkout itself runs through the
payment gateway and is not handled here.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...database.repositories import (
    BillingPackageRepository,
    OrganizationRepository,
    PaymentRepository,
)
from ..auth import CallerContext
from ..base import paginated_response, success_response
from ..dependencies import get_caller_context, get_db_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


def billing_package_to_response(package) -> dict:
    """Convert database billing package model to response dict."""
    return {
        "id": package.id,
        "name": package.name,
        "display_name": package.display_name,
        "per_call_rate": float(package.per_call_rate),
        "per_minute_rate": float(package.per_minute_rate),
        "monthly_credits": package.monthly_credits,
        "max_agents": package.max_agents,
        "max_users": package.max_users,
        "features": package.features or [],
        "monthly_price": float(package.monthly_price),
        "yearly_price": float(package.yearly_price) if package.yearly_price is not None else None,
        "stripe_product_id": package.stripe_product_id,
        "stripe_price_id": package.stripe_price_id,
        "is_active": package.is_active,
    }


def payment_to_response(payment) -> dict:
    """Convert database payment model to response dict."""
    return {
        "id": payment.id,
        "organization_id": payment.organization_id,
        "package_id": payment.package_id,
        "amount": float(payment.amount),
        "currency": payment.currency,
        "status": payment.status,
        "payment_method": payment.payment_method,
        "transaction_id": payment.transaction_id,
        "description": payment.description,
        "completed_at": payment.completed_at,
        "failed_at": payment.failed_at,
        "created_at": payment.created_at,
    }


@router.get("/packages", summary="List Billing Packages")
async def list_packages(
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    packages = await BillingPackageRepository(db).list_active()
    return success_response([billing_package_to_response(p) for p in packages])


@router.get("/payments", summary="List Payments")
async def list_payments(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    repo = PaymentRepository(db)

    payments = await repo.list_by_organization(
        caller.organization_id,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    total = await repo.count_by_organization(caller.organization_id)

    return paginated_response(
        items=[payment_to_response(p) for p in payments],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.get("/summary", summary="Billing Summary")
async def billing_summary(
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Current package, rates and credits of the caller's organization."""
    organization = await OrganizationRepository(db).get_by_id(caller.organization_id)
    total_paid = await PaymentRepository(db).total_completed(caller.organization_id)

    return success_response({
        "billing_package": organization.billing_package,
        "billing_status": organization.billing_status,
        "per_call_rate": float(organization.per_call_rate),
        "per_minute_rate": float(organization.per_minute_rate),
        "custom_rate_enabled": organization.custom_rate_enabled,
        "monthly_credits": organization.monthly_credits,
        "used_credits": organization.used_credits,
        "credit_reset_date": organization.credit_reset_date,
        "last_payment_date": organization.last_payment_date,
        "total_paid": float(total_paid),
    })
