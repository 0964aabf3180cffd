"""
Integration API Routes

One integration per provider and organization. Saving a key puts the
integration up for administrator review; the key itself is never returned.
"""

import logging

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...approvals import ApprovalService
from ...database.repositories import IntegrationRepository
from ..auth import CallerContext
from ..base import NotFoundError, success_response
from ..dependencies import get_caller_context, get_db_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/integrations", tags=["Integrations"])


class IntegrationSaveRequest(BaseModel):
    api_key: str = Field(..., min_length=1, max_length=512, description="Provider API key")


def integration_to_response(integration) -> dict:
    """Convert database integration model to response dict."""
    return {
        "id": integration.id,
        "organization_id": integration.organization_id,
        "provider": integration.provider,
        "status": integration.status,
        "has_api_key": bool(integration.api_key),
        "last_tested": integration.last_tested,
        "created_at": integration.created_at,
        "updated_at": integration.updated_at,
    }


@router.get("", summary="List Integrations")
async def list_integrations(
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    integrations = await IntegrationRepository(db).list_by_organization(caller.organization_id)
    return success_response([integration_to_response(i) for i in integrations])


@router.get("/{provider}", summary="Get Integration")
async def get_integration(
    provider: str = Path(..., description="Provider name"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    integration = await IntegrationRepository(db).get_by_provider(caller.organization_id, provider)
    if not integration:
        raise NotFoundError("Integration", provider)

    return success_response(integration_to_response(integration))


@router.put("/{provider}", summary="Save Integration")
async def save_integration(
    request: IntegrationSaveRequest,
    provider: str = Path(..., min_length=1, max_length=50, description="Provider name"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Create or replace the organization's key for a provider."""
    integration = await ApprovalService(db).submit_integration(
        caller.organization_id,
        provider,
        request.api_key,
        requested_by=caller.user_id,
    )

    logger.info(f"Saved {provider} integration for org {caller.organization_id}")

    return success_response(integration_to_response(integration))
