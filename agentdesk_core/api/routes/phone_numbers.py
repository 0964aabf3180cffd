"""
Phone Number API Routes

This module provides REST API endpoints for managing phone numbers.
Provider secrets are write-only: responses carry a masked form.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from ...database.encrypted_types import mask_secret
from ...database.models import PhoneNumberStatus
from ...database.repositories import AgentRepository, PhoneNumberRepository
from ..auth import CallerContext
from ..base import NotFoundError, paginated_response, success_response
from ..dependencies import get_caller_context, get_db_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/phone-numbers", tags=["Phone Numbers"])


# =============================================================================
# Request/Response Models
# =============================================================================


class PhoneProvider(str, Enum):
    TWILIO = "twilio"
    SIP_TRUNK = "sip_trunk"


class PhoneNumberCreateRequest(BaseModel):
    """Register a phone number."""

    label: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=3, max_length=50)
    country_code: str = Field(default="+1", max_length=10)
    provider: PhoneProvider

    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    sip_trunk_uri: Optional[str] = None
    sip_username: Optional[str] = None
    sip_password: Optional[str] = None

    external_phone_id: Optional[str] = None
    agent_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def check_provider_fields(self):
        if self.provider == PhoneProvider.TWILIO and not self.twilio_account_sid:
            raise ValueError("twilio_account_sid is required for Twilio numbers")
        if self.provider == PhoneProvider.SIP_TRUNK and not self.sip_trunk_uri:
            raise ValueError("sip_trunk_uri is required for SIP trunk numbers")
        return self


class PhoneNumberUpdateRequest(BaseModel):
    """Update a phone number.

    Omitted fields are left unchanged. An explicit null clears a nullable
    field; null for ``label`` or ``status`` is ignored.
    """

    label: Optional[str] = Field(default=None, min_length=1, max_length=100)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    sip_trunk_uri: Optional[str] = None
    sip_username: Optional[str] = None
    sip_password: Optional[str] = None
    external_phone_id: Optional[str] = None
    status: Optional[PhoneNumberStatus] = None
    metadata: Optional[Dict[str, Any]] = None


class AssignAgentRequest(BaseModel):
    agent_id: Optional[str] = Field(
        default=None,
        description="Agent to route calls to; null clears the assignment",
    )


def phone_number_to_response(phone) -> dict:
    """Convert database phone number model to response dict."""
    return {
        "id": phone.id,
        "organization_id": phone.organization_id,
        "label": phone.label,
        "phone_number": phone.phone_number,
        "country_code": phone.country_code,
        "provider": phone.provider,
        "twilio_account_sid": phone.twilio_account_sid,
        "twilio_auth_token": mask_secret(phone.twilio_auth_token),
        "sip_trunk_uri": phone.sip_trunk_uri,
        "sip_username": phone.sip_username,
        "sip_password": mask_secret(phone.sip_password),
        "external_phone_id": phone.external_phone_id,
        "agent_id": phone.agent_id,
        "external_agent_id": phone.external_agent_id,
        "status": phone.status,
        "last_synced": phone.last_synced,
        "metadata": phone.metadata_json or {},
        "created_at": phone.created_at,
        "updated_at": phone.updated_at,
    }


# =============================================================================
# Routes
# =============================================================================


@router.post("", status_code=201, summary="Create Phone Number")
async def create_phone_number(
    request: PhoneNumberCreateRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Register a phone number for the organization."""
    external_agent_id = None
    if request.agent_id:
        agent = await AgentRepository(db).get(request.agent_id, caller.organization_id)
        if not agent:
            raise NotFoundError("Agent", request.agent_id)
        external_agent_id = agent.external_agent_id

    phone = await PhoneNumberRepository(db).create(
        organization_id=caller.organization_id,
        label=request.label,
        phone_number=request.phone_number,
        country_code=request.country_code,
        provider=request.provider.value,
        twilio_account_sid=request.twilio_account_sid,
        twilio_auth_token=request.twilio_auth_token,
        sip_trunk_uri=request.sip_trunk_uri,
        sip_username=request.sip_username,
        sip_password=request.sip_password,
        external_phone_id=request.external_phone_id,
        agent_id=request.agent_id,
        external_agent_id=external_agent_id,
        metadata_json=request.metadata,
    )

    logger.info(f"Created phone number {phone.id} for org {caller.organization_id}")

    return success_response(phone_number_to_response(phone))


@router.get("", summary="List Phone Numbers")
async def list_phone_numbers(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """List phone numbers."""
    repo = PhoneNumberRepository(db)

    phones = await repo.list_by_organization(
        caller.organization_id,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    total = await repo.count_by_organization(caller.organization_id)

    return paginated_response(
        items=[phone_number_to_response(p) for p in phones],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.get("/{phone_number_id}", summary="Get Phone Number")
async def get_phone_number(
    phone_number_id: str = Path(..., description="Phone number ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    phone = await PhoneNumberRepository(db).get(phone_number_id, caller.organization_id)
    if not phone:
        raise NotFoundError("PhoneNumber", phone_number_id)

    return success_response(phone_number_to_response(phone))


@router.patch("/{phone_number_id}", summary="Update Phone Number")
async def update_phone_number(
    request: PhoneNumberUpdateRequest,
    phone_number_id: str = Path(..., description="Phone number ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    update_data = request.model_dump(exclude_unset=True)
    for required in ("label", "status"):
        if update_data.get(required, "") is None:
            del update_data[required]
    if "metadata" in update_data:
        update_data["metadata_json"] = update_data.pop("metadata")
    if "status" in update_data:
        update_data["status"] = request.status.value

    phone = await PhoneNumberRepository(db).update(
        phone_number_id, caller.organization_id, **update_data
    )
    if not phone:
        raise NotFoundError("PhoneNumber", phone_number_id)

    logger.info(f"Updated phone number {phone_number_id}")

    return success_response(phone_number_to_response(phone))


@router.patch("/{phone_number_id}/assign-agent", summary="Assign Agent")
async def assign_agent(
    request: AssignAgentRequest,
    phone_number_id: str = Path(..., description="Phone number ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Route a phone number to an agent of the same organization."""
    phone = await PhoneNumberRepository(db).assign_agent(
        phone_number_id, caller.organization_id, request.agent_id
    )
    if not phone:
        raise NotFoundError("PhoneNumber", phone_number_id)

    logger.info(f"Assigned phone number {phone_number_id} to agent {request.agent_id}")

    return success_response(phone_number_to_response(phone))


@router.delete(
    "/{phone_number_id}",
    status_code=204,
    response_class=Response,
    summary="Delete Phone Number",
)
async def delete_phone_number(
    phone_number_id: str = Path(..., description="Phone number ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    await PhoneNumberRepository(db).delete(phone_number_id, caller.organization_id)
    return Response(status_code=204)
