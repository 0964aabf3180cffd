"""
Batch Call API Routes

Bulk outbound calling jobs and their recipients. Dialing is done by the
voice provider; this service only stores the job and the per-recipient
status the provider reports back.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...database.models import RecipientStatus
from ...database.repositories import AgentRepository, BatchCallRepository, PhoneNumberRepository
from ..auth import CallerContext
from ..base import NotFoundError, paginated_response, success_response
from ..dependencies import get_caller_context, get_db_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/batch-calls", tags=["Batch Calls"])


# =============================================================================
# Request/Response Models
# =============================================================================


class BatchCallCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    agent_id: str = Field(..., description="Agent placing the calls")
    phone_number_id: Optional[str] = Field(default=None, description="Caller ID number")
    estimated_cost: Optional[Decimal] = Field(default=None, ge=0)
    metadata: Optional[Dict[str, Any]] = None


class RecipientInput(BaseModel):
    phone_number: str = Field(..., min_length=3, max_length=50)
    variables: Optional[Dict[str, Any]] = None


class AddRecipientsRequest(BaseModel):
    recipients: List[RecipientInput] = Field(..., min_length=1)


class RecipientStatusRequest(BaseModel):
    status: RecipientStatus
    call_duration: Optional[int] = Field(default=None, ge=0)
    call_cost: Optional[Decimal] = Field(default=None, ge=0)
    error_message: Optional[str] = None
    conversation_id: Optional[str] = None


def _money(value) -> Optional[float]:
    return float(value) if value is not None else None


def batch_call_to_response(batch) -> dict:
    """Convert database batch call model to response dict."""
    return {
        "id": batch.id,
        "organization_id": batch.organization_id,
        "user_id": batch.user_id,
        "name": batch.name,
        "agent_id": batch.agent_id,
        "phone_number_id": batch.phone_number_id,
        "external_batch_id": batch.external_batch_id,
        "status": batch.status,
        "total_recipients": batch.total_recipients,
        "completed_calls": batch.completed_calls,
        "failed_calls": batch.failed_calls,
        "estimated_cost": _money(batch.estimated_cost),
        "actual_cost": _money(batch.actual_cost),
        "metadata": batch.metadata_json or {},
        "started_at": batch.started_at,
        "completed_at": batch.completed_at,
        "created_at": batch.created_at,
        "updated_at": batch.updated_at,
    }


def recipient_to_response(recipient) -> dict:
    """Convert database recipient model to response dict."""
    return {
        "id": recipient.id,
        "batch_call_id": recipient.batch_call_id,
        "phone_number": recipient.phone_number,
        "status": recipient.status,
        "variables": recipient.variables or {},
        "call_duration": recipient.call_duration,
        "call_cost": _money(recipient.call_cost),
        "error_message": recipient.error_message,
        "conversation_id": recipient.conversation_id,
        "called_at": recipient.called_at,
        "completed_at": recipient.completed_at,
    }


# =============================================================================
# Routes
# =============================================================================


@router.post("", status_code=201, summary="Create Batch Call")
async def create_batch_call(
    request: BatchCallCreateRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a draft batch call for an agent of the organization."""
    if not await AgentRepository(db).exists(request.agent_id, caller.organization_id):
        raise NotFoundError("Agent", request.agent_id)
    if request.phone_number_id and not await PhoneNumberRepository(db).exists(
        request.phone_number_id, caller.organization_id
    ):
        raise NotFoundError("PhoneNumber", request.phone_number_id)

    batch = await BatchCallRepository(db).create(
        organization_id=caller.organization_id,
        user_id=caller.user_id,
        name=request.name,
        agent_id=request.agent_id,
        phone_number_id=request.phone_number_id,
        estimated_cost=request.estimated_cost,
        metadata_json=request.metadata,
    )

    logger.info(f"Created batch call {batch.id} for org {caller.organization_id}")

    return success_response(batch_call_to_response(batch))


@router.get("", summary="List Batch Calls")
async def list_batch_calls(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    repo = BatchCallRepository(db)

    batches = await repo.list_by_organization(
        caller.organization_id,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    total = await repo.count_by_organization(caller.organization_id)

    return paginated_response(
        items=[batch_call_to_response(b) for b in batches],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.get("/{batch_call_id}", summary="Get Batch Call")
async def get_batch_call(
    batch_call_id: str = Path(..., description="Batch call ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Get a batch call with its recipients."""
    repo = BatchCallRepository(db)

    batch = await repo.get(batch_call_id, caller.organization_id)
    if not batch:
        raise NotFoundError("BatchCall", batch_call_id)
    recipients = await repo.list_recipients(batch_call_id, caller.organization_id)

    data = batch_call_to_response(batch)
    data["recipients"] = [recipient_to_response(r) for r in recipients]
    return success_response(data)


@router.post("/{batch_call_id}/recipients", status_code=201, summary="Add Recipients")
async def add_recipients(
    request: AddRecipientsRequest,
    batch_call_id: str = Path(..., description="Batch call ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    repo = BatchCallRepository(db)

    recipients = await repo.add_recipients(
        batch_call_id,
        caller.organization_id,
        [r.model_dump() for r in request.recipients],
    )
    if recipients is None:
        raise NotFoundError("BatchCall", batch_call_id)

    logger.info(f"Added {len(recipients)} recipients to batch call {batch_call_id}")

    return success_response([recipient_to_response(r) for r in recipients])


@router.patch(
    "/{batch_call_id}/recipients/{recipient_id}",
    summary="Update Recipient Status",
)
async def update_recipient_status(
    request: RecipientStatusRequest,
    batch_call_id: str = Path(..., description="Batch call ID"),
    recipient_id: str = Path(..., description="Recipient ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Persist a status reported by the voice provider."""
    recipient = await BatchCallRepository(db).update_recipient_status(
        batch_call_id,
        recipient_id,
        caller.organization_id,
        request.status,
        **request.model_dump(exclude={"status"}, exclude_unset=True),
    )
    if recipient is None:
        raise NotFoundError("BatchCallRecipient", recipient_id)

    return success_response(recipient_to_response(recipient))


@router.delete(
    "/{batch_call_id}",
    status_code=204,
    response_class=Response,
    summary="Delete Batch Call",
)
async def delete_batch_call(
    batch_call_id: str = Path(..., description="Batch call ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a batch call; its recipients go with it."""
    await BatchCallRepository(db).delete(batch_call_id, caller.organization_id)
    return Response(status_code=204)
