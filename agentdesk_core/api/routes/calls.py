"""
Call Log API Routes

Call history is append-only: calls are recorded once from the voice
provider's post-call event and never edited or deleted.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...database.repositories import AgentRepository, CallLogRepository
from ..auth import CallerContext
from ..base import NotFoundError, paginated_response, success_response
from ..dependencies import get_caller_context, get_db_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/call-logs", tags=["Calls"])
analytics_router = APIRouter(prefix="/analytics", tags=["Analytics"])


# =============================================================================
# Request/Response Models
# =============================================================================


class CallLogCreateRequest(BaseModel):
    """A completed call reported by the voice provider."""

    agent_id: Optional[str] = Field(default=None, description="Local agent ID")
    external_agent_id: Optional[str] = Field(
        default=None,
        description="Hosted agent ID, resolved to the local agent when agent_id is absent",
    )
    conversation_id: Optional[str] = None
    external_call_id: Optional[str] = Field(default=None, description="Provider call ID")
    duration: Optional[int] = Field(default=None, ge=0, description="Duration in seconds")
    transcript: Optional[Any] = None
    audio_url: Optional[str] = None
    cost: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[str] = "completed"


def call_log_to_response(call_log) -> dict:
    """Convert database call log model to response dict."""
    return {
        "id": call_log.id,
        "organization_id": call_log.organization_id,
        "agent_id": call_log.agent_id,
        "conversation_id": call_log.conversation_id,
        "external_call_id": call_log.external_call_id,
        "duration": call_log.duration,
        "transcript": call_log.transcript,
        "audio_url": call_log.audio_url,
        "cost": float(call_log.cost) if call_log.cost is not None else None,
        "status": call_log.status,
        "created_at": call_log.created_at,
    }


# =============================================================================
# Routes
# =============================================================================


@router.get(
    "",
    summary="List Call Logs",
    description="List call history, newest first, optionally for one agent.",
)
async def list_call_logs(
    agent_id: Optional[str] = Query(None, description="Only calls handled by this agent"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """List call logs."""
    repo = CallLogRepository(db)

    call_logs = await repo.list_for_organization(
        caller.organization_id,
        agent_id=agent_id,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    total = await repo.count_for_organization(caller.organization_id, agent_id=agent_id)

    return paginated_response(
        items=[call_log_to_response(c) for c in call_logs],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.get(
    "/{call_log_id}",
    summary="Get Call Log",
)
async def get_call_log(
    call_log_id: str = Path(..., description="Call log ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Get call log by ID."""
    call_log = await CallLogRepository(db).get(call_log_id, caller.organization_id)
    if not call_log:
        raise NotFoundError("CallLog", call_log_id)

    return success_response(call_log_to_response(call_log))


@router.post(
    "",
    status_code=201,
    summary="Record Call",
    description="Record a completed call. Re-sending a known provider call ID returns the existing record.",
)
async def record_call_log(
    request: CallLogCreateRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Record a call event."""
    repo = CallLogRepository(db)

    if request.external_call_id:
        existing = await repo.get_by_external_id(request.external_call_id, caller.organization_id)
        if existing:
            return success_response(call_log_to_response(existing))

    agent_id = request.agent_id
    if agent_id is None and request.external_agent_id:
        agent = await AgentRepository(db).get_by_external_id(
            request.external_agent_id, caller.organization_id
        )
        agent_id = agent.id if agent else None

    call_log = await repo.record(
        caller.organization_id,
        agent_id=agent_id,
        conversation_id=request.conversation_id,
        external_call_id=request.external_call_id,
        duration=request.duration,
        transcript=request.transcript,
        audio_url=request.audio_url,
        cost=request.cost,
        status=request.status,
    )

    logger.info(f"Recorded call {call_log.id} for org {caller.organization_id}")

    return success_response(call_log_to_response(call_log))


@analytics_router.get(
    "/organization",
    summary="Organization Stats",
    description="Call totals and active agents for the caller's organization.",
)
async def organization_stats(
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Get organization dashboard stats."""
    stats = await CallLogRepository(db).get_organization_stats(caller.organization_id)

    return success_response({
        "total_calls": stats.total_calls,
        "total_minutes": stats.total_minutes,
        "estimated_cost": stats.estimated_cost,
        "active_agents": stats.active_agents,
        "last_sync": stats.last_sync.isoformat() if isinstance(stats.last_sync, datetime) else None,
    })
