"""
RAG Configuration API Routes

Knowledge-base webhook configurations. A configuration is reviewed by an
administrator after it is first saved and again whenever its webhook,
configuration or system prompt changes after a decision.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...approvals import ApprovalService
from ...database.models import ApprovalStatus
from ...database.repositories import RagConfigurationRepository
from ..auth import CallerContext
from ..base import NotFoundError, paginated_response, success_response
from ..dependencies import get_caller_context, get_db_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rag-configurations", tags=["Knowledge Base"])


class RagConfigurationCreateRequest(BaseModel):
    name: str = Field(default="Custom RAG", min_length=1, max_length=255)
    description: Optional[str] = None
    webhook_url: Optional[str] = Field(default=None, max_length=500)
    system_prompt: Optional[str] = None
    configuration: Optional[Dict[str, Any]] = None


class RagConfigurationUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    webhook_url: Optional[str] = Field(default=None, max_length=500)
    system_prompt: Optional[str] = None
    configuration: Optional[Dict[str, Any]] = None


def rag_configuration_to_response(config) -> dict:
    """Convert database RAG configuration model to response dict."""
    return {
        "id": config.id,
        "organization_id": config.organization_id,
        "name": config.name,
        "description": config.description,
        "webhook_url": config.webhook_url,
        "system_prompt": config.system_prompt,
        "configuration": config.configuration or {},
        "approval_status": config.approval_status,
        "approved_by": config.approved_by,
        "approved_at": config.approved_at,
        "first_saved_at": config.first_saved_at,
        "created_at": config.created_at,
        "updated_at": config.updated_at,
    }


@router.post("", status_code=201, summary="Create RAG Configuration")
async def create_rag_configuration(
    request: RagConfigurationCreateRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    config = await ApprovalService(db).submit_rag_configuration(
        caller.organization_id,
        requested_by=caller.user_id,
        **request.model_dump(),
    )

    logger.info(f"Created RAG configuration {config.id} for org {caller.organization_id}")

    return success_response(rag_configuration_to_response(config))


@router.get("", summary="List RAG Configurations")
async def list_rag_configurations(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    approval_status: Optional[ApprovalStatus] = Query(None, description="Filter by review state"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    repo = RagConfigurationRepository(db)
    skip = (page - 1) * page_size

    if approval_status:
        configs = await repo.list_by_status(
            caller.organization_id, approval_status, skip=skip, limit=page_size
        )
        total = await repo.count_by_status(caller.organization_id, approval_status)
    else:
        configs = await repo.list_by_organization(
            caller.organization_id, skip=skip, limit=page_size
        )
        total = await repo.count_by_organization(caller.organization_id)

    return paginated_response(
        items=[rag_configuration_to_response(c) for c in configs],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.get("/{config_id}", summary="Get RAG Configuration")
async def get_rag_configuration(
    config_id: str = Path(..., description="RAG configuration ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    config = await RagConfigurationRepository(db).get(config_id, caller.organization_id)
    if not config:
        raise NotFoundError("RagConfiguration", config_id)

    return success_response(rag_configuration_to_response(config))


@router.patch("/{config_id}", summary="Update RAG Configuration")
async def update_rag_configuration(
    request: RagConfigurationUpdateRequest,
    config_id: str = Path(..., description="RAG configuration ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    config = await ApprovalService(db).update_rag_configuration(
        config_id,
        caller.organization_id,
        requested_by=caller.user_id,
        **request.model_dump(exclude_unset=True),
    )
    if not config:
        raise NotFoundError("RagConfiguration", config_id)

    logger.info(f"Updated RAG configuration {config_id}")

    return success_response(rag_configuration_to_response(config))


@router.delete(
    "/{config_id}",
    status_code=204,
    response_class=Response,
    summary="Delete RAG Configuration",
)
async def delete_rag_configuration(
    config_id: str = Path(..., description="RAG configuration ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    await RagConfigurationRepository(db).delete(config_id, caller.organization_id)
    return Response(status_code=204)
