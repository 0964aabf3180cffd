"""
Agent API Routes

This module provides REST API endpoints for managing voice agents.

Agents mirror agents hosted by the conversational-voice provider; the
hosted agent ID arrives with the create request. Reads of an agent owned by
another organization answer 404, and deletes always answer 204.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...agent_config import (
    AgentTools,
    DataCollection,
    EvaluationCriteria,
    LLMSettings,
    PromptTemplate,
    VoiceSettings,
)
from ...database.repositories import AgentRepository, OrganizationRepository
from ..auth import CallerContext
from ..base import (
    ConflictError,
    NotFoundError,
    paginated_response,
    success_response,
)
from ..dependencies import get_caller_context, get_db_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agents", tags=["Agents"])


# =============================================================================
# Request/Response Models
# =============================================================================


class AgentCreateRequest(BaseModel):
    """Request to register an agent."""

    external_agent_id: str = Field(
        ...,
        min_length=1,
        description="ID of the agent at the hosted voice provider",
    )
    name: str = Field(..., min_length=1, max_length=255, description="Agent name")
    description: Optional[str] = Field(default=None, description="Agent description")
    first_message: Optional[str] = Field(default=None, description="Greeting spoken first")
    system_prompt: Optional[str] = Field(default=None, description="System prompt")
    language: str = Field(default="en", max_length=10, description="Language code")
    voice_id: Optional[str] = Field(default=None, description="Provider voice ID")

    voice_settings: VoiceSettings = Field(default_factory=VoiceSettings)
    llm_settings: LLMSettings = Field(default_factory=LLMSettings)
    tools: AgentTools = Field(default_factory=AgentTools)
    dynamic_variables: Dict[str, str] = Field(default_factory=dict)
    evaluation_criteria: EvaluationCriteria = Field(default_factory=EvaluationCriteria)
    data_collection: DataCollection = Field(default_factory=DataCollection)
    prompt_templates: List[PromptTemplate] = Field(default_factory=list)


# Nullable columns that an explicit null clears on update
CLEARABLE_FIELDS = frozenset({"description", "first_message", "system_prompt", "voice_id"})


class AgentUpdateRequest(BaseModel):
    """Request to update an agent.

    Omitted fields are left unchanged. An explicit null clears the fields in
    ``CLEARABLE_FIELDS`` and is ignored for the rest.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    first_message: Optional[str] = None
    system_prompt: Optional[str] = None
    language: Optional[str] = Field(default=None, max_length=10)
    voice_id: Optional[str] = None
    voice_settings: Optional[VoiceSettings] = None
    llm_settings: Optional[LLMSettings] = None
    tools: Optional[AgentTools] = None
    dynamic_variables: Optional[Dict[str, str]] = None
    evaluation_criteria: Optional[EvaluationCriteria] = None
    data_collection: Optional[DataCollection] = None
    prompt_templates: Optional[List[PromptTemplate]] = None
    is_active: Optional[bool] = None


def agent_to_response(agent) -> dict:
    """Convert database agent model to response dict."""
    return {
        "id": agent.id,
        "organization_id": agent.organization_id,
        "external_agent_id": agent.external_agent_id,
        "name": agent.name,
        "description": agent.description,
        "first_message": agent.first_message,
        "system_prompt": agent.system_prompt,
        "language": agent.language,
        "voice_id": agent.voice_id,
        "voice_settings": agent.voice_settings.model_dump(mode="json"),
        "llm_settings": agent.llm_settings.model_dump(mode="json"),
        "tools": agent.tools.model_dump(mode="json"),
        "dynamic_variables": agent.dynamic_variables or {},
        "evaluation_criteria": agent.evaluation_criteria.model_dump(mode="json"),
        "data_collection": agent.data_collection.model_dump(mode="json"),
        "prompt_templates": [t.model_dump(mode="json") for t in agent.prompt_templates or []],
        "is_active": agent.is_active,
        "created_at": agent.created_at,
        "updated_at": agent.updated_at,
    }


def agent_to_summary(agent) -> dict:
    """Convert database agent model to summary dict."""
    return {
        "id": agent.id,
        "external_agent_id": agent.external_agent_id,
        "name": agent.name,
        "description": agent.description,
        "language": agent.language,
        "is_active": agent.is_active,
        "created_at": agent.created_at,
        "updated_at": agent.updated_at,
    }


# =============================================================================
# Routes
# =============================================================================


@router.post(
    "",
    status_code=201,
    summary="Create Agent",
    description="Register a hosted voice agent for the caller's organization.",
)
async def create_agent(
    request: AgentCreateRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Create an agent."""
    repo = AgentRepository(db)

    organization = await OrganizationRepository(db).get_by_id(caller.organization_id)
    existing = await repo.count_by_organization(caller.organization_id)
    if organization and existing >= organization.max_agents:
        raise ConflictError(
            message=f"Organization has reached its limit of {organization.max_agents} agents",
            details={"max_agents": organization.max_agents},
        )

    agent = await repo.create(
        organization_id=caller.organization_id,
        **request.model_dump(exclude={"voice_settings", "llm_settings", "tools",
                                      "evaluation_criteria", "data_collection",
                                      "prompt_templates"}),
        voice_settings=request.voice_settings,
        llm_settings=request.llm_settings,
        tools=request.tools,
        evaluation_criteria=request.evaluation_criteria,
        data_collection=request.data_collection,
        prompt_templates=request.prompt_templates,
    )

    logger.info(f"Created agent {agent.id} for org {caller.organization_id}")

    return success_response(agent_to_response(agent))


@router.get(
    "",
    summary="List Agents",
    description="List all agents for the organization.",
)
async def list_agents(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """List agents."""
    repo = AgentRepository(db)

    agents = await repo.list_by_organization(
        caller.organization_id,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    total = await repo.count_by_organization(caller.organization_id)

    return paginated_response(
        items=[agent_to_summary(a) for a in agents],
        page=page,
        page_size=page_size,
        total_items=total,
    )


@router.get(
    "/{agent_id}",
    summary="Get Agent",
    description="Get details of a specific agent.",
)
async def get_agent(
    agent_id: str = Path(..., description="Agent ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Get agent by ID."""
    agent = await AgentRepository(db).get(agent_id, caller.organization_id)
    if not agent:
        raise NotFoundError("Agent", agent_id)

    return success_response(agent_to_response(agent))


@router.patch(
    "/{agent_id}",
    summary="Update Agent",
    description="Update an existing agent's configuration.",
)
async def update_agent(
    request: AgentUpdateRequest,
    agent_id: str = Path(..., description="Agent ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Update an agent."""
    update_data = {
        key: getattr(request, key)
        for key in request.model_fields_set
        if getattr(request, key) is not None or key in CLEARABLE_FIELDS
    }

    agent = await AgentRepository(db).update(agent_id, caller.organization_id, **update_data)
    if not agent:
        raise NotFoundError("Agent", agent_id)

    logger.info(f"Updated agent {agent_id}")

    return success_response(agent_to_response(agent))


@router.delete(
    "/{agent_id}",
    status_code=204,
    response_class=Response,
    summary="Delete Agent",
    description="Delete an agent. Call history keeps its reference to the agent.",
)
async def delete_agent(
    agent_id: str = Path(..., description="Agent ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete an agent."""
    await AgentRepository(db).delete(agent_id, caller.organization_id)
    return Response(status_code=204)
