"""
Prompt Catalog API Routes

System templates and quick action buttons that help tenants write agent
prompts. Administrators curate the system catalog under ``/admin``. Tenants
read it and keep their own quick action buttons next to the system ones.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ...database.repositories import QuickActionButtonRepository, SystemTemplateRepository
from ..auth import CallerContext
from ..base import NotFoundError, success_response
from ..dependencies import get_caller_context, get_db_session, require_admin


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Prompt Catalog"])
admin_catalog_router = APIRouter(prefix="/admin", tags=["Admin"])

# Columns a PATCH may not set to null
_REQUIRED_FIELDS = ("name", "content", "prompt", "icon", "color", "sort_order", "is_active")


# =============================================================================
# Request/Response Models
# =============================================================================


class SystemTemplateCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=255)
    sort_order: int = 0
    is_active: bool = True


class SystemTemplateUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=255)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class QuickActionButtonCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    prompt: str = Field(..., min_length=1)
    icon: str = Field(default="Sparkles", max_length=50)
    color: str = Field(default="bg-blue-500 hover:bg-blue-600", max_length=255)
    category: Optional[str] = Field(default=None, max_length=100)
    sort_order: int = 0
    is_active: bool = True


class QuickActionButtonUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    prompt: Optional[str] = Field(default=None, min_length=1)
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=255)
    category: Optional[str] = Field(default=None, max_length=100)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


def _changes(request: BaseModel) -> dict:
    """Set fields of a PATCH body; null clears optional columns only."""
    update_data = request.model_dump(exclude_unset=True)
    return {
        key: value
        for key, value in update_data.items()
        if value is not None or key not in _REQUIRED_FIELDS
    }


def system_template_to_response(template) -> dict:
    """Convert database system template model to response dict."""
    return {
        "id": template.id,
        "name": template.name,
        "content": template.content,
        "icon": template.icon,
        "color": template.color,
        "sort_order": template.sort_order,
        "is_active": template.is_active,
        "created_at": template.created_at,
        "updated_at": template.updated_at,
    }


def quick_action_button_to_response(button) -> dict:
    """Convert database quick action button model to response dict."""
    return {
        "id": button.id,
        "name": button.name,
        "prompt": button.prompt,
        "icon": button.icon,
        "color": button.color,
        "category": button.category,
        "sort_order": button.sort_order,
        "is_system": button.is_system,
        "is_active": button.is_active,
        "organization_id": button.organization_id,
        "created_by": button.created_by,
        "created_at": button.created_at,
        "updated_at": button.updated_at,
    }


# =============================================================================
# Tenant Endpoints
# =============================================================================


@router.get("/system-templates", summary="List System Templates")
async def list_system_templates(
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Active templates in display order."""
    templates = await SystemTemplateRepository(db).list_ordered(active_only=True)
    return success_response([system_template_to_response(t) for t in templates])


@router.get("/quick-action-buttons", summary="List Quick Action Buttons")
async def list_quick_action_buttons(
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Active system buttons, then the organization's own buttons."""
    buttons = await QuickActionButtonRepository(db).list_visible(caller.organization_id)
    return success_response([quick_action_button_to_response(b) for b in buttons])


@router.post("/quick-action-buttons", status_code=201, summary="Create Quick Action Button")
async def create_quick_action_button(
    request: QuickActionButtonCreateRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    button = await QuickActionButtonRepository(db).create_owned(
        caller.organization_id, caller.user_id, **request.model_dump()
    )

    logger.info(f"Created quick action button {button.id} for organization {caller.organization_id}")

    return success_response(quick_action_button_to_response(button))


@router.patch("/quick-action-buttons/{button_id}", summary="Update Quick Action Button")
async def update_quick_action_button(
    request: QuickActionButtonUpdateRequest,
    button_id: str = Path(..., description="Quick action button ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    """Update one of the organization's own buttons. System buttons read as missing."""
    button = await QuickActionButtonRepository(db).update_owned(
        button_id, caller.organization_id, **_changes(request)
    )
    if not button:
        raise NotFoundError("QuickActionButton", button_id)

    return success_response(quick_action_button_to_response(button))


@router.delete(
    "/quick-action-buttons/{button_id}",
    status_code=204,
    response_class=Response,
    summary="Delete Quick Action Button",
)
async def delete_quick_action_button(
    button_id: str = Path(..., description="Quick action button ID"),
    caller: CallerContext = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db_session),
):
    await QuickActionButtonRepository(db).delete_owned(button_id, caller.organization_id)
    return Response(status_code=204)


# =============================================================================
# Admin Endpoints
# =============================================================================


@admin_catalog_router.get("/system-templates", summary="List All System Templates")
async def admin_list_system_templates(
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    templates = await SystemTemplateRepository(db).list_ordered()
    return success_response([system_template_to_response(t) for t in templates])


@admin_catalog_router.post("/system-templates", status_code=201, summary="Create System Template")
async def admin_create_system_template(
    request: SystemTemplateCreateRequest,
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    template = await SystemTemplateRepository(db).create(**request.model_dump())

    logger.info(f"System template {template.id} created by {caller.user_id}")

    return success_response(system_template_to_response(template))


@admin_catalog_router.patch("/system-templates/{template_id}", summary="Update System Template")
async def admin_update_system_template(
    request: SystemTemplateUpdateRequest,
    template_id: str = Path(..., description="System template ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    template = await SystemTemplateRepository(db).update(template_id, **_changes(request))
    if not template:
        raise NotFoundError("SystemTemplate", template_id)

    return success_response(system_template_to_response(template))


@admin_catalog_router.delete(
    "/system-templates/{template_id}",
    status_code=204,
    response_class=Response,
    summary="Delete System Template",
)
async def admin_delete_system_template(
    template_id: str = Path(..., description="System template ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    await SystemTemplateRepository(db).delete(template_id)
    return Response(status_code=204)


@admin_catalog_router.get("/quick-action-buttons", summary="List System Quick Action Buttons")
async def admin_list_quick_action_buttons(
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    buttons = await QuickActionButtonRepository(db).list_system()
    return success_response([quick_action_button_to_response(b) for b in buttons])


@admin_catalog_router.post(
    "/quick-action-buttons", status_code=201, summary="Create System Quick Action Button"
)
async def admin_create_quick_action_button(
    request: QuickActionButtonCreateRequest,
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    button = await QuickActionButtonRepository(db).create_system(
        caller.user_id, **request.model_dump()
    )

    logger.info(f"System quick action button {button.id} created by {caller.user_id}")

    return success_response(quick_action_button_to_response(button))


@admin_catalog_router.patch(
    "/quick-action-buttons/{button_id}", summary="Update System Quick Action Button"
)
async def admin_update_quick_action_button(
    request: QuickActionButtonUpdateRequest,
    button_id: str = Path(..., description="Quick action button ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Update a system button. Tenant buttons are not reachable here."""
    button = await QuickActionButtonRepository(db).update_system(button_id, **_changes(request))
    if not button:
        raise NotFoundError("QuickActionButton", button_id)

    return success_response(quick_action_button_to_response(button))


@admin_catalog_router.delete(
    "/quick-action-buttons/{button_id}",
    status_code=204,
    response_class=Response,
    summary="Delete System Quick Action Button",
)
async def admin_delete_quick_action_button(
    button_id: str = Path(..., description="Quick action button ID"),
    caller: CallerContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    await QuickActionButtonRepository(db).delete_system(button_id)
    return Response(status_code=204)
