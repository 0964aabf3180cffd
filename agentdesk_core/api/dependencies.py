"""
API Dependencies

This module provides FastAPI dependencies for database sessions
and the caller context.
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.base import get_session
from ..database.models import UserRole
from ..database.repositories import OrganizationRepository, UserRepository

from .auth import CallerContext
from .base import AuthenticationError, ValidationError


logger = logging.getLogger(__name__)


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Usage in routes:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db_session)):
            repo = ItemRepository(db)
            return await repo.list_by_organization(caller.organization_id)
    """
    async with get_session() as session:
        yield session


# =============================================================================
# Caller Context Dependencies
# =============================================================================

async def get_caller_context(
    request: Request,
    x_organization_id: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> CallerContext:
    """
    Build the caller context from gateway headers.

    ``is_admin`` is read from the caller's user row, and only counts when
    that user belongs to the organization named in the headers.
    """
    if not x_organization_id:
        raise AuthenticationError(
            message="X-Organization-ID header is required",
        )

    role = UserRole.CLIENT
    if x_user_role:
        try:
            role = UserRole(x_user_role)
        except ValueError:
            raise ValidationError(
                message=f"Unknown user role '{x_user_role}'",
                field="X-User-Role",
            )

    if await OrganizationRepository(db).get_by_id(x_organization_id) is None:
        raise AuthenticationError(
            message="Unknown organization",
            details={"organization_id": x_organization_id},
        )

    is_admin = False
    if x_user_id:
        user = await UserRepository(db).get_by_id(x_user_id)
        is_admin = bool(
            user
            and user.is_admin
            and user.organization_id == x_organization_id
        )

    return CallerContext(
        organization_id=x_organization_id,
        user_id=x_user_id,
        role=role,
        is_admin=is_admin,
        client_ip=request.client.host if request.client else None,
    )


async def require_admin(
    caller: CallerContext = Depends(get_caller_context),
) -> CallerContext:
    """Dependency that only lets administrators through."""
    caller.require_admin()
    return caller


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "get_db_session",
    "get_caller_context",
    "require_admin",
]
