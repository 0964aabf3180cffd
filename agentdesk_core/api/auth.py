"""
API Caller Context

Authentication happens upstream: the gateway in front of this service
verifies the session and forwards the caller's identity in request headers.
This module only models that identity and the admin check.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..database.models import UserRole
from .base import AuthorizationError


logger = logging.getLogger(__name__)

ORGANIZATION_HEADER = "X-Organization-ID"
USER_HEADER = "X-User-ID"
ROLE_HEADER = "X-User-Role"


@dataclass
class CallerContext:
    """Identity of the caller for a request."""

    organization_id: str
    user_id: Optional[str] = None
    role: UserRole = UserRole.CLIENT
    is_admin: bool = False

    # Metadata
    received_at: datetime = field(default_factory=datetime.utcnow)
    client_ip: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    @property
    def can_administer(self) -> bool:
        """Super admins and users flagged ``is_admin`` may use admin routes."""
        return self.is_super_admin or self.is_admin

    def require_admin(self) -> None:
        """Raise unless the caller may use admin routes."""
        if not self.can_administer:
            logger.warning(
                f"Admin access denied for user {self.user_id} "
                f"in organization {self.organization_id}"
            )
            raise AuthorizationError(message="Administrator access required")


__all__ = [
    "CallerContext",
    "ORGANIZATION_HEADER",
    "USER_HEADER",
    "ROLE_HEADER",
]
