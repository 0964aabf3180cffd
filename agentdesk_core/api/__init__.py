"""
REST API Module

Thin HTTP layer over the organization-scoped store.
"""

from .app import AppConfig, create_app, run_server
from .auth import CallerContext
from .base import (
    APIException,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    ServiceError,
    ValidationError,
)


__all__ = [
    "AppConfig",
    "create_app",
    "run_server",
    "CallerContext",
    "APIException",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "ErrorCode",
    "NotFoundError",
    "ServiceError",
    "ValidationError",
]
