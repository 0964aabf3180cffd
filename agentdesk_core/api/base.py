"""
API Base Types

Error codes, the exception hierarchy raised by routes and dependencies, and
the JSON envelopes every endpoint answers with.
"""

import secrets
import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Machine-readable error codes, grouped by category."""

    # Caller identity (1xxx)
    AUTHENTICATION_REQUIRED = "AUTH_1001"
    INSUFFICIENT_PERMISSIONS = "AUTH_1004"

    # Input (2xxx)
    VALIDATION_ERROR = "VAL_2001"
    INVALID_REQUEST_BODY = "VAL_2002"

    # Resources (3xxx)
    RESOURCE_NOT_FOUND = "RES_3001"
    RESOURCE_ALREADY_EXISTS = "RES_3002"
    RESOURCE_CONFLICT = "RES_3003"

    # Server (5xxx)
    INTERNAL_ERROR = "SRV_5001"

    # Workflow (6xxx)
    INVALID_STATE_TRANSITION = "BIZ_6001"


# HTTP status -> code for errors raised by FastAPI/Starlette itself
HTTP_STATUS_CODES = {
    400: ErrorCode.INVALID_REQUEST_BODY,
    401: ErrorCode.AUTHENTICATION_REQUIRED,
    403: ErrorCode.INSUFFICIENT_PERMISSIONS,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    409: ErrorCode.RESOURCE_CONFLICT,
}


class APIError(BaseModel):
    """Body of the ``error`` member of a failed response."""

    model_config = ConfigDict(use_enum_values=True)

    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None
    request_id: Optional[str] = None


class PaginationMeta(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def for_page(cls, page: int, page_size: int, total_items: int) -> "PaginationMeta":
        total_pages = -(-total_items // page_size) if page_size > 0 else 0
        return cls(
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )


# =============================================================================
# Exceptions
# =============================================================================


class APIException(Exception):
    """Error that maps onto an HTTP status and an error envelope."""

    status_code = 400

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.field = field

    def to_error(self, request_id: Optional[str] = None) -> APIError:
        return APIError(
            code=self.code,
            message=self.message,
            details=self.details,
            field=self.field,
            request_id=request_id,
        )


class AuthenticationError(APIException):
    """Missing or unknown caller organization."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.AUTHENTICATION_REQUIRED, message, details=details)


class AuthorizationError(APIException):
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.INSUFFICIENT_PERMISSIONS, message, details=details)


class NotFoundError(APIException):
    """Entity is missing, or belongs to another organization.

    Both cases read the same so that ids of other tenants cannot be discovered.
    """

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            ErrorCode.RESOURCE_NOT_FOUND,
            f"{resource_type} with ID '{resource_id}' not found",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ValidationError(APIException):
    status_code = 422

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details=details, field=field)


class ConflictError(APIException):
    status_code = 409

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details=details)


class ServiceError(APIException):
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.INTERNAL_ERROR, message, details=details)


# =============================================================================
# Envelopes
# =============================================================================


def generate_request_id() -> str:
    """``req_<epoch ms>_<16 hex chars>``."""
    return f"req_{int(time.time() * 1000)}_{secrets.token_hex(8)}"


def _envelope(request_id: Optional[str], **body: Any) -> Dict[str, Any]:
    body["request_id"] = request_id or generate_request_id()
    body["timestamp"] = datetime.utcnow().isoformat()
    return body


def success_response(
    data: Any,
    meta: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    return _envelope(request_id, success=True, data=data, error=None, meta=meta)


def error_response(error: APIException, request_id: Optional[str] = None) -> Dict[str, Any]:
    request_id = request_id or generate_request_id()
    return _envelope(
        request_id,
        success=False,
        data=None,
        error=error.to_error(request_id).model_dump(),
        meta=None,
    )


def paginated_response(
    items: List[Any],
    page: int,
    page_size: int,
    total_items: int,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """List envelope with page metadata under ``pagination``."""
    pagination = PaginationMeta.for_page(page, page_size, total_items)
    return _envelope(
        request_id,
        success=True,
        data=items,
        pagination=pagination.model_dump(),
        error=None,
    )


__all__ = [
    "ErrorCode",
    "HTTP_STATUS_CODES",
    "APIError",
    "PaginationMeta",
    "APIException",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ServiceError",
    "generate_request_id",
    "success_response",
    "error_response",
    "paginated_response",
]
