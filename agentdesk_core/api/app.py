"""
FastAPI Application Module

This module provides the main FastAPI application setup with
all routes, middleware, and configuration.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from ..approvals import ApprovalError
from ..core.logging import setup_logging
from ..database.base import close_database, get_database, init_database
from .base import (
    HTTP_STATUS_CODES,
    APIException,
    ConflictError,
    ErrorCode,
    ServiceError,
    error_response,
    generate_request_id,
)
from .middleware import RequestTrackingMiddleware
from .routes import (
    admin_catalog_router,
    admin_router,
    agents_router,
    analytics_router,
    batch_calls_router,
    billing_router,
    call_logs_router,
    integrations_router,
    phone_numbers_router,
    prompt_catalog_router,
    rag_router,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Application configuration."""

    # API settings
    title: str = "AgentDesk API"
    description: str = "Multi-tenant administration API for hosted voice agents"
    version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # Server settings
    debug: bool = False
    docs_enabled: bool = True

    # Database
    database_url: str = "sqlite+aiosqlite:///./agentdesk.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10
    create_tables: bool = True

    # CORS - never "*" together with credentials
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
    ]
    cors_allow_credentials: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "pretty"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        return cls(
            debug=os.getenv("DEBUG", "false").lower() == "true",
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./agentdesk.db"
            ),
            database_pool_size=int(os.getenv("DATABASE_POOL_SIZE", "5")),
            database_max_overflow=int(os.getenv("DATABASE_MAX_OVERFLOW", "10")),
            cors_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5000").split(","),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv(
                "LOG_FORMAT",
                "json" if os.getenv("ENVIRONMENT") == "production" else "pretty",
            ),
        )


# =============================================================================
# Health Check Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    timestamp: datetime
    checks: Dict[str, Any] = {}


# =============================================================================
# Exception Handlers
# =============================================================================


def _error(request: Request, exc: APIException) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or generate_request_id()
    return JSONResponse(status_code=exc.status_code, content=error_response(exc, request_id))


async def api_exception_handler(request: Request, exc: APIException):
    return _error(request, exc)


async def approval_exception_handler(request: Request, exc: ApprovalError):
    """Review tasks that already have a decision cannot be decided again."""
    return _error(request, ConflictError(
        message=str(exc),
        code=ErrorCode.INVALID_STATE_TRANSITION,
        details={"task_id": exc.task_id, "current_status": exc.current_status},
    ))


async def http_exception_handler(request: Request, exc: HTTPException):
    """Wrap framework HTTP errors (unknown routes, bad methods) in the error envelope."""
    code = HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return _error(request, APIException(code, str(exc.detail), status_code=exc.status_code))


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions, infrastructure failures included."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error(request, ServiceError())


# =============================================================================
# Application Factory
# =============================================================================


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration

    Returns:
        Configured FastAPI application
    """
    config = config or AppConfig.from_env()

    # Lifespan context manager
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        setup_logging(level=config.log_level, format=config.log_format)
        logger.info("Starting AgentDesk API...")

        db = init_database(
            database_url=config.database_url,
            pool_size=config.database_pool_size,
            max_overflow=config.database_max_overflow,
            echo=config.debug,
        )

        # Production schemas are managed by Alembic
        if config.create_tables and (config.debug or "sqlite" in config.database_url):
            logger.info("Creating database tables...")
            await db.create_all()

        if await db.health_check():
            logger.info("Database connection established successfully")
        else:
            logger.error("Database connection failed!")

        yield

        # Shutdown
        logger.info("Shutting down AgentDesk API...")
        await close_database()
        logger.info("Database connection closed")

    app = FastAPI(
        title=config.title,
        description=config.description,
        version=config.version,
        docs_url="/docs" if config.docs_enabled else None,
        redoc_url="/redoc" if config.docs_enabled else None,
        openapi_url="/openapi.json" if config.docs_enabled else None,
        lifespan=lifespan,
    )

    app.state.config = config

    # ==========================================================================
    # Add Middleware (last added = outermost)
    # ==========================================================================

    app.add_middleware(RequestTrackingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # ==========================================================================
    # Add Exception Handlers
    # ==========================================================================

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(ApprovalError, approval_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ==========================================================================
    # Add Routes
    # ==========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        try:
            db_healthy = await get_database().health_check()
        except RuntimeError:
            db_healthy = False

        return HealthResponse(
            status="healthy" if db_healthy else "degraded",
            version=config.version,
            timestamp=datetime.utcnow(),
            checks={
                "api": "ok",
                "database": "ok" if db_healthy else "error",
            },
        )

    @app.get("/ready", tags=["Health"])
    async def readiness_check():
        """Readiness check for orchestrators."""
        try:
            db_healthy = await get_database().health_check()
        except (RuntimeError, SQLAlchemyError) as e:
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "reason": str(e)}
            )
        if not db_healthy:
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "reason": "database_unavailable"}
            )
        return {"status": "ready"}

    app.include_router(agents_router, prefix=config.api_prefix)
    app.include_router(call_logs_router, prefix=config.api_prefix)
    app.include_router(analytics_router, prefix=config.api_prefix)
    app.include_router(phone_numbers_router, prefix=config.api_prefix)
    app.include_router(integrations_router, prefix=config.api_prefix)
    app.include_router(rag_router, prefix=config.api_prefix)
    app.include_router(batch_calls_router, prefix=config.api_prefix)
    app.include_router(billing_router, prefix=config.api_prefix)
    app.include_router(prompt_catalog_router, prefix=config.api_prefix)
    app.include_router(admin_router, prefix=config.api_prefix)
    app.include_router(admin_catalog_router, prefix=config.api_prefix)

    return app


# =============================================================================
# Entry Point
# =============================================================================


def run_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "agentdesk_core.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    run_server(reload=True)
