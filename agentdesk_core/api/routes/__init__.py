"""
API Routes Module

This module provides all REST API endpoints for the platform.
"""

from .admin import router as admin_router
from .agents import router as agents_router
from .batch_calls import router as batch_calls_router
from .billing import router as billing_router
from .calls import analytics_router
from .calls import router as call_logs_router
from .integrations import router as integrations_router
from .phone_numbers import router as phone_numbers_router
from .prompt_catalog import admin_catalog_router
from .prompt_catalog import router as prompt_catalog_router
from .rag import router as rag_router


__all__ = [
    "admin_catalog_router",
    "admin_router",
    "agents_router",
    "analytics_router",
    "batch_calls_router",
    "billing_router",
    "call_logs_router",
    "integrations_router",
    "phone_numbers_router",
    "prompt_catalog_router",
    "rag_router",
]
