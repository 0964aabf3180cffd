"""
API Middleware Module

This module provides middleware components for the REST API.
"""

from .tracking import RequestTrackingMiddleware


__all__ = [
    "RequestTrackingMiddleware",
]
