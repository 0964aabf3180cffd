"""Core infrastructure shared across the platform."""

from .logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
