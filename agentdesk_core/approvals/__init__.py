"""Review workflow for integrations and RAG configurations."""

from .service import RAG_REVIEWED_FIELDS, ApprovalError, ApprovalService

__all__ = ["ApprovalError", "ApprovalService", "RAG_REVIEWED_FIELDS"]
