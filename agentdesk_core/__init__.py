"""
AgentDesk
=========

Multi-tenant administration backend for hosted AI voice agents.

This package provides:
- Organization-scoped storage for agents, call logs, phone numbers,
  integrations, RAG configurations, batch calls and payments
- Approval workflow for integrations and RAG configurations
- Billing catalog and usage reporting
- REST API endpoints
"""

__version__ = "1.0.0"
