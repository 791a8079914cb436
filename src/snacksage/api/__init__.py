"""
FastAPI REST API for SnackSage.

Endpoints:
    GET /health - Health check and knowledge index status
    POST /knowledge/context - Retrieve grounding context for a query
    POST /knowledge/ask - Answer a question from the knowledge base
    POST /recipes/recommendations - Recipe suggestions for an inventory
    POST /recipes/chat - Recipe conversation
"""

from snacksage.api.main import app, create_app

__all__ = ["app", "create_app"]
