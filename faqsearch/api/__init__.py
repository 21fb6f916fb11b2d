"""
API module for the FAQ search service.

This module provides the FastAPI application with REST endpoints,
request/response models, dependencies, and middleware.
"""

from faqsearch.api.app import app, create_app
from faqsearch.api.models import (
    ErrorResponse,
    FAQResult,
    FAQSearchRequest,
    FAQSearchResponse,
    HealthResponse,
    ScoredFAQResult,
    ToolSearchRequest,
    ToolSearchResponse,
)
from faqsearch.api.routes import router

__all__ = [
    # Application
    "app",
    "create_app",
    "router",
    # Request models
    "FAQSearchRequest",
    "ToolSearchRequest",
    # Response models
    "FAQSearchResponse",
    "ToolSearchResponse",
    "HealthResponse",
    "ErrorResponse",
    # Nested models
    "FAQResult",
    "ScoredFAQResult",
]
