"""
API request and response models for the FAQ search service.

This module defines Pydantic models for API requests and responses,
providing validation, serialization, and documentation.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FAQSearchRequest(BaseModel):
    """
    Request model for the help-center search endpoint.

    `query` is left untyped so a missing or non-string value reaches the
    route and is answered with 400 and the search response shape.
    """
    query: Any = Field(None, description="Search text")

    model_config = ConfigDict(
        json_schema_extra={"example": {"query": "환불 신청 방법"}},
    )


class ToolSearchRequest(BaseModel):
    """
    Request model for the tool-call search endpoint.

    Attributes:
        query: Search text
        use_vector_search: Try vector search for this call
    """
    query: Any = Field(None, description="Search text")
    use_vector_search: bool = Field(
        True,
        alias="useVectorSearch",
        description="Try vector search for this call",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"query": "환불", "useVectorSearch": True}},
    )


class FAQResult(BaseModel):
    """Public FAQ entry as shown to help-center users."""
    id: str
    brand: str
    tag: Optional[str] = None
    question: str
    content: str
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ScoredFAQResult(BaseModel):
    """FAQ entry with score, returned to the conversational layer."""
    id: str
    kind: Literal["public", "internal"]
    brand: str
    tag: Optional[str] = None
    question: str
    content: str
    score: float
    isInternal: bool


class FAQSearchResponse(BaseModel):
    """
    Response model for search and category endpoints.

    Attributes:
        success: False for input errors and failures
        message: Human-readable summary
        results: Public FAQ entries
    """
    success: bool = Field(..., description="Whether the call succeeded")
    message: str = Field(..., description="Human-readable summary")
    results: List[FAQResult] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "1개의 관련 FAQ를 찾았습니다.",
                "results": [
                    {
                        "id": "faq-1",
                        "brand": "minihaksupji",
                        "tag": "환불",
                        "question": "환불 신청 방법이 궁금해요",
                        "content": "마이페이지에서 환불을 신청할 수 있습니다.",
                    }
                ],
            }
        },
    )


class ToolSearchResponse(BaseModel):
    """Response model for the tool-call search endpoint."""
    success: bool
    message: str
    results: List[ScoredFAQResult] = Field(default_factory=list)
    searchMethod: Literal["vector", "keyword", "hybrid", "none", "error"]


class HealthResponse(BaseModel):
    """
    Response model for health check endpoint.

    Attributes:
        status: Overall system status
        services: Status of individual services
        version: API version
    """
    status: str = Field(..., description="Overall system status (healthy/degraded/unhealthy)")
    services: Dict[str, bool] = Field(..., description="Individual service status")
    version: str = Field(..., description="API version")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "services": {
                    "database": True,
                    "chunk_store": True,
                    "embeddings": True,
                },
                "version": "1.0.0",
            }
        },
    )


class ErrorResponse(BaseModel):
    """
    Standard error response model.

    Attributes:
        error: Error type/category
        message: Human-readable error message
        detail: Optional detailed error information
        correlation_id: Request correlation ID for tracing
    """
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
