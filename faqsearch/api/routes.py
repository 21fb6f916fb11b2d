"""
FastAPI routes for the FAQ search API.

This module defines the REST endpoints used by the help-center UI and by
the conversational layer when it runs out of process.
"""

from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from faqsearch.api.dependencies import (
    ChunkStoreDep,
    EmbedderDep,
    OptionalRepositoryDep,
    SearchServiceDep,
)
from faqsearch.api.models import (
    ErrorResponse,
    FAQSearchRequest,
    FAQSearchResponse,
    HealthResponse,
    ToolSearchRequest,
    ToolSearchResponse,
)
from faqsearch.utils.exceptions import EmptyQueryError, ValidationError
from faqsearch.utils.logging import LoggerMixin, get_correlation_id

API_VERSION = "1.0.0"
SEARCH_PATH = "/faq/search"

# Create API router
router = APIRouter()


class RouteHandlers(LoggerMixin):
    """Handler class for API routes with logging support."""

    pass


# Instantiate handler for logging
handler = RouteHandlers()


def bad_request(message: str) -> JSONResponse:
    """400 in the search response shape."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message, "results": []},
    )


@router.post(
    SEARCH_PATH,
    response_model=FAQSearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Search FAQ",
    description="Keyword search over public FAQ entries for the help-center.",
    responses={
        200: {"description": "Matching FAQ entries, best match first"},
        400: {"model": FAQSearchResponse, "description": "Missing or invalid query"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def search_faq(
    service: SearchServiceDep,
    request: Optional[FAQSearchRequest] = None,
):
    """
    Search public FAQ entries.

    Args:
        service: FAQ search service
        request: Search request with query (a missing body counts as no query)

    Returns:
        FAQSearchResponse, or 400 with the same shape for a bad query
    """
    correlation_id = get_correlation_id()
    query = request.query if request is not None else None

    handler.logger.info(
        "faq_search_request_received",
        query_type=type(query).__name__,
        correlation_id=correlation_id,
    )

    try:
        return await service.search_direct(query)
    except EmptyQueryError as e:
        handler.logger.info("faq_search_rejected", correlation_id=correlation_id)
        return bad_request(e.message)


@router.get(
    "/faq/category/{tag}",
    response_model=FAQSearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Browse FAQ category",
    description="Public FAQ entries with exactly this tag, newest first.",
    responses={
        200: {"description": "FAQ entries in the category"},
        400: {"model": FAQSearchResponse, "description": "Missing tag"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def browse_category(
    tag: str,
    service: SearchServiceDep,
):
    """
    Browse one FAQ category.

    Args:
        tag: Category tag
        service: FAQ search service
    """
    handler.logger.info(
        "category_request_received",
        tag=tag,
        correlation_id=get_correlation_id(),
    )

    try:
        return await service.browse_category(tag)
    except ValidationError as e:
        return bad_request(e.message)


@router.post(
    "/faq/tool-search",
    response_model=ToolSearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Hybrid FAQ search for the chat tool",
    description="Hybrid (vector + keyword) search over both partitions with scores.",
    responses={
        200: {"description": "Ranked result set, including misses"},
        500: {"model": ErrorResponse, "description": "Storage misconfiguration"},
    },
)
async def tool_search(
    request: ToolSearchRequest,
    service: SearchServiceDep,
) -> dict:
    """
    Run the tool-call search.

    Input errors and total misses come back with `success=false` and
    status 200; only storage misconfiguration is an HTTP error.
    """
    handler.logger.info(
        "tool_search_request_received",
        use_vector_search=request.use_vector_search,
        correlation_id=get_correlation_id(),
    )

    return await service.search_for_tool(
        request.query,
        use_vector_search=request.use_vector_search,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Check the health status of the FAQ search service and its components.",
    responses={
        200: {"description": "System health status"},
    },
)
async def health_check(
    repository: OptionalRepositoryDep,
    chunk_store: ChunkStoreDep,
    embedder: EmbedderDep,
) -> HealthResponse:
    """
    Health check endpoint.

    The database is required; the chunk store and embeddings only affect
    result quality, so their absence reports "degraded".
    """
    handler.logger.debug(
        "health_check_requested",
        correlation_id=get_correlation_id(),
    )

    database_healthy = await repository.health_check() if repository is not None else False
    chunk_store_healthy = await chunk_store.health_check()

    services = {
        "database": database_healthy,
        "chunk_store": chunk_store_healthy,
        "embeddings": embedder.available,
    }

    if not database_healthy:
        status_str = "unhealthy"
    elif all(services.values()):
        status_str = "healthy"
    else:
        status_str = "degraded"

    return HealthResponse(
        status=status_str,
        services=services,
        version=API_VERSION,
    )
