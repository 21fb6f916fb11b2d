"""
Main FastAPI application for the FAQ search service.

This module creates and configures the FastAPI application with
routes, middleware, and event handlers.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from faqsearch.api.dependencies import close_resources
from faqsearch.api.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware
from faqsearch.api.models import ErrorResponse
from faqsearch.api.routes import API_VERSION, SEARCH_PATH, bad_request
from faqsearch.api.routes import router as api_router
from faqsearch.config.settings import get_settings
from faqsearch.retrieval.service import MISSING_QUERY_MESSAGE
from faqsearch.utils.exceptions import FAQSearchException, get_http_status_code
from faqsearch.utils.logging import get_correlation_id, get_logger, setup_logging

logger = get_logger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan context manager.

    Configures logging on startup and releases the shared connection pool
    on shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    settings = get_settings()
    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        app_name=settings.app_name,
    )

    logger.info(
        "application_started",
        version=app.version,
        environment=settings.environment,
        scoring_policy=settings.retrieval.scoring_policy_version,
    )

    yield

    logger.info("application_shutting_down")
    close_resources()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="FAQ Search API",
        description="Hybrid keyword and vector retrieval over customer-support FAQ entries",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if settings.api.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(
            "cors_middleware_configured",
            origins=settings.api.cors_origins_list,
        )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(
        api_router,
        prefix=API_PREFIX,
        tags=["FAQ Search"],
    )

    @app.exception_handler(FAQSearchException)
    async def faq_search_exception_handler(
        request: Request,
        exc: FAQSearchException,
    ) -> JSONResponse:
        """Handle all FAQ search custom exceptions."""
        correlation_id = get_correlation_id()
        status_code = get_http_status_code(exc)

        logger.error(
            "faq_search_exception",
            exception_type=exc.__class__.__name__,
            message=exc.message,
            details=exc.details,
            path=request.url.path,
            status_code=status_code,
            correlation_id=correlation_id,
        )

        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=exc.__class__.__name__,
                message=exc.message,
                detail=str(exc.details) if exc.details else None,
                correlation_id=correlation_id,
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle request validation errors."""
        correlation_id = get_correlation_id()

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            correlation_id=correlation_id,
        )

        # The help-center search answers any unusable body in its own shape.
        if request.url.path == API_PREFIX + SEARCH_PATH:
            return bad_request(MISSING_QUERY_MESSAGE)

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(
                error="ValidationError",
                message="Request validation failed",
                detail=str(exc.errors()),
                correlation_id=correlation_id,
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle general exceptions."""
        correlation_id = get_correlation_id()

        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            correlation_id=correlation_id,
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                detail=str(exc) if settings.is_debug else None,
                correlation_id=correlation_id,
            ).model_dump(),
        )

    @app.get(
        "/",
        tags=["Root"],
        summary="Root endpoint",
        description="Returns API information and status.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": "FAQ Search API",
            "version": API_VERSION,
            "status": "running",
            "docs": "/docs",
            "health": "/api/health",
        }

    logger.info("application_created")

    return app


app = create_app()


__all__ = ["app", "create_app"]
