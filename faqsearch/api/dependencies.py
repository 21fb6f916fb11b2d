"""
FastAPI dependency injection for FAQ search components.

This module provides dependency functions that create and inject the
retrieval components into API route handlers. Storage handles (connection
pool, chunk store client, embedding model) are process-wide singletons;
the search service wiring on top of them is cheap and built per request.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends

from faqsearch.config.settings import Settings, get_settings
from faqsearch.core.database import FAQRepository, create_engine_from_settings
from faqsearch.core.embeddings import QueryEmbedder, get_query_embedder
from faqsearch.core.vectorstore import ChunkStore, get_chunk_store
from faqsearch.retrieval.service import FAQSearchService, create_search_service
from faqsearch.utils.exceptions import ConfigurationError
from faqsearch.utils.logging import get_logger

logger = get_logger(__name__)


@lru_cache()
def get_repository() -> FAQRepository:
    """
    Get the FAQ repository (cached singleton).

    The repository owns the connection pool, so it must outlive requests.

    Raises:
        MissingConfigurationError: If DATABASE_URL is not set.
    """
    settings = get_settings()
    repository = FAQRepository(create_engine_from_settings(settings.database))

    logger.info("repository_dependency_created")

    return repository


def get_optional_repository() -> Optional[FAQRepository]:
    """Repository, or None when the database is not configured."""
    try:
        return get_repository()
    except ConfigurationError as e:
        logger.warning("repository_unavailable", error=str(e))
        return None


@lru_cache()
def get_shared_chunk_store() -> ChunkStore:
    """Get the chunk store (cached singleton)."""
    settings = get_settings()
    chunk_store = get_chunk_store(settings.chroma)

    logger.info(
        "chunk_store_dependency_created",
        collection=settings.chroma.collection,
    )

    return chunk_store


@lru_cache()
def get_embedder() -> QueryEmbedder:
    """Get the query embedder (cached singleton)."""
    settings = get_settings()
    embedder = get_query_embedder(settings.embedding)

    logger.info(
        "embedder_dependency_created",
        provider=settings.embedding.embedding_provider,
        available=embedder.available,
    )

    return embedder


def get_search_service(
    settings: Annotated[Settings, Depends(get_settings)],
    repository: Annotated[FAQRepository, Depends(get_repository)],
    chunk_store: Annotated[ChunkStore, Depends(get_shared_chunk_store)],
    embedder: Annotated[QueryEmbedder, Depends(get_embedder)],
) -> FAQSearchService:
    """
    Get the FAQ search service.

    Args:
        settings: Application settings
        repository: FAQ repository
        chunk_store: Chunk store
        embedder: Query embedder

    Returns:
        Search service wired over the shared components
    """
    return create_search_service(settings, repository, chunk_store, embedder)


def close_resources() -> None:
    """Dispose of the shared connection pool if it was created."""
    if get_repository.cache_info().currsize:
        get_repository().close()
    get_repository.cache_clear()
    get_shared_chunk_store.cache_clear()
    get_embedder.cache_clear()


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
SearchServiceDep = Annotated[FAQSearchService, Depends(get_search_service)]
OptionalRepositoryDep = Annotated[Optional[FAQRepository], Depends(get_optional_repository)]
ChunkStoreDep = Annotated[ChunkStore, Depends(get_shared_chunk_store)]
EmbedderDep = Annotated[QueryEmbedder, Depends(get_embedder)]


__all__ = [
    "get_settings",
    "get_repository",
    "get_optional_repository",
    "get_shared_chunk_store",
    "get_embedder",
    "get_search_service",
    "close_resources",
    "SettingsDep",
    "SearchServiceDep",
    "OptionalRepositoryDep",
    "ChunkStoreDep",
    "EmbedderDep",
]
