"""
Retrieval façade exposing the caller-facing result shapes.

Two shapes sit on top of the same ranker:
- Tool-call shape for the conversational layer (both partitions, scores)
- Direct-search shape for the help-center (public entries only, no scores)

Internal entries never leave this façade through the direct-search or
category shapes.
"""

from __future__ import annotations

from typing import Any

from faqsearch.config.settings import RetrievalSettings, Settings
from faqsearch.core.database import FAQRepository
from faqsearch.core.embeddings import QueryEmbedder
from faqsearch.core.models import FAQEntry, Partition
from faqsearch.core.vectorstore import ChunkStore
from faqsearch.retrieval.candidates import RankedResultSet, SearchMethod
from faqsearch.retrieval.hybrid import EMPTY_QUERY_MESSAGE, HybridRanker, found_message
from faqsearch.retrieval.keyword import KeywordMatcher
from faqsearch.retrieval.scoring import ScoringPolicy
from faqsearch.retrieval.vector import VectorRetriever
from faqsearch.utils.exceptions import (
    ConfigurationError,
    EmptyQueryError,
    StorageConnectionError,
    ValidationError,
)
from faqsearch.utils.logging import LoggerMixin, search_context

SEARCH_ERROR_MESSAGE = "FAQ 검색 중 오류가 발생했습니다."
MISSING_QUERY_MESSAGE = "검색어를 입력해주세요."
MISSING_TAG_MESSAGE = "태그를 입력해주세요."


def public_view(entry: FAQEntry) -> dict[str, Any]:
    """Serialize an entry for unauthenticated callers."""
    return {
        "id": entry.id,
        "brand": entry.brand,
        "tag": entry.tag,
        "question": entry.question,
        "content": entry.content,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
        "updatedAt": entry.updated_at.isoformat() if entry.updated_at else None,
    }


class FAQSearchService(LoggerMixin):
    """
    Façade over the hybrid ranker and the FAQ repository.

    Args:
        ranker: Hybrid ranker used by the tool-call shape.
        repository: FAQ repository used by direct search and browse.
        settings: Retrieval settings.
    """

    def __init__(
        self,
        ranker: HybridRanker,
        repository: FAQRepository,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self.ranker = ranker
        self.repository = repository
        self.settings = settings or RetrievalSettings()
        self.policy = ScoringPolicy.from_settings(self.settings)

    async def search_for_tool(
        self,
        query: Any,
        use_vector_search: bool = True,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """
        Search for the conversational layer.

        Returns `{success, message, results, searchMethod}`. Results carry
        both partitions with scores. Unexpected failures are reported as
        `searchMethod="error"`; a missing database configuration or an
        unreachable database is raised.
        """
        if not isinstance(query, str):
            self.logger.warning("tool_search_invalid_query", query_type=type(query).__name__)
            return RankedResultSet(
                success=False,
                message=EMPTY_QUERY_MESSAGE,
                method=SearchMethod.NONE,
            ).to_dict()

        with search_context(
            "tool",
            scoring_policy=self.policy.version,
            vector_requested=use_vector_search,
        ):
            try:
                result = await self.ranker.rank(
                    query,
                    use_vector_search=use_vector_search,
                    limit=limit if limit is not None else self.settings.default_limit,
                )
            except (ConfigurationError, StorageConnectionError):
                raise
            except Exception as e:
                self.logger.error(
                    "tool_search_failed",
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return RankedResultSet(
                    success=False,
                    message=SEARCH_ERROR_MESSAGE,
                    method=SearchMethod.ERROR,
                ).to_dict()

        return result.to_dict()

    async def search_direct(self, query: Any) -> dict[str, Any]:
        """
        Keyword search over public entries for the help-center.

        Returns `{success, message, results}` with at most
        `direct_search_limit` entries, best match first, without scores.

        Raises:
            EmptyQueryError: If the query is missing, not a string or blank.
        """
        if not isinstance(query, str) or not query.strip():
            raise EmptyQueryError(MISSING_QUERY_MESSAGE)

        normalized = query.strip()
        with search_context("direct", scoring_policy=self.policy.version):
            entries = await self.repository.keyword_search(
                Partition.PUBLIC,
                normalized,
                limit=self.settings.keyword_rows_per_partition,
            )
            ranked = sorted(
                entries,
                key=lambda entry: self.policy.keyword_score(entry, normalized),
                reverse=True,
            )[: self.settings.direct_search_limit]

            self.logger.info("direct_search_completed", returned=len(ranked))
        return {
            "success": True,
            "message": found_message(len(ranked)),
            "results": [public_view(entry) for entry in ranked],
        }

    async def browse_category(self, tag: Any) -> dict[str, Any]:
        """
        Public entries with exactly this tag, newest first.

        Raises:
            ValidationError: If the tag is missing or blank.
        """
        if not isinstance(tag, str) or not tag.strip():
            raise ValidationError(MISSING_TAG_MESSAGE, details={"field": "tag"})

        with search_context("category"):
            entries = await self.repository.get_by_tag(
                tag.strip(), limit=self.settings.category_limit
            )
            self.logger.info("category_browse_completed", tag=tag, returned=len(entries))
        return {
            "success": True,
            "message": f"{len(entries)}개의 FAQ를 찾았습니다.",
            "results": [public_view(entry) for entry in entries],
        }


def create_search_service(
    settings: Settings,
    repository: FAQRepository,
    chunk_store: ChunkStore,
    embedder: QueryEmbedder,
) -> FAQSearchService:
    """
    Wire the retrieval components into a search service.

    Args:
        settings: Application settings.
        repository: Shared FAQ repository (owns the connection pool).
        chunk_store: Chunk store for the vector path.
        embedder: Query embedder for the vector path.
    """
    retrieval = settings.retrieval
    ranker = HybridRanker(
        embedder=embedder,
        vector_retriever=VectorRetriever(chunk_store, repository, retrieval),
        keyword_matcher=KeywordMatcher(repository, retrieval),
        settings=retrieval,
    )
    return FAQSearchService(ranker, repository, retrieval)
