"""
Hybrid ranker combining vector search with keyword search.

Vector similarity is the preferred signal; keyword matching is a recall
safety net that only runs when the vector path returned fewer results than
requested:
- Vector: query embedding -> nearest chunks -> FAQ entries
- Keyword: substring matches over both partitions

Results are merged vector-first, deduplicated by source identity, truncated,
then re-sorted so the returned list is monotonic in score.
"""

from __future__ import annotations

import asyncio

from faqsearch.config.settings import RetrievalSettings
from faqsearch.core.embeddings import QueryEmbedder
from faqsearch.core.models import SourceKey
from faqsearch.retrieval.candidates import (
    RankedResultSet,
    ScoredCandidate,
    SearchMethod,
    SearchStrategy,
)
from faqsearch.retrieval.keyword import KeywordMatcher
from faqsearch.retrieval.vector import VectorRetriever
from faqsearch.utils.logging import LoggerMixin

EMPTY_QUERY_MESSAGE = "검색어가 비어 있습니다."
NO_RESULTS_MESSAGE = "관련된 FAQ를 찾을 수 없습니다."


def found_message(count: int) -> str:
    return f"{count}개의 관련 FAQ를 찾았습니다."


def merge_candidates(
    vector_results: list[ScoredCandidate],
    keyword_results: list[ScoredCandidate],
    limit: int,
) -> tuple[list[ScoredCandidate], set[SearchStrategy]]:
    """
    Merge vector and keyword candidates.

    Vector candidates are accepted first. A keyword hit on an already
    accepted source is not added again; the accepted candidate is marked
    BOTH and keeps the higher of the two scores. The accepted list is
    truncated in acceptance order, so keyword hits only fill the slots the
    vector path left open, and the survivors are then sorted by score
    (stable).

    Returns:
        The truncated candidates and the strategies whose accepted
        candidates survived truncation.
    """
    accepted: dict[SourceKey, ScoredCandidate] = {}
    origin: dict[SourceKey, SearchStrategy] = {}

    for candidate in [*vector_results, *keyword_results]:
        key = candidate.source_key
        if key in accepted:
            accepted[key] = accepted[key].merged_with(candidate)
            continue
        accepted[key] = candidate
        origin[key] = candidate.strategy

    survivors = list(accepted.values())[:limit]
    merged = sorted(survivors, key=lambda candidate: candidate.score, reverse=True)
    contributors = {origin[candidate.source_key] for candidate in merged}
    return merged, contributors


class HybridRanker(LoggerMixin):
    """
    Hybrid ranker over the vector and keyword retrieval paths.

    Args:
        embedder: Query embedder (may have no model configured).
        vector_retriever: Vector retrieval path.
        keyword_matcher: Keyword retrieval path.
        settings: Retrieval settings.

    Example:
        >>> ranker = HybridRanker(embedder, vector_retriever, keyword_matcher)
        >>> result = await ranker.rank("환불 신청 방법", limit=5)
        >>> result.method
        <SearchMethod.HYBRID: 'hybrid'>
    """

    def __init__(
        self,
        embedder: QueryEmbedder,
        vector_retriever: VectorRetriever,
        keyword_matcher: KeywordMatcher,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self.embedder = embedder
        self.vector_retriever = vector_retriever
        self.keyword_matcher = keyword_matcher
        self.settings = settings or RetrievalSettings()

        self.logger.info(
            "hybrid_ranker_initialized",
            vector_search_enabled=self.settings.vector_search_enabled,
            embedder_available=embedder.available,
            default_limit=self.settings.default_limit,
        )

    async def _vector_path(self, query: str, limit: int) -> list[ScoredCandidate]:
        embedding = await self.embedder.embed(query)
        if embedding is None:
            return []
        return await self.vector_retriever.search(embedding, limit)

    async def _vector_search(self, query: str, limit: int) -> list[ScoredCandidate]:
        try:
            return await asyncio.wait_for(
                self._vector_path(query, limit),
                timeout=self.settings.search_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                "vector_path_timed_out",
                timeout_seconds=self.settings.search_timeout_seconds,
            )
            return []

    async def rank(
        self,
        query: str,
        use_vector_search: bool = True,
        limit: int | None = None,
    ) -> RankedResultSet:
        """
        Rank FAQ entries for a query.

        Args:
            query: Raw query text.
            use_vector_search: Try the vector path for this call.
            limit: Maximum results (defaults to `default_limit`).

        Returns:
            RankedResultSet. `success` is False for an empty query (method
            NONE, no storage or network call) and for a total miss.
        """
        normalized = query.strip()
        if not normalized:
            self.logger.info("empty_query_rejected")
            return RankedResultSet(
                success=False,
                message=EMPTY_QUERY_MESSAGE,
                method=SearchMethod.NONE,
            )

        limit = max(1, limit if limit is not None else self.settings.default_limit)
        vector_requested = use_vector_search and self.settings.vector_search_enabled

        vector_results: list[ScoredCandidate] = []
        if vector_requested:
            vector_results = await self._vector_search(normalized, limit)

        keyword_results: list[ScoredCandidate] = []
        if len(vector_results) < limit:
            keyword_results = await self.keyword_matcher.search(normalized, limit)

        candidates, contributors = merge_candidates(vector_results, keyword_results, limit)

        if not candidates:
            method = SearchMethod.VECTOR if vector_requested else SearchMethod.KEYWORD
            self.logger.info("hybrid_search_no_results", method=method.value)
            return RankedResultSet(
                success=False,
                message=NO_RESULTS_MESSAGE,
                method=method,
            )

        if len(contributors) > 1:
            method = SearchMethod.HYBRID
        elif SearchStrategy.VECTOR in contributors:
            method = SearchMethod.VECTOR
        else:
            method = SearchMethod.KEYWORD

        self.logger.info(
            "hybrid_search_completed",
            method=method.value,
            vector_count=len(vector_results),
            keyword_count=len(keyword_results),
            returned=len(candidates),
            top_score=candidates[0].score,
        )
        return RankedResultSet(
            success=True,
            message=found_message(len(candidates)),
            method=method,
            candidates=candidates,
        )
