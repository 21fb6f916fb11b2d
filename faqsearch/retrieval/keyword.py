"""
Keyword matcher over both FAQ partitions.

Substring matching is done by the repository; this module scores the
returned rows and merges the two partitions into one ranked list.
"""

from __future__ import annotations

import asyncio

from faqsearch.config.settings import RetrievalSettings
from faqsearch.core.database import FAQRepository
from faqsearch.core.models import FAQEntry, Partition
from faqsearch.retrieval.candidates import ScoredCandidate, SearchStrategy
from faqsearch.retrieval.scoring import ScoringPolicy
from faqsearch.utils.logging import LoggerMixin


class KeywordMatcher(LoggerMixin):
    """
    Keyword search across the public and internal partitions.

    Both partitions are queried concurrently. A failure on the internal
    partition is logged and the call continues with public rows only; a
    failure on the public partition propagates.

    Args:
        repository: FAQ repository.
        settings: Retrieval settings (scoring constants and row bounds).

    Example:
        >>> matcher = KeywordMatcher(repository, settings.retrieval)
        >>> candidates = await matcher.search("환불 방법", limit=5)
    """

    def __init__(
        self,
        repository: FAQRepository,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self.repository = repository
        self.settings = settings or RetrievalSettings()
        self.policy = ScoringPolicy.from_settings(self.settings)

    async def _search_internal(self, query: str, rows: int) -> list[FAQEntry]:
        try:
            return await self.repository.keyword_search(Partition.INTERNAL, query, limit=rows)
        except Exception as e:
            self.logger.warning(
                "internal_keyword_search_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

    async def search(self, query: str, limit: int) -> list[ScoredCandidate]:
        """
        Search both partitions and rank the hits.

        Args:
            query: Raw query text.
            limit: Maximum candidates returned.

        Returns:
            Candidates sorted by descending score. Ties keep public rows
            ahead of internal rows and repository order within a partition.
        """
        query = query.strip()
        if not query or limit <= 0:
            return []

        rows = self.settings.keyword_rows_per_partition
        public_entries, internal_entries = await asyncio.gather(
            self.repository.keyword_search(Partition.PUBLIC, query, limit=rows),
            self._search_internal(query, rows),
        )

        candidates = [
            ScoredCandidate(
                entry=entry,
                score=self.policy.keyword_score(entry, query),
                strategy=SearchStrategy.KEYWORD,
            )
            for entry in [*public_entries, *internal_entries]
        ]
        candidates.sort(key=lambda candidate: candidate.score, reverse=True)

        self.logger.info(
            "keyword_search_completed",
            public_count=len(public_entries),
            internal_count=len(internal_entries),
            returned=min(limit, len(candidates)),
            policy_version=self.policy.version,
        )
        return candidates[:limit]
