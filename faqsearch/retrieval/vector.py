"""
Vector retriever: chunk neighbours aggregated back to FAQ entries.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from faqsearch.config.settings import RetrievalSettings
from faqsearch.core.database import FAQRepository
from faqsearch.core.models import ContentChunk, FAQEntry, Partition, SourceKey
from faqsearch.core.vectorstore import ChunkStore
from faqsearch.retrieval.candidates import ScoredCandidate, SearchStrategy
from faqsearch.retrieval.scoring import ScoringPolicy
from faqsearch.utils.logging import LoggerMixin


def best_chunks(chunks: Sequence[ContentChunk]) -> dict[SourceKey, ContentChunk]:
    """
    Keep the closest chunk per source entry.

    Chunks without a distance only win when their source has no other chunk.
    Insertion order follows the first appearance of each source.
    """
    best: dict[SourceKey, ContentChunk] = {}
    for chunk in chunks:
        current = best.get(chunk.source_key)
        if current is None:
            best[chunk.source_key] = chunk
        elif chunk.distance is not None and (
            current.distance is None or chunk.distance < current.distance
        ):
            best[chunk.source_key] = chunk
    return best


class VectorRetriever(LoggerMixin):
    """
    Nearest-neighbour search over FAQ chunks.

    A larger chunk pool than the requested limit is fetched so several
    chunks of one entry do not crowd out other entries. Each entry is
    represented by its best chunk, then loaded from the FAQ tables.

    This path never raises: any failure is logged and yields no candidates.

    Args:
        chunk_store: Chunk store holding the embeddings.
        repository: FAQ repository used to load the winning entries.
        settings: Retrieval settings.
    """

    def __init__(
        self,
        chunk_store: ChunkStore,
        repository: FAQRepository,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self.chunk_store = chunk_store
        self.repository = repository
        self.settings = settings or RetrievalSettings()
        self.policy = ScoringPolicy.from_settings(self.settings)

    async def _load_entries(
        self, best: dict[SourceKey, ContentChunk]
    ) -> dict[SourceKey, FAQEntry]:
        public_ids = [key[1] for key in best if key[0] is Partition.PUBLIC]
        internal_ids = [key[1] for key in best if key[0] is Partition.INTERNAL]

        public_entries, internal_entries = await asyncio.gather(
            self.repository.get_by_ids(Partition.PUBLIC, public_ids),
            self.repository.get_by_ids(Partition.INTERNAL, internal_ids),
        )
        return {entry.source_key: entry for entry in [*public_entries, *internal_entries]}

    async def search(
        self, embedding: Sequence[float] | None, limit: int
    ) -> list[ScoredCandidate]:
        """
        Find the entries closest to a query embedding.

        Args:
            embedding: Query vector, or None when no vector is available.
            limit: Maximum candidates returned.

        Returns:
            Candidates sorted by descending score.
        """
        if embedding is None or limit <= 0:
            return []

        pool = limit * self.settings.vector_pool_multiplier
        try:
            chunks = await self.chunk_store.search_chunks(
                embedding, limit=pool, include_internal=True
            )
            best = best_chunks(chunks)
            entries = await self._load_entries(best)
        except Exception as e:
            self.logger.warning(
                "vector_search_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

        candidates = []
        missing = 0
        for key, chunk in best.items():
            entry = entries.get(key)
            if entry is None:
                missing += 1
                continue
            candidates.append(
                ScoredCandidate(
                    entry=entry,
                    score=self.policy.vector_score(chunk.distance),
                    strategy=SearchStrategy.VECTOR,
                )
            )
        candidates.sort(key=lambda candidate: candidate.score, reverse=True)

        self.logger.info(
            "vector_search_completed",
            chunk_count=len(chunks),
            source_count=len(best),
            missing_rows=missing,
            returned=min(limit, len(candidates)),
        )
        return candidates[:limit]
