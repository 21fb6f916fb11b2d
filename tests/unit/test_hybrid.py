"""
Unit tests for the hybrid ranker.

Uses pytest for unit tests and Hypothesis for property-based testing.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given, strategies as st

from faqsearch.config.settings import RetrievalSettings
from faqsearch.core.embeddings import QueryEmbedder
from faqsearch.core.models import Partition
from faqsearch.retrieval.candidates import ScoredCandidate, SearchMethod, SearchStrategy
from faqsearch.retrieval.hybrid import (
    EMPTY_QUERY_MESSAGE,
    NO_RESULTS_MESSAGE,
    HybridRanker,
    merge_candidates,
)
from faqsearch.retrieval.keyword import KeywordMatcher
from faqsearch.retrieval.vector import VectorRetriever
from tests.strategies import blank_query, make_entry


def vector_hit(entry_id, score, partition=Partition.PUBLIC):
    return ScoredCandidate(make_entry(entry_id, partition), score, SearchStrategy.VECTOR)


def keyword_hit(entry_id, score, partition=Partition.PUBLIC):
    return ScoredCandidate(make_entry(entry_id, partition), score, SearchStrategy.KEYWORD)


def build_ranker(vector=None, keyword=None, embedding=(1.0, 0.0), settings=None):
    """Ranker over doubles returning fixed candidates."""
    embedder = MagicMock()
    embedder.available = embedding is not None
    embedder.embed = AsyncMock(return_value=list(embedding) if embedding else None)

    vector_retriever = MagicMock()
    vector_retriever.search = AsyncMock(return_value=list(vector or []))

    keyword_matcher = MagicMock()
    keyword_matcher.search = AsyncMock(return_value=list(keyword or []))

    ranker = HybridRanker(embedder, vector_retriever, keyword_matcher, settings)
    return ranker, embedder, vector_retriever, keyword_matcher


class TestMergeCandidates:
    """Test merging the two retrieval paths."""

    def test_duplicate_source_appears_once(self):
        merged, contributors = merge_candidates(
            [vector_hit("a", 0.8)], [keyword_hit("a", 1.3)], limit=5
        )
        assert len(merged) == 1
        assert merged[0].score == 1.3
        assert merged[0].strategy is SearchStrategy.BOTH
        assert contributors == {SearchStrategy.VECTOR}

    def test_same_id_different_partition_both_kept(self):
        merged, _ = merge_candidates(
            [vector_hit("a", 0.8)], [keyword_hit("a", 0.9, Partition.INTERNAL)], limit=5
        )
        assert len(merged) == 2

    def test_sorted_after_truncation(self):
        merged, _ = merge_candidates(
            [vector_hit("v1", 0.5), vector_hit("v2", 0.9)],
            [keyword_hit("k1", 1.2), keyword_hit("k2", 0.6)],
            limit=3,
        )
        assert [c.entry.id for c in merged] == ["k1", "v2", "v1"]

    def test_keyword_hits_do_not_evict_vector_hits(self):
        merged, contributors = merge_candidates(
            [vector_hit("v", 0.4)], [keyword_hit("k", 1.0)], limit=1
        )
        assert [c.entry.id for c in merged] == ["v"]
        assert contributors == {SearchStrategy.VECTOR}

    def test_contributors_only_count_survivors(self):
        merged, contributors = merge_candidates(
            [vector_hit("v1", 0.6), vector_hit("v2", 0.5)],
            [keyword_hit("k1", 1.4), keyword_hit("k2", 1.3)],
            limit=2,
        )
        assert [c.entry.id for c in merged] == ["v1", "v2"]
        assert contributors == {SearchStrategy.VECTOR}

    def test_ties_keep_vector_first(self):
        merged, _ = merge_candidates([vector_hit("v", 0.9)], [keyword_hit("k", 0.9)], limit=5)
        assert [c.entry.id for c in merged] == ["v", "k"]

    @given(
        st.lists(st.floats(min_value=0.0, max_value=3.0, allow_nan=False), max_size=8),
        st.lists(st.floats(min_value=0.0, max_value=3.0, allow_nan=False), max_size=8),
        st.integers(min_value=1, max_value=10),
    )
    def test_merged_is_bounded_unique_and_sorted(self, vector_scores, keyword_scores, limit):
        vector = [vector_hit(f"s{i}", s) for i, s in enumerate(vector_scores)]
        keyword = [keyword_hit(f"s{i}", s) for i, s in enumerate(keyword_scores)]

        merged, _ = merge_candidates(vector, keyword, limit)

        assert len(merged) <= limit
        keys = [c.source_key for c in merged]
        assert len(keys) == len(set(keys))
        scores = [c.score for c in merged]
        assert scores == sorted(scores, reverse=True)

    @given(
        st.lists(st.floats(min_value=0.4, max_value=0.99, allow_nan=False), max_size=8),
        st.lists(st.floats(min_value=0.6, max_value=3.0, allow_nan=False), max_size=8),
        st.integers(min_value=1, max_value=10),
    )
    def test_vector_hits_within_limit_always_survive(self, vector_scores, keyword_scores, limit):
        vector = [vector_hit(f"v{i}", s) for i, s in enumerate(vector_scores)]
        keyword = [keyword_hit(f"k{i}", s) for i, s in enumerate(keyword_scores)]

        merged, _ = merge_candidates(vector, keyword, limit)

        survivors = {c.entry.id for c in merged}
        assert {c.entry.id for c in vector[:limit]} <= survivors


class TestHybridRanker:
    """Test HybridRanker orchestration."""

    @pytest.mark.asyncio
    async def test_empty_query_makes_no_calls(self):
        ranker, embedder, vector, keyword = build_ranker()

        result = await ranker.rank("   ")

        assert result.success is False
        assert result.method is SearchMethod.NONE
        assert result.message == EMPTY_QUERY_MESSAGE
        assert result.candidates == []
        embedder.embed.assert_not_awaited()
        vector.search.assert_not_awaited()
        keyword.search.assert_not_awaited()

    @given(query=blank_query())
    def test_any_blank_query_is_rejected(self, query):
        ranker, embedder, _, keyword = build_ranker()

        result = asyncio.run(ranker.rank(query))

        assert result.method is SearchMethod.NONE
        embedder.embed.assert_not_awaited()
        keyword.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_full_vector_result_skips_keyword(self):
        hits = [vector_hit(str(i), 0.9 - i / 100) for i in range(5)]
        ranker, _, _, keyword = build_ranker(vector=hits)

        result = await ranker.rank("환불", limit=5)

        assert result.method is SearchMethod.VECTOR
        assert len(result) == 5
        keyword.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_short_vector_result_runs_keyword(self):
        ranker, _, _, keyword = build_ranker(
            vector=[vector_hit("v", 0.8)],
            keyword=[keyword_hit("k", 1.2)],
        )

        result = await ranker.rank("환불", limit=5)

        keyword.search.assert_awaited_once_with("환불", 5)
        assert result.method is SearchMethod.HYBRID
        assert [c.entry.id for c in result.candidates] == ["k", "v"]

    @pytest.mark.asyncio
    async def test_keyword_fills_only_open_slots(self):
        ranker, _, _, _ = build_ranker(
            vector=[vector_hit("v1", 0.6), vector_hit("v2", 0.5)],
            keyword=[keyword_hit(f"k{i}", 1.2) for i in range(5)],
        )

        result = await ranker.rank("환불", limit=5)

        ids = [c.entry.id for c in result.candidates]
        assert ids == ["k0", "k1", "k2", "v1", "v2"]
        assert result.method is SearchMethod.HYBRID

    @pytest.mark.asyncio
    async def test_keyword_duplicate_of_vector_is_still_vector(self):
        ranker, _, _, _ = build_ranker(
            vector=[vector_hit("a", 0.8)],
            keyword=[keyword_hit("a", 1.3)],
        )

        result = await ranker.rank("환불", limit=5)

        assert result.method is SearchMethod.VECTOR
        assert len(result) == 1
        assert result.candidates[0].score == 1.3

    @pytest.mark.asyncio
    async def test_vector_disabled_by_caller(self):
        ranker, embedder, vector, _ = build_ranker(
            vector=[vector_hit("v", 0.9)],
            keyword=[keyword_hit("k", 0.7)],
        )

        result = await ranker.rank("환불", use_vector_search=False)

        assert result.method is SearchMethod.KEYWORD
        embedder.embed.assert_not_awaited()
        vector.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vector_disabled_by_settings(self):
        settings = RetrievalSettings(vector_search_enabled=False)
        ranker, embedder, _, _ = build_ranker(keyword=[keyword_hit("k", 0.7)], settings=settings)

        result = await ranker.rank("환불", use_vector_search=True)

        assert result.method is SearchMethod.KEYWORD
        embedder.embed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_embedding_falls_back_to_keyword(self):
        ranker, _, vector, _ = build_ranker(keyword=[keyword_hit("k", 0.7)], embedding=None)

        result = await ranker.rank("환불")

        assert result.method is SearchMethod.KEYWORD
        vector.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_miss_with_vector_requested(self):
        ranker, _, _, _ = build_ranker()

        result = await ranker.rank("없는질문")

        assert result.success is False
        assert result.message == NO_RESULTS_MESSAGE
        assert result.method is SearchMethod.VECTOR

    @pytest.mark.asyncio
    async def test_miss_without_vector(self):
        ranker, _, _, _ = build_ranker()

        result = await ranker.rank("없는질문", use_vector_search=False)

        assert result.success is False
        assert result.method is SearchMethod.KEYWORD

    @pytest.mark.asyncio
    async def test_limit_applied_to_merged_results(self):
        vector = [vector_hit(f"v{i}", 0.5 + i / 100) for i in range(3)]
        keyword = [keyword_hit(f"k{i}", 0.6 + i / 10) for i in range(5)]
        ranker, _, _, _ = build_ranker(vector=vector, keyword=keyword)

        result = await ranker.rank("환불", limit=5)

        assert len(result) == 5
        scores = [c.score for c in result.candidates]
        assert scores == sorted(scores, reverse=True)
        assert result.message == "5개의 관련 FAQ를 찾았습니다."

    @pytest.mark.asyncio
    async def test_default_limit(self):
        ranker, _, vector, _ = build_ranker(settings=RetrievalSettings(default_limit=3))

        await ranker.rank("환불")

        vector.search.assert_awaited_once_with([1.0, 0.0], 3)

    @pytest.mark.asyncio
    async def test_non_positive_limit_becomes_one(self):
        ranker, _, vector, _ = build_ranker()

        await ranker.rank("환불", limit=0)

        assert vector.search.await_args.args[1] == 1

    @pytest.mark.asyncio
    async def test_query_is_trimmed(self):
        ranker, embedder, _, keyword = build_ranker()

        await ranker.rank("  환불  ")

        embedder.embed.assert_awaited_once_with("환불")
        assert keyword.search.await_args.args[0] == "환불"

    @pytest.mark.asyncio
    async def test_repeated_calls_are_identical(self):
        ranker, _, _, _ = build_ranker(
            vector=[vector_hit("v", 0.8)],
            keyword=[keyword_hit("k", 1.2), keyword_hit("j", 0.8)],
        )

        first = await ranker.rank("환불")
        second = await ranker.rank("환불")

        assert first.to_dict() == second.to_dict()

    @pytest.mark.asyncio
    async def test_vector_timeout_degrades_to_keyword(self):
        settings = RetrievalSettings(search_timeout_seconds=0.05)
        ranker, embedder, _, _ = build_ranker(keyword=[keyword_hit("k", 0.7)], settings=settings)

        async def slow_embed(query):
            await asyncio.sleep(1.0)
            return [1.0]

        embedder.embed = AsyncMock(side_effect=slow_embed)

        result = await ranker.rank("환불")

        assert result.success is True
        assert [c.entry.id for c in result.candidates] == ["k"]
        assert result.method is SearchMethod.KEYWORD

    @pytest.mark.asyncio
    async def test_keyword_failure_propagates(self):
        ranker, _, _, keyword = build_ranker()
        keyword.search = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            await ranker.rank("환불")


class TestHybridRankerIntegration:
    """Test the full ranker against Chroma and SQLite."""

    def build(self, chunk_store, repository, keyword_embeddings, **settings):
        retrieval = RetrievalSettings(**settings)
        embedder = QueryEmbedder(keyword_embeddings)
        return HybridRanker(
            embedder,
            VectorRetriever(chunk_store, repository, retrieval),
            KeywordMatcher(repository, retrieval),
            retrieval,
        )

    @pytest.mark.asyncio
    async def test_refund_query(self, indexed_chunk_store, repository, keyword_embeddings):
        ranker = self.build(indexed_chunk_store, repository, keyword_embeddings)

        result = await ranker.rank("환불", limit=5)

        ids = [c.entry.id for c in result.candidates]
        assert result.success is True
        assert len(ids) == len(set(ids))
        assert {"pub-refund", "int-refund"} <= set(ids)
        # keyword scores reach above the vector ceiling
        assert result.candidates[0].entry.id == "int-refund"
        assert result.candidates[0].score == pytest.approx(1.6)
        assert result.candidates[0].strategy is SearchStrategy.BOTH

    @pytest.mark.asyncio
    async def test_keyword_only(self, indexed_chunk_store, repository, keyword_embeddings):
        ranker = self.build(indexed_chunk_store, repository, keyword_embeddings)

        result = await ranker.rank("환불", use_vector_search=False, limit=5)

        assert result.method is SearchMethod.KEYWORD
        assert [c.entry.id for c in result.candidates] == [
            "int-refund",
            "pub-refund",
            "pub-subscription",
        ]
