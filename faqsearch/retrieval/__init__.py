"""
Retrieval module for the FAQ search service.

This module provides FAQ retrieval functionality including:
- Keyword matching over the public and internal partitions
- Vector search over embedded FAQ chunks
- Hybrid ranking (vector first, keyword as supplement)
- The caller-facing search façade
"""

from faqsearch.retrieval.candidates import (
    RankedResultSet,
    ScoredCandidate,
    SearchMethod,
    SearchStrategy,
)
from faqsearch.retrieval.scoring import ScoringPolicy
from faqsearch.retrieval.keyword import KeywordMatcher
from faqsearch.retrieval.vector import VectorRetriever
from faqsearch.retrieval.hybrid import HybridRanker
from faqsearch.retrieval.service import FAQSearchService

__all__ = [
    "RankedResultSet",
    "ScoredCandidate",
    "SearchMethod",
    "SearchStrategy",
    "ScoringPolicy",
    "KeywordMatcher",
    "VectorRetriever",
    "HybridRanker",
    "FAQSearchService",
]
