"""
Per-call retrieval results.

ScoredCandidate and RankedResultSet only live for the duration of one
retrieval call; nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from faqsearch.core.models import FAQEntry, SourceKey


class SearchStrategy(str, Enum):
    """Which retrieval path produced a candidate."""
    KEYWORD = "keyword"
    VECTOR = "vector"
    BOTH = "both"


class SearchMethod(str, Enum):
    """Overall method label reported for one retrieval call."""
    VECTOR = "vector"
    KEYWORD = "keyword"
    HYBRID = "hybrid"
    NONE = "none"
    ERROR = "error"


@dataclass(frozen=True)
class ScoredCandidate:
    """
    An FAQ entry with a relevance score for one query.

    Attributes:
        entry: The FAQ entry.
        score: Relative ranking weight (may exceed 1.0 for keyword hits).
        strategy: Retrieval path that produced it.
    """
    entry: FAQEntry
    score: float
    strategy: SearchStrategy

    @property
    def source_key(self) -> SourceKey:
        return self.entry.source_key

    @property
    def is_internal(self) -> bool:
        return self.entry.is_internal

    def merged_with(self, other: "ScoredCandidate") -> "ScoredCandidate":
        """Combine two hits on the same source: higher score, strategy BOTH."""
        strategy = self.strategy if self.strategy == other.strategy else SearchStrategy.BOTH
        return replace(self, score=max(self.score, other.score), strategy=strategy)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shape handed to callers."""
        return {
            "id": self.entry.id,
            "kind": self.entry.partition.value,
            "brand": self.entry.brand,
            "tag": self.entry.tag,
            "question": self.entry.question,
            "content": self.entry.content,
            "score": self.score,
            "isInternal": self.is_internal,
        }


@dataclass
class RankedResultSet:
    """
    Ordered, deduplicated candidates for one query.

    Attributes:
        success: False for empty queries and total misses.
        message: Human-readable summary.
        candidates: Candidates sorted by descending score.
        method: Overall method label.
    """
    success: bool
    message: str
    method: SearchMethod
    candidates: list[ScoredCandidate] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.candidates)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the tool-call response shape."""
        return {
            "success": self.success,
            "message": self.message,
            "results": [candidate.to_dict() for candidate in self.candidates],
            "searchMethod": self.method.value,
        }
