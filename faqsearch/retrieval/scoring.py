"""
Scoring policy shared by the keyword and vector retrieval paths.

Keyword scores start from a per-partition base and add bonuses for query
matches; vector scores come from chunk distance and are clamped into a band
that keeps them comparable in magnitude to keyword scores.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from faqsearch.config.settings import RetrievalSettings
from faqsearch.core.models import FAQEntry, Partition


def query_tokens(query: str) -> list[str]:
    """Lowercased whitespace tokens longer than one character."""
    return [token for token in query.lower().split() if len(token) > 1]


@dataclass(frozen=True)
class ScoringPolicy:
    """
    Tunable scoring constants.

    Attributes:
        version: Policy identifier, reported in logs.
        public_base: Starting keyword score for public entries.
        internal_base: Starting keyword score for internal entries.
        exact_question_bonus: Added when the full query is in the question.
        question_token_bonus: Added per query token found in the question.
        content_token_bonus: Added per query token found in the content.
        vector_floor: Lowest vector score.
        vector_ceiling: Highest vector score.
        missing_distance_score: Vector score when a chunk has no distance.
    """
    version: str = "2"
    public_base: float = 0.6
    internal_base: float = 0.9
    exact_question_bonus: float = 0.4
    question_token_bonus: float = 0.2
    content_token_bonus: float = 0.1
    vector_floor: float = 0.4
    vector_ceiling: float = 0.99
    missing_distance_score: float = 0.7

    @classmethod
    def from_settings(cls, settings: RetrievalSettings) -> "ScoringPolicy":
        return cls(
            version=settings.scoring_policy_version,
            public_base=settings.public_base_score,
            internal_base=settings.internal_base_score,
            exact_question_bonus=settings.exact_question_bonus,
            question_token_bonus=settings.question_token_bonus,
            content_token_bonus=settings.content_token_bonus,
            vector_floor=settings.vector_score_floor,
            vector_ceiling=settings.vector_score_ceiling,
            missing_distance_score=settings.vector_missing_distance_score,
        )

    def base_score(self, partition: Partition) -> float:
        if partition is Partition.INTERNAL:
            return self.internal_base
        return self.public_base

    def keyword_score(self, entry: FAQEntry, query: str) -> float:
        """
        Score a keyword hit.

        Args:
            entry: Matched FAQ entry.
            query: Trimmed query text.

        Returns:
            Base score plus match bonuses.
        """
        query_lower = query.lower()
        question = entry.question.lower()
        content = entry.content.lower()

        score = self.base_score(entry.partition)
        if query_lower and query_lower in question:
            score += self.exact_question_bonus

        for token in query_tokens(query):
            if token in question:
                score += self.question_token_bonus
            if token in content:
                score += self.content_token_bonus

        return score

    def vector_score(self, distance: float | None) -> float:
        """
        Map a chunk distance to a score.

        `1 / (1 + max(distance, 0))`, clamped to [vector_floor, vector_ceiling].
        """
        if distance is None:
            return self.missing_distance_score
        try:
            distance = float(distance)
        except (TypeError, ValueError):
            return self.missing_distance_score
        if math.isnan(distance):
            return self.missing_distance_score

        similarity = 1.0 / (1.0 + max(distance, 0.0))
        return min(self.vector_ceiling, max(self.vector_floor, similarity))
