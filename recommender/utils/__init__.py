"""Shared utilities for scoring and similarity."""

from .scores import engagement_score, hours_since, trending_score, trending_scores
from .similarity import jaccard_similarity

__all__ = [
    "engagement_score",
    "hours_since",
    "jaccard_similarity",
    "trending_score",
    "trending_scores",
]
