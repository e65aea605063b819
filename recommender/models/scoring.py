"""
Scoring model — ScoredCandidate and the result containers built from it.

Contains:
- StrategySource: which producer emitted a candidate
- ScoredCandidate: content id + non-negative score + source, optionally carrying the item
- RecommendationResult: blended output with cold-start flag and per-strategy counts
- TrendingSnapshot: cached trending ranking for one period
- LastWatchedSimilar: similar content anchored on the most recent view
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .content import ContentItem


class StrategySource(str, Enum):
    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content_based"
    TRENDING = "trending"
    DIVERSITY = "diversity"
    COLD_START = "cold_start"
    EXPLORE = "explore"
    SIMILAR = "similar"
    CONTINUE_WATCHING = "continue_watching"


class ScoredCandidate(BaseModel):
    """A content id with its score and the strategy that produced it."""

    content_id: str
    score: float = Field(ge=0)
    source_strategy: StrategySource
    # Attached when the producer had the full row; re-ranking reads it.
    item: Optional[ContentItem] = None


class RecommendationResult(BaseModel):
    """Ordered candidates plus how they were produced."""

    candidates: List[ScoredCandidate] = Field(default_factory=list)
    cold_start: bool = False
    # Number of candidates each strategy returned before blending.
    strategy_counts: Dict[str, int] = Field(default_factory=dict)

    @property
    def content_ids(self) -> List[str]:
        return [c.content_id for c in self.candidates]


class TrendingSnapshot(BaseModel):
    """Trending candidates for one period, highest score first."""

    period: str
    computed_at: datetime
    candidates: List[ScoredCandidate] = Field(default_factory=list)


class LastWatchedSimilar(BaseModel):
    """Content similar to an identity's most recent view; empty when there is none."""

    last_watched: Optional[ContentItem] = None
    candidates: List[ScoredCandidate] = Field(default_factory=list)

    @property
    def last_watched_title(self) -> Optional[str]:
        return self.last_watched.title if self.last_watched is not None else None
