"""
Score helpers — trending math and time utilities.

trending_score() is the scalar form; trending_scores() scores a whole batch
with numpy and is what the trending stage uses.
"""

import math
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from ..models.content import ContentItem


def hours_since(moment: Optional[datetime], now: datetime, min_hours: float) -> float:
    """Hours between moment and now, floored at min_hours (unknown moments get the floor)."""
    if moment is None:
        return min_hours
    return max((now - moment).total_seconds() / 3600.0, min_hours)


def engagement_score(
    views: int,
    likes: int,
    comments: int,
    shares: int,
    like_weight: float = 1.0,
    comment_weight: float = 2.0,
    share_weight: float = 3.0,
) -> float:
    """(likes + 2 * comments + 3 * shares) / views, 0 for unviewed content."""
    if views <= 0:
        return 0.0
    return (likes * like_weight + comments * comment_weight + shares * share_weight) / views


def trending_score(
    views: int,
    likes: int,
    comments: int,
    shares: int,
    hours: float,
    decay_hours: float = 168.0,
    like_weight: float = 1.0,
    comment_weight: float = 2.0,
    share_weight: float = 3.0,
) -> float:
    """
    Time-decayed popularity.

    score = (views / hours) * (1 + engagement) * exp(-hours / decay_hours)
    """
    velocity = views / hours
    engagement = engagement_score(
        views, likes, comments, shares, like_weight, comment_weight, share_weight
    )
    return velocity * (1.0 + engagement) * math.exp(-hours / decay_hours)


def trending_scores(
    items: Sequence[ContentItem],
    now: datetime,
    decay_hours: float = 168.0,
    min_hours: float = 1.0 / 60.0,
    like_weight: float = 1.0,
    comment_weight: float = 2.0,
    share_weight: float = 3.0,
) -> List[float]:
    """Vectorized trending_score over items; same order as input."""
    if not items:
        return []
    views = np.array([c.view_count for c in items], dtype=float)
    likes = np.array([c.like_count for c in items], dtype=float)
    comments = np.array([c.comment_count for c in items], dtype=float)
    shares = np.array([c.share_count for c in items], dtype=float)
    hours = np.array([hours_since(c.published_at, now, min_hours) for c in items], dtype=float)

    weighted = likes * like_weight + comments * comment_weight + shares * share_weight
    engagement = np.divide(weighted, views, out=np.zeros_like(views), where=views > 0)
    scores = (views / hours) * (1.0 + engagement) * np.exp(-hours / decay_hours)
    return [max(float(s), 0.0) for s in scores]
