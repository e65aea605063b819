"""
Contextual re-ranking — situational multipliers on top of a base score.

Multipliers (defaults):
- morning and content shorter than 10 minutes: x1.2
- mobile device and mobile-optimized content: x1.15
- content in a recently engaged category: x1.1
- creator seen more than twice recently: x0.7

Base score is the item's view count when the candidate carries its item,
otherwise the candidate's own score. Pure and deterministic.
"""

from collections import Counter
from typing import List, Optional

from ...models.config import RecommendationConfig, resolve_config
from ...models.content import ContentItem
from ...models.context import DeviceClass, TimeOfDay, UserContext
from ...models.scoring import ScoredCandidate


def context_multiplier(
    item: ContentItem,
    context: UserContext,
    config: RecommendationConfig,
    creator_counts: Optional[Counter] = None,
) -> float:
    if creator_counts is None:
        creator_counts = Counter(context.recent_creator_ids)
    multiplier = 1.0
    if (
        context.time_of_day == TimeOfDay.MORNING
        and item.duration_seconds is not None
        and item.duration_seconds < config.short_content_max_seconds
    ):
        multiplier *= config.morning_short_boost
    if context.device_class == DeviceClass.MOBILE and item.mobile_optimized:
        multiplier *= config.mobile_boost
    if set(context.recent_category_ids).intersection(item.category_ids):
        multiplier *= config.category_affinity_boost
    if item.creator_id and creator_counts[item.creator_id] > config.creator_fatigue_threshold:
        multiplier *= config.creator_fatigue_penalty
    return multiplier


def rerank(
    candidates: List[ScoredCandidate],
    context: UserContext,
    config: Optional[RecommendationConfig] = None,
) -> List[ScoredCandidate]:
    """Return new candidates with adjusted scores, highest first (stable for ties)."""
    config = resolve_config(config)
    creator_counts = Counter(context.recent_creator_ids)
    adjusted = []
    for candidate in candidates:
        if candidate.item is None:
            adjusted.append(candidate.model_copy())
            continue
        base = float(candidate.item.view_count)
        score = base * context_multiplier(candidate.item, context, config, creator_counts)
        adjusted.append(candidate.model_copy(update={"score": score}))
    return sorted(adjusted, key=lambda c: c.score, reverse=True)
