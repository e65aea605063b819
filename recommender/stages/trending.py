"""
Trending — time-decayed popularity over a publish window, cached per period.

score = (views / hours) * (1 + engagement) * exp(-hours / decay_hours)

Snapshots are recomputed by the refresh scheduler; request-time reads only
compute when no snapshot exists or the cached one is older than
trending_max_age_seconds.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from ..models.config import TRENDING_PERIOD_HOURS, RecommendationConfig
from ..models.content import ContentFilter, ContentOrder
from ..models.scoring import ScoredCandidate, StrategySource, TrendingSnapshot
from ..providers import ContentProvider, TrendingCache
from ..utils.scores import trending_scores

logger = logging.getLogger(__name__)


async def compute_trending(
    content_provider: ContentProvider,
    period: str,
    now: datetime,
    config: RecommendationConfig,
) -> TrendingSnapshot:
    """Score all live content published within the period and keep the top trending_snapshot_size."""
    since = now - timedelta(hours=TRENDING_PERIOD_HOURS[period])
    items = await content_provider.find_content(
        ContentFilter(published_after=since),
        ContentOrder.VIEW_COUNT_DESC,
    )
    scores = trending_scores(
        items,
        now,
        decay_hours=config.trending_decay_hours,
        min_hours=config.trending_min_hours,
        like_weight=config.engagement_weight_like,
        comment_weight=config.engagement_weight_comment,
        share_weight=config.engagement_weight_share,
    )
    ranked = sorted(zip(items, scores), key=lambda pair: (-pair[1], -pair[0].view_count, pair[0].id))
    candidates = [
        ScoredCandidate(
            content_id=item.id,
            score=score,
            source_strategy=StrategySource.TRENDING,
            item=item,
        )
        for item, score in ranked[: config.trending_snapshot_size]
    ]
    logger.info("[trending] period=%s scored=%d kept=%d", period, len(items), len(candidates))
    return TrendingSnapshot(period=period, computed_at=now, candidates=candidates)


def is_stale(snapshot: Optional[TrendingSnapshot], now: datetime, config: RecommendationConfig) -> bool:
    if snapshot is None:
        return True
    age = (now - snapshot.computed_at).total_seconds()
    return age > config.trending_max_age_seconds


async def get_trending_snapshot(
    trending_cache: TrendingCache,
    content_provider: ContentProvider,
    period: str,
    now: datetime,
    config: RecommendationConfig,
) -> TrendingSnapshot:
    """Cached snapshot for period, recomputed and stored when missing or stale."""
    snapshot = await trending_cache.get(period)
    if not is_stale(snapshot, now, config):
        return snapshot
    logger.info("[trending] period=%s snapshot missing or stale; recomputing", period)
    snapshot = await compute_trending(content_provider, period, now, config)
    await trending_cache.put(snapshot)
    return snapshot


async def trending_candidates(
    trending_cache: TrendingCache,
    content_provider: ContentProvider,
    limit: int,
    now: datetime,
    config: RecommendationConfig,
    period: Optional[str] = None,
) -> List[ScoredCandidate]:
    snapshot = await get_trending_snapshot(
        trending_cache, content_provider, period or config.trending_period, now, config
    )
    return snapshot.candidates[:limit]
