"""
Similar content — "more like this" for a single source item.

Points: +5 per shared category, +2 per shared tag, +3 for the same creator,
+1 when both durations are known and within +/-20% of each other.
Ranked by points, then view count.

last_watched_similar() anchors the same ranking on an identity's most recent view.
"""

import logging
from typing import List

from ...errors import ContentNotFound
from ...models.config import RecommendationConfig
from ...models.content import ContentFilter, ContentItem, ContentOrder
from ...models.scoring import LastWatchedSimilar, ScoredCandidate, StrategySource
from ...models.signal import SignalKind
from ...providers import ContentProvider, SignalStore

logger = logging.getLogger(__name__)


def similarity_points(source: ContentItem, candidate: ContentItem, config: RecommendationConfig) -> float:
    points = 0.0
    points += config.similar_category_points * len(set(source.category_ids) & set(candidate.category_ids))
    points += config.similar_tag_points * len(set(source.tag_ids) & set(candidate.tag_ids))
    if source.creator_id and candidate.creator_id == source.creator_id:
        points += config.similar_creator_points
    if source.duration_seconds and candidate.duration_seconds is not None:
        tolerance = source.duration_seconds * config.similar_duration_tolerance
        if abs(candidate.duration_seconds - source.duration_seconds) <= tolerance:
            points += config.similar_duration_points
    return points


async def similar_content_candidates(
    content_provider: ContentProvider,
    content_id: str,
    limit: int,
    config: RecommendationConfig,
) -> List[ScoredCandidate]:
    found = await content_provider.find_content(
        ContentFilter(status=None, public_only=False, id_in=[content_id]),
        ContentOrder.AS_REQUESTED,
        limit=1,
    )
    if not found:
        raise ContentNotFound(content_id)
    return await similar_to_item(content_provider, found[0], limit, config)


async def similar_to_item(
    content_provider: ContentProvider,
    source: ContentItem,
    limit: int,
    config: RecommendationConfig,
) -> List[ScoredCandidate]:
    """Live content ranked by similarity_points against source, source excluded."""
    if not (source.category_ids or source.tag_ids or source.creator_id):
        return []
    items = await content_provider.find_content(
        ContentFilter(
            category_in=set(source.category_ids),
            tag_in=set(source.tag_ids),
            creator_in={source.creator_id} if source.creator_id else None,
            exclude_ids={source.id},
        ),
        ContentOrder.VIEW_COUNT_DESC,
    )
    scored = [(item, similarity_points(source, item, config)) for item in items]
    scored.sort(key=lambda pair: (pair[1], pair[0].view_count), reverse=True)
    return [
        ScoredCandidate(
            content_id=item.id,
            score=points,
            source_strategy=StrategySource.SIMILAR,
            item=item,
        )
        for item, points in scored[:limit]
    ]


async def last_watched_similar(
    user_id: str,
    limit: int,
    signal_store: SignalStore,
    content_provider: ContentProvider,
    config: RecommendationConfig,
) -> LastWatchedSimilar:
    signals = await signal_store.list_signals(
        user_id, limit=1, most_recent_first=True, kinds=[SignalKind.VIEW]
    )
    if not signals:
        return LastWatchedSimilar()
    last_id = signals[0].content_id
    found = await content_provider.find_content(
        ContentFilter(status=None, public_only=False, id_in=[last_id]),
        ContentOrder.AS_REQUESTED,
        limit=1,
    )
    if not found:
        logger.info("[strategy] last watched %s for %s no longer exists", last_id, user_id)
        return LastWatchedSimilar()
    candidates = await similar_to_item(content_provider, found[0], limit, config)
    return LastWatchedSimilar(last_watched=found[0], candidates=candidates)
