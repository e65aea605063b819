"""
Cold start — popular content for identities with no signals.

Bypasses the blender entirely: published, public content above the
view-count floor, optionally restricted to onboarding categories, most
viewed first.
"""

from typing import List, Optional

from ..models.config import RecommendationConfig
from ..models.content import ContentFilter, ContentOrder
from ..models.scoring import ScoredCandidate, StrategySource
from ..providers import ContentProvider


async def cold_start_candidates(
    content_provider: ContentProvider,
    limit: int,
    config: RecommendationConfig,
    categories: Optional[List[str]] = None,
) -> List[ScoredCandidate]:
    content_filter = ContentFilter(
        min_view_count=config.cold_start_view_floor,
        category_in=set(categories) if categories else None,
    )
    items = await content_provider.find_content(
        content_filter, ContentOrder.VIEW_COUNT_DESC, limit=limit
    )
    return [
        ScoredCandidate(
            content_id=item.id,
            score=float(item.view_count),
            source_strategy=StrategySource.COLD_START,
            item=item,
        )
        for item in items
    ]
