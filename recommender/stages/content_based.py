"""
Content-based matching — unseen content sharing attributes with recent activity.
"""

from typing import List

from ..models.config import RecommendationConfig
from ..models.content import ContentFilter, ContentOrder
from ..models.scoring import ScoredCandidate, StrategySource
from ..models.session import SessionBehavior
from ..providers import ContentProvider, SignalStore
from .profile import PreferenceProfile, profile_from_session, profile_from_signals


async def content_based_for_profile(
    profile: PreferenceProfile,
    limit: int,
    content_provider: ContentProvider,
) -> List[ScoredCandidate]:
    """Live content matching any preferred category, tag or creator; score = view count."""
    if not profile.has_preferences:
        return []
    items = await content_provider.find_content(
        ContentFilter(
            category_in=set(profile.category_ids),
            tag_in=set(profile.tag_ids),
            creator_in=set(profile.creator_ids),
            exclude_ids=set(profile.seen_ids),
        ),
        ContentOrder.VIEW_COUNT_DESC,
        limit=limit,
    )
    return [
        ScoredCandidate(
            content_id=item.id,
            score=float(item.view_count),
            source_strategy=StrategySource.CONTENT_BASED,
            item=item,
        )
        for item in items
    ]


async def user_content_based_candidates(
    user_id: str,
    limit: int,
    signal_store: SignalStore,
    content_provider: ContentProvider,
    config: RecommendationConfig,
) -> List[ScoredCandidate]:
    signals = await signal_store.list_signals(user_id, limit=config.recent_signal_window)
    profile = await profile_from_signals(signals[: config.recent_signal_window], content_provider)
    return await content_based_for_profile(profile, limit, content_provider)


async def session_content_based_candidates(
    behavior: SessionBehavior,
    limit: int,
    content_provider: ContentProvider,
) -> List[ScoredCandidate]:
    return await content_based_for_profile(profile_from_session(behavior), limit, content_provider)
