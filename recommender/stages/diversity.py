"""
Diversity sampling — popular content outside the identity's recent categories and creators.
"""

from typing import List

from ..models.config import RecommendationConfig
from ..models.content import ContentFilter, ContentOrder
from ..models.scoring import ScoredCandidate, StrategySource
from ..models.session import SessionBehavior
from ..providers import ContentProvider, SignalStore
from .profile import PreferenceProfile, profile_from_session, profile_from_signals


async def diversity_for_profile(
    profile: PreferenceProfile,
    limit: int,
    content_provider: ContentProvider,
) -> List[ScoredCandidate]:
    items = await content_provider.find_content(
        ContentFilter(
            category_not_in=set(profile.category_ids),
            creator_not_in=set(profile.creator_ids),
            exclude_ids=set(profile.seen_ids),
        ),
        ContentOrder.VIEW_COUNT_DESC,
        limit=limit,
    )
    return [
        ScoredCandidate(
            content_id=item.id,
            score=float(item.view_count),
            source_strategy=StrategySource.DIVERSITY,
            item=item,
        )
        for item in items
    ]


async def user_diversity_candidates(
    user_id: str,
    limit: int,
    signal_store: SignalStore,
    content_provider: ContentProvider,
    config: RecommendationConfig,
) -> List[ScoredCandidate]:
    signals = await signal_store.list_signals(user_id, limit=config.diversity_history_window)
    profile = await profile_from_signals(signals[: config.diversity_history_window], content_provider)
    return await diversity_for_profile(profile, limit, content_provider)


async def session_diversity_candidates(
    behavior: SessionBehavior,
    limit: int,
    content_provider: ContentProvider,
) -> List[ScoredCandidate]:
    return await diversity_for_profile(profile_from_session(behavior), limit, content_provider)
