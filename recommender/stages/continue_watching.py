"""
Continue watching — partially watched items from an identity's own history.
"""

from typing import Dict, List

from ..models.config import RecommendationConfig
from ..models.content import ContentFilter, ContentOrder
from ..models.scoring import ScoredCandidate, StrategySource
from ..models.signal import SignalKind
from ..providers import ContentProvider, SignalStore


async def continue_watching_candidates(
    user_id: str,
    limit: int,
    signal_store: SignalStore,
    content_provider: ContentProvider,
    config: RecommendationConfig,
) -> List[ScoredCandidate]:
    """
    Latest view per content with completion below continue_watching_max_completion,
    most recent first. Score is the remaining fraction (1 - completion_rate).
    """
    signals = await signal_store.list_signals(
        user_id,
        limit=config.continue_watching_scan,
        most_recent_first=True,
        kinds=[SignalKind.VIEW],
    )
    remaining: Dict[str, float] = {}
    decided = set()
    for signal in signals:
        if signal.content_id in decided:
            continue
        decided.add(signal.content_id)
        rate = signal.completion_rate
        if rate is not None and rate < config.continue_watching_max_completion:
            remaining[signal.content_id] = 1.0 - rate
    if not remaining:
        return []

    items = await content_provider.find_content(
        ContentFilter(id_in=list(remaining)),
        ContentOrder.AS_REQUESTED,
    )
    return [
        ScoredCandidate(
            content_id=item.id,
            score=remaining[item.id],
            source_strategy=StrategySource.CONTINUE_WATCHING,
            item=item,
        )
        for item in items[:limit]
    ]
