"""
Collaborative filtering — content watched by identities with similar histories.

Authenticated identities: Jaccard neighbors over view histories, candidates
scored by the similarity-weighted sum of neighbors who watched them.
Anonymous sessions have no cross-identity history, so they fall back to
attribute overlap with the session aggregate.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from ..models.config import RecommendationConfig
from ..models.content import ContentFilter, ContentOrder
from ..models.scoring import ScoredCandidate, StrategySource
from ..models.session import SessionBehavior
from ..models.signal import SignalKind
from ..providers import ContentProvider, SignalStore
from ..utils.similarity import jaccard_similarity

logger = logging.getLogger(__name__)


async def view_history(
    signal_store: SignalStore,
    identity_ref: str,
    config: RecommendationConfig,
) -> List[str]:
    """Distinct viewed content ids, most recent first, capped at history_window."""
    signals = await signal_store.list_signals(
        identity_ref,
        limit=config.history_window * 2,
        most_recent_first=True,
        kinds=[SignalKind.VIEW],
    )
    history = list(dict.fromkeys(s.content_id for s in signals))
    return history[: config.history_window]


async def find_neighbors(
    signal_store: SignalStore,
    user_id: str,
    history: List[str],
    config: RecommendationConfig,
) -> List[Tuple[str, float, List[str]]]:
    """
    Identities whose history overlaps the requester's.

    Returns (identity_ref, similarity, history) sorted by similarity desc,
    thresholded at min_similarity and capped at max_neighbors.
    """
    others = await signal_store.list_identities_with_signal(history, kinds=[SignalKind.VIEW])
    others = sorted({ref for ref in others if ref != user_id})
    if not others:
        return []

    semaphore = asyncio.Semaphore(config.neighbor_fetch_concurrency)

    async def fetch(ref: str) -> List[str]:
        async with semaphore:
            return await view_history(signal_store, ref, config)

    histories = await asyncio.gather(*(fetch(ref) for ref in others))

    neighbors = []
    for ref, other_history in zip(others, histories):
        similarity = jaccard_similarity(history, other_history)
        if similarity >= config.min_similarity:
            neighbors.append((ref, similarity, other_history))
    neighbors.sort(key=lambda n: (-n[1], n[0]))
    return neighbors[: config.max_neighbors]


def score_neighbor_content(
    history: List[str],
    neighbors: List[Tuple[str, float, List[str]]],
) -> List[Tuple[str, float, int]]:
    """
    (content_id, weighted score, neighbor count) for content the requester has not seen.

    Sorted by score desc, then neighbor count desc, then content id.
    """
    seen = set(history)
    scores: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for _, similarity, other_history in neighbors:
        for content_id in set(other_history):
            if content_id in seen:
                continue
            scores[content_id] += similarity
            counts[content_id] += 1
    ranked = [(cid, scores[cid], counts[cid]) for cid in scores]
    ranked.sort(key=lambda r: (-r[1], -r[2], r[0]))
    return ranked


async def user_collaborative_candidates(
    user_id: str,
    limit: int,
    signal_store: SignalStore,
    content_provider: ContentProvider,
    config: RecommendationConfig,
) -> List[ScoredCandidate]:
    history = await view_history(signal_store, user_id, config)
    if not history:
        return []

    neighbors = await find_neighbors(signal_store, user_id, history, config)
    ranked = score_neighbor_content(history, neighbors)
    logger.debug(
        "[strategy] collaborative user=%s history=%d neighbors=%d candidates=%d",
        user_id, len(history), len(neighbors), len(ranked),
    )
    if not ranked:
        return []

    score_by_id = {cid: score for cid, score, _ in ranked}
    page_size = limit * config.overfetch_factor
    items = []
    # Ranked ids are loaded a page at a time; later pages only when earlier ones
    # held too few live items.
    for start in range(0, len(ranked), page_size):
        page = [cid for cid, _, _ in ranked[start:start + page_size]]
        items.extend(await content_provider.find_content(
            ContentFilter(id_in=page),
            ContentOrder.AS_REQUESTED,
        ))
        if len(items) >= limit:
            break
    return [
        ScoredCandidate(
            content_id=item.id,
            score=score_by_id[item.id],
            source_strategy=StrategySource.COLLABORATIVE,
            item=item,
        )
        for item in items[:limit]
    ]


async def session_collaborative_candidates(
    behavior: SessionBehavior,
    limit: int,
    content_provider: ContentProvider,
) -> List[ScoredCandidate]:
    """Unseen content sharing categories or tags with the session, most overlap first."""
    if not behavior.category_ids and not behavior.tag_ids:
        return []

    items = await content_provider.find_content(
        ContentFilter(
            category_in=set(behavior.category_ids),
            tag_in=set(behavior.tag_ids),
            exclude_ids=behavior.seen_ids(),
        ),
        ContentOrder.VIEW_COUNT_DESC,
    )

    def overlap(item) -> int:
        return len(behavior.category_ids.intersection(item.category_ids)) + len(
            behavior.tag_ids.intersection(item.tag_ids)
        )

    # Stable sort keeps view_count order among equal overlaps.
    ranked = sorted(items, key=overlap, reverse=True)
    return [
        ScoredCandidate(
            content_id=item.id,
            score=float(overlap(item)),
            source_strategy=StrategySource.COLLABORATIVE,
            item=item,
        )
        for item in ranked[:limit]
    ]
