"""
Blender — merge strategy outputs under proportional quotas.

Strategies are merged in strict priority order (collaborative, content-based,
trending, diversity). Each strategy may fill the list up to its cumulative
ceiling (40%, 70%, 90%, 100% of limit with default weights), so a later
strategy absorbs any shortfall left by earlier ones up to its own ceiling.
There is no second backfill pass. The first strategy to emit an id wins.
"""

import logging
import math
from typing import Dict, List

from ..models.config import STRATEGY_ORDER, RecommendationConfig
from ..models.scoring import ScoredCandidate

logger = logging.getLogger(__name__)


def strategy_quotas(limit: int, config: RecommendationConfig) -> Dict[str, int]:
    """ceil(limit * weight) per strategy."""
    return {
        name: math.ceil(round(limit * weight, 9))
        for name, weight in config.strategy_weights().items()
    }


def fetch_sizes(limit: int, config: RecommendationConfig) -> Dict[str, int]:
    """How many candidates to request from each strategy (quota * overfetch_factor)."""
    return {
        name: quota * config.overfetch_factor
        for name, quota in strategy_quotas(limit, config).items()
    }


def cumulative_ceilings(limit: int, config: RecommendationConfig) -> Dict[str, float]:
    """Max result length each strategy may fill up to; rounded to absorb float drift."""
    ceilings = {}
    running = 0.0
    for name, weight in config.strategy_weights().items():
        running += weight
        ceilings[name] = round(limit * running, 9)
    # The last tier always reaches limit even if weights sum to 0.99..1.01.
    ceilings[STRATEGY_ORDER[-1]] = float(limit)
    return ceilings


def blend(
    buckets: Dict[str, List[ScoredCandidate]],
    limit: int,
    config: RecommendationConfig,
) -> List[ScoredCandidate]:
    """Merge buckets keyed by strategy name into at most limit unique candidates."""
    ceilings = cumulative_ceilings(limit, config)
    result: List[ScoredCandidate] = []
    placed = set()
    for name in STRATEGY_ORDER:
        ceiling = ceilings[name]
        for candidate in buckets.get(name, []):
            if len(result) >= ceiling:
                break
            if candidate.content_id in placed:
                continue
            placed.add(candidate.content_id)
            result.append(candidate)
    logger.debug(
        "[blend] limit=%d in=%s out=%d",
        limit, {name: len(buckets.get(name, [])) for name in STRATEGY_ORDER}, len(result),
    )
    return result[:limit]
