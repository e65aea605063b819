"""
Explore/exploit interleaving of a personalized list with a discovery list.

Each slot draws from the personalized list with probability
exploit_probability, otherwise from the exploration list; when the chosen
list is exhausted the other one is used. Ids already placed are skipped.
The random source is injected so sequences are reproducible.
"""

import random
from typing import List, Optional

from ...models.config import RecommendationConfig, resolve_config
from ...models.scoring import ScoredCandidate


def interleave(
    personalized: List[ScoredCandidate],
    exploration: List[ScoredCandidate],
    limit: int,
    rng: random.Random,
    config: Optional[RecommendationConfig] = None,
) -> List[ScoredCandidate]:
    config = resolve_config(config)
    result: List[ScoredCandidate] = []
    placed = set()
    p_index = 0
    e_index = 0

    while len(result) < limit and (p_index < len(personalized) or e_index < len(exploration)):
        exploit = rng.random() < config.exploit_probability
        if (exploit and p_index < len(personalized)) or e_index >= len(exploration):
            candidate = personalized[p_index]
            p_index += 1
        else:
            candidate = exploration[e_index]
            e_index += 1
        if candidate.content_id in placed:
            continue
        placed.add(candidate.content_id)
        result.append(candidate)
    return result
