"""Post-blend ranking: contextual re-ranking, explore/exploit interleaving, item-to-item similarity."""

from .contextual import context_multiplier, rerank
from .explore_exploit import interleave
from .similar_content import last_watched_similar, similar_content_candidates, similarity_points

__all__ = [
    "context_multiplier",
    "interleave",
    "last_watched_similar",
    "rerank",
    "similar_content_candidates",
    "similarity_points",
]
