"""Pipeline stages: the four blend strategies, blending, cold start and post-blend ranking."""

from .blender import blend, cumulative_ceilings, fetch_sizes, strategy_quotas
from .cold_start import cold_start_candidates
from .collaborative import (
    find_neighbors,
    score_neighbor_content,
    session_collaborative_candidates,
    user_collaborative_candidates,
    view_history,
)
from .content_based import session_content_based_candidates, user_content_based_candidates
from .continue_watching import continue_watching_candidates
from .diversity import session_diversity_candidates, user_diversity_candidates
from .profile import PreferenceProfile, profile_from_session, profile_from_signals
from .ranking import interleave, rerank, similar_content_candidates
from .trending import compute_trending, get_trending_snapshot, trending_candidates

__all__ = [
    "PreferenceProfile",
    "blend",
    "cold_start_candidates",
    "compute_trending",
    "continue_watching_candidates",
    "cumulative_ceilings",
    "fetch_sizes",
    "find_neighbors",
    "get_trending_snapshot",
    "interleave",
    "profile_from_session",
    "profile_from_signals",
    "rerank",
    "score_neighbor_content",
    "session_collaborative_candidates",
    "session_content_based_candidates",
    "session_diversity_candidates",
    "similar_content_candidates",
    "strategy_quotas",
    "trending_candidates",
    "user_collaborative_candidates",
    "user_content_based_candidates",
    "user_diversity_candidates",
    "view_history",
]
