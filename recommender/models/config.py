"""
Engine configuration — history windows, blend quotas, trending, cold start,
re-ranking and explore/exploit parameters.

RecommendationConfig defaults are defined here. The server may pass a dict
(e.g. from RECOMMENDATION_CONFIG_PATH); from_dict() merges it with these defaults.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, model_validator

# Strategy names in blend priority order.
STRATEGY_ORDER: Tuple[str, ...] = ("collaborative", "content_based", "trending", "diversity")

TRENDING_PERIOD_HOURS: Dict[str, int] = {
    "today": 24,
    "week": 168,
    "month": 720,
}


class RecommendationConfig(BaseModel):
    """Configuration for the hybrid recommendation engine."""

    # -------------------------------------------------------------------------
    # Request validation
    # -------------------------------------------------------------------------

    # Largest limit accepted by get_recommendations. Larger requests are rejected.
    max_limit: int = 200

    # -------------------------------------------------------------------------
    # Collaborative filtering (Jaccard neighbors)
    # -------------------------------------------------------------------------

    # Max distinct viewed content ids kept per identity history (most recent first).
    history_window: int = 100
    # Neighbors below this Jaccard similarity are discarded.
    min_similarity: float = 0.1
    # Max neighbors kept after sorting by similarity.
    max_neighbors: int = 50
    # Max neighbor histories fetched concurrently.
    neighbor_fetch_concurrency: int = 10

    # -------------------------------------------------------------------------
    # Content-based / diversity profiles
    # -------------------------------------------------------------------------

    # Most recent signals used to build the short-term preference profile.
    recent_signal_window: int = 10
    # Most recent signals whose categories/creators the diversity sampler avoids.
    diversity_history_window: int = 20

    # -------------------------------------------------------------------------
    # Blender quotas (must sum to 1.0)
    # quota = ceil(limit * weight); ceilings are cumulative in STRATEGY_ORDER
    # -------------------------------------------------------------------------

    weight_collaborative: float = 0.40
    weight_content_based: float = 0.30
    weight_trending: float = 0.20
    weight_diversity: float = 0.10

    # Each strategy is asked for quota * overfetch_factor to absorb duplicate loss.
    overfetch_factor: int = 2

    # Per-strategy timeout; a strategy that exceeds it contributes nothing.
    strategy_timeout_seconds: float = 0.3

    # -------------------------------------------------------------------------
    # Trending
    # score = (views / hours) * (1 + engagement) * exp(-hours / trending_decay_hours)
    # -------------------------------------------------------------------------

    # Period used by the blender's trending bucket.
    trending_period: str = "today"
    # Periods refreshed by the background scheduler.
    trending_periods: List[str] = ["today", "week", "month"]
    trending_decay_hours: float = 168.0
    # Floor for hours since publish (one minute) so fresh content never divides by zero.
    trending_min_hours: float = 1.0 / 60.0
    # Snapshots kept per period.
    trending_snapshot_size: int = 500
    # Cached snapshots older than this are recomputed on read.
    trending_max_age_seconds: int = 6 * 3600
    # Engagement weights: (likes + 2 * comments + 3 * shares) / views.
    engagement_weight_like: float = 1.0
    engagement_weight_comment: float = 2.0
    engagement_weight_share: float = 3.0

    # -------------------------------------------------------------------------
    # Cold start
    # -------------------------------------------------------------------------

    # Only content with view_count strictly above this floor is used for cold start.
    cold_start_view_floor: int = 10_000

    # -------------------------------------------------------------------------
    # Contextual re-ranking multipliers
    # -------------------------------------------------------------------------

    morning_short_boost: float = 1.2
    short_content_max_seconds: int = 600
    mobile_boost: float = 1.15
    category_affinity_boost: float = 1.1
    creator_fatigue_penalty: float = 0.7
    # Fatigue applies when a creator appears more than this many times in recent creators.
    creator_fatigue_threshold: int = 2

    # -------------------------------------------------------------------------
    # Explore / exploit
    # -------------------------------------------------------------------------

    exploit_probability: float = 0.8
    # Exploration list size = ceil(limit * explore_ratio).
    explore_ratio: float = 0.2

    # -------------------------------------------------------------------------
    # Similar content / continue watching
    # -------------------------------------------------------------------------

    similar_category_points: float = 5.0
    similar_tag_points: float = 2.0
    similar_creator_points: float = 3.0
    similar_duration_points: float = 1.0
    similar_duration_tolerance: float = 0.2
    continue_watching_max_completion: float = 0.9
    continue_watching_scan: int = 100

    # -------------------------------------------------------------------------
    # Session behavior cache
    # -------------------------------------------------------------------------

    session_ttl_seconds: int = 3600

    @model_validator(mode="after")
    def weights_sum_to_one(self):
        total = sum(self.strategy_weights().values())
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Blend weights must sum to 1.0, got {total}")
        if self.trending_period not in TRENDING_PERIOD_HOURS:
            raise ValueError(f"Unknown trending_period: {self.trending_period!r}")
        return self

    def strategy_weights(self) -> Dict[str, float]:
        """Blend weight per strategy, in priority order."""
        return {
            "collaborative": self.weight_collaborative,
            "content_based": self.weight_content_based,
            "trending": self.weight_trending,
            "diversity": self.weight_diversity,
        }

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RecommendationConfig":
        """Create config from a (possibly nested) dictionary, e.g. loaded from JSON."""
        flat = {k: v for k, v in config_dict.items() if not isinstance(v, dict)}
        if "blend" in config_dict:
            blend = config_dict["blend"]
            weights = blend.get("weights", {})
            for name in STRATEGY_ORDER:
                if name in weights:
                    flat[f"weight_{name}"] = weights[name]
            if "overfetch_factor" in blend:
                flat["overfetch_factor"] = blend["overfetch_factor"]
            if "timeout_ms" in blend:
                flat["strategy_timeout_seconds"] = blend["timeout_ms"] / 1000.0
        if "collaborative" in config_dict:
            flat.update(config_dict["collaborative"])
        if "trending" in config_dict:
            tr = config_dict["trending"]
            for key in ("decay_hours", "min_hours", "snapshot_size", "max_age_seconds"):
                if key in tr:
                    flat[f"trending_{key}"] = tr[key]
            if "period" in tr:
                flat["trending_period"] = tr["period"]
            if "periods" in tr:
                flat["trending_periods"] = tr["periods"]
        if "cold_start" in config_dict:
            cs = config_dict["cold_start"]
            if "view_floor" in cs:
                flat["cold_start_view_floor"] = cs["view_floor"]
        if "rerank" in config_dict:
            flat.update(config_dict["rerank"])
        if "explore" in config_dict:
            ex = config_dict["explore"]
            if "exploit_probability" in ex:
                flat["exploit_probability"] = ex["exploit_probability"]
            if "ratio" in ex:
                flat["explore_ratio"] = ex["ratio"]
        if "session" in config_dict:
            se = config_dict["session"]
            if "ttl_seconds" in se:
                flat["session_ttl_seconds"] = se["ttl_seconds"]
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = RecommendationConfig()


def resolve_config(config: Optional["RecommendationConfig"]) -> "RecommendationConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
