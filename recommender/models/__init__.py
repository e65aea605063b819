"""Data models for the recommendation engine."""

from .config import (
    DEFAULT_CONFIG,
    STRATEGY_ORDER,
    TRENDING_PERIOD_HOURS,
    RecommendationConfig,
    resolve_config,
)
from .content import ContentFilter, ContentItem, ContentOrder, sort_content
from .context import (
    DeviceClass,
    Identity,
    TimeOfDay,
    UserContext,
    device_class_for,
    time_of_day_for,
)
from .scoring import (
    LastWatchedSimilar,
    RecommendationResult,
    ScoredCandidate,
    StrategySource,
    TrendingSnapshot,
)
from .session import SessionBehavior
from .signal import Signal, SignalKind

__all__ = [
    "DEFAULT_CONFIG",
    "STRATEGY_ORDER",
    "TRENDING_PERIOD_HOURS",
    "ContentFilter",
    "ContentItem",
    "ContentOrder",
    "DeviceClass",
    "Identity",
    "LastWatchedSimilar",
    "RecommendationConfig",
    "RecommendationResult",
    "ScoredCandidate",
    "SessionBehavior",
    "Signal",
    "SignalKind",
    "StrategySource",
    "TimeOfDay",
    "TrendingSnapshot",
    "UserContext",
    "device_class_for",
    "resolve_config",
    "sort_content",
]
