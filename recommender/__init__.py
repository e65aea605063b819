"""
Hybrid recommendation engine.

Single entry point for the recommender package:
- models/: RecommendationConfig, ContentItem, Signal, SessionBehavior, ScoredCandidate
- stages/: collaborative, content-based, trending, diversity, blender, cold start, ranking
- engine: RecommendationEngine facade
- providers: Protocols for the stores the engine reads and writes
"""

from .engine import RecommendationEngine
from .errors import ContentNotFound, InvalidRecommendationRequest
from .models import (
    DEFAULT_CONFIG,
    ContentFilter,
    ContentItem,
    ContentOrder,
    Identity,
    RecommendationConfig,
    RecommendationResult,
    ScoredCandidate,
    SessionBehavior,
    Signal,
    SignalKind,
    StrategySource,
    TrendingSnapshot,
    UserContext,
)
from .providers import ContentProvider, OnboardingSource, SessionCache, SignalStore, TrendingCache
from .tasks import BestEffortTasks, TrendingRefreshScheduler

__all__ = [
    "DEFAULT_CONFIG",
    "BestEffortTasks",
    "ContentFilter",
    "ContentItem",
    "ContentNotFound",
    "ContentOrder",
    "ContentProvider",
    "Identity",
    "InvalidRecommendationRequest",
    "OnboardingSource",
    "RecommendationConfig",
    "RecommendationEngine",
    "RecommendationResult",
    "ScoredCandidate",
    "SessionBehavior",
    "SessionCache",
    "Signal",
    "SignalKind",
    "SignalStore",
    "StrategySource",
    "TrendingCache",
    "TrendingRefreshScheduler",
    "TrendingSnapshot",
    "UserContext",
]
