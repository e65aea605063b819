"""Pydantic request/response models for the API."""

from .common import ContentCard
from .recommendations import (
    ContentListResponse,
    LastWatchedSimilarResponse,
    RecalculateTrendingRequest,
    RecalculateTrendingResponse,
    RecommendationResponse,
    TrackLikeRequest,
    TrackResponse,
    TrackViewRequest,
    TrendingResponse,
)

__all__ = [
    "ContentCard",
    "ContentListResponse",
    "LastWatchedSimilarResponse",
    "RecalculateTrendingRequest",
    "RecalculateTrendingResponse",
    "RecommendationResponse",
    "TrackLikeRequest",
    "TrackResponse",
    "TrackViewRequest",
    "TrendingResponse",
]
