"""Recommendation request/response models."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from .common import ContentCard


class RecommendationResponse(BaseModel):
    items: List[ContentCard]
    count: int
    cold_start: bool = False
    strategy_counts: Dict[str, int] = {}


class ContentListResponse(BaseModel):
    items: List[ContentCard]
    count: int


class TrendingResponse(BaseModel):
    period: str
    items: List[ContentCard]
    count: int


class RecalculateTrendingRequest(BaseModel):
    period: Optional[str] = None


class RecalculateTrendingResponse(BaseModel):
    period: str
    computed_at: str
    count: int


class TrackViewRequest(BaseModel):
    session_id: str
    content_id: str
    category_ids: List[str] = []
    tag_ids: List[str] = []
    creator_id: Optional[str] = None


class TrackLikeRequest(BaseModel):
    session_id: str
    content_id: str


class TrackResponse(BaseModel):
    accepted: bool = True


class LastWatchedSimilarResponse(BaseModel):
    items: List[ContentCard]
    count: int
    last_watched_id: Optional[str] = None
    last_watched_title: Optional[str] = None
