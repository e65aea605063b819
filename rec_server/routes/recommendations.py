"""Recommendation, trending and session-tracking endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from recommender import ContentNotFound, InvalidRecommendationRequest, RecommendationEngine

from ..models import (
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
from ..state import get_engine
from ..utils import DEFAULT_PAGE_SIZE, to_content_cards

logger = logging.getLogger(__name__)

router = APIRouter()


def _identity(user_id: Optional[str], session_id: Optional[str]) -> dict:
    return {"user_id": user_id, "session_id": session_id}


def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    parts = [p.strip() for p in value.split(",") if p.strip()]
    return parts or None


@router.get("", response_model=RecommendationResponse)
async def get_recommendations(
    limit: int = DEFAULT_PAGE_SIZE,
    user_id: Optional[str] = None,
    categories: Optional[str] = None,
    x_session_id: Optional[str] = Header(None),
    engine: RecommendationEngine = Depends(get_engine),
):
    """Blended recommendations (cold start for identities without signals)."""
    try:
        result = await engine.recommend(
            _identity(user_id, x_session_id),
            limit,
            onboarding_categories=_split_csv(categories),
        )
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    items = to_content_cards(result.candidates)
    return RecommendationResponse(
        items=items,
        count=len(items),
        cold_start=result.cold_start,
        strategy_counts=result.strategy_counts,
    )


@router.get("/feed", response_model=ContentListResponse)
async def get_feed(
    limit: int = DEFAULT_PAGE_SIZE,
    user_id: Optional[str] = None,
    x_session_id: Optional[str] = Header(None),
    user_agent: Optional[str] = Header(None),
    engine: RecommendationEngine = Depends(get_engine),
):
    """Personalized feed: recommendations re-ranked for the request context plus exploration."""
    try:
        candidates = await engine.get_personalized_feed(
            _identity(user_id, x_session_id), limit, user_agent=user_agent
        )
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    items = to_content_cards(candidates)
    return ContentListResponse(items=items, count=len(items))


@router.get("/similar/{content_id}", response_model=ContentListResponse)
async def get_similar(
    content_id: str,
    limit: int = 10,
    engine: RecommendationEngine = Depends(get_engine),
):
    try:
        candidates = await engine.find_similar_content(content_id, limit)
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ContentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    items = to_content_cards(candidates)
    return ContentListResponse(items=items, count=len(items))


@router.get("/continue-watching", response_model=ContentListResponse)
async def get_continue_watching(
    user_id: Optional[str] = None,
    limit: int = 10,
    engine: RecommendationEngine = Depends(get_engine),
):
    try:
        candidates = await engine.get_continue_watching(user_id, limit)
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    items = to_content_cards(candidates)
    return ContentListResponse(items=items, count=len(items))


@router.get("/last-watched-similar", response_model=LastWatchedSimilarResponse)
async def get_last_watched_similar(
    user_id: Optional[str] = None,
    limit: int = DEFAULT_PAGE_SIZE,
    engine: RecommendationEngine = Depends(get_engine),
):
    """Similar content for the user's most recent view; empty for anonymous callers."""
    if not user_id:
        return LastWatchedSimilarResponse(items=[], count=0)
    try:
        result = await engine.get_last_watched_similar(user_id, limit)
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    items = to_content_cards(result.candidates)
    return LastWatchedSimilarResponse(
        items=items,
        count=len(items),
        last_watched_id=result.last_watched.id if result.last_watched else None,
        last_watched_title=result.last_watched_title,
    )


@router.get("/trending", response_model=TrendingResponse)
async def get_trending(
    period: Optional[str] = None,
    limit: int = DEFAULT_PAGE_SIZE,
    engine: RecommendationEngine = Depends(get_engine),
):
    try:
        candidates = await engine.get_trending(period, limit)
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    items = to_content_cards(candidates)
    return TrendingResponse(
        period=period or engine.config.trending_period,
        items=items,
        count=len(items),
    )


@router.post("/trending/recalculate", response_model=RecalculateTrendingResponse)
async def recalculate_trending(
    request: RecalculateTrendingRequest,
    engine: RecommendationEngine = Depends(get_engine),
):
    try:
        snapshot = await engine.recalculate_trending(request.period)
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RecalculateTrendingResponse(
        period=snapshot.period,
        computed_at=snapshot.computed_at.isoformat(),
        count=len(snapshot.candidates),
    )


@router.post("/track-view", response_model=TrackResponse, status_code=202)
async def track_view(
    request: TrackViewRequest,
    engine: RecommendationEngine = Depends(get_engine),
):
    """Best-effort: the session update runs after the response is sent."""
    try:
        engine.track_content_view_nowait(
            request.session_id,
            request.content_id,
            category_ids=request.category_ids,
            tag_ids=request.tag_ids,
            creator_id=request.creator_id,
        )
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TrackResponse()


@router.post("/track-like", response_model=TrackResponse, status_code=202)
async def track_like(
    request: TrackLikeRequest,
    engine: RecommendationEngine = Depends(get_engine),
):
    try:
        engine.track_content_like_nowait(request.session_id, request.content_id)
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TrackResponse()


@router.delete("/sessions/{session_id}", status_code=204)
async def clear_session(
    session_id: str,
    engine: RecommendationEngine = Depends(get_engine),
):
    try:
        await engine.clear_session(session_id)
    except InvalidRecommendationRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
