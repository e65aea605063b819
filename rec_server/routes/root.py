"""Root and health endpoints."""

from fastapi import APIRouter, Depends

from ..state import AppState, get_state

router = APIRouter()


@router.get("/")
def root(state: AppState = Depends(get_state)):
    return {
        "name": "Hybrid Recommendation API",
        "version": "1.0.0",
        "data_source": state.data_source,
        "endpoints": {
            "recommendations": [
                "/api/recommendations",
                "/api/recommendations/feed",
                "/api/recommendations/similar/{content_id}",
                "/api/recommendations/continue-watching",
                "/api/recommendations/last-watched-similar",
            ],
            "trending": ["/api/recommendations/trending", "/api/recommendations/trending/recalculate"],
            "tracking": ["/api/recommendations/track-view", "/api/recommendations/track-like"],
        },
    }


@router.get("/api/health")
def health(state: AppState = Depends(get_state)):
    return {
        "status": "healthy",
        "data_source": state.data_source,
        "session_cache": type(state.engine.session_cache).__name__,
        "trending_scheduler": bool(state.scheduler and state.scheduler.running),
        "pending_tasks": len(state.engine.tasks),
    }
