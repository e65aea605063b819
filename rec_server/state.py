"""Application state: engine, stores, and background schedulers."""

import asyncio
import logging
import random
from typing import Any, Optional

from fastapi import Request

from recommender import BestEffortTasks, RecommendationEngine, TrendingRefreshScheduler

from .config import ServerConfig, get_config
from .services import (
    FirestoreContentProvider,
    FirestoreSignalStore,
    FirestoreUserStore,
    InMemoryContentProvider,
    InMemorySessionCache,
    InMemorySignalStore,
    InMemoryTrendingCache,
    InMemoryUserStore,
    JsonContentProvider,
    JsonSignalStore,
    JsonUserStore,
    RedisSessionCache,
    RedisTrendingCache,
    create_async_client,
    make_redis_client,
)

logger = logging.getLogger(__name__)


class AppState:
    """Everything a request needs: the engine plus the stores behind it."""

    def __init__(
        self,
        config: ServerConfig,
        engine: RecommendationEngine,
        scheduler: Optional[TrendingRefreshScheduler] = None,
        redis: Optional[Any] = None,
    ):
        self.config = config
        self.engine = engine
        self.scheduler = scheduler
        self.redis = redis
        self._sweep_task: Optional[asyncio.Task] = None

    @property
    def data_source(self) -> str:
        return self.config.data_source

    async def _sweep_sessions(self, cache: InMemorySessionCache) -> None:
        while True:
            await asyncio.sleep(self.config.session_sweep_seconds)
            cache.purge_expired()

    async def start(self) -> None:
        """Start background work (trending refresh, in-memory session sweep)."""
        if self.scheduler is not None:
            self.scheduler.start()
        cache = self.engine.session_cache
        if isinstance(cache, InMemorySessionCache) and self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_sessions(cache), name="session-sweep")

    async def stop(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.stop()
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        await self.engine.tasks.drain()
        if self.redis is not None:
            await self.redis.aclose()


def _create_stores(config: ServerConfig):
    """(content_provider, signal_store, user_store) for config.data_source."""
    if config.data_source == "firebase":
        client = create_async_client(config.firebase_project_id, config.firebase_credentials_path)
        logger.info("[startup] Data source: Firestore")
        return (
            FirestoreContentProvider(client),
            FirestoreSignalStore(client),
            FirestoreUserStore(client),
        )
    if config.data_source == "json" and config.content_json_path:
        signals = (
            JsonSignalStore(config.signals_json_path)
            if config.signals_json_path
            else InMemorySignalStore()
        )
        users = JsonUserStore(config.users_json_path) if config.users_json_path else InMemoryUserStore()
        logger.info("[startup] Data source: JSON (%s)", config.content_json_path)
        return JsonContentProvider(config.content_json_path), signals, users
    logger.info("[startup] Data source: in-memory (empty catalog)")
    return InMemoryContentProvider(), InMemorySignalStore(), InMemoryUserStore()


def build_state(config: Optional[ServerConfig] = None) -> AppState:
    """Wire stores, caches and the engine from a ServerConfig."""
    config = config or get_config()
    ok, errors = config.validate()
    if not ok:
        raise ValueError("Invalid server configuration: " + "; ".join(errors))

    rec_config = config.load_recommendation_config()
    content_provider, signal_store, user_store = _create_stores(config)

    redis = None
    if config.redis_url:
        redis = make_redis_client(config.redis_url)
        session_cache = RedisSessionCache(redis)
        trending_cache = RedisTrendingCache(redis, ttl_seconds=rec_config.trending_max_age_seconds * 2)
        logger.info("[startup] Session cache: Redis")
    else:
        session_cache = InMemorySessionCache()
        trending_cache = InMemoryTrendingCache()
        logger.info("[startup] Session cache: in-memory")

    engine = RecommendationEngine(
        content_provider=content_provider,
        signal_store=signal_store,
        session_cache=session_cache,
        trending_cache=trending_cache,
        onboarding_source=user_store,
        config=rec_config,
        tasks=BestEffortTasks(),
        rng=random.Random(),
    )
    scheduler = TrendingRefreshScheduler(
        engine.recalculate_trending,
        rec_config.trending_periods,
        config.trending_refresh_seconds,
    )
    return AppState(config, engine, scheduler=scheduler, redis=redis)


def get_state(request: Request) -> AppState:
    """FastAPI dependency: the AppState attached to the running app."""
    return request.app.state.rec


def get_engine(request: Request) -> RecommendationEngine:
    return get_state(request).engine
