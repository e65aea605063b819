"""
Recommendation engine — facade over the hybrid pipeline.

- Cold start: identities without signals get popular content directly
- Blend: collaborative, content-based, trending and diversity strategies run
  concurrently (each under its own timeout) and are merged by quota
- Re-rank / explore: optional contextual re-ranking and explore/exploit
  interleaving used by the personalized feed
- Session tracking: anonymous behavior kept in a TTL-bound SessionCache

All collaborators are injected; see recommender.providers.
"""

import asyncio
import logging
import math
import random
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine, Dict, List, Optional, Union

from pydantic import ValidationError

from .errors import InvalidRecommendationRequest
from .models.config import STRATEGY_ORDER, TRENDING_PERIOD_HOURS, RecommendationConfig, resolve_config
from .models.content import ContentFilter, ContentOrder
from .models.context import Identity, UserContext, device_class_for, time_of_day_for
from .models.scoring import (
    LastWatchedSimilar,
    RecommendationResult,
    ScoredCandidate,
    StrategySource,
    TrendingSnapshot,
)
from .models.session import SessionBehavior
from .providers import ContentProvider, OnboardingSource, SessionCache, SignalStore, TrendingCache
from .stages import blender
from .stages.cold_start import cold_start_candidates
from .stages.collaborative import session_collaborative_candidates, user_collaborative_candidates
from .stages.content_based import session_content_based_candidates, user_content_based_candidates
from .stages.continue_watching import continue_watching_candidates
from .stages.diversity import session_diversity_candidates, user_diversity_candidates
from .stages.profile import PreferenceProfile, profile_from_session, profile_from_signals
from .stages.ranking import contextual, explore_exploit
from .stages.ranking.similar_content import last_watched_similar, similar_content_candidates
from .stages.trending import compute_trending, get_trending_snapshot, trending_candidates
from .tasks import BestEffortTasks

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_id(value: Optional[str], name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidRecommendationRequest(f"{name} must not be blank")
    return value


class RecommendationEngine:
    """Hybrid recommender over injected content, signal, session and trending stores."""

    def __init__(
        self,
        content_provider: ContentProvider,
        signal_store: SignalStore,
        session_cache: SessionCache,
        trending_cache: TrendingCache,
        onboarding_source: Optional[OnboardingSource] = None,
        config: Optional[RecommendationConfig] = None,
        tasks: Optional[BestEffortTasks] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.content_provider = content_provider
        self.signal_store = signal_store
        self.session_cache = session_cache
        self.trending_cache = trending_cache
        self.onboarding_source = onboarding_source
        self.config = resolve_config(config)
        self.tasks = tasks or BestEffortTasks()
        self.rng = rng or random.Random()
        self._clock = clock or _utcnow

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_limit(self, limit: int) -> int:
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            raise InvalidRecommendationRequest(f"limit must be a positive integer, got {limit!r}")
        if limit > self.config.max_limit:
            raise InvalidRecommendationRequest(
                f"limit must be at most {self.config.max_limit}, got {limit}"
            )
        return limit

    @staticmethod
    def _coerce_identity(identity: Union[Identity, Dict[str, Any]]) -> Identity:
        if isinstance(identity, Identity):
            return identity
        try:
            return Identity.model_validate(identity or {})
        except ValidationError as e:
            raise InvalidRecommendationRequest(str(e)) from e

    def _validate_period(self, period: Optional[str]) -> str:
        period = period or self.config.trending_period
        if period not in TRENDING_PERIOD_HOURS:
            raise InvalidRecommendationRequest(
                f"Unknown trending period {period!r}; expected one of {sorted(TRENDING_PERIOD_HOURS)}"
            )
        return period

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    async def _run_strategy(self, name: str, coro: Coroutine) -> List[ScoredCandidate]:
        """Await one strategy under the per-strategy timeout; failures contribute nothing."""
        timeout = self.config.strategy_timeout_seconds
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("[strategy] %s timed out after %.3fs", name, timeout)
        except Exception as e:
            logger.warning("[strategy] %s failed: %s", name, e, exc_info=True)
        return []

    async def _has_signals(self, user_id: str) -> bool:
        """
        Whether user_id has any signal. A failing or slow signal store counts as
        "has signals": the blend then runs and each strategy degrades on its own.
        """
        timeout = self.config.strategy_timeout_seconds
        try:
            signals = await asyncio.wait_for(
                self.signal_store.list_signals(user_id, limit=1), timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.warning("[strategy] signal check for %s timed out after %.3fs", user_id, timeout)
            return True
        except Exception as e:
            logger.warning("[strategy] signal check for %s failed: %s", user_id, e)
            return True
        return bool(signals)

    async def _session_behavior(self, session_id: str) -> SessionBehavior:
        behavior = await self.session_cache.get(session_id)
        return behavior or SessionBehavior(session_id=session_id)

    async def _onboarding_categories(
        self,
        identity: Identity,
        override: Optional[List[str]],
    ) -> List[str]:
        if override:
            return list(override)
        if identity.is_authenticated and self.onboarding_source is not None:
            try:
                return list(await self.onboarding_source.get_onboarding_categories(identity.user_id))
            except Exception as e:
                logger.warning("[strategy] onboarding lookup failed for %s: %s", identity.user_id, e)
        return []

    async def _cold_start(
        self,
        identity: Identity,
        limit: int,
        onboarding_categories: Optional[List[str]],
    ) -> RecommendationResult:
        categories = await self._onboarding_categories(identity, onboarding_categories)
        candidates = await self._run_strategy(
            "cold_start",
            cold_start_candidates(self.content_provider, limit, self.config, categories),
        )
        logger.info(
            "[strategy] cold start identity=%s categories=%s returned=%d",
            identity.ref, categories, len(candidates),
        )
        return RecommendationResult(
            candidates=candidates,
            cold_start=True,
            strategy_counts={StrategySource.COLD_START.value: len(candidates)},
        )

    def _strategy_coroutines(
        self,
        identity: Identity,
        behavior: Optional[SessionBehavior],
        sizes: Dict[str, int],
        now: datetime,
    ) -> Dict[str, Coroutine]:
        trending = trending_candidates(
            self.trending_cache, self.content_provider, sizes["trending"], now, self.config
        )
        if identity.is_authenticated:
            user_id = identity.user_id
            return {
                "collaborative": user_collaborative_candidates(
                    user_id, sizes["collaborative"], self.signal_store, self.content_provider, self.config
                ),
                "content_based": user_content_based_candidates(
                    user_id, sizes["content_based"], self.signal_store, self.content_provider, self.config
                ),
                "trending": trending,
                "diversity": user_diversity_candidates(
                    user_id, sizes["diversity"], self.signal_store, self.content_provider, self.config
                ),
            }
        return {
            "collaborative": session_collaborative_candidates(
                behavior, sizes["collaborative"], self.content_provider
            ),
            "content_based": session_content_based_candidates(
                behavior, sizes["content_based"], self.content_provider
            ),
            "trending": trending,
            "diversity": session_diversity_candidates(
                behavior, sizes["diversity"], self.content_provider
            ),
        }

    async def recommend(
        self,
        identity: Union[Identity, Dict[str, Any]],
        limit: int = 20,
        onboarding_categories: Optional[List[str]] = None,
    ) -> RecommendationResult:
        """
        Blended (or cold-start) recommendations with scores and provenance.

        Raises InvalidRecommendationRequest for a bad limit or identity before any I/O.
        """
        limit = self._validate_limit(limit)
        identity = self._coerce_identity(identity)

        behavior = None
        if identity.is_authenticated:
            has_signals = await self._has_signals(identity.user_id)
        else:
            behavior = await self._session_behavior(identity.session_id)
            has_signals = behavior.has_views
        if not has_signals:
            return await self._cold_start(identity, limit, onboarding_categories)

        sizes = blender.fetch_sizes(limit, self.config)
        coroutines = self._strategy_coroutines(identity, behavior, sizes, self._clock())
        results = await asyncio.gather(
            *(self._run_strategy(name, coroutines[name]) for name in STRATEGY_ORDER)
        )
        buckets = dict(zip(STRATEGY_ORDER, results))
        candidates = blender.blend(buckets, limit, self.config)
        logger.info(
            "[blend] identity=%s limit=%d returned=%d counts=%s",
            identity.ref, limit, len(candidates), {k: len(v) for k, v in buckets.items()},
        )
        return RecommendationResult(
            candidates=candidates,
            cold_start=False,
            strategy_counts={name: len(items) for name, items in buckets.items()},
        )

    async def get_recommendations(
        self,
        identity: Union[Identity, Dict[str, Any]],
        limit: int = 20,
    ) -> List[str]:
        """Ordered content ids for identity (at most limit, no duplicates)."""
        result = await self.recommend(identity, limit)
        return result.content_ids

    # -------------------------------------------------------------------------
    # Context, re-ranking and the personalized feed
    # -------------------------------------------------------------------------

    def rerank(
        self,
        candidates: List[ScoredCandidate],
        context: UserContext,
    ) -> List[ScoredCandidate]:
        """Contextual re-ranking; pure, inputs are not modified."""
        return contextual.rerank(candidates, context, self.config)

    async def build_context(
        self,
        identity: Union[Identity, Dict[str, Any]],
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UserContext:
        """Context from the local time, the User-Agent and the identity's recent activity."""
        identity = self._coerce_identity(identity)
        now = now or datetime.now()
        profile = PreferenceProfile()
        try:
            if identity.is_authenticated:
                signals = await self.signal_store.list_signals(
                    identity.user_id, limit=self.config.recent_signal_window
                )
                profile = await profile_from_signals(
                    signals[: self.config.recent_signal_window], self.content_provider
                )
            else:
                profile = profile_from_session(await self._session_behavior(identity.session_id))
        except Exception as e:
            logger.warning("[strategy] context lookup failed for %s: %s", identity.ref, e)
        return UserContext(
            time_of_day=time_of_day_for(now),
            device_class=device_class_for(user_agent),
            recent_category_ids=profile.recent_category_ids(),
            recent_creator_ids=list(profile.creator_ids),
        )

    async def _exploration_candidates(
        self,
        exclude_ids: List[str],
        size: int,
    ) -> List[ScoredCandidate]:
        items = await self.content_provider.find_content(
            ContentFilter(exclude_ids=set(exclude_ids)),
            ContentOrder.VIEW_COUNT_DESC,
            limit=size,
        )
        return [
            ScoredCandidate(
                content_id=item.id,
                score=float(item.view_count),
                source_strategy=StrategySource.EXPLORE,
                item=item,
            )
            for item in items
        ]

    async def get_personalized_feed(
        self,
        identity: Union[Identity, Dict[str, Any]],
        limit: int = 20,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[ScoredCandidate]:
        """
        Recommendations re-ranked for the request context, then interleaved with
        popular content the identity was not already offered.
        """
        limit = self._validate_limit(limit)
        identity = self._coerce_identity(identity)

        result = await self.recommend(identity, limit)
        context = await self.build_context(identity, user_agent=user_agent, now=now)
        personalized = self.rerank(result.candidates, context)

        explore_size = math.ceil(round(limit * self.config.explore_ratio, 9))
        exploration = await self._run_strategy(
            "explore",
            self._exploration_candidates([c.content_id for c in personalized], explore_size),
        )
        return explore_exploit.interleave(personalized, exploration, limit, self.rng, self.config)

    # -------------------------------------------------------------------------
    # Item-to-item and history-based lists
    # -------------------------------------------------------------------------

    async def find_similar_content(self, content_id: str, limit: int = 10) -> List[ScoredCandidate]:
        """Raises ContentNotFound when content_id does not exist."""
        content_id = _require_id(content_id, "content_id")
        limit = self._validate_limit(limit)
        return await similar_content_candidates(self.content_provider, content_id, limit, self.config)

    async def get_continue_watching(self, user_id: str, limit: int = 10) -> List[ScoredCandidate]:
        user_id = _require_id(user_id, "user_id")
        limit = self._validate_limit(limit)
        return await continue_watching_candidates(
            user_id, limit, self.signal_store, self.content_provider, self.config
        )

    async def get_last_watched_similar(self, user_id: str, limit: int = 20) -> LastWatchedSimilar:
        """Similar content for user_id's most recent view; empty when there is no view history."""
        user_id = _require_id(user_id, "user_id")
        limit = self._validate_limit(limit)
        return await last_watched_similar(
            user_id, limit, self.signal_store, self.content_provider, self.config
        )

    # -------------------------------------------------------------------------
    # Trending
    # -------------------------------------------------------------------------

    async def recalculate_trending(self, period: Optional[str] = None) -> TrendingSnapshot:
        """Recompute and overwrite the cached snapshot for period."""
        period = self._validate_period(period)
        snapshot = await compute_trending(self.content_provider, period, self._clock(), self.config)
        await self.trending_cache.put(snapshot)
        return snapshot

    async def get_trending(self, period: Optional[str] = None, limit: int = 20) -> List[ScoredCandidate]:
        period = self._validate_period(period)
        limit = self._validate_limit(limit)
        snapshot = await get_trending_snapshot(
            self.trending_cache, self.content_provider, period, self._clock(), self.config
        )
        return snapshot.candidates[:limit]

    # -------------------------------------------------------------------------
    # Session tracking
    # -------------------------------------------------------------------------

    async def track_content_view(
        self,
        session_id: str,
        content_id: str,
        category_ids: Optional[List[str]] = None,
        tag_ids: Optional[List[str]] = None,
        creator_id: Optional[str] = None,
    ) -> SessionBehavior:
        """Record a view in the session aggregate (last write wins)."""
        session_id = _require_id(session_id, "session_id")
        content_id = _require_id(content_id, "content_id")
        behavior = await self._session_behavior(session_id)
        behavior.record_view(content_id, category_ids, tag_ids, creator_id, now=self._clock())
        await self.session_cache.set(session_id, behavior, self.config.session_ttl_seconds)
        return behavior

    async def track_content_like(self, session_id: str, content_id: str) -> SessionBehavior:
        session_id = _require_id(session_id, "session_id")
        content_id = _require_id(content_id, "content_id")
        behavior = await self._session_behavior(session_id)
        behavior.record_like(content_id, now=self._clock())
        await self.session_cache.set(session_id, behavior, self.config.session_ttl_seconds)
        return behavior

    def track_content_view_nowait(
        self,
        session_id: str,
        content_id: str,
        category_ids: Optional[List[str]] = None,
        tag_ids: Optional[List[str]] = None,
        creator_id: Optional[str] = None,
    ) -> asyncio.Task:
        """
        Best-effort track_content_view: ids are validated now, the cache write runs
        in the background and its outcome is only logged.
        """
        _require_id(session_id, "session_id")
        _require_id(content_id, "content_id")
        return self.tasks.spawn(
            self.track_content_view(session_id, content_id, category_ids, tag_ids, creator_id),
            label=f"track_view:{session_id}",
        )

    def track_content_like_nowait(self, session_id: str, content_id: str) -> asyncio.Task:
        _require_id(session_id, "session_id")
        _require_id(content_id, "content_id")
        return self.tasks.spawn(
            self.track_content_like(session_id, content_id),
            label=f"track_like:{session_id}",
        )

    async def clear_session(self, session_id: str) -> None:
        session_id = _require_id(session_id, "session_id")
        await self.session_cache.delete(session_id)
