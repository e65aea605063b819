"""
Trending snapshot caches: in-memory and Redis.

put() overwrites the snapshot for its period, so recalculation is idempotent.
"""

import logging
from typing import Dict, Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from recommender.models.scoring import TrendingSnapshot

logger = logging.getLogger(__name__)


class InMemoryTrendingCache:
    def __init__(self):
        self._snapshots: Dict[str, TrendingSnapshot] = {}

    async def get(self, period: str) -> Optional[TrendingSnapshot]:
        return self._snapshots.get(period)

    async def put(self, snapshot: TrendingSnapshot) -> None:
        self._snapshots[snapshot.period] = snapshot


class RedisTrendingCache:
    """Snapshots stored as JSON under namespace:period; ttl bounds how long a stale snapshot survives."""

    def __init__(self, client: Redis, namespace: str = "rec:trending", ttl_seconds: Optional[int] = None):
        self._r = client
        self._ns = namespace
        self._ttl = ttl_seconds

    def _key(self, period: str) -> str:
        return f"{self._ns}:{period}"

    async def get(self, period: str) -> Optional[TrendingSnapshot]:
        try:
            raw = await self._r.get(self._key(period))
        except RedisError as e:
            logger.warning("[trending] redis get failed for %s: %s", period, e)
            return None
        if raw is None:
            return None
        try:
            return TrendingSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("[trending] discarding unreadable snapshot %s: %s", period, e)
            return None

    async def put(self, snapshot: TrendingSnapshot) -> None:
        try:
            await self._r.set(self._key(snapshot.period), snapshot.model_dump_json(), ex=self._ttl)
        except RedisError as e:
            logger.warning("[trending] redis set failed for %s: %s", snapshot.period, e)
