"""
Session behavior caches: in-memory with TTL sweep, Redis with native TTL.

Both implement recommender.providers.SessionCache. Expired entries read as a
miss. Redis errors are logged and treated as a miss (reads) or a dropped
write, so a cache outage never fails a request.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from recommender.models.session import SessionBehavior

logger = logging.getLogger(__name__)


class InMemorySessionCache:
    """
    Process-local session cache.

    clock returns seconds (monotonic by default); inject a fake for tests.
    Expired entries are dropped on read and by purge_expired().
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._entries: Dict[str, Tuple[float, str]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, session_id: str) -> Optional[SessionBehavior]:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            del self._entries[session_id]
            return None
        return SessionBehavior.model_validate_json(payload)

    async def set(self, session_id: str, behavior: SessionBehavior, ttl_seconds: int) -> None:
        # Stored serialized; every get returns a fresh copy.
        self._entries[session_id] = (self._clock() + ttl_seconds, behavior.model_dump_json())

    async def delete(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [sid for sid, (expires_at, _) in self._entries.items() if now >= expires_at]
        for sid in expired:
            del self._entries[sid]
        if expired:
            logger.debug("[session_cache] purged %d expired sessions", len(expired))
        return len(expired)


class RedisSessionCache:
    """Session cache in Redis: one JSON value per session under namespace:session_id."""

    def __init__(self, client: Redis, namespace: str = "rec:session"):
        self._r = client
        self._ns = namespace

    def _key(self, session_id: str) -> str:
        return f"{self._ns}:{session_id}"

    async def get(self, session_id: str) -> Optional[SessionBehavior]:
        try:
            raw = await self._r.get(self._key(session_id))
        except RedisError as e:
            logger.warning("[session_cache] redis get failed for %s: %s", session_id, e)
            return None
        if raw is None:
            return None
        try:
            return SessionBehavior.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("[session_cache] discarding unreadable session %s: %s", session_id, e)
            return None

    async def set(self, session_id: str, behavior: SessionBehavior, ttl_seconds: int) -> None:
        try:
            await self._r.set(self._key(session_id), behavior.model_dump_json(), ex=ttl_seconds)
        except RedisError as e:
            logger.warning("[session_cache] redis set failed for %s: %s", session_id, e)

    async def delete(self, session_id: str) -> None:
        try:
            await self._r.delete(self._key(session_id))
        except RedisError as e:
            logger.warning("[session_cache] redis delete failed for %s: %s", session_id, e)
