"""Concrete collaborators for the recommendation engine."""

from .content_provider import FirestoreContentProvider, InMemoryContentProvider, JsonContentProvider
from .firestore_client import create_async_client
from .redis_client import make_redis_client
from .session_cache import InMemorySessionCache, RedisSessionCache
from .signal_store import FirestoreSignalStore, InMemorySignalStore, JsonSignalStore
from .trending_cache import InMemoryTrendingCache, RedisTrendingCache
from .user_store import FirestoreUserStore, InMemoryUserStore, JsonUserStore

__all__ = [
    "FirestoreContentProvider",
    "FirestoreSignalStore",
    "FirestoreUserStore",
    "InMemoryContentProvider",
    "InMemorySessionCache",
    "InMemorySignalStore",
    "InMemoryTrendingCache",
    "InMemoryUserStore",
    "JsonContentProvider",
    "JsonSignalStore",
    "JsonUserStore",
    "RedisSessionCache",
    "RedisTrendingCache",
    "create_async_client",
    "make_redis_client",
]
