"""
Collaborator abstractions consumed by the engine.

The engine never talks to a database directly: content, signals, session
behavior, trending snapshots and onboarding interests come through these
Protocols. Implementations live in rec_server.services (in-memory, JSON,
Firestore, Redis). Swap via config for local vs cloud.
"""

from typing import Iterable, List, Optional, Protocol

from .models.content import ContentFilter, ContentItem, ContentOrder
from .models.scoring import TrendingSnapshot
from .models.session import SessionBehavior
from .models.signal import Signal, SignalKind


class ContentProvider(Protocol):
    """Protocol for content queries."""

    async def find_content(
        self,
        content_filter: ContentFilter,
        order_by: ContentOrder = ContentOrder.VIEW_COUNT_DESC,
        limit: Optional[int] = None,
    ) -> List[ContentItem]:
        """Return items matching content_filter, sorted by order_by, at most limit."""
        ...


class SignalStore(Protocol):
    """Protocol for reading persisted interaction signals of authenticated identities."""

    async def list_signals(
        self,
        identity_ref: str,
        limit: int,
        most_recent_first: bool = True,
        kinds: Optional[Iterable[SignalKind]] = None,
    ) -> List[Signal]:
        ...

    async def list_identities_with_signal(
        self,
        content_ids: Iterable[str],
        kinds: Optional[Iterable[SignalKind]] = None,
    ) -> List[str]:
        """Distinct identity refs with at least one signal on any of content_ids."""
        ...


class SessionCache(Protocol):
    """
    TTL-bound store for anonymous session behavior.

    get() returns None for missing or expired entries; backend failures must
    also read as a miss.
    """

    async def get(self, session_id: str) -> Optional[SessionBehavior]:
        ...

    async def set(self, session_id: str, behavior: SessionBehavior, ttl_seconds: int) -> None:
        ...

    async def delete(self, session_id: str) -> None:
        ...


class TrendingCache(Protocol):
    """Holds the latest TrendingSnapshot per period."""

    async def get(self, period: str) -> Optional[TrendingSnapshot]:
        ...

    async def put(self, snapshot: TrendingSnapshot) -> None:
        ...


class OnboardingSource(Protocol):
    """Category interests a user picked at onboarding."""

    async def get_onboarding_categories(self, user_id: str) -> List[str]:
        ...
