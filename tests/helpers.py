"""Builders shared by the test modules."""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional

from recommender import ContentItem, RecommendationConfig, RecommendationEngine, Signal
from rec_server.services import (
    InMemoryContentProvider,
    InMemorySessionCache,
    InMemorySignalStore,
    InMemoryTrendingCache,
    InMemoryUserStore,
)

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def run(coro):
    return asyncio.run(coro)


def make_item(content_id: str, **overrides) -> ContentItem:
    fields = {
        "id": content_id,
        "creator_id": "creator-x",
        "category_ids": [],
        "tag_ids": [],
        "view_count": 100,
        "published_at": NOW - timedelta(hours=48),
    }
    fields.update(overrides)
    return ContentItem(**fields)


def make_signal(
    identity_ref: str,
    content_id: str,
    minutes_ago: int = 0,
    kind: str = "view",
    completion_rate: Optional[float] = None,
) -> Signal:
    return Signal(
        identity_ref=identity_ref,
        content_id=content_id,
        kind=kind,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        completion_rate=completion_rate,
    )


def history_signals(identity_ref: str, content_ids: Iterable[str]):
    """View signals with the first id as the most recent."""
    return [make_signal(identity_ref, cid, minutes_ago=i) for i, cid in enumerate(content_ids)]


def build_engine(
    items: Iterable[ContentItem] = (),
    signals: Iterable[Signal] = (),
    users: Optional[Dict[str, Dict]] = None,
    config: Optional[RecommendationConfig] = None,
    seed: int = 7,
    session_cache=None,
    signal_store=None,
    content_provider=None,
) -> RecommendationEngine:
    if content_provider is None:
        content_provider = InMemoryContentProvider(items)
    if signal_store is None:
        signal_store = InMemorySignalStore(signals)
    if session_cache is None:
        session_cache = InMemorySessionCache()
    return RecommendationEngine(
        content_provider=content_provider,
        signal_store=signal_store,
        session_cache=session_cache,
        trending_cache=InMemoryTrendingCache(),
        onboarding_source=InMemoryUserStore(users or {}),
        config=config,
        rng=random.Random(seed),
        clock=lambda: NOW,
    )


class FakeClock:
    """Seconds clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """Minimal async Redis stand-in: get/set(ex)/delete with a manual clock."""

    def __init__(self, clock: Optional[FakeClock] = None, fail_with: Optional[Exception] = None):
        self.clock = clock or FakeClock()
        self.fail_with = fail_with
        self.store: Dict[str, tuple] = {}
        self.last_ex: Optional[int] = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def get(self, key):
        self._check()
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self.store[key]
            return None
        return value

    async def set(self, key, value, ex=None):
        self._check()
        self.last_ex = ex
        self.store[key] = (value, self.clock() + ex if ex else None)
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed


class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict]):
        self.id = doc_id
        self.exists = data is not None
        self._data = data

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


def _matches(data: Dict, field: str, op: str, value) -> bool:
    actual = data.get(field)
    if op == "==":
        return actual == value
    if op == ">":
        return actual is not None and actual > value
    if op == ">=":
        return actual is not None and actual >= value
    if op == "in":
        return actual in value
    if op == "array_contains_any":
        return bool(set(actual or []) & set(value))
    raise ValueError(f"unsupported operator {op}")


class FakeQuery:
    """Immutable query over a FakeFirestore collection; every stream() is recorded."""

    def __init__(self, db, name, filters=(), order=None, max_docs=None, after=None):
        self._db = db
        self._name = name
        self.filters = tuple(filters)
        self._order = order
        self._max_docs = max_docs
        self._after = after

    def _copy(self, **changes):
        state = {
            "filters": self.filters, "order": self._order,
            "max_docs": self._max_docs, "after": self._after,
        }
        state.update(changes)
        return FakeQuery(self._db, self._name, **state)

    def where(self, field, op, value):
        return self._copy(filters=self.filters + ((field, op, value),))

    def order_by(self, field, direction="ASCENDING"):
        return self._copy(order=(field, direction))

    def limit(self, count):
        return self._copy(max_docs=count)

    def start_after(self, snapshot):
        return self._copy(after=snapshot.id)

    async def stream(self):
        self._db.streams.append(self.filters)
        docs = self._db.collections.get(self._name, {})
        rows = [
            (doc_id, data) for doc_id, data in docs.items()
            if all(_matches(data, *f) for f in self.filters)
        ]
        if self._order is not None:
            field, direction = self._order
            rows.sort(key=lambda r: (r[1].get(field), r[0]), reverse=direction == "DESCENDING")
        else:
            rows.sort(key=lambda r: r[0])
        if self._after is not None:
            position = [doc_id for doc_id, _ in rows].index(self._after)
            rows = rows[position + 1:]
        if self._max_docs is not None:
            rows = rows[: self._max_docs]
        for doc_id, data in rows:
            yield FakeSnapshot(doc_id, data)


class FakeDocumentRef:
    def __init__(self, name: str, doc_id: str):
        self.collection_name = name
        self.id = doc_id


class FakeCollection(FakeQuery):
    def document(self, doc_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self._name, doc_id)


class FakeFirestore:
    """Enough of firestore.AsyncClient for the content provider."""

    def __init__(self, collections: Optional[Dict[str, Dict[str, Dict]]] = None):
        self.collections = collections or {}
        self.streams = []

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    async def get_all(self, refs):
        for ref in refs:
            yield FakeSnapshot(ref.id, self.collections.get(ref.collection_name, {}).get(ref.id))
