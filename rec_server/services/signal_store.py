"""
Signal stores: in-memory, JSON file, Firestore.

All implement recommender.providers.SignalStore. Signals are immutable; the
in-memory store keeps them in insertion order and sorts by timestamp on read.
"""

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from google.cloud.firestore import AsyncClient, Query

from recommender.models.signal import Signal, SignalKind

from .firestore_client import IN_BATCH, MAX_FETCH

logger = logging.getLogger(__name__)


def _kind_values(kinds: Optional[Iterable[SignalKind]]) -> Optional[Set[str]]:
    if kinds is None:
        return None
    return {SignalKind(k).value for k in kinds}


class InMemorySignalStore:
    """Signals held in memory, indexed by identity. Used for tests and local runs."""

    def __init__(self, signals: Optional[Iterable[Union[Dict[str, Any], Signal]]] = None):
        self._by_identity: Dict[str, List[Signal]] = defaultdict(list)
        for signal in signals or []:
            self.add(signal)

    def add(self, signal: Union[Dict[str, Any], Signal]) -> Signal:
        typed = Signal.model_validate(signal) if isinstance(signal, dict) else signal
        self._by_identity[typed.identity_ref].append(typed)
        return typed

    def identities(self) -> List[str]:
        return sorted(self._by_identity)

    async def list_signals(
        self,
        identity_ref: str,
        limit: int,
        most_recent_first: bool = True,
        kinds: Optional[Iterable[SignalKind]] = None,
    ) -> List[Signal]:
        wanted = _kind_values(kinds)
        signals = [
            s for s in self._by_identity.get(identity_ref, [])
            if wanted is None or s.kind.value in wanted
        ]
        signals.sort(key=lambda s: s.timestamp, reverse=most_recent_first)
        return signals[:limit]

    async def list_identities_with_signal(
        self,
        content_ids: Iterable[str],
        kinds: Optional[Iterable[SignalKind]] = None,
    ) -> List[str]:
        wanted = _kind_values(kinds)
        targets = set(content_ids)
        out = []
        for ref, signals in self._by_identity.items():
            if any(
                s.content_id in targets and (wanted is None or s.kind.value in wanted)
                for s in signals
            ):
                out.append(ref)
        return sorted(out)


class JsonSignalStore(InMemorySignalStore):
    """Signals loaded once from a JSON file: a list or {"signals": [...]}."""

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        with open(self._path) as f:
            data = json.load(f)
        signals = data.get("signals", []) if isinstance(data, dict) else data
        super().__init__(signals)
        logger.info(
            "[startup] Loaded signals for %d identities from %s", len(self.identities()), self._path
        )


class FirestoreSignalStore:
    """
    Signal store backed by a flat Firestore collection (default: signals).

    Each document: { identity_ref, content_id, kind, timestamp,
    watch_duration_seconds?, completion_rate? }.
    """

    def __init__(self, client: AsyncClient, collection: str = "signals"):
        self._db = client
        self._coll = client.collection(collection)

    @staticmethod
    def _doc_to_signal(doc: Any) -> Optional[Signal]:
        d = doc.to_dict() or {}
        try:
            return Signal.model_validate(d)
        except ValueError as e:
            logger.warning("[signals] skipping malformed signal %s: %s", doc.id, e)
            return None

    async def list_signals(
        self,
        identity_ref: str,
        limit: int,
        most_recent_first: bool = True,
        kinds: Optional[Iterable[SignalKind]] = None,
    ) -> List[Signal]:
        query = self._coll.where("identity_ref", "==", identity_ref)
        wanted = _kind_values(kinds)
        if wanted is not None:
            query = query.where("kind", "in", sorted(wanted))
        direction = Query.DESCENDING if most_recent_first else Query.ASCENDING
        query = query.order_by("timestamp", direction=direction).limit(limit)
        out = []
        async for doc in query.stream():
            signal = self._doc_to_signal(doc)
            if signal is not None:
                out.append(signal)
        return out

    async def list_identities_with_signal(
        self,
        content_ids: Iterable[str],
        kinds: Optional[Iterable[SignalKind]] = None,
    ) -> List[str]:
        ids = list(dict.fromkeys(content_ids))
        wanted = _kind_values(kinds)
        refs: Set[str] = set()
        for start in range(0, len(ids), IN_BATCH):
            batch = ids[start:start + IN_BATCH]
            query = self._coll.where("content_id", "in", batch).limit(MAX_FETCH)
            async for doc in query.stream():
                d = doc.to_dict() or {}
                if wanted is not None and d.get("kind") not in wanted:
                    continue
                ref = d.get("identity_ref")
                if ref:
                    refs.add(ref)
        return sorted(refs)
