"""
Content providers: in-memory catalog, JSON file, Firestore.

All implement recommender.providers.ContentProvider. In-memory and JSON
evaluate ContentFilter.matches() directly; Firestore pushes the indexable
parts of the filter into paged queries and evaluates the rest on the
streamed documents.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from google.cloud.firestore import AsyncClient, Query

from recommender.models.content import ContentFilter, ContentItem, ContentOrder, sort_content

from .firestore_client import IN_BATCH, MAX_FETCH

logger = logging.getLogger(__name__)


def _apply(
    items: Iterable[ContentItem],
    content_filter: ContentFilter,
    order_by: ContentOrder,
    limit: Optional[int],
) -> List[ContentItem]:
    matched = [c for c in items if content_filter.matches(c)]
    ordered = sort_content(matched, order_by, content_filter.id_in)
    return ordered[:limit] if limit is not None else ordered


class InMemoryContentProvider:
    """Content provider over a list of items held in memory. Used for tests and local runs."""

    def __init__(self, items: Optional[Iterable[Union[Dict[str, Any], ContentItem]]] = None):
        self._items: Dict[str, ContentItem] = {}
        for item in items or []:
            self.upsert(item)

    def __len__(self) -> int:
        return len(self._items)

    def upsert(self, item: Union[Dict[str, Any], ContentItem]) -> ContentItem:
        typed = ContentItem.model_validate(item) if isinstance(item, dict) else item
        self._items[typed.id] = typed
        return typed

    def get(self, content_id: str) -> Optional[ContentItem]:
        return self._items.get(content_id)

    async def find_content(
        self,
        content_filter: ContentFilter,
        order_by: ContentOrder = ContentOrder.VIEW_COUNT_DESC,
        limit: Optional[int] = None,
    ) -> List[ContentItem]:
        if content_filter.id_in is not None:
            candidates = [self._items[cid] for cid in content_filter.id_in if cid in self._items]
        else:
            candidates = list(self._items.values())
        return _apply(candidates, content_filter, order_by, limit)


class JsonContentProvider(InMemoryContentProvider):
    """
    Content catalog loaded once from a JSON file.

    Accepts either a list of items or {"content": [...]}.
    """

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        with open(self._path) as f:
            data = json.load(f)
        items = data.get("content", []) if isinstance(data, dict) else data
        super().__init__(items)
        logger.info("[startup] Loaded %d content items from %s", len(self), self._path)


class FirestoreContentProvider:
    """
    Content provider backed by a Firestore collection (default: content).

    Document id = content id; fields mirror ContentItem.

    Pushed into the query: status, is_public, published_after, min_view_count
    (when there is no publish window), and each positive clause (category_in,
    tag_in, creator_in) as its own batched array_contains_any / in query whose
    results are unioned. Everything else is checked on the streamed documents.
    Queries are paged with cursors until limit matches are found or the
    collection is exhausted.
    """

    def __init__(self, client: AsyncClient, collection: str = "content"):
        self._db = client
        self._coll = client.collection(collection)

    @staticmethod
    def _doc_to_item(doc: Any) -> ContentItem:
        d = doc.to_dict() or {}
        d["id"] = doc.id
        return ContentItem.model_validate(d)

    async def _fetch_by_ids(self, ids: List[str]) -> List[ContentItem]:
        refs = [self._coll.document(cid) for cid in dict.fromkeys(ids)]
        out = []
        async for doc in self._db.get_all(refs):
            if doc.exists:
                out.append(self._doc_to_item(doc))
        return out

    def _base_query(self, content_filter: ContentFilter, order_by: ContentOrder) -> Tuple[Any, bool]:
        """(query, whether the query streams in order_by order)."""
        query = self._coll
        if content_filter.status is not None:
            query = query.where("status", "==", content_filter.status)
        if content_filter.public_only:
            query = query.where("is_public", "==", True)
        if content_filter.published_after is not None:
            # Firestore requires ordering on the inequality field first.
            query = query.where("published_at", ">=", content_filter.published_after)
            query = query.order_by("published_at", direction=Query.DESCENDING)
            return query, order_by == ContentOrder.PUBLISHED_AT_DESC
        if content_filter.min_view_count is not None:
            query = query.where("view_count", ">", content_filter.min_view_count)
            query = query.order_by("view_count", direction=Query.DESCENDING)
            return query, order_by == ContentOrder.VIEW_COUNT_DESC
        if order_by == ContentOrder.VIEW_COUNT_DESC:
            return query.order_by("view_count", direction=Query.DESCENDING), True
        if order_by == ContentOrder.PUBLISHED_AT_DESC:
            return query.order_by("published_at", direction=Query.DESCENDING), True
        return query, False

    @staticmethod
    def _clause_queries(base: Any, content_filter: ContentFilter) -> List[Any]:
        clauses = []
        if content_filter.category_in:
            clauses.append(("category_ids", "array_contains_any", sorted(content_filter.category_in)))
        if content_filter.tag_in:
            clauses.append(("tag_ids", "array_contains_any", sorted(content_filter.tag_in)))
        if content_filter.creator_in:
            clauses.append(("creator_id", "in", sorted(content_filter.creator_in)))
        if not clauses:
            return [base]
        queries = []
        for field, op, values in clauses:
            for start in range(0, len(values), IN_BATCH):
                queries.append(base.where(field, op, values[start:start + IN_BATCH]))
        return queries

    async def _collect(
        self,
        query: Any,
        content_filter: ContentFilter,
        want: Optional[int],
    ) -> List[ContentItem]:
        """Matching items from query, paged by MAX_FETCH; stops early once want matched."""
        matched = []
        cursor = None
        while True:
            page = query.limit(MAX_FETCH)
            if cursor is not None:
                page = page.start_after(cursor)
            streamed = 0
            async for doc in page.stream():
                streamed += 1
                cursor = doc
                item = self._doc_to_item(doc)
                if content_filter.matches(item):
                    matched.append(item)
            if streamed < MAX_FETCH or (want is not None and len(matched) >= want):
                return matched

    async def find_content(
        self,
        content_filter: ContentFilter,
        order_by: ContentOrder = ContentOrder.VIEW_COUNT_DESC,
        limit: Optional[int] = None,
    ) -> List[ContentItem]:
        if content_filter.id_in is not None:
            if not content_filter.id_in:
                return []
            items = await self._fetch_by_ids(content_filter.id_in)
            return _apply(items, content_filter, order_by, limit)

        base, in_order = self._base_query(content_filter, order_by)
        want = limit if in_order else None
        found: Dict[str, ContentItem] = {}
        for query in self._clause_queries(base, content_filter):
            for item in await self._collect(query, content_filter, want):
                found.setdefault(item.id, item)
        logger.debug("[content] firestore matched %d docs", len(found))
        return _apply(found.values(), content_filter, order_by, limit)
