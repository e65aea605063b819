"""
Content provider tests.

The Firestore provider runs against an in-memory stand-in for AsyncClient so
the pushed-down filters, batching and cursor paging can be observed.
"""

import pytest

from recommender import ContentFilter, ContentOrder
from rec_server.services import content_provider as content_provider_module
from rec_server.services import FirestoreContentProvider, InMemoryContentProvider, JsonContentProvider

from .helpers import NOW, FakeFirestore, make_item, run


def doc(views, categories=("general",), creator="big", **extra):
    return {
        "status": "PUBLISHED",
        "is_public": True,
        "view_count": views,
        "category_ids": list(categories),
        "tag_ids": [],
        "creator_id": creator,
        "published_at": NOW,
        **extra,
    }


@pytest.fixture
def small_pages(monkeypatch):
    monkeypatch.setattr(content_provider_module, "MAX_FETCH", 50)


@pytest.fixture
def db():
    docs = {f"g{i:03d}": doc(1000 + i, creator="big" if i >= 20 else "small") for i in range(120)}
    docs.update({f"niche{i}": doc(i, categories=["niche"]) for i in (1, 2, 3)})
    docs["solo1"] = doc(5, categories=["other"], creator="solo")
    docs["draft"] = doc(9999, categories=["niche"], status="DRAFT")
    return FakeFirestore({"content": docs})


def ids(items):
    return [item.id for item in items]


class TestFirestoreContentProvider:
    def test_category_pushed_into_query(self, db, small_pages):
        provider = FirestoreContentProvider(db)
        items = run(provider.find_content(ContentFilter(category_in={"niche"}), ContentOrder.VIEW_COUNT_DESC, 10))
        assert ids(items) == ["niche3", "niche2", "niche1"]
        assert ("category_ids", "array_contains_any", ["niche"]) in db.streams[0]
        assert ("status", "==", "PUBLISHED") in db.streams[0]

    def test_positive_clauses_are_unioned(self, db, small_pages):
        provider = FirestoreContentProvider(db)
        content_filter = ContentFilter(category_in={"niche"}, creator_in={"solo"})
        items = run(provider.find_content(content_filter, ContentOrder.VIEW_COUNT_DESC, 10))
        assert ids(items) == ["solo1", "niche3", "niche2", "niche1"]
        assert len(db.streams) == 2

    def test_large_clause_sets_are_batched(self, db, small_pages):
        provider = FirestoreContentProvider(db)
        categories = {f"cat{i:02d}" for i in range(34)} | {"niche"}
        run(provider.find_content(ContentFilter(category_in=categories), ContentOrder.VIEW_COUNT_DESC, 10))
        batches = [
            value for filters in db.streams for field, op, value in filters
            if field == "category_ids"
        ]
        assert [len(batch) for batch in batches] == [30, 5]

    def test_view_floor_pushed_into_query(self, db, small_pages):
        provider = FirestoreContentProvider(db)
        items = run(provider.find_content(ContentFilter(min_view_count=1100), ContentOrder.VIEW_COUNT_DESC, 50))
        assert ids(items) == [f"g{i:03d}" for i in range(119, 100, -1)]
        assert ("view_count", ">", 1100) in db.streams[0]

    def test_pages_until_enough_matches(self, db, small_pages):
        provider = FirestoreContentProvider(db)
        content_filter = ContentFilter(creator_not_in={"big"})
        items = run(provider.find_content(content_filter, ContentOrder.VIEW_COUNT_DESC, 5))
        assert ids(items) == ["g019", "g018", "g017", "g016", "g015"]
        assert len(db.streams) == 3

    def test_stops_after_first_page_with_enough_matches(self, db, small_pages):
        provider = FirestoreContentProvider(db)
        items = run(provider.find_content(ContentFilter(), ContentOrder.VIEW_COUNT_DESC, 5))
        assert ids(items) == ["g119", "g118", "g117", "g116", "g115"]
        assert len(db.streams) == 1

    def test_id_lookup_keeps_requested_order(self, db):
        provider = FirestoreContentProvider(db)
        content_filter = ContentFilter(id_in=["niche1", "missing", "g005", "draft"])
        items = run(provider.find_content(content_filter, ContentOrder.AS_REQUESTED))
        assert ids(items) == ["niche1", "g005"]
        assert db.streams == []


class TestFileAndMemoryProviders:
    def test_json_catalog(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_text('{"content": [{"id": "a", "view_count": 3}, {"id": "b", "view_count": 9}]}')
        provider = JsonContentProvider(path)
        assert len(provider) == 2
        assert ids(run(provider.find_content(ContentFilter()))) == ["b", "a"]

    def test_upsert_replaces(self):
        provider = InMemoryContentProvider([make_item("a", view_count=1)])
        provider.upsert({"id": "a", "view_count": 7})
        assert provider.get("a").view_count == 7
