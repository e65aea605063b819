"""
RecommendationEngine end-to-end over in-memory collaborators.

Covers blending for users and sessions, validation before I/O, strategy
timeouts and failures, trending snapshots, session tracking and the
personalized feed.
"""

import asyncio
import logging
from datetime import datetime, timedelta

import pytest

from recommender import (
    ContentNotFound,
    InvalidRecommendationRequest,
    RecommendationConfig,
    SignalKind,
)
from recommender.models.scoring import StrategySource
from rec_server.services import InMemoryContentProvider, InMemorySignalStore

from .helpers import NOW, build_engine, history_signals, make_item, make_signal, run

CATEGORIES = ["music", "comedy", "news", "sports", "cooking"]


def catalog(n: int = 60):
    return [
        make_item(
            f"item{i}",
            category_ids=[CATEGORIES[i % len(CATEGORIES)]],
            tag_ids=[f"tag{i % 7}"],
            creator_id=f"creator{i % 9}",
            view_count=1000 + i * 37,
            like_count=i,
            published_at=NOW - timedelta(hours=1 + i),
            duration_seconds=120 + i * 10,
        )
        for i in range(n)
    ]


class ExplodingSignalStore:
    async def list_signals(self, *args, **kwargs):
        raise AssertionError("signal store must not be called")

    async def list_identities_with_signal(self, *args, **kwargs):
        raise AssertionError("signal store must not be called")


class SlowViewHistoryStore(InMemorySignalStore):
    """View-history reads (collaborative) are slower than the strategy timeout."""

    async def list_signals(self, identity_ref, limit, most_recent_first=True, kinds=None):
        if kinds is not None and SignalKind.VIEW in list(kinds):
            await asyncio.sleep(0.5)
        return await super().list_signals(identity_ref, limit, most_recent_first, kinds)


class NoDiversityProvider(InMemoryContentProvider):
    async def find_content(self, content_filter, order_by=None, limit=None):
        if content_filter.category_not_in:
            raise RuntimeError("exclusion queries unsupported")
        return await super().find_content(content_filter, order_by, limit)


class BrokenProvider(InMemoryContentProvider):
    async def find_content(self, content_filter, order_by=None, limit=None):
        raise RuntimeError("database unavailable")


class UnavailableSignalStore:
    async def list_signals(self, *args, **kwargs):
        raise ConnectionError("signal store unavailable")

    async def list_identities_with_signal(self, *args, **kwargs):
        raise ConnectionError("signal store unavailable")


class StalledSignalStore(InMemorySignalStore):
    async def list_signals(self, identity_ref, limit, most_recent_first=True, kinds=None):
        await asyncio.sleep(0.5)
        return await super().list_signals(identity_ref, limit, most_recent_first, kinds)


def user_signals():
    return (
        history_signals("alice", ["item0", "item5", "item10", "item1"])
        + history_signals("bob", ["item0", "item5", "item10", "item2", "item3"])
    )


class TestValidation:
    @pytest.mark.parametrize("limit", [0, -1, 201, True, 2.5])
    def test_bad_limit_rejected_before_io(self, limit):
        engine = build_engine(signal_store=ExplodingSignalStore())
        with pytest.raises(InvalidRecommendationRequest):
            run(engine.get_recommendations({"user_id": "alice"}, limit))

    @pytest.mark.parametrize("identity", [{}, {"user_id": "  "}, {"session_id": ""}, None])
    def test_malformed_identity(self, identity):
        engine = build_engine(signal_store=ExplodingSignalStore())
        with pytest.raises(InvalidRecommendationRequest):
            run(engine.get_recommendations(identity, 10))

    def test_blank_tracking_ids(self):
        engine = build_engine()
        with pytest.raises(InvalidRecommendationRequest):
            run(engine.track_content_view(" ", "item1"))
        with pytest.raises(InvalidRecommendationRequest):
            run(engine.track_content_like("s1", ""))

    def test_invalid_error_is_value_error(self):
        assert issubclass(InvalidRecommendationRequest, ValueError)
        assert issubclass(ContentNotFound, LookupError)


class TestBlendedRecommendations:
    def test_user_gets_blended_unique_results(self):
        engine = build_engine(items=catalog(), signals=user_signals())
        result = run(engine.recommend({"user_id": "alice"}, 20))
        ids = result.content_ids
        assert result.cold_start is False
        assert len(ids) == 20
        assert len(ids) == len(set(ids))
        assert set(result.strategy_counts) == {"collaborative", "content_based", "trending", "diversity"}
        # bob is alice's neighbor, so his unseen items lead the list
        assert ids[:2] == ["item2", "item3"]
        assert result.candidates[0].source_strategy == StrategySource.COLLABORATIVE

    def test_user_id_wins_over_session(self):
        engine = build_engine(items=catalog(), signals=user_signals())
        ids = run(engine.get_recommendations({"user_id": "alice", "session_id": "s1"}, 10))
        assert ids[:2] == ["item2", "item3"]

    def test_session_flow(self):
        engine = build_engine(items=catalog())
        for cid in ("item0", "item5", "item10"):
            run(engine.track_content_view("s1", cid, category_ids=["music"], creator_id="creator0"))

        result = run(engine.recommend({"session_id": "s1"}, 10))
        assert result.cold_start is False
        assert len(result.content_ids) == 10
        assert len(set(result.content_ids)) == 10
        assert result.strategy_counts["content_based"] > 0
        personalized = [
            c for c in result.candidates
            if c.source_strategy in (StrategySource.COLLABORATIVE, StrategySource.CONTENT_BASED)
        ]
        assert not {c.content_id for c in personalized} & {"item0", "item5", "item10"}

    def test_strategy_timeout_contributes_nothing(self, caplog):
        config = RecommendationConfig(strategy_timeout_seconds=0.05)
        store = SlowViewHistoryStore(user_signals())
        engine = build_engine(items=catalog(), signal_store=store, config=config)
        with caplog.at_level(logging.WARNING, logger="recommender.engine"):
            result = run(engine.recommend({"user_id": "alice"}, 10))
        assert result.strategy_counts["collaborative"] == 0
        assert len(result.content_ids) > 0
        assert any("collaborative timed out" in r.getMessage() for r in caplog.records)

    def test_failing_strategy_contributes_nothing(self):
        engine = build_engine(content_provider=NoDiversityProvider(catalog()), signals=user_signals())
        result = run(engine.recommend({"user_id": "alice"}, 10))
        assert result.strategy_counts["diversity"] == 0
        assert result.strategy_counts["trending"] > 0

    def test_all_strategies_failing_yields_empty(self):
        engine = build_engine(content_provider=BrokenProvider(), signals=user_signals())
        assert run(engine.get_recommendations({"user_id": "alice"}, 10)) == []

    def test_signal_store_outage_degrades_to_trending(self, caplog):
        engine = build_engine(items=catalog(), signal_store=UnavailableSignalStore())
        with caplog.at_level(logging.WARNING, logger="recommender.engine"):
            result = run(engine.recommend({"user_id": "alice"}, 10))
        assert result.cold_start is False
        assert result.content_ids
        assert {c.source_strategy for c in result.candidates} == {StrategySource.TRENDING}
        assert any("signal check for alice failed" in r.getMessage() for r in caplog.records)

    def test_signal_store_outage_with_empty_catalog(self):
        engine = build_engine(signal_store=UnavailableSignalStore())
        assert run(engine.get_recommendations({"user_id": "alice"}, 10)) == []

    def test_slow_signal_check_times_out(self, caplog):
        config = RecommendationConfig(strategy_timeout_seconds=0.05)
        store = StalledSignalStore(user_signals())
        engine = build_engine(items=catalog(), signal_store=store, config=config)
        with caplog.at_level(logging.WARNING, logger="recommender.engine"):
            result = run(engine.recommend({"user_id": "alice"}, 10))
        assert result.cold_start is False
        assert {c.source_strategy for c in result.candidates} == {StrategySource.TRENDING}
        assert any("signal check for alice timed out" in r.getMessage() for r in caplog.records)


class TestTrending:
    def test_recalculate_and_read(self):
        engine = build_engine(items=catalog())
        snapshot = run(engine.recalculate_trending("today"))
        assert snapshot.period == "today"
        assert snapshot.computed_at == NOW
        scores = [c.score for c in snapshot.candidates]
        assert scores == sorted(scores, reverse=True)
        # today = published within the last 24 hours
        assert len(snapshot.candidates) == 24

        top = run(engine.get_trending("today", 5))
        assert [c.content_id for c in top] == [c.content_id for c in snapshot.candidates[:5]]

    def test_recalculate_is_idempotent(self):
        engine = build_engine(items=catalog())
        first = run(engine.recalculate_trending("week"))
        second = run(engine.recalculate_trending("week"))
        assert first == second

    def test_reads_tolerate_stale_snapshot(self):
        provider = InMemoryContentProvider(catalog())
        engine = build_engine(content_provider=provider)
        run(engine.recalculate_trending("today"))
        provider.upsert(make_item("viral", view_count=10_000_000, published_at=NOW - timedelta(hours=1)))
        assert "viral" not in [c.content_id for c in run(engine.get_trending("today", 50))]
        run(engine.recalculate_trending("today"))
        assert run(engine.get_trending("today", 1))[0].content_id == "viral"

    def test_unknown_period(self):
        engine = build_engine()
        with pytest.raises(InvalidRecommendationRequest):
            run(engine.recalculate_trending("year"))


class TestSessionTracking:
    def test_like_and_clear(self):
        engine = build_engine(items=catalog())
        run(engine.track_content_view("s1", "item1", category_ids=["comedy"], tag_ids=["tag1"]))
        behavior = run(engine.track_content_like("s1", "item1"))
        assert behavior.liked_content_ids == {"item1"}
        assert behavior.last_updated == NOW

        cached = run(engine.session_cache.get("s1"))
        assert cached.viewed_content_ids == ["item1"]
        assert cached.liked_content_ids == {"item1"}

        run(engine.clear_session("s1"))
        assert run(engine.session_cache.get("s1")) is None

    def test_nowait_tracking_completes_in_background(self):
        engine = build_engine(items=catalog())

        async def scenario():
            task = engine.track_content_view_nowait("s2", "item3", category_ids=["sports"])
            assert not task.done()
            await engine.tasks.drain()
            return await engine.session_cache.get("s2")

        cached = run(scenario())
        assert cached.viewed_content_ids == ["item3"]
        assert cached.category_ids == {"sports"}


class TestPersonalizedFeed:
    def test_feed_is_reranked_and_explored(self):
        engine = build_engine(items=catalog(), signals=user_signals())
        feed = run(engine.get_personalized_feed(
            {"user_id": "alice"},
            10,
            user_agent="Mozilla/5.0 (iPhone) Mobile",
            now=datetime(2026, 3, 2, 8, 0),
        ))
        ids = [c.content_id for c in feed]
        assert len(ids) == 10
        assert len(ids) == len(set(ids))

    def test_always_exploit_returns_reranked_order(self):
        config = RecommendationConfig(exploit_probability=1.0)
        engine = build_engine(items=catalog(), signals=user_signals(), config=config)
        identity = {"user_id": "alice"}
        blended = run(engine.recommend(identity, 10)).candidates
        context = run(engine.build_context(identity, user_agent=None, now=datetime(2026, 3, 2, 20, 0)))
        expected = [c.content_id for c in engine.rerank(blended, context)]
        feed = run(engine.get_personalized_feed(identity, 10, now=datetime(2026, 3, 2, 20, 0)))
        assert [c.content_id for c in feed] == expected

    def test_context_from_recent_signals(self):
        items = catalog()
        signals = [make_signal("carol", "item0", i) for i in range(3)]
        engine = build_engine(items=items, signals=signals)
        context = run(engine.build_context({"user_id": "carol"}, "Tablet", datetime(2026, 3, 2, 13, 0)))
        assert context.time_of_day.value == "afternoon"
        assert context.device_class.value == "tablet"
        assert context.recent_category_ids == ["music"]
        assert context.recent_creator_ids == ["creator0", "creator0", "creator0"]


class TestSimilarAndContinueWatching:
    def test_similar_unknown_content(self):
        engine = build_engine(items=catalog())
        with pytest.raises(ContentNotFound):
            run(engine.find_similar_content("missing"))

    def test_similar_excludes_source(self):
        engine = build_engine(items=catalog())
        result = run(engine.find_similar_content("item0", 5))
        assert result
        assert "item0" not in [c.content_id for c in result]

    def test_continue_watching(self):
        signals = [
            make_signal("dave", "item4", 1, completion_rate=0.25),
            make_signal("dave", "item6", 2, completion_rate=0.99),
        ]
        engine = build_engine(items=catalog(), signals=signals)
        result = run(engine.get_continue_watching("dave"))
        assert [c.content_id for c in result] == ["item4"]
        assert result[0].score == pytest.approx(0.75)

    def test_last_watched_similar_without_history(self):
        engine = build_engine(items=catalog())
        result = run(engine.get_last_watched_similar("nobody"))
        assert result.last_watched is None
        assert result.last_watched_title is None
        assert result.candidates == []

    def test_last_watched_similar_uses_most_recent_view(self):
        signals = [
            make_signal("dave", "item9", 0, kind="like"),
            make_signal("dave", "item4", 1),
            make_signal("dave", "item6", 30),
        ]
        engine = build_engine(items=catalog(), signals=signals)
        result = run(engine.get_last_watched_similar("dave", 5))
        assert result.last_watched.id == "item4"
        similar = run(engine.find_similar_content("item4", 5))
        assert [c.content_id for c in result.candidates] == [c.content_id for c in similar]
        assert "item4" not in [c.content_id for c in result.candidates]
        assert all(c.source_strategy == StrategySource.SIMILAR for c in result.candidates)

    def test_last_watched_similar_for_removed_content(self):
        engine = build_engine(items=catalog(), signals=[make_signal("dave", "gone", 1)])
        result = run(engine.get_last_watched_similar("dave"))
        assert result.last_watched is None
        assert result.candidates == []
