"""
Tests for the news fetch orchestrator and its fallback chain.
"""
import asyncio
import json

from daily_news.constants import CATEGORY_ORDER, PLACEHOLDER_HEADLINE
from daily_news.exceptions import ProviderError
from daily_news.models import Card
from daily_news.results import Err, ErrorKind, Ok
from daily_news.services.news import (
    NewsConfig,
    NewsFetcher,
    cards_from_items,
    cards_from_payload,
    resolve_news,
)

from conftest import FakeNewsSource, FakeSummarizer, make_item, make_model_cards

KEY = "envoy_news_cache"


def run(coro):
    return asyncio.run(coro)


def cached_cards(headline="Cached headline"):
    return [dict(c, headline=headline) for c in make_model_cards()]


class TestCacheBehaviour:
    """Fresh cache short-circuits everything."""

    def test_cache_hit_makes_no_calls(self, store):
        """A cached value is returned with zero collaborator calls."""
        store.set(KEY, cached_cards())
        source, llm = FakeNewsSource(), FakeSummarizer()
        cards = run(NewsFetcher(store, source=source, summarizer=llm).fetch())
        assert [c.headline for c in cards] == ["Cached headline"] * 6
        assert source.calls == []
        assert llm.calls == []

    def test_second_fetch_uses_cache(self, store, items_by_category, model_text):
        """The second fetch is served from cache."""
        source, llm = FakeNewsSource(items_by_category), FakeSummarizer(model_text)
        fetcher = NewsFetcher(store, source=source, summarizer=llm)
        first = run(fetcher.fetch())
        second = run(fetcher.fetch())
        assert [c.to_dict() for c in first] == [c.to_dict() for c in second]
        assert len(llm.calls) == 1
        assert len(source.calls) == len(CATEGORY_ORDER)

    def test_stale_cache_triggers_refetch(self, store, clock, items_by_category, model_text):
        """A stale cache is refetched and rewritten."""
        store.set(KEY, cached_cards())
        clock.set(2025, 6, 11, 8, 15)
        llm = FakeSummarizer(model_text)
        cards = run(NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=llm).fetch())
        assert cards[0].headline == "Top headline"
        assert len(llm.calls) == 1
        assert store.info(KEY).last_fetch_date == "2025-06-11"


class TestLiveFetch:
    """Tests for the gather -> curate -> normalize path."""

    def test_curated_cards_are_normalized_and_cached(self, store, items_by_category, model_text):
        """Model output is normalized and cached."""
        cards = run(NewsFetcher(store, source=FakeNewsSource(items_by_category),
                                summarizer=FakeSummarizer(model_text)).fetch())
        assert [c.category for c in cards] == list(CATEGORY_ORDER)
        assert cards[0].citations == ["Example News — https://www.example.com/top/0"]
        assert store.peek(KEY) == [c.to_dict() for c in cards]

    def test_prompt_contains_source_items(self, store, items_by_category, model_text):
        """The curation prompt carries the gathered items."""
        llm = FakeSummarizer(model_text)
        run(NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=llm).fetch())
        call = llm.calls[0]
        assert call["web_search"] is False
        assert "Tech story number 0" in call["user"]
        assert "https://www.example.com/sports/1" in call["user"]

    def test_partial_model_output_is_padded(self, store, items_by_category):
        """Missing categories become placeholders."""
        llm = FakeSummarizer(json.dumps(make_model_cards(("top", "tech"))))
        cards = run(NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=llm).fetch())
        assert len(cards) == 6
        assert [c.headline for c in cards[2:]] == [PLACEHOLDER_HEADLINE] * 4

    def test_one_failing_category_is_isolated(self, store, items_by_category, model_text):
        """One failing category does not sink the others."""
        source = FakeNewsSource(items_by_category, failing={"sports"})
        llm = FakeSummarizer(model_text)
        cards = run(NewsFetcher(store, source=source, summarizer=llm).fetch())
        assert len(cards) == 6
        assert "Sports story number 0" not in llm.calls[0]["user"]
        assert "Top story number 0" in llm.calls[0]["user"]

    def test_duplicate_stories_offered_once(self, store, model_text):
        """A story in two categories reaches the model once."""
        dup = make_item("tech", 0)
        items = {"top": [dict(dup, category="top")], "tech": [dup]}
        llm = FakeSummarizer(model_text)
        run(NewsFetcher(store, source=FakeNewsSource(items), summarizer=llm).fetch())
        assert llm.calls[0]["user"].count("Tech story number 0") == 1

    def test_items_capped_per_category(self, store, model_text):
        """Items per category are capped."""
        items = {"top": [make_item("top", n) for n in range(10)]}
        llm = FakeSummarizer(model_text)
        config = NewsConfig(items_per_category=3)
        run(NewsFetcher(store, config, source=FakeNewsSource(items), summarizer=llm).fetch())
        assert "Top story number 2" in llm.calls[0]["user"]
        assert "Top story number 3" not in llm.calls[0]["user"]

    def test_without_language_model_cards_come_from_headlines(self, store, items_by_category):
        """Without a model, cards come from the first headline per category."""
        cards = run(NewsFetcher(store, source=FakeNewsSource(items_by_category)).fetch())
        assert len(cards) == 6
        assert cards[0].headline == "Top story number 0"
        assert cards[0].citations == ["Example News — https://www.example.com/top/0"]
        assert cards[0].id.startswith("top-")

    def test_search_mode_skips_source(self, store, model_text):
        """Search mode asks the model to search instead of gathering."""
        source, llm = FakeNewsSource(), FakeSummarizer(model_text)
        fetcher = NewsFetcher(store, NewsConfig(mode="search"), source=source, summarizer=llm)
        cards = run(fetcher.fetch())
        assert len(cards) == 6
        assert source.calls == []
        assert llm.calls[0]["web_search"] is True
        assert "2025-06-10" in llm.calls[0]["user"]


class TestFallbacks:
    """Failures fall back to stale cache, then to an empty list."""

    def test_model_failure_uses_stale_cache(self, store, clock, items_by_category):
        """A model failure serves yesterday's cards."""
        store.set(KEY, cached_cards("Yesterday"))
        clock.set(2025, 6, 11, 9, 0)
        llm = FakeSummarizer(error=ProviderError("model down"))
        cards = run(NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=llm).fetch())
        assert [c.headline for c in cards] == ["Yesterday"] * 6

    def test_model_failure_without_cache_returns_empty(self, store, items_by_category):
        """A model failure with no cache returns an empty list."""
        llm = FakeSummarizer(error=RuntimeError("boom"))
        cards = run(NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=llm).fetch())
        assert cards == []
        assert store.info(KEY).exists is False

    def test_unparseable_output_is_not_cached(self, store, items_by_category):
        """Unparseable output is neither returned nor cached."""
        llm = FakeSummarizer("Sorry, I cannot help with that.")
        cards = run(NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=llm).fetch())
        assert cards == []
        assert store.info(KEY).exists is False

    def test_no_source_items_skips_model(self, store):
        """No source items means no model call."""
        source = FakeNewsSource(failing=set(CATEGORY_ORDER))
        llm = FakeSummarizer()
        cards = run(NewsFetcher(store, source=source, summarizer=llm).fetch())
        assert cards == []
        assert llm.calls == []

    def test_search_mode_without_model(self, store):
        """Search mode without a model returns an empty list."""
        cards = run(NewsFetcher(store, NewsConfig(mode="search")).fetch())
        assert cards == []

    def test_refresh_ignores_fresh_cache(self, store, items_by_category, model_text):
        """refresh fetches live even when the cache is fresh."""
        store.set(KEY, cached_cards())
        llm = FakeSummarizer(model_text)
        fetcher = NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=llm)
        cards = run(fetcher.refresh(stale=store.peek(KEY)))
        assert cards[0].headline == "Top headline"
        assert len(llm.calls) == 1


class TestHelpers:
    """Tests for the pure helpers."""

    def test_resolve_news_prefers_live(self):
        """Live cards win over stale ones."""
        live = [Card(id="a", headline="h", summary="", category="top", timestamp="")]
        assert resolve_news(Ok(live), cached_cards()) == live

    def test_resolve_news_stale_then_empty(self):
        """Failures fall back to stale cards, then to an empty list."""
        stale = resolve_news(Err(ErrorKind.UPSTREAM), cached_cards())
        assert len(stale) == 6
        assert resolve_news(Err(ErrorKind.SHAPE), None) == []
        assert resolve_news(Err(ErrorKind.SHAPE), "garbage") == []

    def test_cards_from_payload_rejects_bad_shapes(self):
        """Only lists of card dicts parse."""
        assert cards_from_payload({"cards": []}) is None
        assert cards_from_payload([{"headline": "no id"}]) is None
        assert len(cards_from_payload(cached_cards())) == 6

    def test_cards_from_items_cleans_html(self):
        """Headline cards strip HTML from descriptions."""
        items = {"tech": [dict(make_item("tech"), description="<p>Hello <b>world</b></p>")]}
        records = cards_from_items(items)
        assert len(records) == 1
        assert records[0]["summary"] == "Hello world"
        assert records[0]["category"] == "tech"
