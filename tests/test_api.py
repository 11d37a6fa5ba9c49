"""
Tests for the HTTP API and the CLI, wired to fake collaborators.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from daily_news.cache import MemoryStorage
from daily_news.config import Settings
from daily_news.constants import CATEGORY_ORDER, DEFAULT_SYMBOLS
from daily_news.context import AppContext, build_context
from daily_news.exceptions import ProviderError
from daily_news.server import cli
from daily_news.server.api import create_app
from daily_news.services.market import MarketFetcher
from daily_news.services.news import NewsFetcher

from conftest import FakeNewsSource, FakeQuotes, FakeSummarizer


def make_context(store, items_by_category, model_text, quotes):
    return AppContext(
        settings=Settings(),
        store=store,
        news=NewsFetcher(store, source=FakeNewsSource(items_by_category), summarizer=FakeSummarizer(model_text)),
        market=MarketFetcher(store, FakeQuotes(quotes)),
        http=httpx.AsyncClient(),
    )


@pytest.fixture
def quotes():
    return {s: {"price": 10.0, "change": 0.1, "changePercent": 1.0} for s in DEFAULT_SYMBOLS}


@pytest.fixture
def client(store, items_by_category, model_text, quotes):
    return TestClient(create_app(make_context(store, items_by_category, model_text, quotes)))


class TestApi:
    """Tests for the FastAPI routes."""

    def test_root(self, client):
        """Root route answers with ok."""
        assert client.get("/").json()["ok"] is True

    def test_news(self, client):
        """News route returns one card per category with the card fields."""
        r = client.get("/api/news")
        assert r.status_code == 200
        cards = r.json()["cards"]
        assert [c["category"] for c in cards] == list(CATEGORY_ORDER)
        assert set(cards[0]) == {"id", "headline", "summary", "category", "timestamp", "bullets", "citations"}

    def test_market(self, client):
        """Market route returns live tickers in wire format."""
        body = client.get("/api/market").json()
        assert body["fallback"] is False
        assert body["tickers"][0] == {"symbol": "SPY", "name": "S&P 500 ETF", "price": 10.0,
                                      "change": 0.1, "changePercent": 1.0}

    def test_market_fallback_to_defaults(self, store, items_by_category, model_text):
        """With no data anywhere, zero-valued default tickers are served."""
        failing = {s: ProviderError("down") for s in DEFAULT_SYMBOLS}
        client = TestClient(create_app(make_context(store, items_by_category, model_text, failing)))
        body = client.get("/api/market").json()
        assert body["fallback"] is True
        assert body["error"].startswith("No market data available")
        assert [t["symbol"] for t in body["tickers"]] == list(DEFAULT_SYMBOLS)
        assert all(t["price"] == 0.0 for t in body["tickers"])

    def test_cache_info_and_clear(self, client):
        """Cache info reflects writes and clears."""
        assert client.get("/api/cache/news").json() == {
            "key": "envoy_news_cache", "refreshHour": 8, "exists": False}
        client.get("/api/news")
        info = client.get("/api/cache/news").json()
        assert info["exists"] is True
        assert info["lastFetchDate"] == "2025-06-10"
        assert info["isStale"] is False

        assert client.delete("/api/cache/news").json() == {"cleared": "envoy_news_cache"}
        assert client.get("/api/cache/news").json()["exists"] is False

    def test_unknown_cache_domain(self, client):
        """Unknown cache domains are 404."""
        assert client.get("/api/cache/weather").status_code == 404
        assert client.delete("/api/cache/weather").status_code == 404


class TestCli:
    """Tests for the typer CLI."""

    @pytest.fixture(autouse=True)
    def wire(self, monkeypatch, store, items_by_category, model_text, quotes):
        self.quotes = quotes
        monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
        monkeypatch.setattr(
            cli, "build_context",
            lambda settings: make_context(store, items_by_category, model_text, self.quotes),
        )
        self.runner = CliRunner()

    def test_news(self):
        """news prints the cards as JSON."""
        result = self.runner.invoke(cli.app, ["news"])
        assert result.exit_code == 0
        assert len(json.loads(result.stdout)) == len(CATEGORY_ORDER)

    def test_market(self):
        """market --refresh prints tickers as JSON."""
        result = self.runner.invoke(cli.app, ["market", "--refresh"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["symbol"] == "SPY"

    def test_market_unavailable_exits_1(self):
        """market exits 1 when no data is available."""
        self.quotes = {}
        result = self.runner.invoke(cli.app, ["market"])
        assert result.exit_code == 1
        assert "No market data available" in result.output

    def test_cache_info_and_clear(self):
        """cache-info and cache-clear operate on the market key."""
        self.runner.invoke(cli.app, ["market"])
        info = json.loads(self.runner.invoke(cli.app, ["cache-info", "market"]).stdout)
        assert info["key"] == "envoy_market_data_cache"
        assert info["exists"] is True

        result = self.runner.invoke(cli.app, ["cache-clear", "market"])
        assert "Cleared envoy_market_data_cache" in result.stdout
        info = json.loads(self.runner.invoke(cli.app, ["cache-info", "market"]).stdout)
        assert info["exists"] is False

    def test_bad_domain(self):
        """An unknown domain is rejected."""
        result = self.runner.invoke(cli.app, ["cache-info", "sports"])
        assert result.exit_code != 0


class TestBuildContext:
    """Tests for wiring from Settings."""

    def test_offline_uses_mock_quotes(self):
        """OFFLINE selects mock quotes."""
        ctx = build_context(Settings(OFFLINE=True, CACHE_BACKEND="memory"))
        assert ctx.market.quotes.name == "mock"
        assert ctx.summarizer is None
        assert ctx.news.source.name == "rss"

    def test_search_mode_has_no_source(self):
        """Search mode gathers nothing itself."""
        ctx = build_context(Settings(NEWS_MODE="search", CACHE_BACKEND="memory"))
        assert ctx.news.source is None
        assert ctx.news.config.mode == "search"

    def test_cache_target(self):
        """Cache targets follow settings."""
        ctx = build_context(Settings(CACHE_BACKEND="memory", MARKET_REFRESH_HOUR=6))
        assert ctx.cache_target("market") == ("envoy_market_data_cache", 6)
        with pytest.raises(ValueError):
            ctx.cache_target("weather")

    def test_unopenable_database_falls_back_to_memory(self, tmp_path):
        """A cache database that cannot be opened degrades to in-memory caching."""
        url = f"sqlite:///{(tmp_path / 'missing' / 'cache.db').as_posix()}"
        ctx = build_context(Settings(CACHE_BACKEND="sql", DATABASE_URL=url))
        assert isinstance(ctx.store.storage, MemoryStorage)
        ctx.store.set("k", [1])
        assert ctx.store.get("k") == [1]
