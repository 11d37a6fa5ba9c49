# daily_news/context.py
"""
Builds the explicit object graph (store, collaborators, fetchers) from
Settings. Nothing below this layer reads configuration on its own.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo

import httpx
from sqlalchemy.exc import SQLAlchemyError

from .cache import CacheStore, KeyValueStorage, MemoryStorage, SqlStorage
from .config import Settings
from .db import make_engine
from .services.llm_summarize import OpenAISummarizer
from .services.market import MarketConfig, MarketFetcher
from .services.news import NewsConfig, NewsFetcher
from .services.news_providers import BaseNewsProvider, NewsApiProvider, RssNewsProvider
from .services.quote_providers import AlphaVantageQuotes, BaseQuoteProvider, MockQuotes, YFQuotes
from .utils.rate_limit import AsyncRateLimiter

logger = logging.getLogger(__name__)

DOMAINS = ("news", "market")


def local_clock(tz_name: str) -> Callable[[], datetime]:
    tz = ZoneInfo(tz_name)
    return lambda: datetime.now(tz)


def build_storage(settings: Settings) -> KeyValueStorage:
    """SQL storage per settings; an unusable database degrades to memory."""
    if settings.cache_backend == "memory":
        return MemoryStorage()
    try:
        return SqlStorage(make_engine(settings.database_url))
    except SQLAlchemyError as e:
        logger.error(f"Cache database unavailable ({e}); caching in memory for this process")
        return MemoryStorage()


def build_news_source(settings: Settings, http: httpx.AsyncClient) -> Optional[BaseNewsProvider]:
    if settings.news_mode == "rss":
        return RssNewsProvider(http, max_age_hours=settings.rss_max_age_hours)
    if settings.news_mode == "newsapi":
        return NewsApiProvider(settings.newsapi_key, http)
    return None


def build_quote_provider(settings: Settings, http: httpx.AsyncClient) -> BaseQuoteProvider:
    """
    OFFLINE=1 -> Mock only (deterministic synthetic quotes)
    otherwise -> QUOTE_PROVIDER (Alpha Vantage by default, or yfinance)
    """
    if settings.offline:
        return MockQuotes()
    if settings.quote_provider == "yfinance":
        return YFQuotes(timeout=settings.http_timeout)
    limiter = AsyncRateLimiter(
        "alphavantage",
        rpm=settings.alphavantage_rpm,
        burst=settings.alphavantage_burst,
        rpd=settings.alphavantage_rpd,
        max_wait=settings.http_timeout,
    )
    return AlphaVantageQuotes(settings.alphavantage_api_key, http, limiter=limiter)


@dataclass
class AppContext:
    settings: Settings
    store: CacheStore
    news: NewsFetcher
    market: MarketFetcher
    http: httpx.AsyncClient
    summarizer: Optional[OpenAISummarizer] = None

    def cache_target(self, domain: str) -> Tuple[str, int]:
        """(cache key, refresh hour) for 'news' or 'market'."""
        if domain == "news":
            return self.news.config.cache_key, self.news.config.refresh_hour
        if domain == "market":
            return self.market.config.cache_key, self.market.config.refresh_hour
        raise ValueError(f"unknown cache domain {domain!r}; expected one of {', '.join(DOMAINS)}")

    async def aclose(self) -> None:
        await self.http.aclose()
        if self.summarizer is not None:
            await self.summarizer.aclose()


def build_context(
    settings: Settings | None = None,
    *,
    storage: KeyValueStorage | None = None,
    clock: Callable[[], datetime] | None = None,
) -> AppContext:
    settings = settings or Settings()
    clock = clock or local_clock(settings.timezone)
    store = CacheStore(storage or build_storage(settings), clock=clock)
    http = httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True)

    summarizer = None
    if settings.openai_api_key:
        summarizer = OpenAISummarizer(
            settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
            timeout=settings.llm_timeout,
        )
    else:
        logger.warning("OPENAI_API_KEY not set; news cards will be built from raw headlines")

    news = NewsFetcher(
        store,
        NewsConfig(
            cache_key=settings.news_cache_key,
            refresh_hour=settings.news_refresh_hour,
            mode=settings.news_mode,
            items_per_category=settings.items_per_category,
        ),
        source=build_news_source(settings, http),
        summarizer=summarizer,
    )
    market = MarketFetcher(
        store,
        build_quote_provider(settings, http),
        MarketConfig(
            cache_key=settings.market_cache_key,
            refresh_hour=settings.market_refresh_hour,
            symbols=tuple(settings.symbols),
        ),
    )
    return AppContext(settings=settings, store=store, news=news, market=market, http=http,
                      summarizer=summarizer)
