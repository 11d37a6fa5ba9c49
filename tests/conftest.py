"""
Pytest configuration and fixtures.
"""
import json
import os
from datetime import datetime, timedelta

import pytest

# Set test environment before importing app modules
os.environ["ENV"] = "test"
os.environ["CACHE_BACKEND"] = "memory"
for _key in ("OPENAI_API_KEY", "NEWSAPI_KEY", "ALPHAVANTAGE_API_KEY", "OFFLINE"):
    os.environ.pop(_key, None)

from daily_news.cache import CacheStore, MemoryStorage  # noqa: E402
from daily_news.constants import CATEGORY_ORDER  # noqa: E402
from daily_news.exceptions import ProviderError  # noqa: E402
from daily_news.services.news_providers.base_news import BaseNewsProvider  # noqa: E402
from daily_news.services.quote_providers.base import BaseQuoteProvider  # noqa: E402


class FrozenClock:
    """Callable clock the tests can move around."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args) -> None:
        self.now = datetime(*args)

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeNewsSource(BaseNewsProvider):
    """Returns canned items per category; categories in `failing` raise."""
    name = "fake"

    def __init__(self, items_by_category=None, failing=()):
        self.items_by_category = items_by_category or {}
        self.failing = set(failing)
        self.calls = []

    async def fetch(self, category):
        self.calls.append(category)
        if category in self.failing:
            raise ProviderError(f"{category} is down")
        return list(self.items_by_category.get(category, []))


class FakeSummarizer:
    """Returns canned text (or raises) and records prompts."""

    def __init__(self, text="[]", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def complete(self, system, user, *, web_search=False):
        self.calls.append({"system": system, "user": user, "web_search": web_search})
        if self.error:
            raise self.error
        return self.text


class FakeQuotes(BaseQuoteProvider):
    """Quotes from a dict; symbols mapped to an Exception raise it, missing ones return None."""
    name = "fake-quotes"

    def __init__(self, quotes):
        self.quotes = quotes
        self.calls = []

    async def quote(self, symbol):
        self.calls.append(symbol)
        q = self.quotes.get(symbol)
        if isinstance(q, Exception):
            raise q
        return q


def make_item(category, n=0, source="Example News"):
    return {
        "title": f"{category.title()} story number {n}",
        "url": f"https://www.example.com/{category}/{n}",
        "source": source,
        "category": category,
        "publishedAt": "2025-06-10T06:00:00+00:00",
        "description": f"Details about {category} story {n}.",
    }


def make_model_cards(categories=CATEGORY_ORDER):
    return [
        {
            "id": f"c-{cat}",
            "headline": f"{cat.title()} headline",
            "summary": f"What happened in {cat}. More context follows.",
            "bullets": ["First point", "Second point"],
            "category": cat,
            "timestamp": "2025-06-10T06:00:00Z",
            "citations": [f"Example News — https://www.example.com/{cat}/0"],
        }
        for cat in categories
    ]


@pytest.fixture
def clock():
    """Tuesday 2025-06-10, 09:00 local time (after the default 8am refresh)."""
    return FrozenClock(datetime(2025, 6, 10, 9, 0))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage, clock):
    return CacheStore(storage, clock=clock)


@pytest.fixture
def items_by_category():
    return {cat: [make_item(cat, 0), make_item(cat, 1)] for cat in CATEGORY_ORDER}


@pytest.fixture
def model_text():
    return json.dumps(make_model_cards())
