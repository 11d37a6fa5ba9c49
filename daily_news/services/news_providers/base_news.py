# daily_news/services/news_providers/base_news.py
from __future__ import annotations
import re
from abc import ABC, abstractmethod
from typing import Iterable, List

from ...models import NewsItem


class BaseNewsProvider(ABC):
    """Abstract base class for news sources."""

    name: str = "news"

    @abstractmethod
    async def fetch(self, category: str) -> List[NewsItem]:
        """
        Fetch recent items for one dashboard category.

        Args:
            category: One of the card categories (top, tech, ...)

        Returns:
            List of NewsItem dictionaries; empty when the source has nothing
            configured for the category. Raises on upstream failure.
        """
        pass


def canonical_title(title: str) -> str:
    s = re.sub(r"[^a-z0-9\s]", "", title.lower())
    return re.sub(r"\s+", " ", s).strip()


def dedupe(items: Iterable[NewsItem]) -> List[NewsItem]:
    """Drop items whose canonical title was already seen, keeping the first."""
    seen = set()
    out: List[NewsItem] = []
    for it in items:
        key = canonical_title(it.get("title", ""))
        if key not in seen:
            seen.add(key)
            out.append(it)
    return out
