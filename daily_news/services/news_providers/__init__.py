# daily_news/services/news_providers/__init__.py
from .base_news import BaseNewsProvider, canonical_title, dedupe
from .newsapi import NewsApiProvider
from .rss import RssNewsProvider, parse_feed

__all__ = [
    "BaseNewsProvider",
    "NewsApiProvider",
    "RssNewsProvider",
    "canonical_title",
    "dedupe",
    "parse_feed",
]
