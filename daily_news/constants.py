# daily_news/constants.py
"""
Centralized constants for the daily news dashboard.
Eliminates magic strings and makes defaults explicit.
"""
from __future__ import annotations

# Cache keys / refresh policy
NEWS_CACHE_KEY = "envoy_news_cache"
MARKET_CACHE_KEY = "envoy_market_data_cache"
DEFAULT_REFRESH_HOUR = 8    # local wall-clock hour

# Card categories
CATEGORIES = ("top", "tech", "sports", "markets", "local", "weather", "org")
CATEGORY_ORDER = ("top", "tech", "sports", "markets", "local", "weather")
CITATION_SEPARATOR = " — "
MAX_BULLETS = 3

FALLBACK_HEADLINE = "Untitled"
PLACEHOLDER_HEADLINE = "Update unavailable"
PLACEHOLDER_SUMMARY = "This story could not be loaded. Check back after the next refresh."

# Used when a card ends up with no usable citation
CATEGORY_FALLBACK_URLS = {
    "top": "https://www.bbc.com/news",
    "tech": "https://www.wired.com",
    "sports": "https://www.espn.com",
    "markets": "https://www.cnbc.com/markets",
    "local": "https://www.sfchronicle.com",
    "weather": "https://weather.com",
    "org": "https://www.envoy.com/blog",
}

# RSS feeds: (source, url, category)
DEFAULT_FEEDS = (
    ("BBC News", "http://feeds.bbci.co.uk/news/world/rss.xml", "top"),
    ("NPR News", "https://feeds.npr.org/1001/rss.xml", "top"),
    ("Wired", "https://www.wired.com/feed/rss", "tech"),
    ("The Verge", "https://www.theverge.com/rss/index.xml", "tech"),
    ("ESPN", "https://www.espn.com/espn/rss/news", "sports"),
    ("CNBC", "https://www.cnbc.com/id/100003114/device/rss/rss.html", "markets"),
    ("KQED News", "https://www.kqed.org/news/feed", "local"),
)

# NewsAPI: category -> (top-headlines category, everything query)
NEWSAPI_QUERIES = {
    "top": ("", "workplace trends NOT politics NOT election NOT government"),
    "tech": ("technology", "AI OR software OR innovation NOT politics"),
    "sports": ("sports", ""),
    "markets": ("business", "markets OR economy OR companies NOT politics"),
    "local": ("", "San Francisco Bay Area workplace OR commute NOT politics"),
    "weather": ("", "weather forecast USA travel"),
}

# Ticker strip
DEFAULT_SYMBOLS = ("SPY", "QQQ", "AAPL", "MSFT", "GOOGL", "TSLA", "NVDA", "META")
COMPANY_NAMES = {
    "SPY": "S&P 500 ETF",
    "QQQ": "Nasdaq 100 ETF",
    "AAPL": "Apple Inc.",
    "MSFT": "Microsoft Corp.",
    "GOOGL": "Alphabet Inc.",
    "TSLA": "Tesla Inc.",
    "NVDA": "NVIDIA Corp.",
    "META": "Meta Platforms",
}

USER_AGENT = "daily-news-dashboard/1.0"
