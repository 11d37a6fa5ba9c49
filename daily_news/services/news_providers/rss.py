# daily_news/services/news_providers/rss.py
from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, List, Optional, Sequence, Tuple

import httpx

from .base_news import BaseNewsProvider
from ...constants import DEFAULT_FEEDS, USER_AGENT
from ...exceptions import ProviderError
from ...models import NewsItem

logger = logging.getLogger(__name__)

ATOM_NS = "{http://www.w3.org/2005/Atom}"

Feed = Tuple[str, str, str]  # (source, url, category)


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    value = value.strip()
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _text(node: Optional[ET.Element]) -> str:
    return (node.text or "").strip() if node is not None else ""


def parse_feed(content: bytes, source: str, category: str) -> List[NewsItem]:
    """Parse RSS 2.0 <item> or Atom <entry> elements. Raises ET.ParseError."""
    root = ET.fromstring(content)
    out: List[NewsItem] = []

    for item in root.iter("item"):
        published = _parse_date(_text(item.find("pubDate")))
        out.append({
            "title": _text(item.find("title")),
            "url": _text(item.find("link")),
            "source": source,
            "category": category,
            "publishedAt": published.isoformat() if published else "",
            "description": _text(item.find("description")),
        })

    for entry in root.iter(f"{ATOM_NS}entry"):
        link = entry.find(f"{ATOM_NS}link")
        published = _parse_date(
            _text(entry.find(f"{ATOM_NS}published")) or _text(entry.find(f"{ATOM_NS}updated"))
        )
        out.append({
            "title": _text(entry.find(f"{ATOM_NS}title")),
            "url": (link.get("href") or "").strip() if link is not None else "",
            "source": source,
            "category": category,
            "publishedAt": published.isoformat() if published else "",
            "description": _text(entry.find(f"{ATOM_NS}summary")),
        })

    return out


class RssNewsProvider(BaseNewsProvider):
    """
    Direct RSS/Atom feeds, grouped by dashboard category.
    Only items with a title, a link and a publish date inside the age
    window are kept.
    """
    name = "rss"

    def __init__(
        self,
        client: httpx.AsyncClient,
        feeds: Sequence[Feed] = DEFAULT_FEEDS,
        max_age_hours: int = 48,
        clock: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.feeds = list(feeds)
        self.max_age = timedelta(hours=max_age_hours)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def _fetch_feed(self, source: str, url: str, category: str) -> List[NewsItem]:
        r = await self.client.get(url, headers={"User-Agent": USER_AGENT})
        r.raise_for_status()
        items = parse_feed(r.content, source, category)

        cutoff = self.clock() - self.max_age
        fresh = []
        for it in items:
            if not it["title"] or not it["url"]:
                continue
            published = _parse_date(it["publishedAt"])
            if published is None or published < cutoff:
                continue
            fresh.append(it)
        return fresh

    async def fetch(self, category: str) -> List[NewsItem]:
        feeds = [f for f in self.feeds if f[2] == category]
        if not feeds:
            return []

        results = await asyncio.gather(
            *(self._fetch_feed(src, url, cat) for src, url, cat in feeds),
            return_exceptions=True,
        )
        items: List[NewsItem] = []
        errors = []
        for (src, _, _), res in zip(feeds, results):
            if isinstance(res, BaseException):
                logger.warning(f"RSS feed {src} failed: {res!r}")
                errors.append(src)
            else:
                items.extend(res)

        if len(errors) == len(feeds):
            raise ProviderError(f"all {category} feeds failed: {', '.join(errors)}")
        logger.debug(f"RSS {category}: {len(items)} items from {len(feeds) - len(errors)} feeds")
        return items
