# daily_news/services/news.py
"""
Daily news cards: serve from cache until the refresh hour, otherwise
gather source items, curate them with the language model, normalize and
cache.

The public contract is "always returns a list of cards": failures fall back
to the last cached cards (even if stale), then to an empty list.
"""
from __future__ import annotations

import asyncio
import logging
import re
import time
import zlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..cache import CacheStore
from ..constants import CATEGORY_ORDER, CITATION_SEPARATOR, DEFAULT_REFRESH_HOUR, NEWS_CACHE_KEY
from ..models import Card, NewsItem
from ..normalize import normalize_cards, parse_model_output
from ..results import Err, ErrorKind, Ok, Result
from .llm_summarize import Summarizer, build_curation_prompt, build_search_prompt
from .news_providers.base_news import BaseNewsProvider, dedupe

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<.*?>", re.DOTALL)


@dataclass
class NewsConfig:
    cache_key: str = NEWS_CACHE_KEY
    refresh_hour: int = DEFAULT_REFRESH_HOUR
    mode: str = "rss"  # rss | newsapi | search
    categories: Tuple[str, ...] = CATEGORY_ORDER
    items_per_category: int = 6


def _clean_html(raw: str) -> str:
    return " ".join(_TAG_RE.sub("", raw or "").split())


def _item_citation(it: NewsItem) -> str:
    source, url = it.get("source") or "", it.get("url") or ""
    return f"{source}{CITATION_SEPARATOR}{url}" if source and url else url


def cards_from_items(items_by_category: Dict[str, List[NewsItem]],
                     categories: Sequence[str] = CATEGORY_ORDER) -> List[Dict[str, Any]]:
    """Card-shaped records straight from source items (no language model)."""
    out = []
    for cat in categories:
        items = items_by_category.get(cat) or []
        if not items:
            continue
        it = items[0]
        out.append({
            "id": f"{cat}-{zlib.crc32(it.get('url', '').encode()):08x}",
            "headline": it.get("title", ""),
            "summary": _clean_html(it.get("description", ""))[:350],
            "bullets": [],
            "category": cat,
            "timestamp": it.get("publishedAt", ""),
            "citations": [_item_citation(it)],
        })
    return out


def cards_from_payload(payload: Any) -> Optional[List[Card]]:
    """Cached payload -> cards; None if the payload is not a list of card dicts."""
    if not isinstance(payload, list):
        return None
    try:
        return [Card.from_dict(c) for c in payload]
    except (KeyError, TypeError, ValueError, AttributeError):
        return None


def resolve_news(result: Result, stale: Any) -> List[Card]:
    """Fallback policy: live cards, else stale cached cards, else []."""
    if isinstance(result, Ok):
        return result.value
    logger.error(f"News fetch failed ({result}); falling back")
    cards = cards_from_payload(stale)
    if cards:
        logger.info(f"Using stale cached news ({len(cards)} cards)")
        return cards
    logger.error("No news data available - both live fetch and cache failed")
    return []


class NewsFetcher:
    """
    Orchestrates one news refresh. Collaborators are injected:
    - source: per-category item provider (rss/newsapi modes)
    - summarizer: language model; in rss/newsapi modes it may be None, in
      which case cards are built directly from the first item per category
    """

    def __init__(
        self,
        store: CacheStore,
        config: NewsConfig | None = None,
        source: BaseNewsProvider | None = None,
        summarizer: Summarizer | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.config = config or NewsConfig()
        self.source = source
        self.summarizer = summarizer
        self.clock = clock or store.clock

    async def fetch(self) -> List[Card]:
        cfg = self.config
        stale = self.store.peek(cfg.cache_key)
        cached = self.store.get(cfg.cache_key, cfg.refresh_hour)
        if cached is not None:
            cards = cards_from_payload(cached)
            if cards is not None:
                return cards
            logger.warning(f"Ignoring malformed cached news under {cfg.cache_key!r}")
        return await self.refresh(stale=stale)

    async def refresh(self, stale: Any = None) -> List[Card]:
        """Live fetch regardless of cache state; caches on success."""
        start = time.monotonic()
        try:
            result = await self._fetch_live()
        except Exception as e:
            logger.exception(f"Unexpected error while fetching news: {e}")
            result = Err(ErrorKind.UPSTREAM, str(e))

        if isinstance(result, Ok):
            cards: List[Card] = result.value
            self.store.set(self.config.cache_key, [c.to_dict() for c in cards], self.config.refresh_hour)
            logger.info(f"Fetched {len(cards)} news cards in {time.monotonic() - start:.1f}s")
        return resolve_news(result, stale)

    async def _gather(self) -> Result:
        """Ok({category: [NewsItem]}) or Err(UPSTREAM) when nothing came back."""
        if self.source is None:
            return Err(ErrorKind.CONFIG, f"no news source configured for mode {self.config.mode!r}")

        cats = self.config.categories
        results = await asyncio.gather(*(self.source.fetch(c) for c in cats), return_exceptions=True)

        by_cat: Dict[str, List[NewsItem]] = {}
        all_items: List[NewsItem] = []
        for cat, res in zip(cats, results):
            if isinstance(res, BaseException):
                logger.warning(f"{self.source.name} fetch for {cat} failed: {res!r}")
                continue
            all_items.extend(res)

        # dedupe across categories so one story is offered once
        for it in dedupe(all_items):
            bucket = by_cat.setdefault(it.get("category", ""), [])
            if len(bucket) < self.config.items_per_category:
                bucket.append(it)

        total = sum(len(v) for v in by_cat.values())
        logger.info(f"Gathered {total} source items: " + ", ".join(
            f"{c}={len(by_cat.get(c, []))}" for c in cats))
        if total == 0:
            return Err(ErrorKind.UPSTREAM, "no source items for any category")
        return Ok(by_cat)

    async def _curate(self, items_by_category: Optional[Dict[str, List[NewsItem]]]) -> Result:
        """Ok(parsed JSON) from the summarizer, or Err."""
        cats = self.config.categories
        if items_by_category is None:
            system, user = build_search_prompt(self.clock().date().isoformat(), cats)
            web_search = True
        else:
            system, user = build_curation_prompt(items_by_category, cats, self.config.items_per_category)
            web_search = False

        try:
            text = await self.summarizer.complete(system, user, web_search=web_search)
        except Exception as e:
            return Err(ErrorKind.UPSTREAM, f"summarizer failed: {e!r}")
        return parse_model_output(text)

    async def _fetch_live(self) -> Result:
        cfg = self.config
        if cfg.mode == "search":
            if self.summarizer is None:
                return Err(ErrorKind.CONFIG, "search mode needs a language model")
            parsed = await self._curate(None)
        else:
            gathered = await self._gather()
            if isinstance(gathered, Err):
                return gathered
            if self.summarizer is None:
                logger.info("No language model configured; building cards from headlines")
                parsed = Ok(cards_from_items(gathered.value, cfg.categories))
            else:
                parsed = await self._curate(gathered.value)

        if isinstance(parsed, Err):
            return parsed
        fallback_ts = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        return Ok(normalize_cards(parsed.value, cfg.categories, fallback_ts))
