# daily_news/services/news_providers/newsapi.py
from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from .base_news import BaseNewsProvider
from ...constants import NEWSAPI_QUERIES, USER_AGENT
from ...exceptions import APIKeyMissingError, ProviderError, RateLimitError
from ...models import NewsItem

logger = logging.getLogger(__name__)

NEWSAPI_BASE = "https://newsapi.org/v2"


class NewsApiProvider(BaseNewsProvider):
    """
    NewsAPI (newsapi.org)
    - top-headlines when a NewsAPI category is mapped, `everything` with a
      search query otherwise (queries exclude political content)
    - free tier: 100 req/day, so one request per dashboard category
    """
    name = "newsapi"

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient,
        queries: Dict[str, Tuple[str, str]] = NEWSAPI_QUERIES,
        page_size: int = 5,
    ):
        self.api_key = api_key
        self.client = client
        self.queries = queries
        self.page_size = page_size

    def _request(self, category: str) -> Tuple[str, Dict[str, str]]:
        api_category, query = self.queries[category]
        params = {"language": "en", "pageSize": str(self.page_size), "apiKey": self.api_key or ""}
        if query:
            from_date = (datetime.now(timezone.utc) - timedelta(days=1)).strftime("%Y-%m-%d")
            params.update({"q": query, "from": from_date, "sortBy": "publishedAt"})
            return f"{NEWSAPI_BASE}/everything", params
        params["category"] = api_category
        return f"{NEWSAPI_BASE}/top-headlines", params

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(1, 4),
        reraise=True,
    )
    async def _call(self, url: str, params: Dict[str, str]) -> dict:
        r = await self.client.get(url, params=params, headers={"User-Agent": USER_AGENT})
        if r.status_code == 429:
            raise RateLimitError(self.name)
        r.raise_for_status()
        return r.json()

    async def fetch(self, category: str) -> List[NewsItem]:
        if not self.api_key:
            raise APIKeyMissingError(self.name)
        if category not in self.queries:
            return []

        url, params = self._request(category)
        data = await self._call(url, params)
        if data.get("status") != "ok":
            raise ProviderError(f"NewsAPI returned status {data.get('status')!r}: {data.get('message', '')}")

        out: List[NewsItem] = []
        for a in data.get("articles") or []:
            title = (a.get("title") or "").strip()
            link = (a.get("url") or "").strip()
            if not title or not link:
                continue
            source = a.get("source") or {}
            out.append({
                "title": title,
                "url": link,
                "source": (source.get("name") if isinstance(source, dict) else str(source)) or "",
                "category": category,
                "publishedAt": a.get("publishedAt") or "",
                "description": a.get("description") or "",
            })
        return out
