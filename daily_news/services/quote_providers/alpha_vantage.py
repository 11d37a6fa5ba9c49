# daily_news/services/quote_providers/alpha_vantage.py
from __future__ import annotations
import logging
from typing import Dict, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from .base import BaseQuoteProvider, to_float
from ...constants import USER_AGENT
from ...exceptions import APIKeyMissingError, RateLimitError
from ...models import Quote
from ...utils.rate_limit import AsyncRateLimiter

logger = logging.getLogger(__name__)

ALPHA_QUERY_URL = "https://www.alphavantage.co/query"


class AlphaVantageQuotes(BaseQuoteProvider):
    """
    Alpha Vantage GLOBAL_QUOTE
    - Free tier: ~5 req/min; ~25 req/day
    - One call per symbol; throttled by a token bucket shared by all calls
    """
    name = "alphavantage"

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient,
        limiter: AsyncRateLimiter | None = None,
    ):
        self.api_key = api_key
        self.client = client
        self.limiter = limiter

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(1, 4),
        reraise=True,
    )
    async def _call(self, params: Dict[str, str]) -> dict:
        if self.limiter:
            await self.limiter.wait()
        r = await self.client.get(ALPHA_QUERY_URL, params=params, headers={"User-Agent": USER_AGENT})
        if r.status_code == 429:
            raise RateLimitError(self.name)
        r.raise_for_status()
        return r.json()

    async def quote(self, symbol: str) -> Optional[Quote]:
        if not self.api_key:
            raise APIKeyMissingError(self.name)

        data = await self._call({"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key})
        # throttled responses come back as 200 with a Note/Information message
        if "Note" in data or "Information" in data:
            raise RateLimitError(self.name)

        q = data.get("Global Quote") or {}
        if not q or not q.get("05. price"):
            logger.warning(f"No quote data found for {symbol}")
            return None
        return {
            "price": to_float(q.get("05. price")),
            "change": to_float(q.get("09. change")),
            "changePercent": to_float(q.get("10. change percent")),
        }
