# daily_news/services/quote_providers/yf.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import yfinance as yf

from .base import BaseQuoteProvider
from ...models import Quote

logger = logging.getLogger(__name__)


class YFQuotes(BaseQuoteProvider):
    """
    yfinance quotes, used when QUOTE_PROVIDER=yfinance (no API key needed).
    yfinance is blocking, so each lookup runs in a worker thread with a
    timeout; parallel lookups are capped by a semaphore.
    """
    name = "yfinance"

    def __init__(self, timeout: float = 5.0, parallel: int = 4):
        self.timeout = timeout
        self._sem = asyncio.Semaphore(parallel)

    @staticmethod
    def _lookup(symbol: str) -> Optional[Quote]:
        info = yf.Ticker(symbol).fast_info
        last = getattr(info, "last_price", None)
        prev = getattr(info, "previous_close", None)
        if last is None:
            return None
        last = float(last)
        change = last - float(prev) if prev else 0.0
        pct = (change / float(prev) * 100) if prev else 0.0
        return {"price": round(last, 4), "change": round(change, 4), "changePercent": round(pct, 4)}

    async def quote(self, symbol: str) -> Optional[Quote]:
        async with self._sem:
            return await asyncio.wait_for(asyncio.to_thread(self._lookup, symbol), self.timeout)
