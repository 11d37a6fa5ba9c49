# daily_news/services/market.py
"""
Ticker strip data: cached until the refresh hour, otherwise one quote
request per symbol in parallel, keeping whichever symbols succeeded.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from ..cache import CacheStore
from ..constants import COMPANY_NAMES, DEFAULT_REFRESH_HOUR, DEFAULT_SYMBOLS, MARKET_CACHE_KEY
from ..exceptions import MarketDataUnavailableError
from ..models import TickerItem
from ..results import Err, ErrorKind, Ok, Result
from .quote_providers.base import BaseQuoteProvider, to_float

logger = logging.getLogger(__name__)


@dataclass
class MarketConfig:
    cache_key: str = MARKET_CACHE_KEY
    refresh_hour: int = DEFAULT_REFRESH_HOUR
    symbols: Tuple[str, ...] = DEFAULT_SYMBOLS


def company_name(symbol: str) -> str:
    return COMPANY_NAMES.get(symbol, symbol)


def default_tickers(symbols: Sequence[str] = DEFAULT_SYMBOLS) -> List[TickerItem]:
    """Zero-valued items for initial display when no data is available."""
    return [TickerItem(symbol=s, name=company_name(s)) for s in symbols]


def tickers_from_payload(payload: Any) -> Optional[List[TickerItem]]:
    if not isinstance(payload, list) or not payload:
        return None
    try:
        return [TickerItem.from_dict(t) for t in payload]
    except (KeyError, TypeError, ValueError, AttributeError):
        return None


def resolve_market(result: Result, stale: Any) -> List[TickerItem]:
    """Fallback policy: live items, else stale cached items, else raise."""
    if isinstance(result, Ok):
        return result.value
    logger.error(f"Market data fetch failed ({result}); falling back")
    items = tickers_from_payload(stale)
    if items:
        logger.info(f"Using stale cached market data ({len(items)} symbols)")
        return items
    raise MarketDataUnavailableError(str(result))


class MarketFetcher:
    def __init__(self, store: CacheStore, quotes: BaseQuoteProvider, config: MarketConfig | None = None):
        self.store = store
        self.quotes = quotes
        self.config = config or MarketConfig()

    async def fetch(self) -> List[TickerItem]:
        """
        Cached or fresh ticker items.

        Raises MarketDataUnavailableError when every symbol failed and there
        is no cached data to fall back on.
        """
        cfg = self.config
        stale = self.store.peek(cfg.cache_key)
        cached = self.store.get(cfg.cache_key, cfg.refresh_hour)
        if cached is not None:
            items = tickers_from_payload(cached)
            if items is not None:
                return items
            logger.warning(f"Ignoring malformed cached market data under {cfg.cache_key!r}")
        return await self.refresh(stale=stale)

    async def refresh(self, stale: Any = None) -> List[TickerItem]:
        try:
            result = await self._fetch_live()
        except Exception as e:
            logger.exception(f"Unexpected error while fetching market data: {e}")
            result = Err(ErrorKind.UPSTREAM, str(e))

        if isinstance(result, Ok):
            self.store.set(self.config.cache_key, [t.to_dict() for t in result.value], self.config.refresh_hour)
        return resolve_market(result, stale)

    async def _one(self, symbol: str) -> Optional[TickerItem]:
        q = await self.quotes.quote(symbol)
        if not q:
            return None
        return TickerItem(
            symbol=symbol,
            name=company_name(symbol),
            price=to_float(q.get("price")),
            change=to_float(q.get("change")),
            change_percent=to_float(q.get("changePercent")),
        )

    async def _fetch_live(self) -> Result:
        symbols = list(self.config.symbols)
        logger.info(f"Fetching {len(symbols)} quotes from {self.quotes.name}")
        results = await asyncio.gather(*(self._one(s) for s in symbols), return_exceptions=True)

        items: List[TickerItem] = []
        for sym, res in zip(symbols, results):
            if isinstance(res, BaseException):
                logger.warning(f"Failed to fetch quote for {sym}: {res!r}")
            elif res is None:
                logger.warning(f"No quote returned for {sym}")
            else:
                items.append(res)

        if not items:
            return Err(ErrorKind.UPSTREAM, f"all {len(symbols)} quote requests failed")
        logger.info(f"Fetched market data for {len(items)}/{len(symbols)} symbols")
        return Ok(items)
