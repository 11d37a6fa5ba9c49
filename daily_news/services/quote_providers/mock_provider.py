# daily_news/services/quote_providers/mock_provider.py
import random
import zlib
from datetime import date

from .base import BaseQuoteProvider


class MockQuotes(BaseQuoteProvider):
    """Deterministic synthetic quotes for OFFLINE=1 (stable within a day)."""
    name = "mock"

    def _rnd(self, symbol: str) -> random.Random:
        seed = zlib.crc32(f"{symbol}:{date.today().isoformat()}".encode())
        return random.Random(seed)

    async def quote(self, symbol: str):
        rnd = self._rnd(symbol)
        price = round(100 + rnd.random() * 400, 2)
        pct = round(rnd.uniform(-3.0, 3.0), 2)
        change = round(price * pct / (100 + pct), 2)
        return {"price": price, "change": change, "changePercent": pct}
