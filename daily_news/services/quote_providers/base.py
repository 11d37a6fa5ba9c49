# daily_news/services/quote_providers/base.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Optional

from ...models import Quote


class BaseQuoteProvider(ABC):
    """Abstract base class for per-symbol quote sources."""

    name: str = "quotes"

    @abstractmethod
    async def quote(self, symbol: str) -> Optional[Quote]:
        """
        Latest quote for one symbol.

        Returns None when the upstream has no quote for the symbol; raises
        ProviderError (or an httpx error) when the request itself fails.
        """
        pass


def to_float(value: Any) -> float:
    """Parse numbers like '1.23', '-0.45%' or None; unparseable -> 0.0."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().rstrip("%").replace(",", "")
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
