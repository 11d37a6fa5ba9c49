# daily_news/models.py
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, TypedDict


class NewsItem(TypedDict, total=False):
    """Source material handed to the curator."""
    title: str
    url: str
    source: str
    publishedAt: str  # ISO format
    category: str
    description: str


class Quote(TypedDict):
    """Raw quote returned by a quote provider."""
    price: float
    change: float
    changePercent: float


@dataclass
class CacheEntry:
    payload: Any
    stored_at_epoch_millis: int
    last_fetch_date: str  # YYYY-MM-DD, local calendar date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payload": self.payload,
            "storedAtEpochMillis": self.stored_at_epoch_millis,
            "lastFetchDate": self.last_fetch_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Raises KeyError/TypeError/ValueError on a malformed entry."""
        if not isinstance(data, dict):
            raise TypeError(f"cache entry must be an object, got {type(data).__name__}")
        return cls(
            payload=data["payload"],
            stored_at_epoch_millis=int(data["storedAtEpochMillis"]),
            last_fetch_date=str(data["lastFetchDate"]),
        )


@dataclass
class CacheInfo:
    exists: bool
    last_fetch_date: Optional[str] = None
    stored_at_epoch_millis: Optional[int] = None
    is_stale: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "exists": self.exists,
            "lastFetchDate": self.last_fetch_date,
            "storedAtEpochMillis": self.stored_at_epoch_millis,
            "isStale": self.is_stale,
        }
        return {k: v for k, v in out.items() if v is not None}


@dataclass
class Card:
    id: str
    headline: str
    summary: str
    category: str
    timestamp: str
    bullets: List[str] = field(default_factory=list)
    citations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        return cls(
            id=str(data["id"]),
            headline=str(data["headline"]),
            summary=str(data.get("summary", "")),
            category=str(data["category"]),
            timestamp=str(data.get("timestamp", "")),
            bullets=[str(b) for b in data.get("bullets") or []],
            citations=[str(c) for c in data.get("citations") or []],
        )


@dataclass
class TickerItem:
    symbol: str
    name: str
    price: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TickerItem":
        symbol = str(data["symbol"])
        return cls(
            symbol=symbol,
            name=str(data.get("name") or symbol),
            price=float(data.get("price") or 0.0),
            change=float(data.get("change") or 0.0),
            change_percent=float(data.get("changePercent") or 0.0),
        )
