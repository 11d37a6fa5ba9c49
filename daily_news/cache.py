# daily_news/cache.py
"""
Key-value cache with a "refresh once a day at a fixed local hour" policy.

Entries are stored as JSON-serialized CacheEntry objects. An entry written
at 08:05 is served until the refresh hour passes on the next calendar day;
staleness is only noticed when the key is read.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from .constants import DEFAULT_REFRESH_HOUR
from .db import CacheRow, make_sessionmaker
from .exceptions import StorageError
from .models import CacheEntry, CacheInfo
from .results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class KeyValueStorage(Protocol):
    """Minimal string storage, shaped like browser localStorage."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage. Used for tests and CACHE_BACKEND=memory."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SqlStorage:
    """Storage backed by the cache_entries table (SQLite by default)."""

    def __init__(self, engine):
        self._session = make_sessionmaker(engine)

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self._session() as sess:
                row = sess.get(CacheRow, key)
                return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"read failed for {key!r}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        ts = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        try:
            with self._session() as sess:
                row = sess.get(CacheRow, key)
                if row:
                    row.value = value
                    row.updated_ts = ts
                else:
                    sess.add(CacheRow(key=key, value=value, updated_ts=ts))
                sess.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"write failed for {key!r}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with self._session() as sess:
                row = sess.get(CacheRow, key)
                if row:
                    sess.delete(row)
                    sess.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"delete failed for {key!r}: {e}") from e


def should_refetch(entry: Optional[CacheEntry], refresh_hour: int, now: datetime) -> bool:
    """
    True when the entry must not be served any more.

    Data refreshes once per day: after the refresh hour, anything not
    fetched today is stale. Before the refresh hour, the previous fetch is
    still served.
    """
    if entry is None:
        return True
    today = now.date().isoformat()
    if entry.last_fetch_date != today and now.hour >= refresh_hour:
        return True
    return False


class CacheStore:
    """
    get/set/clear/info over a KeyValueStorage.

    Storage failures never reach the caller: reads degrade to a miss and
    writes are dropped with a log line.
    """

    def __init__(self, storage: KeyValueStorage, clock: Clock | None = None):
        self.storage = storage
        self.clock = clock or datetime.now

    def _load(self, key: str) -> Result:
        """Ok(CacheEntry | None) or Err(STORAGE)."""
        try:
            raw = self.storage.get_item(key)
            if raw is None:
                return Ok(None)
            return Ok(CacheEntry.from_dict(json.loads(raw)))
        except (StorageError, ValueError, KeyError, TypeError) as e:
            return Err(ErrorKind.STORAGE, str(e))

    def _remove(self, key: str) -> None:
        try:
            self.storage.remove_item(key)
        except StorageError as e:
            logger.error(f"Error removing cache for {key!r}: {e}")

    def get(self, key: str, refresh_hour: int = DEFAULT_REFRESH_HOUR) -> Any | None:
        """Cached payload, or None when missing, unreadable or due for refresh."""
        loaded = self._load(key)
        if isinstance(loaded, Err):
            logger.error(f"Error reading cache for {key!r}: {loaded.detail}")
            return None
        entry = loaded.value
        if entry is None:
            return None
        if should_refetch(entry, refresh_hour, self.clock()):
            logger.info(f"Cache for {key!r} from {entry.last_fetch_date} is due for refresh")
            self._remove(key)
            return None
        logger.info(f"Using cached data for {key!r} from {entry.last_fetch_date} "
                    f"(refresh hour {refresh_hour}:00)")
        return entry.payload

    def peek(self, key: str) -> Any | None:
        """Stored payload regardless of age. No side effects."""
        loaded = self._load(key)
        if isinstance(loaded, Ok) and loaded.value is not None:
            return loaded.value.payload
        return None

    def set(self, key: str, payload: Any, refresh_hour: int = DEFAULT_REFRESH_HOUR) -> None:
        now = self.clock()
        entry = CacheEntry(
            payload=payload,
            stored_at_epoch_millis=int(now.timestamp() * 1000),
            last_fetch_date=now.date().isoformat(),
        )
        try:
            self.storage.set_item(key, json.dumps(entry.to_dict()))
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"Error setting cache for {key!r}: {e}")
            return
        logger.info(f"Data cached for {key!r} (refresh hour {refresh_hour}:00)")

    def clear(self, key: str) -> None:
        self._remove(key)
        logger.info(f"Cache cleared for {key!r}")

    def info(self, key: str, refresh_hour: int = DEFAULT_REFRESH_HOUR) -> CacheInfo:
        loaded = self._load(key)
        if isinstance(loaded, Err):
            logger.error(f"Error reading cache info for {key!r}: {loaded.detail}")
            return CacheInfo(exists=False)
        entry = loaded.value
        if entry is None:
            return CacheInfo(exists=False)
        return CacheInfo(
            exists=True,
            last_fetch_date=entry.last_fetch_date,
            stored_at_epoch_millis=entry.stored_at_epoch_millis,
            is_stale=should_refetch(entry, refresh_hour, self.clock()),
        )
