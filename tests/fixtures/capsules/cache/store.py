"""In-memory TTL store."""
import time
from typing import Dict, Optional

import redis

from .types import CacheEntry

DEFAULT_TTL = 300
# Upper bound on stored entries
MAX_ENTRIES = 1_000
_SENTINEL = object()
STARTED = time.time()


class CacheError(Exception):
    """Raised when the cache cannot serve a request."""


class CacheMissError(CacheError):
    pass


class TTLStore:
    def __init__(self, ttl: int = DEFAULT_TTL) -> None:
        self._ttl = ttl
        self._data: Dict[str, CacheEntry] = {}
        self._backend = redis

    def get(self, key: str) -> Optional[object]:
        entry = self._data.get(key)
        if entry is None or (entry["expires_at"] and entry["expires_at"] < time.time()):
            return None
        return entry["value"]

    async def refresh(self, key: str) -> None:
        self._data.pop(key, None)


def make_key(namespace: str, *parts: str, sep: str = ":") -> str:
    return sep.join([namespace, *parts])


async def warm_up(store: "TTLStore", keys, **options) -> int:
    count = 0
    for key in keys:
        if key and not store.get(key):
            count += 1
    return count
