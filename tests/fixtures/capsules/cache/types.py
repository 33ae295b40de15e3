"""Cache types."""
from enum import Enum
from typing import Literal, Optional, TypedDict

EvictionPolicy = Literal["lru", "lfu", "fifo"]


class CacheLevel(str, Enum):
    MEMORY = "memory"
    DISK = "disk"


class CacheEntry(TypedDict):
    key: str
    value: object
    expires_at: Optional[float]


class CacheOptions(TypedDict):
    max_entries: int
    # Seconds before an entry expires
    ttl: int
