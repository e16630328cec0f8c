"""Short-lived in-memory result cache.

Entries expire lazily on read. Writes never raise: caching only saves a
provider round trip, so a failed write is logged and dropped.
"""

import logging
from collections import OrderedDict

from chat_relay.config import settings
from chat_relay.entities import CacheEntry
from chat_relay.utils import Clock, now_ms

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "compute:"


def cache_key(message: str) -> str:
    """Build the cache key for a raw (not normalized) message."""
    return f"{CACHE_KEY_PREFIX}{message}"


class ResultCache:
    """TTL cache keyed by exact message text.

    Example:
        ```python
        cache = ResultCache(ttl_ms=30_000)
        cache.set(cache_key("hello"), "Hi there!")
        cache.get(cache_key("hello"))  # "Hi there!" until the TTL passes
        ```
    """

    def __init__(
        self,
        ttl_ms: int | None = None,
        max_entries: int | None = None,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_ms: Entry lifetime in milliseconds. Defaults to settings.
            max_entries: Capacity bound, 0 for unbounded. Defaults to settings.
            clock: Millisecond clock (injectable for tests).
        """
        self._ttl_ms = settings.cache_ttl_ms if ttl_ms is None else ttl_ms
        self._max_entries = settings.cache_max_entries if max_entries is None else max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> str | None:
        """Return the cached value, or None on a miss or an expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: str) -> None:
        """Store a value, overwriting any existing entry."""
        try:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, expiry=self._clock() + self._ttl_ms)
            if self._max_entries:
                while len(self._entries) > self._max_entries:
                    self._entries.popitem(last=False)
        except Exception as e:
            logger.debug("Ignoring result cache write failure for %r: %s", key, e)

    def purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms
