"""Result cache entry domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """A cached reply and its absolute expiry.

    Attributes:
        value: The cached reply text
        expiry: Timestamp (ms) after which the entry is no longer visible
    """

    value: str
    expiry: int

    def is_expired(self, now: int) -> bool:
        return now > self.expiry
