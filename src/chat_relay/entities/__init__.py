"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .breaker_state import BreakerPolicy, BreakerState
from .cache_entry import CacheEntry

__all__ = ["BreakerPolicy", "BreakerState", "CacheEntry"]
