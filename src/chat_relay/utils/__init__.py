"""Utility helpers for the chat relay."""

import time
from collections.abc import Callable

# Millisecond wall clock; breaker timestamps are shared across processes
Clock = Callable[[], int]


def now_ms() -> int:
    """Return the current Unix time in whole milliseconds."""
    return int(time.time() * 1000)


__all__ = [
    "Clock",
    "now_ms",
]
