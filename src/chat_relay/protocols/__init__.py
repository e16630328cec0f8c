"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (memory → Redis, OpenAI → Claude, etc.)
- Unit testing with mock implementations
- Clear separation of concerns

Usage:
    ```python
    from chat_relay.protocols import BreakerStore, ResponseProvider

    store: BreakerStore = MemoryBreakerStore("openai")
    store: BreakerStore = RedisBreakerStore(client, "openai")
    ```
"""

from .breaker_store import BreakerStore
from .response_provider import ResponseProvider

__all__ = [
    "BreakerStore",
    "ResponseProvider",
]
