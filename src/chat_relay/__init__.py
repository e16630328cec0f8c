"""Chat Relay - provider routing with circuit breaking and deterministic fallback.

This package provides a layered architecture for relaying chat messages to
language-model providers:

Layers:
    - protocols: Interface contracts (BreakerStore, ResponseProvider)
    - repositories: Breaker stores and provider adapters
    - services: Response routing
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from chat_relay.repositories import MemoryBreakerStore
    from chat_relay.services import ResponseRouter

    router = ResponseRouter.create(breaker_store=MemoryBreakerStore("openai"))
    reply = await router.get_bot_response("hello")
    ```

For HTTP API:
    ```python
    from chat_relay.api.app import app
    ```
"""

from chat_relay.config import get_redis_client, settings
from chat_relay.dto import ChatRequest, ChatResponse
from chat_relay.entities import BreakerPolicy, BreakerState, CacheEntry
from chat_relay.errors import AdapterError, AdapterTimeoutError, ProviderUnavailableError, RelayError
from chat_relay.handlers import ChatHandler
from chat_relay.protocols import BreakerStore, ResponseProvider
from chat_relay.repositories import MemoryBreakerStore, RedisBreakerStore
from chat_relay.responder import compute_response
from chat_relay.result_cache import ResultCache
from chat_relay.services import ResponseRouter
from chat_relay.timeout import call_with_timeout

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "BreakerStore",
    "ResponseProvider",
    # Services (business logic)
    "ResponseRouter",
    "compute_response",
    "ResultCache",
    "call_with_timeout",
    # Handlers (HTTP)
    "ChatHandler",
    # Repositories (data access)
    "MemoryBreakerStore",
    "RedisBreakerStore",
    # Entities (domain models)
    "BreakerPolicy",
    "BreakerState",
    "CacheEntry",
    # DTOs (API contracts)
    "ChatRequest",
    "ChatResponse",
    # Errors
    "RelayError",
    "AdapterError",
    "AdapterTimeoutError",
    "ProviderUnavailableError",
]
