"""Service layer for business logic.

This layer contains the routing and resilience logic.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Routing) -> (Providers, breaker state)

Usage:
    ```python
    from chat_relay.services import ResponseRouter

    # Using factory method (recommended)
    router = ResponseRouter.create(breaker_store=store)

    # Or manual creation
    router = ResponseRouter(breaker_store=store, task_provider=..., ...)
    ```
"""

from .response_router import TASK_KEYWORDS, ResponseRouter

__all__ = [
    "ResponseRouter",
    "TASK_KEYWORDS",
]
