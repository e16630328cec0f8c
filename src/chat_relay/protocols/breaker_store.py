"""Circuit breaker store protocol.

Defines the interface for any backend that keeps circuit breaker state for
one guarded provider.

Implementations include:
- In-process memory (single instance, lost on restart)
- Redis sorted sets (shared by a fleet of instances)
"""

from typing import Protocol, runtime_checkable

from chat_relay.entities import BreakerState


@runtime_checkable
class BreakerStore(Protocol):
    """Protocol for circuit breaker state backends.

    The store owns every mutation of the breaker state. The router only asks
    whether the breaker is open and reports failures.

    Example:
        ```python
        from chat_relay.protocols import BreakerStore

        store: BreakerStore = MemoryBreakerStore("openai")
        store: BreakerStore = RedisBreakerStore(client, "openai")
        ```
    """

    @property
    def provider(self) -> str:
        """Return the name of the guarded provider."""
        ...

    async def is_open(self) -> bool:
        """Check whether calls should be short-circuited.

        Returns:
            True while ``now < open_until``, False otherwise
        """
        ...

    async def record_failure(
        self,
        now: int,
        window_ms: int,
        threshold: int,
        cooldown_ms: int,
    ) -> BreakerState:
        """Record one failure and open the breaker if the threshold is reached.

        Args:
            now: Failure timestamp in ms
            window_ms: Sliding window for counting failures
            threshold: Failures within the window that open the breaker
            cooldown_ms: How long the breaker stays open

        Returns:
            The state after recording the failure
        """
        ...

    async def prune(self, window_ms: int) -> int:
        """Remove failures older than the window.

        Returns:
            Number of failures still inside the window
        """
        ...

    async def get_state(self) -> BreakerState:
        """Return a snapshot of the breaker state."""
        ...

    async def health_check(self) -> bool:
        """Check if the backend is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
