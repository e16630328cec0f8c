"""In-process implementation of BreakerStore.

State lives in this process only and is lost on restart. Suitable for
single-instance deployments, tests, and as the fallback when redis fails.
"""

import logging
from dataclasses import dataclass, field

from chat_relay.entities import BreakerState
from chat_relay.utils import Clock, now_ms

logger = logging.getLogger(__name__)


@dataclass
class _State:
    failures: list[int] = field(default_factory=list)
    open_until: int = 0
    opened_count: int = 0

    def snapshot(self) -> BreakerState:
        return BreakerState(
            failures=tuple(self.failures),
            open_until=self.open_until,
            opened_count=self.opened_count,
        )


class MemoryBreakerStore:
    """Process-local breaker state for one provider.

    This class satisfies the BreakerStore protocol through structural
    typing - no explicit inheritance needed.

    Every method runs without suspending, so on a single event loop each
    read-modify-write is atomic with respect to other requests.
    """

    def __init__(self, provider: str = "openai", clock: Clock = now_ms) -> None:
        """Initialize the store.

        Args:
            provider: Name of the guarded provider.
            clock: Millisecond clock (injectable for tests).
        """
        self._provider = provider
        self._clock = clock
        self._state = _State()

    @property
    def provider(self) -> str:
        return self._provider

    async def is_open(self) -> bool:
        return self._clock() < self._state.open_until

    async def record_failure(
        self,
        now: int,
        window_ms: int,
        threshold: int,
        cooldown_ms: int,
    ) -> BreakerState:
        state = self._state
        state.failures.append(now)
        state.failures = [t for t in state.failures if now - t <= window_ms]

        if len(state.failures) >= threshold and now >= state.open_until:
            state.open_until = now + cooldown_ms
            state.opened_count += 1
            logger.warning(
                "%s circuit opened (in-memory), opened_count=%d",
                self._provider,
                state.opened_count,
            )

        return state.snapshot()

    async def prune(self, window_ms: int) -> int:
        now = self._clock()
        self._state.failures = [t for t in self._state.failures if now - t <= window_ms]
        return len(self._state.failures)

    async def get_state(self) -> BreakerState:
        return self._state.snapshot()

    async def health_check(self) -> bool:
        return True

    def set_open_until(self, open_until: int) -> None:
        """Override the open-until timestamp (manual close or reopen)."""
        self._state.open_until = open_until

    def reset(self) -> None:
        """Forget all failures and close the breaker."""
        self._state = _State()
