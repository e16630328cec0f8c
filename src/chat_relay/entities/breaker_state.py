"""Circuit breaker domain entities."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BreakerPolicy:
    """Thresholds that drive a circuit breaker.

    Attributes:
        threshold: Failures within the window that open the breaker
        window_ms: Sliding window used to count failures
        cooldown_ms: How long the breaker stays open once tripped
    """

    threshold: int = 5
    window_ms: int = 60_000
    cooldown_ms: int = 60_000


@dataclass(frozen=True)
class BreakerState:
    """Snapshot of one provider's breaker.

    Attributes:
        failures: Failure timestamps (ms) inside the sliding window, oldest first
        open_until: Timestamp (ms) until which the breaker is open, 0 when closed
        opened_count: Number of transitions into the open state
    """

    failures: tuple[int, ...] = field(default_factory=tuple)
    open_until: int = 0
    opened_count: int = 0

    def is_open(self, now: int) -> bool:
        return now < self.open_until

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def opened_at(self, cooldown_ms: int) -> int:
        """Return the timestamp (ms) the breaker last opened, 0 if never."""
        if not self.opened_count:
            return 0
        return self.open_until - cooldown_ms
