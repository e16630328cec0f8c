#!/usr/bin/env python3
"""
Demo script for the chat relay.

This script drives the response router in-process with a flaky primary
provider, so the circuit breaker, the result cache and the deterministic
fallback can be watched without any API keys or Redis.
"""

import asyncio
import time

from chat_relay.entities import BreakerPolicy
from chat_relay.repositories import DisabledProvider, MemoryBreakerStore
from chat_relay.result_cache import ResultCache
from chat_relay.services import ResponseRouter


class FlakyProvider:
    """Fails the first ``failures`` calls, then echoes the message."""

    name = "flaky"
    model = "demo"

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    def is_available(self) -> bool:
        return True

    async def respond(self, message: str) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("simulated provider outage")
        return f"flaky says: {message}"

    async def close(self) -> None:
        return None


class EchoProvider(FlakyProvider):
    name = "echo"

    def __init__(self) -> None:
        super().__init__(failures=0)


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_breaker() -> None:
    """Trip the breaker, wait out the cooldown, and recover."""
    print_section("Circuit Breaker")

    primary = FlakyProvider(failures=2)
    store = MemoryBreakerStore(primary.name)
    router = ResponseRouter(
        breaker_store=store,
        task_provider=DisabledProvider("copilot"),
        primary_provider=primary,
        secondary_provider=DisabledProvider("huggingface"),
        default_provider=DisabledProvider("claude"),
        policy=BreakerPolicy(threshold=2, window_ms=10_000, cooldown_ms=1_000),
        use_primary=True,
    )

    for message in ["hello", "what is the weather", "anything else"]:
        reply = await router.get_bot_response(message)
        state = await store.get_state()
        print(f"\n  You: {message}")
        print(f"  Bot: {reply}")
        print(f"  Breaker: open={await store.is_open()} failures={state.failure_count} opened={state.opened_count}")
        print(f"  Provider calls so far: {primary.calls}")

    print("\n⏳ Waiting for the cooldown to pass...")
    await asyncio.sleep(1.1)

    reply = await router.get_bot_response("are you back?")
    print(f"\n  You: are you back?\n  Bot: {reply}")
    print(f"  Breaker: open={await store.is_open()}")


async def demo_cache() -> None:
    """Show the default tier answering a repeated message from the cache."""
    print_section("Result Cache")

    default = EchoProvider()
    router = ResponseRouter(
        breaker_store=MemoryBreakerStore("openai"),
        task_provider=DisabledProvider("copilot"),
        primary_provider=DisabledProvider("openai"),
        secondary_provider=DisabledProvider("huggingface"),
        default_provider=default,
        cache=ResultCache(ttl_ms=30_000),
    )

    for _ in range(3):
        start = time.time()
        reply = await router.get_bot_response("tell me a story")
        duration = (time.time() - start) * 1000
        print(f"\n  Bot: {reply} ({duration:.2f}ms, provider calls: {default.calls})")


async def main() -> None:
    """Run all demos."""
    print("\n🚀 Chat Relay Demo")
    print("=" * 70)

    await demo_breaker()
    await demo_cache()

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    asyncio.run(main())
