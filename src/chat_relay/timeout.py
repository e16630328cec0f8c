"""Deadline wrapper for provider calls."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from chat_relay.config import settings
from chat_relay.errors import AdapterTimeoutError

T = TypeVar("T")


def _discard_outcome(task: asyncio.Task) -> None:
    # Retrieve the late result so asyncio does not log it as unhandled
    if not task.cancelled():
        task.exception()


async def call_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_ms: int | None = None,
) -> T:
    """Race a provider call against a deadline.

    The outer call settles exactly once. If the deadline wins, the operation
    is cancelled and whatever it produces afterwards is discarded; it never
    reaches the caller. If the operation wins, the deadline is dropped.

    Args:
        operation: Zero-argument callable returning an awaitable
        timeout_ms: Deadline in milliseconds. Defaults to settings.

    Returns:
        The operation's result

    Raises:
        AdapterTimeoutError: If the deadline elapses first
        Exception: Whatever the operation raised, if it finished in time
    """
    timeout_ms = settings.adapter_timeout_ms if timeout_ms is None else timeout_ms
    task = asyncio.ensure_future(operation())

    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.add_done_callback(_discard_outcome)
    task.cancel()
    raise AdapterTimeoutError(f"adapter timeout after {timeout_ms}ms")
