"""Interactive terminal chat against the response router.

Usage:
    chat-relay               # full routing with the configured providers
    chat-relay --offline     # deterministic replies only, no network
"""

import argparse
import asyncio
import sys
from typing import TextIO

from chat_relay.api.dependencies import build_breaker_store
from chat_relay.config import settings
from chat_relay.services import ResponseRouter

EXIT_COMMANDS = frozenset({"exit", "quit"})


async def run_repl(
    router: ResponseRouter,
    offline: bool = False,
    stdin: TextIO = sys.stdin,
    stdout: TextIO = sys.stdout,
) -> int:
    """Read messages line by line and print the bot replies.

    Args:
        router: Router used to answer
        offline: Use the deterministic responder only
        stdin: Input stream
        stdout: Output stream

    Returns:
        Number of messages answered
    """
    answered = 0
    print("Type 'exit' to quit.\n", file=stdout)

    while True:
        print("You: ", end="", file=stdout, flush=True)
        line = await asyncio.to_thread(stdin.readline)
        if not line:
            break

        message = line.strip()
        if message.lower() in EXIT_COMMANDS:
            print("Exiting chat...", file=stdout)
            break
        if not message:
            continue

        if offline:
            reply = router.get_response(message)
        else:
            reply = await router.get_bot_response(message)
        print(f"Bot: {reply}\n", file=stdout)
        answered += 1

    return answered


async def _main(offline: bool) -> None:
    router = ResponseRouter.create(breaker_store=build_breaker_store(settings))
    try:
        await run_repl(router, offline=offline)
    finally:
        await router.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="chat-relay", description="Chat with the relay from the terminal.")
    parser.add_argument("--offline", action="store_true", help="deterministic replies only, no provider calls")
    args = parser.parse_args(argv)

    try:
        asyncio.run(_main(args.offline))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
