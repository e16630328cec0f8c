"""Claude conversation provider (tertiary/default tier).

Posts the running conversation to ``CLAUDE_API_URL`` and reads the reply
from the ``reply`` field. Without a URL, :meth:`ClaudeProvider.create`
returns a disabled provider instead.
"""

import httpx

from chat_relay.config import Settings, settings
from chat_relay.errors import AdapterError
from chat_relay.protocols import ResponseProvider

from .disabled_provider import DisabledProvider
from .http_provider import HTTPProvider

EMPTY_REPLY = "Claude did not return a response"

Turn = dict[str, str]


class ClaudeProvider(HTTPProvider):
    """Claude implementation of ResponseProvider.

    The router treats every request independently, so :meth:`respond`
    starts from an empty history. Callers that keep their own history use
    :meth:`converse`.

    Example:
        ```python
        provider = ClaudeProvider.create()
        reply, history = await provider.converse("Hi!")
        reply, history = await provider.converse("Tell me more", history)
        ```
    """

    name = "claude"

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        model: str | None = None,
        retries: int = 2,
        backoff_base_ms: int = 250,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Claude provider.

        Args:
            api_url: Conversation endpoint.
            api_key: Bearer token, if the endpoint needs one.
            model: Model label for metrics. Defaults to settings.claude_model.
            retries: Retries after the first attempt.
            backoff_base_ms: Base backoff delay in milliseconds.
            client: Shared httpx client.
        """
        super().__init__(
            model=model or settings.claude_model,
            attempts=retries + 1,
            backoff_base_ms=backoff_base_ms,
            client=client,
        )
        self._api_url = api_url
        self._api_key = api_key

    @classmethod
    def create(cls, config: Settings | None = None) -> ResponseProvider:
        """Factory method returning a live or disabled provider."""
        config = config or settings
        if not config.claude_api_url:
            return DisabledProvider(cls.name, config.claude_model, "CLAUDE_API_URL not set")
        return cls(
            api_url=config.claude_api_url,
            api_key=config.claude_api_key,
            model=config.claude_model,
            retries=config.provider_retries,
        )

    async def _request(self, message: str) -> str:
        reply, _ = await self._exchange(message, [])
        return reply

    async def converse(self, message: str, history: list[Turn] | None = None) -> tuple[str, list[Turn]]:
        """Send a message with prior turns.

        Args:
            message: The new user message
            history: Earlier turns as ``{"role", "content"}`` dicts

        Returns:
            Tuple of (reply, history including the new user and assistant turns)
        """
        return await self._with_retries(self._exchange, message, list(history or []))

    async def _exchange(self, message: str, history: list[Turn]) -> tuple[str, list[Turn]]:
        conversation = [*history, {"role": "user", "content": message}]
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        data = await self._post_json(self._api_url, payload={"conversation": conversation}, headers=headers)

        reply = data.get("reply") if isinstance(data, dict) else None
        if reply is not None and not isinstance(reply, str):
            raise AdapterError(f"claude returned a non-string reply ({type(reply).__name__})", provider=self.name)
        reply = reply or EMPTY_REPLY
        conversation.append({"role": "assistant", "content": reply})
        return reply, conversation
