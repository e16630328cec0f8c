"""OpenAI chat completions provider (primary tier).

Requires ``OPENAI_API_KEY``. Without it, :meth:`OpenAIProvider.create`
returns a disabled provider instead.
"""

import json
from typing import Any

import httpx

from chat_relay.config import Settings, settings
from chat_relay.protocols import ResponseProvider

from .disabled_provider import DisabledProvider
from .http_provider import HTTPProvider


class OpenAIProvider(HTTPProvider):
    """OpenAI implementation of ResponseProvider.

    Example:
        ```python
        provider = OpenAIProvider.create()
        reply = await provider.respond("Hello!")
        ```
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 256,
        temperature: float = 0.7,
        retries: int = 2,
        backoff_base_ms: int = 250,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the OpenAI provider.

        Args:
            api_key: OpenAI API key.
            model: Chat model. Defaults to settings.openai_model.
            base_url: API base URL. Defaults to settings.openai_base_url.
            max_tokens: Completion token limit.
            temperature: Sampling temperature.
            retries: Retries after the first attempt.
            backoff_base_ms: Base backoff delay in milliseconds.
            client: Shared httpx client.
        """
        super().__init__(
            model=model or settings.openai_model,
            attempts=retries + 1,
            backoff_base_ms=backoff_base_ms,
            client=client,
        )
        self._api_key = api_key
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._max_tokens = max_tokens
        self._temperature = temperature

    @classmethod
    def create(cls, config: Settings | None = None) -> ResponseProvider:
        """Factory method returning a live or disabled provider.

        Args:
            config: Settings to read credentials from. Defaults to settings.

        Returns:
            OpenAIProvider when an API key is configured, DisabledProvider otherwise
        """
        config = config or settings
        if not config.openai_api_key:
            return DisabledProvider(cls.name, config.openai_model, "OPENAI_API_KEY not set")
        return cls(
            api_key=config.openai_api_key,
            model=config.openai_model,
            base_url=config.openai_base_url,
            retries=config.provider_retries,
        )

    async def _request(self, message: str) -> str:
        data = await self._post_json(
            f"{self._base_url}/chat/completions",
            payload={
                "model": self._model,
                "messages": [{"role": "user", "content": message}],
                "max_tokens": self._max_tokens,
                "temperature": self._temperature,
            },
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        return parse_completion(data)


def parse_completion(data: Any) -> str:
    """Extract the assistant message from a chat completion body.

    Falls back to the raw JSON when the expected shape is missing.
    """
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content:
        return json.dumps(data)
    return content.strip()
