"""Placeholder for a provider that is not configured."""

from chat_relay.errors import ProviderUnavailableError


class DisabledProvider:
    """Provider variant built when credentials are missing.

    Satisfies the ResponseProvider protocol. Calling it fails fast with
    ProviderUnavailableError, which the router treats like any other
    provider failure.
    """

    def __init__(self, name: str, model: str = "default", reason: str = "not configured") -> None:
        self._name = name
        self._model = model
        self._reason = reason

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return self._model

    @property
    def reason(self) -> str:
        return self._reason

    def is_available(self) -> bool:
        return False

    async def respond(self, message: str) -> str:
        raise ProviderUnavailableError(f"{self._name} adapter not available: {self._reason}", provider=self._name)

    async def close(self) -> None:
        return None
