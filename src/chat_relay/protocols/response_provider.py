"""Response provider protocol.

Defines the interface for any language-model service that turns a user
message into a reply.

Implementations include:
- OpenAI chat completions (primary)
- Hugging Face inference API (secondary)
- Claude conversation endpoint (tertiary/default)
- Copilot task endpoint (task-class requests)
- A disabled variant for providers without credentials
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ResponseProvider(Protocol):
    """Protocol for reply-generating services."""

    @property
    def name(self) -> str:
        """Return the provider identity used in logs and metric labels."""
        ...

    @property
    def model(self) -> str:
        """Return the model identity used in metric labels."""
        ...

    def is_available(self) -> bool:
        """Check whether the provider was configured with credentials.

        Returns:
            True if calls can be attempted, False for a disabled provider
        """
        ...

    async def respond(self, message: str) -> str:
        """Generate a reply for a single message.

        Args:
            message: The user message

        Returns:
            The reply text

        Raises:
            AdapterError: If the provider fails after its own retries
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
