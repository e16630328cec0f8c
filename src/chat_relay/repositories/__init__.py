"""Repository layer for data access.

This layer abstracts external dependencies (Redis, language-model APIs)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (memory → Redis, OpenAI → Claude, etc.)
- Unit testing with mock implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from chat_relay.protocols import BreakerStore, ResponseProvider

from .claude_provider import ClaudeProvider
from .copilot_provider import CopilotProvider
from .disabled_provider import DisabledProvider
from .http_provider import HTTPProvider
from .huggingface_provider import HuggingFaceProvider
from .memory_breaker_store import MemoryBreakerStore
from .openai_provider import OpenAIProvider
from .redis_breaker_store import RedisBreakerStore

__all__ = [
    "BreakerStore",
    "ResponseProvider",
    "MemoryBreakerStore",
    "RedisBreakerStore",
    "HTTPProvider",
    "OpenAIProvider",
    "HuggingFaceProvider",
    "ClaudeProvider",
    "CopilotProvider",
    "DisabledProvider",
]
