import os
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (presence of REDIS_URL selects the shared breaker store)
    redis_url: str | None = os.getenv("REDIS_URL")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    redis_cb_prefix: str = os.getenv("REDIS_CB_PREFIX", "midlevel:openai_cb")

    # Provider tiers
    use_openai: bool = _env_flag("USE_OPENAI")
    use_huggingface: bool = _env_flag("USE_HUGGINGFACE")

    # Circuit breaker (primary provider)
    breaker_threshold: int = int(os.getenv("OPENAI_CB_THRESHOLD", "5"))
    breaker_window_ms: int = int(os.getenv("OPENAI_CB_WINDOW_MS", "60000"))
    breaker_cooldown_ms: int = int(os.getenv("OPENAI_CB_COOLDOWN_MS", "60000"))

    # Adapters
    adapter_timeout_ms: int = int(os.getenv("ADAPTER_TIMEOUT_MS", "5000"))
    provider_retries: int = int(os.getenv("PROVIDER_RETRIES", "2"))

    # Result cache
    cache_ttl_ms: int = int(os.getenv("BOT_RESPONSE_CACHE_TTL_MS", "30000"))  # 30s default
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "1000"))

    # OpenAI (primary)
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")

    # Hugging Face (secondary)
    huggingface_api_key: str | None = os.getenv("HUGGINGFACE_API_KEY")
    huggingface_model: str = os.getenv("HUGGINGFACE_MODEL", "facebook/blenderbot-400M-distill")
    huggingface_retries: int = int(os.getenv("HUGGINGFACE_RETRIES", "2"))

    # Claude (tertiary/default)
    claude_api_url: str | None = os.getenv("CLAUDE_API_URL")
    claude_api_key: str | None = os.getenv("CLAUDE_API_KEY")
    claude_model: str = os.getenv("CLAUDE_MODEL", "default")

    # Copilot (task-class)
    copilot_api_url: str | None = os.getenv("COPILOT_API_URL")
    copilot_api_key: str | None = os.getenv("COPILOT_API_KEY")
    copilot_model: str = os.getenv("COPILOT_MODEL", "default")

    # API
    max_message_length: int = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "3000"))
    api_reload: bool = _env_flag("API_RELOAD")

    @property
    def uses_shared_breaker(self) -> bool:
        """Check if the breaker state should live in redis.

        Returns:
            True if a redis connection string is configured, False otherwise
        """
        return bool(self.redis_url)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        for name in ("breaker_threshold", "breaker_window_ms", "breaker_cooldown_ms", "adapter_timeout_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be a positive integer, got {getattr(self, name)}")

        if self.cache_ttl_ms < 0:
            raise ValueError(f"BOT_RESPONSE_CACHE_TTL_MS must not be negative, got {self.cache_ttl_ms}")

        if self.cache_max_entries < 0:
            raise ValueError(f"CACHE_MAX_ENTRIES must not be negative, got {self.cache_max_entries}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client(config: Settings | None = None) -> redis.Redis:
    """Create an asyncio Redis client instance.

    The client connects lazily, so this never touches the network.
    """
    config = config or settings
    return redis.from_url(
        config.redis_url,
        password=config.redis_password,
        decode_responses=True,
    )
