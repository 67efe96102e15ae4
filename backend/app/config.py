"""Application configuration and settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.app.models.llm import LLMModel, ProviderType

_BASE_DIR = Path(__file__).resolve().parents[2]
_ENV_FILE = _BASE_DIR / ".env"

# Fixed preference order used to pick the default backend
PROVIDER_PREFERENCE: tuple[ProviderType, ...] = (
    ProviderType.anthropic,
    ProviderType.openai,
    ProviderType.local,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore"
    )

    # Model backends
    openai_api_key: str | None = Field(
        default=None, description="OpenAI API key"
    )
    anthropic_api_key: str | None = Field(
        default=None, description="Anthropic API key"
    )
    local_llm_base_url: str | None = Field(
        default=None,
        description="Base URL of an Ollama-compatible server, e.g. http://localhost:11434",
    )
    openai_model_default: str = Field(
        default=LLMModel.gpt_4o_mini.value, description="Default OpenAI model"
    )
    anthropic_model_default: str = Field(
        default=LLMModel.claude_sonnet.value, description="Default Anthropic model"
    )
    local_model_default: str = Field(
        default=LLMModel.llama_3_8b.value, description="Default local model"
    )
    llm_timeout_s: float = Field(
        default=60.0, description="Request timeout for model backends in seconds"
    )

    # Cache
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    cache_enabled: bool = Field(
        default=True, description="Memoize chain results in Redis"
    )
    cache_ttl_intent_s: int = Field(
        default=300, description="TTL for memoized intents in seconds"
    )
    cache_ttl_itinerary_s: int = Field(
        default=86400, description="TTL for memoized itineraries in seconds"
    )

    # Prompts
    prompts_dir: Path | None = Field(
        default=None, description="Override for the bundled prompt template directory"
    )

    # Service
    log_level: str = Field(default="INFO", description="Root log level")
    ui_origin: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origin for UI",
    )

    @field_validator("openai_api_key", "anthropic_api_key", mode="after")
    @classmethod
    def _blank_key_is_unset(cls, value: str | None) -> str | None:
        """Treat blank and placeholder keys as missing."""
        if value is None:
            return None
        value = value.strip()
        if not value or value.startswith("dummy-"):
            return None
        return value

    @field_validator("log_level", mode="after")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    def credential_for(self, provider: ProviderType) -> str | None:
        """Return the credential (API key or base URL) for a backend, if set."""
        if provider is ProviderType.openai:
            return self.openai_api_key
        if provider is ProviderType.anthropic:
            return self.anthropic_api_key
        return self.local_llm_base_url

    def is_configured(self, provider: ProviderType) -> bool:
        """Whether the backend has the credential it needs."""
        return bool(self.credential_for(provider))

    def default_model_for(self, provider: ProviderType) -> str:
        """Default model tied to a backend."""
        if provider is ProviderType.openai:
            return self.openai_model_default
        if provider is ProviderType.anthropic:
            return self.anthropic_model_default
        return self.local_model_default


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
