"""Model-backend value objects: messages, options, completions and usage."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TOP_P = 1.0


class ProviderType(str, Enum):
    """Closed set of backend kinds the orchestrator can dispatch to."""

    openai = "openai"
    anthropic = "anthropic"
    local = "local"


class LLMModel(str, Enum):
    """Known model identifiers."""

    # OpenAI
    gpt_4o = "gpt-4o"
    gpt_4o_mini = "gpt-4o-mini"
    gpt_4_turbo = "gpt-4-turbo-preview"

    # Anthropic
    claude_opus = "claude-3-opus-20240229"
    claude_sonnet = "claude-3-5-sonnet-20241022"
    claude_haiku = "claude-3-5-haiku-20241022"

    # Local
    mistral_7b = "mistral-7b"
    mixtral_8x7b = "mixtral-8x7b"
    llama_3_8b = "llama-3-8b"


class MessageRole(str, Enum):
    """Chat message role."""

    system = "system"
    user = "user"
    assistant = "assistant"
    function = "function"


class ChatMessage(BaseModel):
    """Single message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole = Field(description="Message role")
    content: str = Field(description="Message content")
    name: str | None = Field(default=None, description="Optional author name")

    def to_wire(self) -> dict[str, Any]:
        """Render as a plain role/content mapping for HTTP backends."""
        payload: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.name:
            payload["name"] = self.name
        return payload


class GenerationOptions(BaseModel):
    """Options for a single generation call.

    Unset fields are filled by ``with_defaults`` before dispatch.
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(description="Model identifier")
    temperature: float | None = Field(default=None, ge=0, le=2)
    max_tokens: int | None = Field(default=None, ge=1)
    top_p: float | None = Field(default=None, ge=0, le=1)
    frequency_penalty: float | None = Field(default=None)
    presence_penalty: float | None = Field(default=None)
    stop: tuple[str, ...] | None = Field(default=None)
    stream: bool | None = Field(default=None)

    def with_defaults(self) -> GenerationOptions:
        """Return a copy with provider-level defaults filled in."""
        return GenerationOptions(
            model=self.model,
            temperature=DEFAULT_TEMPERATURE if self.temperature is None else self.temperature,
            max_tokens=DEFAULT_MAX_TOKENS if self.max_tokens is None else self.max_tokens,
            top_p=DEFAULT_TOP_P if self.top_p is None else self.top_p,
            frequency_penalty=self.frequency_penalty or 0.0,
            presence_penalty=self.presence_penalty or 0.0,
            stop=self.stop or (),
            stream=bool(self.stream),
        )


class TokenUsage(BaseModel):
    """Token counts reported by a backend for one call."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionResult(BaseModel):
    """Normalized non-streaming completion."""

    model_config = ConfigDict(frozen=True)

    content: str
    model: str
    usage: TokenUsage
    finish_reason: str
    metadata: dict[str, Any] | None = None


class StreamChunk(BaseModel):
    """One element of a streamed completion."""

    model_config = ConfigDict(frozen=True)

    content: str
    is_complete: bool = False
    metadata: dict[str, Any] | None = None

    @classmethod
    def complete_marker(cls, metadata: dict[str, Any] | None = None) -> StreamChunk:
        """Terminal element signalling normal end of stream."""
        return cls(content="", is_complete=True, metadata=metadata)


class UsageStats(BaseModel):
    """Running usage totals for one provider instance."""

    model_config = ConfigDict(frozen=True)

    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_cost: float = 0.0
    request_count: int = 0
