"""Uniform contract over text-generation backends, plus shared plumbing."""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from typing import Any, NoReturn, Protocol, runtime_checkable

from backend.app.ai.errors import MalformedOutputError, ProviderError
from backend.app.ai.providers.usage import PricingTable, UsageTracker
from backend.app.metrics.core import record_llm_call
from backend.app.models.llm import (
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    MessageRole,
    ProviderType,
    StreamChunk,
    UsageStats,
)

JSON_INSTRUCTION = "Respond with valid JSON only. Do not include any other text."


@runtime_checkable
class LLMProvider(Protocol):
    """Capability contract every backend satisfies."""

    provider_type: ProviderType

    @property
    def name(self) -> str:
        """Backend name used in logs and errors."""
        ...

    async def complete(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResult:
        """Single-turn completion."""
        ...

    async def chat(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> CompletionResult:
        """Multi-turn completion."""
        ...

    def stream(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        """Lazy, single-pass completion ending with a complete marker."""
        ...

    async def generate_json(
        self,
        messages: Sequence[ChatMessage],
        schema: dict[str, Any],
        options: GenerationOptions,
    ) -> Any:
        """Completion parsed as JSON."""
        ...

    async def is_available(self) -> bool:
        """Minimal round-trip health probe; never raises."""
        ...

    def get_usage_stats(self) -> UsageStats:
        """Current usage totals."""
        ...

    def reset_usage_stats(self) -> None:
        """Zero usage totals."""
        ...


def append_json_instruction(
    messages: Sequence[ChatMessage], schema: dict[str, Any] | None = None
) -> list[ChatMessage]:
    """Copy ``messages`` with a JSON-only instruction appended to the last one."""
    if not messages:
        raise ValueError("At least one message is required")

    instruction = JSON_INSTRUCTION
    if schema:
        instruction += (
            "\nThe JSON must conform to this JSON Schema:\n"
            + json.dumps(schema, ensure_ascii=False)
        )

    prepared = list(messages)
    last = prepared[-1]
    prepared[-1] = last.model_copy(
        update={"content": f"{last.content}\n\n{instruction}"}
    )
    return prepared


def split_system_messages(
    messages: Sequence[ChatMessage],
) -> tuple[str | None, list[ChatMessage]]:
    """Concatenate system messages, in order, into a single preamble.

    Returns the preamble (None when there are no system messages) and the
    remaining messages with their order preserved.
    """
    system_parts: list[str] = []
    rest: list[ChatMessage] = []
    for message in messages:
        if message.role is MessageRole.system:
            system_parts.append(message.content)
        else:
            rest.append(message)
    system = "\n\n".join(system_parts) if system_parts else None
    return system, rest


def parse_json_content(provider: str, content: str) -> Any:
    """Parse model text as JSON, tolerating a surrounding markdown fence."""
    text = content.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
        text = text.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(provider, content, str(e)) from e


class BaseProvider(ABC):
    """Shared request flow for concrete backends.

    Subclasses implement the raw backend calls (``_send``, ``_stream_raw``,
    ``_probe``); this class applies option defaults, logging, metrics, error
    wrapping and usage accounting.
    """

    provider_type: ProviderType

    def __init__(self, pricing: PricingTable) -> None:
        self._usage = UsageTracker(pricing)
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    def name(self) -> str:
        return self.provider_type.value

    # Backend hooks

    @abstractmethod
    async def _send(
        self,
        messages: Sequence[ChatMessage],
        options: GenerationOptions,
        json_mode: bool = False,
    ) -> CompletionResult:
        """Perform one non-streaming request and normalize the response."""

    @abstractmethod
    def _stream_raw(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        """Yield content deltas; may end with a complete marker carrying metadata."""

    @abstractmethod
    async def _probe(self) -> None:
        """Minimal request that raises if the backend is unusable."""

    # Contract

    async def complete(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResult:
        """Generate a completion from a single prompt."""
        messages = [ChatMessage(role=MessageRole.user, content=prompt)]
        return await self._request("complete", messages, options)

    async def chat(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> CompletionResult:
        """Generate a completion from a conversation."""
        return await self._request("chat", messages, options)

    async def generate_json(
        self,
        messages: Sequence[ChatMessage],
        schema: dict[str, Any],
        options: GenerationOptions,
    ) -> Any:
        """Generate structured JSON output.

        Raises:
            ProviderError: the backend call failed.
            MalformedOutputError: the backend answered with text that is not JSON.
        """
        prepared = append_json_instruction(messages, schema)
        result = await self._request("generate_json", prepared, options, json_mode=True)
        parsed = parse_json_content(self.name, result.content)
        self.logger.debug("JSON generated successfully")
        return parsed

    async def stream(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion.

        Always terminates with exactly one complete marker. Closing the
        iterator early closes the underlying backend stream.
        """
        resolved = options.with_defaults()
        self._log_request("stream", resolved.model, len(messages))
        started = time.monotonic()
        final_metadata: dict[str, Any] | None = None
        try:
            async with aclosing(self._stream_raw(messages, resolved)) as chunks:
                async for chunk in chunks:
                    if chunk.is_complete:
                        final_metadata = chunk.metadata
                        break
                    if chunk.content:
                        yield chunk
        except Exception as e:
            self._raise_provider_error(e, "stream", resolved.model, started)
        self.logger.debug("Stream completed")
        yield StreamChunk.complete_marker(final_metadata)

    async def is_available(self) -> bool:
        """Check whether the backend answers a minimal request."""
        try:
            await self._probe()
            return True
        except Exception as e:
            self.logger.warning(f"{self.name} availability check failed: {e}")
            return False

    def get_usage_stats(self) -> UsageStats:
        """Get current usage statistics."""
        return self._usage.snapshot()

    def reset_usage_stats(self) -> None:
        """Reset usage statistics."""
        self._usage.reset()
        self.logger.info("Usage statistics reset")

    # Internals

    async def _request(
        self,
        operation: str,
        messages: Sequence[ChatMessage],
        options: GenerationOptions,
        json_mode: bool = False,
    ) -> CompletionResult:
        resolved = options.with_defaults()
        self._log_request(operation, resolved.model, len(messages))
        started = time.monotonic()
        try:
            result = await self._send(messages, resolved, json_mode=json_mode)
        except Exception as e:
            self._raise_provider_error(e, operation, resolved.model, started)

        cost = self._usage.record(
            result.model, result.usage.prompt_tokens, result.usage.completion_tokens
        )
        record_llm_call(
            provider=self.name,
            operation=operation,
            model=result.model,
            latency_ms=_elapsed_ms(started),
            ok=True,
            tokens_in=result.usage.prompt_tokens,
            tokens_out=result.usage.completion_tokens,
            cost_usd=cost,
        )
        self.logger.debug(
            f"Response - Tokens: {result.usage.total_tokens}, "
            f"Finish: {result.finish_reason}, Cost: ${cost:.4f}"
        )
        return result

    def _log_request(self, operation: str, model: str, message_count: int) -> None:
        self.logger.info(
            f"{operation} request - Model: {model}, Messages: {message_count}"
        )

    def _raise_provider_error(
        self,
        error: Exception,
        operation: str,
        model: str,
        started: float | None,
    ) -> NoReturn:
        self.logger.error(f"{operation} failed: {error}", exc_info=error)
        if started is not None:
            record_llm_call(
                provider=self.name,
                operation=operation,
                model=model,
                latency_ms=_elapsed_ms(started),
                ok=False,
                error_kind=type(error).__name__,
            )
        if isinstance(error, ProviderError):
            raise error
        raise ProviderError(self.name, operation, str(error)) from error


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
