"""Anthropic backend using the official async SDK."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

from anthropic import AsyncAnthropic

from backend.app.ai.errors import ProviderConfigurationError
from backend.app.ai.providers.base import BaseProvider, split_system_messages
from backend.app.ai.providers.usage import ANTHROPIC_PRICING, PricingTable
from backend.app.models.llm import (
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    LLMModel,
    MessageRole,
    ProviderType,
    StreamChunk,
    TokenUsage,
)

PROBE_MODEL = LLMModel.claude_haiku.value
PROBE_MAX_TOKENS = 10


class AnthropicProvider(BaseProvider):
    """Messages API backend.

    System messages are lifted out of the conversation and sent as the
    separate ``system`` parameter; function messages have no counterpart in
    the Messages API and are dropped.
    """

    provider_type = ProviderType.anthropic

    def __init__(
        self,
        api_key: str,
        pricing: PricingTable = ANTHROPIC_PRICING,
        timeout_s: float = 60.0,
        client: AsyncAnthropic | None = None,
    ) -> None:
        if not api_key:
            raise ProviderConfigurationError("Anthropic API key is required")
        super().__init__(pricing)
        self.client = client or AsyncAnthropic(api_key=api_key, timeout=timeout_s)
        self.logger.info("Anthropic provider initialized")

    def _request_params(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> dict[str, Any]:
        system, rest = split_system_messages(messages)
        conversation = [
            {"role": m.role.value, "content": m.content}
            for m in rest
            if m.role in (MessageRole.user, MessageRole.assistant)
        ]
        if len(conversation) != len(rest):
            self.logger.debug(
                f"Dropped {len(rest) - len(conversation)} function message(s)"
            )

        params: dict[str, Any] = {
            "model": options.model,
            "messages": conversation,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
        }
        if system:
            params["system"] = system
        if options.stop:
            params["stop_sequences"] = list(options.stop)
        return params

    async def _send(
        self,
        messages: Sequence[ChatMessage],
        options: GenerationOptions,
        json_mode: bool = False,
    ) -> CompletionResult:
        # The Messages API has no JSON mode; the appended instruction carries it
        response = await self.client.messages.create(
            **self._request_params(messages, options)
        )

        content = "".join(
            block.text for block in response.content if block.type == "text"
        )
        prompt_tokens = response.usage.input_tokens
        completion_tokens = response.usage.output_tokens
        return CompletionResult(
            content=content,
            model=response.model,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=response.stop_reason or "unknown",
            metadata={"id": response.id, "type": response.type},
        )

    async def _stream_raw(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        params = self._request_params(messages, options)
        async with self.client.messages.stream(**params) as stream:
            async for text in stream.text_stream:
                if text:
                    yield StreamChunk(content=text, metadata={"model": options.model})
            final = await stream.get_final_message()
        yield StreamChunk.complete_marker(
            {
                "model": final.model,
                "finish_reason": final.stop_reason or "unknown",
                "usage": {
                    "input_tokens": final.usage.input_tokens,
                    "output_tokens": final.usage.output_tokens,
                },
            }
        )

    async def _probe(self) -> None:
        await self.client.messages.create(
            model=PROBE_MODEL,
            max_tokens=PROBE_MAX_TOKENS,
            messages=[{"role": "user", "content": "Hi"}],
        )
