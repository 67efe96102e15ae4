"""OpenAI backend using the official async SDK."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

from openai import AsyncOpenAI

from backend.app.ai.errors import ProviderConfigurationError
from backend.app.ai.providers.base import BaseProvider
from backend.app.ai.providers.usage import OPENAI_PRICING, PricingTable
from backend.app.models.llm import (
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    ProviderType,
    StreamChunk,
    TokenUsage,
)


class OpenAIProvider(BaseProvider):
    """Chat Completions API backend."""

    provider_type = ProviderType.openai

    def __init__(
        self,
        api_key: str,
        pricing: PricingTable = OPENAI_PRICING,
        timeout_s: float = 60.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if not api_key:
            raise ProviderConfigurationError("OpenAI API key is required")
        super().__init__(pricing)
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout_s)
        self.logger.info("OpenAI provider initialized")

    def _request_params(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> dict[str, Any]:
        return {
            "model": options.model,
            "messages": [message.to_wire() for message in messages],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
            "stop": list(options.stop) if options.stop else None,
        }

    async def _send(
        self,
        messages: Sequence[ChatMessage],
        options: GenerationOptions,
        json_mode: bool = False,
    ) -> CompletionResult:
        params = self._request_params(messages, options)
        if json_mode:
            params["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(**params)

        choice = response.choices[0] if response.choices else None
        usage = response.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0
        return CompletionResult(
            content=(choice.message.content if choice else None) or "",
            model=response.model,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=usage.total_tokens if usage else prompt_tokens + completion_tokens,
            ),
            finish_reason=(choice.finish_reason if choice else None) or "unknown",
            metadata={
                "id": response.id,
                "created": response.created,
                "system_fingerprint": response.system_fingerprint,
            },
        )

    async def _stream_raw(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        params = self._request_params(messages, options)
        stream = await self.client.chat.completions.create(**params, stream=True)
        finish_reason: str | None = None
        model = options.model
        try:
            async for chunk in stream:
                model = chunk.model or model
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
                delta = choice.delta.content if choice.delta else None
                if delta:
                    yield StreamChunk(content=delta, metadata={"model": model})
        finally:
            await stream.close()
        yield StreamChunk.complete_marker(
            {"model": model, "finish_reason": finish_reason or "unknown"}
        )

    async def _probe(self) -> None:
        # Listing models is free and exercises auth
        await self.client.models.list()
