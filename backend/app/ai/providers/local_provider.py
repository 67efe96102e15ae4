"""Self-hosted backend speaking the Ollama chat API over HTTP."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from backend.app.ai.errors import ProviderConfigurationError
from backend.app.ai.providers.base import BaseProvider
from backend.app.ai.providers.usage import LOCAL_PRICING, PricingTable
from backend.app.models.llm import (
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    ProviderType,
    StreamChunk,
    TokenUsage,
)


class LocalProvider(BaseProvider):
    """Ollama-compatible backend (``/api/chat``, ``/api/tags``)."""

    provider_type = ProviderType.local

    def __init__(
        self,
        base_url: str,
        pricing: PricingTable = LOCAL_PRICING,
        timeout_s: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise ProviderConfigurationError("Local LLM base URL is required")
        super().__init__(pricing)
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout_s)
        self.logger.info(f"Local provider initialized at {self.base_url}")

    def _payload(
        self,
        messages: Sequence[ChatMessage],
        options: GenerationOptions,
        stream: bool,
        json_mode: bool = False,
    ) -> dict[str, Any]:
        model_options: dict[str, Any] = {
            "temperature": options.temperature,
            "num_predict": options.max_tokens,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
        }
        if options.stop:
            model_options["stop"] = list(options.stop)

        payload: dict[str, Any] = {
            "model": options.model,
            "messages": [
                {"role": m.role.value, "content": m.content} for m in messages
            ],
            "stream": stream,
            "options": model_options,
        }
        if json_mode:
            payload["format"] = "json"
        return payload

    async def _send(
        self,
        messages: Sequence[ChatMessage],
        options: GenerationOptions,
        json_mode: bool = False,
    ) -> CompletionResult:
        response = await self.client.post(
            f"{self.base_url}/api/chat",
            json=self._payload(messages, options, stream=False, json_mode=json_mode),
        )
        response.raise_for_status()
        data = response.json()

        prompt_tokens = int(data.get("prompt_eval_count") or 0)
        completion_tokens = int(data.get("eval_count") or 0)
        return CompletionResult(
            content=(data.get("message") or {}).get("content") or "",
            model=data.get("model") or options.model,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=data.get("done_reason") or "stop",
            metadata={"created_at": data.get("created_at")},
        )

    async def _stream_raw(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        final: dict[str, Any] = {}
        async with self.client.stream(
            "POST",
            f"{self.base_url}/api/chat",
            json=self._payload(messages, options, stream=True),
        ) as response:
            response.raise_for_status()
            # Newline-delimited JSON, one object per delta
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                data = json.loads(line)
                text = (data.get("message") or {}).get("content")
                if text:
                    yield StreamChunk(content=text, metadata={"model": options.model})
                if data.get("done"):
                    final = data
                    break
        yield StreamChunk.complete_marker(
            {
                "model": final.get("model") or options.model,
                "finish_reason": final.get("done_reason") or "stop",
            }
        )

    async def _probe(self) -> None:
        response = await self.client.get(f"{self.base_url}/api/tags")
        response.raise_for_status()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
