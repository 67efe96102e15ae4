"""Test doubles for model backends."""

import json
from collections.abc import AsyncIterator, Sequence
from typing import Any

from backend.app.ai.providers import OPENAI_PRICING, BaseProvider
from backend.app.models.llm import (
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    ProviderType,
    StreamChunk,
    TokenUsage,
)


class FakeProvider(BaseProvider):
    """Scripted backend: each queued response is returned (or raised) in turn.

    Dict and list responses are sent as JSON text; strings are sent verbatim.
    Every response reports 10 prompt and 5 completion tokens.
    """

    provider_type = ProviderType.openai

    def __init__(
        self,
        responses: Sequence[Any] = (),
        provider_type: ProviderType | None = None,
        available: bool = True,
        stream_chunks: Sequence[str] = (),
    ) -> None:
        if provider_type is not None:
            self.provider_type = provider_type
        super().__init__(OPENAI_PRICING)
        self.responses = list(responses)
        self.available = available
        self.stream_chunks = list(stream_chunks)
        self.calls: list[dict[str, Any]] = []

    async def _send(
        self,
        messages: Sequence[ChatMessage],
        options: GenerationOptions,
        json_mode: bool = False,
    ) -> CompletionResult:
        self.calls.append(
            {"messages": list(messages), "options": options, "json_mode": json_mode}
        )
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        content = item if isinstance(item, str) else json.dumps(item)
        return CompletionResult(
            content=content,
            model=options.model,
            usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
            finish_reason="stop",
        )

    async def _stream_raw(
        self, messages: Sequence[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        for text in self.stream_chunks:
            yield StreamChunk(content=text)
        yield StreamChunk.complete_marker({"finish_reason": "stop"})

    async def _probe(self) -> None:
        if not self.available:
            raise ConnectionError("backend unreachable")
