"""Orchestrator that resolves a backend per call and applies default options."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from backend.app.ai.errors import ProviderNotRegisteredError
from backend.app.ai.providers import (
    AnthropicProvider,
    LLMProvider,
    LocalProvider,
    OpenAIProvider,
)
from backend.app.config import PROVIDER_PREFERENCE, Settings
from backend.app.models.llm import (
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    MessageRole,
    ProviderType,
    StreamChunk,
    UsageStats,
)

logger = logging.getLogger(__name__)

OptionsInput = GenerationOptions | dict[str, Any] | None


class AiService:
    """Maps provider tags to backends and delegates calls to them.

    No retries or caching happen here; chains and the cache own those.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._providers: dict[ProviderType, LLMProvider] = {}
        self.default_provider = next(
            (p for p in PROVIDER_PREFERENCE if settings.is_configured(p)),
            ProviderType.openai,
        )
        self.default_model = settings.default_model_for(self.default_provider)
        logger.info(
            f"Default provider: {self.default_provider.value}, "
            f"Default model: {self.default_model}"
        )

    def register_provider(self, provider_type: ProviderType, provider: LLMProvider) -> None:
        """Associate a backend with a tag; the last registration wins."""
        self._providers[provider_type] = provider
        logger.info(f"Registered {provider_type.value} provider")

    def get_provider(self, provider_type: ProviderType | None = None) -> LLMProvider:
        """Resolve an explicit tag, or the default one.

        Raises:
            ProviderNotRegisteredError: nothing is registered under the tag.
        """
        resolved = provider_type or self.default_provider
        provider = self._providers.get(resolved)
        if provider is None:
            raise ProviderNotRegisteredError(resolved.value)
        return provider

    @property
    def registered_providers(self) -> list[ProviderType]:
        """Tags with a registered backend, in registration order."""
        return list(self._providers)

    def _resolve_options(
        self, options: OptionsInput, provider_type: ProviderType | None
    ) -> GenerationOptions:
        if isinstance(options, GenerationOptions):
            return options
        resolved = provider_type or self.default_provider
        if resolved is self.default_provider:
            model = self.default_model
        else:
            model = self.settings.default_model_for(resolved)
        return GenerationOptions(**{"model": model, **(options or {})})

    async def complete(
        self,
        prompt: str,
        options: OptionsInput = None,
        provider: ProviderType | None = None,
    ) -> CompletionResult:
        """Generate a completion from a single prompt."""
        backend = self.get_provider(provider)
        full_options = self._resolve_options(options, provider)
        logger.info(f"Generating completion with {backend.name} ({full_options.model})")
        return await backend.complete(prompt, full_options)

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        options: OptionsInput = None,
        provider: ProviderType | None = None,
    ) -> CompletionResult:
        """Generate a chat completion."""
        backend = self.get_provider(provider)
        full_options = self._resolve_options(options, provider)
        logger.info(
            f"Generating chat completion with {backend.name} "
            f"({full_options.model}), {len(messages)} messages"
        )
        return await backend.chat(messages, full_options)

    async def generate_json(
        self,
        messages: Sequence[ChatMessage],
        schema: dict[str, Any],
        options: OptionsInput = None,
        provider: ProviderType | None = None,
    ) -> Any:
        """Generate structured JSON output."""
        backend = self.get_provider(provider)
        full_options = self._resolve_options(options, provider)
        logger.info(f"Generating JSON with {backend.name} ({full_options.model})")
        return await backend.generate_json(messages, schema, full_options)

    def stream(
        self,
        messages: Sequence[ChatMessage],
        options: OptionsInput = None,
        provider: ProviderType | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Stream a chat completion from the resolved backend."""
        backend = self.get_provider(provider)
        full_options = self._resolve_options(options, provider)
        logger.info(f"Streaming with {backend.name} ({full_options.model})")
        return backend.stream(messages, full_options)

    @staticmethod
    def create_system_message(content: str) -> ChatMessage:
        return ChatMessage(role=MessageRole.system, content=content)

    @staticmethod
    def create_user_message(content: str) -> ChatMessage:
        return ChatMessage(role=MessageRole.user, content=content)

    @staticmethod
    def create_assistant_message(content: str) -> ChatMessage:
        return ChatMessage(role=MessageRole.assistant, content=content)

    def get_all_usage_stats(self) -> dict[ProviderType, UsageStats]:
        """Usage totals for every registered backend."""
        return {
            provider_type: provider.get_usage_stats()
            for provider_type, provider in self._providers.items()
        }

    def reset_all_usage_stats(self) -> None:
        """Zero usage totals on every registered backend."""
        for provider in self._providers.values():
            provider.reset_usage_stats()
        logger.info("All usage statistics reset")

    async def is_provider_available(self, provider_type: ProviderType) -> bool:
        """Probe one backend; unregistered tags are unavailable."""
        provider = self._providers.get(provider_type)
        if provider is None:
            return False
        return await provider.is_available()

    async def get_available_providers(self) -> list[ProviderType]:
        """Probe every registered backend concurrently."""
        items = list(self._providers.items())
        results = await asyncio.gather(
            *(provider.is_available() for _, provider in items)
        )
        return [
            provider_type
            for (provider_type, _), available in zip(items, results)
            if available
        ]

    def get_defaults(self) -> dict[str, str]:
        """Default provider tag and model."""
        return {"provider": self.default_provider.value, "model": self.default_model}


def build_ai_service(settings: Settings) -> AiService:
    """Create the orchestrator with one backend per configured credential."""
    service = AiService(settings)
    timeout = settings.llm_timeout_s

    if settings.openai_api_key:
        service.register_provider(
            ProviderType.openai,
            OpenAIProvider(settings.openai_api_key, timeout_s=timeout),
        )
    if settings.anthropic_api_key:
        service.register_provider(
            ProviderType.anthropic,
            AnthropicProvider(settings.anthropic_api_key, timeout_s=timeout),
        )
    if settings.local_llm_base_url:
        service.register_provider(
            ProviderType.local,
            LocalProvider(settings.local_llm_base_url, timeout_s=timeout),
        )

    if not service.registered_providers:
        logger.warning("No model backend configured; AI endpoints will return 503")
    return service
