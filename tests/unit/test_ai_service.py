"""Tests for the orchestrator: default selection, dispatch and aggregation."""

import pytest

from backend.app.ai.errors import ProviderNotRegisteredError
from backend.app.ai.providers import AnthropicProvider, LocalProvider, OpenAIProvider
from backend.app.ai.service import AiService, build_ai_service
from backend.app.config import Settings
from backend.app.models.llm import GenerationOptions, MessageRole, ProviderType
from tests.unit.fakes import FakeProvider


def _settings(**overrides) -> Settings:
    values = {
        "_env_file": None,
        "openai_api_key": None,
        "anthropic_api_key": None,
        "local_llm_base_url": None,
        "cache_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def test_anthropic_preferred_when_configured() -> None:
    service = AiService(_settings(openai_api_key="sk-o", anthropic_api_key="sk-a"))
    assert service.get_defaults() == {
        "provider": "anthropic",
        "model": "claude-3-5-sonnet-20241022",
    }


def test_openai_default_when_only_openai_configured() -> None:
    service = AiService(_settings(openai_api_key="sk-o"))
    assert service.get_defaults() == {"provider": "openai", "model": "gpt-4o-mini"}


def test_local_default_when_only_local_configured() -> None:
    service = AiService(_settings(local_llm_base_url="http://localhost:11434"))
    assert service.default_provider is ProviderType.local
    assert service.default_model == "llama-3-8b"


def test_openai_default_when_nothing_configured() -> None:
    assert AiService(_settings()).default_provider is ProviderType.openai


def test_placeholder_keys_count_as_unset() -> None:
    settings = _settings(anthropic_api_key="dummy-key", openai_api_key="  ")
    assert not settings.is_configured(ProviderType.anthropic)
    assert not settings.is_configured(ProviderType.openai)


def test_get_provider_unregistered_raises(test_settings: Settings) -> None:
    service = AiService(test_settings)
    with pytest.raises(ProviderNotRegisteredError, match="Provider openai not registered"):
        service.get_provider()


def test_last_registration_wins(test_settings: Settings) -> None:
    service = AiService(test_settings)
    first, second = FakeProvider(), FakeProvider()
    service.register_provider(ProviderType.openai, first)
    service.register_provider(ProviderType.openai, second)
    assert service.get_provider(ProviderType.openai) is second


async def test_options_merged_over_default_model(
    ai_service: AiService, fake_provider: FakeProvider
) -> None:
    fake_provider.responses = ["a", "b"]

    await ai_service.complete("hi")
    await ai_service.complete("hi", {"temperature": 0.1, "model": "gpt-4o"})

    first, second = (call["options"] for call in fake_provider.calls)
    assert first.model == "gpt-4o-mini"
    assert first.temperature == 0.7
    assert second.model == "gpt-4o"
    assert second.temperature == 0.1


async def test_explicit_provider_gets_its_own_default_model(ai_service: AiService) -> None:
    local = FakeProvider(responses=["x"], provider_type=ProviderType.local)
    ai_service.register_provider(ProviderType.local, local)

    await ai_service.chat(
        [ai_service.create_user_message("hi")], provider=ProviderType.local
    )

    assert local.calls[0]["options"].model == "llama-3-8b"


async def test_generation_options_passed_through(
    ai_service: AiService, fake_provider: FakeProvider
) -> None:
    fake_provider.responses = [{"a": 1}]
    options = GenerationOptions(model="gpt-4o", max_tokens=5)

    data = await ai_service.generate_json(
        [ai_service.create_user_message("q")], {}, options
    )

    assert data == {"a": 1}
    assert fake_provider.calls[0]["options"].model == "gpt-4o"
    assert fake_provider.calls[0]["options"].max_tokens == 5


async def test_stream_delegates(ai_service: AiService, fake_provider: FakeProvider) -> None:
    fake_provider.stream_chunks = ["he", "llo"]
    chunks = [c async for c in ai_service.stream([ai_service.create_user_message("hi")])]
    assert "".join(c.content for c in chunks) == "hello"
    assert chunks[-1].is_complete


def test_message_helpers() -> None:
    assert AiService.create_system_message("s").role is MessageRole.system
    assert AiService.create_user_message("u").role is MessageRole.user
    assert AiService.create_assistant_message("a").role is MessageRole.assistant


async def test_usage_aggregated_and_reset(ai_service: AiService, fake_provider: FakeProvider) -> None:
    anthropic = FakeProvider(responses=["b"], provider_type=ProviderType.anthropic)
    ai_service.register_provider(ProviderType.anthropic, anthropic)
    fake_provider.responses = ["a"]

    await ai_service.complete("x")
    await ai_service.complete("y", provider=ProviderType.anthropic)

    stats = ai_service.get_all_usage_stats()
    assert set(stats) == {ProviderType.openai, ProviderType.anthropic}
    assert stats[ProviderType.openai].request_count == 1
    assert stats[ProviderType.anthropic].request_count == 1

    ai_service.reset_all_usage_stats()
    assert all(s.request_count == 0 for s in ai_service.get_all_usage_stats().values())


async def test_available_providers_subset(ai_service: AiService) -> None:
    ai_service.register_provider(
        ProviderType.anthropic,
        FakeProvider(provider_type=ProviderType.anthropic, available=False),
    )
    ai_service.register_provider(
        ProviderType.local, FakeProvider(provider_type=ProviderType.local)
    )

    available = await ai_service.get_available_providers()

    assert available == [ProviderType.openai, ProviderType.local]
    assert await ai_service.is_provider_available(ProviderType.anthropic) is False


async def test_unregistered_provider_unavailable(test_settings: Settings) -> None:
    service = AiService(test_settings)
    assert await service.is_provider_available(ProviderType.local) is False


def test_build_ai_service_registers_configured_backends() -> None:
    service = build_ai_service(
        _settings(
            openai_api_key="sk-o",
            anthropic_api_key="sk-a",
            local_llm_base_url="http://localhost:11434",
        )
    )

    assert service.registered_providers == [
        ProviderType.openai,
        ProviderType.anthropic,
        ProviderType.local,
    ]
    assert isinstance(service.get_provider(ProviderType.openai), OpenAIProvider)
    assert isinstance(service.get_provider(ProviderType.anthropic), AnthropicProvider)
    assert isinstance(service.get_provider(ProviderType.local), LocalProvider)


def test_build_ai_service_without_credentials() -> None:
    service = build_ai_service(_settings())
    assert service.registered_providers == []
