"""Pytest configuration and fixtures for testing."""

import pytest

from backend.app.ai.prompts import PromptTemplateStore
from backend.app.ai.service import AiService
from backend.app.ai.validation import SchemaValidator
from backend.app.config import Settings
from backend.app.models.llm import ProviderType
from tests.unit.fakes import FakeProvider


@pytest.fixture
def test_settings() -> Settings:
    """Settings with only an OpenAI key, isolated from the environment."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        anthropic_api_key="",
        local_llm_base_url=None,
        cache_enabled=False,
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Registered as the default (OpenAI) backend by ``ai_service``."""
    return FakeProvider()


@pytest.fixture
def ai_service(test_settings: Settings, fake_provider: FakeProvider) -> AiService:
    service = AiService(test_settings)
    service.register_provider(ProviderType.openai, fake_provider)
    return service


@pytest.fixture
def prompt_store() -> PromptTemplateStore:
    """Store over the bundled templates."""
    return PromptTemplateStore()


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()
