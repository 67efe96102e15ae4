"""Integration tests for /healthz endpoint."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from backend.app.ai.chains import IntentChain, ItineraryChain
from backend.app.ai.prompts import PromptTemplateStore
from backend.app.ai.service import AiService
from backend.app.ai.validation import SchemaValidator
from backend.app.api.ai import AIContainer, get_ai_container
from backend.app.cache import RedisCache
from backend.app.config import Settings
from backend.app.main import app
from backend.app.models.llm import ProviderType
from tests.unit.fakes import FakeProvider


def _container(settings: Settings, providers: bool, cache: RedisCache | None) -> AIContainer:
    service = AiService(settings)
    if providers:
        service.register_provider(ProviderType.openai, FakeProvider())
    prompts, validator = PromptTemplateStore(), SchemaValidator()
    return AIContainer(
        service=service,
        intent_chain=IntentChain(service, prompts, validator),
        itinerary_chain=ItineraryChain(service, prompts, validator),
        cache=cache,
    )


@pytest.fixture
def healthz(test_settings: Settings):
    """Call /healthz against a container built from the given parts."""

    def _call(providers: bool = True, redis_up: bool | None = None):
        cache = None
        if redis_up is not None:
            client = AsyncMock()
            client.ping.return_value = redis_up
            cache = RedisCache(client)
        container = _container(test_settings, providers, cache)
        app.dependency_overrides[get_ai_container] = lambda: container
        try:
            return TestClient(app).get("/healthz")
        finally:
            app.dependency_overrides.clear()

    return _call


def test_healthz_ok_without_cache(healthz) -> None:
    """Test health check when a backend is registered and caching is off."""
    response = healthz()

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "checks": {"providers": "ok"}}


def test_healthz_checks_redis(healthz) -> None:
    """Test health check includes Redis when caching is on."""
    response = healthz(redis_up=True)

    assert response.status_code == 200
    assert response.json()["checks"] == {"redis": "ok", "providers": "ok"}


def test_healthz_redis_down(healthz) -> None:
    """Test health check returns 503 when Redis does not answer."""
    response = healthz(redis_up=False)

    assert response.status_code == 503
    assert response.json()["status"] == "down"
    assert response.json()["checks"]["redis"] == "down"


def test_healthz_no_providers(healthz) -> None:
    """Test health check returns 503 when no backend is configured."""
    response = healthz(providers=False)

    assert response.status_code == 503
    assert response.json()["checks"]["providers"] == "down"
