"""HTTP endpoints over the intent and itinerary chains."""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.app.ai.chains import IntentChain, ItineraryChain
from backend.app.ai.errors import (
    AIError,
    InvalidDateRangeError,
    MalformedOutputError,
    ProviderConfigurationError,
    ProviderError,
    ProviderNotRegisteredError,
    SchemaValidationError,
)
from backend.app.ai.prompts import get_prompt_store
from backend.app.ai.service import AiService, build_ai_service
from backend.app.ai.validation import SchemaValidator
from backend.app.cache import RedisCache
from backend.app.config import Settings, get_settings
from backend.app.models.common import CamelModel
from backend.app.models.intent import ExtractIntentRequest, IntentResult
from backend.app.models.itinerary import (
    GeneratedItinerary,
    GenerateItineraryRequest,
    ItineraryStatistics,
)
from backend.app.models.llm import UsageStats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@dataclass
class AIContainer:
    """Long-lived orchestration objects shared by all requests."""

    service: AiService
    intent_chain: IntentChain
    itinerary_chain: ItineraryChain
    cache: RedisCache | None = None


def build_container(settings: Settings) -> AIContainer:
    """Wire the orchestrator, prompt store, cache and chains from settings."""
    service = build_ai_service(settings)
    prompts = get_prompt_store(settings.prompts_dir)
    validator = SchemaValidator()
    cache = RedisCache.from_url(settings.redis_url) if settings.cache_enabled else None
    return AIContainer(
        service=service,
        intent_chain=IntentChain(
            service, prompts, validator, cache, settings.cache_ttl_intent_s
        ),
        itinerary_chain=ItineraryChain(
            service, prompts, validator, cache, settings.cache_ttl_itinerary_s
        ),
        cache=cache,
    )


_container: AIContainer | None = None


def get_ai_container() -> AIContainer:
    """Dependency returning the process-wide container."""
    global _container
    if _container is None:
        _container = build_container(get_settings())
    return _container


class IntentResponse(CamelModel):
    """Extracted intent plus next-step hints."""

    intent: IntentResult
    actionable: bool
    follow_ups: list[str]


class BatchIntentRequest(CamelModel):
    """Several independent queries."""

    requests: list[ExtractIntentRequest] = Field(min_length=1, max_length=20)


class ItineraryResponse(CamelModel):
    """Generated itinerary with its heuristic assessment."""

    itinerary: GeneratedItinerary
    quality: int
    statistics: ItineraryStatistics


class ProvidersResponse(BaseModel):
    """Registered and reachable backends."""

    registered: list[str]
    available: list[str]
    defaults: dict[str, str]


def _http_error(exc: AIError) -> HTTPException:
    """Map an orchestration error onto an HTTP status and JSON detail."""
    if isinstance(exc, InvalidDateRangeError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (ProviderNotRegisteredError, ProviderConfigurationError)):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, (ProviderError, MalformedOutputError, SchemaValidationError)):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    detail: dict[str, Any] = {"error": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, SchemaValidationError):
        detail["errors"] = [e.model_dump() for e in exc.errors]
    if code >= 500:
        logger.error(f"AI request failed: {exc}")
    return HTTPException(status_code=code, detail=detail)


@router.post("/intent", response_model=IntentResponse)
async def extract_intent(
    request: ExtractIntentRequest,
    container: AIContainer = Depends(get_ai_container),
) -> IntentResponse:
    """Classify a query and extract its parameters."""
    chain = container.intent_chain
    try:
        intent = await chain.extract(request.query, request.locale, request.context)
    except AIError as e:
        raise _http_error(e) from e
    return IntentResponse(
        intent=intent,
        actionable=chain.is_actionable(intent),
        follow_ups=chain.get_suggested_follow_ups(intent),
    )


@router.post("/intent/batch", response_model=list[IntentResult])
async def extract_intent_batch(
    request: BatchIntentRequest,
    container: AIContainer = Depends(get_ai_container),
) -> list[IntentResult]:
    """Extract intents for several queries; order matches the input."""
    try:
        return await container.intent_chain.extract_batch(request.requests)
    except AIError as e:
        raise _http_error(e) from e


@router.post("/itinerary", response_model=ItineraryResponse)
async def generate_itinerary(
    request: GenerateItineraryRequest,
    container: AIContainer = Depends(get_ai_container),
) -> ItineraryResponse:
    """Generate a day-by-day itinerary with quality score and statistics."""
    chain = container.itinerary_chain
    try:
        itinerary = await chain.generate(request)
    except AIError as e:
        raise _http_error(e) from e
    return ItineraryResponse(
        itinerary=itinerary,
        quality=chain.estimate_quality(itinerary),
        statistics=chain.get_statistics(itinerary),
    )


@router.get("/usage", response_model=dict[str, UsageStats])
async def get_usage(
    container: AIContainer = Depends(get_ai_container),
) -> dict[str, UsageStats]:
    """Usage totals per registered backend."""
    return {
        provider_type.value: stats
        for provider_type, stats in container.service.get_all_usage_stats().items()
    }


@router.post("/usage/reset")
async def reset_usage(
    container: AIContainer = Depends(get_ai_container),
) -> dict[str, str]:
    """Zero usage totals on every backend."""
    container.service.reset_all_usage_stats()
    return {"status": "reset"}


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(
    container: AIContainer = Depends(get_ai_container),
) -> ProvidersResponse:
    """Registered backends, those answering a probe, and the defaults."""
    service = container.service
    available = await service.get_available_providers()
    return ProvidersResponse(
        registered=[p.value for p in service.registered_providers],
        available=[p.value for p in available],
        defaults=service.get_defaults(),
    )
