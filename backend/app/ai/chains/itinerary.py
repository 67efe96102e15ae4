"""Generate day-by-day itineraries and score them."""

from __future__ import annotations

import logging
from typing import Any

from backend.app.ai.chains.heuristics import (
    compute_statistics,
    estimate_quality,
    post_process,
)
from backend.app.ai.errors import InvalidDateRangeError, InvalidItineraryResponseError
from backend.app.ai.prompts import PromptTemplateStore
from backend.app.ai.service import AiService
from backend.app.ai.validation import SchemaValidator
from backend.app.cache import Cache, CacheTTL, build_cache_key
from backend.app.models.common import Locale
from backend.app.models.itinerary import (
    GeneratedItinerary,
    GenerateItineraryRequest,
    ItineraryStatistics,
)
from backend.app.models.llm import ChatMessage

logger = logging.getLogger(__name__)

ITINERARY_TEMPERATURE = 0.7
ITINERARY_MAX_TOKENS = 4000

ITINERARY_JSON_SCHEMA: dict[str, Any] = GeneratedItinerary.model_json_schema(by_alias=True)

BUDGET_LABELS_ZH = {"low": "经济", "medium": "中等", "high": "高端"}
PACE_LABELS_ZH = {"relaxed": "轻松", "moderate": "适中", "fast": "紧凑"}


def trip_span_days(request: GenerateItineraryRequest) -> int:
    """Inclusive number of calendar days between start and end date."""
    return (request.end_date - request.start_date).days + 1


def build_context_block(
    request: GenerateItineraryRequest, locale: Locale, days: int
) -> str:
    """One line per populated request field, in the request's locale."""
    prefs = request.preferences
    start = request.start_date.isoformat()
    end = request.end_date.isoformat()
    lines: list[str] = []

    if locale == "zh":
        lines.append(f"为{request.destination}创建{days}天的行程。")
        lines.append(f"旅行日期：{start}至{end}")
        if request.travelers:
            lines.append(f"旅行者人数：{request.travelers}")
        if prefs:
            if prefs.interests:
                lines.append(f"兴趣：{'、'.join(prefs.interests)}")
            if prefs.budget:
                lines.append(f"预算水平：{BUDGET_LABELS_ZH[prefs.budget]}")
            if prefs.pace:
                lines.append(f"节奏：{PACE_LABELS_ZH[prefs.pace]}")
            if prefs.accommodation:
                lines.append(f"住宿偏好：{prefs.accommodation}")
            if prefs.transportation:
                lines.append(f"交通方式：{prefs.transportation}")
        if request.specific_requests:
            lines.append(f"特殊要求：{request.specific_requests}")
        return "\n".join(lines)

    lines.append(f"Create a {days}-day itinerary for {request.destination}.")
    lines.append(f"Travel dates: {start} to {end}")
    if request.travelers:
        lines.append(f"Number of travelers: {request.travelers}")
    if prefs:
        if prefs.interests:
            lines.append(f"Interests: {', '.join(prefs.interests)}")
        if prefs.budget:
            lines.append(f"Budget level: {prefs.budget}")
        if prefs.pace:
            lines.append(f"Preferred pace: {prefs.pace}")
        if prefs.accommodation:
            lines.append(f"Accommodation preference: {prefs.accommodation}")
        if prefs.transportation:
            lines.append(f"Transportation: {prefs.transportation}")
    if request.specific_requests:
        lines.append(f"Specific requests: {request.specific_requests}")
    return "\n".join(lines)


class ItineraryChain:
    """Generate a validated, post-processed itinerary.

    Unlike intent extraction there is no safe default itinerary, so schema
    failures are raised to the caller.
    """

    def __init__(
        self,
        ai_service: AiService,
        prompts: PromptTemplateStore,
        validator: SchemaValidator,
        cache: Cache | None = None,
        cache_ttl_seconds: int = CacheTTL.LONG,
    ) -> None:
        self.ai_service = ai_service
        self.prompts = prompts
        self.validator = validator
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    async def generate(self, request: GenerateItineraryRequest) -> GeneratedItinerary:
        """Generate an itinerary for the request.

        Raises:
            InvalidDateRangeError: end date is not after start date.
            InvalidItineraryResponseError: model output failed validation.
            MalformedOutputError: model output was not JSON.
            ProviderNotRegisteredError: no backend to call.
            ProviderError: the backend call failed.
        """
        locale: Locale = request.locale or "en"
        logger.debug(
            f"Generating itinerary for {request.destination}, {request.days} days "
            f"({request.start_date} to {request.end_date})"
        )

        if request.start_date >= request.end_date:
            logger.warning(
                f"Rejected date range {request.start_date} to {request.end_date}"
            )
            raise InvalidDateRangeError()

        days = trip_span_days(request)
        if days != request.days:
            logger.warning(
                f"Days mismatch: specified {request.days} but date range is "
                f"{days} days. Using date range."
            )

        if self.cache is None:
            return await self._generate(request, locale, days)

        cache_key = build_cache_key(
            "itinerary", locale, request.model_dump(mode="json", by_alias=True)
        )

        cached = await self.cache.get(cache_key)
        if cached is not None:
            hit = self.validator.validate(cached, GeneratedItinerary)
            if hit.valid:
                logger.debug("Itinerary served from cache")
                return hit.data
            logger.warning(f"Discarding invalid cached itinerary {cache_key}")
            await self.cache.delete(cache_key)

        itinerary = await self._generate(request, locale, days)
        await self.cache.set(
            cache_key,
            itinerary.model_dump(mode="json", by_alias=True),
            self.cache_ttl_seconds,
        )
        return itinerary

    async def _generate(
        self, request: GenerateItineraryRequest, locale: Locale, days: int
    ) -> GeneratedItinerary:
        messages: list[ChatMessage] = [
            self.ai_service.create_system_message(self.prompts.get_template("system", locale)),
            self.ai_service.create_system_message(self.prompts.get_template("itinerary", locale)),
            self.ai_service.create_user_message(build_context_block(request, locale, days)),
        ]
        raw = await self.ai_service.generate_json(
            messages,
            ITINERARY_JSON_SCHEMA,
            {"temperature": ITINERARY_TEMPERATURE, "max_tokens": ITINERARY_MAX_TOKENS},
        )

        result = self.validator.validate(raw, GeneratedItinerary)
        if not result.valid:
            errors = result.errors or []
            logger.warning(
                f"Itinerary validation failed: {[e.model_dump() for e in errors]}"
            )
            raise InvalidItineraryResponseError(errors)

        itinerary = post_process(result.data)
        logger.info(
            f"Itinerary generated: {len(itinerary.days)} days, "
            f"{itinerary.activity_count} activities"
        )
        return itinerary

    def estimate_quality(self, itinerary: GeneratedItinerary) -> int:
        """Heuristic quality score in [0, 100]."""
        return estimate_quality(itinerary)

    def get_statistics(self, itinerary: GeneratedItinerary) -> ItineraryStatistics:
        """Totals and per-day averages."""
        return compute_statistics(itinerary)
