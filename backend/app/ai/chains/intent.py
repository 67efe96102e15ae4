"""Extract travel intent and parameters from free-text queries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from backend.app.ai.chains.heuristics import (
    build_fallback_intent,
    detect_language,
    is_actionable,
    suggested_follow_ups,
)
from backend.app.ai.errors import MalformedOutputError
from backend.app.ai.prompts import PromptTemplateStore
from backend.app.ai.service import AiService
from backend.app.ai.validation import SchemaValidator
from backend.app.cache import Cache, CacheTTL, build_cache_key
from backend.app.models.common import Locale
from backend.app.models.intent import ExtractIntentRequest, IntentResult, IntentType
from backend.app.models.llm import ChatMessage

logger = logging.getLogger(__name__)

INTENT_TEMPERATURE = 0.3
INTENT_MAX_TOKENS = 1000

INTENT_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["type", "confidence", "locale", "parameters"],
    "properties": {
        "type": {"type": "string", "enum": [t.value for t in IntentType]},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        "locale": {"type": "string", "enum": ["en", "zh"]},
        "parameters": {"type": "object"},
    },
}


class IntentChain:
    """Classify a query and extract its slots, never failing on bad model output.

    Malformed or schema-invalid model output yields a deterministic
    ``general_query`` fallback; only backend failures propagate.
    """

    def __init__(
        self,
        ai_service: AiService,
        prompts: PromptTemplateStore,
        validator: SchemaValidator,
        cache: Cache | None = None,
        cache_ttl_seconds: int = CacheTTL.SHORT,
    ) -> None:
        self.ai_service = ai_service
        self.prompts = prompts
        self.validator = validator
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    def build_messages(
        self,
        query: str,
        locale: Locale,
        context: Sequence[ChatMessage] | None = None,
    ) -> list[ChatMessage]:
        """System preamble, intent instruction, prior context, then the query."""
        messages = [
            self.ai_service.create_system_message(self.prompts.get_template("system", locale)),
            self.ai_service.create_system_message(self.prompts.get_template("intent", locale)),
        ]
        if context:
            messages.extend(context)
        messages.append(self.ai_service.create_user_message(query))
        return messages

    async def extract(
        self,
        query: str,
        locale: Locale | None = None,
        context: Sequence[ChatMessage] | None = None,
    ) -> IntentResult:
        """Extract the intent of a single query.

        Raises:
            ProviderNotRegisteredError: no backend to call.
            ProviderError: the backend call failed.
        """
        resolved: Locale = locale or detect_language(query)
        logger.debug(f"Extracting intent from query (locale: {resolved}): {query!r}")

        cache_key = None
        if self.cache is not None:
            cache_key = build_cache_key(
                "intent",
                resolved,
                {
                    "query": " ".join(query.lower().split()),
                    "context": [m.to_wire() for m in context or []],
                },
            )
            cached = await self.cache.get(cache_key)
            if cached is not None:
                hit = self.validator.validate(cached, IntentResult)
                if hit.valid:
                    logger.debug("Intent served from cache")
                    return hit.data
                logger.warning(f"Discarding invalid cached intent {cache_key}")
                await self.cache.delete(cache_key)

        messages = self.build_messages(query, resolved, context)
        try:
            raw = await self.ai_service.generate_json(
                messages,
                INTENT_JSON_SCHEMA,
                {"temperature": INTENT_TEMPERATURE, "max_tokens": INTENT_MAX_TOKENS},
            )
        except MalformedOutputError as e:
            logger.warning(f"Intent output was not JSON: {e}")
            return self._fallback(query, resolved)

        result = self.validator.validate(raw, IntentResult)
        if not result.valid:
            errors = [e.model_dump() for e in result.errors or []]
            logger.warning(f"Intent validation failed: {errors}")
            return self._fallback(query, resolved)

        intent = result.data.model_copy(update={"detected_language": resolved})
        logger.info(
            f"Intent extracted: {intent.type.value} (confidence: {intent.confidence})"
        )

        if cache_key is not None:
            await self.cache.set(
                cache_key,
                intent.model_dump(mode="json", by_alias=True),
                self.cache_ttl_seconds,
            )
        return intent

    async def extract_batch(
        self, requests: Sequence[ExtractIntentRequest]
    ) -> list[IntentResult]:
        """Extract intents concurrently; output order matches input order."""
        logger.debug(f"Batch extracting {len(requests)} intents")
        return list(
            await asyncio.gather(
                *(self.extract(r.query, r.locale, r.context) for r in requests)
            )
        )

    def is_actionable(self, intent: IntentResult) -> bool:
        return is_actionable(intent)

    def get_suggested_follow_ups(self, intent: IntentResult) -> list[str]:
        return suggested_follow_ups(intent)

    def _fallback(self, query: str, locale: Locale) -> IntentResult:
        logger.warning("Using fallback intent for query")
        return build_fallback_intent(query, locale)
