"""Intent models extracted from free-text user queries."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from .common import CamelModel, Locale
from .llm import ChatMessage


class IntentType(str, Enum):
    """Closed set of intents the chatbot can act on."""

    create_itinerary = "create_itinerary"
    compare_prices = "compare_prices"
    recommend_restaurant = "recommend_restaurant"
    recommend_rental = "recommend_rental"
    check_weather = "check_weather"
    check_traffic = "check_traffic"
    general_query = "general_query"
    greeting = "greeting"
    help = "help"


class IntentResult(CamelModel):
    """Structured classification of a user query plus extracted slots."""

    model_config = ConfigDict(frozen=True)

    type: IntentType = Field(description="Classified intent")
    confidence: float = Field(ge=0, le=1, description="Model confidence in [0, 1]")
    locale: Locale = Field(description="Locale the query was written in")
    parameters: dict[str, Any] = Field(description="Extracted slots")
    detected_language: str | None = Field(
        default=None, description="Locale resolved by the chain"
    )
    metadata: dict[str, Any] | None = Field(
        default=None, description="Diagnostic metadata, e.g. fallback markers"
    )

    @property
    def is_fallback(self) -> bool:
        """Whether this intent was produced by the deterministic fallback."""
        return bool(self.metadata and self.metadata.get("fallback"))


class ExtractIntentRequest(CamelModel):
    """Input to intent extraction."""

    query: str = Field(min_length=1, description="User query text")
    locale: Locale | None = Field(default=None, description="Explicit locale")
    context: list[ChatMessage] | None = Field(
        default=None, description="Prior conversation, passed verbatim"
    )
