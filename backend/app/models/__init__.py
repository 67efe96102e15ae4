"""Convenient imports for all model types."""

# Common types
from .common import (
    DEFAULT_CURRENCY,
    BilingualText,
    CamelModel,
    Coordinates,
    Locale,
    Money,
    compute_digest,
)

# Intent models
from .intent import ExtractIntentRequest, IntentResult, IntentType

# Itinerary models
from .itinerary import (
    GeneratedItinerary,
    GenerateItineraryRequest,
    ItineraryActivity,
    ItineraryDay,
    ItineraryPreferences,
    ItineraryStatistics,
    Location,
    Meals,
)

# Model-backend types
from .llm import (
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    LLMModel,
    MessageRole,
    ProviderType,
    StreamChunk,
    TokenUsage,
    UsageStats,
)

__all__ = [
    # Common
    "DEFAULT_CURRENCY",
    "BilingualText",
    "CamelModel",
    "Coordinates",
    "Locale",
    "Money",
    "compute_digest",
    # Intent
    "ExtractIntentRequest",
    "IntentResult",
    "IntentType",
    # Itinerary
    "GeneratedItinerary",
    "GenerateItineraryRequest",
    "ItineraryActivity",
    "ItineraryDay",
    "ItineraryPreferences",
    "ItineraryStatistics",
    "Location",
    "Meals",
    # LLM
    "ChatMessage",
    "CompletionResult",
    "GenerationOptions",
    "LLMModel",
    "MessageRole",
    "ProviderType",
    "StreamChunk",
    "TokenUsage",
    "UsageStats",
]
