"""Task-specific pipelines: prompt, model call, validation, post-processing."""

from backend.app.ai.chains.intent import IntentChain
from backend.app.ai.chains.itinerary import ItineraryChain

__all__ = ["IntentChain", "ItineraryChain"]
