"""Per-provider usage accounting and model pricing."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field

from backend.app.models.llm import UsageStats


@dataclass(frozen=True)
class ModelPricing:
    """USD cost per million tokens."""

    input: float
    output: float


@dataclass(frozen=True)
class PricingTable:
    """Per-model pricing with a designated default tier for unknown models."""

    entries: Mapping[str, ModelPricing]
    default_model: str

    def __post_init__(self) -> None:
        if self.default_model not in self.entries:
            raise ValueError(
                f"Default pricing tier {self.default_model!r} missing from table"
            )

    def pricing_for(self, model: str) -> ModelPricing:
        """Pricing for a model, falling back to the default tier."""
        return self.entries.get(model, self.entries[self.default_model])

    def cost(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        """Estimated cost in USD for one call."""
        pricing = self.pricing_for(model)
        return (prompt_tokens / 1_000_000) * pricing.input + (
            completion_tokens / 1_000_000
        ) * pricing.output


# Pricing per 1M tokens (input / output), as published in 2025
OPENAI_PRICING = PricingTable(
    entries={
        "gpt-4o": ModelPricing(2.5, 10.0),
        "gpt-4o-mini": ModelPricing(0.15, 0.6),
        "gpt-4-turbo": ModelPricing(10.0, 30.0),
        "gpt-4-turbo-preview": ModelPricing(10.0, 30.0),
        "gpt-4": ModelPricing(30.0, 60.0),
        "gpt-3.5-turbo": ModelPricing(0.5, 1.5),
    },
    default_model="gpt-4o-mini",
)

ANTHROPIC_PRICING = PricingTable(
    entries={
        "claude-3-opus-20240229": ModelPricing(15.0, 75.0),
        "claude-3-5-sonnet-20241022": ModelPricing(3.0, 15.0),
        "claude-3-5-haiku-20241022": ModelPricing(0.8, 4.0),
        "claude-3-sonnet-20240229": ModelPricing(3.0, 15.0),
        "claude-3-haiku-20240307": ModelPricing(0.25, 1.25),
    },
    default_model="claude-3-5-haiku-20241022",
)

# Self-hosted models are not billed per token
LOCAL_PRICING = PricingTable(
    entries={"local": ModelPricing(0.0, 0.0)},
    default_model="local",
)


@dataclass
class UsageTracker:
    """Running usage totals owned by a single provider instance.

    Only ``record`` and ``reset`` mutate state; both hold the lock so concurrent
    calls on one provider never interleave their increments.
    """

    pricing: PricingTable
    _stats: UsageStats = field(default_factory=UsageStats)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        """Add one completed call and return its cost."""
        cost = self.pricing.cost(model, prompt_tokens, completion_tokens)
        with self._lock:
            current = self._stats
            self._stats = UsageStats(
                total_tokens=current.total_tokens + prompt_tokens + completion_tokens,
                prompt_tokens=current.prompt_tokens + prompt_tokens,
                completion_tokens=current.completion_tokens + completion_tokens,
                total_cost=current.total_cost + cost,
                request_count=current.request_count + 1,
            )
        return cost

    def snapshot(self) -> UsageStats:
        """Immutable copy of the current totals."""
        with self._lock:
            return self._stats

    def reset(self) -> None:
        """Zero all totals."""
        with self._lock:
            self._stats = UsageStats()
