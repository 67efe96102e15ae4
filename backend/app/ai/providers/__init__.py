"""Model backends behind a uniform contract."""

from backend.app.ai.providers.anthropic_provider import AnthropicProvider
from backend.app.ai.providers.base import (
    JSON_INSTRUCTION,
    BaseProvider,
    LLMProvider,
    append_json_instruction,
    parse_json_content,
    split_system_messages,
)
from backend.app.ai.providers.local_provider import LocalProvider
from backend.app.ai.providers.openai_provider import OpenAIProvider
from backend.app.ai.providers.usage import (
    ANTHROPIC_PRICING,
    LOCAL_PRICING,
    OPENAI_PRICING,
    ModelPricing,
    PricingTable,
    UsageTracker,
)

__all__ = [
    "ANTHROPIC_PRICING",
    "JSON_INSTRUCTION",
    "LOCAL_PRICING",
    "OPENAI_PRICING",
    "AnthropicProvider",
    "BaseProvider",
    "LLMProvider",
    "LocalProvider",
    "ModelPricing",
    "OpenAIProvider",
    "PricingTable",
    "UsageTracker",
    "append_json_instruction",
    "parse_json_content",
    "split_system_messages",
]
