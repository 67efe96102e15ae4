"""Prompt templates."""

from backend.app.ai.prompts.store import (
    FALLBACK_TEMPLATES,
    GENERIC_FALLBACK,
    TEMPLATES_DIR,
    PromptTemplateStore,
    get_prompt_store,
)

__all__ = [
    "FALLBACK_TEMPLATES",
    "GENERIC_FALLBACK",
    "TEMPLATES_DIR",
    "PromptTemplateStore",
    "get_prompt_store",
]
