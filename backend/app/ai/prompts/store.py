"""Locale-partitioned prompt templates with ``{{placeholder}}`` rendering."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from backend.app.models.common import Locale

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
LOCALES: tuple[Locale, ...] = ("en", "zh")

_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}")

# Minimal bodies used when a template file is missing
FALLBACK_TEMPLATES: dict[str, dict[str, str]] = {
    "system": {
        "en": "You are a helpful AI assistant for SmartNZ Travel Planner.",
        "zh": "您是SmartNZ旅行规划助手的AI助理。",
    },
    "intent": {
        "en": "Analyze the following user query and extract the intent and parameters.",
        "zh": "分析以下用户查询并提取意图和参数。",
    },
    "itinerary": {
        "en": "Create a detailed travel itinerary based on the given parameters.",
        "zh": "根据给定参数创建详细的旅行行程。",
    },
    "price-comparison": {
        "en": "Compare prices for the given activity from multiple providers.",
        "zh": "比较多个提供商对给定活动的价格。",
    },
    "restaurant": {
        "en": "Recommend restaurants based on the given criteria.",
        "zh": "根据给定标准推荐餐厅。",
    },
}
GENERIC_FALLBACK = {"en": "Process the user request.", "zh": "处理用户请求。"}


def _stringify(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


class PromptTemplateStore:
    """In-memory set of prompt templates loaded once from disk.

    Templates live at ``<templates_dir>/<locale>/<name>.txt``. A template
    present in only one locale is served for both.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = Path(templates_dir) if templates_dir else TEMPLATES_DIR
        self._templates: dict[str, dict[str, str]] = {}
        self._load()

    def _load(self) -> None:
        loaded: dict[str, dict[str, str]] = {}
        for locale in LOCALES:
            locale_dir = self.templates_dir / locale
            if not locale_dir.is_dir():
                logger.warning(f"Prompt directory not found: {locale_dir}")
                continue
            for path in sorted(locale_dir.glob("*.txt")):
                loaded.setdefault(path.stem, {})[locale] = path.read_text(
                    encoding="utf-8"
                ).strip()

        for name, bodies in loaded.items():
            # en is authoritative; zh-only templates still serve en callers
            bodies.setdefault("zh", bodies.get("en", ""))
            bodies.setdefault("en", bodies["zh"])
            logger.debug(f"Loaded template: {name}")

        self._templates = loaded
        logger.info(f"Loaded {len(loaded)} prompt templates")

    def get_template(self, name: str, locale: Locale = "en") -> str:
        """Template body for ``name`` in ``locale``, or a hard-coded fallback."""
        template = self._templates.get(name)
        if template is None:
            logger.warning(f"Template not found: {name}, using fallback")
            return FALLBACK_TEMPLATES.get(name, GENERIC_FALLBACK)[locale]
        return template[locale]

    def render(
        self, name: str, variables: dict[str, Any], locale: Locale = "en"
    ) -> str:
        """Substitute ``{{key}}`` placeholders; unknown keys stay verbatim."""
        template = self.get_template(name, locale)

        def _replace(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in variables:
                return match.group(0)
            return _stringify(variables[key])

        return _PLACEHOLDER_RE.sub(_replace, template)

    def has_template(self, name: str) -> bool:
        """Whether ``name`` was loaded from disk."""
        return name in self._templates

    def template_names(self) -> list[str]:
        """Names of all loaded templates."""
        return sorted(self._templates)

    def reload(self) -> None:
        """Clear and re-read templates from disk."""
        self._templates = {}
        self._load()
        logger.info("Templates reloaded")


_store: PromptTemplateStore | None = None


def get_prompt_store(templates_dir: Path | None = None) -> PromptTemplateStore:
    """Get the process-wide prompt store, loading it on first use."""
    global _store
    if _store is None:
        _store = PromptTemplateStore(templates_dir)
    return _store
