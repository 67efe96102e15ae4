"""Tests for prompt template loading, fallbacks and rendering."""

from pathlib import Path

import pytest

from backend.app.ai.prompts import (
    FALLBACK_TEMPLATES,
    GENERIC_FALLBACK,
    PromptTemplateStore,
)


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Template tree with an en-only and a zh-only template."""
    (tmp_path / "en").mkdir()
    (tmp_path / "zh").mkdir()
    (tmp_path / "en" / "greeting.txt").write_text(
        "Hello {{name}}, welcome to {{city}}!", encoding="utf-8"
    )
    (tmp_path / "zh" / "greeting.txt").write_text("你好{{name}}！", encoding="utf-8")
    (tmp_path / "en" / "english_only.txt").write_text("Only English", encoding="utf-8")
    (tmp_path / "zh" / "chinese_only.txt").write_text("只有中文", encoding="utf-8")
    return tmp_path


def test_bundled_templates_load(prompt_store: PromptTemplateStore) -> None:
    for name in ("system", "intent", "itinerary"):
        assert prompt_store.has_template(name)
        assert prompt_store.get_template(name, "en")
        assert prompt_store.get_template(name, "zh") != prompt_store.get_template(name, "en")


def test_intent_template_names_every_intent_type(prompt_store: PromptTemplateStore) -> None:
    from backend.app.models.intent import IntentType

    body = prompt_store.get_template("intent", "en")
    for intent_type in IntentType:
        assert intent_type.value in body


def test_locale_specific_template(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)
    assert store.get_template("greeting", "en").startswith("Hello")
    assert store.get_template("greeting", "zh").startswith("你好")


def test_missing_locale_uses_other_locale(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)
    assert store.get_template("english_only", "zh") == "Only English"
    assert store.get_template("chinese_only", "en") == "只有中文"


def test_missing_template_uses_named_fallback(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)

    assert not store.has_template("system")
    assert store.get_template("system", "en") == FALLBACK_TEMPLATES["system"]["en"]
    assert store.get_template("intent", "zh") == FALLBACK_TEMPLATES["intent"]["zh"]
    assert store.get_template("restaurant", "en") == "Recommend restaurants based on the given criteria."


def test_unknown_template_uses_generic_fallback(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)
    assert store.get_template("nope", "en") == GENERIC_FALLBACK["en"]
    assert store.get_template("nope", "zh") == "处理用户请求。"


def test_missing_directory_serves_fallbacks(tmp_path: Path) -> None:
    store = PromptTemplateStore(tmp_path / "absent")
    assert store.template_names() == []
    assert store.get_template("itinerary", "en") == FALLBACK_TEMPLATES["itinerary"]["en"]


def test_render_substitutes_and_joins_lists(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)
    rendered = store.render("greeting", {"name": ["Ana", "Wei"], "city": "Auckland"})
    assert rendered == "Hello Ana, Wei, welcome to Auckland!"


def test_render_leaves_unmatched_placeholders(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)
    assert store.render("greeting", {"name": "Ana"}) == "Hello Ana, welcome to {{city}}!"


def test_render_stringifies_values(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)
    assert store.render("greeting", {"name": 3}, "zh") == "你好3！"


def test_reload_picks_up_changes(templates_dir: Path) -> None:
    store = PromptTemplateStore(templates_dir)
    (templates_dir / "en" / "new.txt").write_text("Fresh", encoding="utf-8")

    assert not store.has_template("new")
    store.reload()

    assert store.has_template("new")
    assert store.get_template("new", "en") == "Fresh"
    assert "new" in store.template_names()


def test_render_accepts_non_word_keys(tmp_path: Path) -> None:
    (tmp_path / "en").mkdir()
    (tmp_path / "en" / "dates.txt").write_text(
        "Dates: {{start-date}} / {{user.name}} / {{ missing }}", encoding="utf-8"
    )
    store = PromptTemplateStore(tmp_path)

    rendered = store.render("dates", {"start-date": "2025-12-10", "user.name": "Ana"})

    assert rendered == "Dates: 2025-12-10 / Ana / {{ missing }}"
