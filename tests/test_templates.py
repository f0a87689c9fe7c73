"""Tests for the template engine."""

import logging

import pytest

from mcp_conclusions.errors import RenderError
from mcp_conclusions.templates import (
    DEFAULT_TEMPLATE,
    ConclusionTemplate,
    TemplateEngine,
    format_value,
)


@pytest.fixture
def engine():
    return TemplateEngine()


class TestFormatValue:
    """Tests for format_value."""

    def test_string(self):
        assert format_value("text") == "text"

    def test_number(self):
        assert format_value(42) == "42"

    def test_list_becomes_bullets(self):
        assert format_value(["a", "b"]) == "- a\n- b"

    def test_empty_list(self):
        assert format_value([]) == ""

    def test_none(self):
        assert format_value(None) == ""


class TestConclusionTemplate:
    """Tests for ConclusionTemplate."""

    def test_placeholders_in_order_without_duplicates(self):
        template = ConclusionTemplate("t", "{b} {a} {b} {c}")
        assert template.placeholders == ["b", "a", "c"]


class TestTemplateEngine:
    """Tests for TemplateEngine."""

    def test_default_template_registered(self, engine):
        assert engine.get("default").body == DEFAULT_TEMPLATE
        assert "default" in engine.list_templates()
        assert "detailed" in engine.list_templates()

    def test_register_and_render(self, engine):
        engine.register("greeting", "Hello {name}!")
        assert engine.render("greeting", {"name": "world"}) == "Hello world!"

    def test_register_overwrites(self, engine):
        engine.register("greeting", "Hello {name}!")
        engine.register("greeting", "Bye {name}.")
        assert engine.render("greeting", {"name": "world"}) == "Bye world."

    def test_missing_key_left_verbatim(self, engine):
        engine.register("partial", "{known} and {unknown}")
        assert engine.render("partial", {"known": "x"}) == "x and {unknown}"

    def test_list_values_expanded(self, engine):
        engine.register("tags", "Tags:\n{tags}")
        assert engine.render("tags", {"tags": ["api", "auth"]}) == "Tags:\n- api\n- auth"

    def test_empty_list_renders_empty(self, engine):
        engine.register("tags", "[{tags}]")
        assert engine.render("tags", {"tags": []}) == "[]"

    def test_unknown_template_falls_back_to_default(self, engine):
        data = {"emoji": "✨", "category": "feature", "whyChange": "why", "whatChange": "what"}
        assert engine.render("nonexistent", data) == engine.render("default", data)

    def test_unknown_template_logs_fallback(self, engine, caplog):
        with caplog.at_level(logging.WARNING, logger="mcp_conclusions.templates"):
            engine.render("nonexistent", {})
        assert "nonexistent not found" in caplog.text

    def test_overridden_default_used_for_fallback(self, engine):
        engine.register("default", "custom {x}")
        assert engine.render("missing", {"x": "1"}) == "custom 1"

    def test_non_word_braces_untouched(self, engine):
        engine.register("code", "fn() { return {x}; }")
        assert engine.render("code", {"x": "1"}) == "fn() { return 1; }"

    def test_unformattable_value_raises_render_error(self, engine):
        class Broken:
            def __str__(self):
                raise RuntimeError("boom")

        engine.register("broken", "{value}")
        with pytest.raises(RenderError):
            engine.render("broken", {"value": Broken()})

    def test_injected_logger_used(self, caplog):
        log = logging.getLogger("custom.templates")
        with caplog.at_level(logging.INFO, logger="custom.templates"):
            TemplateEngine(log=log).register("x", "y")
        assert any(r.name == "custom.templates" for r in caplog.records)
