from prm.preferences import (
    DEFAULT_EVENT_TYPES,
    DEFAULT_INTERACTION_TYPES,
    DEFAULT_SENTIMENTS,
    add_item,
    get_preference,
    label,
    remove_item,
    resolve_preferences,
)
from prm.sanitize import clean_optional, clean_text, escape_html, escape_markdown


def test_missing_preference_falls_back_to_defaults():
    prefs = [{"key": "sentiments", "value": ["great", "fine"]}]
    resolved = resolve_preferences(prefs)

    assert resolved["sentiments"] == ["great", "fine"]
    assert resolved["interaction_types"] == DEFAULT_INTERACTION_TYPES
    assert resolved["event_types"] == DEFAULT_EVENT_TYPES


def test_get_preference_returns_a_copy():
    value = get_preference([], "sentiments", DEFAULT_SENTIMENTS)
    value.append("ecstatic")
    assert "ecstatic" not in DEFAULT_SENTIMENTS


def test_add_item_normalizes_and_dedupes():
    items = ["met", "call"]
    assert add_item(items, "  Coffee ") == ["met", "call", "coffee"]
    assert add_item(items, "CALL") == items
    assert add_item(items, "   ") == items
    assert items == ["met", "call"]


def test_remove_item():
    assert remove_item(["met", "call"], "met") == ["call"]
    assert remove_item(["met"], "nope") == ["met"]


def test_label():
    assert label("introduction") == "Introduction"
    assert label("") == ""


def test_clean_text_strips_direction_overrides():
    assert clean_text("  evil\u202etxt.exe ") == "eviltxt.exe"
    assert clean_text(None) == ""
    assert clean_optional("   ") is None


def test_escape_markdown():
    assert escape_markdown("<b>Ada</b>") == "&lt;b&gt;Ada&lt;/b&gt;"


def test_escape_markdown_neutralizes_formatting():
    assert escape_markdown("_Ada_") == r"\_Ada\_"
    assert escape_markdown("**x**") == r"\*\*x\*\*"
    assert escape_markdown("[link](http://x) #1") == r"\[link\](http://x) \#1"
    assert escape_markdown("a\\b") == "a\\\\b"


def test_escape_html_leaves_markdown_alone():
    assert escape_html("_Ada_ & co") == "_Ada_ &amp; co"
