"""Unit tests for editable field discovery, keyboard and clipboard handling."""

import random

import pytest

from vitae.contexts.editing.config import load_editor_options
from vitae.contexts.editing.fields import EditableDocument, KeyResult, parse_max_length


def make_document(body: str, **overrides) -> EditableDocument:
    options = load_editor_options(overrides=overrides) if overrides else None
    return EditableDocument(f"<html><body>{body}</body></html>", options=options)


# ------------------------------------------------------------------
# Discovery
# ------------------------------------------------------------------
@pytest.mark.unit
def test_attribute_discovery_marks_fields_editable(page_html):
    document = EditableDocument(page_html)

    assert set(document.fields) == {
        "greeting.title",
        "greeting.subtitle",
        "experience.title",
        "job.0.title",
        "job.0.dates",
        "job.0.duty.0",
        "job.0.duty.1",
    }
    for field in document:
        assert field.node["contenteditable"] == "true"
    # No key attribute, not editable
    assert document.soup.select_one(".contact-email").get("contenteditable") is None


@pytest.mark.unit
def test_selector_discovery_limits_fields_and_skips_unkeyed_nodes(page_html):
    options = load_editor_options(
        overrides={"discovery": {"selectors": [".job-duties li", ".contact-email", ".job-title"]}}
    )
    document = EditableDocument(page_html, options=options)

    assert list(document.fields) == ["job.0.duty.0", "job.0.duty.1", "job.0.title"]
    assert document.soup.select_one(".contact-email").get("contenteditable") is None


@pytest.mark.unit
def test_inline_styles_are_optional():
    plain = make_document('<p data-src="a">x</p>')
    styled = make_document(
        '<p data-src="a" style="color: red">x</p>', styling={"inline_styles": True}
    )

    assert plain.field("a").node.get("style") is None
    assert styled.field("a").node["style"] == "color: red; outline: none; cursor: text;"


@pytest.mark.unit
def test_duplicate_keys_keep_first_node():
    document = make_document('<p data-src="a">first</p><p data-src="a">second</p>')

    assert len(document) == 1
    assert document.field("a").text == "first"


@pytest.mark.unit
def test_unknown_field_raises_key_error():
    document = make_document('<p data-src="a">x</p>')
    with pytest.raises(KeyError):
        document.field("missing")


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [("3", 3), (" 12 ", 12), ("0", 0), ("abc", None), ("", None), (None, None), ("-4", None), ("2.5", None)],
)
def test_parse_max_length(raw, expected):
    assert parse_max_length(raw) == expected


@pytest.mark.unit
def test_malformed_limit_means_unlimited(page_html):
    document = EditableDocument(page_html)
    field = document.field("job.0.title")

    assert field.max_length is None
    field.focus()
    assert field.paste(" " + "x" * 500) == " " + "x" * 500


# ------------------------------------------------------------------
# Paste
# ------------------------------------------------------------------
@pytest.mark.unit
def test_paste_truncates_to_limit():
    document = make_document('<span data-src="a" data-max-length="3"></span>')
    field = document.field("a")
    field.focus()

    assert field.paste("hello") == "hel"
    assert field.text == "hel"


@pytest.mark.unit
def test_paste_counts_selection_as_headroom():
    document = make_document('<span data-src="a" data-max-length="5">abcde</span>')
    field = document.field("a")
    field.select(1, 3)

    assert field.paste("XYZ") == "XY"
    assert field.text == "aXYde"
    assert field.selection == (3, 3)


@pytest.mark.unit
def test_paste_into_full_field_inserts_nothing():
    document = make_document('<span data-src="a" data-max-length="3">abc</span>')
    field = document.field("a")
    events = []
    field.on("input", events.append)
    field.focus()

    assert field.paste("zzz") == ""
    assert field.text == "abc"
    assert events == []


@pytest.mark.unit
def test_paste_inserts_markup_as_plain_text():
    document = make_document('<span data-src="a"></span>')
    field = document.field("a")
    field.focus()

    field.paste("<b>bold</b>")

    assert field.text == "<b>bold</b>"
    assert field.node.find("b") is None
    assert "&lt;b&gt;" in field.value


@pytest.mark.unit
def test_paste_newlines_become_line_breaks():
    document = make_document('<span data-src="a"></span>')
    field = document.field("a")
    field.focus()

    field.paste("one\r\ntwo")

    assert field.text == "one\ntwo"
    assert field.value == "one<br/>two"


# ------------------------------------------------------------------
# Keyboard
# ------------------------------------------------------------------
@pytest.mark.unit
def test_typing_stops_at_limit_but_navigation_still_works():
    document = make_document('<span data-src="a" data-max-length="4"></span>')
    field = document.field("a")
    limits = []
    field.on("limit", limits.append)
    field.focus()

    assert field.type_text("abcdef") == 4
    assert field.text == "abcd"
    assert limits == [field, field]

    assert field.press_key("ArrowLeft") is KeyResult.MOVED
    assert field.press_key("Home") is KeyResult.MOVED
    assert field.press_key("Delete") is KeyResult.DELETED
    assert field.text == "bcd"
    assert field.press_key("End") is KeyResult.MOVED
    assert field.press_key("Backspace") is KeyResult.DELETED
    assert field.text == "bc"
    assert field.press_key("x") is KeyResult.INSERTED
    assert field.text == "bcx"


@pytest.mark.unit
def test_enter_commits_and_shift_enter_breaks_line():
    document = make_document('<span data-src="a">Line</span>')
    field = document.field("a")
    blurs = []
    field.on("blur", blurs.append)
    field.focus()

    assert field.press_key("Enter", shift=True) is KeyResult.LINE_BREAK
    field.type_text("Two")
    assert field.text == "Line\nTwo"
    assert field.value == "Line<br/>Two"
    assert blurs == []

    assert field.press_key("Enter") is KeyResult.COMMIT
    assert blurs == [field]
    assert field.focused is False


@pytest.mark.unit
def test_enter_commits_even_when_field_is_full():
    document = make_document('<span data-src="a" data-max-length="2">ab</span>')
    field = document.field("a")
    field.focus()

    assert field.press_key("Enter") is KeyResult.COMMIT


@pytest.mark.unit
def test_shortcuts_and_non_character_keys_are_ignored():
    document = make_document('<span data-src="a" data-max-length="2">ab</span>')
    field = document.field("a")
    field.focus()

    assert field.press_key("c", ctrl=True) is KeyResult.IGNORED
    assert field.press_key("v", meta=True) is KeyResult.IGNORED
    assert field.text == "ab"

    unlimited = make_document('<span data-src="b">ab</span>').field("b")
    assert unlimited.press_key("Escape") is KeyResult.IGNORED


@pytest.mark.unit
def test_insert_inside_nested_markup_keeps_formatting():
    document = make_document('<span data-src="a">Hello <b>world</b></span>')
    field = document.field("a")
    field.select(6)

    field.type_text("big ")

    assert field.text == "Hello big world"
    assert field.node.find("b").get_text() == "world"


@pytest.mark.unit
def test_deleting_a_range_across_elements():
    document = make_document('<span data-src="a">ab<br>cd <i>ef</i></span>')
    field = document.field("a")
    assert field.text == "ab\ncd ef"

    field.select(1, 6)
    assert field.press_key("Backspace") is KeyResult.DELETED

    assert field.text == "aef"
    assert field.node.find("br") is None


@pytest.mark.unit
def test_input_event_fires_for_each_edit():
    document = make_document('<span data-src="a"></span>')
    field = document.field("a")
    inputs = []
    field.on("input", inputs.append)
    field.focus()

    field.type_text("ab")
    field.paste("c")
    field.press_key("Backspace")
    field.press_key("ArrowLeft")

    assert len(inputs) == 4


@pytest.mark.unit
@pytest.mark.parametrize("seed", range(5))
def test_length_limit_holds_for_any_edit_sequence(seed):
    rng = random.Random(seed)
    limit = rng.randint(1, 12)
    document = make_document(f'<span data-src="a" data-max-length="{limit}"></span>')
    field = document.field("a")
    field.focus()

    keys = ["a", "b", "Z", " ", "Enter", "Backspace", "Delete", "ArrowLeft", "ArrowRight", "Home", "End"]
    for _ in range(200):
        action = rng.random()
        if action < 0.2:
            length = len(field.text)
            field.select(rng.randint(0, length), rng.randint(0, length))
        if action < 0.5:
            field.paste("".join(rng.choice("xyz\n") for _ in range(rng.randint(0, 20))))
        else:
            key = rng.choice(keys)
            field.press_key(key, shift=(key == "Enter"))
            field.focused = True
        assert len(field.text) <= limit
