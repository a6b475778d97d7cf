"""Tests for the HTML patcher."""

from sourcepatch.model import (
    AnchorSpec,
    AttributeChange,
    ErrorKind,
    InlineStyleChange,
    PatchStatus,
    SourceText,
    TextRange,
    TextReplace,
)
from sourcepatch.patcher import apply_html_operation, locate_element, set_attribute
from sourcepatch.resolver import parse_start_tag, resolve_anchor


def _apply(text, op):
    source = SourceText(text, "index.html")
    located = resolve_anchor(source, op.anchor)
    assert located.found, located
    return apply_html_operation(source, located.range, op)


def _assert_minimal(before: str, outcome):
    """Everything outside the applied ranges is unchanged."""
    after = outcome.source.content
    rng = outcome.applied_range
    assert after[: rng.start] == before[: rng.start]
    tail = len(before) - (len(after) - rng.end)
    assert after[rng.end :] == before[tail:]


# ---------------------------------------------------------------------------
# Text replacement
# ---------------------------------------------------------------------------


class TestTextReplace:
    def test_replaces_only_the_run(self):
        text = "<p>\n  Hello   world\n</p>"
        op = TextReplace("index.html", AnchorSpec.by_text_context("Hello"), "Hello", "Hi")
        outcome = _apply(text, op)
        assert outcome.succeeded
        assert outcome.source.content == "<p>\n  Hi   world\n</p>"
        assert outcome.applied_range == TextRange(6, 8)
        _assert_minimal(text, outcome)

    def test_stale_text_rejected(self):
        source = SourceText("<p>Howdy</p>", "index.html")
        op = TextReplace("index.html", AnchorSpec.by_text_context("Hello"), "Hello", "Hi")
        outcome = apply_html_operation(source, TextRange(3, 8), op)
        assert outcome.status is PatchStatus.INVALID
        assert outcome.error is ErrorKind.STALE_ANCHOR
        assert outcome.source is None

    def test_out_of_bounds_range(self):
        source = SourceText("<p>a</p>", "index.html")
        op = TextReplace("index.html", AnchorSpec.by_text_context("a"), "a", "b")
        outcome = apply_html_operation(source, TextRange(5, 50), op)
        assert outcome.error is ErrorKind.MALFORMED_REGION


class TestElementTextReplace:
    def test_by_id(self):
        text = '<h1 id="title">Hello</h1>'
        op = TextReplace("index.html", AnchorSpec.by_id("title"), "Hello", "Hi")
        outcome = _apply(text, op)
        assert outcome.source.content == '<h1 id="title">Hi</h1>'
        assert outcome.applied_range == TextRange(15, 17)
        _assert_minimal(text, outcome)

    def test_by_class(self):
        text = '<p class="lead big">Old copy</p>\n<p>Old copy</p>'
        op = TextReplace("index.html", AnchorSpec.by_stable_class("lead"), "Old", "New")
        outcome = _apply(text, op)
        assert outcome.source.content == '<p class="lead big">New copy</p>\n<p>Old copy</p>'

    def test_by_marker(self):
        text = '<span data-sp-anchor="m1">Buy now</span>'
        op = TextReplace("index.html", AnchorSpec.by_marker("m1"), "Buy now", "Order")
        assert _apply(text, op).source.content == '<span data-sp-anchor="m1">Order</span>'

    def test_text_inside_child_element(self):
        text = '<h1 id="t">Hello <b>you</b></h1>'
        op = TextReplace("index.html", AnchorSpec.by_id("t"), "you", "all")
        assert _apply(text, op).source.content == '<h1 id="t">Hello <b>all</b></h1>'

    def test_repeated_text_is_ambiguous(self):
        op = TextReplace("index.html", AnchorSpec.by_id("x"), "la", "da")
        outcome = _apply('<p id="x">la la</p>', op)
        assert outcome.status is PatchStatus.AMBIGUOUS
        assert outcome.candidate_count == 2
        assert outcome.source is None

    def test_missing_text_is_stale(self):
        op = TextReplace("index.html", AnchorSpec.by_id("t"), "Hello", "Hi")
        outcome = _apply('<h1 id="t">Goodbye</h1><p>Hello</p>', op)
        assert outcome.error is ErrorKind.STALE_ANCHOR

    def test_void_element_has_no_text(self):
        op = TextReplace("index.html", AnchorSpec.by_id("i"), "a", "b")
        outcome = _apply('<img id="i" alt="a">', op)
        assert outcome.error is ErrorKind.MALFORMED_REGION

    def test_fill_empty_element(self):
        op = TextReplace("index.html", AnchorSpec.by_id("x"), "", "Hi")
        assert _apply('<p id="x"></p>', op).source.content == '<p id="x">Hi</p>'


# ---------------------------------------------------------------------------
# Attribute changes
# ---------------------------------------------------------------------------


class TestAttributeChange:
    def test_insert_new_attribute_before_close(self):
        text = '<a href="/">Home</a>'
        op = AttributeChange("index.html", AnchorSpec.by_text_context("Home"), "title", "Go home")
        outcome = _apply(text, op)
        assert outcome.source.content == '<a href="/" title="Go home">Home</a>'
        _assert_minimal(text, outcome)

    def test_replace_value_keeps_quote_style(self):
        text = "<img src='a.png' alt='old'>"
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "alt", "new")
        source = SourceText(text, "index.html")
        tag = parse_start_tag(text, 0)
        outcome = apply_html_operation(source, tag.span, op)
        assert outcome.source.content == "<img src='a.png' alt='new'>"

    def test_value_is_escaped(self):
        text = '<p id="x">a</p>'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "title", 'say "hi"')
        outcome = _apply(text, op)
        assert outcome.source.content == '<p id="x" title="say &quot;hi&quot;">a</p>'

    def test_unquoted_value_stays_unquoted(self):
        text = "<input id=x type=text>"
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "type", "email")
        assert _apply(text, op).source.content == "<input id=x type=email>"

    def test_unquoted_value_quoted_when_unsafe(self):
        text = "<input id=x value=a>"
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "value", "a b")
        assert _apply(text, op).source.content == '<input id=x value="a b">'

    def test_valueless_attribute_gets_value(self):
        text = '<div id="x" hidden>a</div>'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "hidden", "until-found")
        assert _apply(text, op).source.content == '<div id="x" hidden="until-found">a</div>'

    def test_remove_attribute(self):
        text = '<p id="x" title="t" class="c">a</p>'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "title", None)
        assert _apply(text, op).source.content == '<p id="x" class="c">a</p>'

    def test_remove_absent_attribute_is_noop(self):
        text = '<p id="x">a</p>'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "title", None)
        outcome = _apply(text, op)
        assert outcome.succeeded
        assert outcome.source.content == text

    def test_same_value_is_noop(self):
        text = '<p id="x" title="t">a</p>'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "title", "t")
        outcome = _apply(text, op)
        assert outcome.succeeded
        assert outcome.source.content == text

    def test_self_closing_insert(self):
        text = '<img id="x" src="a.png" />'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "alt", "A")
        assert _apply(text, op).source.content == '<img id="x" src="a.png" alt="A" />'

    def test_missing_expected_attribute_noted(self):
        text = '<p id="x">a</p>'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "title", "t", had_existing_attribute=True)
        outcome = _apply(text, op)
        assert outcome.succeeded
        assert "title" in outcome.notes

    def test_multiline_tag_layout_preserved(self):
        text = '<section\n    id="x"\n    class="hero"\n>\n</section>'
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "class", "hero big")
        assert _apply(text, op).source.content == '<section\n    id="x"\n    class="hero big"\n>\n</section>'

    def test_range_not_on_tag_is_malformed(self):
        source = SourceText('<p id="x">a</p>', "index.html")
        op = AttributeChange("index.html", AnchorSpec.by_id("x"), "title", "t")
        outcome = apply_html_operation(source, TextRange(0, 4), op)
        assert outcome.error is ErrorKind.MALFORMED_REGION
        assert outcome.source is None


# ---------------------------------------------------------------------------
# Inline style changes
# ---------------------------------------------------------------------------


class TestInlineStyleChange:
    def test_unique_anchor_round_trip(self):
        text = '<div id="x" class="a">t</div>'
        op = InlineStyleChange("index.html", AnchorSpec.by_id("x"), "color:red")
        outcome = _apply(text, op)
        assert outcome.source.content == '<div id="x" class="a" style="color:red">t</div>'
        _assert_minimal(text, outcome)

    def test_replace_existing_style(self):
        text = '<div id="x" style="color: blue" class="a">t</div>'
        op = InlineStyleChange("index.html", AnchorSpec.by_id("x"), "color: red; width: 10px;")
        outcome = _apply(text, op)
        assert outcome.source.content == '<div id="x" style="color: red; width: 10px;" class="a">t</div>'
        _assert_minimal(text, outcome)

    def test_empty_style_removes_attribute(self):
        text = '<div id="x" style="color: blue">t</div>'
        op = InlineStyleChange("index.html", AnchorSpec.by_id("x"), "")
        assert _apply(text, op).source.content == '<div id="x">t</div>'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestLocateElement:
    def test_text_range_maps_to_enclosing_tag(self):
        text = "<ul><li class='x'>One</li></ul>"
        source = SourceText(text, "index.html")
        tag = locate_element(source, TextRange(text.index("One"), text.index("One") + 3))
        assert tag.name == "li"

    def test_set_attribute_reports_inserted_range(self):
        text = "<p>a</p>"
        source = SourceText(text, "index.html")
        outcome = set_attribute(source, parse_start_tag(text, 0), "id", "p1")
        assert outcome.source.content == '<p id="p1">a</p>'
        assert outcome.applied_range == TextRange(2, 10)

    def test_text_after_inline_child_maps_to_parent(self):
        text = '<p id="para">Hi <b>bold</b> there</p>'
        op = AttributeChange("index.html", AnchorSpec.by_text_context("there"), "title", "t")
        outcome = _apply(text, op)
        assert outcome.source.content == '<p id="para" title="t">Hi <b>bold</b> there</p>'

    def test_text_outside_any_element(self):
        text = "loose <br> text"
        source = SourceText(text, "index.html")
        op = AttributeChange("index.html", AnchorSpec.by_text_context("text"), "title", "t")
        outcome = apply_html_operation(source, TextRange(11, 15), op)
        assert outcome.error is ErrorKind.MALFORMED_REGION
