"""Tests for the HTML source scanner."""

from sourcepatch.model import TextRange
from sourcepatch.resolver import parse_start_tag, scan_html
from sourcepatch.resolver.scanner import RegionKind


# ---------------------------------------------------------------------------
# Start tags
# ---------------------------------------------------------------------------


class TestParseStartTag:
    def test_simple_tag(self):
        tag = parse_start_tag('<div id="x" class="a b">', 0)
        assert tag is not None
        assert tag.name == "div"
        assert tag.span == TextRange(0, 24)
        assert [a.name for a in tag.attributes] == ["id", "class"]
        assert tag.class_tokens() == ["a", "b"]

    def test_insert_at_skips_trailing_space(self):
        text = '<p class="a"  >'
        tag = parse_start_tag(text, 0)
        assert tag.insert_at == text.index('"', 10) + 1

    def test_self_closing(self):
        tag = parse_start_tag('<img src="a.png"/>', 0)
        assert tag.self_closing
        assert tag.insert_at == len('<img src="a.png"')

    def test_value_span_excludes_quotes(self):
        text = "<a href='/x'>"
        attr = parse_start_tag(text, 0).get("href")
        assert attr.quote == "'"
        assert text[attr.value_span.start : attr.value_span.end] == "/x"

    def test_unquoted_and_valueless(self):
        tag = parse_start_tag("<input type=checkbox checked>", 0)
        assert tag.get("type").value == "checkbox"
        assert tag.get("type").quote == ""
        assert tag.get("checked").value is None

    def test_get_is_case_insensitive(self):
        tag = parse_start_tag('<DIV ID="x">', 0)
        assert tag.name == "div"
        assert tag.get("id").value == "x"

    def test_entity_decoded_value(self):
        attr = parse_start_tag('<p title="a &amp; b">', 0).get("title")
        assert attr.value == "a &amp; b"
        assert attr.decoded_value == "a & b"
        assert attr.matches("a & b")

    def test_unterminated_quote_is_malformed(self):
        assert parse_start_tag('<p class="a>text', 0) is None

    def test_missing_close_is_malformed(self):
        assert parse_start_tag("<p class=a", 0) is None


# ---------------------------------------------------------------------------
# Document layout
# ---------------------------------------------------------------------------


class TestScanHtml:
    def test_tags_in_order(self):
        layout = scan_html("<html><body><p>Hi</p></body></html>")
        assert [t.name for t in layout.start_tags] == ["html", "body", "p"]

    def test_text_vs_markup(self):
        text = "<p>Hi</p>"
        layout = scan_html(text)
        assert layout.is_text(text.index("H"))
        assert not layout.is_text(0)
        assert not layout.is_text(text.index("</p>"))

    def test_comment_region(self):
        text = "<!-- <div id='x'> --><p>a</p>"
        layout = scan_html(text)
        assert [t.name for t in layout.start_tags] == ["p"]
        assert layout.region_at(2).kind is RegionKind.COMMENT

    def test_doctype_is_declaration(self):
        layout = scan_html("<!DOCTYPE html><p>a</p>")
        assert layout.region_at(0).kind is RegionKind.DECLARATION

    def test_script_body_is_raw_text(self):
        text = '<script>if (a < b) { x = "<div id=y>"; }</script><p>z</p>'
        layout = scan_html(text)
        assert [t.name for t in layout.start_tags] == ["script", "p"]
        assert layout.region_at(text.index("if")).kind is RegionKind.RAW_TEXT

    def test_stray_less_than_is_text(self):
        text = "<p>1 < 2</p>"
        layout = scan_html(text)
        assert layout.is_text(text.index("<", 3))

    def test_content_span(self):
        text = "<div><span>hi</span> there</div>"
        layout = scan_html(text)
        div, span = layout.start_tags
        assert layout.content_span(span) == TextRange(11, 13)
        assert layout.content_span(div) == TextRange(5, text.index("</div>"))

    def test_void_and_self_closing_have_no_content(self):
        text = "<p>a<br>b<img src=x /></p>"
        layout = scan_html(text)
        p, br, img = layout.start_tags
        assert layout.content_span(br) is None
        assert layout.content_span(img) is None
        assert layout.content_span(p) == TextRange(3, text.index("</p>"))

    def test_unclosed_element_runs_to_enclosing_end_tag(self):
        text = "<ul><li>one<li>two</ul>tail"
        layout = scan_html(text)
        ul, first, second = layout.start_tags
        end = text.index("</ul>")
        assert layout.content_span(first) == TextRange(first.span.end, end)
        assert layout.content_span(second) == TextRange(second.span.end, end)
        assert layout.content_span(ul) == TextRange(4, end)

    def test_element_containing_skips_closed_siblings(self):
        text = "<div><span>hi</span> there<br></div>"
        layout = scan_html(text)
        there = text.index("there")
        assert layout.element_containing(TextRange(there, there + 5)).name == "div"
        hi = text.index("hi")
        assert layout.element_containing(TextRange(hi, hi + 2)).name == "span"
        assert layout.element_containing(TextRange(0, 0)) is None

    def test_find_text_within(self):
        text = "<p>ab</p><p>ab <!-- ab --></p>"
        layout = scan_html(text)
        assert layout.find_text("ab") == [TextRange(3, 5), TextRange(12, 14)]
        assert layout.find_text("ab", TextRange(9, len(text))) == [TextRange(12, 14)]
        assert layout.find_text("") == []

    def test_tag_starting_at(self):
        text = "<div><span>hi</span></div>"
        layout = scan_html(text)
        assert layout.tag_starting_at(5).name == "span"
        assert layout.tag_starting_at(6) is None
