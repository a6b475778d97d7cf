"""Lexical HTML scanner.

Finds start tags (with exact attribute and value spans) and the regions of
a document that are not text: tags, comments, doctype/processing
instructions, and the bodies of ``<script>``/``<style>``.  It is not a
parser; it only needs tag boundaries to be right.
"""

from __future__ import annotations

import bisect
import html
import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property

from sourcepatch.model.source_text import TextRange

__all__ = [
    "Attribute",
    "StartTag",
    "Region",
    "RegionKind",
    "HtmlLayout",
    "parse_start_tag",
    "scan_html",
]

_TAG_NAME_RE = re.compile(r"[A-Za-z][^\s/>]*")
_ATTR_NAME_RE = re.compile(r"""[^\s"'>/=]+""")
_UNQUOTED_VALUE_RE = re.compile(r"[^\s>]+")
_WS_RE = re.compile(r"\s*")

# Elements whose content is never markup.  Script/style bodies are not
# document text either; textarea/title bodies are.
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})
ESCAPABLE_RAW_TEXT_ELEMENTS = frozenset({"textarea", "title"})
# Elements that never have content or an end tag.
VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"}
)


class RegionKind(Enum):
    START_TAG = "start_tag"
    END_TAG = "end_tag"
    COMMENT = "comment"
    DECLARATION = "declaration"
    RAW_TEXT = "raw_text"


_OPAQUE_REGIONS = frozenset({RegionKind.COMMENT, RegionKind.DECLARATION, RegionKind.RAW_TEXT})


@dataclass(frozen=True)
class Attribute:
    """One attribute of a start tag as written in the source.

    ``value`` is the raw source text between the quotes (entities not
    decoded) or ``None`` for a valueless attribute like ``hidden``.
    """

    name: str
    span: TextRange
    value: str | None = None
    value_span: TextRange | None = None
    quote: str = ""

    @property
    def decoded_value(self) -> str | None:
        return None if self.value is None else html.unescape(self.value)

    def matches(self, expected: str) -> bool:
        """True if the raw or entity-decoded value equals *expected*."""
        return self.value is not None and (
            self.value == expected or self.decoded_value == expected
        )


@dataclass(frozen=True)
class StartTag:
    """A start tag: ``span`` covers ``<`` through the closing ``>``.

    ``insert_at`` is where a new attribute goes: just after the last
    non-space character before the closing ``>`` or ``/>``.
    """

    name: str
    span: TextRange
    attributes: tuple[Attribute, ...]
    self_closing: bool
    insert_at: int

    def get(self, name: str) -> Attribute | None:
        """First attribute named *name* (case-insensitive), like a browser would read it."""
        wanted = name.lower()
        for attr in self.attributes:
            if attr.name.lower() == wanted:
                return attr
        return None

    def class_tokens(self) -> list[str]:
        attr = self.get("class")
        if attr is None or attr.value is None:
            return []
        return (attr.decoded_value or "").split()


@dataclass(frozen=True)
class Region:
    kind: RegionKind
    span: TextRange


@dataclass(frozen=True)
class HtmlLayout:
    """Start tags and non-text regions of one document, in source order."""

    text: str
    start_tags: tuple[StartTag, ...]
    regions: tuple[Region, ...]

    @cached_property
    def _region_starts(self) -> list[int]:
        return [r.span.start for r in self.regions]

    def _region_index(self, offset: int) -> int:
        return bisect.bisect_right(self._region_starts, offset) - 1

    def region_at(self, offset: int) -> Region | None:
        idx = self._region_index(offset)
        if idx >= 0 and self.regions[idx].span.contains(offset):
            return self.regions[idx]
        return None

    def is_text(self, offset: int) -> bool:
        """True if *offset* lies in document text rather than markup."""
        return 0 <= offset < len(self.text) and self.region_at(offset) is None

    def overlapping(self, span: TextRange) -> list[Region]:
        return [r for r in self.regions if r.span.overlaps(span)]

    def tag_starting_at(self, offset: int) -> StartTag | None:
        for tag in self.start_tags:
            if tag.span.start == offset:
                return tag
            if tag.span.start > offset:
                break
        return None

    def find_text(self, match: str, within: TextRange | None = None) -> list[TextRange]:
        """Every occurrence of *match* that starts and ends in document text.

        A match may run across inline tags but never into a comment,
        declaration or script/style body.
        """
        start, end = (within.start, within.end) if within is not None else (0, len(self.text))
        found: list[TextRange] = []
        if not match:
            return found
        pos = self.text.find(match, start, end)
        while pos != -1:
            span = TextRange(pos, pos + len(match))
            if (
                self.is_text(span.start)
                and self.is_text(span.end - 1)
                and not any(r.kind in _OPAQUE_REGIONS for r in self.overlapping(span))
            ):
                found.append(span)
            pos = self.text.find(match, pos + 1, end)
        return found

    @cached_property
    def _content_ends(self) -> dict[int, int]:
        """Start offset of each element with content -> offset of its end tag.

        An end tag closes the innermost open element of the same name and
        every element opened inside it; end tags with no open match are
        ignored.  Elements never closed run to the end of the document.
        """
        events: list[tuple[int, StartTag | Region]] = [(t.span.start, t) for t in self.start_tags]
        events.extend((r.span.start, r) for r in self.regions if r.kind is RegionKind.END_TAG)
        events.sort(key=lambda e: e[0])

        ends: dict[int, int] = {}
        open_tags: list[StartTag] = []
        for offset, item in events:
            if isinstance(item, StartTag):
                if not item.self_closing and item.name not in VOID_ELEMENTS:
                    open_tags.append(item)
                continue
            name = _end_tag_name(self.text, item.span)
            for depth in range(len(open_tags) - 1, -1, -1):
                if open_tags[depth].name == name:
                    for tag in open_tags[depth:]:
                        ends[tag.span.start] = offset
                    del open_tags[depth:]
                    break
        for tag in open_tags:
            ends[tag.span.start] = len(self.text)
        return ends

    def content_span(self, tag: StartTag) -> TextRange | None:
        """Source between *tag* and its end tag; ``None`` for void and self-closing tags."""
        end = self._content_ends.get(tag.span.start)
        return None if end is None else TextRange(tag.span.end, end)

    def element_containing(self, span: TextRange) -> StartTag | None:
        """The innermost element whose content holds all of *span*."""
        found: StartTag | None = None
        for tag in self.start_tags:
            if tag.span.end > span.start:
                break
            end = self._content_ends.get(tag.span.start)
            if end is not None and span.end <= end:
                found = tag
        return found


def parse_start_tag(text: str, pos: int) -> StartTag | None:
    """Parse the start tag whose ``<`` is at *pos*.

    Returns ``None`` when the tag is not well formed (unterminated quote,
    missing ``>``, stray quote or ``=``).
    """
    if not text.startswith("<", pos):
        return None
    name_match = _TAG_NAME_RE.match(text, pos + 1)
    if name_match is None:
        return None
    n = len(text)
    i = name_match.end()
    attributes: list[Attribute] = []

    while True:
        i = _WS_RE.match(text, i).end()
        if i >= n:
            return None
        ch = text[i]
        if ch == ">":
            return _finish_tag(text, pos, name_match.group(), attributes, i, i + 1, False)
        if ch == "/":
            if text.startswith("/>", i):
                return _finish_tag(text, pos, name_match.group(), attributes, i, i + 2, True)
            i += 1
            continue
        if ch == "<":
            return None

        attr_match = _ATTR_NAME_RE.match(text, i)
        if attr_match is None:
            return None
        name_start = i
        i = attr_match.end()
        j = _WS_RE.match(text, i).end()
        if j < n and text[j] == "=":
            k = _WS_RE.match(text, j + 1).end()
            if k >= n:
                return None
            quote = text[k]
            if quote in "\"'":
                close = text.find(quote, k + 1)
                if close == -1:
                    return None
                value_span = TextRange(k + 1, close)
                i = close + 1
            else:
                value_match = _UNQUOTED_VALUE_RE.match(text, k)
                if value_match is None:
                    return None
                quote = ""
                value_span = TextRange(k, value_match.end())
                i = value_match.end()
            attributes.append(
                Attribute(
                    name=attr_match.group(),
                    span=TextRange(name_start, i),
                    value=text[value_span.start : value_span.end],
                    value_span=value_span,
                    quote=quote,
                )
            )
        else:
            attributes.append(Attribute(name=attr_match.group(), span=TextRange(name_start, i)))


def _finish_tag(
    text: str,
    pos: int,
    name: str,
    attributes: list[Attribute],
    close_start: int,
    end: int,
    self_closing: bool,
) -> StartTag:
    insert_at = close_start
    while insert_at > pos and text[insert_at - 1].isspace():
        insert_at -= 1
    return StartTag(
        name=name.lower(),
        span=TextRange(pos, end),
        attributes=tuple(attributes),
        self_closing=self_closing,
        insert_at=insert_at,
    )


def _end_tag_name(text: str, span: TextRange) -> str:
    match = _TAG_NAME_RE.match(text, span.start + 2)
    return match.group().lower() if match else ""


def _find_closing(text: str, name: str, start: int) -> int:
    match = re.compile(rf"</{re.escape(name)}[\s/>]", re.IGNORECASE).search(text, start)
    return match.start() if match else len(text)


def scan_html(text: str) -> HtmlLayout:
    """Scan *text* once and return its start tags and non-text regions."""
    n = len(text)
    tags: list[StartTag] = []
    regions: list[Region] = []
    i = 0

    while True:
        lt = text.find("<", i)
        if lt == -1:
            break
        nxt = text[lt + 1 : lt + 2]

        if text.startswith("<!--", lt):
            close = text.find("-->", lt + 4)
            end = n if close == -1 else close + 3
            regions.append(Region(RegionKind.COMMENT, TextRange(lt, end)))
            i = end
            continue

        if nxt in ("!", "?"):
            close = text.find(">", lt)
            end = n if close == -1 else close + 1
            regions.append(Region(RegionKind.DECLARATION, TextRange(lt, end)))
            i = end
            continue

        if nxt == "/":
            after = text[lt + 2 : lt + 3]
            if after.isascii() and after.isalpha():
                close = text.find(">", lt)
                end = n if close == -1 else close + 1
                regions.append(Region(RegionKind.END_TAG, TextRange(lt, end)))
                i = end
            else:
                i = lt + 1
            continue

        if nxt.isascii() and nxt.isalpha():
            tag = parse_start_tag(text, lt)
            if tag is None:
                # A '<' that does not open a well-formed tag is left as text.
                i = lt + 1
                continue
            tags.append(tag)
            regions.append(Region(RegionKind.START_TAG, tag.span))
            i = tag.span.end
            if tag.self_closing:
                continue
            if tag.name in RAW_TEXT_ELEMENTS:
                close = _find_closing(text, tag.name, i)
                if close > i:
                    regions.append(Region(RegionKind.RAW_TEXT, TextRange(i, close)))
                i = close
            elif tag.name in ESCAPABLE_RAW_TEXT_ELEMENTS:
                i = _find_closing(text, tag.name, i)
            continue

        i = lt + 1

    return HtmlLayout(text=text, start_tags=tuple(tags), regions=tuple(regions))
