"""Hand-written span-aware parser for CSS stylesheets.

Only what is needed to rewrite single rules in place is recovered: each
style rule's selector, declarations and exact source span.  Rules inside
conditional group at-rules are included::

    a { color: red; }
    @media (max-width: 600px) {
        .card { padding: 4px; }
    }

Other at-rules (``@font-face``, ``@keyframes``, ``@import``...) are skipped.
"""

from __future__ import annotations

import re

from sourcepatch.model.operation import Declaration
from sourcepatch.model.source_text import TextRange
from sourcepatch.stylesheet.model import StyleRule, Stylesheet

__all__ = ["parse_stylesheet", "parse_declarations"]

# At-rules whose block holds ordinary style rules.
_GROUPING_AT_RULES = frozenset({"media", "supports", "container", "layer", "document", "scope"})

_AT_NAME_RE = re.compile(r"@([-a-zA-Z]+)")
_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

# Matches a single declaration: property: value [!important]
_DECL_RE = re.compile(
    r"""
    ^\s*
    (?P<property>-{0,2}[a-zA-Z_][a-zA-Z0-9_-]*)   # property name (custom properties too)
    \s*:\s*                                       # colon separator
    (?P<value>.*?)                                # value
    (?P<important>\s*!\s*important)?              # optional priority
    \s*$
    """,
    re.VERBOSE | re.DOTALL | re.IGNORECASE,
)


def _skip_comment(text: str, i: int, end: int) -> int:
    close = text.find("*/", i + 2, end)
    return end if close == -1 else close + 2


def _skip_string(text: str, i: int, end: int) -> int:
    quote = text[i]
    j = i + 1
    while j < end:
        ch = text[j]
        if ch == "\\":
            j += 2
            continue
        if ch == quote or ch == "\n":
            return j + 1
        j += 1
    return end


def _matching_brace(text: str, i: int, end: int) -> int:
    """Index of the ``}`` closing the ``{`` at *i*, or *end* if unterminated."""
    depth = 0
    j = i
    while j < end:
        if text.startswith("/*", j):
            j = _skip_comment(text, j, end)
            continue
        ch = text[j]
        if ch in "\"'":
            j = _skip_string(text, j, end)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return j
        j += 1
    return end


def _split_top_level(body: str) -> list[str]:
    """Split a rule body on ``;`` outside strings, comments and parentheses."""
    parts: list[str] = []
    depth = 0
    start = 0
    j = 0
    n = len(body)
    while j < n:
        if body.startswith("/*", j):
            j = _skip_comment(body, j, n)
            continue
        ch = body[j]
        if ch in "\"'":
            j = _skip_string(body, j, n)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == ";" and depth == 0:
            parts.append(body[start:j])
            start = j + 1
        j += 1
    parts.append(body[start:])
    return parts


def parse_declarations(body: str) -> tuple[Declaration, ...]:
    """Parse the body of a rule (or an inline ``style`` value) into declarations."""
    declarations: list[Declaration] = []
    for chunk in _split_top_level(body):
        chunk = _COMMENT_RE.sub("", chunk)
        if not chunk.strip() or "{" in chunk:
            continue
        match = _DECL_RE.match(chunk)
        if match is None:
            continue
        name = match.group("property")
        if not name.startswith("--"):  # custom properties are case-sensitive
            name = name.lower()
        declarations.append(
            Declaration(
                property=name,
                value=match.group("value").strip(),
                important=match.group("important") is not None,
            )
        )
    return tuple(declarations)


def _parse_block(text: str, start: int, end: int, depth: int, rules: list[StyleRule]) -> None:
    i = start
    prelude_start: int | None = None
    while i < end:
        if text.startswith("/*", i):
            i = _skip_comment(text, i, end)
            continue
        ch = text[i]
        if prelude_start is None:
            if ch.isspace():
                i += 1
                continue
            if ch == "}" or ch == ";":
                # Stray terminator; nothing to attach it to.
                i += 1
                continue
            prelude_start = i
        if ch in "\"'":
            i = _skip_string(text, i, end)
            continue
        if ch == ";":
            # End of a statement at-rule such as @import or @charset.
            prelude_start = None
            i += 1
            continue
        if ch == "{":
            close = _matching_brace(text, i, end)
            prelude = text[prelude_start:i].strip()
            if prelude.startswith("@"):
                name_match = _AT_NAME_RE.match(prelude)
                if name_match and name_match.group(1).lower() in _GROUPING_AT_RULES:
                    _parse_block(text, i + 1, close, depth + 1, rules)
            else:
                rules.append(
                    StyleRule(
                        selector_text=_COMMENT_RE.sub("", prelude).strip(),
                        declarations=parse_declarations(text[i + 1 : close]),
                        span=TextRange(prelude_start, min(close + 1, end)),
                        body_span=TextRange(i + 1, close),
                        index=len(rules),
                        depth=depth,
                    )
                )
            i = close + 1
            prelude_start = None
            continue
        i += 1


def parse_stylesheet(source: str) -> Stylesheet:
    """Parse a CSS source string into a Stylesheet object.

    Returns a Stylesheet containing all style rules in source order, each
    with the span it occupies in *source*.
    """
    rules: list[StyleRule] = []
    _parse_block(source, 0, len(source), 0, rules)
    return Stylesheet(rules=rules)
