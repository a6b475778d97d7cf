"""Serialize single rules and declaration lists back to CSS text."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from sourcepatch.model.operation import Declaration
from sourcepatch.stylesheet.model import StyleRule

__all__ = [
    "RuleLayout",
    "detect_layout",
    "serialize_rule",
    "serialize_declarations",
    "merge_declarations",
    "escape_identifier",
]

_DECL_INDENT_RE = re.compile(r"\n([ \t]+)\S")


@dataclass(frozen=True)
class RuleLayout:
    """How a rule is laid out in its file, so a rewrite looks like its neighbours."""

    multiline: bool = True
    indent: str = "  "
    base_indent: str = ""


def _line_indent(text: str, offset: int) -> str:
    line_start = text.rfind("\n", 0, offset) + 1
    prefix = text[line_start:offset]
    return prefix if not prefix.strip() else ""


def detect_layout(text: str, rule: StyleRule) -> RuleLayout:
    """Read single-line vs block layout and indentation from *rule* in *text*."""
    base = _line_indent(text, rule.span.start)
    if "\n" not in text[rule.span.start : rule.span.end]:
        return RuleLayout(multiline=False, base_indent=base)
    match = _DECL_INDENT_RE.search(text, rule.body_span.start, rule.body_span.end)
    indent = "  "
    if match and match.group(1).startswith(base) and len(match.group(1)) > len(base):
        indent = match.group(1)[len(base) :]
    return RuleLayout(multiline=True, indent=indent, base_indent=base)


def serialize_declarations(declarations: Iterable[Declaration], separator: str = " ") -> str:
    """``a: b; c: d;`` -- also the canonical form of an inline ``style`` value."""
    return separator.join(f"{d};" for d in declarations)


def serialize_rule(
    selector_text: str,
    declarations: Iterable[Declaration],
    layout: RuleLayout | None = None,
) -> str:
    """Canonical CSS text for one rule.

    The first line carries no indentation: the text replaces a span that
    starts at the selector, after any existing indentation.
    """
    layout = layout or RuleLayout()
    decls = list(declarations)
    if not layout.multiline:
        if not decls:
            return f"{selector_text} {{}}"
        return f"{selector_text} {{ {serialize_declarations(decls)} }}"
    lines = [f"{selector_text} {{"]
    lines.extend(f"{layout.base_indent}{layout.indent}{d};" for d in decls)
    lines.append(f"{layout.base_indent}}}")
    return "\n".join(lines)


def escape_identifier(value: str) -> str:
    """Escape *value* for use after ``#`` or ``.`` in a selector."""
    out: list[str] = []
    for i, ch in enumerate(value):
        if i == 0 and ch.isdigit():
            out.append(f"\\{ord(ch):x} ")
        elif (ch.isascii() and ch.isalnum()) or ch in "-_" or ord(ch) >= 0x80:
            out.append(ch)
        else:
            out.append("\\" + ch)
    return "".join(out)


def merge_declarations(
    existing: Iterable[Declaration], updates: Iterable[Declaration]
) -> tuple[Declaration, ...]:
    """Overlay *updates* on *existing*.

    For each updated property the last existing declaration is replaced in
    place; earlier ones stay, so fallbacks like ``display: -webkit-box;
    display: flex`` survive.  Properties not yet present are appended.
    """
    merged = list(existing)
    last_at = {decl.property: i for i, decl in enumerate(merged)}
    by_property: dict[str, list[Declaration]] = {}
    for decl in updates:
        by_property.setdefault(decl.property, []).append(decl)

    replacements: dict[int, list[Declaration]] = {}
    appended: list[Declaration] = []
    for prop, decls in by_property.items():
        if prop in last_at:
            replacements[last_at[prop]] = decls
        else:
            appended.extend(decls)

    result: list[Declaration] = []
    for i, decl in enumerate(merged):
        result.extend(replacements.get(i, [decl]))
    result.extend(appended)
    return tuple(result)
