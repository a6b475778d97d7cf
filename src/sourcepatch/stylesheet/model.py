"""Stylesheet model: StyleRule, Stylesheet and StylesheetInfo dataclasses."""

from __future__ import annotations

import re
from dataclasses import dataclass

from sourcepatch.model.operation import Declaration
from sourcepatch.model.source_text import TextRange

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_WS_RE = re.compile(r"\s+")
_COMBINATOR_RE = re.compile(r"\s*([,>+~])\s*")


def normalize_selector(selector_text: str) -> str:
    """Canonical form for comparing selectors written with different spacing."""
    text = _COMMENT_RE.sub(" ", selector_text)
    text = _WS_RE.sub(" ", text).strip()
    return _COMBINATOR_RE.sub(r"\1", text)


@dataclass(frozen=True)
class StyleRule:
    """A style rule as written in a stylesheet's source.

    ``span`` runs from the first selector character through the closing
    brace; ``body_span`` is the text between the braces.  ``index`` is the
    rule's position among style rules, depth first, in source order.
    ``depth`` counts enclosing ``@media``/``@supports``-style blocks.
    """

    selector_text: str
    declarations: tuple[Declaration, ...]
    span: TextRange
    body_span: TextRange
    index: int
    depth: int = 0

    @property
    def normalized_selector(self) -> str:
        return normalize_selector(self.selector_text)


@dataclass(frozen=True)
class Stylesheet:
    """The style rules of one stylesheet source, in source order."""

    rules: list[StyleRule]

    def find(self, selector_text: str) -> list[StyleRule]:
        """All rules whose selector is equivalent to *selector_text*."""
        wanted = normalize_selector(selector_text)
        return [r for r in self.rules if r.normalized_selector == wanted]

    def rule_at(self, index: int) -> StyleRule | None:
        if 0 <= index < len(self.rules):
            return self.rules[index]
        return None


@dataclass(frozen=True)
class StylesheetInfo:
    """Where a stylesheet the page uses comes from.

    ``path`` is the file holding its source; ``None`` when the source
    cannot be retrieved (a foreign origin, or a sheet injected at runtime).
    """

    stylesheet_id: str
    path: str | None
    href: str | None = None
    same_origin: bool = True

    @property
    def patchable(self) -> bool:
        return self.same_origin and self.path is not None
