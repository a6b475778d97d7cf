"""Anchor resolver: map an AnchorSpec to exactly one range of a SourceText."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from sourcepatch.config import PatchConfig
from sourcepatch.model.anchor import AnchorKind, AnchorSpec
from sourcepatch.model.source_text import SourceText, TextRange
from sourcepatch.resolver.scanner import HtmlLayout, StartTag, scan_html

__all__ = ["LocatorStatus", "LocatorResult", "resolve_anchor", "find_candidates"]

logger = logging.getLogger(__name__)

_WS_RUN_RE = re.compile(r"\s+")


class LocatorStatus(Enum):
    FOUND = "found"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class LocatorResult:
    """Where an anchor landed.

    ``range`` is set only when ``status`` is FOUND.  ``candidates`` lists
    every location still in play, in document order.
    """

    status: LocatorStatus
    range: TextRange | None = None
    candidates: tuple[TextRange, ...] = ()

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)

    @property
    def found(self) -> bool:
        return self.status is LocatorStatus.FOUND

    @classmethod
    def from_candidates(cls, candidates: list[TextRange]) -> LocatorResult:
        if len(candidates) == 1:
            return cls(status=LocatorStatus.FOUND, range=candidates[0], candidates=tuple(candidates))
        if not candidates:
            return cls(status=LocatorStatus.NOT_FOUND)
        return cls(status=LocatorStatus.AMBIGUOUS, candidates=tuple(candidates))


def resolve_anchor(
    source: SourceText,
    anchor: AnchorSpec,
    config: PatchConfig | None = None,
    layout: HtmlLayout | None = None,
) -> LocatorResult:
    """Resolve *anchor* against *source*.

    Element anchors (id, class, marker) resolve to the span of the
    element's start tag; text anchors resolve to the matched run.  Only a
    single surviving candidate is FOUND.
    """
    config = config or PatchConfig()
    layout = layout or scan_html(source.content)

    if anchor.kind is AnchorKind.TEXT_CONTEXT:
        candidates = layout.find_text(anchor.value)
        if len(candidates) > 1:
            candidates = _narrow_by_context(source.content, candidates, anchor, config)
    else:
        candidates = [tag.span for tag in _element_candidates(layout, anchor, config)]

    result = LocatorResult.from_candidates(candidates)
    logger.debug(
        "Resolved %s in %s: %s (%d candidate(s))",
        anchor.describe(),
        source.path,
        result.status.value,
        result.candidate_count,
    )
    return result


def find_candidates(
    layout: HtmlLayout, anchor: AnchorSpec, config: PatchConfig | None = None
) -> list[StartTag]:
    """Start tags an element anchor could refer to, before any uniqueness check."""
    if not anchor.targets_element:
        raise ValueError("Text anchors do not select elements")
    return _element_candidates(layout, anchor, config or PatchConfig())


def _element_candidates(
    layout: HtmlLayout, anchor: AnchorSpec, config: PatchConfig
) -> list[StartTag]:
    if anchor.kind is AnchorKind.STABLE_CLASS:
        return [t for t in layout.start_tags if anchor.value in t.class_tokens()]
    attr_name = "id" if anchor.kind is AnchorKind.ID else config.marker_attribute
    matches: list[StartTag] = []
    for tag in layout.start_tags:
        attr = tag.get(attr_name)
        if attr is not None and attr.matches(anchor.value):
            matches.append(tag)
    return matches


def _collapse(value: str) -> str:
    return _WS_RUN_RE.sub(" ", value)


def _context_fits(text: str, span: TextRange, before: str, after: str, width: int) -> bool:
    # Source whitespace rarely matches the rendered text, so compare collapsed runs.
    # The raw windows are oversized so collapsing still leaves *width* chars.
    if before:
        wanted = before[-width:]
        window = _collapse(text[max(0, span.start - 4 * width - 16) : span.start])
        if not window.endswith(wanted):
            return False
    if after:
        wanted = after[:width]
        window = _collapse(text[span.end : span.end + 4 * width + 16])
        if not window.startswith(wanted):
            return False
    return True


def _narrow_by_context(
    text: str, candidates: list[TextRange], anchor: AnchorSpec, config: PatchConfig
) -> list[TextRange]:
    """Keep the candidates whose surroundings match the anchor's context.

    The compared window grows by ``context_window_step`` per round up to
    ``max_context_window`` or the length of the supplied context.  If a
    round eliminates every candidate the previous round's survivors are
    returned, so the result stays ambiguous rather than becoming empty.
    """
    before = _collapse(anchor.before)
    after = _collapse(anchor.after)
    limit = min(config.max_context_window, max(len(before), len(after)))
    if limit <= 0:
        return candidates

    step = max(1, config.context_window_step)
    remaining = candidates
    width = 0
    while width < limit:
        width = min(width + step, limit)
        survivors = [c for c in remaining if _context_fits(text, c, before, after, width)]
        if not survivors:
            return remaining
        remaining = survivors
        if len(remaining) == 1:
            break
    return remaining
