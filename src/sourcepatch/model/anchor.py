"""Anchor model: how an edit finds its element in independently-loaded source text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AnchorKind(StrEnum):
    ID = "id"
    STABLE_CLASS = "class"
    TEXT_CONTEXT = "text"
    MARKER = "marker"


@dataclass(frozen=True)
class AnchorSpec:
    """Where an element's markup lives in the source (tagged union).

    ``value`` holds the identifier, class token, marker id, or (for text
    anchors) the literal text run to find.  ``before``/``after`` are only
    used by text anchors to tell identical runs apart; they never widen
    the resolved range.
    """

    kind: AnchorKind
    value: str
    before: str = ""
    after: str = ""

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError(f"{self.kind.value} anchor needs a non-empty value")

    # --- Factory classmethods ---

    @classmethod
    def by_id(cls, value: str) -> AnchorSpec:
        return cls(kind=AnchorKind.ID, value=value)

    @classmethod
    def by_stable_class(cls, value: str) -> AnchorSpec:
        return cls(kind=AnchorKind.STABLE_CLASS, value=value)

    @classmethod
    def by_text_context(cls, match: str, before: str = "", after: str = "") -> AnchorSpec:
        return cls(kind=AnchorKind.TEXT_CONTEXT, value=match, before=before, after=after)

    @classmethod
    def by_marker(cls, marker_id: str) -> AnchorSpec:
        return cls(kind=AnchorKind.MARKER, value=marker_id)

    @property
    def targets_element(self) -> bool:
        """True when the anchor resolves to a start tag rather than a text run."""
        return self.kind is not AnchorKind.TEXT_CONTEXT

    def describe(self) -> str:
        if self.kind is AnchorKind.ID:
            return f"#{self.value}"
        if self.kind is AnchorKind.STABLE_CLASS:
            return f".{self.value}"
        if self.kind is AnchorKind.MARKER:
            return f"marker {self.value}"
        preview = self.value if len(self.value) <= 40 else self.value[:40] + "..."
        return f"text {preview!r}"
