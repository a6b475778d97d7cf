"""Source text model: immutable file contents and half-open ranges into them."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace


@dataclass(frozen=True, order=True)
class TextRange:
    """Half-open ``[start, end)`` character offsets into one SourceText version."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range: [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def overlaps(self, other: TextRange) -> bool:
        """True if the two ranges share at least one offset."""
        return self.start < other.end and other.start < self.end

    def shifted(self, edit: TextRange, new_length: int) -> TextRange:
        """Map this range through a later edit that replaced *edit* with *new_length* chars.

        The two ranges must not overlap; a range that ends where the edit
        starts stays put, one that starts where the edit ends moves.
        """
        delta = new_length - edit.length
        if self.end <= edit.start:
            return self
        if self.start >= edit.end:
            return TextRange(self.start + delta, self.end + delta)
        raise ValueError(f"Range {self} overlaps edit {edit}")

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True)
class SourceText:
    """The text of one file at one version.

    Every patch produces a new instance; nothing mutates ``content``.
    """

    content: str
    path: str
    encoding: str = "utf-8"
    version: int = 0

    def __len__(self) -> int:
        return len(self.content)

    def slice(self, span: TextRange) -> str:
        return self.content[span.start : span.end]

    def replace(self, span: TextRange, text: str) -> SourceText:
        """Return the next version with *span* replaced by *text*."""
        if span.end > len(self.content):
            raise ValueError(f"Range {span} is outside {self.path} ({len(self.content)} chars)")
        content = self.content[: span.start] + text + self.content[span.end :]
        return replace(self, content=content, version=self.version + 1)

    @property
    def content_hash(self) -> str:
        """md5 of the encoded content, the digest the history collaborator stores."""
        return hashlib.md5(self.content.encode(self.encoding, errors="replace")).hexdigest()

    def same_content(self, other: SourceText) -> bool:
        return self.content == other.content
