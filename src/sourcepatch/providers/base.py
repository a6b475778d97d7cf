from __future__ import annotations

from typing import Protocol

from sourcepatch.model.source_text import SourceText
from sourcepatch.stylesheet.model import StylesheetInfo


class ContentProvider(Protocol):
    """Protocol for reading the current on-disk text of project files."""

    def read(self, path: str) -> SourceText:
        """Return the text of *path*. Raises ProviderError if it cannot be read."""
        ...


class StylesheetEnumerator(Protocol):
    """Protocol for mapping a live stylesheet id to its source file."""

    def lookup(self, stylesheet_id: str) -> StylesheetInfo | None: ...


class PersistenceSink(Protocol):
    """Protocol for writing patched text back to storage."""

    def write(self, path: str, source: SourceText) -> None: ...
