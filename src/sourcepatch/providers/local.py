from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import urljoin, urlsplit

from sourcepatch.errors import ProviderError
from sourcepatch.model.source_text import SourceText
from sourcepatch.resolver.scanner import scan_html
from sourcepatch.stylesheet.model import StylesheetInfo

logger = logging.getLogger(__name__)


def _resolve_under(root: Path, path: str) -> Path:
    target = (root / path.lstrip("/")).resolve()
    if target != root and root not in target.parents:
        raise ProviderError(f"Path escapes project root: {path!r}", path=path)
    return target


class LocalContentProvider:
    """Reads project files from a directory on disk."""

    def __init__(self, root: str | Path, encoding: str = "utf-8") -> None:
        self._root = Path(root).resolve()
        self._encoding = encoding

    def read(self, path: str) -> SourceText:
        target = _resolve_under(self._root, path)
        try:
            content = target.read_text(encoding=self._encoding)
        except FileNotFoundError as exc:
            raise ProviderError(f"No such file: {path!r}", path=path, status_code=404, cause=exc) from exc
        except OSError as exc:
            raise ProviderError(f"Cannot read {path!r}: {exc}", path=path, cause=exc) from exc
        return SourceText(content=content, path=path, encoding=self._encoding)


class LocalPersistenceSink:
    """Writes patched files back under a directory on disk."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def write(self, path: str, source: SourceText) -> None:
        target = _resolve_under(self._root, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps the file's own line endings
            with open(target, "w", encoding=source.encoding, newline="") as fh:
                fh.write(source.content)
        except OSError as exc:
            raise ProviderError(f"Cannot write {path!r}: {exc}", path=path, cause=exc) from exc
        logger.debug("Wrote %s (%d chars)", path, len(source))


def _origin(url: str) -> tuple[str, str]:
    parts = urlsplit(url)
    return parts.scheme.lower(), parts.netloc.lower()


class StaticStylesheetEnumerator:
    """Stylesheet lookup backed by a fixed ``stylesheet_id -> StylesheetInfo`` table."""

    def __init__(self, sheets: Mapping[str, StylesheetInfo] | None = None) -> None:
        self._sheets = dict(sheets or {})

    def lookup(self, stylesheet_id: str) -> StylesheetInfo | None:
        return self._sheets.get(stylesheet_id)

    def add(self, info: StylesheetInfo) -> None:
        self._sheets[info.stylesheet_id] = info

    def __len__(self) -> int:
        return len(self._sheets)

    @classmethod
    def from_document(cls, source: SourceText, document_url: str) -> StaticStylesheetEnumerator:
        """Discover stylesheets referenced by an HTML document.

        ``<link rel="stylesheet">`` sheets get their ``href`` as id; those
        on the document's origin map to a project path, the rest are
        foreign.  Each ``<style>`` block gets the id ``"<path>#style<n>"``
        and is not patchable as a separate file.
        """
        layout = scan_html(source.content)
        doc_origin = _origin(document_url)
        enumerator = cls()
        style_count = 0
        for tag in layout.start_tags:
            if tag.name == "style":
                enumerator.add(
                    StylesheetInfo(
                        stylesheet_id=f"{source.path}#style{style_count}",
                        path=None,
                        same_origin=False,
                    )
                )
                style_count += 1
                continue
            if tag.name != "link":
                continue
            rel = tag.get("rel")
            href = tag.get("href")
            if rel is None or href is None or "stylesheet" not in rel.decoded_value.lower().split():
                continue
            href_value = href.decoded_value
            absolute = urljoin(document_url, href_value)
            same_origin = _origin(absolute) == doc_origin
            path = urlsplit(absolute).path.lstrip("/") if same_origin else None
            enumerator.add(
                StylesheetInfo(stylesheet_id=href_value, path=path, href=absolute, same_origin=same_origin)
            )
        logger.debug("Found %d stylesheets in %s", len(enumerator), source.path)
        return enumerator
