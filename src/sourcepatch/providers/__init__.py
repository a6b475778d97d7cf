"""Collaborators that read, locate and write project files."""

from sourcepatch.providers.base import ContentProvider, PersistenceSink, StylesheetEnumerator
from sourcepatch.providers.http import HttpContentProvider
from sourcepatch.providers.local import (
    LocalContentProvider,
    LocalPersistenceSink,
    StaticStylesheetEnumerator,
)

__all__ = [
    "ContentProvider",
    "PersistenceSink",
    "StylesheetEnumerator",
    "HttpContentProvider",
    "LocalContentProvider",
    "LocalPersistenceSink",
    "StaticStylesheetEnumerator",
]
