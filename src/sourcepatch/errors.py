"""Error hierarchy for sourcepatch.

Operation-level failures (ambiguous or stale anchors, foreign stylesheets,
malformed markup) are values, see :mod:`sourcepatch.model.outcome`.  The
exceptions here are for caller contract violations and collaborator I/O.
"""
from __future__ import annotations


class SourcePatchError(Exception):
    """Base error for all sourcepatch errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class MissingSourceError(SourcePatchError):
    """A batch references a file whose source text was not supplied."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No source text loaded for {path!r}")
        self.path = path


class ProviderError(SourcePatchError):
    """A content provider or persistence sink failed to read or write a file."""

    def __init__(
        self,
        message: str,
        *,
        path: str = "",
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.path = path
        self.status_code = status_code


class BatchDecodeError(SourcePatchError):
    """A serialized operation or batch could not be decoded."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        if index is not None:
            message = f"operation {index}: {message}"
        super().__init__(message)
        self.index = index
