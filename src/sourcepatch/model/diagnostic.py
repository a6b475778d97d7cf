"""Diagnostic model: why an edit did not persist, and what the user can do about it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sourcepatch.model.outcome import ErrorKind, PatchOutcome


class Severity(Enum):
    ERROR = "ERROR"  # the edit was dropped
    WARNING = "WARNING"  # the edit waits for a better anchor
    INFO = "INFO"  # the edit persisted somewhere other than asked


@dataclass(frozen=True)
class Diagnostic:
    """A finding about one operation of a batch.

    ``path`` is the file the operation ended up targeting and
    ``operation_index`` its position in the batch.  ``fix`` is a
    suggestion the editor can show next to the edit.
    """

    kind: ErrorKind
    severity: Severity
    message: str
    path: str | None = None
    operation_index: int | None = None
    fix: str | None = None

    @classmethod
    def from_outcome(
        cls,
        outcome: PatchOutcome,
        severity: Severity,
        path: str,
        index: int | None = None,
        fix: str | None = None,
    ) -> Diagnostic:
        return cls(
            kind=outcome.error or ErrorKind.AMBIGUOUS_ANCHOR,
            severity=severity,
            message=outcome.message,
            path=path,
            operation_index=index,
            fix=fix,
        )

    @property
    def needs_attention(self) -> bool:
        """True unless the diagnostic only reports a redirect."""
        return self.severity is not Severity.INFO

    def __str__(self) -> str:
        where = self.path or ""
        if self.operation_index is not None:
            where = f"{where} op={self.operation_index}".strip()
        return f"{self.severity.value} [{where}]: {self.message}" if where else f"{self.severity.value}: {self.message}"
