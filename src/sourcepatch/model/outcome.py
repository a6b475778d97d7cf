"""Outcome model: what happened when one operation was attempted."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sourcepatch.model.source_text import SourceText, TextRange


class PatchStatus(Enum):
    """Possible results of a patch attempt."""

    APPLIED = "applied"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


class ErrorKind(Enum):
    """Operation-scoped failure categories."""

    AMBIGUOUS_ANCHOR = "ambiguous_anchor"
    STALE_ANCHOR = "stale_anchor"
    CROSS_ORIGIN_RULE = "cross_origin_rule"
    MALFORMED_REGION = "malformed_region"


class PolicyState(Enum):
    """States of the fallback policy for one operation.

    ``ATTEMPTING`` is transient; the others are terminal.
    """

    ATTEMPTING = "attempting"
    APPLIED = "applied"
    AMBIGUOUS_NEEDS_ANCHOR = "ambiguous_needs_anchor"
    BLOCKED = "blocked"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PatchOutcome:
    """Result of applying one operation to one SourceText.

    ``applied_ranges`` are offsets into ``source`` (the post-patch text).
    """

    status: PatchStatus
    source: SourceText | None = None
    applied_ranges: tuple[TextRange, ...] = ()
    candidate_count: int = 0
    error: ErrorKind | None = None
    message: str = ""
    notes: str = ""

    @classmethod
    def applied(
        cls, source: SourceText, *ranges: TextRange, notes: str = ""
    ) -> PatchOutcome:
        return cls(status=PatchStatus.APPLIED, source=source, applied_ranges=ranges, notes=notes)

    @classmethod
    def ambiguous(cls, candidate_count: int, message: str = "") -> PatchOutcome:
        return cls(
            status=PatchStatus.AMBIGUOUS,
            candidate_count=candidate_count,
            error=ErrorKind.AMBIGUOUS_ANCHOR,
            message=message or f"Anchor matched {candidate_count} locations",
        )

    @classmethod
    def not_found(cls, message: str = "") -> PatchOutcome:
        return cls(
            status=PatchStatus.NOT_FOUND,
            error=ErrorKind.AMBIGUOUS_ANCHOR,
            message=message or "Anchor matched no location",
        )

    @classmethod
    def invalid(cls, error: ErrorKind, message: str) -> PatchOutcome:
        return cls(status=PatchStatus.INVALID, error=error, message=message)

    @property
    def succeeded(self) -> bool:
        return self.status is PatchStatus.APPLIED

    @property
    def applied_range(self) -> TextRange | None:
        """The primary (last) applied range, if any."""
        return self.applied_ranges[-1] if self.applied_ranges else None
