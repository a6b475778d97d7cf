"""Event types emitted while a change batch is applied."""

from dataclasses import dataclass

from sourcepatch.model.outcome import PatchOutcome, PolicyState


@dataclass(frozen=True)
class OperationApplied:
    index: int
    path: str
    outcome: PatchOutcome


@dataclass(frozen=True)
class OperationSkipped:
    index: int
    path: str
    state: PolicyState
    reason: str


@dataclass(frozen=True)
class MarkerInserted:
    index: int
    path: str
    marker_id: str


@dataclass(frozen=True)
class RuleRedirected:
    index: int
    stylesheet_id: str
    override_path: str
    selector_text: str


@dataclass(frozen=True)
class BatchCompleted:
    files_changed: int
    operations_applied: int
    operations_pending: int
