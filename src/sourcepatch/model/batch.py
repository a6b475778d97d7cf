"""Batch model: ordered edit operations in, per-file reports out."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from sourcepatch.model.diagnostic import Diagnostic
from sourcepatch.model.operation import EditOperation
from sourcepatch.model.outcome import PatchOutcome, PolicyState
from sourcepatch.model.source_text import SourceText


@dataclass(frozen=True)
class ChangeBatch:
    """Edit operations in the order the user performed them."""

    operations: tuple[EditOperation, ...] = ()

    @classmethod
    def of(cls, operations: Iterable[EditOperation]) -> ChangeBatch:
        return cls(operations=tuple(operations))

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[EditOperation]:
        return iter(self.operations)

    @property
    def paths(self) -> list[str]:
        """Distinct ``op.path`` values in first-seen order."""
        return list(dict.fromkeys(op.path for op in self.operations))

    def group_by_path(
        self, target_of: Callable[[EditOperation], str] | None = None
    ) -> dict[str, list[tuple[int, EditOperation]]]:
        """Group operations by target file, keeping batch order within each file.

        *target_of* maps an operation to the file it writes; by default the
        operation's own ``path``.  Entries carry the operation's batch index.
        """
        target_of = target_of or (lambda op: op.path)
        groups: dict[str, list[tuple[int, EditOperation]]] = {}
        for index, op in enumerate(self.operations):
            groups.setdefault(target_of(op), []).append((index, op))
        return groups


@dataclass(frozen=True)
class OperationReport:
    """How one operation of a batch ended up."""

    index: int
    operation: EditOperation
    state: PolicyState
    outcome: PatchOutcome
    target_path: str
    diagnostic: Diagnostic | None = None
    marker_id: str | None = None

    @property
    def persisted(self) -> bool:
        return self.state in (PolicyState.APPLIED, PolicyState.BLOCKED) and self.outcome.succeeded

    @property
    def redirected(self) -> bool:
        return self.state is PolicyState.BLOCKED and self.outcome.succeeded


@dataclass
class FileReport:
    """Final text of one file plus the outcome of every operation that touched it."""

    path: str
    original: SourceText
    final: SourceText
    operations: list[OperationReport] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return not self.final.same_content(self.original)


@dataclass
class BatchReport:
    """Per-file results of one ``apply_batch`` call.

    ``unrouted`` holds reports for operations whose target file has no
    loaded text (a rule edit against a foreign stylesheet with no override
    configured), so there is no FileReport to attach them to.
    """

    files: dict[str, FileReport] = field(default_factory=dict)
    unrouted: list[OperationReport] = field(default_factory=list)

    @property
    def operations(self) -> list[OperationReport]:
        """Every operation report, in batch order."""
        reports = [r for f in self.files.values() for r in f.operations]
        reports.extend(self.unrouted)
        return sorted(reports, key=lambda r: r.index)

    def changed_files(self) -> list[FileReport]:
        return [f for f in self.files.values() if f.changed]

    def pending_operations(self) -> list[OperationReport]:
        """Operations that need the user to disambiguate their anchor."""
        return [r for r in self.operations if r.state is PolicyState.AMBIGUOUS_NEEDS_ANCHOR]

    def diagnostics(self) -> list[Diagnostic]:
        return [r.diagnostic for r in self.operations if r.diagnostic is not None]

    @property
    def all_persisted(self) -> bool:
        return all(r.persisted for r in self.operations)
