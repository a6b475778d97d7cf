"""Change batch orchestrator: applies a batch of edits across files."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sourcepatch.config import PatchConfig
from sourcepatch.errors import MissingSourceError
from sourcepatch.events import types as event_types
from sourcepatch.events.bus import EventBus
from sourcepatch.model.batch import BatchReport, ChangeBatch, FileReport, OperationReport
from sourcepatch.model.operation import RuleEdit
from sourcepatch.model.outcome import PolicyState
from sourcepatch.model.source_text import SourceText
from sourcepatch.policy.fallback import FallbackPolicy, PolicyResult
from sourcepatch.providers.base import StylesheetEnumerator

__all__ = ["apply_batch", "load_sources"]

logger = logging.getLogger(__name__)


def load_sources(
    sources: Mapping[str, SourceText | str], encoding: str = "utf-8"
) -> dict[str, SourceText]:
    """Normalize a ``path -> text`` mapping; bare strings become version 0."""
    loaded: dict[str, SourceText] = {}
    for path, value in sources.items():
        if isinstance(value, SourceText):
            loaded[path] = value
        else:
            loaded[path] = SourceText(content=value, path=path, encoding=encoding)
    return loaded


def _check_sources(
    batch: ChangeBatch,
    working: Mapping[str, SourceText],
    enumerator: StylesheetEnumerator | None,
) -> None:
    for op in batch:
        if not isinstance(op, RuleEdit):
            if op.path not in working:
                raise MissingSourceError(op.path)
            continue
        # Only sheets without retrievable source may fall through to the override.
        info = enumerator.lookup(op.stylesheet_id) if enumerator is not None else None
        if info is not None and info.patchable and info.path not in working:
            assert info.path is not None
            raise MissingSourceError(info.path)


def _emit(bus: EventBus, report: OperationReport) -> None:
    if not bus.has_listeners():
        return
    if report.state is PolicyState.APPLIED:
        if report.marker_id is not None:
            bus.emit(event_types.MarkerInserted(index=report.index, path=report.target_path, marker_id=report.marker_id))
        bus.emit(event_types.OperationApplied(index=report.index, path=report.target_path, outcome=report.outcome))
    elif report.redirected:
        op = report.operation
        assert isinstance(op, RuleEdit)
        bus.emit(
            event_types.RuleRedirected(
                index=report.index,
                stylesheet_id=op.stylesheet_id,
                override_path=report.target_path,
                selector_text=op.selector_text,
            )
        )
        bus.emit(event_types.OperationApplied(index=report.index, path=report.target_path, outcome=report.outcome))
    else:
        bus.emit(
            event_types.OperationSkipped(
                index=report.index,
                path=report.target_path,
                state=report.state,
                reason=report.outcome.message,
            )
        )


def apply_batch(
    sources: Mapping[str, SourceText | str],
    batch: ChangeBatch,
    *,
    config: PatchConfig | None = None,
    enumerator: StylesheetEnumerator | None = None,
    policy: FallbackPolicy | None = None,
    events: EventBus | None = None,
) -> BatchReport:
    """Apply every operation of *batch* to *sources* and report per file.

    Operations are folded left to right against the latest text of the
    file they write, so later operations see earlier edits.  An operation
    that cannot be applied leaves its file untouched and does not stop the
    rest of the batch.

    Raises:
        MissingSourceError: an HTML operation names a file not in *sources*,
            or a rule edit targets a same-origin stylesheet whose text is
            not in *sources*.
    """
    config = config or (policy.config if policy is not None else PatchConfig())
    policy = policy or FallbackPolicy(config)
    bus = events or EventBus()

    originals = load_sources(sources, config.encoding)
    _check_sources(batch, originals, enumerator)
    working = dict(originals)
    reports: list[OperationReport] = []

    for index, op in enumerate(batch):
        if isinstance(op, RuleEdit):
            info = enumerator.lookup(op.stylesheet_id) if enumerator is not None else None
            result: PolicyResult = policy.attempt_rule(working, op, info, index)
        else:
            result = policy.attempt_html(working[op.path], op, index)

        if result.outcome.succeeded and result.outcome.source is not None:
            working[result.target_path] = result.outcome.source

        report = OperationReport(
            index=index,
            operation=op,
            state=result.state,
            outcome=result.outcome,
            target_path=result.target_path,
            diagnostic=result.diagnostic,
            marker_id=result.marker_id,
        )
        logger.debug("op %d (%s) on %s -> %s", index, op.kind, result.target_path, result.state.value)
        reports.append(report)
        _emit(bus, report)

    batch_report = BatchReport()
    for report in reports:
        path = report.target_path
        if path not in originals:
            batch_report.unrouted.append(report)
            continue
        if path not in batch_report.files:
            batch_report.files[path] = FileReport(path=path, original=originals[path], final=working[path])
        batch_report.files[path].operations.append(report)

    applied = sum(1 for r in reports if r.persisted)
    pending = len(batch_report.pending_operations())
    changed = len(batch_report.changed_files())
    logger.info(
        "Applied %d of %d operations across %d files (%d need an anchor)",
        applied,
        len(reports),
        changed,
        pending,
    )
    bus.emit(
        event_types.BatchCompleted(
            files_changed=changed,
            operations_applied=applied,
            operations_pending=pending,
        )
    )
    return batch_report
