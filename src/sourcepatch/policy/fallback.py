"""Fallback policy: what happens when an operation cannot be applied as asked.

State machine per operation::

    ATTEMPTING -> APPLIED                 unique anchor, patch succeeded
               -> AMBIGUOUS_NEEDS_ANCHOR  zero or several matches, nothing written
               -> BLOCKED                 rule edit on a foreign stylesheet
               -> REJECTED                stale anchor or malformed markup

With ``auto_remediate`` an ambiguous attribute/style edit is rescued by
tagging the element the user actually touched with a marker attribute and
re-resolving by that marker.  A blocked rule edit is redirected to an
override rule in the configured same-origin stylesheet when one is loaded.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from sourcepatch.config import PatchConfig
from sourcepatch.errors import MissingSourceError
from sourcepatch.model.anchor import AnchorKind, AnchorSpec
from sourcepatch.model.diagnostic import Diagnostic, Severity
from sourcepatch.model.operation import (
    AttributeChange,
    ElementOperation,
    HtmlOperation,
    InlineStyleChange,
    RuleEdit,
)
from sourcepatch.model.outcome import ErrorKind, PatchOutcome, PatchStatus, PolicyState
from sourcepatch.model.source_text import SourceText, TextRange
from sourcepatch.patcher.html import apply_html_operation, set_attribute
from sourcepatch.resolver.resolver import LocatorResult, find_candidates, resolve_anchor
from sourcepatch.resolver.scanner import HtmlLayout, StartTag, scan_html
from sourcepatch.stylesheet.model import StylesheetInfo
from sourcepatch.stylesheet.patcher import apply_rule_edit, upsert_rule
from sourcepatch.stylesheet.serializer import escape_identifier

__all__ = ["PolicyResult", "FallbackPolicy", "override_selector"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyResult:
    """Terminal state of one operation plus the outcome that produced it.

    ``target_path`` is the file the outcome's text belongs to; for a
    redirected rule edit that is the override stylesheet.
    """

    state: PolicyState
    outcome: PatchOutcome
    target_path: str
    diagnostic: Diagnostic | None = None
    marker_id: str | None = None


def override_selector(edit: RuleEdit, config: PatchConfig) -> str:
    """Selector for an override rule targeting the element a rule edit was made on."""
    anchor = edit.target_anchor
    if anchor is None or anchor.kind is AnchorKind.TEXT_CONTEXT:
        return edit.selector_text
    if anchor.kind is AnchorKind.ID:
        return f"#{escape_identifier(anchor.value)}"
    if anchor.kind is AnchorKind.STABLE_CLASS:
        return f".{escape_identifier(anchor.value)}"
    value = anchor.value.replace("\\", "\\\\").replace('"', '\\"')
    return f'[{config.marker_attribute}="{value}"]'


def _carry_forward(span: TextRange, before: SourceText, outcome: PatchOutcome) -> TextRange:
    """Map *span* (offsets in *before*) into the text of a later *outcome*."""
    applied = outcome.applied_range
    if applied is None or outcome.source is None:
        return span
    delta = len(outcome.source) - len(before)
    edit = TextRange(applied.start, applied.end - delta)
    if span.overlaps(edit):
        return TextRange(min(span.start, applied.start), max(span.end + delta, applied.end))
    return span.shifted(edit, applied.length)


class FallbackPolicy:
    """Applies single operations and decides what to do when they do not fit."""

    def __init__(
        self,
        config: PatchConfig | None = None,
        marker_factory: Callable[[], str] | None = None,
    ) -> None:
        self.config = config or PatchConfig()
        self._marker_factory = marker_factory or self._new_marker_id

    def _new_marker_id(self) -> str:
        return uuid.uuid4().hex[: self.config.marker_id_length]

    # --- HTML operations ------------------------------------------------------

    def attempt_html(
        self, source: SourceText, op: HtmlOperation, index: int | None = None
    ) -> PolicyResult:
        """Resolve *op*'s anchor in *source* and apply it if the match is unique."""
        layout = scan_html(source.content)
        located = resolve_anchor(source, op.anchor, self.config, layout)
        if located.found:
            assert located.range is not None
            outcome = apply_html_operation(source, located.range, op)
            return self._finish(source.path, outcome, index)

        if self.config.auto_remediate and isinstance(op, (AttributeChange, InlineStyleChange)):
            remediated = self._remediate(source, layout, op, located, index)
            if remediated is not None:
                return remediated

        if located.candidate_count:
            outcome = PatchOutcome.ambiguous(
                located.candidate_count,
                f"{op.anchor.describe()} matches {located.candidate_count} elements",
            )
        else:
            outcome = PatchOutcome.not_found(f"{op.anchor.describe()} matches nothing in {source.path}")
        return self._finish(source.path, outcome, index)

    def _remediation_targets(
        self, layout: HtmlLayout, anchor: AnchorSpec, located: LocatorResult
    ) -> list[StartTag | None]:
        if anchor.targets_element:
            return list(find_candidates(layout, anchor, self.config))
        return [layout.element_containing(span) for span in located.candidates]

    def _remediate(
        self,
        source: SourceText,
        layout: HtmlLayout,
        op: ElementOperation,
        located: LocatorResult,
        index: int | None,
    ) -> PolicyResult | None:
        """Tag the interacted element with a marker and apply *op* through it.

        Returns ``None`` when there is no way to tell which candidate the
        user meant; the caller then reports the ambiguity.
        """
        if op.occurrence is None:
            return None
        targets = self._remediation_targets(layout, op.anchor, located)
        if not 0 <= op.occurrence < len(targets):
            return None
        tag = targets[op.occurrence]
        if tag is None:
            return None

        marker_attr = self.config.marker_attribute
        existing = tag.get(marker_attr)
        marker_range: TextRange | None = None
        if existing is not None and existing.decoded_value:
            marker_id = existing.decoded_value
            marked = source
        else:
            marker_id = self._marker_factory()
            inserted = set_attribute(source, tag, marker_attr, marker_id)
            assert inserted.source is not None
            marked = inserted.source
            marker_range = inserted.applied_range

        relocated = resolve_anchor(marked, AnchorSpec.by_marker(marker_id), self.config)
        if not relocated.found:
            logger.warning("Marker %s on %s is not unique; leaving edit unresolved", marker_id, source.path)
            return None
        assert relocated.range is not None

        outcome = apply_html_operation(marked, relocated.range, op)
        if not outcome.succeeded:
            return self._finish(source.path, outcome, index)
        ranges = list(outcome.applied_ranges)
        if marker_range is not None:
            ranges.insert(0, _carry_forward(marker_range, marked, outcome))
            logger.info("Inserted %s=%r in %s to disambiguate %s", marker_attr, marker_id, source.path, op.anchor.describe())
        assert outcome.source is not None
        return PolicyResult(
            state=PolicyState.APPLIED,
            outcome=PatchOutcome.applied(outcome.source, *ranges, notes=outcome.notes),
            target_path=source.path,
            marker_id=marker_id,
        )

    # --- rule edits -----------------------------------------------------------

    def attempt_rule(
        self,
        sources: Mapping[str, SourceText],
        op: RuleEdit,
        info: StylesheetInfo | None,
        index: int | None = None,
    ) -> PolicyResult:
        """Apply *op* to its origin stylesheet, or redirect it to the override sheet.

        Raises:
            MissingSourceError: *info* names a same-origin file that is not
                in *sources*.
        """
        origin_path = info.path if info is not None else None
        origin = sources.get(origin_path) if origin_path else None
        if info is not None and info.patchable and origin is None:
            raise MissingSourceError(origin_path or op.stylesheet_id)
        outcome = apply_rule_edit(origin, op, info)
        if outcome.error is not ErrorKind.CROSS_ORIGIN_RULE:
            return self._finish(origin_path or op.stylesheet_id, outcome, index)

        foreign = origin_path or (info.href if info else None) or op.stylesheet_id
        override_path = self.config.override_stylesheet
        override = sources.get(override_path) if override_path else None
        if override_path is None or override is None:
            return PolicyResult(
                state=PolicyState.BLOCKED,
                outcome=outcome,
                target_path=foreign,
                diagnostic=Diagnostic.from_outcome(
                    outcome,
                    Severity.ERROR,
                    foreign,
                    index,
                    fix="Configure and load an override stylesheet to receive redirected rules.",
                ),
            )

        selector = override_selector(op, self.config)
        redirected = upsert_rule(override, selector, op.declarations)
        logger.info(
            "Redirected rule edit for %r on %s to %s as %r",
            op.selector_text,
            foreign,
            override_path,
            selector,
        )
        return PolicyResult(
            state=PolicyState.BLOCKED,
            outcome=redirected,
            target_path=override_path,
            diagnostic=Diagnostic(
                kind=ErrorKind.CROSS_ORIGIN_RULE,
                severity=Severity.INFO,
                message=f"{foreign} is not editable; wrote override rule {selector!r} to {override_path}",
                path=override_path,
                operation_index=index,
            ),
        )

    # --- helpers --------------------------------------------------------------

    def _finish(self, path: str, outcome: PatchOutcome, index: int | None) -> PolicyResult:
        if outcome.status is PatchStatus.APPLIED:
            return PolicyResult(state=PolicyState.APPLIED, outcome=outcome, target_path=path)
        if outcome.status is PatchStatus.INVALID:
            state = PolicyState.REJECTED
            severity = Severity.ERROR
            fix = "Reload the file and redo the edit." if outcome.error is ErrorKind.STALE_ANCHOR else None
        else:
            state = PolicyState.AMBIGUOUS_NEEDS_ANCHOR
            severity = Severity.WARNING
            fix = "Give the element a unique id or class, or allow automatic anchor markers."
        return PolicyResult(
            state=state,
            outcome=outcome,
            target_path=path,
            diagnostic=Diagnostic.from_outcome(outcome, severity, path, index, fix),
        )
