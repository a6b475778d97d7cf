"""Stylesheet rule patcher: rewrite one rule's span, never the whole sheet."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sourcepatch.model.operation import Declaration, RuleEdit
from sourcepatch.model.outcome import ErrorKind, PatchOutcome
from sourcepatch.model.source_text import SourceText, TextRange
from sourcepatch.stylesheet.model import StyleRule, Stylesheet, StylesheetInfo
from sourcepatch.stylesheet.parser import parse_stylesheet
from sourcepatch.stylesheet.serializer import (
    RuleLayout,
    detect_layout,
    merge_declarations,
    serialize_rule,
)

__all__ = ["apply_rule_edit", "locate_rule", "replace_rule", "upsert_rule"]

logger = logging.getLogger(__name__)


def locate_rule(
    sheet: Stylesheet, selector_text: str, rule_index: int | None = None
) -> StyleRule | PatchOutcome:
    """Find the rule an edit refers to, or the outcome explaining why not.

    A selector that occurs once identifies its rule.  Repeated identical
    selector blocks are told apart by the positional index recorded when
    the edit was made.
    """
    matches = sheet.find(selector_text)
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return PatchOutcome.not_found(f"No rule for selector {selector_text!r}")
    if rule_index is not None:
        for rule in matches:
            if rule.index == rule_index:
                return rule
    return PatchOutcome.ambiguous(
        len(matches), f"Selector {selector_text!r} appears in {len(matches)} rules"
    )


def replace_rule(
    source: SourceText,
    rule: StyleRule,
    declarations: Sequence[Declaration],
    layout: RuleLayout | None = None,
) -> PatchOutcome:
    """Replace *rule*'s span with a freshly serialized rule."""
    layout = layout or detect_layout(source.content, rule)
    text = serialize_rule(rule.selector_text, declarations, layout)
    patched = source.replace(rule.span, text)
    return PatchOutcome.applied(patched, TextRange(rule.span.start, rule.span.start + len(text)))


def apply_rule_edit(
    source: SourceText | None, edit: RuleEdit, info: StylesheetInfo | None
) -> PatchOutcome:
    """Write *edit* into the stylesheet it came from.

    Refuses (CROSS_ORIGIN_RULE) when the sheet's source cannot be
    retrieved, so the caller can redirect to an override rule instead.
    """
    if info is None:
        return PatchOutcome.not_found(f"Unknown stylesheet {edit.stylesheet_id!r}")
    if source is None or not info.patchable:
        return PatchOutcome.invalid(
            ErrorKind.CROSS_ORIGIN_RULE,
            f"Stylesheet {edit.stylesheet_id!r} has no retrievable same-origin source",
        )
    if info.path is not None and source.path != info.path:
        return PatchOutcome.invalid(
            ErrorKind.CROSS_ORIGIN_RULE,
            f"Rule belongs to {info.path}, refusing to write it into {source.path}",
        )

    found = locate_rule(parse_stylesheet(source.content), edit.selector_text, edit.rule_index)
    if isinstance(found, PatchOutcome):
        logger.info("Rule edit for %r in %s not applied: %s", edit.selector_text, source.path, found.message)
        return found
    logger.debug("Rewriting rule %d (%s) in %s", found.index, found.selector_text, source.path)
    return replace_rule(source, found, edit.declarations)


def upsert_rule(
    source: SourceText, selector_text: str, declarations: Sequence[Declaration]
) -> PatchOutcome:
    """Merge *declarations* into the last rule for *selector_text*, or append a new rule."""
    sheet = parse_stylesheet(source.content)
    existing = sheet.find(selector_text)
    if existing:
        rule = existing[-1]
        return replace_rule(source, rule, merge_declarations(rule.declarations, declarations))

    content = source.content
    if not content or content.endswith("\n\n"):
        separator = ""
    elif content.endswith("\n"):
        separator = "\n"
    else:
        separator = "\n\n"
    text = separator + serialize_rule(selector_text, declarations) + "\n"
    at = len(content)
    patched = source.replace(TextRange(at, at), text)
    return PatchOutcome.applied(patched, TextRange(at, at + len(text)))
