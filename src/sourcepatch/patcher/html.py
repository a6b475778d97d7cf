"""HTML patcher: replace exactly one resolved span of a document's source text."""

from __future__ import annotations

import logging
import re

from sourcepatch.model.operation import ElementOperation, HtmlOperation, TextReplace
from sourcepatch.model.outcome import ErrorKind, PatchOutcome
from sourcepatch.model.source_text import SourceText, TextRange
from sourcepatch.resolver.scanner import Attribute, StartTag, parse_start_tag, scan_html

__all__ = ["apply_html_operation", "set_attribute", "locate_element"]

logger = logging.getLogger(__name__)

# Unquoted attribute values may not contain these (HTML "unquoted attribute value" syntax).
_UNSAFE_UNQUOTED_RE = re.compile(r"""[\s"'=<>`]""")


def apply_html_operation(
    source: SourceText, span: TextRange, operation: HtmlOperation
) -> PatchOutcome:
    """Apply *operation* at the resolved *span*.

    *span* must come from resolving the operation's anchor against this
    exact ``source``.  Failures are returned as outcomes, never raised.
    """
    if span.end > len(source):
        return PatchOutcome.invalid(
            ErrorKind.MALFORMED_REGION, f"Range {span} is outside {source.path}"
        )
    if isinstance(operation, TextReplace):
        if operation.anchor.targets_element:
            return _replace_element_text(source, span, operation)
        return _replace_text(source, span, operation)
    return _change_attribute(source, span, operation)


def _replace_text(source: SourceText, span: TextRange, op: TextReplace) -> PatchOutcome:
    current = source.slice(span)
    if current != op.old_text:
        logger.info(
            "Stale text anchor in %s at %s: expected %r, found %r",
            source.path,
            span,
            op.old_text,
            current,
        )
        return PatchOutcome.invalid(
            ErrorKind.STALE_ANCHOR,
            f"Expected {op.old_text!r} at {span} but found {current!r}",
        )
    patched = source.replace(span, op.new_text)
    return PatchOutcome.applied(patched, TextRange(span.start, span.start + len(op.new_text)))


def _replace_element_text(source: SourceText, span: TextRange, op: TextReplace) -> PatchOutcome:
    """Replace the one run of ``op.old_text`` inside the element whose start tag is *span*."""
    layout = scan_html(source.content)
    tag = layout.tag_starting_at(span.start)
    content = layout.content_span(tag) if tag is not None and tag.span == span else None
    if tag is None or content is None:
        return PatchOutcome.invalid(
            ErrorKind.MALFORMED_REGION,
            f"No element with content at {span} in {source.path}",
        )
    if not op.old_text:
        # Filling an empty element; anything already there means the edit is stale.
        return _replace_text(source, content, op)

    runs = layout.find_text(op.old_text, content)
    if len(runs) > 1:
        return PatchOutcome.ambiguous(
            len(runs), f"{op.old_text!r} occurs {len(runs)} times inside <{tag.name}>"
        )
    if not runs:
        logger.info("Stale element text in %s: %r not inside <%s> at %s", source.path, op.old_text, tag.name, span)
        return PatchOutcome.invalid(
            ErrorKind.STALE_ANCHOR,
            f"{op.old_text!r} is no longer inside <{tag.name}> at {span}",
        )
    return _replace_text(source, runs[0], op)


def locate_element(source: SourceText, span: TextRange) -> StartTag | None:
    """The start tag an element operation at *span* applies to.

    Element anchors resolve to the tag itself; text anchors resolve to a
    run of text, whose element is the innermost one containing the run.
    """
    if source.content.startswith("<", span.start):
        tag = parse_start_tag(source.content, span.start)
        return tag if tag is not None and tag.span == span else None
    layout = scan_html(source.content)
    if not layout.is_text(span.start):
        return None
    return layout.element_containing(span)


def _change_attribute(
    source: SourceText, span: TextRange, op: ElementOperation
) -> PatchOutcome:
    tag = locate_element(source, span)
    if tag is None:
        return PatchOutcome.invalid(
            ErrorKind.MALFORMED_REGION,
            f"No well-formed start tag around {span} in {source.path}",
        )
    notes = ""
    existing = tag.get(op.name)
    if getattr(op, "had_existing_attribute", None) is True and existing is None:
        notes = f"{op.name!r} was expected on <{tag.name}> but is not in the source"
    outcome = set_attribute(source, tag, op.name, op.new_value)
    if notes and outcome.succeeded:
        return PatchOutcome.applied(outcome.source, *outcome.applied_ranges, notes=notes)
    return outcome


def _quote_value(value: str, quote: str = '"') -> str:
    if quote == '"':
        return value.replace('"', "&quot;")
    if quote == "'":
        return value.replace("'", "&#39;")
    return value


def set_attribute(
    source: SourceText, tag: StartTag, name: str, value: str | None
) -> PatchOutcome:
    """Set, or with ``value=None`` remove, attribute *name* on *tag*.

    Only the attribute's value (or the attribute itself, when inserting or
    removing) is touched; attribute order and the tag's layout are kept.
    """
    attr = tag.get(name)
    if value is None:
        if attr is None:
            return PatchOutcome.applied(source, TextRange(tag.insert_at, tag.insert_at))
        return _remove_attribute(source, attr)

    if attr is None:
        text = f' {name}="{_quote_value(value)}"'
        patched = source.replace(TextRange(tag.insert_at, tag.insert_at), text)
        return PatchOutcome.applied(patched, TextRange(tag.insert_at, tag.insert_at + len(text)))

    if attr.value_span is None:
        # Valueless attribute such as ``hidden``: give it a value.
        text = f'="{_quote_value(value)}"'
        at = attr.span.end
        patched = source.replace(TextRange(at, at), text)
        return PatchOutcome.applied(patched, TextRange(at, at + len(text)))

    if attr.matches(value):
        return PatchOutcome.applied(source, attr.value_span)

    return _replace_value(source, attr, value)


def _replace_value(source: SourceText, attr: Attribute, value: str) -> PatchOutcome:
    assert attr.value_span is not None
    span = attr.value_span
    if attr.quote:
        text = _quote_value(value, attr.quote)
    elif value and not _UNSAFE_UNQUOTED_RE.search(value):
        text = value
    else:
        text = f'"{_quote_value(value)}"'
    patched = source.replace(span, text)
    return PatchOutcome.applied(patched, TextRange(span.start, span.start + len(text)))


def _remove_attribute(source: SourceText, attr: Attribute) -> PatchOutcome:
    start = attr.span.start
    while start > 0 and source.content[start - 1] in " \t":
        start -= 1
    span = TextRange(start, attr.span.end)
    patched = source.replace(span, "")
    return PatchOutcome.applied(patched, TextRange(start, start))
