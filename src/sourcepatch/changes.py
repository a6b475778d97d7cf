"""Change recording: turn a stream of editor interactions into a batch.

Dragging a colour picker or typing into a text node produces many edits
of the same target in a row.  ``ChangeRecorder`` folds those into one
operation so the batch carries the net change only.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace

from sourcepatch.model.anchor import AnchorKind
from sourcepatch.model.batch import ChangeBatch
from sourcepatch.model.operation import (
    AttributeChange,
    Declaration,
    EditOperation,
    InlineStyleChange,
    RuleEdit,
    TextReplace,
)
from sourcepatch.stylesheet.parser import parse_declarations
from sourcepatch.stylesheet.serializer import serialize_declarations

__all__ = ["ChangeRecorder", "restyle"]


def restyle(
    style_text: str, property_name: str, value: str | None, *, important: bool = False
) -> str:
    """Return the inline ``style`` text with one property set, or removed when *value* is None.

    Other declarations keep their order; a new property goes last.

    >>> restyle("color: red; margin: 0", "color", "blue")
    'color: blue; margin: 0;'
    """
    if not property_name.startswith("--"):
        property_name = property_name.lower()
    declarations = list(parse_declarations(style_text))
    updated: list[Declaration] = []
    replaced = False
    for decl in declarations:
        if decl.property != property_name:
            updated.append(decl)
        elif value is not None and not replaced:
            updated.append(Declaration(property_name, value, important))
            replaced = True
    if value is not None and not replaced:
        updated.append(Declaration(property_name, value, important))
    return serialize_declarations(updated)


def _same_target(last: EditOperation, op: EditOperation) -> bool:
    if type(last) is not type(op) or last.path != op.path:
        return False
    if isinstance(op, AttributeChange):
        assert isinstance(last, AttributeChange)
        return (last.anchor, last.name, last.occurrence) == (op.anchor, op.name, op.occurrence)
    if isinstance(op, InlineStyleChange):
        assert isinstance(last, InlineStyleChange)
        return (last.anchor, last.occurrence) == (op.anchor, op.occurrence)
    if isinstance(op, RuleEdit):
        assert isinstance(last, RuleEdit)
        return (last.stylesheet_id, last.selector_text, last.rule_index) == (
            op.stylesheet_id,
            op.selector_text,
            op.rule_index,
        )
    assert isinstance(op, TextReplace) and isinstance(last, TextReplace)
    # The second edit must start from exactly the text the first one wrote.
    if op.old_text != last.new_text:
        return False
    if op.anchor.targets_element:
        return op.anchor == last.anchor
    return (
        last.anchor.kind is AnchorKind.TEXT_CONTEXT
        and op.anchor.value == last.new_text
        and (op.anchor.before, op.anchor.after) == (last.anchor.before, last.anchor.after)
    )


def _coalesce(last: EditOperation, op: EditOperation) -> EditOperation:
    if isinstance(last, TextReplace):
        assert isinstance(op, TextReplace)
        return replace(last, new_text=op.new_text)
    if isinstance(last, AttributeChange):
        # Whether the attribute existed is a fact about the file, not the latest edit.
        assert isinstance(op, AttributeChange)
        return replace(op, had_existing_attribute=last.had_existing_attribute)
    return op


class ChangeRecorder:
    """Collects operations in interaction order, merging consecutive edits of one target."""

    def __init__(self) -> None:
        self._operations: list[EditOperation] = []

    def record(self, op: EditOperation) -> EditOperation:
        """Add *op*; returns the operation now at the end of the list."""
        if self._operations and _same_target(self._operations[-1], op):
            merged = _coalesce(self._operations[-1], op)
            if isinstance(merged, TextReplace) and merged.old_text == merged.new_text:
                self._operations.pop()
            else:
                self._operations[-1] = merged
            return merged
        self._operations.append(op)
        return op

    def set_inline_style(
        self,
        current: InlineStyleChange,
        property_name: str,
        value: str | None,
    ) -> InlineStyleChange:
        """Record a property-level style edit as a full inline-style replacement."""
        text = restyle(current.style_declaration_text, property_name, value)
        op = replace(current, style_declaration_text=text)
        self.record(op)
        return op

    def discard_last(self) -> EditOperation | None:
        return self._operations.pop() if self._operations else None

    def clear(self) -> None:
        self._operations.clear()

    def batch(self) -> ChangeBatch:
        return ChangeBatch.of(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[EditOperation]:
        return iter(self._operations)
