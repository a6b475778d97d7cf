"""Edit operations: one requested change each, produced by the visual editor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from sourcepatch.model.anchor import AnchorSpec


class OperationKind(StrEnum):
    TEXT_REPLACE = "text_replace"
    ATTRIBUTE_CHANGE = "attribute_change"
    INLINE_STYLE_CHANGE = "inline_style_change"
    RULE_EDIT = "rule_edit"


@dataclass(frozen=True)
class Declaration:
    """A single ``property: value`` pair of a style rule."""

    property: str
    value: str
    important: bool = False

    def __str__(self) -> str:
        suffix = " !important" if self.important else ""
        return f"{self.property}: {self.value}{suffix}"


@dataclass(frozen=True)
class TextReplace:
    path: str
    anchor: AnchorSpec
    old_text: str
    new_text: str

    kind = OperationKind.TEXT_REPLACE


@dataclass(frozen=True)
class AttributeChange:
    """Set (or, with ``new_value=None``, remove) one attribute of an element.

    ``occurrence`` is the element's 0-based position among the anchor's
    candidates in document order, as seen in the live tree.
    """

    path: str
    anchor: AnchorSpec
    name: str
    new_value: str | None
    had_existing_attribute: bool = False
    occurrence: int | None = None

    kind = OperationKind.ATTRIBUTE_CHANGE


@dataclass(frozen=True)
class InlineStyleChange:
    """Replace the full ``style`` attribute value; empty text removes it."""

    path: str
    anchor: AnchorSpec
    style_declaration_text: str
    occurrence: int | None = None

    kind = OperationKind.INLINE_STYLE_CHANGE

    @property
    def name(self) -> str:
        return "style"

    @property
    def new_value(self) -> str | None:
        return self.style_declaration_text or None


@dataclass(frozen=True)
class RuleEdit:
    """Rewrite one rule of a stylesheet.

    ``path`` is the HTML document whose element was being styled; the
    stylesheet file is looked up from ``stylesheet_id``.  ``target_anchor``
    names that element so a blocked edit can be redirected to an override
    rule.
    """

    path: str
    stylesheet_id: str
    selector_text: str
    declarations: tuple[Declaration, ...]
    rule_index: int | None = None
    target_anchor: AnchorSpec | None = None

    kind = OperationKind.RULE_EDIT


EditOperation = TextReplace | AttributeChange | InlineStyleChange | RuleEdit
HtmlOperation = TextReplace | AttributeChange | InlineStyleChange
ElementOperation = AttributeChange | InlineStyleChange
