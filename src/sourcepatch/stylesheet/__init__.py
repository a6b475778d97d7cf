from sourcepatch.stylesheet.parser import parse_declarations, parse_stylesheet
from sourcepatch.stylesheet.model import StyleRule, Stylesheet, StylesheetInfo, normalize_selector
from sourcepatch.stylesheet.patcher import apply_rule_edit, locate_rule, upsert_rule
from sourcepatch.stylesheet.serializer import serialize_declarations, serialize_rule

__all__ = [
    "parse_stylesheet",
    "parse_declarations",
    "Stylesheet",
    "StyleRule",
    "StylesheetInfo",
    "normalize_selector",
    "apply_rule_edit",
    "locate_rule",
    "upsert_rule",
    "serialize_rule",
    "serialize_declarations",
]
