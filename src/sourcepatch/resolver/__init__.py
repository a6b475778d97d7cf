from sourcepatch.resolver.resolver import LocatorResult, LocatorStatus, find_candidates, resolve_anchor
from sourcepatch.resolver.scanner import Attribute, HtmlLayout, StartTag, parse_start_tag, scan_html

__all__ = [
    "resolve_anchor",
    "find_candidates",
    "LocatorResult",
    "LocatorStatus",
    "scan_html",
    "parse_start_tag",
    "HtmlLayout",
    "StartTag",
    "Attribute",
]
