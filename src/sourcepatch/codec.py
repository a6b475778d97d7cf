"""JSON codec: operations in, reports out, as plain dicts."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sourcepatch.errors import BatchDecodeError
from sourcepatch.model.anchor import AnchorKind, AnchorSpec
from sourcepatch.model.batch import BatchReport, ChangeBatch, OperationReport
from sourcepatch.model.diagnostic import Diagnostic
from sourcepatch.model.operation import (
    AttributeChange,
    Declaration,
    EditOperation,
    InlineStyleChange,
    OperationKind,
    RuleEdit,
    TextReplace,
)
from sourcepatch.model.outcome import PatchOutcome
from sourcepatch.model.source_text import SourceText
from sourcepatch.resolver.resolver import LocatorResult
from sourcepatch.stylesheet.model import StylesheetInfo
from sourcepatch.stylesheet.parser import parse_declarations

__all__ = [
    "anchor_to_dict",
    "anchor_from_dict",
    "operation_to_dict",
    "operation_from_dict",
    "batch_from_list",
    "outcome_to_dict",
    "diagnostic_to_dict",
    "report_to_dict",
    "stylesheet_infos_from_dict",
    "locator_result_to_dict",
    "decode_batch_document",
]


# --- anchors ----------------------------------------------------------------


def anchor_to_dict(anchor: AnchorSpec) -> dict[str, Any]:
    data: dict[str, Any] = {"kind": anchor.kind.value, "value": anchor.value}
    if anchor.kind is AnchorKind.TEXT_CONTEXT:
        data["before"] = anchor.before
        data["after"] = anchor.after
    return data


def anchor_from_dict(data: Any) -> AnchorSpec:
    if not isinstance(data, dict):
        raise BatchDecodeError(f"anchor must be an object, got {type(data).__name__}")
    try:
        kind = AnchorKind(data.get("kind"))
    except ValueError:
        raise BatchDecodeError(f"unknown anchor kind {data.get('kind')!r}") from None
    try:
        return AnchorSpec(
            kind=kind,
            value=str(data.get("value") or ""),
            before=str(data.get("before") or ""),
            after=str(data.get("after") or ""),
        )
    except ValueError as exc:
        raise BatchDecodeError(str(exc)) from exc


# --- operations -------------------------------------------------------------


def _declaration_to_dict(decl: Declaration) -> dict[str, Any]:
    return {"property": decl.property, "value": decl.value, "important": decl.important}


def _declarations_from(raw: Any) -> tuple[Declaration, ...]:
    if isinstance(raw, str):
        return parse_declarations(raw)
    if not isinstance(raw, list):
        raise BatchDecodeError("declarations must be a list or a CSS declaration string")
    decls: list[Declaration] = []
    for item in raw:
        if not isinstance(item, dict) or "property" not in item or "value" not in item:
            raise BatchDecodeError(f"bad declaration {item!r}")
        decls.append(
            Declaration(
                property=str(item["property"]),
                value=str(item["value"]),
                important=bool(item.get("important", False)),
            )
        )
    return tuple(decls)


def operation_to_dict(op: EditOperation) -> dict[str, Any]:
    data: dict[str, Any] = {"kind": op.kind.value, "path": op.path}
    if isinstance(op, TextReplace):
        data.update(anchor=anchor_to_dict(op.anchor), old_text=op.old_text, new_text=op.new_text)
    elif isinstance(op, AttributeChange):
        data.update(
            anchor=anchor_to_dict(op.anchor),
            name=op.name,
            new_value=op.new_value,
            had_existing_attribute=op.had_existing_attribute,
            occurrence=op.occurrence,
        )
    elif isinstance(op, InlineStyleChange):
        data.update(
            anchor=anchor_to_dict(op.anchor),
            style_declaration_text=op.style_declaration_text,
            occurrence=op.occurrence,
        )
    else:
        data.update(
            stylesheet_id=op.stylesheet_id,
            selector_text=op.selector_text,
            declarations=[_declaration_to_dict(d) for d in op.declarations],
            rule_index=op.rule_index,
            target_anchor=anchor_to_dict(op.target_anchor) if op.target_anchor else None,
        )
    return data


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise BatchDecodeError(f"missing field {key!r}")
    return data[key]


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise BatchDecodeError(f"{key} must be an integer")
    return value


def operation_from_dict(data: Any) -> EditOperation:
    """Build an operation from its dict form. Raises BatchDecodeError."""
    if not isinstance(data, dict):
        raise BatchDecodeError(f"operation must be an object, got {type(data).__name__}")
    try:
        kind = OperationKind(data.get("kind"))
    except ValueError:
        raise BatchDecodeError(f"unknown operation kind {data.get('kind')!r}") from None
    path = str(_require(data, "path"))

    if kind is OperationKind.TEXT_REPLACE:
        return TextReplace(
            path=path,
            anchor=anchor_from_dict(_require(data, "anchor")),
            old_text=str(_require(data, "old_text")),
            new_text=str(_require(data, "new_text")),
        )
    if kind is OperationKind.ATTRIBUTE_CHANGE:
        new_value = _require(data, "new_value")
        return AttributeChange(
            path=path,
            anchor=anchor_from_dict(_require(data, "anchor")),
            name=str(_require(data, "name")),
            new_value=None if new_value is None else str(new_value),
            had_existing_attribute=bool(data.get("had_existing_attribute", False)),
            occurrence=_optional_int(data, "occurrence"),
        )
    if kind is OperationKind.INLINE_STYLE_CHANGE:
        return InlineStyleChange(
            path=path,
            anchor=anchor_from_dict(_require(data, "anchor")),
            style_declaration_text=str(data.get("style_declaration_text") or ""),
            occurrence=_optional_int(data, "occurrence"),
        )
    target = data.get("target_anchor")
    return RuleEdit(
        path=path,
        stylesheet_id=str(_require(data, "stylesheet_id")),
        selector_text=str(_require(data, "selector_text")),
        declarations=_declarations_from(data.get("declarations", [])),
        rule_index=_optional_int(data, "rule_index"),
        target_anchor=anchor_from_dict(target) if target is not None else None,
    )


def batch_from_list(items: Iterable[Any]) -> ChangeBatch:
    """Decode a JSON list of operations, tagging errors with the failing position."""
    ops: list[EditOperation] = []
    for index, item in enumerate(items):
        try:
            ops.append(operation_from_dict(item))
        except BatchDecodeError as exc:
            raise BatchDecodeError(str(exc), index=index) from exc
    return ChangeBatch.of(ops)


# --- reports ----------------------------------------------------------------


def outcome_to_dict(outcome: PatchOutcome) -> dict[str, Any]:
    return {
        "status": outcome.status.value,
        "applied_ranges": [[r.start, r.end] for r in outcome.applied_ranges],
        "candidate_count": outcome.candidate_count,
        "error": outcome.error.value if outcome.error else None,
        "message": outcome.message,
        "notes": outcome.notes,
    }


def diagnostic_to_dict(diagnostic: Diagnostic) -> dict[str, Any]:
    return {
        "kind": diagnostic.kind.value,
        "severity": diagnostic.severity.value,
        "message": diagnostic.message,
        "path": diagnostic.path,
        "operation_index": diagnostic.operation_index,
        "fix": diagnostic.fix,
    }


def _operation_report_to_dict(report: OperationReport) -> dict[str, Any]:
    return {
        "index": report.index,
        "kind": report.operation.kind.value,
        "state": report.state.value,
        "target_path": report.target_path,
        "marker_id": report.marker_id,
        "outcome": outcome_to_dict(report.outcome),
        "diagnostic": diagnostic_to_dict(report.diagnostic) if report.diagnostic else None,
    }


def report_to_dict(report: BatchReport, *, include_content: bool = True) -> dict[str, Any]:
    """Serialize a BatchReport; *include_content* adds each changed file's final text."""
    files: dict[str, Any] = {}
    for path, file_report in report.files.items():
        entry: dict[str, Any] = {
            "changed": file_report.changed,
            "version": file_report.final.version,
            "content_hash": file_report.final.content_hash,
            "operations": [r.index for r in file_report.operations],
        }
        if include_content and file_report.changed:
            entry["content"] = file_report.final.content
        files[path] = entry
    return {
        "files": files,
        "operations": [_operation_report_to_dict(r) for r in report.operations],
        "pending": [r.index for r in report.pending_operations()],
        "all_persisted": report.all_persisted,
    }


# --- stylesheets ------------------------------------------------------------


def stylesheet_infos_from_dict(data: Any) -> dict[str, StylesheetInfo]:
    """Decode ``{stylesheet_id: {"path": ..., "href": ..., "same_origin": ...}}``."""
    if not isinstance(data, dict):
        raise BatchDecodeError("stylesheets must be an object keyed by stylesheet id")
    infos: dict[str, StylesheetInfo] = {}
    for stylesheet_id, entry in data.items():
        if not isinstance(entry, dict):
            raise BatchDecodeError(f"stylesheet {stylesheet_id!r} must be an object")
        path = entry.get("path")
        infos[stylesheet_id] = StylesheetInfo(
            stylesheet_id=stylesheet_id,
            path=str(path) if path is not None else None,
            href=entry.get("href"),
            same_origin=bool(entry.get("same_origin", True)),
        )
    return infos


def locator_result_to_dict(result: LocatorResult, source: SourceText | None = None) -> dict[str, Any]:
    """Serialize a resolver result; with *source*, include the matched text."""
    data: dict[str, Any] = {
        "status": result.status.value,
        "range": [result.range.start, result.range.end] if result.range else None,
        "candidates": [[c.start, c.end] for c in result.candidates],
    }
    if source is not None and result.range is not None:
        data["text"] = source.slice(result.range)
    return data


def decode_batch_document(data: Any) -> tuple[ChangeBatch, dict[str, StylesheetInfo] | None]:
    """Decode a batch document: a bare operation list, or an object with
    ``operations`` and optional ``stylesheets``."""
    if isinstance(data, list):
        return batch_from_list(data), None
    if not isinstance(data, dict) or not isinstance(data.get("operations"), list):
        raise BatchDecodeError("expected a list of operations or an object with an 'operations' list")
    stylesheets = data.get("stylesheets")
    infos = stylesheet_infos_from_dict(stylesheets) if stylesheets is not None else None
    return batch_from_list(data["operations"]), infos
