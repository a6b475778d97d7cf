"""sourcepatch model layer -- public type re-exports."""

from sourcepatch.model.anchor import AnchorKind, AnchorSpec
from sourcepatch.model.batch import BatchReport, ChangeBatch, FileReport, OperationReport
from sourcepatch.model.diagnostic import Diagnostic, Severity
from sourcepatch.model.operation import (
    AttributeChange,
    Declaration,
    EditOperation,
    InlineStyleChange,
    OperationKind,
    RuleEdit,
    TextReplace,
)
from sourcepatch.model.outcome import ErrorKind, PatchOutcome, PatchStatus, PolicyState
from sourcepatch.model.source_text import SourceText, TextRange

__all__ = [
    # source text
    "SourceText",
    "TextRange",
    # anchor
    "AnchorKind",
    "AnchorSpec",
    # operation
    "OperationKind",
    "Declaration",
    "TextReplace",
    "AttributeChange",
    "InlineStyleChange",
    "RuleEdit",
    "EditOperation",
    # outcome
    "PatchStatus",
    "ErrorKind",
    "PolicyState",
    "PatchOutcome",
    # diagnostic
    "Severity",
    "Diagnostic",
    # batch
    "ChangeBatch",
    "OperationReport",
    "FileReport",
    "BatchReport",
]
