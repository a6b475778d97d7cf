"""sourcepatch - apply visual-editor edits to HTML and CSS source text."""

__version__ = "0.1.0"

from sourcepatch.config import PatchConfig  # noqa: E402
from sourcepatch.model import (  # noqa: E402
    AnchorSpec,
    BatchReport,
    ChangeBatch,
    PatchOutcome,
    SourceText,
    TextRange,
)
from sourcepatch.orchestrator.batch import apply_batch  # noqa: E402
from sourcepatch.resolver.resolver import resolve_anchor  # noqa: E402

__all__ = [
    "__version__",
    "PatchConfig",
    "AnchorSpec",
    "BatchReport",
    "ChangeBatch",
    "PatchOutcome",
    "SourceText",
    "TextRange",
    "apply_batch",
    "resolve_anchor",
]
