from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class PatchConfig:
    marker_attribute: str = "data-sp-anchor"
    auto_remediate: bool = False  # insert markers for ambiguous element edits
    context_window_step: int = 16  # chars of before/after context added per narrowing round
    max_context_window: int = 256
    override_stylesheet: str | None = None  # same-origin path for redirected rule edits
    marker_id_length: int = 12
    encoding: str = "utf-8"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PatchConfig:
        """Build a config from a JSON-style mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(path: str | Path | None = None, **overrides: Any) -> PatchConfig:
    """Read a JSON config file (if given) and apply non-None *overrides* on top."""
    data: dict[str, Any] = {}
    if path is not None:
        data.update(json.loads(Path(path).read_text(encoding="utf-8")))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return PatchConfig.from_dict(data)
