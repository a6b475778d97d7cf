"""Patch service: reads files, applies a batch, writes the results back."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager

from sourcepatch.config import PatchConfig
from sourcepatch.errors import ProviderError
from sourcepatch.events.bus import EventBus
from sourcepatch.model.anchor import AnchorSpec
from sourcepatch.model.batch import BatchReport, ChangeBatch
from sourcepatch.model.operation import RuleEdit
from sourcepatch.model.source_text import SourceText
from sourcepatch.orchestrator.batch import apply_batch
from sourcepatch.policy.fallback import FallbackPolicy
from sourcepatch.providers.base import ContentProvider, PersistenceSink, StylesheetEnumerator
from sourcepatch.resolver.resolver import LocatorResult, resolve_anchor

logger = logging.getLogger(__name__)


class PatchService:
    """Applies change batches against live project files.

    Batches that touch the same file run one after another; batches on
    disjoint files run in parallel.  Each file is read once per batch and
    written once, after every operation on it has been folded in.
    """

    def __init__(
        self,
        provider: ContentProvider,
        sink: PersistenceSink | None = None,
        *,
        enumerator: StylesheetEnumerator | None = None,
        config: PatchConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config or PatchConfig()
        self.provider = provider
        self.sink = sink
        self.enumerator = enumerator
        self.event_bus = event_bus or EventBus()
        self.policy = FallbackPolicy(self.config)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, path: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(path, threading.Lock())

    @contextmanager
    def _locked(self, paths: list[str]) -> Iterator[None]:
        # Always acquire in sorted path order.
        with ExitStack() as stack:
            for path in sorted(set(paths)):
                stack.enter_context(self._lock_for(path))
            yield

    def paths_for(
        self, batch: ChangeBatch, enumerator: StylesheetEnumerator | None = None
    ) -> list[str]:
        """Every file *batch* may read or write."""
        enumerator = enumerator or self.enumerator
        paths = [op.path for op in batch if not isinstance(op, RuleEdit)]
        rule_edits = [op for op in batch if isinstance(op, RuleEdit)]
        for op in rule_edits:
            info = enumerator.lookup(op.stylesheet_id) if enumerator else None
            if info is not None and info.patchable:
                assert info.path is not None
                paths.append(info.path)
        if rule_edits and self.config.override_stylesheet:
            paths.append(self.config.override_stylesheet)
        return list(dict.fromkeys(paths))

    def _read_all(self, paths: list[str]) -> dict[str, SourceText]:
        sources: dict[str, SourceText] = {}
        for path in paths:
            try:
                sources[path] = self.provider.read(path)
            except ProviderError:
                if path != self.config.override_stylesheet:
                    raise
                logger.info("Override stylesheet %s does not exist yet; starting it empty", path)
                sources[path] = SourceText(content="", path=path, encoding=self.config.encoding)
        return sources

    def apply(
        self,
        batch: ChangeBatch,
        *,
        persist: bool = True,
        enumerator: StylesheetEnumerator | None = None,
    ) -> BatchReport:
        """Read, patch and (unless *persist* is false) write back every file of *batch*."""
        enumerator = enumerator or self.enumerator
        paths = self.paths_for(batch, enumerator)
        with self._locked(paths):
            sources = self._read_all(paths)
            report = apply_batch(
                sources,
                batch,
                config=self.config,
                enumerator=enumerator,
                policy=self.policy,
                events=self.event_bus,
            )
            if persist and self.sink is not None:
                for file_report in report.changed_files():
                    self.sink.write(file_report.path, file_report.final)
                    logger.info("Saved %s", file_report.path)
        return report

    def resolve(self, path: str, anchor: AnchorSpec) -> LocatorResult:
        """Locate *anchor* in the current text of *path*."""
        with self._locked([path]):
            source = self.provider.read(path)
        return resolve_anchor(source, anchor, self.config)
