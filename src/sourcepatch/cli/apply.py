"""CLI command: sourcepatch apply -- apply a JSON change batch to a project."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from sourcepatch.codec import decode_batch_document, report_to_dict
from sourcepatch.config import load_config
from sourcepatch.errors import BatchDecodeError, SourcePatchError
from sourcepatch.model.operation import RuleEdit
from sourcepatch.model.outcome import PolicyState
from sourcepatch.providers.local import (
    LocalContentProvider,
    LocalPersistenceSink,
    StaticStylesheetEnumerator,
)
from sourcepatch.service import PatchService

_STATE_LABELS = {
    PolicyState.APPLIED: "applied",
    PolicyState.AMBIGUOUS_NEEDS_ANCHOR: "needs anchor",
    PolicyState.BLOCKED: "blocked",
    PolicyState.REJECTED: "rejected",
}


@click.command()
@click.argument("batch_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Project directory the batch's paths are relative to",
)
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), default=None, help="JSON config file")
@click.option("--override-stylesheet", default=None, help="Same-origin stylesheet that receives redirected rule edits")
@click.option("--auto-remediate", is_flag=True, help="Insert anchor markers for ambiguous element edits")
@click.option("--document", default=None, help="HTML file whose <link> tags list the page's stylesheets")
@click.option("--document-url", default="http://localhost/", show_default=True, help="URL the document is served from")
@click.option("--dry-run", is_flag=True, help="Report what would change without writing files")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def apply(
    batch_file: str,
    root: str,
    config_file: str | None,
    override_stylesheet: str | None,
    auto_remediate: bool,
    document: str | None,
    document_url: str,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Apply the edit operations in BATCH_FILE to the files under --root.

    Exits with code 0 when every operation was written, 1 otherwise.
    """
    config = load_config(
        config_file,
        override_stylesheet=override_stylesheet,
        auto_remediate=True if auto_remediate else None,
    )

    try:
        batch, infos = decode_batch_document(json.loads(Path(batch_file).read_text(encoding="utf-8")))
    except (ValueError, BatchDecodeError) as exc:
        click.echo(f"Invalid batch: {exc}", err=True)
        sys.exit(2)

    provider = LocalContentProvider(root, encoding=config.encoding)
    enumerator = StaticStylesheetEnumerator(infos)
    try:
        if document:
            discovered = StaticStylesheetEnumerator.from_document(provider.read(document), document_url)
            for sheet_id in [op.stylesheet_id for op in batch if isinstance(op, RuleEdit)]:
                info = discovered.lookup(sheet_id)
                if info is not None and enumerator.lookup(sheet_id) is None:
                    enumerator.add(info)

        service = PatchService(provider, LocalPersistenceSink(root), enumerator=enumerator, config=config)
        report = service.apply(batch, persist=not dry_run)
    except SourcePatchError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(report_to_dict(report, include_content=False), indent=2))
    else:
        for op_report in report.operations:
            label = _STATE_LABELS.get(op_report.state, op_report.state.value)
            if op_report.redirected:
                label = "redirected"
            line = f"  [{op_report.index}] {label:<12} {op_report.target_path}"
            if op_report.marker_id:
                line += f"  (marker {op_report.marker_id})"
            click.echo(line)
            if op_report.diagnostic is not None and op_report.diagnostic.needs_attention:
                click.echo(f"      {op_report.diagnostic.message}")
                if op_report.diagnostic.fix:
                    click.echo(f"      fix: {op_report.diagnostic.fix}")

        click.echo()
        changed = [f.path for f in report.changed_files()]
        verb = "Would change" if dry_run else "Changed"
        click.echo(f"{verb} {len(changed)} file(s): {', '.join(changed) if changed else '-'}")
        pending = report.pending_operations()
        if pending:
            click.echo(f"{len(pending)} operation(s) need a more specific anchor")

    sys.exit(0 if report.all_persisted else 1)
