"""CLI command: sourcepatch resolve -- show where an anchor lands in a file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from sourcepatch.config import load_config
from sourcepatch.model.anchor import AnchorSpec
from sourcepatch.model.source_text import SourceText
from sourcepatch.resolver.resolver import resolve_anchor


def _line_col(text: str, offset: int) -> tuple[int, int]:
    line = text.count("\n", 0, offset) + 1
    col = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, col


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--id", "element_id", default=None, help="Element id")
@click.option("--class", "class_name", default=None, help="Stable class token")
@click.option("--marker", default=None, help="Anchor marker id")
@click.option("--text", default=None, help="Literal text run")
@click.option("--before", default="", help="Text expected before --text")
@click.option("--after", default="", help="Text expected after --text")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), default=None, help="JSON config file")
def resolve(
    file: str,
    element_id: str | None,
    class_name: str | None,
    marker: str | None,
    text: str | None,
    before: str,
    after: str,
    config_file: str | None,
) -> None:
    """Resolve one anchor in FILE and print every candidate location.

    Exits with code 0 when the anchor is unique, 1 otherwise.
    """
    given = [v for v in (element_id, class_name, marker, text) if v]
    if len(given) != 1:
        click.echo("Give exactly one of --id, --class, --marker or --text", err=True)
        sys.exit(2)

    if element_id:
        anchor = AnchorSpec.by_id(element_id)
    elif class_name:
        anchor = AnchorSpec.by_stable_class(class_name)
    elif marker:
        anchor = AnchorSpec.by_marker(marker)
    else:
        assert text is not None
        anchor = AnchorSpec.by_text_context(text, before, after)

    config = load_config(config_file)
    source = SourceText(content=Path(file).read_text(encoding=config.encoding), path=file)
    result = resolve_anchor(source, anchor, config)

    click.echo(f"{anchor.describe()}: {result.status.value} ({result.candidate_count} candidate(s))")
    for candidate in result.candidates:
        line, col = _line_col(source.content, candidate.start)
        snippet = source.slice(candidate).replace("\n", " ")
        if len(snippet) > 60:
            snippet = snippet[:60] + "..."
        click.echo(f"  {line}:{col}  {candidate}  {snippet}")

    sys.exit(0 if result.found else 1)
