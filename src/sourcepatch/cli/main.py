"""sourcepatch CLI entry point: Click group with subcommands."""

import logging

import click

from sourcepatch import __version__


@click.group()
@click.version_option(version=__version__, prog_name="sourcepatch")
@click.option("-v", "--verbose", is_flag=True, help="Log patch decisions to stderr")
def cli(verbose: bool) -> None:
    """sourcepatch - write visual-editor edits back into HTML and CSS source."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


# Import and register subcommands
from sourcepatch.cli.apply import apply  # noqa: E402
from sourcepatch.cli.resolve import resolve  # noqa: E402
from sourcepatch.cli.serve import serve  # noqa: E402

cli.add_command(apply)
cli.add_command(resolve)
cli.add_command(serve)
