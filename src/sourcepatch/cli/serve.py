"""CLI command: sourcepatch serve -- run the patch API for an editor front end."""

from __future__ import annotations

import click

from sourcepatch.config import load_config


@click.command()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Project directory to patch",
)
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=5000, type=int, help="Port to bind to")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), default=None, help="JSON config file")
@click.option("--override-stylesheet", default=None, help="Same-origin stylesheet that receives redirected rule edits")
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
def serve(
    root: str,
    host: str,
    port: int,
    config_file: str | None,
    override_stylesheet: str | None,
    debug: bool,
) -> None:
    """Start the sourcepatch web API."""
    from sourcepatch.providers.local import LocalContentProvider, LocalPersistenceSink
    from sourcepatch.service import PatchService
    from sourcepatch.web.app import create_app

    config = load_config(config_file, override_stylesheet=override_stylesheet)
    service = PatchService(
        LocalContentProvider(root, encoding=config.encoding),
        LocalPersistenceSink(root),
        config=config,
    )
    app = create_app(service=service)
    click.echo(f"Serving {root} on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
