from __future__ import annotations

from flask import Flask

from sourcepatch.service import PatchService


def create_app(
    service: PatchService | None = None,
    config: dict | None = None,
) -> Flask:
    """Create and configure the Flask app.

    Without a *service* the app patches files under the current directory.
    """
    app = Flask(__name__)
    app.config.update(config or {})

    if service is None:
        from sourcepatch.providers.local import LocalContentProvider, LocalPersistenceSink

        service = PatchService(LocalContentProvider("."), LocalPersistenceSink("."))

    app.extensions["patch_service"] = service

    # Register blueprints
    from sourcepatch.web.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    return app
