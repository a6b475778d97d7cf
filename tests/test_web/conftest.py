from __future__ import annotations

import pytest

from sourcepatch.config import PatchConfig
from sourcepatch.providers import LocalContentProvider, LocalPersistenceSink
from sourcepatch.service import PatchService
from sourcepatch.web.app import create_app


@pytest.fixture
def project(tmp_path):
    """A small site on disk: one page and its stylesheet."""
    (tmp_path / "index.html").write_text(
        '<h1 id="title">Hello</h1>\n<p class="c">a</p><p class="c">b</p>\n', encoding="utf-8"
    )
    (tmp_path / "site.css").write_text("h1 { color: black; }\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def service(project):
    return PatchService(
        LocalContentProvider(project),
        LocalPersistenceSink(project),
        config=PatchConfig(override_stylesheet="overrides.css"),
    )


@pytest.fixture
def app(service):
    """Create a Flask app for testing."""
    application = create_app(service=service)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
