"""Tests for the sourcepatch CLI commands."""
from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from sourcepatch.cli.main import cli


@pytest.fixture
def site(tmp_path):
    (tmp_path / "index.html").write_text(
        '<html><head><link rel="stylesheet" href="/site.css"></head>\n'
        '<body><h1 id="title">Hello</h1><p class="c">a</p><p class="c">b</p></body></html>\n',
        encoding="utf-8",
    )
    (tmp_path / "site.css").write_text("h1 { color: black; }\n", encoding="utf-8")
    return tmp_path


def _write_batch(tmp_path, operations) -> str:
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(operations), encoding="utf-8")
    return str(path)


def _set_title(value: str, anchor: dict | None = None) -> dict:
    return {
        "kind": "attribute_change",
        "path": "index.html",
        "anchor": anchor or {"kind": "id", "value": "title"},
        "name": "title",
        "new_value": value,
    }


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


class TestCLIGroup:
    def test_cli_group_help(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "write visual-editor edits back" in result.output

    def test_cli_lists_commands(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert "apply" in result.output
        assert "resolve" in result.output
        assert "serve" in result.output

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "sourcepatch" in result.output


# ---------------------------------------------------------------------------
# apply command
# ---------------------------------------------------------------------------


class TestApplyCommand:
    def test_apply_writes_file(self, site) -> None:
        batch = _write_batch(site, [_set_title("Greeting")])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site)])
        assert result.exit_code == 0, result.output
        assert "Changed 1 file(s): index.html" in result.output
        assert 'title="Greeting"' in (site / "index.html").read_text(encoding="utf-8")

    def test_dry_run(self, site) -> None:
        batch = _write_batch(site, [_set_title("Greeting")])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site), "--dry-run"])
        assert result.exit_code == 0
        assert "Would change 1 file(s)" in result.output
        assert "Greeting" not in (site / "index.html").read_text(encoding="utf-8")

    def test_ambiguous_exits_1(self, site) -> None:
        batch = _write_batch(site, [_set_title("t", {"kind": "class", "value": "c"})])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site)])
        assert result.exit_code == 1
        assert "needs anchor" in result.output
        assert "fix:" in result.output
        assert "1 operation(s) need a more specific anchor" in result.output

    def test_auto_remediate(self, site) -> None:
        op = _set_title("t", {"kind": "class", "value": "c"})
        op["occurrence"] = 1
        batch = _write_batch(site, [op])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site), "--auto-remediate"])
        assert result.exit_code == 0, result.output
        assert "(marker " in result.output
        assert "data-sp-anchor=" in (site / "index.html").read_text(encoding="utf-8")

    def test_json_output(self, site) -> None:
        batch = _write_batch(site, [_set_title("Greeting")])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["all_persisted"] is True
        assert data["operations"][0]["state"] == "applied"

    def test_stylesheets_from_document(self, site) -> None:
        op = {
            "kind": "rule_edit",
            "path": "index.html",
            "stylesheet_id": "/site.css",
            "selector_text": "h1",
            "declarations": "color: navy",
        }
        batch = _write_batch(site, [op])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site), "--document", "index.html"])
        assert result.exit_code == 0, result.output
        assert (site / "site.css").read_text(encoding="utf-8") == "h1 { color: navy; }\n"

    def test_invalid_batch_exits_2(self, site) -> None:
        batch = _write_batch(site, [{"kind": "nope"}])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site)])
        assert result.exit_code == 2
        assert "Invalid batch: operation 0:" in result.output

    def test_missing_source_exits_2(self, site) -> None:
        op = _set_title("t")
        op["path"] = "missing.html"
        batch = _write_batch(site, [op])
        result = CliRunner().invoke(cli, ["apply", batch, "--root", str(site)])
        assert result.exit_code == 2
        assert "Error:" in result.output


# ---------------------------------------------------------------------------
# resolve command
# ---------------------------------------------------------------------------


class TestResolveCommand:
    def test_found(self, site) -> None:
        result = CliRunner().invoke(cli, ["resolve", str(site / "index.html"), "--id", "title"])
        assert result.exit_code == 0
        assert "#title: found (1 candidate(s))" in result.output
        assert '2:7' in result.output

    def test_ambiguous_exits_1(self, site) -> None:
        result = CliRunner().invoke(cli, ["resolve", str(site / "index.html"), "--class", "c"])
        assert result.exit_code == 1
        assert ".c: ambiguous (2 candidate(s))" in result.output

    def test_text_with_context(self, site) -> None:
        path = str(site / "index.html")
        result = CliRunner().invoke(cli, ["resolve", path, "--text", "a", "--after", "b"])
        assert result.exit_code == 0
        assert "found" in result.output

    def test_needs_exactly_one_anchor(self, site) -> None:
        result = CliRunner().invoke(cli, ["resolve", str(site / "index.html"), "--id", "x", "--class", "c"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# serve command
# ---------------------------------------------------------------------------


class TestServeCommand:
    def test_serve_help(self) -> None:
        result = CliRunner().invoke(cli, ["serve", "--help"])
        assert result.exit_code == 0
        assert "Start the sourcepatch web API" in result.output
        assert "--root" in result.output
        assert "--port" in result.output
