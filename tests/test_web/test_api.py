from __future__ import annotations


def _set_title(value: str) -> dict:
    return {
        "kind": "attribute_change",
        "path": "index.html",
        "anchor": {"kind": "id", "value": "title"},
        "name": "title",
        "new_value": value,
    }


class TestResolveAPI:
    def test_resolve_project_file(self, client):
        response = client.post(
            "/api/resolve",
            json={"path": "index.html", "anchor": {"kind": "text", "value": "Hello"}},
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "found"
        assert data["text"] == "Hello"

    def test_resolve_sent_content(self, client):
        response = client.post(
            "/api/resolve",
            json={"path": "x.html", "content": "<b>a</b><b>a</b>", "anchor": {"kind": "text", "value": "a"}},
        )
        data = response.get_json()
        assert data["status"] == "ambiguous"
        assert data["candidates"] == [[3, 4], [11, 12]]
        assert "text" not in data

    def test_missing_fields(self, client):
        response = client.post("/api/resolve", json={"path": "index.html"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "path and anchor required"

    def test_bad_anchor(self, client):
        response = client.post("/api/resolve", json={"path": "index.html", "anchor": {"kind": "xpath", "value": "/"}})
        assert response.status_code == 400

    def test_unknown_file(self, client):
        response = client.post("/api/resolve", json={"path": "nope.html", "anchor": {"kind": "id", "value": "x"}})
        assert response.status_code == 404


class TestBatchAPI:
    def test_apply_writes_file(self, client, project):
        response = client.post("/api/batch", json=[_set_title("Greeting")])
        assert response.status_code == 200
        data = response.get_json()
        assert data["all_persisted"] is True
        assert data["files"]["index.html"]["changed"] is True
        assert "content" not in data["files"]["index.html"]
        assert 'title="Greeting"' in (project / "index.html").read_text(encoding="utf-8")

    def test_dry_run_returns_content(self, client, project):
        response = client.post("/api/batch", json={"operations": [_set_title("Greeting")], "dry_run": True})
        data = response.get_json()
        assert data["files"]["index.html"]["content"].startswith('<h1 id="title" title="Greeting">')
        assert 'title="Greeting"' not in (project / "index.html").read_text(encoding="utf-8")

    def test_stylesheets_from_request(self, client, project):
        response = client.post(
            "/api/batch",
            json={
                "operations": [
                    {
                        "kind": "rule_edit",
                        "path": "index.html",
                        "stylesheet_id": "main",
                        "selector_text": "h1",
                        "declarations": "color: navy",
                    }
                ],
                "stylesheets": {"main": {"path": "site.css"}},
            },
        )
        assert response.status_code == 200
        assert (project / "site.css").read_text(encoding="utf-8") == "h1 { color: navy; }\n"

    def test_ambiguous_reported_pending(self, client):
        op = _set_title("t")
        op["anchor"] = {"kind": "class", "value": "c"}
        data = client.post("/api/batch", json=[op]).get_json()
        assert data["pending"] == [0]
        assert data["operations"][0]["state"] == "ambiguous_needs_anchor"
        assert data["operations"][0]["diagnostic"]["fix"]

    def test_decode_error_has_index(self, client):
        response = client.post("/api/batch", json=[_set_title("a"), {"kind": "nope"}])
        assert response.status_code == 400
        assert response.get_json()["index"] == 1

    def test_non_json_body(self, client):
        response = client.post("/api/batch", data="not json", content_type="text/plain")
        assert response.status_code == 400
        assert response.get_json()["error"] == "JSON body required"


class TestCORS:
    def test_headers_on_response(self, client):
        response = client.post("/api/batch", json=[])
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_preflight(self, client):
        response = client.options("/api/batch")
        assert response.status_code == 204
        assert "POST" in response.headers["Access-Control-Allow-Methods"]
