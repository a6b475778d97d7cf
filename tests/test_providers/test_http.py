from __future__ import annotations

import httpx
import pytest

from sourcepatch.errors import ProviderError
from sourcepatch.providers import HttpContentProvider


def _provider(handler) -> HttpContentProvider:
    return HttpContentProvider("http://dev.local:3000/", transport=httpx.MockTransport(handler))


class TestHttpContentProvider:
    def test_read(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text="<p>Hi</p>")

        with _provider(handler) as provider:
            source = provider.read("pages/index.html")
        assert source.content == "<p>Hi</p>"
        assert source.path == "pages/index.html"
        assert seen == ["http://dev.local:3000/pages/index.html"]

    def test_leading_slash(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/a.css"
            return httpx.Response(200, text="p {}")

        assert _provider(handler).read("/a.css").content == "p {}"

    def test_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="missing")

        with pytest.raises(ProviderError) as exc_info:
            _provider(handler).read("a.html")
        assert exc_info.value.status_code == 404
        assert exc_info.value.path == "a.html"

    def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderError, match="Network error") as exc_info:
            _provider(handler).read("a.html")
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ProviderError, match="Timed out"):
            _provider(handler).read("a.html")
