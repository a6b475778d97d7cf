from __future__ import annotations

import logging

import httpx

from sourcepatch.errors import ProviderError
from sourcepatch.model.source_text import SourceText

logger = logging.getLogger(__name__)


class HttpContentProvider:
    """Reads project files from a development server.

    Paths are resolved against ``base_url``.  Pass ``transport`` to route
    requests somewhere other than the network (tests use
    ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=headers or {},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def read(self, path: str) -> SourceText:
        url = "/" + path.lstrip("/")
        try:
            response = self._client.get(url)
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Timed out fetching {path!r}: {exc}", path=path, cause=exc) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Network error fetching {path!r}: {exc}", path=path, cause=exc) from exc

        if response.status_code != 200:
            raise ProviderError(
                f"Fetching {path!r} returned HTTP {response.status_code}",
                path=path,
                status_code=response.status_code,
            )
        logger.debug("Fetched %s%s (%d bytes)", self._base_url, url, len(response.content))
        return SourceText(content=response.text, path=path, encoding=response.encoding or "utf-8")

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpContentProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
