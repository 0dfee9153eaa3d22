"""Blocking HTTP transport shared by every stub of one mesh."""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from .errors import HttpRequestError, HttpStatusError


class HttpClient:
    """Send one capability request per call over a shared ``httpx.Client``.

    ``httpx.Client`` is thread-safe, so concurrent stub calls share this
    client and its connection pool. Redirects are not followed unless asked.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        follow_redirects: bool = False,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=follow_redirects,
            transport=transport,
        )

    def close(self) -> None:
        """Close the pool unless the ``httpx.Client`` was supplied by the caller."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send one request and return the response only when it is 2xx.

        Malformed URLs and transport failures raise ``HttpRequestError``;
        any other status raises ``HttpStatusError`` carrying the raw body.
        """
        try:
            response = self._client.request(
                method, url, headers=dict(headers), content=content
            )
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise HttpRequestError(
                message=f"{method} {url} failed: {exc}",
                method=method,
                url=url,
                cause=exc,
            ) from exc

        if not response.is_success:
            raise HttpStatusError(
                message=f"{method} {url} returned HTTP {response.status_code}",
                method=method,
                url=url,
                status_code=response.status_code,
                body=response.content,
            )
        return response
