"""Unit tests for the capability HTTP transport."""

from __future__ import annotations

import httpx
import pytest

from packages.function_mesh.http import HttpClient, HttpRequestError, HttpStatusError

JSON_HEADERS = {"Content-Type": "application/json"}


def test_send_returns_successful_response() -> None:
    """2xx responses should be returned with the request sent as given."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.content == b'{"a":1}'
        assert request.headers["Content-Type"] == "application/json"
        return httpx.Response(201, json={"ok": True})

    with HttpClient(transport=httpx.MockTransport(handler)) as client:
        response = client.send(
            "POST", "http://mesh.test/pricing", headers=JSON_HEADERS, content=b'{"a":1}'
        )

    assert response.status_code == 201
    assert response.json() == {"ok": True}


def test_send_maps_status_failure_with_raw_body() -> None:
    """Non-2xx responses should raise HttpStatusError carrying the body bytes."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=b'{"error":"unavailable"}')

    client = HttpClient(transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(HttpStatusError) as exc_info:
            client.send("GET", "http://mesh.test/pricing", headers={})
    finally:
        client.close()

    error = exc_info.value
    assert error.method == "GET"
    assert error.url == "http://mesh.test/pricing"
    assert error.status_code == 503
    assert error.body == b'{"error":"unavailable"}'
    assert error.text == '{"error":"unavailable"}'


def test_send_treats_redirect_status_as_failure() -> None:
    """Unfollowed 3xx responses are not successes."""
    client = HttpClient(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(302, headers={"Location": "/elsewhere"})
        )
    )
    try:
        with pytest.raises(HttpStatusError) as exc_info:
            client.send("GET", "http://mesh.test/pricing", headers={})
    finally:
        client.close()

    assert exc_info.value.status_code == 302


def test_send_maps_transport_failure_to_request_error() -> None:
    """Connection failures should raise HttpRequestError with the cause."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = HttpClient(transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(HttpRequestError) as exc_info:
            client.send("POST", "http://mesh.test/pricing", headers={})
    finally:
        client.close()

    error = exc_info.value
    assert error.method == "POST"
    assert error.url == "http://mesh.test/pricing"
    assert isinstance(error.cause, httpx.ConnectTimeout)


def test_send_maps_malformed_url_to_request_error() -> None:
    """A URL httpx cannot parse should raise HttpRequestError, not InvalidURL."""
    client = HttpClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    try:
        with pytest.raises(HttpRequestError) as exc_info:
            client.send("GET", "http://host:99999/api/pricing", headers={})
    finally:
        client.close()

    assert isinstance(exc_info.value.cause, httpx.InvalidURL)


def test_close_leaves_injected_client_open() -> None:
    """Injected httpx clients remain owned by the caller."""
    inner = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    HttpClient(client=inner).close()

    assert inner.is_closed is False
    inner.close()
