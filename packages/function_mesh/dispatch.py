"""Wire dispatch for capability stubs.

One invocation is one blocking HTTP exchange:

| Shape    | Method | Body                  | Response                      |
|----------|--------|-----------------------|-------------------------------|
| function | POST   | JSON of the argument  | decoded into the output type  |
| producer | GET    | none                  | decoded into the output type  |
| consumer | POST   | JSON of the argument  | discarded after a 2xx status  |

Every failure surfaces as a ``CapabilityInvocationError`` subclass naming the
capability. Nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any

import httpx
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from packages.function_mesh import codec
from packages.function_mesh.endpoints import AuthMode, EndpointConfig
from packages.function_mesh.errors import (
    CapabilityInvocationError,
    DecodeFailure,
    RemoteStatusFailure,
    TransportFailure,
)
from packages.function_mesh.http import HttpClient, HttpRequestError, HttpStatusError
from packages.function_mesh.logging import fields, log_context
from packages.function_mesh.shapes import Shape, ShapeDescriptor
from packages.function_mesh.signing import RequestAuthenticator

logger = logging.getLogger(__name__)

FRAMEWORK_HEADER = "X-Framework"
CAPABILITY_HEADER = "X-Capability"


@dataclass(frozen=True, slots=True)
class Invocation:
    """One outbound capability request, built fresh for every call."""

    capability: str
    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None = None


def base_headers(capability: str) -> dict[str, str]:
    """Return the unsigned header set sent with every capability request."""
    return {
        "Content-Type": codec.JSON_MEDIA_TYPE,
        "Accept": codec.JSON_MEDIA_TYPE,
        FRAMEWORK_HEADER: "true",
        CAPABILITY_HEADER: capability,
    }


def build_invocation(
    descriptor: ShapeDescriptor, endpoint: EndpointConfig, args: tuple[Any, ...]
) -> Invocation:
    """Build the request for one call.

    Wrong arity or an argument that cannot be serialized to JSON raise
    ``TypeError`` naming the capability, before any I/O.
    """
    expected = 1 if descriptor.shape.takes_input else 0
    if len(args) != expected:
        raise TypeError(
            f"{descriptor.shape.value} capability '{endpoint.name}' takes "
            f"{expected} positional argument(s) but {len(args)} were given"
        )

    body: bytes | None = None
    if descriptor.shape.takes_input and args[0] is not None:
        try:
            body = codec.encode(args[0])
        except PydanticSerializationError as exc:
            raise TypeError(
                f"cannot serialize argument for capability '{endpoint.name}': {exc}"
            ) from exc

    return Invocation(
        capability=endpoint.name,
        method=descriptor.shape.http_method,
        url=endpoint.url,
        headers=base_headers(endpoint.name),
        body=body,
    )


class StubDispatcher:
    """Execute capability invocations over HTTP."""

    def __init__(
        self,
        *,
        client: HttpClient,
        authenticator: RequestAuthenticator | None = None,
    ) -> None:
        self._client = client
        self._authenticator = authenticator or RequestAuthenticator()

    def invoke(
        self,
        descriptor: ShapeDescriptor,
        endpoint: EndpointConfig,
        args: tuple[Any, ...] = (),
    ) -> Any:
        """Perform one call and return the decoded result (or ``None``)."""
        invocation = build_invocation(descriptor, endpoint, args)
        context = {
            fields.CAPABILITY: invocation.capability,
            fields.SHAPE: descriptor.shape.value,
            fields.METHOD: invocation.method,
            fields.URL: invocation.url,
            fields.AUTH_MODE: endpoint.auth_mode.value,
        }
        with log_context(context):
            with log_context({fields.EVENT: fields.INVOCATION_EVENT}):
                logger.info("Remote capability invocation")
            started = perf_counter()
            try:
                result = self._exchange(descriptor, endpoint, invocation)
            except CapabilityInvocationError as exc:
                with log_context(
                    {
                        fields.EVENT: fields.COMPLETION_EVENT,
                        fields.SUCCESS: False,
                        fields.DURATION_MS: _elapsed_ms(started),
                        fields.ERROR_KIND: exc.kind.value,
                    }
                ):
                    logger.warning("Remote capability call failed: %s", exc)
                raise
            with log_context(
                {
                    fields.EVENT: fields.COMPLETION_EVENT,
                    fields.SUCCESS: True,
                    fields.DURATION_MS: _elapsed_ms(started),
                }
            ):
                logger.info("Remote capability completion")
            return result

    def _exchange(
        self,
        descriptor: ShapeDescriptor,
        endpoint: EndpointConfig,
        invocation: Invocation,
    ) -> Any:
        """Sign, send, and decode one invocation."""
        headers = invocation.headers
        if endpoint.auth_mode is AuthMode.SIGNED:
            headers = self._authenticator.sign(
                invocation.url,
                invocation.method,
                headers,
                invocation.body,
                capability=invocation.capability,
            )

        try:
            response = self._client.send(
                invocation.method,
                invocation.url,
                headers=headers,
                content=invocation.body,
            )
        except HttpRequestError as exc:
            raise TransportFailure(
                message=f"transport failure calling {invocation.capability}: {exc}",
                capability=invocation.capability,
                cause=exc.cause or exc,
            ) from exc
        except HttpStatusError as exc:
            raise _status_failure(descriptor, invocation.capability, exc) from exc

        with log_context({fields.STATUS_CODE: response.status_code}):
            logger.debug("Remote capability response received")

        if descriptor.shape is Shape.CONSUMER:
            return None
        return _decode_response(descriptor, invocation.capability, response)


def _decode_response(
    descriptor: ShapeDescriptor, capability: str, response: httpx.Response
) -> Any:
    """Decode a successful response body into the declared output type."""
    body = response.content
    try:
        return codec.decode(body, descriptor.output_type)
    except (ValidationError, TypeError) as exc:
        raise DecodeFailure(
            message=(
                f"response from {capability} does not match "
                f"{descriptor.describe_output()}: {exc}"
            ),
            capability=capability,
            cause=exc,
            response_body=_safe_text(body),
        ) from exc


def _status_failure(
    descriptor: ShapeDescriptor, capability: str, error: HttpStatusError
) -> RemoteStatusFailure:
    """Map an HTTP status error, keeping any server-provided error body."""
    error_payload: Any = None
    if descriptor.shape.returns_output:
        try:
            error_payload = codec.decode_generic(error.body)
        except ValueError:
            error_payload = None
    return RemoteStatusFailure(
        message=f"{capability} returned HTTP {error.status_code}",
        capability=capability,
        cause=error,
        status_code=error.status_code,
        response_body=error.text,
        error_payload=error_payload,
    )


def _safe_text(body: bytes) -> str:
    """Return body text for diagnostics without raising."""
    return body.decode("utf-8", errors="replace")


def _elapsed_ms(started: float) -> float:
    """Return milliseconds since ``started`` rounded for logging."""
    return round((perf_counter() - started) * 1000.0, 3)


class CapabilityStub:
    """Callable bound to one capability with its shape and endpoint baked in."""

    __slots__ = ("_dispatcher", "descriptor", "endpoint")

    def __init__(
        self,
        *,
        dispatcher: StubDispatcher,
        descriptor: ShapeDescriptor,
        endpoint: EndpointConfig,
    ) -> None:
        self._dispatcher = dispatcher
        self.descriptor = descriptor
        self.endpoint = endpoint

    @property
    def name(self) -> str:
        """Return the capability name this stub calls."""
        return self.endpoint.name

    def __call__(self, *args: Any) -> Any:
        return self._dispatcher.invoke(self.descriptor, self.endpoint, args)

    def __repr__(self) -> str:
        return (
            f"CapabilityStub(name={self.name!r}, shape={self.descriptor.shape.value}, "
            f"url={self.endpoint.url!r}, auth_mode={self.endpoint.auth_mode.value})"
        )
