"""Runtime facade wiring configuration, endpoints, signing, and dispatch."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx

from packages.function_mesh.binding import CapabilityBinder, CapabilitySlot
from packages.function_mesh.config import (
    MeshSettings,
    PropertySource,
    load_properties,
    load_settings,
)
from packages.function_mesh.dispatch import CapabilityStub, StubDispatcher
from packages.function_mesh.endpoints import EndpointConfig, EndpointResolver
from packages.function_mesh.http import HttpClient
from packages.function_mesh.logging import configure_logging
from packages.function_mesh.shapes import ShapeDescriptor, analyze
from packages.function_mesh.signing import CredentialsProvider, RequestAuthenticator

logger = logging.getLogger(__name__)


class FunctionMesh:
    """One configured mesh: resolve capability names and bind stubs.

    A mesh owns a single ``HttpClient`` shared by every stub it creates. Stubs
    stay usable until ``close()`` is called.
    """

    def __init__(
        self,
        *,
        settings: MeshSettings | None = None,
        properties: PropertySource | None = None,
        environ: Mapping[str, str] | None = None,
        client: HttpClient | None = None,
        authenticator: RequestAuthenticator | None = None,
        credentials_provider: CredentialsProvider | None = None,
    ) -> None:
        self.settings = settings if settings is not None else MeshSettings()
        self.resolver = EndpointResolver(properties, environ=environ)
        self.authenticator = authenticator or RequestAuthenticator(
            service_name=self.settings.signing.service_name,
            default_region=self.settings.signing.default_region,
            credentials_provider=credentials_provider,
        )
        self._client = client or HttpClient(
            timeout_seconds=self.settings.http.timeout_seconds,
            follow_redirects=self.settings.http.follow_redirects,
        )
        self._dispatcher = StubDispatcher(
            client=self._client, authenticator=self.authenticator
        )
        self._binder = CapabilityBinder(
            resolver=self.resolver, dispatcher=self._dispatcher
        )

    def bind(self, component: object) -> tuple[CapabilitySlot, ...]:
        """Install stubs into every capability slot declared on ``component``."""
        return self._binder.bind(component)

    def make_stub(self, name: str, declared: Any = None) -> CapabilityStub:
        """Build one stub for ``name`` from a ``ShapeDescriptor`` or ``Callable`` type."""
        descriptor = declared if isinstance(declared, ShapeDescriptor) else analyze(declared)
        return self._binder.make_stub(name, descriptor)

    def resolve(self, name: str) -> EndpointConfig:
        """Return the resolved endpoint for ``name``."""
        return self.resolver.resolve(name)

    def resolve_url(self, name: str) -> str:
        """Return the resolved URL for ``name``."""
        return self.resolver.resolve(name).url

    def credentials_available(self) -> bool:
        """Return whether signed endpoints could be called right now."""
        return self.authenticator.credentials_available()

    def close(self) -> None:
        """Release the shared HTTP client."""
        self._client.close()

    def __enter__(self) -> FunctionMesh:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def create_mesh(
    *,
    config_path: str | Path | None = None,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    configure_logs: bool = False,
    transport: httpx.BaseTransport | None = None,
    credentials_provider: CredentialsProvider | None = None,
) -> FunctionMesh:
    """Load configuration from the standard cascade and build a mesh."""
    env = environ if environ is not None else os.environ
    properties = load_properties(
        cli_params=cli_params, environ=env, config_path=config_path
    )
    settings = load_settings(config_path=config_path, **_settings_overrides(cli_params))

    if configure_logs:
        configure_logging(settings.logging)

    client = HttpClient(
        timeout_seconds=settings.http.timeout_seconds,
        follow_redirects=settings.http.follow_redirects,
        transport=transport,
    )
    logger.debug("Function mesh created")
    return FunctionMesh(
        settings=settings,
        properties=properties,
        environ=env,
        client=client,
        credentials_provider=credentials_provider,
    )


def _settings_overrides(cli_params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Pick the typed-settings sections out of CLI params."""
    if not cli_params:
        return {}
    return {
        key: value
        for key, value in cli_params.items()
        if key in MeshSettings.model_fields
    }
