"""Endpoint resolution for named remote capabilities.

Resolution order for the URL (first non-blank value wins):

1. Environment variable ``REMOTE_URL_<NAME>`` (name upper-cased).
2. Property ``<name>.url``.
3. Property ``functions.<name>.url``.
4. Property ``functions.<name>.port`` -> ``http://localhost:<port>/<name>``.
5. ``http://localhost:<base + offset>/<name>``, where ``base`` comes from
   ``functions.default.port.base`` and ``offset`` is derived from a stable
   hash of the lower-cased name.

The auth mode is looked up independently from ``functions.<name>.authType``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from packages.function_mesh.config import DEFAULT_BASE_PORT, DEFAULT_LOCAL_HOST, PropertySource
from packages.function_mesh.errors import ConfigurationMissing, InvalidConfiguration
from packages.function_mesh.logging import fields, log_context

logger = logging.getLogger(__name__)

ENV_URL_PREFIX = "REMOTE_URL_"
MAX_PORT = 65535
FUNCTIONS_PREFIX = "functions."
BASE_PORT_KEY = "functions.default.port.base"
PORT_OFFSET_RANGE = 100


class AuthMode(str, Enum):
    """Authentication applied to requests sent to one endpoint."""

    NONE = "NONE"
    SIGNED = "SIGNED"
    AWS_IAM = "SIGNED"


@dataclass(frozen=True, slots=True)
class EndpointConfig:
    """Resolved network target for one capability."""

    name: str
    url: str
    auth_mode: AuthMode = AuthMode.NONE


def normalize_url(url: str, name: str) -> str:
    """Strip one trailing slash and append ``/<name>`` unless already present."""
    normalized = url.strip()
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    suffix = f"/{name}"
    if not normalized.endswith(suffix):
        normalized = normalized + suffix
    return normalized


def stable_name_hash(value: str) -> int:
    """Return the signed 32-bit polynomial hash of ``value``.

    Iterates UTF-16 code units with ``h = 31 * h + unit`` so ports match those
    assigned by the JVM-based services sharing the same naming scheme.
    """
    encoded = value.encode("utf-16-be")
    result = 0
    for index in range(0, len(encoded), 2):
        unit = (encoded[index] << 8) | encoded[index + 1]
        result = (31 * result + unit) & 0xFFFFFFFF
    if result >= 0x80000000:
        result -= 0x100000000
    return result


def default_port(name: str, base_port: int = DEFAULT_BASE_PORT) -> int:
    """Return the deterministic local development port for ``name``."""
    offset = abs(stable_name_hash(name.lower())) % PORT_OFFSET_RANGE
    return base_port + offset


def parse_port(raw: str, *, key: str) -> int:
    """Parse one TCP port value or raise ``InvalidConfiguration``."""
    try:
        port = int(raw.strip())
    except ValueError as exc:
        raise InvalidConfiguration(
            message=f"invalid port for {key}: {raw!r}", key=key, value=raw
        ) from exc
    if not 0 < port <= MAX_PORT:
        raise InvalidConfiguration(
            message=f"port out of range for {key}: {port}", key=key, value=raw
        )
    return port


def parse_base_port(raw: str, *, key: str) -> int:
    """Parse a fallback base port; every derived port must stay within range."""
    port = parse_port(raw, key=key)
    if port + PORT_OFFSET_RANGE - 1 > MAX_PORT:
        raise InvalidConfiguration(
            message=f"base port too high for {key}: {port} + {PORT_OFFSET_RANGE - 1} exceeds {MAX_PORT}",
            key=key,
            value=raw,
        )
    return port


def parse_auth_mode(raw: str, *, key: str) -> AuthMode:
    """Parse one auth mode name case-insensitively or raise ``InvalidConfiguration``."""
    try:
        return AuthMode[raw.strip().upper()]
    except KeyError as exc:
        raise InvalidConfiguration(
            message=f"invalid authType for {key}: {raw!r}", key=key, value=raw
        ) from exc


class EndpointResolver:
    """Resolve and cache ``EndpointConfig`` values per capability name.

    Resolution is a pure function of the environment mapping and properties
    given at construction, so the cache needs no lock: concurrent first
    lookups recompute the same value.
    """

    def __init__(
        self,
        properties: PropertySource | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._properties = properties if properties is not None else PropertySource()
        self._environ = environ if environ is not None else os.environ
        self._cache: dict[str, EndpointConfig] = {}

    def resolve(self, name: str) -> EndpointConfig:
        """Return the endpoint for ``name``, resolving it on first use."""
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        config = EndpointConfig(
            name=name,
            url=self.resolve_url(name),
            auth_mode=self.resolve_auth_mode(name),
        )
        with log_context(
            {
                fields.CAPABILITY: name,
                fields.URL: config.url,
                fields.AUTH_MODE: config.auth_mode.value,
            }
        ):
            logger.debug("Resolved capability endpoint")
        self._cache[name] = config
        return config

    def resolve_url(self, name: str) -> str:
        """Return the URL for ``name`` using the fixed priority chain."""
        if not name or not name.strip():
            raise ConfigurationMissing(
                message="capability name must not be blank", capability=name
            )

        env_url = self._environ.get(ENV_URL_PREFIX + name.upper(), "").strip()
        if env_url:
            return normalize_url(env_url, name)

        for key in (f"{name}.url", f"{FUNCTIONS_PREFIX}{name}.url"):
            configured = self._properties.get_text(key)
            if configured is not None:
                return normalize_url(configured, name)

        port_key = f"{FUNCTIONS_PREFIX}{name}.port"
        raw_port = self._properties.get_text(port_key)
        if raw_port is not None:
            try:
                port = parse_port(raw_port, key=port_key)
            except InvalidConfiguration as exc:
                with log_context({fields.CAPABILITY: name}):
                    logger.error("Ignoring invalid capability port: %s", exc)
            else:
                return _local_url(port, name)

        return _local_url(default_port(name, self._base_port()), name)

    def resolve_auth_mode(self, name: str) -> AuthMode:
        """Return the auth mode for ``name``; ``NONE`` when absent or invalid."""
        key = f"{FUNCTIONS_PREFIX}{name}.authType"
        raw = self._properties.get_text(key)
        if raw is None:
            return AuthMode.NONE
        try:
            return parse_auth_mode(raw, key=key)
        except InvalidConfiguration as exc:
            with log_context({fields.CAPABILITY: name}):
                logger.warning("%s; using NONE", exc)
            return AuthMode.NONE

    def _base_port(self) -> int:
        """Return the configured fallback base port or the built-in default."""
        raw = self._properties.get_text(BASE_PORT_KEY)
        if raw is None:
            return DEFAULT_BASE_PORT
        try:
            return parse_base_port(raw, key=BASE_PORT_KEY)
        except InvalidConfiguration as exc:
            logger.warning("%s; using default %d", exc, DEFAULT_BASE_PORT)
            return DEFAULT_BASE_PORT


def _local_url(port: int, name: str) -> str:
    """Return the local development URL for one capability."""
    return f"http://{DEFAULT_LOCAL_HOST}:{port}/{name}"
