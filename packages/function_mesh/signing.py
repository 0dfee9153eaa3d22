"""SigV4 request signing for capability endpoints resolved as ``SIGNED``."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping

import httpx
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials
from botocore.session import get_session

from packages.function_mesh.errors import SigningFailure
from packages.function_mesh.logging import fields, log_context

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "lambda"
DEFAULT_REGION = "us-east-1"

# Headers the signer or transport owns; caller values are never signed.
MANAGED_HEADERS: frozenset[str] = frozenset(
    {"authorization", "x-amz-date", "x-amz-security-token", "host"}
)

_FUNCTION_URL_HOST_RE = re.compile(r"\.lambda-url\.(?P<region>[a-z0-9-]+)\.on\.aws$")
_AMAZONAWS_HOST_RE = re.compile(r"\.(?P<region>[a-z0-9-]+)\.amazonaws\.com(\.cn)?$")

CredentialsProvider = Callable[[], Credentials | None]


def default_credentials_provider() -> Credentials | None:
    """Resolve credentials from botocore's default provider chain."""
    return get_session().get_credentials()


def region_from_url(url: str, default: str = DEFAULT_REGION) -> str:
    """Return the cloud region encoded in a function URL host, else ``default``."""
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        host = ""
    for pattern in (_FUNCTION_URL_HOST_RE, _AMAZONAWS_HOST_RE):
        match = pattern.search(host)
        if match is not None:
            return match.group("region")
    with log_context({fields.URL: url}):
        logger.warning("Could not derive region from URL; using %s", default)
    return default


def signable_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Drop headers managed by the signer or the transport."""
    return {
        name: value
        for name, value in headers.items()
        if name.lower() not in MANAGED_HEADERS
    }


class RequestAuthenticator:
    """Produce SigV4-signed header sets for outbound capability requests."""

    def __init__(
        self,
        *,
        service_name: str = DEFAULT_SERVICE_NAME,
        default_region: str = DEFAULT_REGION,
        credentials_provider: CredentialsProvider | None = None,
    ) -> None:
        self._service_name = service_name
        self._default_region = default_region
        self._credentials_provider = credentials_provider or default_credentials_provider

    def sign(
        self,
        url: str,
        method: str,
        headers: Mapping[str, str],
        body: bytes | None,
        *,
        capability: str = "",
    ) -> dict[str, str]:
        """Return ``headers`` plus SigV4 auth headers for this exact request.

        ``body`` must be the exact bytes that will be transmitted. Any failure
        raises ``SigningFailure``; there is no unsigned fallback.
        """
        region = region_from_url(url, self._default_region)
        with log_context({fields.CAPABILITY: capability, fields.REGION: region}):
            try:
                credentials = self._credentials_provider()
                if credentials is None:
                    raise SigningFailure(
                        message=f"no credentials available to sign request for {capability or url}",
                        capability=capability,
                    )
                request = AWSRequest(
                    method=method.upper(),
                    url=url,
                    data=body or b"",
                    headers=signable_headers(headers),
                )
                SigV4Auth(credentials, self._service_name, region).add_auth(request)
            except SigningFailure:
                logger.error("Request signing failed: credentials unavailable")
                raise
            except Exception as exc:
                logger.exception("Request signing failed")
                raise SigningFailure(
                    message=f"failed to sign request for {capability or url}: {exc}",
                    capability=capability,
                    cause=exc,
                ) from exc
            logger.debug("Signed capability request")
        return dict(request.headers.items())

    def credentials_available(self) -> bool:
        """Return whether the credentials provider currently yields credentials."""
        try:
            available = self._credentials_provider() is not None
        except Exception as exc:
            logger.warning("Credentials not available: %s", exc)
            return False
        if not available:
            logger.warning("Credentials not available")
        return available
