"""Typed errors for capability configuration, binding, and invocation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    """Stable machine-readable categories for mesh failures."""

    UNSPECIFIED = "unspecified"
    CONFIGURATION_MISSING = "configuration_missing"
    INVALID_CONFIGURATION = "invalid_configuration"
    TRANSPORT_FAILURE = "transport_failure"
    REMOTE_STATUS_FAILURE = "remote_status_failure"
    DECODE_FAILURE = "decode_failure"
    SIGNING_FAILURE = "signing_failure"
    BINDING_FAILURE = "binding_failure"


@dataclass(eq=False)
class MeshError(Exception):
    """Base error type for all function mesh failures."""

    kind: ClassVar[ErrorKind] = ErrorKind.UNSPECIFIED

    message: str

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


@dataclass(eq=False)
class ConfigurationMissing(MeshError):
    """No endpoint can be resolved for a capability name."""

    kind: ClassVar[ErrorKind] = ErrorKind.CONFIGURATION_MISSING

    capability: str = ""


@dataclass(eq=False)
class InvalidConfiguration(MeshError):
    """One configuration value could not be parsed."""

    kind: ClassVar[ErrorKind] = ErrorKind.INVALID_CONFIGURATION

    key: str = ""
    value: object = None


@dataclass(eq=False)
class CapabilityInvocationError(MeshError):
    """Base error for one failed remote capability call."""

    capability: str = ""
    cause: BaseException | None = None


@dataclass(eq=False)
class TransportFailure(CapabilityInvocationError):
    """Connection, timeout, or other transport-level failure."""

    kind: ClassVar[ErrorKind] = ErrorKind.TRANSPORT_FAILURE


@dataclass(eq=False)
class RemoteStatusFailure(CapabilityInvocationError):
    """Remote endpoint answered with a non-success status code."""

    kind: ClassVar[ErrorKind] = ErrorKind.REMOTE_STATUS_FAILURE

    status_code: int = 0
    response_body: str = ""
    error_payload: Any = None


@dataclass(eq=False)
class DecodeFailure(CapabilityInvocationError):
    """Response body does not match the declared output type."""

    kind: ClassVar[ErrorKind] = ErrorKind.DECODE_FAILURE

    response_body: str = ""


@dataclass(eq=False)
class SigningFailure(CapabilityInvocationError):
    """Credentials were unavailable or request signing failed."""

    kind: ClassVar[ErrorKind] = ErrorKind.SIGNING_FAILURE


@dataclass(eq=False)
class ShapeAnalysisError(MeshError):
    """A declared capability type has no supported calling convention."""

    kind: ClassVar[ErrorKind] = ErrorKind.BINDING_FAILURE

    declared_type: object = None


@dataclass(eq=False)
class BindingError(MeshError):
    """A capability slot could not be bound on a component instance."""

    kind: ClassVar[ErrorKind] = ErrorKind.BINDING_FAILURE

    component: str = ""
    attribute: str = ""
    cause: BaseException | None = None
