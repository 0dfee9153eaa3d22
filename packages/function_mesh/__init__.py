"""Public function mesh interface for components calling remote capabilities."""

from packages.function_mesh.binding import (
    CapabilityBinder,
    CapabilitySlot,
    RemoteMarker,
    discover_slots,
    remote,
)
from packages.function_mesh.config import MeshSettings, PropertySource, load_properties, load_settings
from packages.function_mesh.dispatch import CapabilityStub, StubDispatcher
from packages.function_mesh.endpoints import (
    AuthMode,
    EndpointConfig,
    EndpointResolver,
    default_port,
    normalize_url,
)
from packages.function_mesh.errors import (
    BindingError,
    CapabilityInvocationError,
    ConfigurationMissing,
    DecodeFailure,
    ErrorKind,
    InvalidConfiguration,
    MeshError,
    RemoteStatusFailure,
    ShapeAnalysisError,
    SigningFailure,
    TransportFailure,
)
from packages.function_mesh.runtime import FunctionMesh, create_mesh
from packages.function_mesh.shapes import (
    Consumer,
    Producer,
    RemoteFunction,
    Shape,
    ShapeDescriptor,
    analyze,
)
from packages.function_mesh.signing import RequestAuthenticator

__all__ = [
    "AuthMode",
    "BindingError",
    "CapabilityBinder",
    "CapabilityInvocationError",
    "CapabilitySlot",
    "CapabilityStub",
    "ConfigurationMissing",
    "Consumer",
    "DecodeFailure",
    "EndpointConfig",
    "EndpointResolver",
    "ErrorKind",
    "FunctionMesh",
    "InvalidConfiguration",
    "MeshError",
    "MeshSettings",
    "Producer",
    "PropertySource",
    "RemoteFunction",
    "RemoteMarker",
    "RemoteStatusFailure",
    "RequestAuthenticator",
    "Shape",
    "ShapeAnalysisError",
    "ShapeDescriptor",
    "SigningFailure",
    "StubDispatcher",
    "TransportFailure",
    "analyze",
    "create_mesh",
    "default_port",
    "discover_slots",
    "load_properties",
    "load_settings",
    "normalize_url",
    "remote",
]
