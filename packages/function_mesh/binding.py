"""Capability slot discovery and stub installation on component instances.

Slots are declared on a component class in either form::

    class OrderProcessor:
        price: Annotated[RemoteFunction[OrderRequest, PriceInfo], remote("pricing")]
        audit: Consumer[AuditEvent] = remote("audit")

``CapabilityBinder.bind`` replaces each slot on the instance with a
``CapabilityStub``. Re-binding the same instance simply replaces the stubs.
"""

from __future__ import annotations

import logging
import typing
from dataclasses import dataclass
from typing import Any

from packages.function_mesh.dispatch import CapabilityStub, StubDispatcher
from packages.function_mesh.endpoints import EndpointResolver
from packages.function_mesh.errors import BindingError, MeshError
from packages.function_mesh.logging import fields, log_context
from packages.function_mesh.shapes import ShapeDescriptor, analyze

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RemoteMarker:
    """Declaration marker for one capability slot.

    ``name`` defaults to the attribute name when blank. ``shape`` skips type
    introspection when an explicit descriptor is given.
    """

    name: str = ""
    shape: ShapeDescriptor | None = None


def remote(name: str = "", *, shape: ShapeDescriptor | None = None) -> Any:
    """Mark a class attribute or ``Annotated`` type as a capability slot."""
    return RemoteMarker(name=name, shape=shape)


@dataclass(frozen=True, slots=True)
class CapabilitySlot:
    """One discovered capability dependency on a component class."""

    attribute: str
    name: str
    descriptor: ShapeDescriptor


def discover_slots(component_type: type) -> tuple[CapabilitySlot, ...]:
    """Return the capability slots declared on ``component_type`` and its bases.

    Walking the MRO means a dynamically generated subclass (proxy, mock, or
    instrumented wrapper) exposes the slots declared on the class it wraps.
    """
    try:
        hints = typing.get_type_hints(component_type, include_extras=True)
    except Exception as exc:
        raise BindingError(
            message=f"cannot resolve annotations on {component_type.__qualname__}: {exc}",
            component=component_type.__qualname__,
            cause=exc,
        ) from exc

    attributes = list(hints)
    for klass in reversed(component_type.__mro__):
        for attribute, value in vars(klass).items():
            if isinstance(value, RemoteMarker) and attribute not in hints:
                attributes.append(attribute)

    slots: list[CapabilitySlot] = []
    seen: set[str] = set()
    for attribute in attributes:
        if attribute in seen:
            continue
        seen.add(attribute)
        declared = hints.get(attribute)
        marker, declared = _split_marker(declared)
        if marker is None:
            marker = _class_marker(component_type, attribute)
        if marker is None:
            continue
        try:
            descriptor = marker.shape if marker.shape is not None else analyze(declared)
        except MeshError as exc:
            raise BindingError(
                message=f"cannot analyze capability slot {component_type.__qualname__}.{attribute}: {exc}",
                component=component_type.__qualname__,
                attribute=attribute,
                cause=exc,
            ) from exc
        slots.append(
            CapabilitySlot(
                attribute=attribute,
                name=marker.name or attribute,
                descriptor=descriptor,
            )
        )
    return tuple(slots)


class CapabilityBinder:
    """Install dispatcher-backed stubs into a component's capability slots."""

    def __init__(self, *, resolver: EndpointResolver, dispatcher: StubDispatcher) -> None:
        self._resolver = resolver
        self._dispatcher = dispatcher

    def make_stub(self, name: str, descriptor: ShapeDescriptor) -> CapabilityStub:
        """Build one stub for ``name`` without a component."""
        return CapabilityStub(
            dispatcher=self._dispatcher,
            descriptor=descriptor,
            endpoint=self._resolver.resolve(name),
        )

    def bind(self, component: object) -> tuple[CapabilitySlot, ...]:
        """Bind every declared slot on ``component`` and return the slots."""
        component_type = type(component)
        slots = discover_slots(component_type)
        for slot in slots:
            stub = self.make_stub(slot.name, slot.descriptor)
            try:
                setattr(component, slot.attribute, stub)
            except (AttributeError, TypeError) as exc:
                raise BindingError(
                    message=f"cannot set capability slot {component_type.__qualname__}.{slot.attribute}: {exc}",
                    component=component_type.__qualname__,
                    attribute=slot.attribute,
                    cause=exc,
                ) from exc
            with log_context(
                {
                    fields.EVENT: fields.BINDING_EVENT,
                    fields.CAPABILITY: slot.name,
                    fields.COMPONENT: component_type.__qualname__,
                    fields.ATTRIBUTE: slot.attribute,
                    fields.SHAPE: slot.descriptor.shape.value,
                    fields.OUTPUT_TYPE: slot.descriptor.describe_output(),
                    fields.URL: stub.endpoint.url,
                    fields.AUTH_MODE: stub.endpoint.auth_mode.value,
                }
            ):
                logger.info("Injected remote capability stub")
                if not slot.descriptor.typed:
                    logger.warning(
                        "Capability slot has no concrete types; responses decode as generic JSON"
                    )
        return slots


def _split_marker(declared: object) -> tuple[RemoteMarker | None, object]:
    """Pull a ``RemoteMarker`` out of ``Annotated`` metadata, if present."""
    if typing.get_origin(declared) is not typing.Annotated:
        return None, declared
    inner, *metadata = typing.get_args(declared)
    for item in metadata:
        if isinstance(item, RemoteMarker):
            return item, inner
    return None, inner


def _class_marker(component_type: type, attribute: str) -> RemoteMarker | None:
    """Return a ``RemoteMarker`` assigned as a class attribute default."""
    for klass in component_type.__mro__:
        if attribute in vars(klass):
            value = vars(klass)[attribute]
            return value if isinstance(value, RemoteMarker) else None
    return None
