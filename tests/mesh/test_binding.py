"""Unit tests for capability slot discovery and stub binding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

import httpx
import pytest
from pydantic import BaseModel

from packages.function_mesh.binding import CapabilityBinder, discover_slots, remote
from packages.function_mesh.config import PropertySource
from packages.function_mesh.dispatch import CapabilityStub, StubDispatcher
from packages.function_mesh.endpoints import AuthMode, EndpointResolver
from packages.function_mesh.errors import BindingError
from packages.function_mesh.http import HttpClient
from packages.function_mesh.shapes import (
    Consumer,
    Producer,
    RemoteFunction,
    Shape,
    ShapeDescriptor,
)
from packages.function_mesh.signing import RequestAuthenticator


class Order(BaseModel):
    sku: str
    quantity: int


class Price(BaseModel):
    amount: float


class Clock(BaseModel):
    epoch: int


class AuditEvent(BaseModel):
    action: str


class OrderProcessor:
    price: Annotated[RemoteFunction[Order, Price], remote("pricing")]
    audit: Consumer[AuditEvent] = remote()
    clock: Producer[Clock] = remote("clock")
    label: str = "not a capability"


class PriorityOrderProcessor(OrderProcessor):
    lookup: Any = remote("inventory")


class ExplicitShapeComponent:
    ping = remote("ping", shape=ShapeDescriptor.producer(Clock))


class SlottedComponent:
    __slots__ = ()
    price: Annotated[RemoteFunction[Order, Price], remote("pricing")]


@dataclass(frozen=True)
class FrozenComponent:
    price: Annotated[RemoteFunction[Order, Price], remote("pricing")] = None


class WrongTypeComponent:
    price: Annotated[int, remote("pricing")]


def _binder(handler=None, values: dict | None = None) -> CapabilityBinder:
    transport = httpx.MockTransport(handler or (lambda request: httpx.Response(200)))
    dispatcher = StubDispatcher(
        client=HttpClient(transport=transport),
        authenticator=RequestAuthenticator(credentials_provider=lambda: None),
    )
    resolver = EndpointResolver(PropertySource(values or {}), environ={})
    return CapabilityBinder(resolver=resolver, dispatcher=dispatcher)


def test_discover_slots_reads_annotated_and_default_markers() -> None:
    """Both declaration forms should be discovered with their shapes."""
    slots = {slot.attribute: slot for slot in discover_slots(OrderProcessor)}

    assert set(slots) == {"price", "audit", "clock"}
    assert slots["price"].name == "pricing"
    assert slots["price"].descriptor == ShapeDescriptor.function(Order, Price)
    assert slots["audit"].name == "audit"
    assert slots["audit"].descriptor.shape is Shape.CONSUMER
    assert slots["clock"].descriptor.shape is Shape.PRODUCER


def test_discover_slots_includes_base_class_slots() -> None:
    """Slots declared on a base class should be found on generated subclasses."""
    generated = type("GeneratedOrderProcessor", (PriorityOrderProcessor,), {})

    slots = {slot.attribute: slot for slot in discover_slots(generated)}

    assert set(slots) == {"price", "audit", "clock", "lookup"}
    assert slots["lookup"].descriptor.typed is False


def test_discover_slots_prefers_explicit_shape() -> None:
    """An explicit descriptor should bypass annotation analysis."""
    (slot,) = discover_slots(ExplicitShapeComponent)

    assert slot.name == "ping"
    assert slot.descriptor == ShapeDescriptor.producer(Clock)


def test_discover_slots_rejects_non_callable_annotation() -> None:
    """Slots whose type is not a Callable should fail binding."""
    with pytest.raises(BindingError) as exc_info:
        discover_slots(WrongTypeComponent)

    assert exc_info.value.attribute == "price"
    assert exc_info.value.component == "WrongTypeComponent"


def test_bind_installs_stubs_with_resolved_endpoints() -> None:
    """Binding should replace each slot with a stub carrying its endpoint."""
    binder = _binder(
        values={"functions": {"pricing": {"url": "http://pricing.test", "authType": "signed"}}}
    )
    processor = OrderProcessor()

    binder.bind(processor)

    assert isinstance(processor.price, CapabilityStub)
    assert processor.price.endpoint.url == "http://pricing.test/pricing"
    assert processor.price.endpoint.auth_mode is AuthMode.SIGNED
    assert processor.audit.endpoint.url == "http://localhost:8135/audit"
    assert processor.clock.endpoint.url == "http://localhost:8134/clock"
    assert processor.label == "not a capability"
    assert not isinstance(OrderProcessor.__dict__["audit"], CapabilityStub)


def test_bound_stub_calls_remote_capability() -> None:
    """A bound slot should perform the HTTP exchange when called."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/pricing"
        return httpx.Response(200, json={"amount": 12.5})

    processor = OrderProcessor()
    _binder(handler).bind(processor)

    assert processor.price(Order(sku="A-1", quantity=1)) == Price(amount=12.5)


def test_rebinding_replaces_existing_stubs() -> None:
    """Binding the same instance twice should install fresh stubs."""
    binder = _binder()
    processor = OrderProcessor()

    binder.bind(processor)
    first = processor.price
    binder.bind(processor)

    assert processor.price is not first
    assert processor.price.endpoint == first.endpoint


def test_bind_warns_for_untyped_slots(caplog: pytest.LogCaptureFixture) -> None:
    """Untyped slots should bind but log a degraded-mode warning."""
    with caplog.at_level("INFO", logger="packages.function_mesh.binding"):
        _binder().bind(PriorityOrderProcessor())

    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("Injected remote capability stub") == 4
    assert any("no concrete types" in message for message in messages)


@pytest.mark.parametrize("component", [SlottedComponent(), FrozenComponent()])
def test_bind_raises_when_slot_cannot_be_set(component: object) -> None:
    """Components that reject attribute assignment should fail binding."""
    with pytest.raises(BindingError) as exc_info:
        _binder().bind(component)

    assert exc_info.value.attribute == "price"


def test_make_stub_builds_stub_without_component() -> None:
    """Stubs can be built directly for builder-style injection."""
    stub = _binder().make_stub("inventory", ShapeDescriptor.producer(Clock))

    assert stub.name == "inventory"
    assert stub.endpoint.url == "http://localhost:8140/inventory"
