"""Unit tests for capability shape analysis."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Optional

import pytest
from pydantic import BaseModel

from packages.function_mesh.errors import ShapeAnalysisError
from packages.function_mesh.shapes import (
    Consumer,
    Producer,
    RemoteFunction,
    Shape,
    ShapeDescriptor,
    analyze,
)


class Order(BaseModel):
    sku: str
    quantity: int


class Price(BaseModel):
    amount: float


def test_analyze_maps_single_argument_with_result_to_function() -> None:
    """Callable[[I], O] should be a typed function."""
    descriptor = analyze(RemoteFunction[Order, Price])

    assert descriptor == ShapeDescriptor.function(Order, Price)
    assert descriptor.shape.http_method == "POST"
    assert descriptor.describe_output() == "Price"


def test_analyze_maps_zero_arguments_to_producer() -> None:
    """Callable[[], O] should be a producer sent as GET."""
    descriptor = analyze(Producer[Price])

    assert descriptor.shape is Shape.PRODUCER
    assert descriptor.output_type is Price
    assert descriptor.shape.http_method == "GET"
    assert descriptor.shape.takes_input is False


def test_analyze_maps_none_result_to_consumer() -> None:
    """Callable[[I], None] should be a consumer that returns nothing."""
    descriptor = analyze(Consumer[Order])

    assert descriptor.shape is Shape.CONSUMER
    assert descriptor.input_type is Order
    assert descriptor.describe_output() == "None"


def test_analyze_unwraps_optional_slot_annotation() -> None:
    """Optional slot annotations should analyze like their inner Callable."""
    descriptor = analyze(Optional[Callable[[Order], Price]])

    assert descriptor == ShapeDescriptor.function(Order, Price)


@pytest.mark.parametrize("declared", [None, Any, Callable])
def test_analyze_degrades_to_untyped_function(declared: object) -> None:
    """Missing or bare annotations should fall back to untyped functions."""
    descriptor = analyze(declared)

    assert descriptor.shape is Shape.FUNCTION
    assert descriptor.typed is False
    assert descriptor.output_type is Any
    assert descriptor.describe_output() == "Any (untyped)"


def test_analyze_ellipsis_parameters_degrade_to_untyped() -> None:
    """Callable[..., O] should decode generically; Callable[..., None] stays a consumer."""
    assert analyze(Callable[..., Price]) == ShapeDescriptor.untyped()

    consumer = analyze(Callable[..., None])
    assert consumer.shape is Shape.CONSUMER
    assert consumer.typed is False


def test_analyze_erases_unsubstituted_type_vars() -> None:
    """Generic aliases used without parameters should erase types to Any."""
    descriptor = analyze(RemoteFunction)

    assert descriptor.shape is Shape.FUNCTION
    assert descriptor.input_type is Any
    assert descriptor.output_type is Any
    assert descriptor.typed is False

    consumer = analyze(Consumer)
    assert consumer.shape is Shape.CONSUMER
    assert consumer.typed is False


def test_analyze_rejects_non_callable_types() -> None:
    """Plain value types are not capability slots."""
    with pytest.raises(ShapeAnalysisError) as exc_info:
        analyze(int)

    assert exc_info.value.declared_type is int


def test_analyze_rejects_callable_without_input_or_output() -> None:
    """Callable[[], None] has no supported calling convention."""
    with pytest.raises(ShapeAnalysisError):
        analyze(Callable[[], None])


def test_analyze_rejects_multiple_parameters() -> None:
    """Capabilities take at most one argument."""
    with pytest.raises(ShapeAnalysisError):
        analyze(Callable[[Order, Order], Price])
