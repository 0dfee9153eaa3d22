"""Calling-convention analysis for declared capability slots.

A slot is declared with a ``Callable`` type. Its parameters decide the shape:

- ``Callable[[I], O]`` is a function (POST, decoded result).
- ``Callable[[], O]`` is a producer (GET, decoded result).
- ``Callable[[I], None]`` is a consumer (POST, result discarded).

Bare ``Callable``, ``Callable[..., O]``, ``Any`` and unannotated slots run in
the degraded untyped mode: they behave like functions and decode responses
into generic JSON values (dicts, lists, scalars) instead of a declared type.
"""

from __future__ import annotations

import collections.abc
import types
import typing
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, TypeVar

from packages.function_mesh.errors import ShapeAnalysisError

I = TypeVar("I")
O = TypeVar("O")

RemoteFunction = Callable[[I], O]
Producer = Callable[[], O]
Consumer = Callable[[I], None]


class Shape(str, Enum):
    """Calling convention of one capability."""

    FUNCTION = "function"
    PRODUCER = "producer"
    CONSUMER = "consumer"

    @property
    def http_method(self) -> str:
        """Return the HTTP verb used on the wire for this shape."""
        return "GET" if self is Shape.PRODUCER else "POST"

    @property
    def takes_input(self) -> bool:
        """Return whether stubs of this shape accept one argument."""
        return self is not Shape.PRODUCER

    @property
    def returns_output(self) -> bool:
        """Return whether stubs of this shape decode a response value."""
        return self is not Shape.CONSUMER


@dataclass(frozen=True, slots=True)
class ShapeDescriptor:
    """Shape plus concrete input/output types for one capability."""

    shape: Shape
    input_type: Any = None
    output_type: Any = None
    typed: bool = True

    @classmethod
    def function(cls, input_type: Any, output_type: Any) -> ShapeDescriptor:
        """Describe a function capability explicitly."""
        return cls(shape=Shape.FUNCTION, input_type=input_type, output_type=output_type)

    @classmethod
    def producer(cls, output_type: Any) -> ShapeDescriptor:
        """Describe a producer capability explicitly."""
        return cls(shape=Shape.PRODUCER, output_type=output_type)

    @classmethod
    def consumer(cls, input_type: Any) -> ShapeDescriptor:
        """Describe a consumer capability explicitly."""
        return cls(shape=Shape.CONSUMER, input_type=input_type)

    @classmethod
    def untyped(cls) -> ShapeDescriptor:
        """Describe a function whose types are unknown (degraded mode)."""
        return cls(shape=Shape.FUNCTION, input_type=Any, output_type=Any, typed=False)

    def describe_output(self) -> str:
        """Return a short display name for the decoded output type."""
        if not self.shape.returns_output:
            return "None"
        if not self.typed:
            return "Any (untyped)"
        return getattr(self.output_type, "__name__", None) or repr(self.output_type)


def analyze(declared_type: object) -> ShapeDescriptor:
    """Return the shape descriptor for one declared slot type."""
    declared_type = _strip_optional(declared_type)
    if declared_type is None or declared_type is Any:
        return ShapeDescriptor.untyped()
    if declared_type is collections.abc.Callable or declared_type is typing.Callable:
        return ShapeDescriptor.untyped()

    if typing.get_origin(declared_type) is not collections.abc.Callable:
        raise ShapeAnalysisError(
            message=f"capability slot type must be a Callable, got {declared_type!r}",
            declared_type=declared_type,
        )

    args = typing.get_args(declared_type)
    if not args:
        return ShapeDescriptor.untyped()

    parameters, output_type = args[0], args[-1]
    if _has_type_vars(parameters, output_type):
        return _erase_type_vars(_analyze_callable(declared_type, parameters, output_type))
    return _analyze_callable(declared_type, parameters, output_type)


def _analyze_callable(
    declared_type: object, parameters: Any, output_type: Any
) -> ShapeDescriptor:
    """Map ``Callable`` parameters and return annotation onto one shape."""
    if parameters is Ellipsis:
        if _is_none(output_type):
            return ShapeDescriptor(
                shape=Shape.CONSUMER, input_type=Any, output_type=None, typed=False
            )
        return ShapeDescriptor.untyped()

    if len(parameters) == 0:
        if _is_none(output_type):
            raise ShapeAnalysisError(
                message="Callable[[], None] has neither input nor output",
                declared_type=declared_type,
            )
        return ShapeDescriptor.producer(output_type)

    if len(parameters) == 1:
        if _is_none(output_type):
            return ShapeDescriptor.consumer(parameters[0])
        return ShapeDescriptor.function(parameters[0], output_type)

    raise ShapeAnalysisError(
        message=f"capabilities take at most one argument, got {len(parameters)}",
        declared_type=declared_type,
    )


def _is_none(value: object) -> bool:
    """Return whether a Callable return annotation means "no value"."""
    return value is None or value is type(None)


def _strip_optional(declared_type: object) -> object:
    """Unwrap ``X | None`` so optional slot annotations analyze as ``X``."""
    origin = typing.get_origin(declared_type)
    if origin is not typing.Union and origin is not types.UnionType:
        return declared_type
    members = [arg for arg in typing.get_args(declared_type) if not _is_none(arg)]
    if len(members) == 1:
        return members[0]
    return declared_type


def _has_type_vars(parameters: object, output_type: object) -> bool:
    """Return whether a Callable still carries unsubstituted type variables."""
    candidates = [output_type]
    if isinstance(parameters, (list, tuple)):
        candidates.extend(parameters)
    return any(isinstance(candidate, TypeVar) for candidate in candidates)


def _erase_type_vars(descriptor: ShapeDescriptor) -> ShapeDescriptor:
    """Replace unsubstituted type variables with ``Any`` in degraded mode."""
    return replace(
        descriptor,
        input_type=Any if isinstance(descriptor.input_type, TypeVar) else descriptor.input_type,
        output_type=Any if isinstance(descriptor.output_type, TypeVar) else descriptor.output_type,
        typed=False,
    )
