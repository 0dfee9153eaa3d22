"""JSON encoding and typed decoding for capability payloads."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter

JSON_MEDIA_TYPE = "application/json"

_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def encode(value: object) -> bytes:
    """Serialize one argument to JSON bytes.

    Pydantic models, dataclasses, datetimes and plain containers are all
    accepted; datetimes are written as ISO-8601 strings.
    """
    return _ANY_ADAPTER.dump_json(value)


def decode(body: bytes | str, output_type: Any) -> Any:
    """Decode a JSON body into ``output_type``; blank bodies decode to ``None``.

    Unknown fields on model types are ignored. ``Any`` (or ``None``) yields
    generic dicts, lists and scalars.
    """
    if is_blank(body):
        return None
    return adapter_for(output_type).validate_json(body)


def decode_generic(body: bytes | str) -> Any:
    """Decode a JSON body without a target type."""
    if is_blank(body):
        return None
    return _ANY_ADAPTER.validate_json(body)


def is_blank(body: bytes | str | None) -> bool:
    """Return whether a body is absent or whitespace only."""
    return body is None or not body.strip()


@lru_cache(maxsize=256)
def _cached_adapter(output_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(output_type)


def adapter_for(output_type: Any) -> TypeAdapter[Any]:
    """Return a cached ``TypeAdapter`` for one declared output type."""
    if output_type is None or output_type is Any:
        return _ANY_ADAPTER
    try:
        return _cached_adapter(output_type)
    except TypeError:
        # unhashable annotations
        return TypeAdapter(output_type)
