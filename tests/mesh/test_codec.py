"""Unit tests for JSON payload encoding and typed decoding."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest
from pydantic import BaseModel, ValidationError

from packages.function_mesh import codec


class PriceInfo(BaseModel):
    sku: str
    amount: float
    quoted_at: datetime


@dataclass
class AuditEvent:
    actor: str
    action: str


def test_encode_writes_models_with_iso_datetimes() -> None:
    """Model arguments should serialize to JSON with ISO-8601 timestamps."""
    body = codec.encode(
        PriceInfo(
            sku="A-1",
            amount=9.5,
            quoted_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        )
    )

    assert json.loads(body) == {
        "sku": "A-1",
        "amount": 9.5,
        "quoted_at": "2024-05-01T12:30:00Z",
    }


def test_encode_accepts_dataclasses_and_plain_values() -> None:
    """Dataclasses and builtin containers should encode without adapters."""
    assert json.loads(codec.encode(AuditEvent(actor="ops", action="login"))) == {
        "actor": "ops",
        "action": "login",
    }
    assert json.loads(codec.encode({"ids": [1, 2]})) == {"ids": [1, 2]}


def test_decode_ignores_unknown_fields() -> None:
    """Unknown response fields should not fail typed decoding."""
    value = codec.decode(
        b'{"sku":"A-1","amount":3,"quoted_at":"2024-05-01T12:30:00Z","extra":true}',
        PriceInfo,
    )

    assert isinstance(value, PriceInfo)
    assert value.amount == 3.0
    assert value.quoted_at.tzinfo is not None


def test_decode_returns_none_for_blank_bodies() -> None:
    """Empty and whitespace bodies should decode to None."""
    assert codec.decode(b"", PriceInfo) is None
    assert codec.decode("  \n", PriceInfo) is None


def test_decode_untyped_returns_generic_values() -> None:
    """Any output types should yield plain dicts and lists."""
    assert codec.decode(b'{"a":[1,2]}', Any) == {"a": [1, 2]}
    assert codec.decode_generic(b"[true]") == [True]


def test_decode_raises_validation_error_on_mismatch() -> None:
    """Bodies that do not match the declared type should fail validation."""
    with pytest.raises(ValidationError):
        codec.decode(b'{"sku":"A-1"}', PriceInfo)


def test_adapter_for_reuses_cached_adapters() -> None:
    """Adapters should be cached per output type."""
    assert codec.adapter_for(PriceInfo) is codec.adapter_for(PriceInfo)
