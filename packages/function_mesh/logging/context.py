"""Capability log context carried on a ``ContextVar``.

Fields bound here (capability, url, status_code, duration_ms, ...) are merged
into every record logged from the same thread or task. Values keep their
types so JSON output carries numbers and booleans as such.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar, Token

_MESH_CONTEXT: ContextVar[Mapping[str, object]] = ContextVar(
    "function_mesh_log_context", default={}
)


def get_context() -> dict[str, object]:
    """Return a copy of the fields bound in the current context."""
    return dict(_MESH_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind fields for the remainder of the current context; ``None`` is skipped."""
    _MESH_CONTEXT.set(_merged(values))


class log_context:
    """Bind fields for one ``with`` block and restore the previous set on exit.

    Exceptions leaving the block pass through untouched.
    """

    __slots__ = ("_values", "_token")

    def __init__(self, values: Mapping[str, object]) -> None:
        self._values = dict(values)
        self._token: Token[Mapping[str, object]] | None = None

    def __enter__(self) -> None:
        self._token = _MESH_CONTEXT.set(_merged(self._values))

    def __exit__(self, *_: object) -> bool:
        if self._token is not None:
            _MESH_CONTEXT.reset(self._token)
            self._token = None
        return False


def _merged(values: Mapping[str, object]) -> dict[str, object]:
    """Return the current fields overlaid with the non-``None`` ``values``."""
    merged = dict(_MESH_CONTEXT.get())
    merged.update({key: value for key, value in values.items() if value is not None})
    return merged
