"""Structured stdout logging for capability invocations.

``configure_logging`` installs the handler; ``log_context`` binds capability
fields that every record logged inside the block carries.
"""

from .config import ContextFilter, JsonFormatter, PlainFormatter, configure_logging
from .context import bind_context, get_context, log_context

__all__ = [
    "ContextFilter",
    "JsonFormatter",
    "PlainFormatter",
    "bind_context",
    "configure_logging",
    "get_context",
    "log_context",
]
