"""Outbound HTTP transport for capability stubs."""

from .client import HttpClient
from .errors import HttpRequestError, HttpStatusError

__all__ = [
    "HttpClient",
    "HttpRequestError",
    "HttpStatusError",
]
