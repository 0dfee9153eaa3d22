"""Errors raised by ``HttpClient.send`` for one capability exchange."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class HttpExchangeError(Exception):
    """One request/response exchange did not produce a 2xx response."""

    message: str
    method: str
    url: str

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class HttpRequestError(HttpExchangeError):
    """The request could not be built or sent, or no response arrived."""

    cause: Exception | None = None


@dataclass(eq=False)
class HttpStatusError(HttpExchangeError):
    """The remote answered with a non-2xx status; ``body`` is the raw payload."""

    status_code: int = 0
    body: bytes = b""

    @property
    def text(self) -> str:
        """Return the body decoded as UTF-8, replacing undecodable bytes."""
        return self.body.decode("utf-8", errors="replace")
