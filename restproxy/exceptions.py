"""Exception classes for restproxy."""

from __future__ import annotations

from typing import Any


class RestProxyError(Exception):
    """Base class for all errors raised by restproxy itself."""


class ApiError(RestProxyError):
    """Raised by the default fetch transports when a request fails.

    Attributes:
        code: Machine-readable error code (e.g. ``"NOT_FOUND"`` taken from
            a JSON error body, or ``"HTTP_404"``).
        status: HTTP status code of the response.
        message: Human-readable error description.
        data: Decoded response body, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str,
        status: int,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
        self.message = message
        self.data = data

    def __repr__(self) -> str:
        return (
            f"ApiError(code={self.code!r}, status={self.status}, "
            f"message={self.message!r})"
        )

    def __str__(self) -> str:
        return f"[{self.code}] {self.message} (HTTP {self.status})"


class InvalidCursorError(RestProxyError, ValueError):
    """Raised when a pagination cursor cannot be decoded by the chosen decoder."""

    def __init__(self, cursor: str, expected: str) -> None:
        super().__init__(f"Invalid cursor: expected a {expected!r} cursor")
        self.cursor = cursor
        self.expected = expected
