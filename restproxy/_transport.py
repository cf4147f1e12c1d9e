"""Transport protocol definitions for type checking.

These protocols describe the fetch-shaped callables the builders delegate
to. They are used only for static type checking and are not instantiated
at runtime.
"""

from __future__ import annotations

from typing import Any, Protocol

from restproxy.types import FetchOptions


class Fetch(Protocol):
    """Protocol for a synchronous fetch transport."""

    def __call__(self, url: str, options: FetchOptions) -> Any: ...


class AsyncFetch(Protocol):
    """Protocol for an asynchronous fetch transport."""

    async def __call__(self, url: str, options: FetchOptions) -> Any: ...

