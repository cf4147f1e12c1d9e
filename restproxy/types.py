"""Request option and hook types shared by the builders and transports."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Mapping, Sequence, TypedDict, Union

ResponseType = Literal["json", "text", "blob", "bytes"]

HeadersInit = Union[Mapping[str, str], Sequence[tuple[str, str]], None]
QueryObject = Mapping[str, Any]


@dataclass
class FetchContext:
    """Mutable handle passed to ``on_request`` hooks.

    Hooks may replace or update ``options["headers"]`` and
    ``options["query"]``; the builder folds the query into ``request``
    after every hook has run.
    """

    request: str
    options: FetchOptions


RequestHook = Callable[[FetchContext], Union[Awaitable[None], None]]


class FetchOptions(TypedDict, total=False):
    """Options understood by the builders and the fetch transports.

    ``base_url`` and ``on_request`` are consumed by the builder and never
    reach the transport.
    """

    base_url: str
    method: str
    headers: HeadersInit
    query: QueryObject
    body: Any
    response_type: ResponseType
    timeout: float
    on_request: Any
