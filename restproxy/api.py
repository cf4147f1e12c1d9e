"""Dynamic REST client builder.

Attribute, item and call access on a client extend its URL; nothing is sent
until one of the verb methods is called::

    from restproxy import BearerAuth, create_api

    api = create_api("https://api.example.com/v1", authorization=BearerAuth("tok"))

    api.users.get({"active": True})             # GET  /v1/users?active=true
    api.users(42).get()                         # GET  /v1/users/42
    api.users(42).posts.post({"title": "Hi"})   # POST /v1/users/42/posts
    api["user-groups"]("admins").delete()       # DELETE /v1/user-groups/admins

Every access returns a new client; a client never changes after
construction, so builders derived from one root can be used concurrently.

The verb names ``get``, ``post``, ``put``, ``patch`` and ``delete`` (in any
letter case) always resolve to the verb, through attributes and items alike:
a path segment with one of these names can only be added as a call argument,
e.g. ``api.files("get")``. Attribute names starting with ``_`` are reserved
for the Python object protocol; use item access for such segments.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

from restproxy.auth import (
    Authorization,
    SyncTokenIssuer,
    TokenIssuer,
    async_authorization_hook,
    authorization_hook,
    issue_google_token,
)
from restproxy._transport import AsyncFetch, Fetch
from restproxy.fetch import AsyncHttpxFetch, HttpxFetch
from restproxy.types import (
    FetchContext,
    FetchOptions,
    HeadersInit,
    QueryObject,
    RequestHook,
    ResponseType,
)
from restproxy.urls import merge_headers, resolve_url, with_query

METHODS = ("get", "post", "put", "patch", "delete")
PAYLOAD_METHODS = ("POST", "PUT", "PATCH", "DELETE")


def is_api_client(client: Any) -> bool:
    """Simple heuristic to check whether ``client`` looks like an API client.

    Returns ``True`` if at least one verb name resolves to a truthy member,
    either as a mapping key or as an attribute.
    """
    if isinstance(client, Mapping):
        return any(client.get(method) for method in METHODS)
    return any(getattr(client, method, None) for method in METHODS)


def _hook_list(hooks: Any) -> list[RequestHook]:
    if hooks is None:
        return []
    if callable(hooks):
        return [hooks]
    return list(hooks)


class _BaseApiClient(ABC):
    """URL accumulation shared by the sync and async clients."""

    __slots__ = ("_url", "_defaults", "_fetch")

    # Item access is for path segments only; never iterate a client.
    __iter__ = None

    def __init__(
        self,
        defaults: FetchOptions | None = None,
        fetch: Any = None,
        *,
        url: str | None = None,
    ) -> None:
        self._defaults: FetchOptions = defaults or {}
        self._url = url or self._defaults.get("base_url") or "/"
        self._fetch = fetch if fetch is not None else self._default_fetch()

    @abstractmethod
    def _default_fetch(self) -> Any:
        """Build the transport used when none is passed in."""

    def _child(self, url: str) -> Any:
        return type(self)(self._defaults, self._fetch, url=url)

    # -- Path building ------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name.lower() in METHODS:
            return getattr(self, name.lower())
        return self._child(resolve_url(self._url, name))

    def __getitem__(self, segment: str | int) -> Any:
        if isinstance(segment, str) and segment.lower() in METHODS:
            return getattr(self, segment.lower())
        return self._child(resolve_url(self._url, str(segment)))

    def __call__(self, *segments: str | int) -> Any:
        return self._child(resolve_url(self._url, *(str(s) for s in segments)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._url!r})"

    # -- Request assembly ---------------------------------------------------

    def _prepare(
        self,
        method: str,
        data: Any,
        query: QueryObject | None,
        options: FetchOptions | None,
    ) -> tuple[FetchContext, list[RequestHook]]:
        """Merge defaults and per-call options into a fresh request context."""
        options = options or {}
        merged: FetchOptions = {
            **self._defaults,
            **options,
            "method": method,
            "headers": merge_headers(
                self._defaults.get("headers"), options.get("headers")
            ),
        }
        if method in PAYLOAD_METHODS and data is not None:
            merged["body"] = data
        else:
            merged.pop("body", None)

        if merged.get("query"):
            merged["query"] = dict(merged["query"])
        merged.pop("base_url", None)
        hooks = _hook_list(merged.pop("on_request", None))
        return FetchContext(with_query(self._url, query), merged), hooks

    @staticmethod
    def _finalize(context: FetchContext) -> tuple[str, FetchOptions]:
        """Fold the (possibly hook-mutated) query into the request URL."""
        options = context.options
        return with_query(context.request, options.pop("query", None)), options


class ApiClient(_BaseApiClient):
    """Synchronous dynamic REST client.

    Args:
        defaults: Options applied to every request: ``base_url``,
            ``headers``, ``query``, ``response_type``, ``timeout`` and
            ``on_request`` hooks.
        fetch: Transport called as ``fetch(url, options)``. Defaults to a
            new :class:`~restproxy.fetch.HttpxFetch`.
        url: URL this client is bound to. Defaults to ``defaults["base_url"]``
            or ``"/"``.
    """

    __slots__ = ()

    def _default_fetch(self) -> Fetch:
        return HttpxFetch(timeout=self._defaults.get("timeout", 30.0))

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *args: Any) -> None:
        close = getattr(self._fetch, "close", None)
        if close is not None:
            close()

    def _request(
        self,
        method: str,
        data: Any,
        query: QueryObject | None,
        options: FetchOptions | None,
    ) -> Any:
        context, hooks = self._prepare(method, data, query, options)
        for hook in hooks:
            result = hook(context)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise TypeError(
                    "ApiClient cannot run async request hooks; use AsyncApiClient"
                )
        url, request_options = self._finalize(context)
        return self._fetch(url, request_options)

    def get(self, query: QueryObject | None = None, options: FetchOptions | None = None) -> Any:
        """Send a GET request. Any ``body`` in ``options`` is dropped."""
        return self._request("GET", None, query, options)

    def post(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send a POST request with ``data`` as the body."""
        return self._request("POST", data, query, options)

    def put(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send a PUT request with ``data`` as the body."""
        return self._request("PUT", data, query, options)

    def patch(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send a PATCH request with ``data`` as the body."""
        return self._request("PATCH", data, query, options)

    def delete(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send a DELETE request, with ``data`` as the body if given."""
        return self._request("DELETE", data, query, options)


class AsyncApiClient(_BaseApiClient):
    """Asynchronous dynamic REST client.

    Same construction and path building as :class:`ApiClient`; the verb
    methods are coroutines and ``on_request`` hooks may be async.
    """

    __slots__ = ()

    def _default_fetch(self) -> AsyncFetch:
        return AsyncHttpxFetch(timeout=self._defaults.get("timeout", 30.0))

    async def __aenter__(self) -> AsyncApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        close = getattr(self._fetch, "close", None)
        if close is not None:
            result = close()
            if inspect.isawaitable(result):
                await result

    async def _request(
        self,
        method: str,
        data: Any,
        query: QueryObject | None,
        options: FetchOptions | None,
    ) -> Any:
        context, hooks = self._prepare(method, data, query, options)
        for hook in hooks:
            result = hook(context)
            if inspect.isawaitable(result):
                await result
        url, request_options = self._finalize(context)
        return await self._fetch(url, request_options)

    async def get(
        self, query: QueryObject | None = None, options: FetchOptions | None = None
    ) -> Any:
        """Send an async GET request. Any ``body`` in ``options`` is dropped."""
        return await self._request("GET", None, query, options)

    async def post(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send an async POST request."""
        return await self._request("POST", data, query, options)

    async def put(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send an async PUT request."""
        return await self._request("PUT", data, query, options)

    async def patch(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send an async PATCH request."""
        return await self._request("PATCH", data, query, options)

    async def delete(
        self,
        data: Any = None,
        query: QueryObject | None = None,
        options: FetchOptions | None = None,
    ) -> Any:
        """Send an async DELETE request."""
        return await self._request("DELETE", data, query, options)


def _defaults(
    base_url: str,
    headers: HeadersInit,
    query: QueryObject | None,
    timeout: float,
    response_type: ResponseType,
    hooks: Iterable[RequestHook],
) -> FetchOptions:
    defaults: FetchOptions = {
        "base_url": base_url,
        "response_type": response_type,
        "timeout": timeout,
    }
    if headers:
        defaults["headers"] = merge_headers(headers)
    if query:
        defaults["query"] = dict(query)
    hooks = list(hooks)
    if hooks:
        defaults["on_request"] = hooks
    return defaults


def create_api(
    base_url: str = "/",
    *,
    headers: HeadersInit = None,
    query: QueryObject | None = None,
    authorization: Authorization | None = None,
    timeout: float = 30.0,
    response_type: ResponseType = "json",
    on_request: Any = None,
    fetch: Fetch | None = None,
    token_issuer: SyncTokenIssuer = issue_google_token,
) -> ApiClient:
    """Create a synchronous client rooted at ``base_url``.

    Args:
        base_url: Root URL every path is appended to.
        headers: Default headers; per-call headers win per key.
        query: Default query parameters, replaced by a per-call
            ``options["query"]``.
        authorization: Credentials applied to every request before any other
            ``on_request`` hook runs.
        timeout: Request timeout in seconds. Defaults to 30.
        response_type: Default response decoding (``"json"``, ``"text"``,
            ``"blob"`` or ``"bytes"``).
        on_request: A hook or list of hooks called with a
            :class:`~restproxy.types.FetchContext` before each request.
        fetch: Transport to use instead of a new
            :class:`~restproxy.fetch.HttpxFetch`.
        token_issuer: Token exchange used by
            :class:`~restproxy.auth.GoogleServiceAccountAuth`. Must be
            synchronous; pass coroutine issuers to :func:`create_async_api`.
    """
    hooks = _hook_list(on_request)
    if authorization is not None:
        hooks.insert(0, authorization_hook(authorization, token_issuer=token_issuer))
    defaults = _defaults(base_url, headers, query, timeout, response_type, hooks)
    return ApiClient(defaults, fetch or HttpxFetch(timeout=timeout))


def create_async_api(
    base_url: str = "/",
    *,
    headers: HeadersInit = None,
    query: QueryObject | None = None,
    authorization: Authorization | None = None,
    timeout: float = 30.0,
    response_type: ResponseType = "json",
    on_request: Any = None,
    fetch: AsyncFetch | None = None,
    token_issuer: TokenIssuer = issue_google_token,
) -> AsyncApiClient:
    """Create an asynchronous client rooted at ``base_url``.

    Takes the same arguments as :func:`create_api`; hooks and the token
    issuer may be coroutines.
    """
    hooks = _hook_list(on_request)
    if authorization is not None:
        hooks.insert(
            0, async_authorization_hook(authorization, token_issuer=token_issuer)
        )
    defaults = _defaults(base_url, headers, query, timeout, response_type, hooks)
    return AsyncApiClient(defaults, fetch or AsyncHttpxFetch(timeout=timeout))
