"""restproxy: dynamic REST clients.

Provides synchronous and asynchronous clients whose paths are built by
attribute and call access, with pluggable authorization and pagination
helpers.

Quick start::

    from restproxy import BearerAuth, create_api

    api = create_api("https://api.example.com", authorization=BearerAuth("my-token"))
    users = api.users.get({"limit": 10})
    api.users(42).patch({"name": "Ada"})

For async usage::

    from restproxy import create_async_api

    async def main():
        async with create_async_api("https://api.example.com") as api:
            users = await api.users.get()
"""

from __future__ import annotations

from restproxy.api import (
    ApiClient,
    AsyncApiClient,
    create_api,
    create_async_api,
    is_api_client,
)
from restproxy.auth import (
    ApiKeyAuth,
    Authorization,
    BasicAuth,
    BearerAuth,
    GoogleAuthOptions,
    GoogleServiceAccountAuth,
    NoAuth,
    authorize,
    authorize_async,
    parse_authorization,
)
from restproxy.cursor import (
    decode_cursor_cursor,
    decode_link_cursor,
    decode_offset_cursor,
    encode_cursor_cursor,
    encode_link_cursor,
    encode_offset_cursor,
)
from restproxy.exceptions import ApiError, InvalidCursorError, RestProxyError
from restproxy.fetch import AsyncHttpxFetch, HttpxFetch
from restproxy.pagination import (
    PaginationOptions,
    PaginationResult,
    paginate,
    paginate_sync,
)
from restproxy.types import FetchContext, FetchOptions

__all__ = [
    "ApiClient",
    "AsyncApiClient",
    "create_api",
    "create_async_api",
    "is_api_client",
    "ApiKeyAuth",
    "Authorization",
    "BasicAuth",
    "BearerAuth",
    "GoogleAuthOptions",
    "GoogleServiceAccountAuth",
    "NoAuth",
    "authorize",
    "authorize_async",
    "parse_authorization",
    "decode_cursor_cursor",
    "decode_link_cursor",
    "decode_offset_cursor",
    "encode_cursor_cursor",
    "encode_link_cursor",
    "encode_offset_cursor",
    "ApiError",
    "InvalidCursorError",
    "RestProxyError",
    "AsyncHttpxFetch",
    "HttpxFetch",
    "PaginationOptions",
    "PaginationResult",
    "paginate",
    "paginate_sync",
    "FetchContext",
    "FetchOptions",
]

__version__ = "0.1.0"
