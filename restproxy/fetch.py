"""Default fetch transports built on :mod:`httpx`.

``HttpxFetch`` and ``AsyncHttpxFetch`` are fetch-shaped callables: they take
a fully resolved URL plus a :class:`~restproxy.types.FetchOptions` descriptor,
send the request, raise :class:`~restproxy.exceptions.ApiError` for non-2xx
responses and decode the body according to ``options["response_type"]``.
"""

from __future__ import annotations

import io
import logging
from typing import Any

import httpx

from restproxy.exceptions import ApiError
from restproxy.types import FetchOptions, ResponseType
from restproxy.urls import headers_to_dict

logger = logging.getLogger(__name__)


def _request_kwargs(options: FetchOptions) -> dict[str, Any]:
    """Translate a fetch descriptor into ``httpx`` request arguments."""
    kwargs: dict[str, Any] = {"headers": headers_to_dict(options.get("headers"))}

    body = options.get("body")
    if isinstance(body, (str, bytes, bytearray)):
        kwargs["content"] = body
    elif body is not None:
        kwargs["json"] = body

    if options.get("query"):
        kwargs["params"] = {k: v for k, v in options["query"].items() if v is not None}
    if "timeout" in options:
        kwargs["timeout"] = options["timeout"]
    return kwargs


def _handle_response(response: httpx.Response, response_type: ResponseType) -> Any:
    """Process an HTTP response, raising on errors.

    On success the body is returned as parsed JSON (``None`` when empty),
    ``str``, a file-like :class:`io.BytesIO` (``"blob"``) or raw ``bytes``.
    With ``"json"`` a body whose content type is not JSON, or that does not
    parse, is returned as text.
    """
    if not response.is_success:
        parsed: Any = None
        try:
            parsed = response.json()
        except ValueError:
            parsed = response.text or None

        error = parsed.get("error") if isinstance(parsed, dict) else None
        if not isinstance(error, dict):
            error = {}

        message = error.get("message") or (
            f"HTTP {response.status_code}: {response.reason_phrase}"
        )
        code = error.get("code") or f"HTTP_{response.status_code}"

        raise ApiError(message, code=code, status=response.status_code, data=parsed)

    if response_type == "text":
        return response.text
    if response_type == "blob":
        return io.BytesIO(response.content)
    if response_type == "bytes":
        return response.content
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if content_type and "json" not in content_type.lower():
        return response.text
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpxFetch:
    """Synchronous fetch transport backed by :class:`httpx.Client`.

    Args:
        base_url: Optional base URL for relative request URLs.
        timeout: Default request timeout in seconds. Defaults to 30.
        client: An existing ``httpx.Client`` to send requests with. The
            transport only closes clients it created itself.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._owns_client = client is None
        self._http = client or httpx.Client(base_url=base_url, timeout=timeout)

    def __call__(self, url: str, options: FetchOptions) -> Any:
        method = options.get("method", "GET")
        response = self._http.request(method, url, **_request_kwargs(options))
        logger.debug("%s %s -> %s", method, response.request.url, response.status_code)
        return _handle_response(response, options.get("response_type", "json"))

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> HttpxFetch:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._owns_client:
            self._http.close()


class AsyncHttpxFetch:
    """Asynchronous fetch transport backed by :class:`httpx.AsyncClient`.

    Args:
        base_url: Optional base URL for relative request URLs.
        timeout: Default request timeout in seconds. Defaults to 30.
        client: An existing ``httpx.AsyncClient``. The transport only closes
            clients it created itself.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __call__(self, url: str, options: FetchOptions) -> Any:
        method = options.get("method", "GET")
        response = await self._http.request(method, url, **_request_kwargs(options))
        logger.debug("%s %s -> %s", method, response.request.url, response.status_code)
        return _handle_response(response, options.get("response_type", "json"))

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> AsyncHttpxFetch:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying async HTTP connection pool."""
        if self._owns_client:
            await self._http.aclose()
