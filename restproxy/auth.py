"""Authorization strategies and the request hook that applies them.

An authorization is one of a closed set of variants::

    BearerAuth(token="...")
    BasicAuth(username="user", password="pass")
    ApiKeyAuth(in_="query", name="key", value="...")
    GoogleServiceAccountAuth(
        credentials=Path("key.json").read_text(),
        auth_options=GoogleAuthOptions(scope=["https://www.googleapis.com/auth/cloud-platform"]),
    )

:func:`authorize` mutates a :class:`~restproxy.types.FetchContext` in place;
:func:`authorization_hook` binds an authorization into an ``on_request`` hook
for :class:`~restproxy.api.ApiClient`. The ``*_async`` variants are used by
:class:`~restproxy.api.AsyncApiClient`.
"""

from __future__ import annotations

import asyncio
import base64
import inspect
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Mapping, TypedDict, Union

from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from restproxy.types import FetchContext, QueryObject
from restproxy.urls import merge_headers


@dataclass(frozen=True)
class NoAuth:
    """Send requests unchanged."""


@dataclass(frozen=True)
class BasicAuth:
    """HTTP basic authentication.

    ``value`` is a pre-encoded ``base64(username:password)`` token and takes
    precedence over ``username``/``password``.
    """

    username: str | None = None
    password: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class BearerAuth:
    token: str


@dataclass(frozen=True)
class ApiKeyAuth:
    """An API key sent as a query parameter or a header."""

    in_: Literal["query", "header"]
    name: str
    value: str


@dataclass(frozen=True)
class GoogleAuthOptions:
    scope: list[str] = field(default_factory=list)
    sub: str | None = None


@dataclass(frozen=True)
class GoogleServiceAccountAuth:
    """OAuth2 access token issued for a Google service account.

    Attributes:
        credentials: The service account key file as a JSON string.
        auth_options: Scopes to request and, for domain-wide delegation,
            the user to impersonate.
    """

    credentials: str
    auth_options: GoogleAuthOptions = field(default_factory=GoogleAuthOptions)


Authorization = Union[
    NoAuth, BasicAuth, BearerAuth, ApiKeyAuth, GoogleServiceAccountAuth
]


class GoogleToken(TypedDict):
    access_token: str


SyncTokenIssuer = Callable[[str, GoogleAuthOptions], GoogleToken]
TokenIssuer = Callable[
    [str, GoogleAuthOptions], Union[GoogleToken, Awaitable[GoogleToken]]
]


def parse_authorization(config: Mapping[str, Any] | None) -> Authorization:
    """Build an authorization from a mapping tagged with ``type``.

    Keys follow the JSON shape used in configuration files, e.g.
    ``{"type": "apiKey", "in": "header", "name": "X-Key", "value": "..."}``.
    A missing or unknown ``type`` yields :class:`NoAuth`.
    """
    if not config:
        return NoAuth()

    kind = config.get("type")
    if kind == "basic":
        return BasicAuth(
            username=config.get("username"),
            password=config.get("password"),
            value=config.get("value"),
        )
    if kind == "bearer":
        return BearerAuth(token=config["token"])
    if kind == "apiKey":
        return ApiKeyAuth(in_=config["in"], name=config["name"], value=config["value"])
    if kind in ("googleServiceAccount", "googlejwtsa"):
        credentials = config.get("credentials") or config["googleServiceAccountCredentials"]
        options = config.get("authOptions") or config.get("googleAuthOptions") or {}
        return GoogleServiceAccountAuth(
            credentials=credentials,
            auth_options=GoogleAuthOptions(
                scope=list(options.get("scope", [])),
                sub=options.get("sub"),
            ),
        )
    return NoAuth()


def issue_google_token(credentials: str, options: GoogleAuthOptions) -> GoogleToken:
    """Exchange service account credentials for an OAuth2 access token.

    Signs a JWT with the service account key and trades it at the token
    endpoint named in the key file. Blocking.

    Raises:
        ValueError: If ``credentials`` is not a valid service account key.
        google.auth.exceptions.RefreshError: If the token exchange fails.
    """
    info = json.loads(credentials)
    creds = service_account.Credentials.from_service_account_info(
        info, scopes=options.scope or None, subject=options.sub
    )
    creds.refresh(GoogleAuthRequest())
    return {"access_token": creds.token}


def _static_entries(
    authorization: Authorization,
) -> tuple[dict[str, str], dict[str, str]]:
    """Query and header entries for every variant that needs no I/O."""
    query: dict[str, str] = {}
    headers: dict[str, str] = {}

    if isinstance(authorization, BasicAuth):
        token = authorization.value
        if token is None:
            raw = f"{authorization.username}:{authorization.password}"
            token = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
    elif isinstance(authorization, BearerAuth):
        headers["Authorization"] = f"Bearer {authorization.token}"
    elif isinstance(authorization, ApiKeyAuth):
        if authorization.in_ == "query":
            query[authorization.name] = authorization.value
        elif authorization.in_ == "header":
            headers[authorization.name] = authorization.value

    return query, headers


def _apply(context: FetchContext, query: dict[str, str], headers: dict[str, str]) -> None:
    if query:
        current_query: QueryObject = context.options.get("query") or {}
        context.options["query"] = {**current_query, **query}
    if headers:
        context.options["headers"] = merge_headers(context.options.get("headers"), headers)


def authorize(
    authorization: Authorization | None,
    context: FetchContext,
    *,
    token_issuer: SyncTokenIssuer = issue_google_token,
) -> None:
    """Add the credentials described by ``authorization`` to ``context``.

    Existing query parameters and headers are kept unless the authorization
    sets the same key; header names are compared case-insensitively.
    ``None`` behaves like :class:`NoAuth`.

    Raises:
        TypeError: If ``token_issuer`` returns an awaitable.
    """
    authorization = authorization or NoAuth()
    query, headers = _static_entries(authorization)

    if isinstance(authorization, GoogleServiceAccountAuth):
        token = token_issuer(authorization.credentials, authorization.auth_options)
        if inspect.isawaitable(token):
            if inspect.iscoroutine(token):
                token.close()
            raise TypeError(
                "authorize cannot await the token issuer; use authorize_async"
            )
        headers["Authorization"] = f"Bearer {token['access_token']}"

    _apply(context, query, headers)


async def authorize_async(
    authorization: Authorization | None,
    context: FetchContext,
    *,
    token_issuer: TokenIssuer = issue_google_token,
) -> None:
    """Async counterpart of :func:`authorize`.

    A synchronous ``token_issuer`` runs in a worker thread so the event loop
    is not blocked during the token exchange.
    """
    authorization = authorization or NoAuth()
    query, headers = _static_entries(authorization)

    if isinstance(authorization, GoogleServiceAccountAuth):
        if inspect.iscoroutinefunction(token_issuer):
            token = await token_issuer(
                authorization.credentials, authorization.auth_options
            )
        else:
            token = await asyncio.to_thread(
                token_issuer, authorization.credentials, authorization.auth_options
            )
            if inspect.isawaitable(token):
                token = await token
        headers["Authorization"] = f"Bearer {token['access_token']}"

    _apply(context, query, headers)


def authorization_hook(
    authorization: Authorization | None,
    *,
    token_issuer: SyncTokenIssuer = issue_google_token,
) -> Callable[[FetchContext], None]:
    """Return an ``on_request`` hook applying ``authorization``."""

    def hook(context: FetchContext) -> None:
        authorize(authorization, context, token_issuer=token_issuer)

    return hook


def async_authorization_hook(
    authorization: Authorization | None,
    *,
    token_issuer: TokenIssuer = issue_google_token,
) -> Callable[[FetchContext], Awaitable[None]]:
    """Return an async ``on_request`` hook applying ``authorization``."""

    async def hook(context: FetchContext) -> None:
        await authorize_async(authorization, context, token_issuer=token_issuer)

    return hook
