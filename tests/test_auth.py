"""Tests for the authorization resolver."""

from __future__ import annotations

import base64
from typing import Any

import pytest

from restproxy import (
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    FetchContext,
    GoogleAuthOptions,
    GoogleServiceAccountAuth,
    NoAuth,
    authorize,
    authorize_async,
    create_api,
    parse_authorization,
)
from restproxy import auth as auth_module


def make_context(**options: Any) -> FetchContext:
    return FetchContext("https://api.test/items", dict(options))


class StubIssuer:
    """Token issuer that records its arguments and returns a fixed token."""

    def __init__(self, token: str = "ya29.token") -> None:
        self.token = token
        self.calls: list[tuple[str, GoogleAuthOptions]] = []

    def __call__(self, credentials: str, options: GoogleAuthOptions) -> dict[str, str]:
        self.calls.append((credentials, options))
        return {"access_token": self.token}


GOOGLE_AUTH = GoogleServiceAccountAuth(
    credentials='{"type": "service_account"}',
    auth_options=GoogleAuthOptions(
        scope=["https://www.googleapis.com/auth/drive"], sub="ops@example.com"
    ),
)


# ---------------------------------------------------------------------------
# Static variants
# ---------------------------------------------------------------------------


class TestAuthorize:
    """Verify each variant's header and query mutations."""

    def test_none_leaves_context_untouched(self) -> None:
        ctx = make_context(headers={"A": "1"}, query={"q": "x"})
        authorize(None, ctx)
        assert ctx.options == {"headers": {"A": "1"}, "query": {"q": "x"}}

    def test_no_auth_leaves_context_untouched(self) -> None:
        ctx = make_context()
        authorize(NoAuth(), ctx)
        assert ctx.options == {}

    def test_basic_from_username_and_password(self) -> None:
        ctx = make_context()
        authorize(BasicAuth(username="user", password="pass"), ctx)
        expected = base64.b64encode(b"user:pass").decode()
        assert ctx.options["headers"] == {"Authorization": f"Basic {expected}"}

    def test_basic_value_takes_precedence(self) -> None:
        ctx = make_context()
        authorize(BasicAuth(username="user", password="pass", value="cHJlOmVuYw=="), ctx)
        assert ctx.options["headers"]["Authorization"] == "Basic cHJlOmVuYw=="

    def test_bearer(self) -> None:
        ctx = make_context(headers={"Accept": "application/json"}, query={"page": "1"})
        authorize(BearerAuth("abc"), ctx)
        assert ctx.options["headers"] == {
            "Accept": "application/json",
            "Authorization": "Bearer abc",
        }
        assert ctx.options["query"] == {"page": "1"}

    def test_bearer_does_not_add_query(self) -> None:
        ctx = make_context()
        authorize(BearerAuth("abc"), ctx)
        assert "query" not in ctx.options

    def test_bearer_replaces_existing_authorization(self) -> None:
        ctx = make_context(headers={"Authorization": "Bearer old"})
        authorize(BearerAuth("new"), ctx)
        assert ctx.options["headers"] == {"Authorization": "Bearer new"}

    def test_bearer_replaces_lowercase_authorization(self) -> None:
        ctx = make_context(headers={"authorization": "stale", "accept": "text/csv"})
        authorize(BearerAuth("new"), ctx)
        assert ctx.options["headers"] == {"accept": "text/csv", "Authorization": "Bearer new"}

    def test_api_key_in_query(self) -> None:
        ctx = make_context(headers={"A": "1"}, query={"page": "2"})
        authorize(ApiKeyAuth(in_="query", name="key", value="v1"), ctx)
        assert ctx.options["query"] == {"page": "2", "key": "v1"}
        assert ctx.options["headers"] == {"A": "1"}

    def test_api_key_in_header(self) -> None:
        ctx = make_context(query={"page": "2"})
        authorize(ApiKeyAuth(in_="header", name="X-Api-Key", value="v1"), ctx)
        assert ctx.options["headers"] == {"X-Api-Key": "v1"}
        assert ctx.options["query"] == {"page": "2"}

    def test_existing_options_not_mutated_in_place(self) -> None:
        headers = {"A": "1"}
        ctx = make_context(headers=headers)
        authorize(BearerAuth("abc"), ctx)
        assert headers == {"A": "1"}


# ---------------------------------------------------------------------------
# Google service account
# ---------------------------------------------------------------------------


class TestGoogleServiceAccount:
    """Verify the token exchange path."""

    def test_issuer_called_with_credentials_and_options(self) -> None:
        issuer = StubIssuer()
        ctx = make_context()

        authorize(GOOGLE_AUTH, ctx, token_issuer=issuer)

        assert issuer.calls == [(GOOGLE_AUTH.credentials, GOOGLE_AUTH.auth_options)]
        assert ctx.options["headers"] == {"Authorization": "Bearer ya29.token"}

    def test_issuer_failure_propagates(self) -> None:
        def failing(credentials: str, options: GoogleAuthOptions) -> dict[str, str]:
            raise ValueError("malformed credentials")

        ctx = make_context()
        with pytest.raises(ValueError, match="malformed credentials"):
            authorize(GOOGLE_AUTH, ctx, token_issuer=failing)
        assert ctx.options == {}

    def test_sync_authorize_rejects_async_issuer(self) -> None:
        async def issuer(credentials: str, options: GoogleAuthOptions) -> dict[str, str]:
            return {"access_token": "never"}

        ctx = make_context()
        with pytest.raises(TypeError, match="authorize_async"):
            authorize(GOOGLE_AUTH, ctx, token_issuer=issuer)  # type: ignore[arg-type]
        assert ctx.options == {}

    def test_sync_client_rejects_async_issuer(self) -> None:
        async def issuer(credentials: str, options: GoogleAuthOptions) -> dict[str, str]:
            return {"access_token": "never"}

        calls: list[str] = []
        api = create_api(
            "https://api.test",
            authorization=GOOGLE_AUTH,
            token_issuer=issuer,  # type: ignore[arg-type]
            fetch=lambda url, options: calls.append(url),
        )

        with pytest.raises(TypeError):
            api.files.get()
        assert calls == []

    def test_failure_aborts_request_before_transport(self) -> None:
        def failing(credentials: str, options: GoogleAuthOptions) -> dict[str, str]:
            raise RuntimeError("token endpoint unreachable")

        calls: list[str] = []
        api = create_api(
            "https://api.test",
            authorization=GOOGLE_AUTH,
            token_issuer=failing,
            fetch=lambda url, options: calls.append(url),
        )

        with pytest.raises(RuntimeError):
            api.files.get()
        assert calls == []

    @pytest.mark.asyncio
    async def test_async_with_sync_issuer(self) -> None:
        issuer = StubIssuer("threaded")
        ctx = make_context()

        await authorize_async(GOOGLE_AUTH, ctx, token_issuer=issuer)

        assert len(issuer.calls) == 1
        assert ctx.options["headers"]["Authorization"] == "Bearer threaded"

    @pytest.mark.asyncio
    async def test_async_with_async_issuer(self) -> None:
        async def issuer(credentials: str, options: GoogleAuthOptions) -> dict[str, str]:
            return {"access_token": "awaited"}

        ctx = make_context()
        await authorize_async(GOOGLE_AUTH, ctx, token_issuer=issuer)
        assert ctx.options["headers"]["Authorization"] == "Bearer awaited"

    @pytest.mark.asyncio
    async def test_async_with_callable_returning_coroutine(self) -> None:
        class Issuer:
            async def __call__(
                self, credentials: str, options: GoogleAuthOptions
            ) -> dict[str, str]:
                return {"access_token": "from-callable"}

        ctx = make_context()
        await authorize_async(GOOGLE_AUTH, ctx, token_issuer=Issuer())
        assert ctx.options["headers"]["Authorization"] == "Bearer from-callable"

    @pytest.mark.asyncio
    async def test_async_static_variant(self) -> None:
        ctx = make_context()
        await authorize_async(ApiKeyAuth(in_="query", name="key", value="v1"), ctx)
        assert ctx.options == {"query": {"key": "v1"}}

    def test_issue_google_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        captured: dict[str, Any] = {}

        class FakeCredentials:
            token = None

            def refresh(self, request: Any) -> None:
                captured["request"] = request
                self.token = "issued"

        def from_info(info: dict[str, Any], **kwargs: Any) -> FakeCredentials:
            captured["info"] = info
            captured.update(kwargs)
            return FakeCredentials()

        monkeypatch.setattr(
            auth_module.service_account.Credentials,
            "from_service_account_info",
            from_info,
        )

        token = auth_module.issue_google_token(
            '{"type": "service_account", "client_email": "sa@example.com"}',
            GoogleAuthOptions(scope=["s1", "s2"], sub="user@example.com"),
        )

        assert token == {"access_token": "issued"}
        assert captured["info"]["client_email"] == "sa@example.com"
        assert captured["scopes"] == ["s1", "s2"]
        assert captured["subject"] == "user@example.com"
        assert isinstance(captured["request"], auth_module.GoogleAuthRequest)

    def test_issue_google_token_rejects_invalid_json(self) -> None:
        with pytest.raises(ValueError):
            auth_module.issue_google_token("not json", GoogleAuthOptions())


# ---------------------------------------------------------------------------
# Parsing from configuration mappings
# ---------------------------------------------------------------------------


class TestParseAuthorization:
    """Verify mappings are turned into the matching variant."""

    def test_missing_or_empty(self) -> None:
        assert parse_authorization(None) == NoAuth()
        assert parse_authorization({}) == NoAuth()

    def test_unknown_type_is_none(self) -> None:
        assert parse_authorization({"type": "oauth1", "token": "x"}) == NoAuth()

    def test_basic(self) -> None:
        result = parse_authorization({"type": "basic", "username": "u", "password": "p"})
        assert result == BasicAuth(username="u", password="p")

    def test_bearer(self) -> None:
        assert parse_authorization({"type": "bearer", "token": "t"}) == BearerAuth("t")

    def test_api_key(self) -> None:
        result = parse_authorization(
            {"type": "apiKey", "in": "header", "name": "X-Key", "value": "v"}
        )
        assert result == ApiKeyAuth(in_="header", name="X-Key", value="v")

    def test_google_service_account(self) -> None:
        result = parse_authorization(
            {
                "type": "googleServiceAccount",
                "credentials": "{}",
                "authOptions": {"scope": ["a"], "sub": "me@example.com"},
            }
        )
        assert result == GoogleServiceAccountAuth(
            credentials="{}",
            auth_options=GoogleAuthOptions(scope=["a"], sub="me@example.com"),
        )

    def test_google_jwt_tag(self) -> None:
        result = parse_authorization(
            {
                "type": "googlejwtsa",
                "googleServiceAccountCredentials": "{}",
                "googleAuthOptions": {"scope": ["a"]},
            }
        )
        assert isinstance(result, GoogleServiceAccountAuth)
        assert result.auth_options == GoogleAuthOptions(scope=["a"])
