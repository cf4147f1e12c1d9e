"""URL helpers: segment joining, query merging and header normalisation."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import httpx

from restproxy.types import HeadersInit, QueryObject


def resolve_url(base: str, *segments: str) -> str:
    """Append ``segments`` to the path of ``base``.

    Each segment is percent-encoded on its own, so a ``/`` inside a segment
    never introduces an extra path level. Empty segments are skipped and the
    query string and fragment of ``base`` are preserved.
    """
    parts = [quote(s, safe="") for s in segments if s]
    if not parts:
        return base

    scheme, netloc, path, query, fragment = urlsplit(base)
    path = path.rstrip("/") + "/" + "/".join(parts)
    return urlunsplit((scheme, netloc, path, query, fragment))


def with_query(url: str, query: QueryObject | None) -> str:
    """Merge ``query`` into the query string of ``url``.

    Existing parameters are kept unless ``query`` sets the same key. ``None``
    values remove nothing and are not sent; sequences become repeated keys.
    """
    if not query:
        return url

    scheme, netloc, path, current, fragment = urlsplit(url)
    merged: dict[str, Any] = {}
    for key, value in parse_qsl(current, keep_blank_values=True):
        if key in merged:
            existing = merged[key]
            merged[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            merged[key] = value

    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            merged[key] = [_stringify(v) for v in value]
        else:
            merged[key] = _stringify(value)

    return urlunsplit((scheme, netloc, path, urlencode(merged, doseq=True), fragment))


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def headers_to_dict(headers: HeadersInit | httpx.Headers = None) -> dict[str, str]:
    """Normalise any supported headers value into a plain dict."""
    if not headers:
        return {}
    if isinstance(headers, httpx.Headers):
        return dict(headers.items())
    if isinstance(headers, (list, tuple)):
        return {key: value for key, value in headers}
    return dict(headers)


def merge_headers(*sources: HeadersInit | httpx.Headers) -> dict[str, str]:
    """Merge header sources left to right, matching names case-insensitively.

    A later source replaces any earlier header with the same name, and its
    spelling of the name is the one kept.
    """
    merged: dict[str, str] = {}
    for source in sources:
        for name, value in headers_to_dict(source).items():
            for existing in [key for key in merged if key.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
    return merged
