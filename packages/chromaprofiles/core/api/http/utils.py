"""Utility functions for HTTP client operations."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


def join_url(base_url: str, path: str) -> str:
    """Join base URL with path in a predictable way.

    Absolute ``path`` values (with a scheme) are returned unchanged.

    Args:
        base_url: Base URL (e.g. "https://www.googleapis.com/drive/v3")
        path: Request path (e.g. "/files/abc" or "files/abc")

    Returns:
        Joined URL (e.g. "https://www.googleapis.com/drive/v3/files/abc")
    """
    if path.startswith(("http://", "https://")):
        return path
    base = base_url if base_url.endswith("/") else base_url + "/"
    return urljoin(base, path.lstrip("/"))


def redact_url(url: str, params: Iterable[str]) -> str:
    """Replace the values of sensitive query parameters with ``***``.

    Args:
        url: URL possibly carrying secrets in its query string
        params: Parameter names to redact (case-insensitive)

    Returns:
        URL safe to log
    """
    secret = {p.lower() for p in params}
    parts = urlsplit(url)
    if not parts.query or not secret:
        return url
    query = [
        (k, "***" if k.lower() in secret else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*")))


def safe_snippet(content: bytes, limit: int) -> str:
    """Extract a truncated, UTF-8 decoded snippet of a response body."""
    if not content:
        return ""
    return content[:limit].decode("utf-8", errors="replace")


def get_request_id(headers: Mapping[str, str]) -> str | None:
    """Extract request ID from common tracing headers (case-insensitive)."""
    for key in ("x-request-id", "x-correlation-id", "request-id", "trace-id"):
        for hk, hv in headers.items():
            if hk.lower() == key:
                return hv
    return None
