"""Typed errors raised by the HTTP client.

The Drive downloader decides link outcomes from these classes: an
``AuthError`` with status 403 on a media transfer means the provider
quota ran out and the link is retried later, everything else fails the
link.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ApiErrorData(BaseModel):
    """Payload carried by every ``ApiError``.

    URLs are stored after query redaction, so the Drive API key never
    reaches logs or link failure reasons.

    Args:
        message: Human-readable error description
        method: HTTP method (GET, HEAD, ...)
        url: Request URL (query secrets already redacted)
        status_code: HTTP status code (if available)
        request_id: Request ID for tracing
        response_headers: Response headers (if available)
        response_body_snippet: Truncated response body for debugging
        cause: Original exception that caused this error
    """

    model_config = {"arbitrary_types_allowed": True}

    message: str
    method: str
    url: str
    status_code: int | None = None
    request_id: str | None = None
    response_headers: dict[str, str] | None = None
    response_body_snippet: str | None = None
    cause: BaseException | None = Field(default=None, repr=False)


class ApiError(Exception):
    """Failure of a provider request, buffered or streamed.

    ``message`` is short enough to become a link failure reason; the full
    payload stays on ``data``.
    """

    def __init__(
        self,
        *,
        message: str,
        method: str,
        url: str,
        status_code: int | None = None,
        request_id: str | None = None,
        response_headers: dict[str, str] | None = None,
        response_body_snippet: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.data = ApiErrorData(
            message=message,
            method=method,
            url=url,
            status_code=status_code,
            request_id=request_id,
            response_headers=response_headers,
            response_body_snippet=response_body_snippet,
            cause=cause,
        )
        self.message = self.data.message
        self.method = self.data.method
        self.url = self.data.url
        self.status_code = self.data.status_code
        self.request_id = self.data.request_id
        self.response_headers = self.data.response_headers
        self.response_body_snippet = self.data.response_body_snippet
        self.cause = self.data.cause

        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message, f"{self.method} {self.url}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        return " | ".join(parts)


class NetworkError(ApiError):
    """Connection could not be made or broke mid-transfer."""


class TimeoutError(ApiError):
    """No response (or no further bytes) within the configured timeout."""


class DecodeError(ApiError):
    """Metadata body was not JSON or did not match the expected model."""


class RateLimitError(ApiError):
    """HTTP 429 rate limit error."""


class AuthError(ApiError):
    """HTTP 401 or 403.

    Drive answers 403 both for private files (on the metadata probe) and
    for an exhausted download quota (on ``alt=media``).
    """


class ClientError(ApiError):
    """HTTP 4xx client error (excluding auth and rate limit)."""


class ServerError(ApiError):
    """HTTP 5xx server error."""


class UnexpectedStatusError(ApiError):
    """Non-2xx status that doesn't match a more specific category."""


def categorize_status(status_code: int) -> type[ApiError]:
    """Pick the ``ApiError`` subclass raised for a non-2xx status."""
    if status_code in (401, 403):
        return AuthError
    if status_code == 429:
        return RateLimitError
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return UnexpectedStatusError
