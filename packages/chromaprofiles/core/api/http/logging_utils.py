"""Debug logging for provider requests.

Records method, redacted URL, attempt number and timing for every Drive
call, whether buffered or streamed. Credentials in headers are masked
before they reach a handler.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from pydantic import BaseModel

logger = logging.getLogger("chromaprofiles.core.api.http")


def redact_headers(headers: Mapping[str, str], redact: tuple[str, ...]) -> dict[str, str]:
    """Redact sensitive headers for logging.

    Args:
        headers: Headers to redact
        redact: Header names to redact (case-insensitive)

    Returns:
        Headers with sensitive values replaced with "***REDACTED***"
    """
    red = {v.lower() for v in redact}
    return {k: "***REDACTED***" if k.lower() in red else v for k, v in headers.items()}


class RequestLogContext(BaseModel):
    """Fields attached to the request and response log records of one attempt."""

    method: str
    url: str
    attempt: int
    request_id: str | None = None
    streamed: bool = False


def log_request(
    ctx: RequestLogContext, headers: Mapping[str, str], redact: tuple[str, ...]
) -> float:
    """Log an outgoing request and return its ``perf_counter`` start."""
    start = time.perf_counter()
    logger.debug(
        "HTTP request",
        extra={
            "method": ctx.method,
            "url": ctx.url,
            "attempt": ctx.attempt,
            "request_id": ctx.request_id,
            "streamed": ctx.streamed,
            "headers": redact_headers(headers, redact),
        },
    )
    return start


def log_response(ctx: RequestLogContext, status_code: int, elapsed_s: float) -> None:
    """Log a response status with timing information."""
    logger.debug(
        "HTTP response",
        extra={
            "method": ctx.method,
            "url": ctx.url,
            "attempt": ctx.attempt,
            "request_id": ctx.request_id,
            "status_code": status_code,
            "elapsed_ms": int(elapsed_s * 1000),
        },
    )
