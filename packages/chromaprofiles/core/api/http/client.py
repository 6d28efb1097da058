"""Async HTTP client wrapper built on HTTPX.

Provides:
- Automatic retries with exponential backoff for buffered requests
- Streamed requests for large binary transfers
- Structured error handling
- Request/response logging with header and query-secret redaction
- Pydantic response parsing
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from chromaprofiles.core.api.http.config import HttpClientConfig
from chromaprofiles.core.api.http.errors import (
    ApiError,
    DecodeError,
    NetworkError,
    TimeoutError,
    categorize_status,
)
from chromaprofiles.core.api.http.logging_utils import (
    RequestLogContext,
    log_request,
    log_response,
)
from chromaprofiles.core.api.http.retry import RetryPolicy, parse_retry_after_seconds
from chromaprofiles.core.api.http.utils import (
    get_request_id,
    join_url,
    redact_url,
    safe_snippet,
)

TModel = TypeVar("TModel", bound=BaseModel)


def _merge(base: Mapping[str, str], extra: Mapping[str, Any] | None) -> dict[str, str]:
    out = dict(base)
    if extra:
        out.update({k: str(v) for k, v in extra.items()})
    return out


def _default_request_id() -> str:
    """Generate simple timestamp-based request ID."""
    return f"req_{int(time.time() * 1000)}"


def _is_json_response(resp: httpx.Response) -> bool:
    ctype = resp.headers.get("content-type", "")
    return "application/json" in ctype or "+json" in ctype


def _build_api_error(
    *,
    exc_type: type[ApiError],
    message: str,
    method: str,
    url: str,
    status_code: int | None = None,
    response: httpx.Response | None = None,
    request_id: str | None = None,
    body_snippet_limit: int = 4096,
    cause: BaseException | None = None,
) -> ApiError:
    """Build an API error carrying response context.

    Args:
        exc_type: Error class to instantiate
        message: Human-readable error message
        method: HTTP method
        url: Request URL, already redacted
        status_code: HTTP status code (if available)
        response: HTTP response (if available, body must already be read)
        request_id: Request ID for tracing
        body_snippet_limit: Max bytes to include in error
        cause: Original exception that triggered this error
    """
    headers: dict[str, str] | None = None
    snippet: str | None = None
    if response is not None:
        headers = dict(response.headers)
        snippet = safe_snippet(response.content or b"", body_snippet_limit)
        request_id = request_id or get_request_id(response.headers)

    return exc_type(
        message=message,
        method=method,
        url=url,
        status_code=status_code,
        request_id=request_id,
        response_headers=headers,
        response_body_snippet=snippet,
        cause=cause,
    )


class AsyncApiClient:
    """Asynchronous HTTP API client.

    Built on httpx.AsyncClient with retries, structured errors and redacted
    request logging.

    Args:
        config: Client configuration
        retry_policy: Retry policy for buffered requests
        transport: Optional custom transport (``httpx.MockTransport`` in tests)

    Example:
        >>> config = HttpClientConfig(base_url="https://www.googleapis.com/drive/v3")
        >>> async with AsyncApiClient(config) as client:
        ...     resp = await client.get("/files/abc", params={"key": "..."})
        ...     meta = client.json(resp)
    """

    def __init__(
        self,
        config: HttpClientConfig,
        *,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"User-Agent": config.user_agent, **config.headers},
            params=config.params,
            timeout=config.timeout,
            limits=config.limits,
            follow_redirects=config.follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncApiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _prepare(
        self,
        path: str,
        params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
    ) -> tuple[str, dict[str, str], dict[str, str], str, str]:
        url = join_url(str(self._client.base_url), path)
        req_id = (headers or {}).get("X-Request-Id") or _default_request_id()
        merged_headers = _merge(self._client.headers, headers)
        merged_headers.setdefault("X-Request-Id", req_id)
        merged_params = _merge(self._client.params, params)
        safe_url = redact_url(str(httpx.URL(url, params=merged_params)), self.config.redact_params)
        return url, merged_headers, merged_params, req_id, safe_url

    def _status_error(
        self, resp: httpx.Response, method: str, safe_url: str, req_id: str, message: str
    ) -> ApiError:
        return _build_api_error(
            exc_type=categorize_status(resp.status_code),
            message=message,
            method=method,
            url=safe_url,
            status_code=resp.status_code,
            response=resp,
            request_id=req_id,
            body_snippet_limit=self.config.max_response_body_for_error,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
        expected_status: Sequence[int] | None = None,
    ) -> httpx.Response:
        """Send a buffered request, retrying per the retry policy.

        Raises:
            ApiError: Subclass matching the failure (status, timeout, network)
        """
        method_u = method.upper()
        url, merged_headers, merged_params, req_id, safe_url = self._prepare(
            path, params, headers
        )

        attempts = 0
        while True:
            attempts += 1
            ctx = RequestLogContext(
                method=method_u, url=safe_url, attempt=attempts, request_id=req_id
            )
            start = log_request(ctx, merged_headers, self.config.redact_headers)

            try:
                resp = await self._client.request(
                    method_u,
                    url,
                    params=merged_params,
                    headers=merged_headers,
                    timeout=timeout or self.config.timeout,
                )
                log_response(ctx, resp.status_code, time.perf_counter() - start)

                if expected_status is not None and resp.status_code not in expected_status:
                    raise self._status_error(
                        resp,
                        method_u,
                        safe_url,
                        req_id,
                        f"Unexpected status code (expected {list(expected_status)})",
                    )
                if expected_status is None and resp.status_code >= 400:
                    raise self._status_error(
                        resp, method_u, safe_url, req_id, "HTTP error response"
                    )
                return resp

            except ApiError as e:
                if (
                    e.status_code is None
                    or not self.retry_policy.allows_method(method_u)
                    or e.status_code not in self.retry_policy.retry_on_status
                    or attempts >= self.retry_policy.max_attempts
                ):
                    raise

                retry_after = None
                if e.response_headers:
                    retry_after = parse_retry_after_seconds(e.response_headers.get("Retry-After"))
                delay = (
                    retry_after
                    if retry_after is not None
                    else self.retry_policy.compute_delay(attempts)
                )
                await asyncio.sleep(delay)

            except httpx.TimeoutException as e:
                if (
                    not self.retry_policy.allows_method(method_u)
                    or attempts >= self.retry_policy.max_attempts
                ):
                    raise _build_api_error(
                        exc_type=TimeoutError,
                        message="Request timed out",
                        method=method_u,
                        url=safe_url,
                        request_id=req_id,
                        cause=e,
                    ) from e
                await asyncio.sleep(self.retry_policy.compute_delay(attempts))

            except httpx.RequestError as e:
                if (
                    not self.retry_policy.allows_method(method_u)
                    or attempts >= self.retry_policy.max_attempts
                ):
                    raise _build_api_error(
                        exc_type=NetworkError,
                        message="Network error while sending request",
                        method=method_u,
                        url=safe_url,
                        request_id=req_id,
                        cause=e,
                    ) from e
                await asyncio.sleep(self.retry_policy.compute_delay(attempts))

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Perform async GET request.

        Raises:
            ApiError: On request failure
        """
        return await self.request("GET", path, **kwargs)

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Open a streamed request and yield the response once headers arrive.

        Error statuses are raised before the body is handed to the caller.
        Timeouts and transport errors raised while the caller reads the body
        are mapped onto ``TimeoutError``/``NetworkError`` as well. Streamed
        requests are never retried.

        Example:
            >>> async with client.stream("GET", "/files/abc", params={"alt": "media"}) as resp:
            ...     async for chunk in resp.aiter_bytes():
            ...         handle.write(chunk)
        """
        method_u = method.upper()
        url, merged_headers, merged_params, req_id, safe_url = self._prepare(
            path, params, headers
        )
        ctx = RequestLogContext(
            method=method_u, url=safe_url, attempt=1, request_id=req_id, streamed=True
        )
        start = log_request(ctx, merged_headers, self.config.redact_headers)

        try:
            async with self._client.stream(
                method_u,
                url,
                params=merged_params,
                headers=merged_headers,
                timeout=timeout or self.config.timeout,
            ) as resp:
                log_response(ctx, resp.status_code, time.perf_counter() - start)
                if resp.status_code >= 400:
                    await resp.aread()
                    raise self._status_error(
                        resp, method_u, safe_url, req_id, "HTTP error response"
                    )
                yield resp
        except httpx.TimeoutException as e:
            raise _build_api_error(
                exc_type=TimeoutError,
                message="Streamed request timed out",
                method=method_u,
                url=safe_url,
                request_id=req_id,
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise _build_api_error(
                exc_type=NetworkError,
                message="Network error during streamed request",
                method=method_u,
                url=safe_url,
                request_id=req_id,
                cause=e,
            ) from e

    def json(self, response: httpx.Response) -> Any:
        """Decode JSON response with structured error handling.

        Raises:
            DecodeError: If response is not JSON or parsing fails
        """
        if response.status_code == 204 or not response.content:
            return None
        url = redact_url(str(response.request.url), self.config.redact_params)
        if not _is_json_response(response):
            raise _build_api_error(
                exc_type=DecodeError,
                message="Response is not JSON (content-type mismatch)",
                method=response.request.method,
                url=url,
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
            )
        try:
            return response.json()
        except ValueError as e:
            raise _build_api_error(
                exc_type=DecodeError,
                message="Failed to parse JSON response",
                method=response.request.method,
                url=url,
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
                cause=e,
            ) from e

    def parse_pydantic(self, response: httpx.Response, model: type[TModel]) -> TModel:
        """Parse and validate a JSON response with a Pydantic model.

        Raises:
            DecodeError: If JSON parsing or validation fails
        """
        data = self.json(response)
        try:
            return model.model_validate(data)
        except ValueError as e:
            raise _build_api_error(
                exc_type=DecodeError,
                message="Failed to validate response with Pydantic model",
                method=response.request.method,
                url=redact_url(str(response.request.url), self.config.redact_params),
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
                cause=e,
            ) from e
