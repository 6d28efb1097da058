"""Tests for AsyncApiClient.

Uses anyio for async test support (pytest-anyio).
"""

from __future__ import annotations

import httpx
import pytest
from pydantic import BaseModel

from chromaprofiles.core.api.http.client import AsyncApiClient
from chromaprofiles.core.api.http.config import HttpClientConfig
from chromaprofiles.core.api.http.errors import (
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    ServerError,
    TimeoutError,
)
from chromaprofiles.core.api.http.retry import RetryPolicy

NO_RETRY = RetryPolicy(max_attempts=1)


def _client(handler, **kwargs) -> AsyncApiClient:
    cfg = HttpClientConfig(base_url="https://example.test/api")
    return AsyncApiClient(cfg, transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.anyio
async def test_async_success_json() -> None:
    """Test successful async GET request with JSON response."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/files/abc"
        return httpx.Response(200, json={"ok": True})

    async with _client(handler) as c:
        resp = await c.get("/files/abc")
        assert c.json(resp) == {"ok": True}


@pytest.mark.anyio
async def test_async_retry_500_then_ok() -> None:
    """Test automatic retry on 500 error."""
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(500, text="boom")
        return httpx.Response(200, json={"ok": True})

    policy = RetryPolicy(max_attempts=2, base_delay_s=0.0, max_delay_s=0.0, jitter=0.0)
    async with _client(handler, retry_policy=policy) as c:
        resp = await c.get("/flaky")
        assert resp.status_code == 200
        assert calls["n"] == 2


@pytest.mark.anyio
async def test_async_500_exhausts_retries() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="down")

    async with _client(handler, retry_policy=NO_RETRY) as c:
        with pytest.raises(ServerError) as exc_info:
            await c.get("/down")

    assert exc_info.value.status_code == 503
    assert exc_info.value.response_body_snippet == "down"


@pytest.mark.anyio
async def test_async_404_raises_client_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "not found"})

    async with _client(handler) as c:
        with pytest.raises(ClientError) as exc_info:
            await c.get("/missing")

    assert exc_info.value.status_code == 404


@pytest.mark.anyio
async def test_async_403_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="quota")

    async with _client(handler) as c:
        with pytest.raises(AuthError) as exc_info:
            await c.get("/private")

    assert exc_info.value.status_code == 403


@pytest.mark.anyio
async def test_async_timeout_maps_to_timeout_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    async with _client(handler, retry_policy=NO_RETRY) as c:
        with pytest.raises(TimeoutError):
            await c.get("/slow")


@pytest.mark.anyio
async def test_async_connect_error_maps_to_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler, retry_policy=NO_RETRY) as c:
        with pytest.raises(NetworkError):
            await c.get("/unreachable")


@pytest.mark.anyio
async def test_error_url_redacts_api_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "super-secret"
        return httpx.Response(404, text="nope")

    async with _client(handler) as c:
        with pytest.raises(ClientError) as exc_info:
            await c.get("/files/abc", params={"key": "super-secret"})

    assert "super-secret" not in str(exc_info.value)
    assert "key=***" in exc_info.value.url


@pytest.mark.anyio
async def test_json_rejects_non_json_content() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html></html>", headers={"content-type": "text/html"})

    async with _client(handler) as c:
        resp = await c.get("/page")
        with pytest.raises(DecodeError):
            c.json(resp)


@pytest.mark.anyio
async def test_parse_pydantic_validates_model() -> None:
    class Item(BaseModel):
        id: str
        size: int

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/good"):
            return httpx.Response(200, json={"id": "a", "size": "12"})
        return httpx.Response(200, json={"id": "a", "size": "huge"})

    async with _client(handler) as c:
        item = c.parse_pydantic(await c.get("/good"), Item)
        assert item.size == 12
        with pytest.raises(DecodeError):
            c.parse_pydantic(await c.get("/bad"), Item)


@pytest.mark.anyio
async def test_stream_yields_body_chunks() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["alt"] == "media"
        return httpx.Response(200, content=b"abcdef")

    async with _client(handler) as c:
        async with c.stream("GET", "/files/abc", params={"alt": "media"}) as resp:
            body = b"".join([chunk async for chunk in resp.aiter_bytes()])

    assert body == b"abcdef"


@pytest.mark.anyio
async def test_stream_raises_mapped_error_without_retry() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(500, text="broken")

    async with _client(handler) as c:
        with pytest.raises(ServerError) as exc_info:
            async with c.stream("GET", "/files/abc"):
                pass

    assert calls["n"] == 1
    assert exc_info.value.response_body_snippet == "broken"


@pytest.mark.anyio
async def test_stream_403_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"reason": "downloadQuotaExceeded"}})

    async with _client(handler) as c:
        with pytest.raises(AuthError) as exc_info:
            async with c.stream("GET", "/files/abc"):
                pass

    assert exc_info.value.status_code == 403


@pytest.mark.anyio
async def test_stream_timeout_maps_to_timeout_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("stalled", request=request)

    async with _client(handler) as c:
        with pytest.raises(TimeoutError):
            async with c.stream("GET", "/files/abc"):
                pass
