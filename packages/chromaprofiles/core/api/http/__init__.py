"""HTTPX wrapper used by the file-host providers.

Exposes a small surface:
- AsyncApiClient: async client with retries and streamed transfers
- HttpClientConfig / RetryPolicy: configuration
- Exceptions: ApiError and subclasses
"""

from chromaprofiles.core.api.http.client import AsyncApiClient
from chromaprofiles.core.api.http.config import HttpClientConfig
from chromaprofiles.core.api.http.errors import (
    ApiError,
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
    UnexpectedStatusError,
    categorize_status,
)
from chromaprofiles.core.api.http.retry import RetryPolicy

__all__ = [
    "AsyncApiClient",
    "HttpClientConfig",
    "RetryPolicy",
    "ApiError",
    "NetworkError",
    "TimeoutError",
    "DecodeError",
    "RateLimitError",
    "AuthError",
    "ClientError",
    "ServerError",
    "UnexpectedStatusError",
    "categorize_status",
]
