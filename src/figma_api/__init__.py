"""
Figma REST API client for Python.

A blocking and an asynchronous client for the Figma REST API with built-in
handling of rate limiting (HTTP 429 + Retry-After) and transient timeouts
(exponential backoff), bounded by a maximum acceptable wait.

Quick Start:
    >>> from figma_api import FigmaClient
    >>> client = FigmaClient(access_token="figd_...")
    >>> file = client.request_with_retry(GetFile(file_key="abc123"))

Quick Start (async):
    >>> from figma_api import AsyncFigmaClient
    >>> client = AsyncFigmaClient(access_token="figd_...")
    >>> file = await client.request_with_retry(GetFile(file_key="abc123"))

Global Configuration:
    >>> from figma_api import FIGMA
    >>>
    >>> # Pre-loaded with defaults + env vars
    >>> timeout = FIGMA.config.client.request_timeout
    >>>
    >>> # Custom configuration
    >>> FIGMA.configure(
    ...     client={"access_token": "figd_...", "request_timeout": 60},
    ...     retry={"max_attempts": 5, "max_acceptable_wait": 600},
    ... )

Main Classes:
    - Client / FigmaClient: Blocking clients.
    - AsyncClient / AsyncFigmaClient: Asynchronous clients.
    - Endpoint / JsonEndpoint: Base classes describing API operations.
    - RetryPolicy: Immutable retry configuration.

Errors:
    - RateLimitError: Base class for timeout and rate limiting errors.
    - RequestTimeoutError: The request timed out (on every attempt).
    - RateLimitedError: The server answered HTTP 429.
    - RateLimitExceededError: The server asked for a longer wait than accepted.
    - APIError: The API answered with an error status.
    - DecodeError: The response body could not be decoded.
"""

from importlib.metadata import version as _get_version

__version__ = _get_version("figma-api-client")

from figma_api._async_client import AsyncClient, AsyncFigmaClient
from figma_api._auth import (
    AccessTokenAuthProvider,
    AuthProvider,
    BearerTokenAuthProvider,
)
from figma_api._client import Client, FigmaClient
from figma_api._config import (
    FIGMA,
    ClientConfig,
    ConfigEnvVarError,
    ConfigValidationError,
    FigmaConfig,
    RetryConfig,
)
from figma_api._endpoint import (
    APIError,
    DecodeError,
    Endpoint,
    HttpRequest,
    JsonEndpoint,
)
from figma_api._http import (
    AsyncHttpClient,
    HttpClient,
    HttpxAsyncHttpClient,
    RequestsHttpClient,
)
from figma_api._rate_limit import (
    DEFAULT_RETRY_AFTER,
    RateLimitedError,
    RateLimitError,
    RateLimitExceededError,
    RequestTimeoutError,
    classify_rate_limit,
    extract_retry_after,
    is_rate_limited,
)
from figma_api._retry import RetryPolicy

__all__ = [
    "__version__",
    # Clients
    "Client",
    "FigmaClient",
    "AsyncClient",
    "AsyncFigmaClient",
    # Configuration
    "FIGMA",
    "FigmaConfig",
    "ClientConfig",
    "RetryConfig",
    "ConfigEnvVarError",
    "ConfigValidationError",
    # Authentication
    "AuthProvider",
    "AccessTokenAuthProvider",
    "BearerTokenAuthProvider",
    # Endpoints
    "Endpoint",
    "JsonEndpoint",
    "HttpRequest",
    "APIError",
    "DecodeError",
    # HTTP Transport
    "HttpClient",
    "RequestsHttpClient",
    "AsyncHttpClient",
    "HttpxAsyncHttpClient",
    # Rate Limiting
    "DEFAULT_RETRY_AFTER",
    "RateLimitError",
    "RequestTimeoutError",
    "RateLimitedError",
    "RateLimitExceededError",
    "classify_rate_limit",
    "extract_retry_after",
    "is_rate_limited",
    # Retry
    "RetryPolicy",
]
