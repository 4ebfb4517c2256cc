"""
Transport abstraction for the Figma API clients.

Transports send exactly one HTTP request and return the raw response. They do
not retry, sleep or interpret status codes; timeouts and network failures are
raised as the underlying library's exceptions.

Available implementations:
    - RequestsHttpClient: Blocking transport based on `requests`.
    - HttpxAsyncHttpClient: Asynchronous transport based on `httpx`.

Example:
    >>> from figma_api._auth import AccessTokenAuthProvider
    >>> from figma_api._endpoint import HttpRequest
    >>> from figma_api._http import RequestsHttpClient
    >>> client = RequestsHttpClient(auth_provider=AccessTokenAuthProvider("figd_..."))
    >>> response = client.send(HttpRequest("GET", "https://api.figma.com/v1/me"), timeout=30)
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, override

import httpx
import requests

if TYPE_CHECKING:
    from figma_api._auth import AuthProvider
    from figma_api._endpoint import HttpRequest


def _merge_headers(auth_provider: "AuthProvider | None", request: "HttpRequest") -> dict[str, str]:
    auth_headers = auth_provider.get_auth_headers() if auth_provider else {}
    return {**auth_headers, **request.headers}


# =============================================================================
# Blocking Transport
# =============================================================================


class HttpClient(ABC):
    """
    Abstract base class for blocking HTTP transports.

    Example:
        >>> class MyHttpClient(HttpClient):
        ...     def send(self, request, timeout=30):
        ...         return requests.request(request.method, request.url, timeout=timeout)
    """

    @abstractmethod
    def send(self, request: "HttpRequest", timeout: float = 30) -> requests.Response:
        """
        Send one HTTP request.

        Args:
            request: The request to send.
            timeout: Per-request timeout in seconds.

        Returns:
            The HTTP response, whatever its status code.

        Raises:
            requests.Timeout: If the request timed out.
            requests.RequestException: If the request failed without a response.
        """
        pass


class RequestsHttpClient(HttpClient):
    """
    Blocking transport using `requests`.

    A new connection is opened for every request.

    Args:
        auth_provider: Provider for authorization headers. If None, requests
            are sent without authentication.
    """

    def __init__(self, auth_provider: "AuthProvider | None" = None):
        self._auth = auth_provider

    @override
    def send(self, request: "HttpRequest", timeout: float = 30) -> requests.Response:
        assert request is not None, "Request cannot be None."
        assert timeout is not None, "Timeout cannot be None."
        assert timeout > 0, "Timeout must be greater than 0."

        return requests.request(
            request.method,
            request.url,
            params=request.params or None,
            headers=_merge_headers(self._auth, request),
            data=request.body,
            timeout=timeout,
        )


# =============================================================================
# Asynchronous Transport
# =============================================================================


class AsyncHttpClient(ABC):
    """Abstract base class for asynchronous HTTP transports."""

    @abstractmethod
    async def send(self, request: "HttpRequest", timeout: float = 30) -> httpx.Response:
        """
        Send one HTTP request.

        Args:
            request: The request to send.
            timeout: Per-request timeout in seconds.

        Returns:
            The HTTP response (body already read), whatever its status code.

        Raises:
            httpx.TimeoutException: If the request timed out.
            httpx.HTTPError: If the request failed without a response.
        """
        pass


class HttpxAsyncHttpClient(AsyncHttpClient):
    """
    Asynchronous transport using `httpx.AsyncClient`.

    A short-lived `httpx.AsyncClient` is used for every request.

    Args:
        auth_provider: Provider for authorization headers. If None, requests
            are sent without authentication.
        transport: Optional httpx transport (e.g. `httpx.MockTransport` in tests).
    """

    def __init__(
        self,
        auth_provider: "AuthProvider | None" = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._auth = auth_provider
        self._transport = transport

    @override
    async def send(self, request: "HttpRequest", timeout: float = 30) -> httpx.Response:
        assert request is not None, "Request cannot be None."
        assert timeout is not None, "Timeout cannot be None."
        assert timeout > 0, "Timeout must be greater than 0."

        async with httpx.AsyncClient(transport=self._transport) as client:
            return await client.request(
                request.method,
                request.url,
                params=request.params or None,
                headers=_merge_headers(self._auth, request),
                content=request.body,
                timeout=timeout,
            )
