"""
Endpoint abstraction for the Figma API clients.

An endpoint describes one API operation: how to build the HTTP request and
how to turn the raw response into a typed result. Clients only invoke
endpoints, they never keep them beyond a single call.

Example:
    >>> from dataclasses import dataclass
    >>> from figma_api import JsonEndpoint
    >>>
    >>> @dataclass(frozen=True)
    ... class FileNodes(JsonEndpoint[dict]):
    ...     file_key: str
    ...     ids: str
    ...
    ...     @property
    ...     def path(self) -> str:
    ...         return f"files/{self.file_key}/nodes"
    ...
    ...     def query_params(self) -> dict[str, str]:
    ...         return {"ids": self.ids}
    ...
    ...     def decode(self, payload: Any) -> dict:
    ...         return payload["nodes"]
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, override
from urllib.parse import urljoin

T = TypeVar("T")


# =============================================================================
# Exceptions
# =============================================================================


class APIError(Exception):
    """
    Raised by an endpoint when the API answered with an error status.

    Attributes:
        status_code: The HTTP status code of the response.
        message: Error message returned by the API (or a generic one).
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Figma API error (HTTP {status_code}): {message}")


class DecodeError(Exception):
    """
    Raised by an endpoint when the response body cannot be decoded.

    Attributes:
        cause: The underlying parsing error, if any.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class HttpRequest:
    """
    Transport-neutral description of an HTTP request.

    Attributes:
        method: HTTP method (e.g. "GET").
        url: Absolute URL.
        headers: Endpoint-specific headers (auth headers are added by the transport).
        params: Query string parameters.
        body: Raw request body, if any.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    body: bytes | None = None

    def __post_init__(self) -> None:
        assert self.method, "HTTP method can not be empty."
        assert self.url, "Request URL can not be empty."


# =============================================================================
# Abstract Base Classes
# =============================================================================


class Endpoint(ABC, Generic[T]):
    """
    Abstract base class for API endpoints.

    Subclasses provide the relative `path` and implement `content()`.
    `content()` receives the raw response (`requests.Response` or
    `httpx.Response`) and raises on failure: the clients pass that exception
    on to the caller untouched.
    """

    method: str = "GET"

    @property
    @abstractmethod
    def path(self) -> str:
        """Path relative to the client's base URL (e.g. "files/abc123")."""
        pass

    def query_params(self) -> dict[str, Any]:
        return {}

    def headers(self) -> dict[str, str]:
        return {}

    def body(self) -> bytes | None:
        return None

    def make_request(self, base_url: str) -> HttpRequest:
        """
        Build the HTTP request for this endpoint.

        Args:
            base_url: The client's base URL.

        Returns:
            The request to send.
        """
        url = urljoin(base_url.rstrip("/") + "/", self.path.lstrip("/"))
        return HttpRequest(
            method=self.method,
            url=url,
            headers=self.headers(),
            params=self.query_params(),
            body=self.body(),
        )

    @abstractmethod
    def content(self, response: Any) -> T:
        """
        Decode the raw response into the endpoint's result.

        Args:
            response: Object with `status_code`, `headers` and `content`.

        Returns:
            The decoded result.

        Raises:
            Exception: Any error; it is surfaced to the caller as-is.
        """
        pass


class JsonEndpoint(Endpoint[T]):
    """
    Endpoint whose responses are JSON documents.

    Non-2xx responses raise `APIError` with the message found in the body
    (Figma uses the `err` key; `message` is also accepted). Bodies that are not
    valid JSON raise `DecodeError`. Subclasses implement `decode()` to build the
    result from the parsed payload.
    """

    @override
    def content(self, response: Any) -> T:
        if not 200 <= response.status_code < 300:
            raise APIError(response.status_code, self._error_message(response))

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"Response body is not valid JSON: {e}", cause=e) from e

        return self.decode(payload)

    @abstractmethod
    def decode(self, payload: Any) -> T:
        """Build the result from the parsed JSON payload."""
        pass

    @staticmethod
    def _error_message(response: Any) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or "Unknown error"
        if isinstance(payload, dict):
            message = payload.get("err") or payload.get("message")
            if message:
                return str(message)
        return "Unknown error"
