"""
Single-attempt request execution.

An executor sends exactly one request for an endpoint and classifies what
happened as an `AttemptOutcome`. Expected failures are returned, not raised,
so the retry loop can branch on them. Executors never sleep, retry or log.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import requests

from figma_api._rate_limit import classify_rate_limit
from figma_api._retry import (
    AttemptOutcome,
    OtherError,
    RateLimited,
    Success,
    TimedOut,
)

if TYPE_CHECKING:
    from figma_api._endpoint import Endpoint
    from figma_api._http import AsyncHttpClient, HttpClient


def outcome_from_response(endpoint: Endpoint[Any], response: Any) -> AttemptOutcome:
    """
    Classify a received response.

    Args:
        endpoint: The endpoint that produced the request.
        response: The raw HTTP response.

    Returns:
        `RateLimited` for HTTP 429, otherwise `Success` with the decoded
        content, or `OtherError` if the endpoint failed to decode it.
    """
    retry_after = classify_rate_limit(response)
    if retry_after is not None:
        return RateLimited(retry_after)

    try:
        return Success(endpoint.content(response))
    except Exception as e:
        return OtherError(e)


class RequestExecutor:
    """
    Executes one blocking request attempt.

    Args:
        http_client: Transport used to send the request.
        base_url: Base URL the endpoint paths are resolved against.
        request_timeout: Transport timeout in seconds for each attempt.
    """

    def __init__(self, http_client: HttpClient, base_url: str, request_timeout: float):
        assert http_client is not None, "HTTP client cannot be None."
        assert base_url, "Base URL cannot be empty."
        assert request_timeout > 0, "Request timeout must be greater than 0."

        self.http_client = http_client
        self.base_url = base_url
        self.request_timeout = request_timeout

    def execute(self, endpoint: Endpoint[Any]) -> AttemptOutcome:
        """Send one request for `endpoint` and classify the result."""
        try:
            request = endpoint.make_request(self.base_url)
            response = self.http_client.send(request, timeout=self.request_timeout)
        except (requests.Timeout, TimeoutError):
            return TimedOut()
        except Exception as e:
            return OtherError(e)

        return outcome_from_response(endpoint, response)


class AsyncRequestExecutor:
    """
    Executes one asynchronous request attempt.

    Cancellation is not intercepted: `asyncio.CancelledError` propagates.

    Args:
        http_client: Transport used to send the request.
        base_url: Base URL the endpoint paths are resolved against.
        request_timeout: Transport timeout in seconds for each attempt.
    """

    def __init__(self, http_client: AsyncHttpClient, base_url: str, request_timeout: float):
        assert http_client is not None, "HTTP client cannot be None."
        assert base_url, "Base URL cannot be empty."
        assert request_timeout > 0, "Request timeout must be greater than 0."

        self.http_client = http_client
        self.base_url = base_url
        self.request_timeout = request_timeout

    async def execute(self, endpoint: Endpoint[Any]) -> AttemptOutcome:
        """Send one request for `endpoint` and classify the result."""
        try:
            request = endpoint.make_request(self.base_url)
            response = await self.http_client.send(request, timeout=self.request_timeout)
        except (httpx.TimeoutException, TimeoutError):
            return TimedOut()
        except Exception as e:
            return OtherError(e)

        return outcome_from_response(endpoint, response)
