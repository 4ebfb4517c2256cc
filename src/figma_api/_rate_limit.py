"""
Rate limit detection for Figma API responses.

This module classifies raw HTTP responses and extracts the server-supplied
wait hint from the `Retry-After` header. It also defines the errors surfaced
to callers when a request times out or is rate limited.

Works with any response object exposing `status_code` and `headers`
(`requests.Response`, `httpx.Response`, or a test double).

Example:
    >>> from figma_api._rate_limit import classify_rate_limit
    >>> retry_after = classify_rate_limit(response)
    >>> if retry_after is not None:
    ...     print(f"Rate limited, retry in {retry_after}s")
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

RATE_LIMIT_STATUS_CODE = 429

# Used when Retry-After is missing or not a number of seconds.
DEFAULT_RETRY_AFTER = 60.0

RETRY_AFTER_HEADER = "Retry-After"


# =============================================================================
# Exceptions
# =============================================================================


class RateLimitError(Exception):
    """
    Base class for timeout and rate limiting errors raised by the clients.

    Two errors are equal when they have the same class and the same
    `retry_after` value.
    """

    retry_after: float | None = None

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        assert isinstance(other, RateLimitError)
        return self.retry_after == other.retry_after

    def __hash__(self) -> int:
        return hash((type(self), self.retry_after))


class RequestTimeoutError(RateLimitError):
    """Raised when a request to the Figma API timed out."""

    def __init__(self) -> None:
        super().__init__("Request to Figma API timed out. Retrying...")


class RateLimitedError(RateLimitError):
    """
    Raised when the server answered HTTP 429 (Too Many Requests).

    Only reaches the caller from single-attempt requests or when every
    retry attempt was rate limited.

    Attributes:
        retry_after: Seconds the server asked the client to wait.
    """

    def __init__(self, retry_after: float):
        self.retry_after = retry_after
        super().__init__(f"Rate limited by Figma API. Retrying in {int(retry_after)} seconds...")


class RateLimitExceededError(RateLimitError):
    """
    Raised when the server asks for a longer wait than the client accepts.

    Never retried: the call fails as soon as the hint is seen, without sleeping.

    Attributes:
        retry_after: Seconds the server asked the client to wait.
    """

    def __init__(self, retry_after: float):
        self.retry_after = retry_after
        minutes = int(retry_after / 60)
        super().__init__(
            f"Figma API rate limit exceeded. Retry-After: {minutes} minutes. "
            "Please wait and try again later, or check your API usage."
        )


# =============================================================================
# Classifier
# =============================================================================


def is_rate_limited(response: Any) -> bool:
    """Return True if the response indicates rate limiting (HTTP 429)."""
    return bool(response.status_code == RATE_LIMIT_STATUS_CODE)


def extract_retry_after(headers: Mapping[str, str] | None) -> float:
    """
    Extract the Retry-After value from response headers.

    Only the delay-seconds format is supported (e.g. "120" or "1.5").
    HTTP-date values, negative numbers and anything else that does not
    parse as a finite, non-negative number fall back to `DEFAULT_RETRY_AFTER`.

    Args:
        headers: Response headers. The lookup is case-insensitive even for
            plain dicts.

    Returns:
        The number of seconds to wait before retrying.
    """
    if not headers:
        return DEFAULT_RETRY_AFTER

    raw_value = headers.get(RETRY_AFTER_HEADER)
    if raw_value is None:
        wanted = RETRY_AFTER_HEADER.lower()
        raw_value = next(
            (value for name, value in headers.items() if name.lower() == wanted),
            None,
        )
    if raw_value is None:
        return DEFAULT_RETRY_AFTER

    try:
        seconds = float(str(raw_value).strip())
    except (TypeError, ValueError):
        # HTTP-date format is not supported
        return DEFAULT_RETRY_AFTER

    if not math.isfinite(seconds) or seconds < 0:
        return DEFAULT_RETRY_AFTER
    return seconds


def classify_rate_limit(response: Any) -> float | None:
    """
    Classify a response as rate limited or not.

    Args:
        response: Object with `status_code` and `headers`.

    Returns:
        The wait hint in seconds if the response is rate limited,
        otherwise None (headers are ignored for other status codes).
    """
    if not is_rate_limited(response):
        return None
    return extract_retry_after(response.headers)
