"""
Blocking clients for the Figma REST API.

This module provides the synchronous public surface:
    - Client: Generic client for any base URL and transport.
    - FigmaClient: Client preconfigured for the Figma REST API.

Example:
    >>> from figma_api import FigmaClient, RetryPolicy
    >>> client = FigmaClient(access_token="figd_...", timeout=30)
    >>> file = client.request_with_retry(GetFile(file_key="abc123"))
    >>>
    >>> # Custom policy for a single call
    >>> file = client.request_with_retry(
    ...     GetFile(file_key="abc123"),
    ...     policy=RetryPolicy(max_attempts=5, max_acceptable_wait=600),
    ... )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from ulid import ULID

from figma_api._auth import AccessTokenAuthProvider
from figma_api._config import FIGMA
from figma_api._executor import RequestExecutor
from figma_api._http import HttpClient, RequestsHttpClient
from figma_api._rate_limit import RateLimitError, RateLimitExceededError
from figma_api._retry import (
    Fail,
    Finish,
    RateLimited,
    RetryPolicy,
    RetryState,
    TimedOut,
    Wait,
    unwrap_outcome,
)
from figma_api._utils import sleep_for

if TYPE_CHECKING:
    from figma_api._endpoint import Endpoint

T = TypeVar("T")

logger = logging.getLogger(__name__)


def log_wait(log: logging.Logger, request_id: str, step: Wait, state: RetryState) -> None:
    """Log why a call is about to wait and for how long."""
    max_attempts = state.policy.max_attempts
    if state.attempt_index < max_attempts:
        then = f"before retry {state.attempt_index}/{max_attempts}"
    else:
        then = f"before giving up ({state.attempt_index}/{max_attempts} attempts used)"

    match step.reason:
        case RateLimited():
            log.warning(
                f"{request_id[:26]:<26} | API | ⚠️ Rate limited by Figma API. "
                f"Waiting {int(step.seconds)}s {then}"
            )
        case TimedOut():
            log.warning(
                f"{request_id[:26]:<26} | API | ⚠️ Request timed out. "
                f"Waiting {int(step.seconds)}s {then}"
            )
        case _:
            log.warning(f"{request_id[:26]:<26} | API | ⚠️ Waiting {step.seconds:.1f}s {then}")


def log_failure(log: logging.Logger, request_id: str, step: Fail, state: RetryState) -> None:
    """Log why a call is giving up."""
    match step.error:
        case RateLimitExceededError(retry_after=retry_after):
            log.error(
                f"{request_id[:26]:<26} | API | ❌ Retry-After of {int(retry_after)}s exceeds the maximum "
                f"acceptable wait of {int(state.policy.max_acceptable_wait)}s. Aborting without retry: {step.error}"
            )
        case RateLimitError():
            log.error(
                f"{request_id[:26]:<26} | API | ❌ Request failed after {state.attempt_index} retryable failure(s): {step.error}"
            )
        case _:
            log.error(f"{request_id[:26]:<26} | API | ❌ Request failed with non-retryable error: {step.error!r}")


class Client:
    """
    Blocking client with automatic retry on timeouts and rate limits.

    Instances are safe to share between threads: the only shared state is the
    immutable retry policy and the stateless transport. Each call keeps its
    own retry state.

    Args:
        base_url: Base URL endpoint paths are resolved against.
        http_client: Transport used to send requests. Defaults to an
            unauthenticated `RequestsHttpClient`.
        request_timeout: Transport timeout in seconds for each attempt.
        retry_policy: Default policy for `request_with_retry()`.

    Example:
        >>> client = Client(base_url="https://api.example.com/v1/")
        >>> content = client.request_with_retry(MyEndpoint())
    """

    def __init__(
        self,
        base_url: str,
        http_client: HttpClient | None = None,
        request_timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
    ):
        assert base_url, "Base URL cannot be empty."
        assert request_timeout > 0, "Request timeout must be greater than 0."

        self.base_url = base_url
        self.http_client = http_client or RequestsHttpClient()
        self.request_timeout = request_timeout
        self.retry_policy = retry_policy or RetryPolicy.DEFAULT
        self._executor = RequestExecutor(
            http_client=self.http_client,
            base_url=self.base_url,
            request_timeout=self.request_timeout,
        )

    def request(self, endpoint: Endpoint[T]) -> T:
        """
        Send a single request, without retry.

        Args:
            endpoint: The endpoint to request.

        Returns:
            The decoded content.

        Raises:
            RequestTimeoutError: If the request timed out.
            RateLimitedError: If the server answered HTTP 429.
            Exception: Any other failure, unchanged (transport or decode error).
        """
        assert endpoint is not None, "Endpoint cannot be None."

        request_id = str(ULID())
        logger.debug(f"{request_id[:26]:<26} | API | Sending {endpoint.method} {endpoint.path}")
        outcome = self._executor.execute(endpoint)
        content: T = unwrap_outcome(outcome)
        return content

    def request_with_retry(self, endpoint: Endpoint[T], policy: RetryPolicy | None = None) -> T:
        """
        Send a request, retrying on timeouts and rate limits.

        Timeouts are retried after an exponential backoff. Rate limited
        responses are retried after the server's Retry-After, unless it exceeds
        `policy.max_acceptable_wait`, in which case the call fails at once
        without sleeping. Any other error is raised immediately. The wait is
        also taken after the last attempt, before the call fails.

        Args:
            endpoint: The endpoint to request.
            policy: Retry policy for this call. Defaults to the client's policy.

        Returns:
            The decoded content.

        Raises:
            RateLimitExceededError: If the server asked for a longer wait than allowed.
            RequestTimeoutError: If the attempts ran out and the last one timed out.
            RateLimitedError: If the attempts ran out and the last one was rate limited.
            Exception: Any other failure, unchanged (transport or decode error).
        """
        assert endpoint is not None, "Endpoint cannot be None."

        request_id = str(ULID())
        state = RetryState(policy or self.retry_policy)

        while state.has_attempts_left:
            logger.debug(
                f"{request_id[:26]:<26} | API | Sending {endpoint.method} {endpoint.path} "
                f"(attempt {state.attempt_index + 1}/{state.policy.max_attempts})"
            )
            step = state.on_outcome(self._executor.execute(endpoint))
            match step:
                case Finish(content):
                    return content
                case Wait(seconds):
                    log_wait(logger, request_id, step, state)
                    sleep_for(seconds)
                    state.resume()
                case Fail(error):
                    log_failure(logger, request_id, step, state)
                    raise error

        fail = state.fail_exhausted()
        log_failure(logger, request_id, fail, state)
        raise fail.error


class FigmaClient(Client):
    """
    Client for the Figma REST API.

    Authenticates with a personal access token (`X-Figma-Token` header).
    Arguments left as None are taken from `FIGMA.config`.

    Args:
        access_token: Figma personal access token.
        timeout: Transport timeout in seconds for each attempt (default: 30).
        retry_policy: Default policy for `request_with_retry()`.
        http_client: Custom transport. When given, `access_token` is not required.

    Example:
        >>> client = FigmaClient(access_token="figd_...")
        >>> me = client.request_with_retry(GetMe())
    """

    def __init__(
        self,
        access_token: str | None = None,
        timeout: float | None = None,
        retry_policy: RetryPolicy | None = None,
        http_client: HttpClient | None = None,
    ):
        cfg = FIGMA.config
        access_token = access_token or cfg.client.access_token

        if http_client is None:
            assert access_token, \
                "Access token not provided. Pass `access_token` or set FIGMA_ACCESS_TOKEN."
            http_client = RequestsHttpClient(auth_provider=AccessTokenAuthProvider(access_token))

        super().__init__(
            base_url=cfg.client.base_url,
            http_client=http_client,
            request_timeout=timeout or cfg.client.request_timeout,
            retry_policy=retry_policy or cfg.retry.to_policy(),
        )
