"""
Asynchronous clients for the Figma REST API.

Same surface as the blocking clients, with `async` methods:
    - AsyncClient: Generic client for any base URL and transport.
    - AsyncFigmaClient: Client preconfigured for the Figma REST API.

Waits between attempts are `asyncio` sleeps: cancelling the calling task
aborts the wait and the call fails with `asyncio.CancelledError`.

Example:
    >>> import asyncio
    >>> from figma_api import AsyncFigmaClient
    >>> client = AsyncFigmaClient(access_token="figd_...")
    >>> file = asyncio.run(client.request_with_retry(GetFile(file_key="abc123")))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from ulid import ULID

from figma_api._auth import AccessTokenAuthProvider
from figma_api._client import log_failure, log_wait
from figma_api._config import FIGMA
from figma_api._executor import AsyncRequestExecutor
from figma_api._http import AsyncHttpClient, HttpxAsyncHttpClient
from figma_api._retry import (
    Fail,
    Finish,
    RetryPolicy,
    RetryState,
    Wait,
    unwrap_outcome,
)
from figma_api._utils import async_sleep_for

if TYPE_CHECKING:
    from figma_api._endpoint import Endpoint

T = TypeVar("T")

logger = logging.getLogger(__name__)


class AsyncClient:
    """
    Asynchronous client with automatic retry on timeouts and rate limits.

    Many tasks may call the same instance concurrently; each call keeps its
    own retry state.

    Args:
        base_url: Base URL endpoint paths are resolved against.
        http_client: Transport used to send requests. Defaults to an
            unauthenticated `HttpxAsyncHttpClient`.
        request_timeout: Transport timeout in seconds for each attempt.
        retry_policy: Default policy for `request_with_retry()`.
    """

    def __init__(
        self,
        base_url: str,
        http_client: AsyncHttpClient | None = None,
        request_timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
    ):
        assert base_url, "Base URL cannot be empty."
        assert request_timeout > 0, "Request timeout must be greater than 0."

        self.base_url = base_url
        self.http_client = http_client or HttpxAsyncHttpClient()
        self.request_timeout = request_timeout
        self.retry_policy = retry_policy or RetryPolicy.DEFAULT
        self._executor = AsyncRequestExecutor(
            http_client=self.http_client,
            base_url=self.base_url,
            request_timeout=self.request_timeout,
        )

    async def request(self, endpoint: Endpoint[T]) -> T:
        """
        Send a single request, without retry.

        Raises:
            RequestTimeoutError: If the request timed out.
            RateLimitedError: If the server answered HTTP 429.
            Exception: Any other failure, unchanged (transport or decode error).
        """
        assert endpoint is not None, "Endpoint cannot be None."

        request_id = str(ULID())
        logger.debug(f"{request_id[:26]:<26} | API | Sending {endpoint.method} {endpoint.path}")
        outcome = await self._executor.execute(endpoint)
        content: T = unwrap_outcome(outcome)
        return content

    async def request_with_retry(self, endpoint: Endpoint[T], policy: RetryPolicy | None = None) -> T:
        """
        Send a request, retrying on timeouts and rate limits.

        See `Client.request_with_retry()` for the retry rules.

        Raises:
            RateLimitExceededError: If the server asked for a longer wait than allowed.
            RequestTimeoutError: If the attempts ran out and the last one timed out.
            RateLimitedError: If the attempts ran out and the last one was rate limited.
            asyncio.CancelledError: If the task was cancelled, including during a wait.
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
            step = state.on_outcome(await self._executor.execute(endpoint))
            match step:
                case Finish(content):
                    return content
                case Wait(seconds):
                    log_wait(logger, request_id, step, state)
                    await async_sleep_for(seconds)
                    state.resume()
                case Fail(error):
                    log_failure(logger, request_id, step, state)
                    raise error

        fail = state.fail_exhausted()
        log_failure(logger, request_id, fail, state)
        raise fail.error


class AsyncFigmaClient(AsyncClient):
    """
    Asynchronous client for the Figma REST API.

    Authenticates with a personal access token (`X-Figma-Token` header).
    Arguments left as None are taken from `FIGMA.config`.

    Args:
        access_token: Figma personal access token.
        timeout: Transport timeout in seconds for each attempt (default: 30).
        retry_policy: Default policy for `request_with_retry()`.
        http_client: Custom transport. When given, `access_token` is not required.
    """

    def __init__(
        self,
        access_token: str | None = None,
        timeout: float | None = None,
        retry_policy: RetryPolicy | None = None,
        http_client: AsyncHttpClient | None = None,
    ):
        cfg = FIGMA.config
        access_token = access_token or cfg.client.access_token

        if http_client is None:
            assert access_token, \
                "Access token not provided. Pass `access_token` or set FIGMA_ACCESS_TOKEN."
            http_client = HttpxAsyncHttpClient(auth_provider=AccessTokenAuthProvider(access_token))

        super().__init__(
            base_url=cfg.client.base_url,
            http_client=http_client,
            request_timeout=timeout or cfg.client.request_timeout,
            retry_policy=retry_policy or cfg.retry.to_policy(),
        )
