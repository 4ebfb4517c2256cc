"""Tests for the asynchronous clients."""

import asyncio
import json
import unittest
from unittest.mock import AsyncMock, call, patch

import httpx

from figma_api import FIGMA
from figma_api._async_client import AsyncClient, AsyncFigmaClient
from figma_api._auth import FIGMA_TOKEN_HEADER, AccessTokenAuthProvider
from figma_api._endpoint import APIError, JsonEndpoint
from figma_api._http import HttpxAsyncHttpClient
from figma_api._rate_limit import (
    RateLimitedError,
    RateLimitExceededError,
    RequestTimeoutError,
)
from figma_api._retry import RetryPolicy

BASE_URL = "https://api.figma.com/v1/"


class GetFileName(JsonEndpoint[str]):
    """Returns the `name` of a Figma file."""

    def __init__(self, file_key: str = "abc123"):
        self.file_key = file_key

    @property
    def path(self) -> str:
        return f"files/{self.file_key}"

    def decode(self, payload):
        return payload["name"]


def ok() -> httpx.Response:
    return httpx.Response(200, json={"name": "Design System"})


def rate_limited(retry_after: str | None = None) -> httpx.Response:
    headers = {"Retry-After": retry_after} if retry_after is not None else {}
    return httpx.Response(429, headers=headers, json={"status": 429, "err": "Rate limit exceeded"})


class ScriptedTransport:
    """Plays back responses and exceptions through `httpx.MockTransport`."""

    def __init__(self, *script: httpx.Response | Exception):
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def http_client(self, access_token: str | None = None) -> HttpxAsyncHttpClient:
        auth = AccessTokenAuthProvider(access_token) if access_token else None
        return HttpxAsyncHttpClient(auth_provider=auth, transport=httpx.MockTransport(self.handler))


def make_client(transport: ScriptedTransport, **kwargs) -> AsyncClient:
    return AsyncClient(base_url=BASE_URL, http_client=transport.http_client(), **kwargs)


class TestAsyncClientRequest(unittest.IsolatedAsyncioTestCase):
    """Tests for AsyncClient.request() (single attempt)."""

    async def test_returns_decoded_content(self):
        transport = ScriptedTransport(ok())
        client = make_client(transport)

        self.assertEqual(await client.request(GetFileName()), "Design System")
        self.assertEqual(str(transport.requests[0].url), "https://api.figma.com/v1/files/abc123")

    async def test_raises_timeout_error_without_retry(self):
        transport = ScriptedTransport(httpx.ReadTimeout("timed out"), ok())
        client = make_client(transport)

        with self.assertRaises(RequestTimeoutError):
            await client.request(GetFileName())

        self.assertEqual(len(transport.requests), 1)

    async def test_raises_rate_limited_error(self):
        client = make_client(ScriptedTransport(rate_limited("30")))

        with self.assertRaises(RateLimitedError) as ctx:
            await client.request(GetFileName())

        self.assertEqual(ctx.exception.retry_after, 30)


@patch("figma_api._async_client.async_sleep_for", new_callable=AsyncMock)
class TestAsyncClientRequestWithRetry(unittest.IsolatedAsyncioTestCase):
    """Tests for AsyncClient.request_with_retry()."""

    async def test_waits_retry_after_then_succeeds(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(rate_limited("120"), ok())
        client = make_client(transport)

        result = await client.request_with_retry(GetFileName(), policy=RetryPolicy(max_acceptable_wait=300))

        self.assertEqual(result, "Design System")
        self.assertEqual(len(transport.requests), 2)
        mock_sleep.assert_awaited_once_with(120)

    async def test_fails_immediately_when_retry_after_exceeds_ceiling(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(rate_limited("600"), ok())
        client = make_client(transport)

        with self.assertRaises(RateLimitExceededError) as ctx:
            await client.request_with_retry(GetFileName(), policy=RetryPolicy(max_acceptable_wait=300))

        self.assertEqual(ctx.exception.retry_after, 600)
        self.assertEqual(len(transport.requests), 1)
        mock_sleep.assert_not_awaited()

    async def test_fails_after_exactly_max_attempts(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(
            httpx.ReadTimeout("1"), httpx.ConnectTimeout("2"), httpx.ReadTimeout("3"), ok(),
        )
        client = make_client(transport)

        with self.assertRaises(RequestTimeoutError):
            await client.request_with_retry(GetFileName(), policy=RetryPolicy(max_attempts=3))

        self.assertEqual(len(transport.requests), 3)
        self.assertEqual(mock_sleep.await_args_list, [call(1.0), call(2.0), call(4.0)])

    async def test_raises_rate_limited_error_when_attempts_run_out(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(rate_limited("5"), rate_limited("5"))
        client = make_client(transport)

        with self.assertRaises(RateLimitedError):
            await client.request_with_retry(GetFileName(), policy=RetryPolicy(max_attempts=2))

        self.assertEqual(mock_sleep.await_args_list, [call(5), call(5)])

    async def test_single_attempt_waits_hint_before_failing(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(rate_limited("120"), ok())
        client = make_client(transport)

        with self.assertRaises(RateLimitedError):
            await client.request_with_retry(GetFileName(), policy=RetryPolicy(max_attempts=1))

        self.assertEqual(len(transport.requests), 1)
        mock_sleep.assert_awaited_once_with(120)

    async def test_builtin_timeout_error_is_retried(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(TimeoutError("socket timed out"), ok())
        client = make_client(transport)

        result = await client.request_with_retry(GetFileName())

        self.assertEqual(result, "Design System")
        mock_sleep.assert_awaited_once_with(1.0)

    async def test_logs_through_async_client_logger(self, mock_sleep: AsyncMock):
        client = make_client(ScriptedTransport(rate_limited("120"), ok()))

        with self.assertLogs("figma_api._async_client", level="WARNING") as logs:
            await client.request_with_retry(GetFileName())

        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].name, "figma_api._async_client")
        self.assertIn("Rate limited by Figma API. Waiting 120s before retry 1/3", logs.output[0])

    async def test_connection_error_is_not_retried(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(httpx.ConnectError("connection refused"), ok())
        client = make_client(transport)

        with self.assertRaises(httpx.ConnectError):
            await client.request_with_retry(GetFileName())

        self.assertEqual(len(transport.requests), 1)
        mock_sleep.assert_not_awaited()

    async def test_api_error_is_not_retried(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(httpx.Response(403, json={"status": 403, "err": "Invalid token"}))
        client = make_client(transport)

        with self.assertRaises(APIError) as ctx:
            await client.request_with_retry(GetFileName())

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.message, "Invalid token")
        mock_sleep.assert_not_awaited()

    async def test_call_policy_overrides_client_policy(self, mock_sleep: AsyncMock):
        transport = ScriptedTransport(rate_limited("100"), ok())
        client = make_client(transport, retry_policy=RetryPolicy(max_acceptable_wait=50))

        result = await client.request_with_retry(GetFileName(), policy=RetryPolicy(max_acceptable_wait=200))

        self.assertEqual(result, "Design System")
        mock_sleep.assert_awaited_once_with(100)

    async def test_concurrent_calls_keep_independent_state(self, mock_sleep: AsyncMock):
        seen: dict[str, int] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen[request.url.path] = seen.get(request.url.path, 0) + 1
            if seen[request.url.path] == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return ok()

        client = AsyncClient(
            base_url=BASE_URL,
            http_client=HttpxAsyncHttpClient(transport=httpx.MockTransport(handler)),
        )

        results = await asyncio.gather(
            client.request_with_retry(GetFileName("a")),
            client.request_with_retry(GetFileName("b")),
        )

        self.assertEqual(results, ["Design System", "Design System"])
        self.assertEqual(seen, {"/v1/files/a": 2, "/v1/files/b": 2})
        self.assertEqual(mock_sleep.await_args_list, [call(1.0), call(1.0)])


class TestAsyncClientCancellation(unittest.IsolatedAsyncioTestCase):
    """Tests for cancelling a call while it waits."""

    async def test_cancel_during_rate_limit_wait(self):
        transport = ScriptedTransport(rate_limited("120"), ok())
        client = make_client(transport)

        task = asyncio.create_task(client.request_with_retry(GetFileName()))
        while not transport.requests:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.01)
        task.cancel()

        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertEqual(len(transport.requests), 1)


class TestAsyncFigmaClient(unittest.IsolatedAsyncioTestCase):
    """Tests for AsyncFigmaClient."""

    def setUp(self):
        FIGMA.reset()

    def tearDown(self):
        FIGMA.reset()

    def test_uses_figma_defaults(self):
        client = AsyncFigmaClient(access_token="figd_token")

        self.assertEqual(client.base_url, "https://api.figma.com/v1/")
        self.assertEqual(client.request_timeout, 30)
        self.assertIsInstance(client.http_client, HttpxAsyncHttpClient)

    @patch.dict("os.environ", {}, clear=True)
    def test_fails_without_access_token(self):
        FIGMA.reset()
        with self.assertRaises(AssertionError):
            AsyncFigmaClient()

    async def test_sends_figma_token_header(self):
        transport = ScriptedTransport(ok())
        client = AsyncFigmaClient(http_client=transport.http_client(access_token="figd_token"))

        await client.request(GetFileName())

        self.assertEqual(transport.requests[0].headers[FIGMA_TOKEN_HEADER], "figd_token")

    async def test_sends_query_params(self):
        class GetNodes(GetFileName):
            @property
            def path(self) -> str:
                return f"files/{self.file_key}/nodes"

            def query_params(self):
                return {"ids": "1:2"}

            def decode(self, payload):
                return json.dumps(payload)

        transport = ScriptedTransport(ok())
        client = AsyncFigmaClient(http_client=transport.http_client())

        await client.request(GetNodes())

        self.assertEqual(transport.requests[0].url.path, "/v1/files/abc123/nodes")
        self.assertEqual(transport.requests[0].url.params["ids"], "1:2")


if __name__ == "__main__":
    unittest.main()
