"""Tests for the endpoint abstraction."""

import unittest
from dataclasses import dataclass
from typing import Any

import httpx
import requests
from requests.structures import CaseInsensitiveDict

from figma_api._endpoint import APIError, DecodeError, Endpoint, HttpRequest, JsonEndpoint


@dataclass(frozen=True)
class FileNodes(JsonEndpoint[dict]):
    file_key: str
    ids: str

    @property
    def path(self) -> str:
        return f"files/{self.file_key}/nodes"

    def query_params(self) -> dict[str, str]:
        return {"ids": self.ids}

    def decode(self, payload: Any) -> dict:
        return payload["nodes"]


class PostComment(JsonEndpoint[str]):
    method = "POST"
    path = "/files/abc/comments"

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def body(self) -> bytes | None:
        return b'{"message": "hi"}'

    def decode(self, payload: Any) -> str:
        return payload["id"]


def make_response(status_code: int, body: bytes) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
    response._content = body
    response.encoding = "utf-8"
    return response


class TestHttpRequest(unittest.TestCase):
    """Tests for HttpRequest."""

    def test_defaults(self):
        request = HttpRequest("GET", "https://api.figma.com/v1/me")
        self.assertEqual(request.headers, {})
        self.assertEqual(request.params, {})
        self.assertIsNone(request.body)

    def test_fails_with_empty_method(self):
        with self.assertRaises(AssertionError):
            HttpRequest("", "https://api.figma.com/v1/me")

    def test_fails_with_empty_url(self):
        with self.assertRaises(AssertionError):
            HttpRequest("GET", "")


class TestEndpointMakeRequest(unittest.TestCase):
    """Tests for Endpoint.make_request()."""

    def test_joins_base_url_and_path(self):
        request = FileNodes("abc", "1:2").make_request("https://api.figma.com/v1/")

        self.assertEqual(request.method, "GET")
        self.assertEqual(request.url, "https://api.figma.com/v1/files/abc/nodes")
        self.assertEqual(request.params, {"ids": "1:2"})

    def test_base_url_without_trailing_slash(self):
        request = FileNodes("abc", "1:2").make_request("https://api.figma.com/v1")
        self.assertEqual(request.url, "https://api.figma.com/v1/files/abc/nodes")

    def test_path_with_leading_slash_keeps_base_path(self):
        request = PostComment().make_request("https://api.figma.com/v1/")

        self.assertEqual(request.url, "https://api.figma.com/v1/files/abc/comments")
        self.assertEqual(request.method, "POST")
        self.assertEqual(request.headers, {"Content-Type": "application/json"})
        self.assertEqual(request.body, b'{"message": "hi"}')

    def test_endpoint_is_abstract(self):
        with self.assertRaises(TypeError):
            Endpoint()  # type: ignore


class TestJsonEndpoint(unittest.TestCase):
    """Tests for JsonEndpoint.content()."""

    def test_decodes_payload(self):
        response = make_response(200, b'{"nodes": {"1:2": {"name": "Frame"}}}')
        self.assertEqual(FileNodes("abc", "1:2").content(response), {"1:2": {"name": "Frame"}})

    def test_decodes_httpx_response(self):
        response = httpx.Response(200, json={"id": "42"})
        self.assertEqual(PostComment().content(response), "42")

    def test_error_status_uses_err_message(self):
        response = make_response(404, b'{"status": 404, "err": "Not found"}')

        with self.assertRaises(APIError) as ctx:
            FileNodes("abc", "1:2").content(response)

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.message, "Not found")
        self.assertEqual(str(ctx.exception), "Figma API error (HTTP 404): Not found")

    def test_error_status_uses_message_key(self):
        response = make_response(400, b'{"error": true, "message": "Bad ids"}')

        with self.assertRaises(APIError) as ctx:
            FileNodes("abc", "1:2").content(response)

        self.assertEqual(ctx.exception.message, "Bad ids")

    def test_error_status_with_text_body(self):
        response = make_response(502, b"Bad Gateway")

        with self.assertRaises(APIError) as ctx:
            FileNodes("abc", "1:2").content(response)

        self.assertEqual(ctx.exception.message, "Bad Gateway")

    def test_error_status_without_message(self):
        response = make_response(500, b'{"status": 500}')

        with self.assertRaises(APIError) as ctx:
            FileNodes("abc", "1:2").content(response)

        self.assertEqual(ctx.exception.message, "Unknown error")

    def test_invalid_json_raises_decode_error(self):
        response = make_response(200, b"<html>not json</html>")

        with self.assertRaises(DecodeError) as ctx:
            FileNodes("abc", "1:2").content(response)

        self.assertIsInstance(ctx.exception.cause, ValueError)


if __name__ == "__main__":
    unittest.main()
