"""Tests for the HTTP client adapter."""

from __future__ import annotations

import httpx
import pytest

from hpid_sso.client import HTTPAdapter, extract_response_data
from hpid_sso.exceptions import OAuthTransportError
from hpid_sso.models import RequestConfig


def _adapter(handler) -> HTTPAdapter:
    return HTTPAdapter(RequestConfig(timeout=5), transport=httpx.MockTransport(handler))


class TestContextManager:
    def test_enter_and_exit(self) -> None:
        adapter = _adapter(lambda request: httpx.Response(200))
        assert adapter._client is None
        with adapter:
            assert adapter._client is not None
        assert adapter._client is None

    def test_request_outside_context_fails(self) -> None:
        adapter = _adapter(lambda request: httpx.Response(200))
        with pytest.raises(AssertionError):
            adapter.get("https://example.com/")


class TestRequests:
    def test_get_parses_json(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        with _adapter(handler) as http:
            response = http.get("https://example.com/x", params={"a": "1"})

        assert response.status_code == 200
        assert response.body == {"ok": True}
        assert seen[0].url.params["a"] == "1"
        assert seen[0].headers["accept"] == "application/json"

    def test_caller_headers_override_defaults(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        with _adapter(handler) as http:
            http.get("https://example.com/x", headers={"Accept": "text/plain"})

        assert seen[0].headers["accept"] == "text/plain"

    def test_post_form_encodes_data(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        with _adapter(handler) as http:
            http.post("https://example.com/token", data={"code": "abc", "grant_type": "x"})

        assert seen[0].method == "POST"
        assert seen[0].headers["content-type"] == "application/x-www-form-urlencoded"
        assert seen[0].content == b"code=abc&grant_type=x"

    @pytest.mark.parametrize("status", [401, 404, 500])
    def test_error_statuses_are_returned(self, status: int) -> None:
        with _adapter(lambda request: httpx.Response(status, json={"error": "x"})) as http:
            response = http.get("https://example.com/x")
        assert response.status_code == status
        assert response.body == {"error": "x"}

    def test_transport_error_is_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _adapter(handler) as http:
            with pytest.raises(OAuthTransportError) as exc_info:
                http.get("https://example.com/x")

        assert exc_info.value.reason == "connection refused"
        assert exc_info.value.kind == "OAuth2"

    def test_timeout_is_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with _adapter(handler) as http:
            with pytest.raises(OAuthTransportError, match="timed out"):
                http.get("https://example.com/x")


class TestExtractResponseData:
    def test_json(self) -> None:
        assert extract_response_data(httpx.Response(200, json=[1, 2])) == [1, 2]

    def test_text_fallback(self) -> None:
        response = httpx.Response(502, text="<html>Bad gateway</html>")
        assert extract_response_data(response) == "<html>Bad gateway</html>"

    def test_empty(self) -> None:
        assert extract_response_data(httpx.Response(204)) is None
