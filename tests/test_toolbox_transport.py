"""Tests for the REST manifest transport."""

import json
import logging

import httpx
import pytest

from toolbridge.auth import static_token
from toolbridge.errors import TokenResolutionError, TransportError, TransportTimeoutError
from toolbridge.transport.toolbox import ToolboxTransport

BASE_URL = "http://toolbox.test"


def make_transport(handler, base_url=BASE_URL):
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return ToolboxTransport(base_url, http_client=http_client)


class TestManifest:
    def test_get_tool_url_and_headers(self, rest_server):
        transport = make_transport(rest_server)
        manifest = transport.get_tool("toolA", {"Authorization": static_token("Bearer t")})

        request = rest_server.requests[0]
        assert request.method == "GET"
        assert str(request.url) == f"{BASE_URL}/api/tool/toolA"
        assert request.headers["Authorization"] == "Bearer t"
        assert manifest.server_version == "v1"
        assert "toolA" in manifest.tools

    def test_list_tools_default_and_named(self, rest_server):
        transport = make_transport(rest_server)
        transport.list_tools()
        transport.list_tools("travel")
        assert [str(r.url) for r in rest_server.requests] == [
            f"{BASE_URL}/api/toolset/",
            f"{BASE_URL}/api/toolset/travel",
        ]

    def test_non_ok_status(self):
        transport = make_transport(lambda request: httpx.Response(404, text="no such tool"))
        with pytest.raises(TransportError, match="non-OK status: 404") as exc_info:
            transport.get_tool("missing")
        assert exc_info.value.status_code == 404
        assert "no such tool" in str(exc_info.value)

    def test_invalid_json(self):
        transport = make_transport(lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(TransportError, match="unable to parse manifest correctly"):
            transport.list_tools()

    @pytest.mark.parametrize("manifest", [
        {"serverVersion": "1", "tools": {"t": None}},
        {"serverVersion": "1", "tools": {"t": {"parameters": [None]}}},
        {"serverVersion": "1", "tools": ["t"]},
    ])
    def test_malformed_manifest(self, manifest):
        transport = make_transport(lambda request: httpx.Response(200, json=manifest))
        with pytest.raises(TransportError, match="unable to parse manifest correctly") as exc_info:
            transport.list_tools()
        assert exc_info.value.status_code == 200

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(TransportTimeoutError):
            make_transport(handler).list_tools()

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportError, match="failed to make HTTP request"):
            make_transport(handler).list_tools()

    def test_header_failure_stops_request(self, rest_server):
        def broken():
            raise RuntimeError("expired")

        transport = make_transport(rest_server)
        with pytest.raises(TokenResolutionError, match="'X-Token'"):
            transport.get_tool("toolA", {"X-Token": broken})
        assert rest_server.requests == []


class TestInvoke:
    def test_result_extracted(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"result": "sunny"})

        transport = make_transport(handler, base_url="https://toolbox.test")
        result = transport.invoke_tool("weather", {"city": "Lisbon"}, {"google_token": static_token("g")})

        assert result == "sunny"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://toolbox.test/api/tool/weather/invoke"
        assert json.loads(request.content) == {"city": "Lisbon"}
        assert request.headers["google_token"] == "g"

    def test_raw_body_without_result(self):
        transport = make_transport(lambda request: httpx.Response(200, text="plain output"))
        assert transport.invoke_tool("t", {}) == "plain output"

    def test_error_field(self):
        transport = make_transport(lambda request: httpx.Response(400, json={"error": "bad input"}))
        with pytest.raises(TransportError, match="tool 't' API returned error status 400: bad input"):
            transport.invoke_tool("t", {})

    def test_unexpected_status(self):
        transport = make_transport(lambda request: httpx.Response(500, text="crash"))
        with pytest.raises(TransportError, match="unexpected status: 500") as exc_info:
            transport.invoke_tool("t", {})
        assert exc_info.value.body == "crash"

    def test_warns_over_plain_http(self, caplog):
        transport = make_transport(lambda request: httpx.Response(200, json={"result": 1}))
        with caplog.at_level(logging.WARNING, logger="toolbridge.transport.toolbox"):
            transport.invoke_tool("t", {})
        assert "Sending ID token over HTTP" in caplog.text

    def test_no_warning_over_https(self, caplog):
        transport = make_transport(
            lambda request: httpx.Response(200, json={"result": 1}),
            base_url="https://toolbox.test",
        )
        with caplog.at_level(logging.WARNING, logger="toolbridge.transport.toolbox"):
            transport.invoke_tool("t", {})
        assert "Sending ID token over HTTP" not in caplog.text


def test_close_leaves_caller_client_open(rest_server):
    http_client = rest_server.http_client()
    transport = ToolboxTransport(BASE_URL, http_client=http_client)
    transport.close()
    assert not http_client.is_closed


def test_close_owned_client():
    transport = ToolboxTransport(BASE_URL)
    transport.close()
    assert transport.http_client.is_closed
