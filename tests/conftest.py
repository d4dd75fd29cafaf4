"""Pytest fixtures: in-memory tool servers backed by httpx.MockTransport."""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest


BASE_URL = "http://toolbox.test"


class RPCFailure(Exception):
    """Raised by a mock handler to produce a JSON-RPC error object."""


class MockMCPServer:
    """
    Minimal MCP server speaking JSON-RPC over the mock HTTP transport.

    ``handlers`` maps a method name to a callable taking the request params
    and returning the result object.  Every request body is recorded.
    """

    def __init__(self, protocol_version: str = "2025-06-18", session_id: Optional[str] = "session-12345"):
        self.protocol_version = protocol_version
        self.session_id = session_id
        self.notification_status = 202
        self.requests: List[httpx.Request] = []
        self.bodies: List[Dict[str, Any]] = []
        self.handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "initialize": self._initialize,
            "notifications/initialized": lambda params: None,
            "tools/list": lambda params: {"tools": []},
        }

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        result = {
            "protocolVersion": self.protocol_version,
            "capabilities": {"tools": {"listChanged": True}},
            "serverInfo": {"name": "mock-server", "version": "1.0.0"},
        }
        if self.session_id:
            result["Mcp-Session-Id"] = self.session_id
        return result

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(request)
        self.bodies.append(body)
        method = body["method"]
        params = body.get("params") or {}

        if "id" not in body:
            handler = self.handlers.get(method)
            if handler is not None:
                handler(params)
            return httpx.Response(self.notification_status)

        handler = self.handlers.get(method)
        if handler is None:
            return httpx.Response(404, text=f"method not found: {method}")

        try:
            result = handler(params)
        except RPCFailure as e:
            return httpx.Response(200, json={
                "jsonrpc": "2.0",
                "id": body["id"],
                "error": {"code": -32000, "message": str(e)},
            })
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def calls(self, method: str) -> List[Dict[str, Any]]:
        return [body for body in self.bodies if body["method"] == method]


class MockRestServer:
    """
    Toolbox REST server: serves one manifest for every GET and records
    invocations.  ``invoke_response`` builds the reply to a POST.
    """

    def __init__(self, manifest: Dict[str, Any]):
        self.manifest = manifest
        self.requests: List[httpx.Request] = []
        self.invoke_response: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"result": "ok"})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            return httpx.Response(200, json=self.manifest)
        return self.invoke_response(request)

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def mcp_server():
    return MockMCPServer()


@pytest.fixture
def toolset_manifest():
    """toolA{param1, param2(auth=google)} and toolB{authRequired=[github]}."""
    return {
        "serverVersion": "v1",
        "tools": {
            "toolA": {
                "description": "This is tool A",
                "parameters": [
                    {"name": "param1", "type": "string", "description": "first"},
                    {"name": "param2", "type": "string", "description": "second",
                     "authSources": ["google"]},
                ],
            },
            "toolB": {
                "description": "Tool B",
                "parameters": [],
                "authRequired": ["github"],
            },
        },
    }


@pytest.fixture
def rest_server(toolset_manifest):
    return MockRestServer(toolset_manifest)
