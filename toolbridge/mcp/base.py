"""
Shared core of the MCP transports.

Every MCP protocol revision speaks JSON-RPC 2.0 over HTTP POST to
``{base}/mcp/`` and runs the same handshake before anything else:

1. ``initialize`` with the client's protocol version and identity
2. protocol version must match exactly; ``tools`` capability must exist
3. server version is recorded for manifests
4. (session-bearing revisions) a ``Mcp-Session-Id`` must be returned
5. ``notifications/initialized`` confirms the handshake

The handshake runs at most once per transport instance.  Concurrent first
callers wait on a lock; the outcome, success or the exact exception, is
kept and replayed to every later caller without another network attempt.

Revision-specific behaviour lives in the subclasses (v20241105,
v20250326, v20250618), which override the small hooks at the bottom of
BaseMCPTransport.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import threading

import httpx

from .. import __version__
from ..errors import (
    ProtocolError,
    ToolExecutionError,
    ToolNotFoundError,
    TransportError,
    TransportTimeoutError,
)
from ..protocol import ManifestSchema, ParameterSchema, ToolSchema
from ..transport.base import DEFAULT_TIMEOUT, HeaderSources, Transport, resolve_headers
from .schema import (
    META_AUTH_INVOKE,
    META_AUTH_PARAM,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    MCPInitializeParams,
    MCPInitializeResult,
    MCPTool,
    MCPToolCall,
    MCPToolResult,
)


logger = logging.getLogger("toolbridge.mcp")

CLIENT_NAME = "toolbridge"
CLIENT_VERSION = __version__


class HandshakeState(Enum):
    """Lifecycle of the one-time MCP handshake."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Schema conversion
# ---------------------------------------------------------------------------

def _string_list(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, str)]


def parse_property(name: str, definition: Dict[str, Any], required: bool) -> ParameterSchema:
    """Recursively build a ParameterSchema from one JSON schema property."""
    param_type = definition.get("type")
    description = definition.get("description")
    param = ParameterSchema(
        name=name,
        type=param_type if isinstance(param_type, str) else "",
        description=description if isinstance(description, str) else "",
        required=required,
    )

    if param.type == "object":
        additional = definition.get("additionalProperties")
        if isinstance(additional, bool):
            param.additional_properties = additional
        elif isinstance(additional, dict):
            param.additional_properties = parse_property("", additional, False)
    elif param.type == "array":
        items = definition.get("items")
        if isinstance(items, dict):
            param.items = parse_property("", items, False)

    return param


def convert_tool_definition(tool_data: Dict[str, Any]) -> ToolSchema:
    """
    Convert a raw MCP tool definition into a ToolSchema.

    Reads ``inputSchema.properties`` / ``inputSchema.required`` for the
    parameters and the ``_meta`` toolbox extensions for auth services.  The
    conversion is purely structural: nothing about the schema is validated.
    """
    param_auth: Dict[str, Any] = {}
    invoke_auth: List[str] = []

    meta = tool_data.get("_meta")
    if isinstance(meta, dict):
        if isinstance(meta.get(META_AUTH_PARAM), dict):
            param_auth = meta[META_AUTH_PARAM]
        invoke_auth = _string_list(meta.get(META_AUTH_INVOKE))

    description = tool_data.get("description")
    input_schema = tool_data.get("inputSchema")
    if not isinstance(input_schema, dict):
        input_schema = {}
    properties = input_schema.get("properties")
    if not isinstance(properties, dict):
        properties = {}
    required = set(_string_list(input_schema.get("required")))

    parameters = []
    for property_name, definition in properties.items():
        if not isinstance(definition, dict):
            continue
        param = parse_property(property_name, definition, property_name in required)
        param.auth_sources = _string_list(param_auth.get(property_name))
        parameters.append(param)

    return ToolSchema(
        description=description if isinstance(description, str) else "",
        parameters=parameters,
        auth_required=invoke_auth,
    )


# ---------------------------------------------------------------------------
# Transport core
# ---------------------------------------------------------------------------

class BaseMCPTransport(Transport):
    """
    Common state and JSON-RPC plumbing for the MCP transports.

    Subclasses set ``PROTOCOL_VERSION`` and may override the session hooks.
    """

    PROTOCOL_VERSION = ""

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        full_url = base_url if base_url.endswith("/") else base_url + "/"
        super().__init__(full_url + "mcp/", http_client=http_client, timeout=timeout)
        self.protocol_version = self.PROTOCOL_VERSION
        self.server_version = ""
        self._state = HandshakeState.UNINITIALIZED
        self._init_error: Optional[BaseException] = None
        self._init_lock = threading.Lock()

    @property
    def state(self) -> HandshakeState:
        return self._state

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    def ensure_initialized(self, timeout: Optional[float] = None) -> None:
        """
        Run the handshake once and replay its outcome afterwards.

        Every failed attempt ends in FAILED, interrupts included.  Later
        callers get the cached exception re-raised with a fresh traceback;
        an attempt that never produced an ordinary exception is reported as
        a ProtocolError.

        Raises:
            ProtocolError, TransportError: The cached handshake failure.
        """
        with self._init_lock:
            if self._state is HandshakeState.UNINITIALIZED:
                self._state = HandshakeState.INITIALIZING
                logger.debug(f"Starting MCP {self.protocol_version} handshake with {self.base_url}")
                try:
                    self._initialize_session(timeout)
                except BaseException as e:
                    self._init_error = e
                    self._state = HandshakeState.FAILED
                    logger.error(f"MCP handshake with {self.base_url} failed: {e!r}")
                    if not isinstance(e, Exception):
                        raise
                else:
                    self._state = HandshakeState.READY
                    logger.info(
                        f"Connected to {self.base_url} "
                        f"(protocol {self.protocol_version}, server {self.server_version or 'unknown'})"
                    )

        if self._state is HandshakeState.READY:
            return
        error = self._init_error
        if isinstance(error, Exception):
            raise error.with_traceback(None)
        raise ProtocolError(f"MCP handshake with {self.base_url} did not complete") from error

    def _initialize_session(self, timeout: Optional[float]) -> None:
        params = MCPInitializeParams(
            protocol_version=self.protocol_version,
            client_info={"name": CLIENT_NAME, "version": CLIENT_VERSION},
        )
        raw = self._send_request(
            self.base_url, "initialize", params.to_dict(), headers={}, timeout=timeout
        )
        result = MCPInitializeResult.from_dict(raw)

        if result.protocol_version != self.protocol_version:
            raise ProtocolError(
                f"MCP version mismatch: client ({self.protocol_version}) "
                f"!= server ({result.protocol_version})"
            )
        if not result.supports_tools:
            raise ProtocolError("server does not support the 'tools' capability")

        version = result.server_info.get("version")
        self.server_version = version if isinstance(version, str) else ""

        self._on_initialize_result(result)

        self._send_notification("notifications/initialized", {}, timeout=timeout)

    # ------------------------------------------------------------------
    # Transport contract
    # ------------------------------------------------------------------

    def list_tools(
        self,
        toolset_name: str = "",
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> ManifestSchema:
        self.ensure_initialized(timeout)
        resolved = resolve_headers(headers)

        url = self.base_url + toolset_name if toolset_name else self.base_url
        result = self._send_request(url, "tools/list", {}, resolved, timeout)

        raw_tools = result.get("tools") or []
        if not isinstance(raw_tools, list):
            raise ProtocolError("tools/list result field 'tools' is not a list")

        manifest = ManifestSchema(server_version=self.server_version)
        for index, raw in enumerate(raw_tools):
            tool = MCPTool.from_dict(raw) if isinstance(raw, dict) else MCPTool(name="")
            if not tool.name:
                raise ProtocolError(
                    f"received invalid tool definition at index {index}: missing 'name' field"
                )
            manifest.tools[tool.name] = convert_tool_definition(tool.to_dict())
        return manifest

    def get_tool(
        self,
        tool_name: str,
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> ManifestSchema:
        manifest = self.list_tools("", headers, timeout)
        if tool_name not in manifest.tools:
            raise ToolNotFoundError(f"tool '{tool_name}' not found")
        return ManifestSchema(
            server_version=manifest.server_version,
            tools={tool_name: manifest.tools[tool_name]},
        )

    def invoke_tool(
        self,
        tool_name: str,
        arguments: Dict[str, Any],
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> str:
        self.ensure_initialized(timeout)
        resolved = resolve_headers(headers)

        call = MCPToolCall(name=tool_name, arguments=arguments)
        raw = self._send_request(self.base_url, "tools/call", call.to_mcp_params(), resolved, timeout)
        result = MCPToolResult.from_dict(raw)

        if result.is_error:
            raise ToolExecutionError("tool execution resulted in error")

        output = result.get_text()
        return output if output else "null"

    # ------------------------------------------------------------------
    # JSON-RPC plumbing
    # ------------------------------------------------------------------

    def _send_request(
        self,
        url: str,
        method: str,
        params: Dict[str, Any],
        headers: Dict[str, str],
        timeout: Optional[float],
    ) -> Dict[str, Any]:
        """Send a request and return its ``result`` object."""
        if method != "initialize":
            params = self._prepare_params(params)
            headers = {**self._session_headers(), **headers}
        request = JSONRPCRequest(method=method, params=params)
        result = self._do_rpc(url, request.to_dict(), method, headers, timeout, expect_result=True)
        if not isinstance(result, dict):
            raise TransportError(
                f"failed to parse result data for '{method}': expected a JSON object",
                method=method,
            )
        return result

    def _send_notification(
        self, method: str, params: Dict[str, Any], timeout: Optional[float]
    ) -> None:
        """Send a notification; only the HTTP status is checked."""
        notification = JSONRPCNotification(method=method, params=self._prepare_params(params))
        self._do_rpc(
            self.base_url,
            notification.to_dict(),
            method,
            self._session_headers(),
            timeout,
            expect_result=False,
        )

    def _do_rpc(
        self,
        url: str,
        message: Dict[str, Any],
        method: str,
        headers: Dict[str, str],
        timeout: Optional[float],
        expect_result: bool,
    ) -> Any:
        request_headers = {"Accept": "application/json", **headers}
        try:
            response = self.http_client.post(
                url,
                json=message,
                headers=request_headers,
                timeout=self._request_timeout(timeout),
            )
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"MCP request '{method}' timed out: {e}", method=method
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"http request for '{method}' failed: {e}", method=method
            ) from e

        status = response.status_code
        if status == 200:
            if not expect_result:
                return None
        elif status in (202, 204) and not expect_result:
            return None
        else:
            raise TransportError(
                f"API request '{method}' failed with status {status}: {response.text}",
                status_code=status,
                body=response.text,
                method=method,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                f"response unmarshal failed for '{method}': {e}",
                status_code=status,
                body=response.text,
                method=method,
            ) from e
        if not isinstance(data, dict):
            raise TransportError(
                f"response unmarshal failed for '{method}': expected a JSON-RPC object",
                status_code=status,
                body=response.text,
                method=method,
            )

        rpc_response = JSONRPCResponse.from_dict(data)
        if rpc_response.error is not None:
            raise TransportError(
                f"MCP request '{method}' failed with code "
                f"{rpc_response.error.code}: {rpc_response.error.message}",
                status_code=status,
                body=response.text,
                method=method,
            )
        return rpc_response.result

    # ------------------------------------------------------------------
    # Revision hooks
    # ------------------------------------------------------------------

    def _on_initialize_result(self, result: MCPInitializeResult) -> None:
        """Inspect the initialize result after the common checks passed."""

    def _prepare_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Params actually sent for post-handshake messages."""
        return params

    def _session_headers(self) -> Dict[str, str]:
        """Extra HTTP headers for post-handshake messages."""
        return {}
