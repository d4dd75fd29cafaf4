"""
MCP (Model Context Protocol) wire types.

JSON-RPC 2.0 envelopes and the MCP payloads a tool client needs:

- initialize request params / result (handshake)
- tools/list result items, including the toolbox ``_meta`` extensions
- tools/call params / result with typed content blocks

Field names follow the wire format on ``to_dict``; ``from_dict`` tolerates
missing optional keys.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import uuid


# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelopes
# ---------------------------------------------------------------------------

JSONRPC_VERSION = "2.0"

SESSION_ID_KEY = "Mcp-Session-Id"
PROTOCOL_VERSION_HEADER = "MCP-Protocol-Version"

META_AUTH_PARAM = "toolbox/authParam"
META_AUTH_INVOKE = "toolbox/authInvoke"


@dataclass
class JSONRPCRequest:
    """
    JSON-RPC 2.0 request message.

    Requests carry a string ``id`` and expect a response.
    """
    method: str
    params: Optional[Dict[str, Any]] = None
    id: Union[str, int] = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        msg: Dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "method": self.method,
            "id": self.id,
        }
        if self.params is not None:
            msg["params"] = self.params
        return msg


@dataclass
class JSONRPCNotification:
    """
    JSON-RPC 2.0 notification (no id, no response expected).
    """
    method: str
    params: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        msg: Dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "method": self.method,
        }
        if self.params is not None:
            msg["params"] = self.params
        return msg


@dataclass
class JSONRPCError:
    """
    JSON-RPC 2.0 error object.
    """
    code: int
    message: str
    data: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JSONRPCError":
        return cls(
            code=data.get("code", 0),
            message=data.get("message", "unknown error"),
            data=data.get("data"),
        )


@dataclass
class JSONRPCResponse:
    """
    JSON-RPC 2.0 response: exactly one of ``result`` or ``error`` is set.
    """
    id: Optional[Union[str, int]] = None
    result: Any = None
    error: Optional[JSONRPCError] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JSONRPCResponse":
        error = data.get("error")
        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=JSONRPCError.from_dict(error) if isinstance(error, dict) else None,
        )


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------

class ContentType(str, Enum):
    """Content block types defined by MCP."""
    TEXT = "text"
    IMAGE = "image"
    RESOURCE = "resource"


@dataclass
class ContentBlock:
    """
    One block of a tools/call result.

    Only text blocks contribute to the tool output; for other kinds only
    the type is recorded.
    """
    type: str
    text: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentBlock":
        text = data.get("text")
        return cls(
            type=data.get("type", ""),
            text=text if isinstance(text, str) else "",
        )


# ---------------------------------------------------------------------------
# tools/list and tools/call
# ---------------------------------------------------------------------------

@dataclass
class MCPTool:
    """
    Tool definition as returned by ``tools/list``.

    ``meta`` carries the toolbox extensions: ``toolbox/authParam`` maps a
    parameter to alternative auth services, ``toolbox/authInvoke`` lists
    the services that authorize invoking the tool.
    """
    name: str
    description: str = ""
    input_schema: Dict[str, Any] = field(default_factory=lambda: {
        "type": "object",
        "properties": {},
    })
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
        if self.meta is not None:
            result["_meta"] = self.meta
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MCPTool":
        input_schema = data.get("inputSchema")
        meta = data.get("_meta")
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            input_schema=input_schema if isinstance(input_schema, dict) else {},
            meta=meta if isinstance(meta, dict) else None,
        )


@dataclass
class MCPToolCall:
    """Parameters of a ``tools/call`` request."""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_mcp_params(self) -> Dict[str, Any]:
        return {"name": self.name, "arguments": self.arguments}


@dataclass
class MCPToolResult:
    """Result of a ``tools/call`` request."""
    content: List[ContentBlock] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MCPToolResult":
        return cls(
            content=[
                ContentBlock.from_dict(block)
                for block in data.get("content") or []
                if isinstance(block, dict)
            ],
            is_error=bool(data.get("isError", False)),
        )

    def get_text(self) -> str:
        """Concatenate every text block, in order, with no separator."""
        return "".join(
            block.text for block in self.content if block.type == ContentType.TEXT.value
        )


# ---------------------------------------------------------------------------
# initialize handshake
# ---------------------------------------------------------------------------

@dataclass
class MCPInitializeParams:
    """Parameters for the initialize request (client -> server)."""
    protocol_version: str
    client_info: Dict[str, str]
    capabilities: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": self.capabilities,
            "clientInfo": self.client_info,
        }


@dataclass
class MCPInitializeResult:
    """Result of the initialize request (server -> client)."""
    protocol_version: str = ""
    capabilities: Dict[str, Any] = field(default_factory=dict)
    server_info: Dict[str, Any] = field(default_factory=dict)
    session_id: str = ""

    @property
    def supports_tools(self) -> bool:
        return self.capabilities.get("tools") is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MCPInitializeResult":
        capabilities = data.get("capabilities")
        server_info = data.get("serverInfo")
        return cls(
            protocol_version=data.get("protocolVersion") or "",
            capabilities=capabilities if isinstance(capabilities, dict) else {},
            server_info=server_info if isinstance(server_info, dict) else {},
            session_id=data.get(SESSION_ID_KEY) or "",
        )
