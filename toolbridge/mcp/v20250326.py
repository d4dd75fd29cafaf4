"""
MCP transport for protocol revision 2025-03-26.

The server issues a session identifier during ``initialize``.  It is
required, and after the handshake it is added as ``Mcp-Session-Id`` to the
params of every request and notification.
"""

from typing import Any, Dict

from ..errors import ProtocolError
from .base import BaseMCPTransport
from .schema import SESSION_ID_KEY, MCPInitializeResult

PROTOCOL_VERSION = "2025-03-26"


class MCPTransport(BaseMCPTransport):
    """MCP 2025-03-26 over HTTP, with a server-issued session."""

    PROTOCOL_VERSION = PROTOCOL_VERSION

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session_id = ""

    def _on_initialize_result(self, result: MCPInitializeResult) -> None:
        if not result.session_id:
            raise ProtocolError(
                f"server did not return a {SESSION_ID_KEY} during initialization"
            )
        self.session_id = result.session_id

    def _prepare_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.session_id:
            return params
        return {**params, SESSION_ID_KEY: self.session_id}
