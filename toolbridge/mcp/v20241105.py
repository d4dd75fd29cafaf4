"""
MCP transport for protocol revision 2024-11-05.

This revision has no session identifier: the handshake checks of the base
transport are all it needs.
"""

from .base import BaseMCPTransport

PROTOCOL_VERSION = "2024-11-05"


class MCPTransport(BaseMCPTransport):
    """MCP 2024-11-05 over HTTP."""

    PROTOCOL_VERSION = PROTOCOL_VERSION
