"""
MCP (Model Context Protocol) transports.

Components:
- schema: JSON-RPC envelopes and MCP payload types
- base: handshake core, schema conversion and shared JSON-RPC plumbing
- v20241105, v20250326, v20250618: one transport per protocol revision
"""

from .base import (
    BaseMCPTransport,
    HandshakeState,
    convert_tool_definition,
    parse_property,
)
from . import v20241105, v20250326, v20250618

TRANSPORTS = {
    v20241105.PROTOCOL_VERSION: v20241105.MCPTransport,
    v20250326.PROTOCOL_VERSION: v20250326.MCPTransport,
    v20250618.PROTOCOL_VERSION: v20250618.MCPTransport,
}

__all__ = [
    "BaseMCPTransport",
    "HandshakeState",
    "convert_tool_definition",
    "parse_property",
    "v20241105",
    "v20250326",
    "v20250618",
    "TRANSPORTS",
]
