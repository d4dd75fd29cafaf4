"""
MCP transport for protocol revision 2025-06-18.

Session handling is the same as 2025-03-26.  In addition every
post-handshake request announces the negotiated revision in the
``MCP-Protocol-Version`` HTTP header.
"""

from typing import Dict

from . import v20250326
from .schema import PROTOCOL_VERSION_HEADER

PROTOCOL_VERSION = "2025-06-18"


class MCPTransport(v20250326.MCPTransport):
    """MCP 2025-06-18 over HTTP."""

    PROTOCOL_VERSION = PROTOCOL_VERSION

    def _session_headers(self) -> Dict[str, str]:
        return {PROTOCOL_VERSION_HEADER: self.protocol_version}
