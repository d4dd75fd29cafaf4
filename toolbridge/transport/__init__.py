"""
Transports: one wire protocol each, all behind the Transport contract.

- base: the Transport abstract class and header resolution
- toolbox: the REST manifest protocol

The MCP transports live in ``toolbridge.mcp``.
"""

from .base import DEFAULT_TIMEOUT, HeaderSources, Transport, resolve_headers
from .toolbox import ToolboxTransport

__all__ = [
    "DEFAULT_TIMEOUT",
    "HeaderSources",
    "Transport",
    "resolve_headers",
    "ToolboxTransport",
]
