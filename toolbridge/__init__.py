"""
toolbridge - client library for remote tool servers.

Discovers tools published by a tool server and invokes them, independent
of how the server encodes tool definitions:

- REST manifest protocol ("toolbox")
- MCP (Model Context Protocol) 2024-11-05, 2025-03-26 and 2025-06-18

Typical use:

    from toolbridge import ToolboxClient, bind_param

    with ToolboxClient("https://tools.example.com") as client:
        tool = client.load_tool("get_weather", bind_param("units", "metric"))
        print(tool(city="Lisbon"))
"""

__version__ = "0.1.0"

from toolbridge.protocol import ManifestSchema, ParameterSchema, Protocol, ToolSchema
from toolbridge.errors import (
    AuthPermissionError,
    ConfigurationError,
    ParameterResolutionError,
    ParameterValidationError,
    ProtocolError,
    TokenResolutionError,
    ToolboxError,
    ToolExecutionError,
    ToolNotFoundError,
    TransportError,
    TransportTimeoutError,
)
from toolbridge.options import (
    ClientConfig,
    ToolConfig,
    auth_token,
    auth_tokens,
    bind_param,
    bind_params,
    with_client_header,
    with_default_tool_options,
    with_http_client,
    with_name,
    with_protocol,
    with_strict,
    with_timeout,
)
from toolbridge.tool import ToolboxTool
from toolbridge.client import ToolboxClient, create_transport
