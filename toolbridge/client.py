"""
ToolboxClient: loads tools from a tool server.

The client picks a transport for the configured protocol, fetches
manifests through it and turns each tool schema into a ToolboxTool.  While
doing so it checks that every bound parameter and auth token the caller
supplied was actually used:

- load_tool: always strict; the one tool must use every supplied key
- load_toolset, strict: every tool must use every supplied key
- load_toolset, lenient (default): each key must be used by at least one tool
"""

from typing import Any, Dict, List, Optional, Set, Tuple
import logging

from .auth import find_unused_keys, identify_auth_requirements
from .errors import ConfigurationError, ToolNotFoundError
from .mcp import TRANSPORTS
from .options import ClientConfig, ClientOption, ToolConfig, ToolOption, apply_options
from .protocol import Protocol, ToolSchema
from .tool import ToolboxTool
from .transport.base import Transport
from .transport.toolbox import ToolboxTransport


logger = logging.getLogger("toolbridge.client")


def create_transport(
    protocol: Protocol,
    url: str,
    http_client=None,
    timeout: Optional[float] = None,
) -> Transport:
    """Build the transport implementing ``protocol``."""
    if protocol is Protocol.TOOLBOX:
        return ToolboxTransport(url, http_client=http_client, timeout=timeout)
    transport_class = TRANSPORTS.get(protocol.value)
    if transport_class is None:
        raise ConfigurationError(f"unsupported protocol: {protocol.value}")
    return transport_class(url, http_client=http_client, timeout=timeout)


class ToolboxClient:
    """
    Synchronous client for a tool server.

    Usage:
        client = ToolboxClient(
            "https://tools.example.com",
            with_protocol(Protocol.TOOLBOX),
            with_client_header("Authorization", get_id_token),
        )
        tool = client.load_tool("get_weather", bind_param("units", "metric"))
        print(tool(city="Lisbon"))
        client.close()

    Or as a context manager:
        with ToolboxClient("https://tools.example.com") as client:
            tools = client.load_toolset(with_name("travel"))
    """

    def __init__(self, url: str, *options: ClientOption):
        """
        Args:
            url: Base URL of the tool server.
            *options: Client options (with_http_client, with_protocol, ...).

        Raises:
            ConfigurationError: If an option is None or set twice.
        """
        config = ClientConfig()
        apply_options(config, options)

        self.url = url
        self.protocol = config.protocol
        self.client_headers = dict(config.client_headers)
        self.default_tool_options: List[ToolOption] = list(config.default_tool_options)
        self.transport = create_transport(
            config.protocol, url, http_client=config.http_client, timeout=config.timeout
        )
        logger.debug(f"Created client for {url} using protocol {self.protocol.value}")

    def __enter__(self) -> "ToolboxClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if the client created it."""
        self.transport.close()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _merge_options(self, options: Tuple[ToolOption, ...]) -> ToolConfig:
        config = ToolConfig()
        apply_options(config, self.default_tool_options)
        apply_options(config, options)
        return config

    def _build_tool(
        self,
        name: str,
        schema: ToolSchema,
        config: ToolConfig,
        strict: bool,
    ) -> Tuple[ToolboxTool, Set[str], Set[str]]:
        """
        Build one tool and report which auth services and bound params it used.
        """
        parameters = []
        authn_params: Dict[str, List[str]] = {}
        bound: Dict[str, Any] = {}
        param_names = set()

        for param in schema.parameters:
            param_names.add(param.name)
            if param.auth_sources:
                authn_params[param.name] = param.auth_sources
            elif param.name in config.bound_params:
                bound[param.name] = config.bound_params[param.name]
            else:
                parameters.append(param)

        if strict:
            for bound_name in config.bound_params:
                if bound_name not in param_names:
                    raise ConfigurationError(
                        f"unable to bind parameter: no parameter named '{bound_name}' "
                        f"found on tool '{name}'"
                    )

        unmet_authn, unmet_authz, used_auth = identify_auth_requirements(
            authn_params, schema.auth_required, config.auth_token_sources
        )

        tool = ToolboxTool(
            name=name,
            description=schema.description,
            parameters=parameters,
            transport=self.transport,
            bound_params=bound,
            auth_token_sources=config.auth_token_sources,
            required_authn_params=unmet_authn,
            required_authz_tokens=unmet_authz,
            client_headers=self.client_headers,
        )
        return tool, used_auth, set(bound)

    @staticmethod
    def _unused_messages(
        config: ToolConfig, used_auth: Set[str], used_bound: Set[str], suffix: str = ""
    ) -> List[str]:
        messages = []
        unused_auth = find_unused_keys(config.auth_token_sources, used_auth)
        unused_bound = find_unused_keys(config.bound_params, used_bound)
        if unused_auth:
            messages.append(f"unused auth tokens{suffix}: {', '.join(unused_auth)}")
        if unused_bound:
            messages.append(f"unused bound parameters{suffix}: {', '.join(unused_bound)}")
        return messages

    def load_tool(self, name: str, *options: ToolOption, timeout: Optional[float] = None) -> ToolboxTool:
        """
        Fetch and build a single tool.

        Every supplied bound parameter and auth token must be used by it.

        Raises:
            ConfigurationError: Bad or unused options.
            ToolNotFoundError: The server does not know the tool.
            TransportError: The manifest could not be fetched.
        """
        config = self._merge_options(options)

        manifest = self.transport.get_tool(name, self.client_headers, timeout)
        schema = manifest.tools.get(name)
        if schema is None:
            raise ToolNotFoundError(f"tool '{name}' not found")

        tool, used_auth, used_bound = self._build_tool(name, schema, config, strict=True)

        messages = self._unused_messages(config, used_auth, used_bound)
        if messages:
            raise ConfigurationError(f"validation failed for tool '{name}': {'; '.join(messages)}")

        logger.info(f"Loaded tool '{name}' (server version {manifest.server_version or 'unknown'})")
        return tool

    def load_toolset(self, *options: ToolOption, timeout: Optional[float] = None) -> List[ToolboxTool]:
        """
        Fetch and build every tool of a toolset.

        The toolset is chosen with ``with_name`` (default toolset otherwise).
        With ``with_strict(True)`` each tool must use every supplied bound
        parameter and auth token; otherwise each must be used by at least
        one tool.

        Raises:
            ConfigurationError: Bad or unused options.
            TransportError: The manifest could not be fetched.
        """
        config = self._merge_options(options)
        toolset_label = config.name or "default"

        manifest = self.transport.list_tools(config.name, self.client_headers, timeout)

        tools: List[ToolboxTool] = []
        overall_used_auth: Set[str] = set()
        overall_used_bound: Set[str] = set()

        for tool_name, schema in manifest.tools.items():
            try:
                tool, used_auth, used_bound = self._build_tool(
                    tool_name, schema, config, strict=config.strict
                )
            except ConfigurationError as e:
                raise ConfigurationError(f"failed to create tool '{tool_name}': {e}") from e
            tools.append(tool)

            if config.strict:
                messages = self._unused_messages(config, used_auth, used_bound)
                if messages:
                    raise ConfigurationError(
                        f"validation failed for tool '{tool_name}': {'; '.join(messages)}"
                    )
            else:
                overall_used_auth |= used_auth
                overall_used_bound |= used_bound

        if not config.strict:
            messages = self._unused_messages(
                config, overall_used_auth, overall_used_bound,
                suffix=" could not be applied to any tool",
            )
            if messages:
                raise ConfigurationError(
                    f"validation failed for toolset '{toolset_label}': {'; '.join(messages)}"
                )

        logger.info(f"Loaded {len(tools)} tools from toolset '{toolset_label}'")
        return tools
