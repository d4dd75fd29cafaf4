"""
Functional options for tools and clients.

Options are small callables applied in order to a config object.  Each one
checks that the field it touches has not been set already, so a merge of
client defaults and per-call options can never silently overwrite a value:
the second setter raises ConfigurationError instead.

Tool options (used by load_tool, load_toolset and ToolboxTool.tool_from):
    with_name, with_strict, bind_param, bind_params, auth_token, auth_tokens

Client options (used by ToolboxClient):
    with_http_client, with_protocol, with_client_header, with_timeout,
    with_default_tool_options
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from .auth import TokenSource, as_token_source
from .errors import ConfigurationError
from .protocol import Protocol

_SCALAR_TYPES = (str, int, float, bool)


# ---------------------------------------------------------------------------
# Tool options
# ---------------------------------------------------------------------------

@dataclass
class ToolConfig:
    """Everything a tool option can configure."""
    name: str = ""
    strict: bool = False
    bound_params: Dict[str, Any] = field(default_factory=dict)
    auth_token_sources: Dict[str, TokenSource] = field(default_factory=dict)
    name_set: bool = False
    strict_set: bool = False


ToolOption = Callable[[ToolConfig], None]


def apply_options(config: Any, options: Iterable[Optional[Callable[[Any], None]]]) -> None:
    """
    Apply ``options`` to ``config`` in order, stopping at the first failure.

    Raises:
        ConfigurationError: If an option is None or rejects the config.
    """
    for option in options:
        if option is None:
            raise ConfigurationError("received a None option")
        option(config)


def with_name(name: str) -> ToolOption:
    """Name the toolset to load (load_toolset only)."""
    def option(config: ToolConfig) -> None:
        if config.name_set:
            raise ConfigurationError("name is already set and cannot be overridden")
        config.name = name
        config.name_set = True
    return option


def with_strict(strict: bool) -> ToolOption:
    """Require every tool in a toolset to use every bound param and auth token."""
    def option(config: ToolConfig) -> None:
        if config.strict_set:
            raise ConfigurationError("strict mode is already set and cannot be overridden")
        config.strict = strict
        config.strict_set = True
    return option


def _check_bindable(name: str, value: Any) -> Any:
    if callable(value):
        return value
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        for element in value:
            if not isinstance(element, _SCALAR_TYPES):
                raise ConfigurationError(
                    f"bound parameter '{name}' contains unsupported element type "
                    f"{type(element).__name__}"
                )
        # Own copy so later changes to the caller's list are not seen
        return list(value)
    raise ConfigurationError(
        f"bound parameter '{name}' has unsupported type {type(value).__name__}"
    )


def bind_param(name: str, value: Any) -> ToolOption:
    """
    Bind a parameter to a fixed value or a zero-argument provider.

    Literal values may be str, int, float, bool or a list of those.  A
    callable is invoked on every tool call to produce the value.
    """
    checked = _check_bindable(name, value)

    def option(config: ToolConfig) -> None:
        if name in config.bound_params:
            raise ConfigurationError(
                f"bound parameter '{name}' is already set and cannot be overridden"
            )
        config.bound_params[name] = checked
    return option


def bind_params(params: Mapping[str, Any]) -> ToolOption:
    """Bind several parameters at once (see bind_param)."""
    options = [bind_param(name, value) for name, value in params.items()]

    def option(config: ToolConfig) -> None:
        apply_options(config, options)
    return option


def auth_token(service: str, token: Union[str, TokenSource]) -> ToolOption:
    """Provide a token (string or token source) for an auth service."""
    if token is None:
        raise ConfigurationError(f"auth token source for '{service}' cannot be None")
    source = as_token_source(token)

    def option(config: ToolConfig) -> None:
        if service in config.auth_token_sources:
            raise ConfigurationError(
                f"authentication source '{service}' is already set and cannot be overridden"
            )
        config.auth_token_sources[service] = source
    return option


def auth_tokens(tokens: Mapping[str, Union[str, TokenSource]]) -> ToolOption:
    """Provide tokens for several auth services at once."""
    options = [auth_token(service, token) for service, token in tokens.items()]

    def option(config: ToolConfig) -> None:
        apply_options(config, options)
    return option


# ---------------------------------------------------------------------------
# Client options
# ---------------------------------------------------------------------------

DEFAULT_TIMEOUT = 30.0


@dataclass
class ClientConfig:
    """Everything a client option can configure."""
    http_client: Optional[httpx.Client] = None
    protocol: Protocol = Protocol.MCP
    timeout: Optional[float] = DEFAULT_TIMEOUT
    client_headers: Dict[str, TokenSource] = field(default_factory=dict)
    default_tool_options: List[ToolOption] = field(default_factory=list)
    http_client_set: bool = False
    protocol_set: bool = False
    timeout_set: bool = False
    default_options_set: bool = False


ClientOption = Callable[[ClientConfig], None]


def with_http_client(client: httpx.Client) -> ClientOption:
    """Use a caller-owned httpx.Client (it is not closed by the toolbridge client)."""
    def option(config: ClientConfig) -> None:
        if client is None:
            raise ConfigurationError("http client cannot be None")
        if config.http_client_set:
            raise ConfigurationError("http client is already set and cannot be overridden")
        config.http_client = client
        config.http_client_set = True
    return option


def with_protocol(protocol: Union[Protocol, str]) -> ClientOption:
    """Select the wire protocol (defaults to the latest MCP revision)."""
    def option(config: ClientConfig) -> None:
        if config.protocol_set:
            raise ConfigurationError("protocol is already set and cannot be overridden")
        try:
            config.protocol = Protocol(protocol)
        except ValueError as e:
            raise ConfigurationError(f"unsupported protocol: {protocol}") from e
        config.protocol_set = True
    return option


def with_timeout(timeout: Optional[float]) -> ClientOption:
    """Default per-request timeout in seconds (None disables it)."""
    def option(config: ClientConfig) -> None:
        if config.timeout_set:
            raise ConfigurationError("timeout is already set and cannot be overridden")
        config.timeout = timeout
        config.timeout_set = True
    return option


def with_client_header(name: str, value: Union[str, TokenSource]) -> ClientOption:
    """Send a header (static string or token source) with every request."""
    def option(config: ClientConfig) -> None:
        if value is None:
            raise ConfigurationError(f"client header source for '{name}' cannot be None")
        if name in config.client_headers:
            raise ConfigurationError(f"client header '{name}' is already set")
        config.client_headers[name] = as_token_source(value)
    return option


def with_default_tool_options(*options: ToolOption) -> ClientOption:
    """Tool options applied before the per-call options of every load."""
    def option(config: ClientConfig) -> None:
        if config.default_options_set:
            raise ConfigurationError("default tool options have already been set")
        config.default_tool_options.extend(options)
        config.default_options_set = True
    return option
