"""
ToolboxTool: a loaded, callable tool.

A ToolboxTool combines the server's schema with everything the caller has
configured for it: bound parameters, auth token sources and client-wide
headers.  Instances are never mutated after construction.  ``tool_from``
returns a new, further specialised tool and leaves the original untouched.
"""

from typing import Any, Dict, List, Optional
import copy
import logging

from .auth import TokenSource, identify_auth_requirements
from .errors import (
    AuthPermissionError,
    ConfigurationError,
    ParameterResolutionError,
    ParameterValidationError,
)
from .options import ToolConfig, ToolOption, apply_options
from .protocol import ParameterSchema
from .transport.base import Transport


logger = logging.getLogger("toolbridge.tool")


def _copy_bound_value(value: Any) -> Any:
    if isinstance(value, list):
        return list(value)
    return value


class ToolboxTool:
    """
    An immutable, invocable description of one server tool.

    Usage:
        tool = client.load_tool("search_hotels", bind_param("city", "Basel"))
        result = tool(checkin="2025-01-10")

        narrowed = tool.tool_from(bind_param("checkin", "2025-01-10"))
        result = narrowed()
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: List[ParameterSchema],
        transport: Transport,
        bound_params: Optional[Dict[str, Any]] = None,
        auth_token_sources: Optional[Dict[str, TokenSource]] = None,
        required_authn_params: Optional[Dict[str, List[str]]] = None,
        required_authz_tokens: Optional[List[str]] = None,
        client_headers: Optional[Dict[str, TokenSource]] = None,
    ):
        """
        Args:
            name: Tool name as known to the server.
            description: Human-readable description from the manifest.
            parameters: Parameters the caller still has to supply.
            transport: Transport used to invoke the tool.
            bound_params: Name -> literal value or zero-argument provider.
            auth_token_sources: Auth service name -> token source.
            required_authn_params: Auth-gated parameters still lacking a
                                   service, with their alternatives.
            required_authz_tokens: Tool-level services still unmet.
            client_headers: Header name -> token source sent on every call.
        """
        self._name = name
        self._description = description
        self._parameters = list(parameters)
        self._transport = transport
        self._bound_params = {k: _copy_bound_value(v) for k, v in (bound_params or {}).items()}
        self._auth_token_sources = dict(auth_token_sources or {})
        self._required_authn_params = {
            k: list(v) for k, v in (required_authn_params or {}).items()
        }
        self._required_authz_tokens = list(required_authz_tokens or [])
        self._client_headers = dict(client_headers or {})

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> List[ParameterSchema]:
        """The unbound parameters (a copy; changing it does not affect the tool)."""
        return copy.deepcopy(self._parameters)

    @property
    def bound_params(self) -> Dict[str, Any]:
        return {k: _copy_bound_value(v) for k, v in self._bound_params.items()}

    @property
    def transport(self) -> Transport:
        return self._transport

    def describe_parameters(self) -> str:
        """One-line summary of the unbound parameters."""
        return ", ".join(
            f"'{p.name}' (type: {p.type}, description: {p.description})"
            for p in self._parameters
        )

    def __repr__(self) -> str:
        return (
            f"ToolboxTool(name={self._name!r}, "
            f"parameters={[p.name for p in self._parameters]!r}, "
            f"bound={sorted(self._bound_params)!r})"
        )

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def tool_from(self, *options: ToolOption) -> "ToolboxTool":
        """
        Create a new tool with more bound parameters or auth token sources.

        Bindings and auth sources are write-once: re-binding a parameter or
        re-setting a service that this tool already has is an error, as is
        binding a parameter the tool does not have.

        Raises:
            ConfigurationError: On any of the above, or if with_name /
                                with_strict is passed.
        """
        config = ToolConfig()
        apply_options(config, options)

        if config.name_set:
            raise ConfigurationError(
                "tool_from: with_name is not applicable when deriving from an existing tool"
            )
        if config.strict_set:
            raise ConfigurationError(
                "tool_from: with_strict is not applicable as derivation is always strict"
            )

        new_tool = self._clone()

        for service, source in config.auth_token_sources.items():
            if service in new_tool._auth_token_sources:
                raise ConfigurationError(
                    f"cannot override existing auth token source: '{service}'"
                )
            new_tool._auth_token_sources[service] = source

        unbound = {p.name for p in self._parameters}
        for name, value in config.bound_params.items():
            if name not in unbound:
                if name in self._bound_params:
                    raise ConfigurationError(
                        f"cannot override existing bound parameter: '{name}'"
                    )
                raise ConfigurationError(
                    f"unable to bind parameter: no parameter named '{name}' on the tool"
                )
            new_tool._bound_params[name] = _copy_bound_value(value)

        new_tool._parameters = [
            p for p in new_tool._parameters if p.name not in new_tool._bound_params
        ]

        unmet_authn, unmet_authz, _ = identify_auth_requirements(
            new_tool._required_authn_params,
            new_tool._required_authz_tokens,
            new_tool._auth_token_sources,
        )
        new_tool._required_authn_params = unmet_authn
        new_tool._required_authz_tokens = unmet_authz

        return new_tool

    def _clone(self) -> "ToolboxTool":
        # The constructor copies every collection it is given.
        return ToolboxTool(
            name=self._name,
            description=self._description,
            parameters=self._parameters,
            transport=self._transport,
            bound_params=self._bound_params,
            auth_token_sources=self._auth_token_sources,
            required_authn_params=self._required_authn_params,
            required_authz_tokens=self._required_authz_tokens,
            client_headers=self._client_headers,
        )

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def __call__(self, **kwargs: Any) -> Any:
        return self.invoke(kwargs)

    def invoke(self, arguments: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        """
        Validate the arguments, resolve bound values and call the tool.

        Args:
            arguments: Values for the unbound parameters.
            timeout: Per-call timeout in seconds (defaults to the client's).

        Returns:
            The tool result as returned by the transport.

        Raises:
            AuthPermissionError: An auth requirement is still unmet.
            ParameterValidationError: The arguments do not fit the schema.
            ParameterResolutionError: A bound value provider raised.
        """
        missing = self._missing_auth_services()
        if missing:
            raise AuthPermissionError(
                f"permission error: auth service(s) {', '.join(repr(s) for s in missing)} "
                f"required to invoke tool '{self._name}' but not provided"
            )

        payload = self._validate_and_build_payload(arguments or {})

        headers: Dict[str, TokenSource] = dict(self._client_headers)
        for service, source in self._auth_token_sources.items():
            headers[f"{service}_token"] = source

        logger.debug(f"Invoking tool '{self._name}' with parameters {sorted(payload)}")
        return self._transport.invoke_tool(self._name, payload, headers, timeout)

    def _missing_auth_services(self) -> List[str]:
        missing: List[str] = []
        for services in self._required_authn_params.values():
            for service in services:
                if service not in missing:
                    missing.append(service)
        for service in self._required_authz_tokens:
            if service not in missing:
                missing.append(service)
        return missing

    def _validate_and_build_payload(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        schema = {p.name: p for p in self._parameters}

        for key, value in arguments.items():
            param = schema.get(key)
            if param is None:
                if key not in self._bound_params:
                    raise ParameterValidationError(f"unexpected parameter '{key}' provided")
                continue
            param.validate_type(value)

        for param in self._parameters:
            if param.required and param.name not in arguments:
                raise ParameterValidationError(
                    f"missing required parameter '{param.name}' for tool '{self._name}'"
                )

        payload = {k: v for k, v in arguments.items() if k in schema}

        for name, bound in self._bound_params.items():
            if callable(bound):
                try:
                    value = bound()
                except Exception as e:
                    raise ParameterResolutionError(
                        f"failed to resolve bound parameter function for '{name}': {e}",
                        param_name=name,
                    ) from e
            else:
                value = _copy_bound_value(bound)
            payload[name] = value

        return payload
