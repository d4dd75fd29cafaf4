"""
Exception hierarchy for toolbridge.

Every failure raised by this package derives from ToolboxError so callers
can catch the whole family at once.  The concrete classes follow the
lifecycle of a tool:

- ConfigurationError: bad options at client, load or derivation time
- AuthPermissionError: an auth requirement is still unmet at invocation
- ParameterValidationError: caller arguments do not match the schema
- ParameterResolutionError / TokenResolutionError: a provider callable failed
- TransportError / TransportTimeoutError: the HTTP exchange failed
- ProtocolError: the MCP handshake or envelope was not acceptable
- ToolNotFoundError: the requested tool is absent from the manifest
- ToolExecutionError: the server ran the tool and reported an error
"""

from typing import Optional


class ToolboxError(Exception):
    """Base class for all toolbridge errors."""


class ConfigurationError(ToolboxError, ValueError):
    """An option was duplicated, misapplied or names an unknown target."""


class AuthPermissionError(ToolboxError, PermissionError):
    """A tool still needs an auth service that was never supplied."""


class ParameterValidationError(ToolboxError, ValueError):
    """Invocation arguments failed schema validation."""


class ParameterResolutionError(ToolboxError):
    """A bound parameter provider raised while being resolved."""

    def __init__(self, message: str, param_name: str):
        super().__init__(message)
        self.param_name = param_name


class TokenResolutionError(ToolboxError):
    """A header or auth token source raised while being resolved."""

    def __init__(self, message: str, header_name: str):
        super().__init__(message)
        self.header_name = header_name


class TransportError(ToolboxError):
    """
    The request could not be completed at the HTTP or JSON-RPC level.

    Attributes:
        status_code: HTTP status of the response, if one was received.
        body: Raw response body, if one was received.
        method: JSON-RPC method or HTTP verb of the failing call.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.method = method


class TransportTimeoutError(TransportError, TimeoutError):
    """The request did not finish before its timeout expired."""


class ProtocolError(ToolboxError):
    """The server violated the MCP handshake or message contract."""


class ToolNotFoundError(ToolboxError, LookupError):
    """The manifest does not contain the requested tool."""


class ToolExecutionError(ToolboxError):
    """The server reported that the tool call itself failed."""
