"""
Transport contract.

A transport hides one wire protocol behind four operations: ``base_url``,
``get_tool``, ``list_tools`` and ``invoke_tool``.  ToolboxClient and
ToolboxTool only ever talk to a server through this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import httpx

from ..auth import TokenSource
from ..errors import TokenResolutionError
from ..protocol import ManifestSchema

DEFAULT_TIMEOUT = 30.0

HeaderSources = Mapping[str, TokenSource]


def resolve_headers(sources: Optional[HeaderSources]) -> Dict[str, str]:
    """
    Call every header token source and collect the resulting header values.

    Raises:
        TokenResolutionError: If a source raises; the header is named.
    """
    headers: Dict[str, str] = {}
    if not sources:
        return headers
    for name, source in sources.items():
        if source is None:
            continue
        try:
            headers[name] = source()
        except Exception as e:
            raise TokenResolutionError(
                f"failed to resolve token for header '{name}': {e}", header_name=name
            ) from e
    return headers


class Transport(ABC):
    """
    Base class for wire-protocol transports.

    Holds the shared httpx.Client and the default timeout.  A client that
    the transport created itself is closed by ``close()``; one passed in by
    the caller is left alone.
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self._base_url = base_url
        self._owns_client = http_client is None
        self.http_client = http_client if http_client is not None else httpx.Client()
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        """Release the HTTP client if this transport created it."""
        if self._owns_client:
            self.http_client.close()

    def _request_timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.timeout if timeout is None else timeout

    @abstractmethod
    def get_tool(
        self,
        tool_name: str,
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> ManifestSchema:
        """Fetch a manifest holding the single tool ``tool_name``."""

    @abstractmethod
    def list_tools(
        self,
        toolset_name: str = "",
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> ManifestSchema:
        """Fetch the manifest of a toolset (empty name: default toolset)."""

    @abstractmethod
    def invoke_tool(
        self,
        tool_name: str,
        arguments: Dict[str, Any],
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Invoke a tool and return its result."""
