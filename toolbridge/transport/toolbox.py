"""
REST manifest transport.

Speaks the toolbox HTTP protocol:

    GET  {base}/api/tool/{name}          -> single-tool manifest
    GET  {base}/api/toolset/{name}       -> toolset manifest ("" = default)
    POST {base}/api/tool/{name}/invoke   -> {"result": ...} or {"error": ...}

The transport is stateless; every call is one HTTP request.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import TransportError, TransportTimeoutError
from ..protocol import ManifestSchema
from .base import HeaderSources, Transport, resolve_headers


logger = logging.getLogger("toolbridge.transport.toolbox")


class ToolboxTransport(Transport):
    """Transport for the toolbox REST manifest protocol."""

    def get_tool(
        self,
        tool_name: str,
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> ManifestSchema:
        url = f"{self.base_url}/api/tool/{tool_name}"
        return self._fetch_manifest(url, headers, timeout)

    def list_tools(
        self,
        toolset_name: str = "",
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> ManifestSchema:
        url = f"{self.base_url}/api/toolset/{toolset_name}"
        return self._fetch_manifest(url, headers, timeout)

    def _fetch_manifest(
        self,
        url: str,
        headers: Optional[HeaderSources],
        timeout: Optional[float],
    ) -> ManifestSchema:
        resolved = resolve_headers(headers)
        logger.debug(f"Fetching manifest from {url}")

        try:
            response = self.http_client.get(
                url, headers=resolved, timeout=self._request_timeout(timeout)
            )
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"timed out fetching manifest from {url}: {e}", method="GET"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"failed to make HTTP request to {url}: {e}", method="GET"
            ) from e

        if not response.is_success:
            raise TransportError(
                f"server returned non-OK status: {response.status_code} "
                f"{response.reason_phrase}, body: {response.text}",
                status_code=response.status_code,
                body=response.text,
                method="GET",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                f"unable to parse manifest correctly: {e}",
                status_code=response.status_code,
                body=response.text,
                method="GET",
            ) from e
        if not isinstance(data, dict):
            raise TransportError(
                "unable to parse manifest correctly: expected a JSON object",
                status_code=response.status_code,
                body=response.text,
                method="GET",
            )
        try:
            return ManifestSchema.from_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise TransportError(
                f"unable to parse manifest correctly: {e}",
                status_code=response.status_code,
                body=response.text,
                method="GET",
            ) from e

    def invoke_tool(
        self,
        tool_name: str,
        arguments: Dict[str, Any],
        headers: Optional[HeaderSources] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        if not self.base_url.startswith("https://"):
            logger.warning(
                "Sending ID token over HTTP. User data may be exposed. "
                "Use HTTPS for secure communication."
            )

        url = f"{self.base_url}/api/tool/{tool_name}/invoke"
        resolved = resolve_headers(headers)

        try:
            response = self.http_client.post(
                url,
                json=arguments,
                headers=resolved,
                timeout=self._request_timeout(timeout),
            )
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"HTTP call to tool '{tool_name}' timed out: {e}", method="POST"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP call to tool '{tool_name}' failed: {e}", method="POST"
            ) from e

        body = response.text
        try:
            data = json.loads(body)
        except ValueError:
            data = None

        if not response.is_success:
            if isinstance(data, dict) and isinstance(data.get("error"), str):
                message = (
                    f"tool '{tool_name}' API returned error status "
                    f"{response.status_code}: {data['error']}"
                )
            else:
                message = (
                    f"tool '{tool_name}' API returned unexpected status: "
                    f"{response.status_code} {response.reason_phrase}, body: {body}"
                )
            raise TransportError(
                message, status_code=response.status_code, body=body, method="POST"
            )

        if isinstance(data, dict) and "result" in data:
            return data["result"]
        return body
