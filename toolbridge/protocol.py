"""
Tool manifest data model.

Implements the structures a tool server describes its tools with:

- ManifestSchema: server version plus a name -> ToolSchema mapping
- ToolSchema: description, ordered parameters and tool-level auth services
- ParameterSchema: a typed, possibly nested parameter with its auth sources
- Protocol: the wire protocols a client can speak to the server

Wire names are camelCase (``serverVersion``, ``authRequired``,
``authSources``, ``additionalProperties``); Python attributes are
snake_case.  ``from_dict``/``to_dict`` convert between the two.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import ParameterValidationError


class Protocol(str, Enum):
    """
    Wire protocols understood by ToolboxClient.

    TOOLBOX is the REST manifest protocol.  The MCP members name the
    JSON-RPC protocol revisions; ``Protocol.MCP`` always aliases the most
    recent supported revision.
    """
    TOOLBOX = "toolbox"
    MCP_v20241105 = "2024-11-05"
    MCP_v20250326 = "2025-03-26"
    MCP_v20250618 = "2025-06-18"
    MCP = "2025-06-18"

    @classmethod
    def mcp_versions(cls) -> List[str]:
        """Return the supported MCP revisions, oldest first."""
        return [
            cls.MCP_v20241105.value,
            cls.MCP_v20250326.value,
            cls.MCP_v20250618.value,
        ]


PARAMETER_TYPES = ("string", "integer", "float", "boolean", "array", "object")


@dataclass
class ParameterSchema:
    """
    Schema of a single tool parameter.

    ``items`` describes array elements.  ``additional_properties`` describes
    the values of an object parameter: a nested schema, or a bare boolean
    when the server only says whether extra keys are allowed.
    """
    name: str
    type: str
    description: str = ""
    required: bool = False
    auth_sources: List[str] = field(default_factory=list)
    items: Optional["ParameterSchema"] = None
    additional_properties: Union[bool, "ParameterSchema", None] = None

    def validate_type(self, value: Any) -> None:
        """
        Check that ``value`` matches the declared type, recursing into
        array elements and object values.

        Raises:
            ParameterValidationError: If the value does not conform.
        """
        self._check(value, self.name)

    def _check(self, value: Any, label: str) -> None:
        if value is None:
            raise ParameterValidationError(f"parameter '{label}' received a null value")
        if self.type not in PARAMETER_TYPES:
            raise ParameterValidationError(
                f"parameter '{label}' has unknown type '{self.type}'"
            )

        if self.type == "string":
            if not isinstance(value, str):
                raise ParameterValidationError(
                    f"parameter '{label}' expects a string, but got {type(value).__name__}"
                )
        elif self.type == "integer":
            # bool is an int subclass; floats are never coerced
            if isinstance(value, bool) or not isinstance(value, int):
                raise ParameterValidationError(
                    f"parameter '{label}' expects an integer, but got {type(value).__name__}"
                )
        elif self.type == "float":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ParameterValidationError(
                    f"parameter '{label}' expects a float, but got {type(value).__name__}"
                )
        elif self.type == "boolean":
            if not isinstance(value, bool):
                raise ParameterValidationError(
                    f"parameter '{label}' expects a boolean, but got {type(value).__name__}"
                )
        elif self.type == "array":
            if not isinstance(value, (list, tuple)):
                raise ParameterValidationError(
                    f"parameter '{label}' expects an array, but got {type(value).__name__}"
                )
            if self.items is None:
                raise ParameterValidationError(
                    f"parameter '{label}' is an array but is missing its item schema"
                )
            for index, element in enumerate(value):
                self.items._check(element, f"{label}[{index}]")
        elif self.type == "object":
            if not isinstance(value, dict):
                raise ParameterValidationError(
                    f"parameter '{label}' expects an object, but got {type(value).__name__}"
                )
            for key, item in value.items():
                if not isinstance(key, str):
                    raise ParameterValidationError(
                        f"parameter '{label}' expects string keys, but got {type(key).__name__}"
                    )
                if isinstance(self.additional_properties, ParameterSchema):
                    self.additional_properties._check(item, f"{label}.{key}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the manifest wire format."""
        result: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "required": self.required,
        }
        if self.auth_sources:
            result["authSources"] = list(self.auth_sources)
        if self.items is not None:
            result["items"] = self.items.to_dict()
        if isinstance(self.additional_properties, ParameterSchema):
            result["additionalProperties"] = self.additional_properties.to_dict()
        elif self.additional_properties is not None:
            result["additionalProperties"] = self.additional_properties
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParameterSchema":
        """Deserialize from the manifest wire format."""
        items = data.get("items")
        additional = data.get("additionalProperties")
        if isinstance(additional, dict):
            additional = cls.from_dict(additional)
        return cls(
            name=data.get("name", ""),
            type=data.get("type", ""),
            description=data.get("description", ""),
            required=bool(data.get("required", False)),
            auth_sources=list(data.get("authSources") or []),
            items=cls.from_dict(items) if isinstance(items, dict) else None,
            additional_properties=additional,
        )


@dataclass
class ToolSchema:
    """A tool as described by the server."""
    description: str = ""
    parameters: List[ParameterSchema] = field(default_factory=list)
    auth_required: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
        }
        if self.auth_required:
            result["authRequired"] = list(self.auth_required)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolSchema":
        return cls(
            description=data.get("description", ""),
            parameters=[ParameterSchema.from_dict(p) for p in data.get("parameters") or []],
            auth_required=list(data.get("authRequired") or []),
        )


@dataclass
class ManifestSchema:
    """
    Server manifest: one or more tools plus the server version.

    Manifests are fetched fresh for every load call and never cached.
    """
    server_version: str = ""
    tools: Dict[str, ToolSchema] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serverVersion": self.server_version,
            "tools": {name: tool.to_dict() for name, tool in self.tools.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestSchema":
        return cls(
            server_version=data.get("serverVersion", ""),
            tools={
                name: ToolSchema.from_dict(tool)
                for name, tool in (data.get("tools") or {}).items()
            },
        )
