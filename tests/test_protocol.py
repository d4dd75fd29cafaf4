"""Tests for the manifest data model and parameter type validation."""

import pytest

from toolbridge.errors import ParameterValidationError
from toolbridge.protocol import PARAMETER_TYPES, ManifestSchema, ParameterSchema, Protocol, ToolSchema


def _param(param_type, **kwargs):
    return ParameterSchema(name="p", type=param_type, **kwargs)


class TestValidateType:
    @pytest.mark.parametrize("param_type,value", [
        ("string", "hello"),
        ("string", ""),
        ("integer", 42),
        ("integer", -1),
        ("float", 1.5),
        ("float", 3),
        ("boolean", True),
        ("boolean", False),
        ("object", {}),
        ("object", {"a": 1, "b": "x"}),
    ])
    def test_accepts(self, param_type, value):
        _param(param_type).validate_type(value)

    @pytest.mark.parametrize("param_type,value,expected", [
        ("string", 1, "expects a string"),
        ("integer", 1.0, "expects an integer"),
        ("integer", "1", "expects an integer"),
        ("integer", True, "expects an integer"),
        ("float", "1.5", "expects a float"),
        ("float", False, "expects a float"),
        ("boolean", 1, "expects a boolean"),
        ("boolean", "true", "expects a boolean"),
        ("array", "abc", "expects an array"),
        ("object", [1], "expects an object"),
    ])
    def test_rejects(self, param_type, value, expected):
        with pytest.raises(ParameterValidationError, match=expected):
            _param(param_type, items=_param("string")).validate_type(value)

    def test_null_value_rejected(self):
        with pytest.raises(ParameterValidationError, match="received a null value"):
            _param("string").validate_type(None)

    def test_unknown_type(self):
        with pytest.raises(ParameterValidationError, match="unknown type 'date'"):
            _param("date").validate_type("2025-01-01")

    @pytest.mark.parametrize("param_type", PARAMETER_TYPES)
    def test_known_types_reject_wrong_value_not_type(self, param_type):
        with pytest.raises(ParameterValidationError) as exc_info:
            _param(param_type, items=_param("string")).validate_type(object())
        assert "unknown type" not in str(exc_info.value)

    def test_array_without_item_schema(self):
        with pytest.raises(ParameterValidationError, match="missing its item schema"):
            _param("array").validate_type(["a"])

    def test_array_elements_checked(self):
        param = _param("array", items=_param("integer"))
        param.validate_type([1, 2, 3])
        with pytest.raises(ParameterValidationError, match=r"'p\[1\]' expects an integer"):
            param.validate_type([1, "two", 3])

    def test_nested_arrays(self):
        param = _param("array", items=_param("array", items=_param("string")))
        param.validate_type([["a"], ["b", "c"], []])
        with pytest.raises(ParameterValidationError, match=r"'p\[1\]\[0\]'"):
            param.validate_type([["a"], [7]])

    def test_object_values_checked_against_additional_properties(self):
        param = _param("object", additional_properties=_param("integer"))
        param.validate_type({"a": 1})
        with pytest.raises(ParameterValidationError, match=r"'p\.b' expects an integer"):
            param.validate_type({"a": 1, "b": "x"})

    def test_object_requires_string_keys(self):
        with pytest.raises(ParameterValidationError, match="string keys"):
            _param("object").validate_type({1: "a"})


class TestWireFormat:
    def test_parameter_from_dict(self):
        param = ParameterSchema.from_dict({
            "name": "ids",
            "type": "array",
            "description": "Identifiers",
            "required": True,
            "authSources": ["google"],
            "items": {"name": "", "type": "integer"},
        })
        assert param.name == "ids"
        assert param.required is True
        assert param.auth_sources == ["google"]
        assert param.items.type == "integer"

    def test_additional_properties_forms(self):
        nested = ParameterSchema.from_dict(
            {"name": "o", "type": "object", "additionalProperties": {"type": "string"}}
        )
        assert isinstance(nested.additional_properties, ParameterSchema)
        assert nested.additional_properties.type == "string"

        flag = ParameterSchema.from_dict(
            {"name": "o", "type": "object", "additionalProperties": False}
        )
        assert flag.additional_properties is False
        assert flag.to_dict()["additionalProperties"] is False

    def test_manifest_from_dict(self, toolset_manifest):
        manifest = ManifestSchema.from_dict(toolset_manifest)
        assert manifest.server_version == "v1"
        assert list(manifest.tools) == ["toolA", "toolB"]
        assert [p.name for p in manifest.tools["toolA"].parameters] == ["param1", "param2"]
        assert manifest.tools["toolB"].auth_required == ["github"]

    def test_manifest_without_tools(self):
        manifest = ManifestSchema.from_dict({"serverVersion": "v2"})
        assert manifest.tools == {}

    def test_tool_schema_to_dict_uses_camel_case(self):
        tool = ToolSchema(
            description="d",
            parameters=[ParameterSchema(name="a", type="string", auth_sources=["svc"])],
            auth_required=["github"],
        )
        data = tool.to_dict()
        assert data["authRequired"] == ["github"]
        assert data["parameters"][0]["authSources"] == ["svc"]


class TestProtocol:
    def test_mcp_aliases_latest_revision(self):
        assert Protocol.MCP is Protocol.MCP_v20250618
        assert Protocol("2025-06-18") is Protocol.MCP

    def test_mcp_versions(self):
        assert Protocol.mcp_versions() == ["2024-11-05", "2025-03-26", "2025-06-18"]

    def test_toolbox_value(self):
        assert Protocol("toolbox") is Protocol.TOOLBOX
