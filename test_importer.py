"""
Unit tests for the JSON Schema importer.
"""

import json
import pytest

from schema_tree.exceptions import ParseError
from schema_tree.importer import (
    import_schema,
    map_external_type,
    extract_options,
    parse_schema_text,
    DEFAULT_TITLE,
    DEFAULT_DESCRIPTION,
)
from schema_tree.models import FieldType


TENANT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Tenant Configuration",
    "description": "Settings for a tenant",
    "type": "object",
    "required": ["features", "api"],
    "properties": {
        "features": {
            "type": "object",
            "description": "Feature switches",
            "required": ["enabledModules"],
            "properties": {
                "enabledModules": {
                    "type": "array",
                    "items": {"type": "string", "enum": ["reports", "billing"]},
                    "uniqueItems": True
                },
                "useAIInsights": {"type": "boolean"}
            }
        },
        "api": {
            "type": "object",
            "properties": {
                "baseUrl": {"type": "string"},
                "timeout": {"type": "integer"}
            }
        },
        "tenants": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["tenantId"],
                "properties": {
                    "tenantId": {"type": "string"},
                    "theme": {
                        "type": "object",
                        "properties": {
                            "primaryColor": {"type": "string"},
                            "font": {
                                "type": "object",
                                "properties": {"family": {"type": "string"}}
                            }
                        }
                    }
                }
            }
        },
        "environment": {"type": "string", "enum": ["dev", "prod"]}
    }
}


class TestTypeMapping:
    """Test class for external type mapping."""

    @pytest.mark.parametrize("external, expected", [
        ("integer", FieldType.NUMBER),
        ("number", FieldType.NUMBER),
        ("boolean", FieldType.BOOLEAN),
        ("array", FieldType.ARRAY),
        ("object", FieldType.OBJECT),
        ("string", FieldType.STRING),
        ("null", FieldType.STRING),
        (None, FieldType.STRING),
        (["string", "null"], FieldType.STRING),
    ])
    def test_map_external_type(self, external, expected):
        assert map_external_type({"type": external}) == expected

    def test_missing_type_is_string(self):
        assert map_external_type({}) == FieldType.STRING


class TestExtractOptions:
    """Test class for enum extraction."""

    def test_own_enum(self):
        assert extract_options({"type": "string", "enum": ["a", "b"]}) == ["a", "b"]

    def test_items_enum(self):
        descriptor = {"type": "array", "items": {"type": "string", "enum": ["red", "blue"]}}
        assert extract_options(descriptor) == ["red", "blue"]

    def test_non_string_values_become_json_text(self):
        assert extract_options({"enum": [1, True, None, "x"]}) == ["1", "true", "null", "x"]

    def test_duplicates_removed(self):
        assert extract_options({"enum": ["a", "b", "a"]}) == ["a", "b"]

    def test_no_enum(self):
        assert extract_options({"type": "string"}) is None


class TestImportSchema:
    """Test class for import_schema."""

    def test_enum_extraction_from_items(self):
        doc = import_schema({
            "properties": {
                "color": {"type": "array", "items": {"type": "string", "enum": ["red", "blue"]}}
            }
        })

        color = doc.fields[0]
        assert color.name == "color"
        assert color.type == FieldType.ARRAY
        assert color.options == ["red", "blue"]
        assert color.children is None

    def test_root_metadata(self):
        doc = import_schema(TENANT_SCHEMA)

        assert doc.name == "Tenant Configuration"
        assert doc.description == "Settings for a tenant"

    def test_root_metadata_defaults(self):
        doc = import_schema({"properties": {}})

        assert doc.name == DEFAULT_TITLE
        assert doc.description == DEFAULT_DESCRIPTION

    def test_field_order_and_required(self):
        doc = import_schema(TENANT_SCHEMA)

        assert [f.name for f in doc.fields] == ["features", "api", "tenants", "environment"]
        assert [f.required for f in doc.fields] == [True, True, False, False]

    def test_nested_object_children(self):
        doc = import_schema(TENANT_SCHEMA)
        features = doc.fields[0]

        assert features.type == FieldType.OBJECT
        assert features.description == "Feature switches"
        assert [c.name for c in features.children] == ["enabledModules", "useAIInsights"]
        assert all(c.level == 1 for c in features.children)
        assert features.children[0].required is True
        assert features.children[0].options == ["reports", "billing"]
        assert features.children[1].required is False

    def test_integer_becomes_number(self):
        doc = import_schema(TENANT_SCHEMA)

        assert doc.get_field((1, 1)).type == FieldType.NUMBER

    def test_array_of_objects_children(self):
        doc = import_schema(TENANT_SCHEMA)
        tenants = doc.fields[2]

        assert tenants.type == FieldType.ARRAY
        assert tenants.options is None
        assert [c.name for c in tenants.children] == ["tenantId", "theme"]
        assert tenants.children[0].required is True

    def test_depth_beyond_level_two_is_dropped(self):
        doc = import_schema(TENANT_SCHEMA)
        theme = doc.get_field((2, 1))
        font = doc.get_field((2, 1, 1))

        assert theme.level == 1
        assert font.level == 2
        assert font.type == FieldType.OBJECT
        assert font.children is None

    def test_scalar_enum(self):
        doc = import_schema(TENANT_SCHEMA)
        environment = doc.fields[3]

        assert environment.type == FieldType.STRING
        assert environment.options == ["dev", "prod"]

    def test_missing_description_is_none(self):
        doc = import_schema(TENANT_SCHEMA)

        assert doc.fields[1].description is None

    def test_object_without_properties_has_no_children(self):
        doc = import_schema({"properties": {"meta": {"type": "object"}}})

        assert doc.fields[0].children is None

    def test_object_with_empty_properties_has_empty_children(self):
        doc = import_schema({"properties": {"meta": {"type": "object", "properties": {}}}})

        assert doc.fields[0].children == []

    def test_array_with_scalar_items_has_no_shape(self):
        doc = import_schema({"properties": {"ports": {"type": "array", "items": {"type": "integer"}}}})

        assert doc.fields[0].options is None
        assert doc.fields[0].children is None

    def test_accepts_json_text(self):
        doc = import_schema(json.dumps(TENANT_SCHEMA))

        assert doc == import_schema(TENANT_SCHEMA)

    def test_accepts_bytes(self):
        doc = import_schema(json.dumps(TENANT_SCHEMA).encode("utf-8"))

        assert len(doc.fields) == 4


class TestImportFailures:
    """Test class for malformed and unparseable input."""

    @pytest.mark.parametrize("root", [[], "not an object", 42, None, True])
    def test_non_object_root_gives_blank_document(self, root):
        doc = import_schema(root) if not isinstance(root, str) else import_schema(json.dumps(root))

        assert doc.fields == []
        assert doc.name == DEFAULT_TITLE

    def test_missing_properties_gives_empty_fields(self):
        doc = import_schema({"title": "Empty", "type": "object"})

        assert doc.name == "Empty"
        assert doc.fields == []

    def test_non_object_properties_gives_empty_fields(self):
        doc = import_schema({"properties": ["a", "b"]})

        assert doc.fields == []

    def test_non_object_descriptor_skipped(self):
        doc = import_schema({"properties": {"bad": "string", "good": {"type": "boolean"}}})

        assert [f.name for f in doc.fields] == ["good"]

    def test_required_not_a_list_is_ignored(self):
        doc = import_schema({"required": "a", "properties": {"a": {"type": "string"}}})

        assert doc.fields[0].required is False

    def test_invalid_json_text_raises_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            import_schema('{"properties": {')

        assert exc_info.value.original_error is not None
        assert exc_info.value.recovery_suggestions

    def test_invalid_utf8_raises_parse_error(self):
        with pytest.raises(ParseError):
            parse_schema_text(b"\xff\xfe{")

    def test_non_json_value_raises_parse_error(self):
        with pytest.raises(ParseError):
            import_schema({"properties": {"a": {"type": "string", "enum": {1, 2}}}})

    def test_non_string_key_raises_parse_error(self):
        with pytest.raises(ParseError):
            import_schema({"properties": {1: {"type": "string"}}})
