"""
Unit tests for the field tree model.
"""

import pytest
from pydantic import ValidationError

from schema_tree.exceptions import FieldShapeError, FieldPathError
from schema_tree.models import (
    SchemaDocument,
    SchemaField,
    FieldType,
    EnumeratedValues,
    NestedFields,
    MAX_LEVEL,
)


def _nested_document() -> SchemaDocument:
    return SchemaDocument(
        name="Tenant",
        description="Tenant settings",
        fields=[
            SchemaField.create("title", "string", required=True),
            SchemaField.create("api", "object", children=[
                SchemaField.create("baseUrl", "string", level=1),
                SchemaField.create("retry", "object", level=1, children=[
                    SchemaField.create("attempts", "number", level=2),
                ]),
            ]),
            SchemaField.create("roles", "array", options=["admin", "viewer"]),
        ],
    )


class TestFieldType:
    """Test class for the FieldType enum."""

    def test_values_are_external_keywords(self):
        assert [t.value for t in FieldType] == ["string", "number", "boolean", "array", "object"]

    def test_is_structured(self):
        assert FieldType.ARRAY.is_structured
        assert FieldType.OBJECT.is_structured
        assert not FieldType.STRING.is_structured
        assert not FieldType.BOOLEAN.is_structured

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            FieldType("date")


class TestSchemaField:
    """Test class for SchemaField construction and invariants."""

    def test_defaults(self):
        field = SchemaField(name="host")

        assert field.type == FieldType.STRING
        assert field.required is False
        assert field.description is None
        assert field.level == 0
        assert field.options is None
        assert field.children is None

    def test_create_with_options(self):
        field = SchemaField.create("color", "array", options=["red", "blue"])

        assert field.options == ["red", "blue"]
        assert field.children is None
        assert isinstance(field.shape, EnumeratedValues)

    def test_create_with_children(self):
        field = SchemaField.create("db", FieldType.OBJECT, children=[
            SchemaField.create("host", level=1),
        ])

        assert field.options is None
        assert [child.name for child in field.children] == ["host"]
        assert isinstance(field.shape, NestedFields)

    def test_create_with_options_and_children_is_usage_error(self):
        with pytest.raises(FieldShapeError):
            SchemaField.create(
                "broken", "array",
                options=["a"],
                children=[SchemaField.create("x", level=1)],
            )

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            SchemaField(name="")

    def test_child_level_must_be_parent_plus_one(self):
        with pytest.raises(ValidationError):
            SchemaField.create("db", "object", children=[SchemaField.create("host", level=2)])

    def test_level_beyond_max_rejected(self):
        with pytest.raises(ValidationError):
            SchemaField(name="deep", level=MAX_LEVEL + 1)

    def test_field_at_max_level_cannot_have_children(self):
        with pytest.raises(ValidationError):
            SchemaField.create("deep", "object", level=MAX_LEVEL, children=[])

    def test_scalar_cannot_have_children(self):
        with pytest.raises(ValidationError):
            SchemaField.create("name", "string", children=[SchemaField.create("x", level=1)])

    def test_object_cannot_have_options(self):
        with pytest.raises(ValidationError):
            SchemaField.create("db", "object", options=["a"])

    def test_scalar_enumeration_allowed(self):
        field = SchemaField.create("env", "string", options=["dev", "prod"])

        assert field.options == ["dev", "prod"]

    def test_duplicate_child_names_rejected(self):
        with pytest.raises(ValidationError):
            SchemaField.create("db", "object", children=[
                SchemaField.create("host", level=1),
                SchemaField.create("host", level=1),
            ])

    def test_structural_equality(self):
        first = SchemaField.create("tags", "array", options=["a", "b"])
        second = SchemaField.create("tags", "array", options=["a", "b"])
        third = SchemaField.create("tags", "array", options=["b", "a"])

        assert first == second
        assert first != third


class TestSchemaDocument:
    """Test class for SchemaDocument."""

    def test_top_level_fields_must_be_level_zero(self):
        with pytest.raises(ValidationError):
            SchemaDocument(name="x", fields=[SchemaField(name="a", level=1)])

    def test_duplicate_top_level_names_rejected(self):
        with pytest.raises(ValidationError):
            SchemaDocument(name="x", fields=[SchemaField(name="a"), SchemaField(name="a")])

    def test_get_field_resolves_paths(self):
        doc = _nested_document()

        assert doc.get_field((0,)).name == "title"
        assert doc.get_field((1, 1)).name == "retry"
        assert doc.get_field([1, 1, 0]).name == "attempts"

    @pytest.mark.parametrize("path", [(), (9,), (0, 0), (1, 5), (2, 0), (-1,)])
    def test_get_field_invalid_path(self, path):
        doc = _nested_document()

        with pytest.raises(FieldPathError):
            doc.get_field(path)

    def test_walk_is_depth_first(self):
        doc = _nested_document()

        walked = [(path, field.name) for path, field in doc.walk()]

        assert walked == [
            ((0,), "title"),
            ((1,), "api"),
            ((1, 0), "baseUrl"),
            ((1, 1), "retry"),
            ((1, 1, 0), "attempts"),
            ((2,), "roles"),
        ]
        assert doc.field_count() == 6

    def test_deep_copy_is_independent(self):
        doc = _nested_document()
        copy = doc.model_copy(deep=True)

        copy.fields[1].children[0].name = "changed"

        assert doc.get_field((1, 0)).name == "baseUrl"
        assert copy != doc
