"""
Structural validation for schema documents.
Reports problems a document should be free of before it is saved.
"""

from typing import Any, List, Tuple
import logging

from .models import SchemaDocument, SchemaField, FieldType, MAX_LEVEL

logger = logging.getLogger(__name__)

MAX_FIELD_NAME_LENGTH = 100


def _validate_single_field_name(field_name: Any) -> List[str]:
    """Validate a single field name and return its validation errors."""
    if not field_name or not isinstance(field_name, str):
        return ["Field names must be non-empty strings"]
    if len(field_name.strip()) == 0:
        return ["Field names cannot be empty or only whitespace"]
    if len(field_name) > MAX_FIELD_NAME_LENGTH:
        return [f"Field name '{field_name}' is too long (max {MAX_FIELD_NAME_LENGTH} characters)"]
    return []


def validate_field_names(fields: List[SchemaField], location: str = "document") -> List[str]:
    """
    Validate name format and uniqueness within one group of sibling fields.

    Args:
        fields: Sibling fields
        location: Description of where the siblings live, for messages

    Returns:
        List of validation errors
    """
    errors = []

    for field in fields:
        errors.extend(_validate_single_field_name(field.name))

    lower_names = [field.name.lower() for field in fields if isinstance(field.name, str)]
    if len(lower_names) != len(set(lower_names)):
        errors.append(f"Field names in {location} must be unique (case-insensitive)")

    return errors


def _validate_field(field: SchemaField, expected_level: int, path: Tuple[int, ...]) -> List[str]:
    errors = []
    label = f"'{field.name}' at {list(path)}"

    if field.level != expected_level:
        errors.append(f"Field {label} has level {field.level}, expected {expected_level}")
    if field.level > MAX_LEVEL:
        errors.append(f"Field {label} is nested deeper than level {MAX_LEVEL}")

    if field.options is not None and field.type == FieldType.OBJECT:
        errors.append(f"Object field {label} cannot have options")
    if field.options is not None and len(field.options) == 0:
        logger.warning(f"Field {label} has an empty options list")

    children = field.children
    if children is not None:
        if not field.type.is_structured:
            errors.append(f"Field {label} of type {field.type.value} cannot have children")
        errors.extend(validate_field_names(children, f"field {label}"))
        for index, child in enumerate(children):
            errors.extend(_validate_field(child, expected_level + 1, path + (index,)))

    return errors


def validate_document(doc: SchemaDocument) -> List[str]:
    """
    Validate the structure of a schema document.

    Args:
        doc: Document to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not doc.name or not doc.name.strip():
        errors.append("Schema name is required")

    errors.extend(validate_field_names(doc.fields))
    for index, field in enumerate(doc.fields):
        errors.extend(_validate_field(field, 0, (index,)))

    if errors:
        logger.debug(f"Schema '{doc.name}' has {len(errors)} validation errors")
    return errors
