"""
JSON Schema exporter for the schema tree engine.
Serializes a SchemaDocument back into the external JSON-Schema shaped format.
"""

import json
from typing import Dict, Any, List, Optional, Tuple
import logging

from .config_loader import get_config_value
from .models import SchemaDocument, SchemaField, FieldType

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_URI = "http://json-schema.org/draft-07/schema#"
DEFAULT_SCHEMA_ID = "https://example.com/schemas/config.schema.json"


def external_type(field_type: FieldType) -> str:
    """Map a FieldType to its external type keyword."""
    if field_type == FieldType.NUMBER:
        return 'integer'
    return field_type.value


def _export_fields(fields: List[SchemaField]) -> Tuple[Dict[str, Any], List[str]]:
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for field in fields:
        properties[field.name] = export_field(field)
        if field.required:
            required.append(field.name)
    return properties, required


def export_field(field: SchemaField) -> Dict[str, Any]:
    """
    Build the property descriptor for a single field and its subtree.

    Args:
        field: Field to export

    Returns:
        Property descriptor dictionary
    """
    descriptor: Dict[str, Any] = {'type': external_type(field.type)}
    if field.description is not None:
        descriptor['description'] = field.description

    options = field.options
    children = field.children

    if field.type == FieldType.ARRAY:
        if options is not None:
            descriptor['items'] = {'type': 'string', 'enum': list(options)}
            descriptor['uniqueItems'] = True
        elif children is not None:
            properties, required = _export_fields(children)
            descriptor['items'] = {'type': 'object', 'properties': properties, 'required': required}
    elif field.type == FieldType.OBJECT:
        if children is not None:
            descriptor['properties'], descriptor['required'] = _export_fields(children)
    elif options is not None:
        descriptor['enum'] = list(options)

    return descriptor


def export_schema(doc: SchemaDocument, schema_uri: Optional[str] = None,
                  schema_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Export a SchemaDocument to the external schema format.

    Args:
        doc: Document to export (not modified)
        schema_uri: Value for '$schema' (defaults to config export.schema_uri)
        schema_id: Value for '$id' (defaults to config export.schema_id)

    Returns:
        External schema dictionary
    """
    if schema_uri is None:
        schema_uri = get_config_value('export', 'schema_uri', DEFAULT_SCHEMA_URI)
    if schema_id is None:
        schema_id = get_config_value('export', 'schema_id', DEFAULT_SCHEMA_ID)

    properties, required = _export_fields(doc.fields)
    external = {
        "$schema": schema_uri,
        "$id": schema_id,
        "title": doc.name,
        "description": doc.description,
        "type": "object",
        "required": required,
        "properties": properties,
        "additionalProperties": False
    }

    logger.debug(f"Exported schema '{doc.name}' with {len(properties)} top-level properties")
    return external


def export_schema_text(doc: SchemaDocument, indent: Optional[int] = None) -> str:
    """Export a SchemaDocument as JSON text."""
    if indent is None:
        indent = get_config_value('export', 'indent', 2)
    return json.dumps(export_schema(doc), indent=indent, ensure_ascii=False)
