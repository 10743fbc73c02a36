"""
JSON Schema importer for the schema tree engine.
Converts an external JSON-Schema shaped document into a SchemaDocument,
keeping at most three levels of nested fields.
"""

import json
from typing import Dict, Any, Optional, List, Union
import logging

from .exceptions import ParseError
from .models import SchemaDocument, SchemaField, FieldType, MAX_LEVEL

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Loaded Schema"
DEFAULT_DESCRIPTION = "Schema loaded from file"

# External type keyword -> internal field type; anything else imports as string
EXTERNAL_TYPE_MAP = {
    'integer': FieldType.NUMBER,
    'number': FieldType.NUMBER,
    'boolean': FieldType.BOOLEAN,
    'array': FieldType.ARRAY,
    'object': FieldType.OBJECT,
}

_JSON_SCALARS = (str, int, float, bool, type(None))


def parse_schema_text(text: Union[str, bytes, bytearray], source: Optional[str] = None) -> Any:
    """
    Parse JSON schema text into a plain value.

    Raises:
        ParseError: If the text is not valid UTF-8 JSON
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(f"Schema text is not valid UTF-8: {e}", source=source, original_error=e)

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in schema document: {e}", source=source, original_error=e)


def ensure_json_compatible(value: Any, location: str = "$") -> None:
    """
    Check that a value only contains JSON-compatible types.

    Raises:
        ParseError: On the first value that JSON cannot represent
    """
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ParseError(f"Non-string key {key!r} at {location}")
            ensure_json_compatible(item, f"{location}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            ensure_json_compatible(item, f"{location}[{index}]")
    elif not isinstance(value, _JSON_SCALARS):
        raise ParseError(f"Value of type {type(value).__name__} at {location} is not JSON-compatible")


def map_external_type(descriptor: Dict[str, Any]) -> FieldType:
    """Map a property descriptor's 'type' keyword to a FieldType."""
    external_type = descriptor.get('type')
    if isinstance(external_type, str):
        return EXTERNAL_TYPE_MAP.get(external_type, FieldType.STRING)
    return FieldType.STRING


def _option_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def extract_options(descriptor: Dict[str, Any]) -> Optional[List[str]]:
    """
    Get enumerated options from a descriptor's own 'enum' or from 'items.enum'.

    Returns:
        Deduplicated list of option strings, or None if neither is present
    """
    enum_values = descriptor.get('enum')
    if not isinstance(enum_values, list):
        items = descriptor.get('items')
        enum_values = items.get('enum') if isinstance(items, dict) else None
    if not isinstance(enum_values, list):
        return None
    return list(dict.fromkeys(_option_text(value) for value in enum_values))


def _nested_container(descriptor: Dict[str, Any], field_type: FieldType) -> Optional[Dict[str, Any]]:
    """Return the descriptor holding nested 'properties'/'required', if any."""
    if field_type == FieldType.OBJECT and isinstance(descriptor.get('properties'), dict):
        return descriptor
    if field_type == FieldType.ARRAY:
        items = descriptor.get('items')
        if isinstance(items, dict) and items.get('type') == 'object' and isinstance(items.get('properties'), dict):
            return items
    return None


def _required_names(container: Dict[str, Any]) -> set:
    required = container.get('required')
    if not isinstance(required, list):
        return set()
    return {name for name in required if isinstance(name, str)}


def _import_properties(container: Dict[str, Any], level: int) -> List[SchemaField]:
    properties = container.get('properties')
    if not isinstance(properties, dict):
        if properties is not None:
            logger.warning(f"Ignoring non-object 'properties' at level {level}")
        return []

    required = _required_names(container)
    fields = []
    for name, descriptor in properties.items():
        if not name:
            logger.warning(f"Skipping property with empty name at level {level}")
            continue
        if not isinstance(descriptor, dict):
            logger.warning(f"Skipping property '{name}': descriptor is not an object")
            continue
        fields.append(_import_field(name, descriptor, name in required, level))
    return fields


def _import_field(name: str, descriptor: Dict[str, Any], required: bool, level: int) -> SchemaField:
    field_type = map_external_type(descriptor)
    description = descriptor.get('description')
    if not isinstance(description, str):
        description = None

    options = extract_options(descriptor)
    children = None
    container = _nested_container(descriptor, field_type)
    if container is not None:
        if level >= MAX_LEVEL:
            logger.debug(f"Dropping nested properties of '{name}': level {level} is the deepest allowed")
        else:
            children = _import_properties(container, level + 1)

    if children is not None and options is not None:
        logger.warning(f"Property '{name}' has both enum values and nested properties, keeping properties")
        options = None
    if field_type == FieldType.OBJECT and options is not None:
        logger.warning(f"Ignoring enum values on object property '{name}'")
        options = None

    return SchemaField.create(
        name=name,
        type=field_type,
        required=required,
        description=description,
        level=level,
        options=options,
        children=children,
    )


def import_schema(doc: Union[Dict[str, Any], str, bytes, bytearray], source: Optional[str] = None) -> SchemaDocument:
    """
    Import an external JSON-Schema shaped document into a SchemaDocument.

    Args:
        doc: Parsed schema mapping, or its JSON text
        source: Optional label (e.g. file path) used in error context

    Returns:
        SchemaDocument; malformed but JSON-compatible input gives an empty field list

    Raises:
        ParseError: If the text does not parse or the value is not JSON-compatible
    """
    if isinstance(doc, (str, bytes, bytearray)):
        doc = parse_schema_text(doc, source=source)

    ensure_json_compatible(doc)

    if not isinstance(doc, dict):
        logger.warning(f"Schema root is {type(doc).__name__}, not an object; starting from a blank schema")
        return SchemaDocument(name=DEFAULT_TITLE, description=DEFAULT_DESCRIPTION)

    title = doc.get('title')
    description = doc.get('description')
    document = SchemaDocument(
        name=title if isinstance(title, str) else DEFAULT_TITLE,
        description=description if isinstance(description, str) else DEFAULT_DESCRIPTION,
        fields=_import_properties(doc, level=0),
    )

    logger.info(f"Imported schema '{document.name}' with {len(document.fields)} top-level fields")
    return document
