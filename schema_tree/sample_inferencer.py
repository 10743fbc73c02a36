"""
Sample inferencer for the schema tree engine.

Derives a field tree from a sample configuration value. Each key of the
sample object becomes a required field whose type is taken from the value:
lists of strings become enumerated arrays, nested objects become object
fields with inferred children, and scalars map to boolean, number or string.

Nesting is capped at the same depth the importer and the tree editor allow,
so a generated document can always be edited and reloaded unchanged.
"""

import json
from typing import Dict, Any, List, Optional, Union
import logging

from .config_loader import get_config_value
from .exceptions import GenerationError
from .models import SchemaDocument, SchemaField, FieldType, MAX_LEVEL

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION_TEMPLATE = "Generated from sample: {path}"
GENERATED_NAME = "Generated Schema"
GENERATED_DESCRIPTION = "Schema generated from a sample configuration"


def _describe(path: str) -> str:
    template = get_config_value('inference', 'description_template', DEFAULT_DESCRIPTION_TEMPLATE)
    return template.format(path=path)


def infer_field_type(value: Any) -> FieldType:
    """Infer the field type of a single sample value."""
    if isinstance(value, list):
        return FieldType.ARRAY
    if isinstance(value, dict):
        return FieldType.OBJECT
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldType.NUMBER
    return FieldType.STRING


def _infer_field(key: str, value: Any, path: str, level: int) -> SchemaField:
    field_type = infer_field_type(value)
    options = None
    children = None

    if field_type == FieldType.ARRAY:
        if value and all(isinstance(item, str) for item in value):
            options = list(dict.fromkeys(value))
    elif field_type == FieldType.OBJECT:
        if level < MAX_LEVEL:
            children = _infer_from_object(value, path, level + 1)
        elif value:
            logger.debug(f"Not inferring children of '{path}': level {level} is the deepest allowed")

    return SchemaField.create(
        name=key,
        type=field_type,
        required=True,
        description=_describe(path),
        level=level,
        options=options,
        children=children,
    )


def _infer_from_object(sample: Dict[str, Any], prefix: str, level: int) -> List[SchemaField]:
    fields = []
    seen = set()
    for key, value in sample.items():
        key = str(key)
        if not key:
            logger.warning(f"Skipping empty key in sample at '{prefix or '<root>'}'")
            continue
        path = f"{prefix}.{key}" if prefix else key
        if key in seen:
            raise GenerationError(f"Sample has more than one key named '{path}'")
        seen.add(key)
        fields.append(_infer_field(key, value, path, level))
    return fields


def infer_fields(sample: Dict[str, Any]) -> List[SchemaField]:
    """
    Infer top-level fields from a sample object.

    Args:
        sample: Parsed sample configuration (must be an object)

    Returns:
        List of level-0 fields, one per key of the sample

    Raises:
        GenerationError: If the sample is not an object
    """
    if not isinstance(sample, dict):
        raise GenerationError(
            f"Sample configuration must be an object at the top level, got {type(sample).__name__}"
        )
    return _infer_from_object(sample, "", 0)


def parse_sample_text(text: Union[str, bytes, bytearray]) -> Any:
    """
    Parse sample configuration text.

    Raises:
        GenerationError: If the text is not valid JSON
    """
    try:
        if isinstance(text, (bytes, bytearray)):
            text = text.decode('utf-8')
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise GenerationError(
            "Invalid JSON format. Please check your sample configuration.", original_error=e
        )


def generate_document(sample: Union[Dict[str, Any], str, bytes, bytearray],
                      name: Optional[str] = None,
                      description: Optional[str] = None) -> SchemaDocument:
    """
    Generate a complete SchemaDocument from a sample value or its JSON text.

    Args:
        sample: Sample object, or JSON text of one
        name: Document name (defaults to a generated placeholder)
        description: Document description (defaults to a generated placeholder)

    Returns:
        New SchemaDocument

    Raises:
        GenerationError: If the sample does not parse or is not an object
    """
    if isinstance(sample, (str, bytes, bytearray)):
        sample = parse_sample_text(sample)

    fields = infer_fields(sample)
    document = SchemaDocument(
        name=name if name is not None else GENERATED_NAME,
        description=description if description is not None else GENERATED_DESCRIPTION,
        fields=fields,
    )

    logger.info(f"Generated schema with {len(fields)} top-level fields from sample")
    return document
