"""
Tree editor for the schema tree engine.

Structural edit operations over a SchemaDocument. Fields are addressed by a
path of sibling indices from the document root, e.g. ``(2, 0)`` is the first
child of the third top-level field. Every operation works on a deep copy and
returns the updated document; the document passed in is never modified, so a
rejected edit leaves the caller's document exactly as it was.
"""

from typing import Dict, Any, List, Sequence, Tuple, Union
import logging

from .config_loader import get_config_value
from .exceptions import DepthLimitError, FieldPathError, FieldShapeError, FieldPatchError
from .schema_validator import MAX_FIELD_NAME_LENGTH
from .models import (
    SchemaDocument, SchemaField, FieldType, EnumeratedValues, NestedFields, MAX_LEVEL
)

logger = logging.getLogger(__name__)

PATCHABLE_PROPERTIES = {'name', 'required', 'description', 'options'}


def _copy(doc: SchemaDocument) -> SchemaDocument:
    return doc.model_copy(deep=True)


def _revalidate(doc: SchemaDocument) -> SchemaDocument:
    # Edits mutate plain attributes; rebuild so the tree invariants are checked again
    return SchemaDocument.model_validate(doc.model_dump())


def _normalize_path(path: Sequence[int]) -> Tuple[int, ...]:
    path = tuple(path)
    if not path:
        raise FieldPathError(path, "Path must contain at least one index")
    return path


def _locate(doc: SchemaDocument, path: Sequence[int]) -> Tuple[List[SchemaField], int]:
    """Return the sibling list holding the field at path, and its index there."""
    path = _normalize_path(path)
    doc.get_field(path)
    if len(path) == 1:
        return doc.fields, path[0]
    parent = doc.get_field(path[:-1])
    return parent.children, path[-1]


def _unique_name(base: str, siblings: List[SchemaField], counter: int = 0) -> str:
    taken = {field.name for field in siblings}
    if counter:
        candidate = f"{base}{counter}"
        while candidate in taken:
            counter += 1
            candidate = f"{base}{counter}"
        return candidate

    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate


def _placeholder_name(siblings: List[SchemaField]) -> str:
    prefix = get_config_value('editor', 'field_name_prefix', 'field_')
    return _unique_name(prefix, siblings, counter=len(siblings) + 1)


def add_field(doc: SchemaDocument) -> SchemaDocument:
    """Append a new optional string field at the top level."""
    new_doc = _copy(doc)
    name = _placeholder_name(new_doc.fields)
    new_doc.fields.append(SchemaField(name=name, type=FieldType.STRING, required=False, level=0))
    logger.debug(f"Added field '{name}'")
    return _revalidate(new_doc)


def add_child(doc: SchemaDocument, path: Sequence[int]) -> SchemaDocument:
    """
    Append a new child field to the object (or array-of-object) field at path.

    Raises:
        DepthLimitError: If the parent is already at the deepest level
        FieldShapeError: If the parent is a scalar or an enumerated array
        FieldPathError: If path does not address a field
    """
    path = _normalize_path(path)
    new_doc = _copy(doc)
    parent = new_doc.get_field(path)

    if parent.level >= MAX_LEVEL:
        logger.info(f"Rejected child for '{parent.name}' at {list(path)}: depth limit reached")
        raise DepthLimitError(path, parent.level, MAX_LEVEL)
    if not parent.type.is_structured:
        raise FieldShapeError(
            f"Cannot add a child to '{parent.name}': {parent.type.value} fields have no children",
            field_name=parent.name
        )
    if isinstance(parent.shape, EnumeratedValues):
        if parent.shape.options:
            raise FieldShapeError(
                f"Cannot add a child to '{parent.name}': it holds enumerated options",
                field_name=parent.name
            )
        parent.shape = None

    if parent.shape is None:
        parent.shape = NestedFields()

    siblings = parent.shape.fields
    name = _placeholder_name(siblings)
    siblings.append(SchemaField(name=name, type=FieldType.STRING, required=False, level=parent.level + 1))
    logger.debug(f"Added child '{name}' to '{parent.name}'")
    return _revalidate(new_doc)


def remove_field(doc: SchemaDocument, path: Sequence[int]) -> SchemaDocument:
    """Remove the field at path together with its subtree."""
    new_doc = _copy(doc)
    siblings, index = _locate(new_doc, path)
    removed = siblings.pop(index)
    logger.debug(f"Removed field '{removed.name}'")
    return _revalidate(new_doc)


def set_field_type(doc: SchemaDocument, path: Sequence[int],
                   new_type: Union[FieldType, str]) -> SchemaDocument:
    """
    Change a field's type.

    Switching between object and array keeps existing children; options
    are kept only while the field stays an array; any other change clears
    both.
    """
    new_type = FieldType(new_type)
    new_doc = _copy(doc)
    field = new_doc.get_field(_normalize_path(path))
    old_type = field.type

    if old_type == new_type:
        return new_doc

    keeps_children = (
        old_type.is_structured and new_type.is_structured and isinstance(field.shape, NestedFields)
    )
    if not keeps_children:
        field.shape = None
    field.type = new_type

    logger.debug(f"Changed type of '{field.name}' from {old_type.value} to {new_type.value}")
    return _revalidate(new_doc)


def _check_patch(field: SchemaField, siblings: List[SchemaField], patch: Dict[str, Any]) -> None:
    unknown = sorted(set(patch) - PATCHABLE_PROPERTIES)
    if unknown:
        raise FieldPatchError(
            f"Cannot patch {unknown} on '{field.name}'; allowed: {sorted(PATCHABLE_PROPERTIES)}",
            field_name=field.name, patch_keys=list(patch)
        )

    if 'name' in patch:
        name = patch['name']
        if not isinstance(name, str) or not name.strip():
            raise FieldPatchError("Field names must be non-empty strings", field_name=field.name)
        if len(name) > MAX_FIELD_NAME_LENGTH:
            raise FieldPatchError(
                f"Field name is too long (max {MAX_FIELD_NAME_LENGTH} characters)", field_name=field.name
            )
        if any(other is not field and other.name == name for other in siblings):
            raise FieldPatchError(f"A sibling field named '{name}' already exists", field_name=field.name)

    if 'required' in patch and not isinstance(patch['required'], bool):
        raise FieldPatchError("'required' must be a boolean", field_name=field.name)

    if 'description' in patch and patch['description'] is not None and not isinstance(patch['description'], str):
        raise FieldPatchError("'description' must be a string or None", field_name=field.name)

    options = patch.get('options')
    if options is not None:
        if not isinstance(options, (list, tuple)) or not all(isinstance(option, str) for option in options):
            raise FieldPatchError("'options' must be a list of strings", field_name=field.name)
        if field.type == FieldType.OBJECT or isinstance(field.shape, NestedFields):
            raise FieldShapeError(
                f"Cannot set options on '{field.name}': it is an object or holds child fields",
                field_name=field.name
            )


def set_field_property(doc: SchemaDocument, path: Sequence[int], patch: Dict[str, Any]) -> SchemaDocument:
    """
    Update name, required, description or options of the field at path.

    Type and children are never touched. Passing ``options=None`` clears
    enumerated options.

    Raises:
        FieldPatchError: For unknown keys, invalid values or duplicate names
        FieldShapeError: For options on an object field or one with children
    """
    new_doc = _copy(doc)
    siblings, index = _locate(new_doc, path)
    field = siblings[index]
    _check_patch(field, siblings, patch)

    if 'name' in patch:
        field.name = patch['name']
    if 'required' in patch:
        field.required = patch['required']
    if 'description' in patch:
        field.description = patch['description']
    if 'options' in patch:
        options = patch['options']
        if options is None:
            if isinstance(field.shape, EnumeratedValues):
                field.shape = None
        else:
            field.shape = EnumeratedValues(options=list(dict.fromkeys(options)))

    logger.debug(f"Updated {sorted(patch)} on '{field.name}'")
    return _revalidate(new_doc)


def move_field(doc: SchemaDocument, path: Sequence[int], offset: int) -> SchemaDocument:
    """Move a field among its siblings by offset, clamped to the list bounds."""
    new_doc = _copy(doc)
    siblings, index = _locate(new_doc, path)
    target = max(0, min(len(siblings) - 1, index + offset))
    if target != index:
        siblings.insert(target, siblings.pop(index))
    return _revalidate(new_doc)


def duplicate_field(doc: SchemaDocument, path: Sequence[int]) -> SchemaDocument:
    """Insert a deep copy of the field at path right after the original."""
    new_doc = _copy(doc)
    siblings, index = _locate(new_doc, path)
    original = siblings[index]

    duplicate = original.model_copy(deep=True)
    duplicate.name = _unique_name(f"{original.name}_copy", siblings)
    siblings.insert(index + 1, duplicate)

    logger.debug(f"Duplicated field '{original.name}' as '{duplicate.name}'")
    return _revalidate(new_doc)
