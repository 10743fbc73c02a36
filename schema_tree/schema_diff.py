"""
Structural diff utilities for schema documents.
Compares the exported forms of two documents using DeepDiff, ignoring
field order, and summarizes which fields changed.
"""

from typing import Dict, Any, List
from deepdiff import DeepDiff
import re
import logging

from .exporter import export_schema
from .models import SchemaDocument

logger = logging.getLogger(__name__)

# Metadata is identical for both sides so only the structure is compared
_DIFF_SCHEMA_URI = "urn:schema-tree:diff"
_DIFF_SCHEMA_ID = "urn:schema-tree:diff"

_PATH_TOKEN = re.compile(r"\['((?:[^'\\]|\\.)*)'\]|\[(\d+)\]")


def _parse_path_tokens(path: str) -> List[Any]:
    """Split a DeepDiff path like root['a'][0] into ['a', 0]."""
    tokens: List[Any] = []
    for key, index in _PATH_TOKEN.findall(str(path)):
        tokens.append(int(index) if index else key)
    return tokens


def field_path_from_diff_path(path: str) -> str:
    """
    Turn a DeepDiff path into a dotted field path.

    root['properties']['db']['properties']['host']['type'] -> "db.host:type"
    """
    tokens = _parse_path_tokens(path)
    names: List[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == 'properties' and i + 1 < len(tokens):
            names.append(str(tokens[i + 1]))
            i += 2
        elif token == 'items' and i + 1 < len(tokens) and tokens[i + 1] == 'properties':
            i += 1
        else:
            break

    rest = ".".join(str(token) for token in tokens[i:])
    field_path = ".".join(names) or "<root>"
    return f"{field_path}:{rest}" if rest else field_path


def diff_documents(original: SchemaDocument, modified: SchemaDocument) -> Dict[str, Any]:
    """
    Calculate structural differences between two documents.

    Args:
        original: Document before changes
        modified: Document after changes

    Returns:
        Dict keyed by DeepDiff change type; path collections become sorted lists
    """
    t1 = export_schema(original, schema_uri=_DIFF_SCHEMA_URI, schema_id=_DIFF_SCHEMA_ID)
    t2 = export_schema(modified, schema_uri=_DIFF_SCHEMA_URI, schema_id=_DIFF_SCHEMA_ID)

    diff = DeepDiff(t1, t2, ignore_order=True)

    processed: Dict[str, Any] = {}
    for change_type, changes in diff.items():
        if isinstance(changes, dict):
            processed[change_type] = dict(changes)
        else:
            processed[change_type] = sorted(str(path) for path in changes)
    return processed


def has_changes(diff: Dict[str, Any]) -> bool:
    """Check if there are any changes in the diff."""
    return any(bool(changes) for changes in diff.values())


def documents_equivalent(first: SchemaDocument, second: SchemaDocument) -> bool:
    """True when both documents export to the same structure, ignoring order."""
    return not has_changes(diff_documents(first, second))


def get_change_summary(diff: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get a summary of changes by type.

    Args:
        diff: Diff dictionary from diff_documents

    Returns:
        Dictionary with change counts and the affected field paths
    """
    summary: Dict[str, Any] = {
        'modified': 0,
        'added': 0,
        'removed': 0,
        'type_changed': 0,
        'total': 0,
        'fields': []
    }

    counters = {
        'values_changed': 'modified',
        'dictionary_item_added': 'added',
        'iterable_item_added': 'added',
        'dictionary_item_removed': 'removed',
        'iterable_item_removed': 'removed',
        'type_changes': 'type_changed',
    }

    affected = set()
    for change_type, changes in diff.items():
        counter = counters.get(change_type)
        if counter is None:
            logger.debug(f"Unsummarized change type: {change_type}")
            continue
        summary[counter] += len(changes)
        for path in changes:
            affected.add(field_path_from_diff_path(path).split(":", 1)[0])

    summary['total'] = sum(summary[key] for key in ('modified', 'added', 'removed', 'type_changed'))
    summary['fields'] = sorted(affected)
    return summary
