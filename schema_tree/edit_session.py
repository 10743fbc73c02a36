"""
Editing session for a single schema document.
Tracks the current document, undo/redo history and whether there are
changes since the last save.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import logging

from .config_loader import get_config_value
from .models import SchemaDocument, FieldType
from .schema_diff import diff_documents, get_change_summary
from .schema_store import read_schema_file, read_sample_file, write_schema_file
from . import tree_editor

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

EditOperation = Callable[..., SchemaDocument]


class EditSession:
    """Single-writer editing session over one SchemaDocument."""

    def __init__(self, document: Optional[SchemaDocument] = None, history_limit: Optional[int] = None):
        if document is None:
            document = SchemaDocument()
        if history_limit is None:
            history_limit = get_config_value('editor', 'history_limit', DEFAULT_HISTORY_LIMIT)

        self.history_limit = max(0, int(history_limit))
        self._document = document
        self._saved = document
        self._undo: List[SchemaDocument] = []
        self._redo: List[SchemaDocument] = []
        self.last_saved_at: Optional[str] = None

    @classmethod
    def from_schema_file(cls, path: Union[str, Path], **kwargs) -> "EditSession":
        """Start a session from an external schema file."""
        return cls(read_schema_file(path), **kwargs)

    @classmethod
    def from_sample_file(cls, path: Union[str, Path], **kwargs) -> "EditSession":
        """Start a session from a schema generated from a sample file."""
        return cls(read_sample_file(path), **kwargs)

    @property
    def document(self) -> SchemaDocument:
        return self._document

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def is_dirty(self) -> bool:
        # Model equality is order-sensitive, so a reorder counts as a change
        return self._saved != self._document

    def pending_changes(self) -> Dict[str, Any]:
        """Summary of structural changes since the last save."""
        return get_change_summary(diff_documents(self._saved, self._document))

    def _push(self, updated: SchemaDocument) -> SchemaDocument:
        self._undo.append(self._document)
        if len(self._undo) > self.history_limit:
            del self._undo[:len(self._undo) - self.history_limit]
        self._redo.clear()
        self._document = updated
        return updated

    def apply(self, operation: EditOperation, *args, **kwargs) -> SchemaDocument:
        """
        Run an edit operation against the current document.

        Errors raised by the operation propagate and leave the session as it was.
        """
        updated = operation(self._document, *args, **kwargs)
        return self._push(updated)

    def replace_document(self, document: SchemaDocument) -> SchemaDocument:
        """Replace the whole document (e.g. with one generated from a sample)."""
        return self._push(document)

    def add_field(self) -> SchemaDocument:
        return self.apply(tree_editor.add_field)

    def add_child(self, path: Sequence[int]) -> SchemaDocument:
        return self.apply(tree_editor.add_child, path)

    def remove_field(self, path: Sequence[int]) -> SchemaDocument:
        return self.apply(tree_editor.remove_field, path)

    def set_field_type(self, path: Sequence[int], new_type: Union[FieldType, str]) -> SchemaDocument:
        return self.apply(tree_editor.set_field_type, path, new_type)

    def set_field_property(self, path: Sequence[int], **patch: Any) -> SchemaDocument:
        return self.apply(tree_editor.set_field_property, path, patch)

    def move_field(self, path: Sequence[int], offset: int) -> SchemaDocument:
        return self.apply(tree_editor.move_field, path, offset)

    def duplicate_field(self, path: Sequence[int]) -> SchemaDocument:
        return self.apply(tree_editor.duplicate_field, path)

    def undo(self) -> bool:
        """Step back one edit. Returns False when there is nothing to undo."""
        if not self._undo:
            return False
        self._redo.append(self._document)
        self._document = self._undo.pop()
        return True

    def redo(self) -> bool:
        """Re-apply the last undone edit. Returns False when there is nothing to redo."""
        if not self._redo:
            return False
        self._undo.append(self._document)
        self._document = self._redo.pop()
        return True

    def mark_saved(self) -> None:
        self._saved = self._document
        self.last_saved_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        logger.debug(f"Session marked clean at {self.last_saved_at}")

    def save(self, path: Union[str, Path], **kwargs) -> Tuple[bool, Optional[str]]:
        """Write the current document to path and mark the session clean on success."""
        success, error = write_schema_file(path, self._document, **kwargs)
        if success:
            self.mark_saved()
        return success, error
