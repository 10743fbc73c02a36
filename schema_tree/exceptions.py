"""
Custom exception classes for the schema tree engine.

This module provides specialized exception classes for the different ways
importing, generating and editing a schema tree can fail, with a shared
base class carrying context and recovery suggestions.
"""

import logging
from typing import Optional, Dict, Any, List, Sequence

logger = logging.getLogger(__name__)


class SchemaTreeError(Exception):
    """
    Base exception for schema tree errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class ParseError(SchemaTreeError):
    """
    Exception raised when an external schema document cannot be imported.

    This covers undecodable JSON/YAML text and values that are not
    JSON-compatible at all.
    """

    def __init__(self, message: str, source: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        self.source = source
        self.original_error = original_error

        context = {'source': source}
        if original_error is not None:
            context['original_error_type'] = type(original_error).__name__
            context['original_error_message'] = str(original_error)

        recovery_suggestions = [
            "Check that the schema document is valid JSON or YAML",
            "Verify the root of the document is an object with 'properties'",
            "Start from a blank schema if the file cannot be repaired"
        ]

        super().__init__(message, context, recovery_suggestions)


class GenerationError(SchemaTreeError):
    """
    Exception raised when a schema cannot be generated from a sample value.

    Raised for unparseable sample text and for samples whose top level is
    not an object. No partial document is produced.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error

        context = {}
        if original_error is not None:
            context['original_error_type'] = type(original_error).__name__
            context['original_error_message'] = str(original_error)

        recovery_suggestions = [
            "Check the sample configuration for JSON syntax errors",
            "Make sure the sample is an object at the top level"
        ]

        super().__init__(message, context, recovery_suggestions)


class DepthLimitError(SchemaTreeError):
    """
    Exception raised when an edit would create a field deeper than allowed.

    The document is left unchanged; the caller may retry on another path.
    """

    def __init__(self, path: Sequence[int], parent_level: int, max_level: int,
                 message: Optional[str] = None):
        self.path = tuple(path)
        self.parent_level = parent_level
        self.max_level = max_level

        if message is None:
            message = (f"Cannot add a child to field at {list(self.path)}: "
                       f"level {parent_level} is the deepest allowed level ({max_level})")

        context = {
            'path': list(self.path),
            'parent_level': parent_level,
            'max_level': max_level
        }

        recovery_suggestions = [
            "Add the field to a shallower parent instead",
            "Flatten the nested structure into sibling fields"
        ]

        super().__init__(message, context, recovery_suggestions)


class FieldPathError(SchemaTreeError, LookupError):
    """Exception raised when a path does not address an existing field."""

    def __init__(self, path: Sequence[int], message: Optional[str] = None):
        self.path = tuple(path)
        if message is None:
            message = f"No field at path {list(self.path)}"
        super().__init__(message, {'path': list(self.path)})


class FieldShapeError(SchemaTreeError, ValueError):
    """
    Exception raised when options or children don't fit a field.

    For example: a field given both options and children, options on an
    object field, or a child added to a scalar field.
    """

    def __init__(self, message: str, field_name: Optional[str] = None):
        self.field_name = field_name
        super().__init__(message, {'field_name': field_name})


class FieldPatchError(SchemaTreeError, ValueError):
    """Exception raised when a property patch is not applicable to a field."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 patch_keys: Optional[List[str]] = None):
        self.field_name = field_name
        self.patch_keys = patch_keys or []
        super().__init__(message, {'field_name': field_name, 'patch_keys': self.patch_keys})


def log_error_with_context(error: SchemaTreeError, operation: str) -> None:
    """
    Log error with full context information.

    Args:
        error: SchemaTreeError instance
        operation: Description of the operation that failed
    """
    logger.error(f"Schema tree error during {operation}")
    logger.error(f"Error type: {type(error).__name__}")
    logger.error(f"Error message: {error.message}")

    if error.context:
        logger.error("Error context:")
        for key, value in error.context.items():
            logger.error(f"  {key}: {value}")

    if error.recovery_suggestions:
        logger.info("Recovery suggestions:")
        for i, suggestion in enumerate(error.recovery_suggestions, 1):
            logger.info(f"  {i}. {suggestion}")
