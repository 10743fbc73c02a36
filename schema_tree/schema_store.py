"""
File persistence for schema documents.
Reads external schema files (JSON or YAML) into SchemaDocuments and writes
exported documents back atomically.
"""

import json
import yaml
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple, Union
import logging

from .exceptions import ParseError, GenerationError, log_error_with_context
from .exporter import export_schema
from .importer import import_schema
from .models import SchemaDocument
from .sample_inferencer import generate_document
from .schema_validator import validate_document

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {'.yaml', '.yml'}
SCHEMA_SUFFIXES = {'.json'} | YAML_SUFFIXES
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


def _read_text(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    file_size = path.stat().st_size
    if file_size > MAX_FILE_SIZE:
        raise ParseError(f"File too large: {path} ({file_size} bytes)", source=str(path))

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f"Encoding error reading {path}: {e}", source=str(path), original_error=e)


def _load_structured(path: Path, text: str) -> Any:
    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(f"YAML parsing error in {path}: {e}", source=str(path), original_error=e)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON parsing error in {path}: {e}", source=str(path), original_error=e)


def read_schema_file(path: Union[str, Path]) -> SchemaDocument:
    """
    Load an external schema file into a SchemaDocument.

    Args:
        path: Path to a .json, .yaml or .yml schema file

    Returns:
        Imported document (empty for empty files)

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If the file cannot be decoded or parsed
    """
    schema_path = Path(path)
    text = _read_text(schema_path)

    if not text.strip():
        logger.warning(f"Schema file is empty: {schema_path}")
        return import_schema({}, source=str(schema_path))

    try:
        data = _load_structured(schema_path, text)
        document = import_schema(data, source=str(schema_path))
    except ParseError as e:
        log_error_with_context(e, f"reading schema {schema_path}")
        raise

    logger.info(f"Successfully loaded schema: {schema_path}")
    return document


def read_sample_file(path: Union[str, Path], name: Optional[str] = None) -> SchemaDocument:
    """
    Generate a SchemaDocument from a sample configuration file.

    Raises:
        FileNotFoundError: If the file does not exist
        GenerationError: If the sample cannot be parsed or is not an object
    """
    sample_path = Path(path)
    try:
        text = _read_text(sample_path)
        sample = _load_structured(sample_path, text)
    except ParseError as e:
        raise GenerationError(f"Cannot read sample {sample_path}: {e.message}", original_error=e)

    return generate_document(sample, name=name)


def _serialize(path: Path, external: Dict[str, Any], indent: int) -> str:
    if path.suffix.lower() in YAML_SUFFIXES:
        return yaml.dump(
            external,
            default_flow_style=False,
            indent=indent,
            sort_keys=False,
            allow_unicode=True
        )
    return json.dumps(external, indent=indent, ensure_ascii=False) + "\n"


def write_schema_file(path: Union[str, Path], doc: SchemaDocument,
                      indent: int = 2, validate: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Export a SchemaDocument and save it to a file.

    The content is written to a temporary file first and moved into place;
    an existing file is kept as a .backup until the move succeeds.

    Args:
        path: Target path; .yaml/.yml writes YAML, anything else JSON
        doc: Document to save
        indent: Indentation for the serialized output
        validate: Refuse to save documents with structural errors

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    schema_path = Path(path)

    if validate:
        errors = validate_document(doc)
        if errors:
            error_msg = f"Schema has {len(errors)} validation errors: {'; '.join(errors)}"
            logger.error(f"Save failed for {schema_path}: {error_msg}")
            return False, error_msg

    try:
        schema_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        error_msg = f"Cannot create directory {schema_path.parent}: {str(e)}"
        logger.error(f"Save failed for {schema_path}: {error_msg}")
        return False, error_msg

    content = _serialize(schema_path, export_schema(doc), indent)

    backup_path = None
    if schema_path.exists():
        try:
            backup_path = schema_path.with_suffix(f"{schema_path.suffix}.backup")
            shutil.copy2(schema_path, backup_path)
            logger.debug(f"Created backup: {backup_path}")
        except OSError as e:
            logger.warning(f"Could not create backup for {schema_path}: {e}")
            backup_path = None

    temp_path = schema_path.with_suffix(f"{schema_path.suffix}.tmp")
    try:
        with open(temp_path, 'w', encoding='utf-8') as f:
            f.write(content)
        os.replace(temp_path, schema_path)

        if backup_path and backup_path.exists():
            try:
                backup_path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove backup {backup_path}: {e}")

        logger.info(f"Successfully saved schema: {schema_path}")
        return True, None

    except PermissionError as e:
        error_msg = f"Permission denied writing to {schema_path}: {str(e)}"
        logger.error(f"Save failed: {error_msg}")
        return False, error_msg
    except OSError as e:
        error_msg = f"OS error writing to {schema_path}: {str(e)}"
        logger.error(f"Save failed: {error_msg}")
        return False, error_msg
    finally:
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove temp file {temp_path}: {e}")


def list_schema_files(directory: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    List schema files in a directory with basic metadata.

    Returns:
        List of dicts with filename, path, size, modified, is_valid and field_count
    """
    schema_dir = Path(directory)
    if not schema_dir.is_dir():
        logger.warning(f"Schema directory not found: {schema_dir}")
        return []

    files = []
    for file_path in sorted(schema_dir.iterdir()):
        if not file_path.is_file() or file_path.suffix.lower() not in SCHEMA_SUFFIXES:
            continue

        stat = file_path.stat()
        info = {
            'filename': file_path.name,
            'path': str(file_path),
            'size': stat.st_size,
            'modified': datetime.fromtimestamp(stat.st_mtime),
            'is_valid': False,
            'field_count': 0
        }
        try:
            document = read_schema_file(file_path)
            info['is_valid'] = not validate_document(document)
            info['field_count'] = document.field_count()
        except ParseError as e:
            logger.warning(f"Could not parse {file_path}: {e}")
        files.append(info)

    return files
