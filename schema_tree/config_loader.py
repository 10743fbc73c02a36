"""
Configuration loading utilities for the schema tree engine.

This module loads application configuration from a YAML file, merges it
over built-in defaults and configures logging from it.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")

# Global configuration cache
_config_cache: Optional[Dict[str, Any]] = None


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge override into a copy of base, recursing into nested mappings.

    Neither argument is modified.
    """
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'Config Schema Editor',
            'version': '1.0.0'
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        },
        'export': {
            'schema_uri': 'http://json-schema.org/draft-07/schema#',
            'schema_id': 'https://example.com/schemas/config.schema.json',
            'indent': 2
        },
        'inference': {
            'description_template': 'Generated from sample: {path}'
        },
        'editor': {
            'field_name_prefix': 'field_',
            'history_limit': 50
        }
    }


def _read_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Parse the YAML config file; None when it is missing or unusable."""
    if not config_path.exists():
        logger.debug(f"Configuration file not found: {config_path}, using defaults")
        return None

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        return None
    except OSError as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        return None

    if user_config is None:
        logger.warning(f"Configuration file is empty: {config_path}")
        return None
    if not isinstance(user_config, dict):
        logger.error(f"Configuration file is not a mapping: {config_path}")
        return None
    return user_config


def _drop_non_mapping_sections(user_config: Dict[str, Any],
                               defaults: Dict[str, Any]) -> Dict[str, Any]:
    # Known sections must stay mappings, e.g. `editor: null` is dropped
    kept = {}
    for section, values in user_config.items():
        if section in defaults and not isinstance(values, dict):
            logger.warning(f"Ignoring config section '{section}': expected a mapping, "
                           f"got {type(values).__name__}")
            continue
        kept[section] = values
    return kept


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration.

    Missing, empty or unparseable files fall back to the defaults; known
    sections that are not mappings keep their default values.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    defaults = get_default_config()
    user_config = _read_config_file(config_path)
    if user_config is None:
        return defaults

    config = deep_merge(defaults, _drop_non_mapping_sections(user_config, defaults))
    logger.info(f"Loaded configuration from {config_path}")
    return config


def get_config() -> Dict[str, Any]:
    """Return the cached configuration, loading it on first use."""
    global _config_cache

    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache


def reload_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Force reload of configuration from file.
    Useful for testing or when configuration changes.
    """
    global _config_cache
    _config_cache = load_config(config_path)
    return _config_cache


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        section: Configuration section (e.g., 'export', 'editor')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    section_values = get_config().get(section)
    if not isinstance(section_values, dict):
        return default
    return section_values.get(key, default)


def get_logging_level(level_str: str) -> int:
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(str(level_str).upper(), logging.INFO)


def configure_logging(config: Optional[Dict[str, Any]] = None) -> int:
    """
    Configure root logging from the 'logging' config section.

    Returns:
        The logging level that was applied
    """
    if config is None:
        config = get_config()

    logging_config = config.get('logging', {})
    level = get_logging_level(logging_config.get('level', 'INFO'))
    log_format = logging_config.get('format', get_default_config()['logging']['format'])

    logging.basicConfig(level=level, format=log_format)
    logger.info(f"Logging configured to level: {logging.getLevelName(level)}")
    return level
