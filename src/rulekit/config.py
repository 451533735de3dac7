"""Kit configuration loading with schema validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import KitConfig

logger = logging.getLogger(__name__)

KIT_CONFIG_FILENAME = "kit-config.json"

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

_PATTERN_RULES = {
    "type": "object",
    "additionalProperties": {
        "anyOf": [{"type": "string"}, _STRING_LIST],
    },
}

KIT_CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "RuleKit Kit Configuration",
    "type": "object",
    "definitions": {
        "architecture": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "globs": _STRING_LIST,
                "pattern_rules": _PATTERN_RULES,
            },
        },
        "stack": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "globs": _STRING_LIST,
                "pattern_rules": _PATTERN_RULES,
                "architectures": {
                    "type": "object",
                    "additionalProperties": {"$ref": "#/definitions/architecture"},
                },
                "version_ranges": {
                    "type": "object",
                    "additionalProperties": {
                        "anyOf": [
                            {
                                "type": "object",
                                "properties": {
                                    "range_name": {"type": "string"},
                                    "name": {"type": "string"},
                                },
                            },
                            {"type": "string"},
                        ],
                    },
                },
            },
        },
    },
    "properties": {
        "global": {
            "type": "object",
            "properties": {"always": _STRING_LIST},
        },
        "mcp_tools": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                },
            },
        },
    },
    "additionalProperties": {
        "anyOf": [
            {"$ref": "#/definitions/stack"},
            {"not": {"type": "object"}},
        ],
    },
}


def default_templates_dir() -> Path:
    """Get the template library bundled with the package."""
    return Path(__file__).parent / "templates"


def read_kit_config(templates_dir: Path) -> KitConfig:
    """Read and validate kit-config.json from a templates directory.

    Args:
        templates_dir: Directory containing kit-config.json

    Returns:
        Validated kit configuration

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid
    """
    config_path = Path(templates_dir) / KIT_CONFIG_FILENAME
    if not config_path.exists():
        msg = f"Kit config not found: {config_path}"
        raise ConfigError(msg, details={"path": str(config_path)})

    try:
        with config_path.open(encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse kit config JSON: {e}"
        raise ConfigError(msg, details={"path": str(config_path)}) from e
    except OSError as e:
        msg = f"Failed to read kit config: {e}"
        raise ConfigError(msg, details={"path": str(config_path)}) from e

    try:
        jsonschema.validate(data, KIT_CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        msg = f"Kit config schema validation failed: {e.message}"
        raise ConfigError(
            msg,
            details={"path": list(e.absolute_path), "file": str(config_path)},
        ) from e

    try:
        return KitConfig.from_document(data)
    except ValidationError as e:
        msg = f"Kit config validation failed: {e}"
        raise ConfigError(msg, details={"path": str(config_path)}) from e


def load_kit_config(templates_dir: Path) -> KitConfig:
    """Load kit-config.json, falling back to an empty configuration.

    Configuration problems are never fatal: a missing or invalid file yields
    an empty KitConfig, so generation proceeds with base-tier behavior only.
    """
    config_path = Path(templates_dir) / KIT_CONFIG_FILENAME
    if not config_path.exists():
        logger.debug("Kit config not found at %s", config_path)
        return KitConfig()

    try:
        config = read_kit_config(templates_dir)
    except ConfigError as e:
        logger.warning("%s; using empty configuration", e)
        return KitConfig()

    logger.debug(
        "Loaded kit config with %d stack entries",
        len(config.stacks),
    )
    return config


class KitConfigStore:
    """Caches the kit configuration until kit-config.json changes on disk."""

    def __init__(self, templates_dir: Path) -> None:
        """Initialize store for a templates directory.

        Args:
            templates_dir: Directory containing kit-config.json
        """
        self.templates_dir = Path(templates_dir)
        self._config: KitConfig | None = None
        self._mtime: float | None = None

    @property
    def config_path(self) -> Path:
        """Location of the kit-config.json file."""
        return self.templates_dir / KIT_CONFIG_FILENAME

    def _current_mtime(self) -> float | None:
        try:
            return self.config_path.stat().st_mtime
        except OSError:
            return None

    def load(self) -> KitConfig:
        """Return the cached configuration, re-reading it if the file changed."""
        mtime = self._current_mtime()
        if self._config is None or mtime != self._mtime:
            self._config = load_kit_config(self.templates_dir)
            self._mtime = mtime
        return self._config

    def invalidate(self) -> None:
        """Drop the cached configuration."""
        self._config = None
        self._mtime = None
