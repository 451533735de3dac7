"""Placeholder substitution for rule template bodies."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

PLACEHOLDERS = ("detectedVersion", "versionRange", "projectPath", "stack")


def normalize_project_path(project_path: str | None) -> str:
    """Render a project path for templates: ``.`` and empty become ``./``."""
    if not project_path or project_path == ".":
        return "./"
    return project_path


def glob_prefix(project_path: str | None) -> str:
    """Prefix that replaces ``<root>/`` in configured glob patterns."""
    if not project_path or project_path in (".", "./"):
        return ""
    return project_path.rstrip("/") + "/"


def substitute(body: str, metadata: Mapping[str, Any]) -> str:
    """Replace ``{name}`` placeholders in a template body.

    Only the names in PLACEHOLDERS are recognized. A placeholder whose value
    is missing or empty stays in the text verbatim, except ``{projectPath}``
    which falls back to ``./``.

    Args:
        body: Markdown body of a rule template
        metadata: Values keyed by placeholder name

    Returns:
        Body with every occurrence of each resolvable placeholder replaced
    """
    for name in PLACEHOLDERS:
        value = metadata.get(name)
        if name == "projectPath":
            value = normalize_project_path(value)
        if value is None or value == "":
            continue
        body = body.replace(f"{{{name}}}", str(value))
    return body
