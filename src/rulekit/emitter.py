"""Materialization of rule templates into annotated rule files."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .exceptions import TemplateNotFoundError
from .frontmatter import parse_front_matter, resolve_front_matter, serialize_front_matter
from .models import KitConfig
from .templating import substitute
from .tracing import trace

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSION = ".md"
RULE_EXTENSION = ".mdc"


def destination_name(file_name: str, prefix: str = "") -> str:
    """Derive a rule's destination filename from its template filename.

    Examples:
        ``destination_name("foo.md")`` -> ``foo.mdc``
        ``destination_name("foo.md", "testing-")`` -> ``testing-foo.mdc``
    """
    name = f"{prefix}{file_name}"
    if name.endswith(TEMPLATE_EXTENSION):
        name = name[: -len(TEMPLATE_EXTENSION)] + RULE_EXTENSION
    return name


def _read_template(source_path: Path) -> str:
    if not source_path.is_file():
        msg = f"Rule template not found: {source_path}"
        raise TemplateNotFoundError(msg, details={"path": str(source_path)})
    return source_path.read_text(encoding="utf-8")


def emit_rule(
    source_path: Path,
    dest_path: Path,
    supplied_meta: Mapping[str, Any],
    kit_config: KitConfig,
) -> dict[str, Any]:
    """Write one materialized rule file.

    Front matter already present in the template is carried over, with
    resolved keys taking precedence. The destination is overwritten in place.

    Args:
        source_path: Template markdown file
        dest_path: Rule file to write
        supplied_meta: Caller metadata for front-matter resolution
        kit_config: Loaded kit configuration

    Returns:
        The front matter written to the destination

    Raises:
        TemplateNotFoundError: If the template does not exist
    """
    source_path = Path(source_path)
    dest_path = Path(dest_path)
    template = parse_front_matter(_read_template(source_path))

    front_matter = resolve_front_matter(
        source_path,
        {**template.meta, **supplied_meta},
        kit_config,
    )
    body = substitute(template.body, front_matter)

    dest_path.parent.mkdir(parents=True, exist_ok=True)
    dest_path.write_text(serialize_front_matter(front_matter, body), encoding="utf-8")
    trace(
        logger,
        bool(supplied_meta.get("debug")),
        "Converted %s to %s [globs: %s, alwaysApply: %s]",
        source_path.name,
        dest_path.name,
        front_matter.get("globs"),
        front_matter.get("alwaysApply"),
    )
    return front_matter


def emit_mirror_doc(
    source_path: Path,
    dest_path: Path,
    supplied_meta: Mapping[str, Any],
) -> None:
    """Write a template's substituted body as plain documentation."""
    template = parse_front_matter(_read_template(Path(source_path)))
    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    dest_path.write_text(substitute(template.body, supplied_meta), encoding="utf-8")
