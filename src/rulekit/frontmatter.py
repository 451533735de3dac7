"""Front-matter resolution, serialization and parsing for rule files.

Rule files carry a flat, line-based header::

    ---
    key: value
    ---
    body

Values are written as-is with no escaping. Keys must not contain colons and
values must not contain newlines.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .models import KitConfig, ParsedRule
from .templating import glob_prefix, normalize_project_path
from .tracing import trace

logger = logging.getLogger(__name__)

DELIMITER = "---"
ROOT_PLACEHOLDER = "<root>/"

_STACK_SEGMENT_RE = re.compile(r"/stacks/([^/]+)/")
_ARCHITECTURE_SEGMENT_RE = re.compile(r"/architectures/([^/]+)/")


def _rule_filename(rule_ref: str) -> str:
    return rule_ref.split("/")[-1]


def _apply_glob_config(
    front_matter: dict[str, Any],
    globs: list[str],
    pattern_rules: Mapping[str, str | list[str]],
    file_name: str,
    prefix: str,
    debug: bool,
    scope: str,
) -> None:
    """Apply default globs, then any pattern rule naming this file."""
    if globs:
        front_matter["globs"] = ",".join(
            glob.replace(ROOT_PLACEHOLDER, prefix) for glob in globs
        )
        trace(logger, debug, "Applied %s globs: %s", scope, front_matter["globs"])

    # Last matching pattern wins
    for pattern, rule_refs in pattern_rules.items():
        refs = [rule_refs] if isinstance(rule_refs, str) else rule_refs
        if any(_rule_filename(ref) == file_name for ref in refs):
            front_matter["globs"] = pattern.replace(ROOT_PLACEHOLDER, prefix)
            trace(
                logger,
                debug,
                "Applied %s pattern globs %s to %s",
                scope,
                front_matter["globs"],
                file_name,
            )


def resolve_front_matter(
    source_path: Path,
    supplied_meta: Mapping[str, Any],
    kit_config: KitConfig,
) -> dict[str, Any]:
    """Compute the front matter for a rule template.

    Precedence for ``globs``: stack defaults, then stack pattern rules, then
    architecture defaults, then architecture pattern rules. Pattern rules
    match on the referenced file's basename only.

    Args:
        source_path: Template file being materialized
        supplied_meta: Caller metadata; a ``debug`` key enables tracing and
            is never emitted, None values are dropped
        kit_config: Loaded kit configuration

    Returns:
        Ordered front-matter map
    """
    front_matter = {k: v for k, v in supplied_meta.items() if v is not None}
    debug = bool(front_matter.pop("debug", False))

    project_path = front_matter.get("projectPath")
    prefix = glob_prefix(project_path)
    front_matter["projectPath"] = normalize_project_path(project_path)
    if isinstance(front_matter.get("globs"), str):
        front_matter["globs"] = front_matter["globs"].replace(ROOT_PLACEHOLDER, prefix)

    # Leading slash so relative paths such as global/x.md match segments
    source = "/" + Path(source_path).as_posix()
    file_name = Path(source_path).name
    is_global_rule = "/global/" in source

    stack = front_matter.get("stack")
    if not stack:
        match = _STACK_SEGMENT_RE.search(source)
        stack = match.group(1) if match else None

    always = kit_config.global_.always
    if file_name in always:
        front_matter["alwaysApply"] = True
        trace(logger, debug, "alwaysApply set from global list: %s", file_name)

    stack_config = kit_config.stack(stack)
    if is_global_rule:
        front_matter["globs"] = "**/*"
        front_matter["alwaysApply"] = file_name in always
    elif stack_config is not None:
        trace(logger, debug, "Resolving %s rule %s", stack, file_name)
        _apply_glob_config(
            front_matter,
            stack_config.globs,
            stack_config.pattern_rules,
            file_name,
            prefix,
            debug,
            stack,
        )

        match = _ARCHITECTURE_SEGMENT_RE.search(source)
        arch_config = stack_config.architectures.get(match.group(1)) if match else None
        if arch_config is not None:
            _apply_glob_config(
                front_matter,
                arch_config.globs,
                arch_config.pattern_rules,
                file_name,
                prefix,
                debug,
                f"{stack}/{match.group(1)}",
            )

    return front_matter


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def serialize_front_matter(front_matter: Mapping[str, Any], body: str) -> str:
    """Render front matter and body in the on-disk rule format."""
    header = "\n".join(f"{key}: {_render_value(value)}" for key, value in front_matter.items())
    return f"{DELIMITER}\n{header}\n{DELIMITER}\n{body}"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_front_matter(content: str) -> ParsedRule:
    """Split a rule document into front-matter fields and body.

    A document without a leading ``---`` has no front matter. Header lines
    split on the first colon; one layer of matching quotes around a value is
    removed.
    """
    if content.startswith(DELIMITER):
        end = content.find(f"\n{DELIMITER}", 3)
        if end != -1:
            header = content[3:end].strip()
            body = content[end + 4 :].lstrip("\n")
            meta: dict[str, str] = {}
            for line in header.split("\n"):
                key, sep, value = line.partition(":")
                if key.strip() and sep:
                    meta[key.strip()] = _unquote(value.strip())
            return ParsedRule(meta=meta, body=body)
    return ParsedRule(body=content)


def strip_front_matter(content: str) -> str:
    """Return a rule document's body without its front matter."""
    return parse_front_matter(content).body
