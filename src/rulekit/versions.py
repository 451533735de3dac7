"""Framework version detection and version-range mapping."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from .models import KitConfig, VersionRange
from .stacks import MANIFESTS
from .tracing import trace

logger = logging.getLogger(__name__)

_MAJOR_VERSION_RE = re.compile(r"\d+")


def detect_version(raw_version: str | None) -> str | None:
    """Extract the major version from a dependency version string.

    Only the first run of digits matters: ``^10.4.2`` gives ``10`` and
    ``next`` gives None.

    Args:
        raw_version: Version constraint as written in a manifest

    Returns:
        Major version as a string, or None if no digits are present
    """
    if not raw_version:
        return None
    match = _MAJOR_VERSION_RE.search(raw_version)
    if match is None:
        return None
    return str(int(match.group(0)))


def detect_stack_version(
    stack: str,
    project_path: Path,
    debug: bool = False,
) -> str | None:
    """Detect a stack's major version from the project's manifest.

    Args:
        stack: Stack name
        project_path: Directory holding the manifest
        debug: Trace each lookup step

    Returns:
        Major version string, or None when it cannot be determined
    """
    manifest = MANIFESTS.get(stack)
    if manifest is None:
        trace(logger, debug, "No version detector available for %s", stack)
        return None

    manifest_path = Path(project_path) / manifest.filename
    trace(logger, debug, "Looking for %s", manifest_path)
    if not manifest_path.is_file():
        trace(logger, debug, "%s not found", manifest_path)
        return None

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        trace(logger, debug, "Could not read %s: %s", manifest_path, e)
        return None

    section = data.get(manifest.section) if isinstance(data, dict) else None
    raw_version = section.get(manifest.package) if isinstance(section, dict) else None
    if not isinstance(raw_version, str):
        trace(
            logger,
            debug,
            "%s not declared in %s %s",
            manifest.package,
            manifest.filename,
            manifest.section,
        )
        return None

    version = detect_version(raw_version)
    trace(logger, debug, "Detected %s version %s from %r", stack, version, raw_version)
    return version


def map_version_to_range(
    stack: str,
    major_version: str | None,
    kit_config: KitConfig,
) -> str | None:
    """Map a major version to its configured range identifier.

    Exact key lookup only; there is no nearest-match logic.
    """
    if not major_version:
        return None
    stack_config = kit_config.stack(stack)
    if stack_config is None:
        return None

    entry = stack_config.version_ranges.get(str(major_version))
    if entry is None:
        return None
    if isinstance(entry, VersionRange):
        return entry.range_name
    return entry


def format_version_name(
    stack: str,
    version_range: str | None,
    kit_config: KitConfig,
) -> str | None:
    """Get a display name for a version range.

    The range is looked up both as a version key and as a ``range_name``;
    without a configured name it renders as ``"<Stack> <range>"``.
    """
    if not version_range:
        return None

    stack_config = kit_config.stack(stack)
    if stack_config is not None:
        direct = stack_config.version_ranges.get(version_range)
        if isinstance(direct, VersionRange) and direct.name:
            return direct.name
        for entry in stack_config.version_ranges.values():
            if (
                isinstance(entry, VersionRange)
                and entry.range_name == version_range
                and entry.name
            ):
                return entry.name

    return f"{stack.capitalize()} {version_range}"


def available_versions(stack: str, kit_config: KitConfig) -> list[str]:
    """List the major versions a stack declares in version_ranges."""
    stack_config = kit_config.stack(stack)
    if stack_config is None:
        return []
    return list(stack_config.version_ranges)
