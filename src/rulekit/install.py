"""Re-emission of materialized rules into IDE-specific layouts."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .exceptions import NoSourceRulesError, UnknownTargetError
from .frontmatter import parse_front_matter, strip_front_matter
from .models import InstallReport, InstallTarget, WriteResult

logger = logging.getLogger(__name__)

SOURCE_EXTENSION = ".mdc"
DEFAULT_SOURCE_DIR = "rules"
BACKUP_SUFFIX = ".bak"

INSTALL_TARGETS: dict[str, InstallTarget] = {
    "cursor": InstallTarget(
        name="Cursor",
        multiple=True,
        dir=".cursor/rules",
        extension=".mdc",
        keep_front_matter=True,
    ),
    "vscode": InstallTarget(
        name="VS Code / GitHub Copilot",
        multiple=False,
        file=".github/copilot-instructions.md",
        extension=".md",
        keep_front_matter=False,
    ),
}


def write_file_idempotent(path: Path, content: str, backup: bool = True) -> WriteResult:
    """Write a file only if its content would change.

    An existing file with different content, including one that is not
    valid UTF-8, is copied to ``<path>.bak`` first when ``backup`` is set.
    Identical content leaves the filesystem untouched.

    Args:
        path: Destination file
        content: Full text to write
        backup: Keep a copy of replaced content

    Returns:
        What happened to the destination
    """
    path = Path(path)
    result = WriteResult.CREATED
    if path.exists():
        if path.read_bytes() == content.encode("utf-8"):
            return WriteResult.UNCHANGED
        if backup:
            shutil.copyfile(path, path.with_name(path.name + BACKUP_SUFFIX))
        result = WriteResult.UPDATED

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return result


def rule_title(file_name: str, meta: dict[str, str]) -> str:
    """Title of a rule: its description, else its filename stem."""
    if meta.get("description"):
        return meta["description"]
    if file_name.endswith(SOURCE_EXTENSION):
        return file_name[: -len(SOURCE_EXTENSION)]
    return file_name


def render_single_document(rules: list[tuple[str, str]]) -> str:
    """Concatenate rules into one document with a numbered index.

    Args:
        rules: (filename, raw content) pairs in output order

    Returns:
        Index, a blank line, then one ``## <title>`` section per rule
    """
    sections = []
    for file_name, content in rules:
        parsed = parse_front_matter(content)
        sections.append((rule_title(file_name, parsed.meta), parsed.body))

    index = "\n".join(f"{i}. {title}" for i, (title, _) in enumerate(sections, 1))
    body = "\n\n".join(f"## {title}\n\n{text}" for title, text in sections)
    return f"{index}\n\n{body}\n"


def source_rules(src_dir: Path) -> list[Path]:
    """List the rule files of a source directory sorted by filename."""
    src_dir = Path(src_dir)
    if not src_dir.is_dir():
        return []
    return sorted(
        (p for p in src_dir.iterdir() if p.is_file() and p.name.endswith(SOURCE_EXTENSION)),
        key=lambda p: p.name,
    )


def install_rules(
    target_key: str,
    project_dir: Path,
    src: Path | None = None,
    backup: bool = True,
) -> InstallReport:
    """Install a directory of rule files into an IDE target.

    Args:
        target_key: Key of INSTALL_TARGETS
        project_dir: Project the target paths are relative to
        src: Source rules directory, relative to ``project_dir`` unless
            absolute; defaults to ``rules``
        backup: Keep ``.bak`` copies of replaced files

    Returns:
        Per-destination write results

    Raises:
        UnknownTargetError: If the target key is not defined
        NoSourceRulesError: If the source directory has no ``.mdc`` files
    """
    target = INSTALL_TARGETS.get(target_key)
    if target is None:
        msg = f"Unknown target: {target_key}"
        raise UnknownTargetError(msg, details={"available": sorted(INSTALL_TARGETS)})

    project_dir = Path(project_dir)
    src_dir = project_dir / (src or DEFAULT_SOURCE_DIR)
    files = source_rules(src_dir)
    if not files:
        msg = "No source rules found"
        raise NoSourceRulesError(msg, details={"src": str(src_dir)})

    if target.multiple:
        destination = project_dir / target.dir
        report = InstallReport(target=target_key, destination=destination)
        logger.info("Installing %d rules to %s", len(files), destination)
        for path in files:
            content = path.read_text(encoding="utf-8")
            if not target.keep_front_matter:
                content = strip_front_matter(content)
            dest_path = destination / (path.name[: -len(SOURCE_EXTENSION)] + target.extension)
            result = write_file_idempotent(dest_path, content, backup)
            _record(report, dest_path, result, backup)
    else:
        destination = project_dir / target.file
        report = InstallReport(target=target_key, destination=destination)
        logger.info("Installing rules to %s", destination)
        document = render_single_document(
            [(path.name, path.read_text(encoding="utf-8")) for path in files],
        )
        result = write_file_idempotent(destination, document, backup)
        _record(report, destination, result, backup)

    return report


def _record(
    report: InstallReport,
    path: Path,
    result: WriteResult,
    backup: bool,
) -> None:
    report.results[path] = result
    if backup and result is WriteResult.UPDATED:
        report.backups.append(path.with_name(path.name + BACKUP_SUFFIX))
