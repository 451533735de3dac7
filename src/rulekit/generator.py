"""Rule generation: planning and materializing a stack's rule set."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path

from .emitter import TEMPLATE_EXTENSION, destination_name, emit_mirror_doc, emit_rule
from .exceptions import RuleKitError
from .models import GenerationReport, KitConfig, PlannedRule, ProjectContext
from .stacks import descriptor_for
from .tracing import trace

logger = logging.getLogger(__name__)

DEFAULT_RULES_SUBDIR = Path(".cursor") / "rules" / "rules-kit"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M"

ProgressCallback = Callable[[PlannedRule], None]


def template_files(directory: Path) -> list[Path]:
    """List the markdown templates of a directory in sorted order."""
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.name.endswith(TEMPLATE_EXTENSION)
    )


def backup_rules_dir(rules_dir: Path, now: datetime | None = None) -> Path | None:
    """Copy an existing rules directory to a timestamped sibling.

    Args:
        rules_dir: Directory about to be regenerated
        now: Timestamp to use, defaults to the current time

    Returns:
        The backup location, or None when there was nothing to back up
    """
    rules_dir = Path(rules_dir)
    if not rules_dir.is_dir():
        return None

    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    backup_path = rules_dir.with_name(f"{rules_dir.name}-backup-{stamp}")
    shutil.copytree(rules_dir, backup_path, dirs_exist_ok=True)
    logger.info("Backed up %s to %s", rules_dir, backup_path)
    return backup_path


class RuleGenerator:
    """Materializes global, stack-tier and MCP tool rules for one project."""

    def __init__(
        self,
        context: ProjectContext,
        templates_dir: Path,
        kit_config: KitConfig,
    ) -> None:
        """Initialize generator.

        Args:
            context: Stack, version and option values for this run
            templates_dir: Root of the template library
            kit_config: Loaded kit configuration
        """
        self.context = context
        self.templates_dir = Path(templates_dir)
        self.kit_config = kit_config
        self.descriptor = descriptor_for(context.stack)

    @property
    def stack_dir(self) -> Path:
        """Template directory of the context's stack."""
        return self.templates_dir / "stacks" / self.context.stack

    def _warn(self, report: GenerationReport, msg: str) -> None:
        logger.warning(msg)
        report.warnings.append(msg)

    def _plan_directory(
        self,
        report: GenerationReport,
        tier: str,
        source_dir: Path,
        dest_dir: Path,
        meta: dict,
        prefix: str = "",
    ) -> None:
        if not source_dir.is_dir():
            self._warn(report, f"No {tier} rules found at {source_dir}, skipping")
            return

        for source in template_files(source_dir):
            report.rules.append(
                PlannedRule(
                    tier=tier,
                    source=source,
                    destination=dest_dir / destination_name(source.name, prefix),
                    meta=meta,
                ),
            )
        trace(logger, self.context.debug, "Planned %s tier from %s", tier, source_dir)

    def validate_mcp_tools(self, mcp_tools: Iterable[str]) -> list[str]:
        """Check that every requested MCP tool is declared in the kit config.

        Raises:
            RuleKitError: If any tool key is unknown
        """
        tools = list(mcp_tools)
        unknown = [tool for tool in tools if tool not in self.kit_config.mcp_tools]
        if unknown:
            msg = f"Invalid MCP tools: {', '.join(unknown)}"
            raise RuleKitError(
                msg,
                details={"available": sorted(self.kit_config.mcp_tools)},
            )
        return tools

    def plan(
        self,
        rules_dir: Path,
        include_global: bool = True,
        mcp_tools: Iterable[str] = (),
    ) -> GenerationReport:
        """Work out every rule file a run would write, without writing.

        Args:
            rules_dir: Destination rules directory
            include_global: Include the stack-independent global rules
            mcp_tools: MCP tool keys whose rules are included

        Returns:
            Report listing planned rules and any skipped tiers

        Raises:
            RuleKitError: If an MCP tool key is unknown
        """
        rules_dir = Path(rules_dir)
        tools = self.validate_mcp_tools(mcp_tools)
        report = GenerationReport(rules_dir=rules_dir)
        base_meta = self.context.to_meta()

        if include_global:
            self._plan_directory(
                report,
                "global",
                self.templates_dir / "global",
                rules_dir / "global",
                base_meta,
            )

        stack_dest = rules_dir / self.context.stack
        for tier in self.descriptor.tiers:
            for values in self.descriptor.variants(tier, self.context):
                self._plan_directory(
                    report,
                    tier.name,
                    self.stack_dir / tier.source_subpath(values),
                    stack_dest,
                    {**base_meta, **tier.extra_meta(values)},
                    tier.file_prefix(values),
                )

        for tool in tools:
            self._plan_directory(
                report,
                "mcp-tools",
                self.templates_dir / "mcp-tools" / tool,
                rules_dir / "mcp-tools" / tool,
                {**base_meta, "mcpTool": tool},
            )

        return report

    def execute(
        self,
        report: GenerationReport,
        docs_dir: Path | None = None,
        backup: bool = False,
        progress: ProgressCallback | None = None,
    ) -> GenerationReport:
        """Write the rules of a planned report.

        Rules are written in plan order, so a version-tier file overrides a
        base-tier file of the same name.

        Args:
            report: Result of plan()
            docs_dir: Also write each rule body as plain markdown here
            backup: Copy an existing rules directory aside first
            progress: Called after each rule is written

        Returns:
            The same report, updated with backup and docs information
        """
        if backup:
            report.backup_path = backup_rules_dir(report.rules_dir)

        for rule in report.rules:
            front_matter = emit_rule(rule.source, rule.destination, rule.meta, self.kit_config)
            if docs_dir is not None:
                relative = rule.destination.relative_to(report.rules_dir)
                emit_mirror_doc(
                    rule.source,
                    Path(docs_dir) / relative.with_suffix(TEMPLATE_EXTENSION),
                    front_matter,
                )
                report.docs_written += 1
            if progress is not None:
                progress(rule)

        logger.debug("Generated %d rules in %s", len(report.rules), report.rules_dir)
        return report

    def generate(
        self,
        rules_dir: Path,
        include_global: bool = True,
        mcp_tools: Iterable[str] = (),
        docs_dir: Path | None = None,
        backup: bool = False,
        progress: ProgressCallback | None = None,
    ) -> GenerationReport:
        """Plan and write a full rule set."""
        report = self.plan(rules_dir, include_global=include_global, mcp_tools=mcp_tools)
        return self.execute(report, docs_dir=docs_dir, backup=backup, progress=progress)
