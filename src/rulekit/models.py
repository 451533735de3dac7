"""Core data models for RuleKit."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Top-level kit-config.json keys that are not stack entries
RESERVED_CONFIG_KEYS = frozenset({"global", "mcp_tools"})


class VersionRange(BaseModel):
    """A named version bucket declared under a stack's version_ranges."""

    range_name: str | None = Field(
        default=None,
        description="Template directory identifier, e.g. v10-11",
    )
    name: str | None = Field(
        default=None,
        description="Human-readable display name",
    )


class ArchitectureConfig(BaseModel):
    """Architecture-scoped glob configuration."""

    name: str | None = Field(default=None, description="Display name")
    globs: list[str] = Field(default_factory=list)
    pattern_rules: dict[str, str | list[str]] = Field(default_factory=dict)


class StackConfig(BaseModel):
    """Per-stack entry of the kit configuration."""

    name: str | None = Field(default=None, description="Display name")
    globs: list[str] = Field(
        default_factory=list,
        description="Default glob patterns, may contain <root>/",
    )
    pattern_rules: dict[str, str | list[str]] = Field(
        default_factory=dict,
        description="Glob pattern to rule file path fragment(s)",
    )
    architectures: dict[str, ArchitectureConfig] = Field(default_factory=dict)
    version_ranges: dict[str, VersionRange | str] = Field(
        default_factory=dict,
        description="Major version to range bucket",
    )


class GlobalConfig(BaseModel):
    """Settings shared by every stack."""

    always: list[str] = Field(
        default_factory=list,
        description="Rule filenames that always receive alwaysApply: true",
    )


class McpToolConfig(BaseModel):
    """An MCP tool whose usage rules can be installed."""

    name: str
    description: str = ""


class KitConfig(BaseModel):
    """Loaded kit-config.json document."""

    model_config = ConfigDict(populate_by_name=True)

    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    mcp_tools: dict[str, McpToolConfig] = Field(default_factory=dict)
    stacks: dict[str, StackConfig] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> KitConfig:
        """Build a configuration from the raw JSON document.

        Every top-level object other than the reserved keys is a stack entry.
        """
        stacks = {
            key: value
            for key, value in data.items()
            if key not in RESERVED_CONFIG_KEYS and isinstance(value, dict)
        }
        return cls.model_validate(
            {
                "global": data.get("global") or {},
                "mcp_tools": data.get("mcp_tools") or {},
                "stacks": stacks,
            },
        )

    def stack(self, name: str | None) -> StackConfig | None:
        """Get the configuration entry for a stack, if any."""
        if not name:
            return None
        return self.stacks.get(name)


class ProjectContext(BaseModel):
    """Metadata threaded through one materialization run."""

    stack: str = Field(..., description="Stack being materialized")
    project_path: str = Field(
        default=".",
        description="Project location relative to the repository root",
    )
    detected_version: str | None = None
    version_range: str | None = None
    architecture: str | None = None
    state_management: str | None = None
    signals: bool = False
    debug: bool = Field(default=False, description="Verbose pipeline logging")

    def to_meta(self) -> dict[str, Any]:
        """Build the supplied front-matter map shared by every tier."""
        meta: dict[str, Any] = {}
        if self.detected_version:
            meta["detectedVersion"] = self.detected_version
        if self.version_range:
            meta["versionRange"] = self.version_range
        meta["stack"] = self.stack
        meta["projectPath"] = self.project_path
        meta["debug"] = self.debug
        return meta


class ParsedRule(BaseModel):
    """A rule document split into front matter and body."""

    meta: dict[str, str] = Field(default_factory=dict)
    body: str = ""


class PlannedRule(BaseModel):
    """A single template scheduled for materialization."""

    tier: str
    source: Path
    destination: Path
    meta: dict[str, Any] = Field(default_factory=dict)


class GenerationReport(BaseModel):
    """Outcome of a rule generation run."""

    rules_dir: Path
    rules: list[PlannedRule] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    docs_written: int = 0
    backup_path: Path | None = None

    def count_by_tier(self) -> dict[str, int]:
        """Count generated rules per tier, in first-seen order."""
        counts: dict[str, int] = {}
        for rule in self.rules:
            counts[rule.tier] = counts.get(rule.tier, 0) + 1
        return counts


class InstallTarget(BaseModel):
    """Destination profile for the install step."""

    name: str = Field(..., description="Display name of the IDE or agent")
    multiple: bool = Field(..., description="One file per rule when true")
    dir: str | None = Field(default=None, description="Destination directory")
    file: str | None = Field(default=None, description="Single destination file")
    extension: str = Field(..., description="Extension for emitted files")
    keep_front_matter: bool = Field(default=True)


class WriteResult(str, Enum):
    """What an idempotent write did to the destination."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class InstallReport(BaseModel):
    """Outcome of an install run."""

    target: str
    destination: Path
    results: dict[Path, WriteResult] = Field(default_factory=dict)
    backups: list[Path] = Field(default_factory=list)

    def count(self, result: WriteResult) -> int:
        """Count destinations with the given write result."""
        return sum(1 for value in self.results.values() if value == result)
