"""Tests for data models and stack descriptors."""

import tempfile
from pathlib import Path

import pytest

from rulekit.models import (
    GenerationReport,
    InstallReport,
    KitConfig,
    PlannedRule,
    ProjectContext,
    WriteResult,
)
from rulekit.stacks import (
    ARCHITECTURE_TIER,
    STATE_TIER,
    available_architectures,
    available_stacks,
    descriptor_for,
    format_architecture_name,
)


class TestProjectContext:
    """Test ProjectContext model."""

    def test_to_meta_skips_missing_versions(self) -> None:
        """Test supplied metadata without version information."""
        context = ProjectContext(stack="laravel")

        assert context.to_meta() == {
            "stack": "laravel",
            "projectPath": ".",
            "debug": False,
        }

    def test_to_meta_with_versions(self) -> None:
        """Test key order of supplied metadata."""
        context = ProjectContext(
            stack="react",
            project_path="apps/web",
            detected_version="18",
            version_range="v18",
            debug=True,
        )

        assert list(context.to_meta().items()) == [
            ("detectedVersion", "18"),
            ("versionRange", "v18"),
            ("stack", "react"),
            ("projectPath", "apps/web"),
            ("debug", True),
        ]


class TestReports:
    """Test report helpers."""

    def test_count_by_tier(self) -> None:
        """Test per-tier counts in first-seen order."""
        rules = [
            PlannedRule(tier=tier, source=Path(f"{i}.md"), destination=Path(f"{i}.mdc"))
            for i, tier in enumerate(["global", "base", "base", "testing"])
        ]
        report = GenerationReport(rules_dir=Path("rules"), rules=rules)

        assert list(report.count_by_tier().items()) == [
            ("global", 1),
            ("base", 2),
            ("testing", 1),
        ]

    def test_install_report_count(self) -> None:
        """Test counting write results."""
        report = InstallReport(
            target="cursor",
            destination=Path(".cursor/rules"),
            results={
                Path("a.mdc"): WriteResult.CREATED,
                Path("b.mdc"): WriteResult.UNCHANGED,
                Path("c.mdc"): WriteResult.CREATED,
            },
        )

        assert report.count(WriteResult.CREATED) == 2
        assert report.count(WriteResult.UPDATED) == 0


class TestKitConfig:
    """Test KitConfig model."""

    def test_stack_lookup(self) -> None:
        """Test lookup of configured and unknown stacks."""
        config = KitConfig.from_document({"react": {"globs": ["<root>/src/**"]}})

        assert config.stack("react").globs == ["<root>/src/**"]
        assert config.stack("vue") is None
        assert config.stack(None) is None

    def test_global_alias(self) -> None:
        """Test the reserved global key."""
        config = KitConfig.model_validate({"global": {"always": ["a.md"]}})

        assert config.global_.always == ["a.md"]


class TestStackDescriptors:
    """Test the declarative tier table."""

    def test_default_descriptor(self) -> None:
        """Test that unlisted stacks get base, version and architecture tiers."""
        descriptor = descriptor_for("vue")

        assert [tier.name for tier in descriptor.tiers] == [
            "base",
            "version",
            "architecture",
        ]

    def test_architecture_variant(self) -> None:
        """Test prefix, subpath and metadata of an architecture tier."""
        context = ProjectContext(stack="react", architecture="atomic")
        (values,) = descriptor_for("react").variants(ARCHITECTURE_TIER, context)

        assert ARCHITECTURE_TIER.source_subpath(values) == "architectures/atomic"
        assert ARCHITECTURE_TIER.file_prefix(values) == "architecture-atomic-"
        assert ARCHITECTURE_TIER.extra_meta(values) == {"architecture": "atomic"}

    @pytest.mark.parametrize("state", [None, "", "none"])
    def test_unset_state_yields_nothing(self, state: str | None) -> None:
        """Test skipped state tier."""
        context = ProjectContext(stack="react", state_management=state)

        assert list(descriptor_for("react").variants(STATE_TIER, context)) == []

    def test_hybrid_alias(self) -> None:
        """Test the nextjs hybrid architecture expansion."""
        context = ProjectContext(stack="nextjs", architecture="hybrid")

        variants = descriptor_for("nextjs").variants(ARCHITECTURE_TIER, context)

        assert [v["architecture"] for v in variants] == ["app", "pages"]

    def test_format_architecture_name(self) -> None:
        """Test the fallback display name."""
        assert format_architecture_name("feature-sliced") == "Feature Sliced"


class TestStackDiscovery:
    """Test stack and architecture discovery."""

    @pytest.fixture
    def templates_dir(self) -> Path:
        """Create a templates directory with two stacks."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            (root / "stacks" / "react" / "architectures" / "atomic").mkdir(parents=True)
            (root / "stacks" / "react" / "architectures" / "feature-sliced").mkdir()
            (root / "stacks" / "laravel" / "base").mkdir(parents=True)
            yield root

    def test_available_stacks(self, templates_dir: Path) -> None:
        """Test directories first, then config-only stacks."""
        config = KitConfig.from_document({"vue": {}, "react": {}})

        assert available_stacks(templates_dir, config) == ["laravel", "react", "vue"]

    def test_available_architectures(self, templates_dir: Path) -> None:
        """Test config-declared architectures ahead of directories."""
        config = KitConfig.from_document(
            {"react": {"architectures": {"atomic": {"name": "Atomic Design"}, "mvc": {}}}},
        )

        assert available_architectures("react", templates_dir, config) == [
            ("atomic", "Atomic Design"),
            ("mvc", "Mvc"),
            ("feature-sliced", "Feature Sliced"),
        ]
