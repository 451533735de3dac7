"""Tests for version detection and range mapping."""

import json
import tempfile
from pathlib import Path

import pytest

from rulekit.models import KitConfig
from rulekit.versions import (
    available_versions,
    detect_stack_version,
    detect_version,
    format_version_name,
    map_version_to_range,
)


@pytest.fixture
def kit_config() -> KitConfig:
    """Kit config with both version_ranges forms."""
    return KitConfig.from_document(
        {
            "laravel": {
                "version_ranges": {
                    "10": {"range_name": "v10-11", "name": "Laravel 10-11"},
                    "11": {"range_name": "v10-11", "name": "Laravel 10-11"},
                    "9": "v9",
                },
            },
        },
    )


class TestDetectVersion:
    """Test major version extraction."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("^10.4.2", "10"),
            ("~2", "2"),
            ("v012.1", "12"),
            (">=17.0.0 <18", "17"),
            ("next", None),
            ("", None),
            (None, None),
        ],
    )
    def test_first_integer_wins(self, raw: str | None, expected: str | None) -> None:
        """Test that only the first run of digits matters."""
        assert detect_version(raw) == expected


class TestDetectStackVersion:
    """Test reading the framework version from project manifests."""

    @pytest.fixture
    def project_dir(self) -> Path:
        """Create an empty project directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    def test_laravel_reads_composer_require(self, project_dir: Path) -> None:
        """Test composer.json lookup for Laravel."""
        (project_dir / "composer.json").write_text(
            json.dumps({"require": {"laravel/framework": "^11.0"}}),
            encoding="utf-8",
        )

        assert detect_stack_version("laravel", project_dir) == "11"

    def test_angular_reads_package_dependencies(self, project_dir: Path) -> None:
        """Test package.json lookup for a scoped package."""
        (project_dir / "package.json").write_text(
            json.dumps({"dependencies": {"@angular/core": "~17.3.0"}}),
            encoding="utf-8",
        )

        assert detect_stack_version("angular", project_dir) == "17"

    def test_missing_manifest(self, project_dir: Path) -> None:
        """Test that a missing manifest yields no version."""
        assert detect_stack_version("react", project_dir, debug=True) is None

    def test_malformed_manifest(self, project_dir: Path) -> None:
        """Test that an unparseable manifest yields no version."""
        (project_dir / "package.json").write_text("{", encoding="utf-8")

        assert detect_stack_version("react", project_dir) is None

    def test_missing_dependency(self, project_dir: Path) -> None:
        """Test that an undeclared framework yields no version."""
        (project_dir / "package.json").write_text(
            json.dumps({"devDependencies": {"react": "^18.0.0"}}),
            encoding="utf-8",
        )

        assert detect_stack_version("react", project_dir) is None

    def test_unknown_stack(self, project_dir: Path) -> None:
        """Test a stack without a manifest definition."""
        assert detect_stack_version("django", project_dir) is None


class TestVersionRanges:
    """Test range mapping and display names."""

    def test_maps_object_entry_to_range_name(self, kit_config: KitConfig) -> None:
        """Test the object form of a version_ranges entry."""
        assert map_version_to_range("laravel", "10", kit_config) == "v10-11"

    def test_maps_string_entry_as_is(self, kit_config: KitConfig) -> None:
        """Test the legacy string form of a version_ranges entry."""
        assert map_version_to_range("laravel", "9", kit_config) == "v9"

    def test_absent_key_has_no_range(self, kit_config: KitConfig) -> None:
        """Test that there is no nearest-match fallback."""
        assert map_version_to_range("laravel", "12", kit_config) is None
        assert map_version_to_range("laravel", None, kit_config) is None
        assert map_version_to_range("react", "18", kit_config) is None

    def test_format_version_name(self, kit_config: KitConfig) -> None:
        """Test display names from config and the fallback."""
        assert format_version_name("laravel", "v10-11", kit_config) == "Laravel 10-11"
        assert format_version_name("laravel", "10", kit_config) == "Laravel 10-11"
        assert format_version_name("laravel", "v9", kit_config) == "Laravel v9"
        assert format_version_name("react", "v18", kit_config) == "React v18"
        assert format_version_name("react", None, kit_config) is None

    def test_available_versions(self, kit_config: KitConfig) -> None:
        """Test listing declared major versions."""
        assert available_versions("laravel", kit_config) == ["10", "11", "9"]
        assert available_versions("react", kit_config) == []
