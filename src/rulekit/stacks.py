"""Declarative per-stack descriptors and stack discovery."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import KitConfig, ProjectContext

# Option values that mean "not selected"
_UNSET_VALUES = (None, False, "", "none")


@dataclass(frozen=True)
class Manifest:
    """Where a stack declares its framework dependency."""

    filename: str
    section: str
    package: str


MANIFESTS: dict[str, Manifest] = {
    "laravel": Manifest("composer.json", "require", "laravel/framework"),
    "nextjs": Manifest("package.json", "dependencies", "next"),
    "react": Manifest("package.json", "dependencies", "react"),
    "angular": Manifest("package.json", "dependencies", "@angular/core"),
    "vue": Manifest("package.json", "dependencies", "vue"),
    "nuxt": Manifest("package.json", "dependencies", "nuxt"),
    "astro": Manifest("package.json", "dependencies", "astro"),
    "nestjs": Manifest("package.json", "dependencies", "@nestjs/core"),
    "react-native": Manifest("package.json", "dependencies", "react-native"),
}


@dataclass(frozen=True)
class TierSpec:
    """One template tier of a stack.

    ``path`` and ``prefix`` are format strings filled from the run's option
    values (``stack``, ``architecture``, ``version_range``,
    ``detected_version``, ``state_management``). String values in ``meta``
    are formatted the same way.
    """

    name: str
    path: str
    prefix: str = ""
    requires: str | None = None
    meta: tuple[tuple[str, Any], ...] = ()

    def source_subpath(self, values: Mapping[str, Any]) -> str:
        """Template directory relative to ``stacks/<stack>/``."""
        return self.path.format(**values)

    def file_prefix(self, values: Mapping[str, Any]) -> str:
        """Prefix added to destination filenames of this tier."""
        return self.prefix.format(**values)

    def extra_meta(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Front-matter keys contributed by this tier."""
        return {
            key: value.format(**values) if isinstance(value, str) else value
            for key, value in self.meta
        }


BASE_TIER = TierSpec("base", "base")
VERSION_TIER = TierSpec("version", "{version_range}", requires="version_range")
ARCHITECTURE_TIER = TierSpec(
    "architecture",
    "architectures/{architecture}",
    prefix="architecture-{architecture}-",
    requires="architecture",
    meta=(("architecture", "{architecture}"),),
)
TESTING_TIER = TierSpec(
    "testing",
    "testing",
    prefix="testing-",
    meta=(("testing", True),),
)
STATE_TIER = TierSpec(
    "state",
    "state-management/{state_management}",
    prefix="state-{state_management}-",
    requires="state_management",
    meta=(("stateManagement", "{state_management}"),),
)
SIGNALS_TIER = TierSpec(
    "signals",
    "signals",
    prefix="signals-",
    requires="signals",
    meta=(("signals", True),),
)
PREFIXED_VERSION_TIER = TierSpec(
    "version",
    "{version_range}",
    prefix="version-{detected_version}-",
    requires="version_range",
)

DEFAULT_TIERS = (BASE_TIER, VERSION_TIER, ARCHITECTURE_TIER)


@dataclass(frozen=True)
class StackDescriptor:
    """Tier layout of a stack's template hierarchy."""

    name: str
    tiers: tuple[TierSpec, ...] = DEFAULT_TIERS
    architecture_aliases: Mapping[str, tuple[str, ...]] = field(
        default_factory=dict,
    )

    def variants(
        self,
        tier: TierSpec,
        context: ProjectContext,
    ) -> Iterator[dict[str, Any]]:
        """Yield the option values for each applicable instance of a tier.

        A tier whose required option is unset yields nothing; an
        architecture alias yields once per architecture it stands for.
        """
        values: dict[str, Any] = {
            "stack": self.name,
            "architecture": context.architecture,
            "version_range": context.version_range,
            "detected_version": context.detected_version,
            "state_management": context.state_management,
            "signals": context.signals,
        }
        if tier.requires is not None and values.get(tier.requires) in _UNSET_VALUES:
            return

        if tier.requires == "architecture":
            architecture = values["architecture"]
            for name in self.architecture_aliases.get(architecture, (architecture,)):
                yield {**values, "architecture": name}
            return

        yield values


STACK_DESCRIPTORS: dict[str, StackDescriptor] = {
    "laravel": StackDescriptor("laravel"),
    "nextjs": StackDescriptor(
        "nextjs",
        architecture_aliases={"hybrid": ("app", "pages")},
    ),
    "react": StackDescriptor(
        "react",
        tiers=(BASE_TIER, VERSION_TIER, ARCHITECTURE_TIER, TESTING_TIER, STATE_TIER),
    ),
    "angular": StackDescriptor(
        "angular",
        tiers=(
            BASE_TIER,
            PREFIXED_VERSION_TIER,
            ARCHITECTURE_TIER,
            TESTING_TIER,
            SIGNALS_TIER,
        ),
    ),
}


def descriptor_for(stack: str) -> StackDescriptor:
    """Get the descriptor for a stack, defaulting to base/version/architecture."""
    return STACK_DESCRIPTORS.get(stack) or StackDescriptor(stack)


def available_stacks(templates_dir: Path, kit_config: KitConfig) -> list[str]:
    """List stacks with template directories, then stacks only in config."""
    stacks_dir = Path(templates_dir) / "stacks"
    stacks: list[str] = []
    if stacks_dir.is_dir():
        stacks = sorted(p.name for p in stacks_dir.iterdir() if p.is_dir())

    for name in kit_config.stacks:
        if name not in stacks:
            stacks.append(name)
    return stacks


def format_architecture_name(key: str) -> str:
    """Fallback display name for an architecture key."""
    return " ".join(word.capitalize() for word in key.split("-"))


def available_architectures(
    stack: str,
    templates_dir: Path,
    kit_config: KitConfig,
) -> list[tuple[str, str]]:
    """List a stack's architectures as (key, display name) pairs.

    Architectures declared in the config come first, followed by any
    additional template directories.
    """
    stack_config = kit_config.stack(stack)
    declared = stack_config.architectures if stack_config else {}
    keys = list(declared)

    arch_dir = Path(templates_dir) / "stacks" / stack / "architectures"
    if arch_dir.is_dir():
        for path in sorted(arch_dir.iterdir()):
            if path.is_dir() and path.name not in keys:
                keys.append(path.name)

    result = []
    for key in keys:
        arch = declared.get(key)
        result.append((key, (arch.name if arch else None) or format_architecture_name(key)))
    return result
