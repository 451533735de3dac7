"""RuleKit: Stack-aware rule scaffolding for AI coding assistants."""

__version__ = "0.1.0"

from .config import KitConfigStore, load_kit_config
from .emitter import destination_name, emit_rule
from .exceptions import RuleKitError
from .frontmatter import parse_front_matter, resolve_front_matter
from .generator import RuleGenerator
from .install import install_rules
from .models import KitConfig, ProjectContext
from .templating import substitute
from .versions import detect_version, map_version_to_range

__all__ = [
    "KitConfig",
    "KitConfigStore",
    "ProjectContext",
    "RuleGenerator",
    "RuleKitError",
    "destination_name",
    "detect_version",
    "emit_rule",
    "install_rules",
    "load_kit_config",
    "map_version_to_range",
    "parse_front_matter",
    "resolve_front_matter",
    "substitute",
]
