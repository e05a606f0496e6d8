"""
Dev Janitor - inventory of locally installed development tools.

Core Modules:
- Command Runner: bounded, platform-neutral execution of version probes
- Detection: search-path resolution, version extraction, per-rule detection
- Rule Catalog: immutable detection rules loaded from catalog_data/
- Shadow Paths: install locations outside PATH
- Scanner: parallel scan over all rules
"""

__version__ = "2.0.0"

VERSION = __version__

# Results
from .models import (
    ToolVersion,
    ToolInfo,
    STATUS_INSTALLED,
    STATUS_MULTIPLE_VERSIONS,
    UNKNOWN_VERSION,
)

# Rule catalog
from .catalog import ToolCatalog, ToolCatalogEntry
from .rules import (
    ToolRule,
    RULES,
    CATEGORY_ORDER,
    all_rules,
    build_rules,
    filter_rules,
    get_rule,
)

# Detection engine
from .runner import CommandResult, run_command
from .detection import (
    resolve_command,
    extract_version,
    select_output,
    probe_version,
    detect_tool,
)
from .shadow_paths import SHADOW_LOCATIONS, ShadowLocation, expand_directories, shadow_directories
from .scanner import scan_all, get_tool_info

# Foundation
from .config import Config, Preferences, ToolRuleConfig, load_config, load_config_file, validate_config
from .errors import DevJanitorError, CommandError, ToolNotFoundError
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    "VERSION",
    # Results
    "ToolVersion",
    "ToolInfo",
    "STATUS_INSTALLED",
    "STATUS_MULTIPLE_VERSIONS",
    "UNKNOWN_VERSION",
    # Rule catalog
    "ToolCatalog",
    "ToolCatalogEntry",
    "ToolRule",
    "RULES",
    "CATEGORY_ORDER",
    "all_rules",
    "build_rules",
    "filter_rules",
    "get_rule",
    # Detection engine
    "CommandResult",
    "run_command",
    "resolve_command",
    "extract_version",
    "select_output",
    "probe_version",
    "detect_tool",
    "SHADOW_LOCATIONS",
    "ShadowLocation",
    "shadow_directories",
    "expand_directories",
    "scan_all",
    "get_tool_info",
    # Foundation
    "Config",
    "Preferences",
    "ToolRuleConfig",
    "load_config",
    "load_config_file",
    "validate_config",
    "DevJanitorError",
    "CommandError",
    "ToolNotFoundError",
    "setup_logging",
    "get_logger",
]
