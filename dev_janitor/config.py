"""
Configuration file parsing and management.

Supports YAML configuration files (JSON for *.json paths).
Merges configurations from multiple sources (custom → project → user → defaults).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any

import yaml

from .common import vlog


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".dev-janitor.yml",                                      # Project root (highest priority)
    ".dev-janitor.yaml",                                     # Alternative extension
    os.path.expanduser("~/.config/dev-janitor/config.yml"),  # User global
    os.path.expanduser("~/.config/dev-janitor/config.yaml"),
]

DEFAULT_TIMEOUT_SECONDS = 5
DEFAULT_MAX_WORKERS = 16


def _as_tuple(value: Any, key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    """
    Normalize a YAML scalar or list into a tuple of strings.

    Args:
        value: Raw value from the config file
        key: Config key, for error messages
        default: Result when the value is missing

    Returns:
        Tuple of strings (a single string becomes a one-item tuple)

    Raises:
        TypeError: If the value is neither a string nor a list
    """
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"'{key}' must be a string or a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class ToolRuleConfig:
    """
    User-defined detection rule.

    Attributes:
        name: Display name (defaults to the tool id)
        category: Rule category
        candidates: Executable names to probe, in priority order
        version_args: Arguments that make the tool print its version
        version_pattern: Regex with one capture group, or None for the generic fallback
    """
    name: str = ""
    category: str = "custom"
    candidates: tuple[str, ...] = ()
    version_args: tuple[str, ...] = ("--version",)
    version_pattern: str | None = None

    @staticmethod
    def from_dict(tool_id: str, data: dict[str, Any]) -> ToolRuleConfig:
        """Create ToolRuleConfig from dictionary."""
        pattern = data.get("version_pattern")
        if pattern is not None and not isinstance(pattern, str):
            raise TypeError(f"Tool '{tool_id}': version_pattern must be a string")
        return ToolRuleConfig(
            name=data.get("name") or tool_id,
            category=data.get("category", "custom"),
            candidates=_as_tuple(data.get("candidates"), "candidates") or (tool_id,),
            version_args=_as_tuple(data.get("version_args"), "version_args", ("--version",)),
            version_pattern=pattern,
        )


@dataclass(frozen=True)
class Preferences:
    """
    Scan behaviour preferences.

    Attributes:
        timeout_seconds: Upper bound for a single version probe
        max_workers: Maximum number of parallel detector workers
    """
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self):
        """Validate preferences after initialization."""
        if self.timeout_seconds < 1 or self.timeout_seconds > 60:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 60"
            )

        if self.max_workers < 1 or self.max_workers > 32:
            raise ValueError(
                f"Invalid max_workers: {self.max_workers}. "
                "Must be between 1 and 32"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Preferences:
        """Create Preferences from dictionary."""
        return Preferences(
            timeout_seconds=data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            max_workers=data.get("max_workers", DEFAULT_MAX_WORKERS),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for dev-janitor.

    Attributes:
        version: Config schema version
        tools: Custom detection rules keyed by tool id
        disabled: Tool ids excluded from scans
        shadow_paths: Extra install directories (glob patterns) per tool id
        preferences: Global preferences
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    tools: dict[str, ToolRuleConfig] = field(default_factory=dict)
    disabled: tuple[str, ...] = ()
    shadow_paths: dict[str, tuple[str, ...]] = field(default_factory=dict)
    preferences: Preferences = field(default_factory=Preferences)
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        tools_data = data.get("tools") or {}
        if not isinstance(tools_data, dict):
            raise TypeError("'tools' must be a mapping of tool id to rule")
        tools = {}
        for tool_id, rule in tools_data.items():
            if rule is not None and not isinstance(rule, dict):
                raise TypeError(f"Rule for tool '{tool_id}' must be a mapping")
            tools[tool_id] = ToolRuleConfig.from_dict(tool_id, rule or {})

        shadow_data = data.get("shadow_paths") or {}
        if not isinstance(shadow_data, dict):
            raise TypeError("'shadow_paths' must be a mapping of tool id to directories")
        shadow_paths = {
            tool_id: _as_tuple(paths, f"shadow_paths.{tool_id}")
            for tool_id, paths in shadow_data.items()
        }

        preferences_data = data.get("preferences") or {}
        if not isinstance(preferences_data, dict):
            raise TypeError("'preferences' must be a mapping")
        preferences = Preferences.from_dict(preferences_data)

        return Config(
            version=data.get("version", 1),
            tools=tools,
            disabled=_as_tuple(data.get("disabled"), "disabled"),
            shadow_paths=shadow_paths,
            preferences=preferences,
            source=source,
        )

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        merged_tools = dict(other.tools)
        merged_tools.update(self.tools)

        merged_shadow = dict(other.shadow_paths)
        merged_shadow.update(self.shadow_paths)

        merged_disabled = tuple(dict.fromkeys(self.disabled + other.disabled))

        merged_preferences = Preferences(
            timeout_seconds=(
                self.preferences.timeout_seconds
                if self.preferences.timeout_seconds != DEFAULT_TIMEOUT_SECONDS
                else other.preferences.timeout_seconds
            ),
            max_workers=(
                self.preferences.max_workers
                if self.preferences.max_workers != DEFAULT_MAX_WORKERS
                else other.preferences.max_workers
            ),
        )

        return Config(
            version=self.version,
            tools=merged_tools,
            disabled=merged_disabled,
            shadow_paths=merged_shadow,
            preferences=merged_preferences,
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load JSON configuration file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    if file_path.endswith(".json"):
        data = _load_json(file_path)
    else:
        data = _load_yaml(file_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. Project .dev-janitor.yml
    3. User ~/.config/dev-janitor/config.yml
    4. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)
        vlog(f"Using custom config: {custom_path}", verbose)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)
            vlog(f"Found config at: {location}", verbose)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    # Merge configs (first config has highest priority)
    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config, known_ids: set[str] | None = None) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: Config object to validate
        known_ids: Ids of the built-in rules

    Returns:
        List of validation warning messages (empty if valid)
    """
    from .catalog import check_pattern

    warnings = []
    known = set(known_ids or ()) | set(config.tools)

    for tool_id in config.disabled:
        if known_ids is not None and tool_id not in known:
            warnings.append(f"Disabled tool '{tool_id}' is not a known tool id")

    for tool_id, rule in config.tools.items():
        if not rule.candidates:
            warnings.append(f"Tool '{tool_id}': no candidate commands")
        problem = check_pattern(rule.version_pattern)
        if problem:
            warnings.append(f"Tool '{tool_id}': version_pattern {problem}")

    for tool_id, paths in config.shadow_paths.items():
        if not paths:
            warnings.append(f"Empty shadow path list for {tool_id}")

    return warnings
