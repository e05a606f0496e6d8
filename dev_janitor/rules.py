"""
Tool detection rules.

The built-in rule table is loaded from the packaged catalog once, at import
time, and never mutated afterwards; detector threads share it read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .config import Config


@dataclass(frozen=True)
class ToolRule:
    """How to detect one logical development tool."""
    id: str
    name: str
    category: str
    candidates: tuple[str, ...]  # Executable names, highest priority first
    version_args: tuple[str, ...] = ("--version",)
    version_pattern: str | None = None  # One capture group; None = generic dotted number

    def __post_init__(self):
        if not self.candidates:
            raise ValueError(f"Rule {self.id} needs at least one candidate command")

    @property
    def primary_command(self) -> str:
        return self.candidates[0]


# Load rules from catalog (single source of truth)
from dev_janitor.catalog import ToolCatalog  # noqa: E402

_catalog = ToolCatalog()
RULES: tuple[ToolRule, ...] = tuple(_catalog.all_rules())

# Rule lookup map for fast access
RULE_MAP: dict[str, ToolRule] = {r.id: r for r in RULES}

# Category order for grouping
CATEGORY_ORDER: tuple[str, ...] = (
    "runtime",
    "package_manager",
    "version_manager",
    "build_tool",
    "version_control",
    "container",
    "ai_cli",
    "custom",
    "other",
)


def get_rule(tool_id: str) -> ToolRule | None:
    """Get a built-in rule by id.

    Args:
        tool_id: Tool id

    Returns:
        ToolRule or None if not found
    """
    return RULE_MAP.get(tool_id)


def all_rules() -> list[ToolRule]:
    """Get all built-in rules in catalog order."""
    return list(RULES)


def filter_rules(
    ids: Iterable[str] | None = None,
    categories: Iterable[str] | None = None,
    rules: Iterable[ToolRule] | None = None,
) -> list[ToolRule]:
    """Filter rules by id and/or category.

    Args:
        ids: Tool ids to keep (case-insensitive); None keeps all
        categories: Categories to keep (case-insensitive); None keeps all
        rules: Rules to filter (defaults to the built-in rules)

    Returns:
        List of matching rules in original order
    """
    source = RULES if rules is None else tuple(rules)
    id_set = {i.lower() for i in ids} if ids else None
    category_set = {c.lower() for c in categories} if categories else None
    return [
        r for r in source
        if (id_set is None or r.id.lower() in id_set)
        and (category_set is None or r.category.lower() in category_set)
    ]


def build_rules(config: Config | None = None) -> tuple[ToolRule, ...]:
    """Combine the built-in rules with user configuration.

    Custom rules replace built-in rules of the same id and are otherwise
    appended; disabled ids are dropped.

    Args:
        config: Loaded configuration (None returns the built-in rules)

    Returns:
        Tuple of rules to scan
    """
    if config is None:
        return RULES

    custom = {
        tool_id: ToolRule(
            id=tool_id,
            name=rc.name or tool_id,
            category=rc.category,
            candidates=rc.candidates,
            version_args=rc.version_args,
            version_pattern=rc.version_pattern,
        )
        for tool_id, rc in config.tools.items()
    }

    combined = [custom.pop(r.id, r) for r in RULES]
    combined.extend(custom.values())

    disabled = set(config.disabled)
    return tuple(r for r in combined if r.id not in disabled)
