"""
Output rendering and formatting of scan results.
"""

import os
import sys
from typing import Iterable, TextIO

from .models import STATUS_MULTIPLE_VERSIONS, UNKNOWN_VERSION, ToolInfo
from .rules import CATEGORY_ORDER, ToolRule


# Environment options
USE_EMOJI = os.environ.get("DEV_JANITOR_EMOJI", "1") == "1"
USE_COLOR = os.environ.get("DEV_JANITOR_COLOR", "1") == "1" and not os.environ.get("NO_COLOR")

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
DIM = "\033[2m"
RESET = "\033[0m"

CATEGORY_ICON = {
    "runtime": "⚙️", "package_manager": "📦", "version_manager": "🔀", "build_tool": "🔨",
    "version_control": "📝", "container": "🐳", "ai_cli": "🤖", "custom": "🧩",
}
CATEGORY_DESC = {
    "runtime": "Runtimes",
    "package_manager": "Package Managers",
    "version_manager": "Version Managers",
    "build_tool": "Build Tools",
    "version_control": "Version Control",
    "container": "Containers & Infrastructure",
    "ai_cli": "AI CLI Assistants",
    "custom": "Custom Tools",
}


def status_icon(status: str) -> str:
    """Get status icon for a tool.

    Args:
        status: ToolInfo status ("installed" or "multiple_versions")

    Returns:
        Status icon string
    """
    if status == STATUS_MULTIPLE_VERSIONS:
        return "⚠️" if USE_EMOJI else "!"
    return "✅" if USE_EMOJI else "✓"


def colorize(text: str, color: str) -> str:
    """Apply color to text.

    Args:
        text: Text to colorize
        color: ANSI color code

    Returns:
        Colored text or plain text if colors disabled
    """
    if not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def _category_key(category: str) -> int:
    try:
        return CATEGORY_ORDER.index(category)
    except ValueError:
        return len(CATEGORY_ORDER)


def group_by_category(tools: Iterable[ToolInfo]) -> list[tuple[str, list[ToolInfo]]]:
    """Group tools by category in CATEGORY_ORDER, unknown categories last."""
    categorized: dict[str, list[ToolInfo]] = {}
    for tool in tools:
        categorized.setdefault(tool.category, []).append(tool)
    return [
        (cat, categorized[cat])
        for cat in sorted(categorized, key=lambda c: (_category_key(c), c))
    ]


def render_table(tools: list[ToolInfo], out: TextIO | None = None) -> None:
    """Render tools as a pipe-delimited table grouped by category.

    One row per installation; shadow installs are indented under the active one.

    Args:
        tools: Detection results
        out: Output stream (defaults to stdout)
    """
    out = out or sys.stdout
    headers = ("state", "tool", "version", "path")
    print("|".join(headers), file=out)

    for cat, cat_tools in group_by_category(tools):
        icon = CATEGORY_ICON.get(cat, "📦")
        desc = CATEGORY_DESC.get(cat, cat)
        print(f"# {icon} {desc} ({len(cat_tools)} tools)", file=out)
        for tool in cat_tools:
            _render_tool_rows(tool, out)


def _render_tool_rows(tool: ToolInfo, out: TextIO) -> None:
    icon = status_icon(tool.status)
    for index, version in enumerate(tool.versions):
        if version.version == UNKNOWN_VERSION:
            color = BLUE
        elif version.is_active:
            color = GREEN
        else:
            color = YELLOW

        marker = " *" if version.is_active else ""
        version_display = colorize(version.version, color) + marker
        if index == 0:
            row = (icon, tool.name, version_display, version.path)
        else:
            row = ("", "  ↳", version_display, colorize(version.path, DIM))
        print("|".join(row), file=out)


def render_rules(rules: Iterable[ToolRule], out: TextIO | None = None) -> None:
    """Print the detection rules without probing anything."""
    out = out or sys.stdout
    print("|".join(("id", "name", "category", "commands", "version_args")), file=out)
    for rule in rules:
        print(
            "|".join((
                rule.id,
                rule.name,
                rule.category,
                ",".join(rule.candidates),
                " ".join(rule.version_args),
            )),
            file=out,
        )


def print_summary(tools: list[ToolInfo], out: TextIO | None = None) -> None:
    """Print summary line.

    Args:
        tools: Detection results
        out: Output stream (defaults to stderr)
    """
    out = out or sys.stderr
    multiple = sum(1 for t in tools if t.status == STATUS_MULTIPLE_VERSIONS)
    unknown = sum(1 for t in tools for v in t.versions if v.version == UNKNOWN_VERSION)

    parts = [f"{len(tools)} tools", f"{multiple} with multiple versions"]
    if unknown:
        parts.append(f"{unknown} unknown versions")

    print(f"\nInventory: {', '.join(parts)}", file=out)
