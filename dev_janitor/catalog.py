"""
Rule catalog loading.

Detection rules ship as JSON files under catalog_data/, one file per
category. The catalog is read once; the resulting rules are immutable.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_DIR = Path(__file__).parent / "catalog_data"


def check_pattern(pattern: str | None) -> str | None:
    """Check that a version pattern compiles and has exactly one capture group.

    Args:
        pattern: Regular expression or None

    Returns:
        Description of the problem, or None if the pattern is usable
    """
    if pattern is None:
        return None
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        return f"does not compile ({e})"
    if compiled.groups != 1:
        return f"has {compiled.groups} capture groups, expected 1"
    return None


@dataclass
class ToolCatalogEntry:
    """Tool catalog entry from a catalog_data/*.json file."""

    id: str
    name: str = ""
    category: str = ""
    candidates: list[str] = field(default_factory=list)
    version_args: list[str] = field(default_factory=lambda: ["--version"])
    version_pattern: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], category: str = "") -> "ToolCatalogEntry":
        """Create from catalog JSON data."""
        tool_id = data.get("id", "")
        return cls(
            id=tool_id,
            name=data.get("name") or tool_id,
            category=data.get("category") or category or "other",
            candidates=list(data.get("candidates") or [tool_id]),
            version_args=list(data.get("version_args", ["--version"])),
            version_pattern=data.get("version_pattern"),
        )

    def to_rule(self) -> "ToolRule":
        """Convert catalog entry to ToolRule instance.

        Returns:
            ToolRule instance
        """
        from dev_janitor.rules import ToolRule

        return ToolRule(
            id=self.id,
            name=self.name,
            category=self.category,
            candidates=tuple(self.candidates),
            version_args=tuple(self.version_args),
            version_pattern=self.version_pattern,
        )


class ToolCatalog:
    """Manages detection rules from the catalog_data/ directory."""

    def __init__(self, catalog_dir: str | Path | None = None):
        """Initialize catalog manager.

        Args:
            catalog_dir: Path to catalog directory (defaults to the packaged catalog_data/)

        Raises:
            ValueError: If two entries share an id
        """
        if catalog_dir is None:
            self.catalog_dir = DEFAULT_CATALOG_DIR
        else:
            self.catalog_dir = Path(catalog_dir)

        self._entries: dict[str, ToolCatalogEntry] = {}
        self._load_catalog()

    def _load_catalog(self) -> None:
        """Load all catalog_data/*.json files."""
        if not self.catalog_dir.exists():
            logger.warning(f"Catalog directory not found: {self.catalog_dir}")
            return

        for json_file in sorted(self.catalog_dir.glob("*.json")):
            try:
                with open(json_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to load {json_file}: {e}")
                continue

            category = data.get("category", json_file.stem)
            for raw in data.get("rules", []):
                entry = ToolCatalogEntry.from_dict(raw, category=category)
                if not entry.id:
                    logger.error(f"Skipping rule without id in {json_file.name}")
                    continue
                if entry.id in self._entries:
                    raise ValueError(f"Duplicate tool id '{entry.id}' in {json_file.name}")

                problem = check_pattern(entry.version_pattern)
                if problem:
                    logger.warning(f"Version pattern for {entry.id} {problem}; it will never match")

                self._entries[entry.id] = entry
                logger.debug(f"Loaded catalog entry: {entry.id}")

        logger.debug(f"Loaded {len(self._entries)} catalog entries")

    def all_rules(self) -> list["ToolRule"]:
        """Get all entries as ToolRule instances.

        Returns:
            List of ToolRule instances in catalog order
        """
        return [entry.to_rule() for entry in self._entries.values()]
