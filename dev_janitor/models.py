"""
Detection results.

ToolVersion and ToolInfo are created fresh by every scan and handed to the
caller; nothing here is cached or shared between scans.
"""

from __future__ import annotations

from dataclasses import dataclass

STATUS_INSTALLED = "installed"
STATUS_MULTIPLE_VERSIONS = "multiple_versions"

UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True)
class ToolVersion:
    """
    One installation of a tool.

    Attributes:
        version: Extracted version, or "unknown" when the output had none
        path: Absolute path of the executable that reported the version
        is_active: Whether this is the installation the search path invokes
    """
    version: str
    path: str
    is_active: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "path": self.path,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class ToolInfo:
    """
    Detection result for one rule.

    Attributes:
        id: Rule id
        name: Display name
        category: Rule category
        versions: Installations in discovery order (search path first, then shadow paths)
    """
    id: str
    name: str
    category: str
    versions: tuple[ToolVersion, ...]

    def __post_init__(self):
        if not self.versions:
            raise ValueError(f"ToolInfo for {self.id} needs at least one version")
        if sum(1 for v in self.versions if v.is_active) > 1:
            raise ValueError(f"ToolInfo for {self.id} has more than one active version")

    @property
    def status(self) -> str:
        if len(self.versions) > 1:
            return STATUS_MULTIPLE_VERSIONS
        return STATUS_INSTALLED

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "versions": [v.to_dict() for v in self.versions],
            "status": self.status,
        }
