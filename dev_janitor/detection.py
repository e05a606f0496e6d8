"""
Local tool detection and version extraction.

detect_tool() runs one rule: every candidate command found on PATH is probed
in catalog order, then the rule's shadow directories. Failures of a single
probe never abort the rule.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from functools import lru_cache
from typing import Iterable, Sequence

from .errors import CommandError
from .models import UNKNOWN_VERSION, ToolInfo, ToolVersion
from .rules import ToolRule
from .runner import run_command
from .shadow_paths import expand_directories, shadow_directories

logger = logging.getLogger(__name__)

# Generic fallback when a rule has no pattern of its own
VERSION_RE = re.compile(r"(\d+\.\d+(?:\.\d+)?)")
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")


def resolve_command(command_name: str, path: str | None = None) -> str | None:
    """Find the executable a command name maps to.

    Args:
        command_name: Binary name to search for
        path: Search path to use instead of the PATH environment variable

    Returns:
        Absolute path to the executable, or None if not found
    """
    try:
        found = shutil.which(command_name, path=path)
    except (OSError, ValueError):
        return None
    return os.path.abspath(found) if found else None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern | None:
    try:
        compiled = re.compile(pattern)
    except re.error:
        return None
    # Without a group there is nothing to extract
    return compiled if compiled.groups >= 1 else None


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def select_output(stdout: str, stderr: str) -> str:
    """Pick the stream to search for a version.

    Tools such as ``java -version`` write to stderr. The streams are never
    concatenated so a number in one cannot be mistaken for a version in the
    other.
    """
    return stdout if stdout.strip() else stderr


def extract_version(text: str, pattern: str | None = None) -> str | None:
    """Extract a version number from command output.

    Args:
        text: Command output, possibly multi-line
        pattern: Regex whose first group captures the version; None uses VERSION_RE

    Returns:
        Version string, or None if nothing matched or the pattern is invalid
    """
    if not text:
        return None

    regex = VERSION_RE if pattern is None else _compile(pattern)
    if regex is None:
        return None

    m = regex.search(strip_ansi(text))
    if not m or not m.group(1):
        return None
    return m.group(1)


def probe_version(
    executable: str,
    version_args: Sequence[str],
    version_pattern: str | None,
    timeout: float | None = None,
) -> str | None:
    """Run an executable and read its version.

    Args:
        executable: Absolute path to the executable
        version_args: Arguments that print the version
        version_pattern: Extraction pattern for the rule
        timeout: Timeout in seconds

    Returns:
        Version string, "unknown" if the output held no version, or None if
        the command failed to run, timed out or exited non-zero
    """
    try:
        result = run_command(executable, version_args, timeout)
    except CommandError as e:
        logger.debug(f"Probe failed: {e}")
        return None

    if not result.success:
        logger.debug(f"Probe of {executable} exited with {result.exit_code}")
        return None

    output = select_output(result.stdout, result.stderr)
    return extract_version(output, version_pattern) or UNKNOWN_VERSION


def _path_key(path: str) -> str:
    # Symlinked names (python -> python3) are the same installation
    return os.path.normcase(os.path.realpath(path))


def detect_tool(
    rule: ToolRule,
    timeout: float | None = None,
    shadow_dirs: Iterable[str] | None = None,
    extra_shadow_paths: Iterable[str] = (),
) -> ToolInfo | None:
    """Detect all installations of the tool described by a rule.

    Args:
        rule: Detection rule
        timeout: Per-probe timeout in seconds
        shadow_dirs: Alternate install directories (defaults to the Shadow Path Locator)
        extra_shadow_paths: User-configured directories or glob patterns, searched
            in addition to shadow_dirs

    Returns:
        ToolInfo, or None if no installation produced a version
    """
    versions: list[ToolVersion] = []
    seen: set[str] = set()

    for command in rule.candidates:
        path = resolve_command(command)
        if path is None:
            continue

        key = _path_key(path)
        if key in seen:
            continue
        seen.add(key)

        version = probe_version(path, rule.version_args, rule.version_pattern, timeout)
        if version is None:
            continue

        versions.append(ToolVersion(version=version, path=path, is_active=not versions))

    if shadow_dirs is None:
        shadow_dirs = shadow_directories(rule.id, extra=extra_shadow_paths)
    else:
        shadow_dirs = [*shadow_dirs, *expand_directories(extra_shadow_paths)]

    for directory in shadow_dirs:
        path = resolve_command(rule.primary_command, path=directory)
        if path is None:
            continue

        key = _path_key(path)
        if key in seen:
            continue
        seen.add(key)

        version = probe_version(path, rule.version_args, rule.version_pattern, timeout)
        if version is None:
            continue

        # Shadow installs are never what the search path invokes
        versions.append(ToolVersion(version=version, path=path, is_active=False))

    if not versions:
        logger.debug(f"{rule.id}: not installed")
        return None

    return ToolInfo(
        id=rule.id,
        name=rule.name,
        category=rule.category,
        versions=tuple(versions),
    )
