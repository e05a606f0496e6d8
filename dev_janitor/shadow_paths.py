"""
Install locations outside the executable search path.

Version managers and vendor installers keep additional copies of runtimes in
well-known directories that PATH never sees. SHADOW_LOCATIONS maps a tool id
to those directories so the detector can report every copy on the machine.

Base templates use ``{VAR}`` placeholders filled from the environment; the
first template whose variables are all set wins. ``{HOME}`` falls back to
the user's home directory.
"""

from __future__ import annotations

import glob
import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)

WINDOWS = frozenset({"win32"})
POSIX = frozenset({"posix"})

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class ShadowLocation:
    """
    One family of alternate install directories.

    Attributes:
        bases: Base directory templates, tried in order
        pattern: Glob below the base that matches directories holding the executable
        platforms: Platform keys ("win32", "posix") the location applies to
    """
    bases: tuple[str, ...]
    pattern: str = ""
    platforms: frozenset[str] = WINDOWS


SHADOW_LOCATIONS: dict[str, tuple[ShadowLocation, ...]] = {
    "python": (
        ShadowLocation(("{LOCALAPPDATA}",), "Programs/Python/Python3*"),
        ShadowLocation(("{LOCALAPPDATA}",), "Python/Python3*"),
        ShadowLocation(("{USERPROFILE}",), "Anaconda3"),
        ShadowLocation(("{USERPROFILE}",), "Miniconda3"),
        ShadowLocation(("{PYENV_ROOT}", "{USERPROFILE}/.pyenv/pyenv-win"), "versions/*"),
        ShadowLocation(("{PYENV_ROOT}", "{HOME}/.pyenv"), "versions/*/bin", POSIX),
        ShadowLocation(("{HOME}",), "miniconda3/bin", POSIX),
        ShadowLocation(("{HOME}",), "anaconda3/bin", POSIX),
    ),
    "node": (
        ShadowLocation(("{NVM_HOME}", "{LOCALAPPDATA}/nvm"), "v*"),
        ShadowLocation(("{NVM_DIR}", "{HOME}/.nvm"), "versions/node/*/bin", POSIX),
    ),
    "java": (
        ShadowLocation(("{ProgramFiles}", "C:/Program Files"), "Java/*/bin"),
        ShadowLocation(("/usr/lib/jvm",), "*/bin", POSIX),
        ShadowLocation(("/Library/Java/JavaVirtualMachines",), "*/Contents/Home/bin", POSIX),
        ShadowLocation(("{SDKMAN_DIR}", "{HOME}/.sdkman"), "candidates/java/*/bin", POSIX),
    ),
}


def platform_key(platform: str | None = None) -> str:
    platform = platform or sys.platform
    return "win32" if platform == "win32" else "posix"


def _home(environ: Mapping[str, str]) -> str:
    return environ.get("HOME") or environ.get("USERPROFILE") or str(Path.home())


def expand_base(template: str, environ: Mapping[str, str]) -> str | None:
    """Fill ``{VAR}`` placeholders of a base template.

    Args:
        template: Base directory template
        environ: Environment to read variables from

    Returns:
        Expanded path, or None if a referenced variable is unset
    """
    missing = False

    def _sub(match: re.Match) -> str:
        nonlocal missing
        name = match.group(1)
        if name == "HOME":
            return _home(environ)
        value = environ.get(name, "")
        if not value:
            missing = True
        return value

    expanded = _PLACEHOLDER_RE.sub(_sub, template)
    return None if missing else expanded


def _matching_dirs(pattern: str) -> list[str]:
    if glob.has_magic(pattern):
        candidates = sorted(glob.glob(pattern))
    else:
        candidates = [pattern]
    return [os.path.normpath(c) for c in candidates if os.path.isdir(c)]


def shadow_directories(
    tool_id: str,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
    extra: Iterable[str] = (),
) -> list[str]:
    """List existing alternate install directories for a tool.

    Args:
        tool_id: Rule id
        environ: Environment to expand templates with (defaults to os.environ)
        platform: Platform string as in sys.platform (defaults to the running platform)
        extra: Additional directories or glob patterns, e.g. from user configuration

    Returns:
        Existing directories, without duplicates, in lookup order
    """
    environ = os.environ if environ is None else environ
    key = platform_key(platform)

    patterns: list[str] = []
    for location in SHADOW_LOCATIONS.get(tool_id, ()):
        if key not in location.platforms:
            continue
        base = next(
            (b for b in (expand_base(t, environ) for t in location.bases) if b),
            None,
        )
        if base is None:
            continue
        patterns.append(os.path.join(base, location.pattern) if location.pattern else base)

    directories = expand_directories([*patterns, *extra])
    if directories:
        logger.debug(f"Shadow directories for {tool_id}: {directories}")
    return directories


def expand_directories(patterns: Iterable[str]) -> list[str]:
    """Expand directory paths or glob patterns to existing directories.

    Args:
        patterns: Paths or glob patterns; ``~`` is expanded

    Returns:
        Existing directories, without duplicates, in pattern order
    """
    directories: list[str] = []
    for pattern in patterns:
        for directory in _matching_dirs(os.path.expanduser(pattern)):
            if directory not in directories:
                directories.append(directory)
    return directories
