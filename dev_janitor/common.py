"""
Common utilities shared across dev_janitor modules.
"""

from __future__ import annotations

import os
import sys


def is_windows() -> bool:
    return sys.platform == "win32"


def env_int(name: str, default: int) -> int:
    """
    Read an integer setting from the environment.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset or not an integer

    Returns:
        Parsed integer
    """
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or os.environ.get("DEV_JANITOR_DEBUG", "0") == "1":
        from .logging_config import get_logger
        get_logger().info(msg)
