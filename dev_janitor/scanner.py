"""
Parallel scan over all detection rules.

Rules are independent, so each one runs on its own worker; results are only
aggregated after the workers finish and no state is shared between them.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable

from .common import env_int
from .config import DEFAULT_MAX_WORKERS, DEFAULT_TIMEOUT_SECONDS, Config
from .detection import detect_tool
from .errors import ToolNotFoundError
from .models import ToolInfo
from .rules import ToolRule, build_rules

logger = logging.getLogger(__name__)

MAX_WORKERS = env_int("DEV_JANITOR_MAX_WORKERS", 16)


def _settings(
    config: Config | None,
    timeout: float | None,
    max_workers: int | None,
) -> tuple[float | None, int]:
    """Resolve scan settings.

    Explicit arguments win, then preferences the config changed from their
    defaults, then the DEV_JANITOR_* environment variables. A timeout of None
    lets the Command Runner apply its own default.
    """
    if config is not None:
        prefs = config.preferences
        if timeout is None and prefs.timeout_seconds != DEFAULT_TIMEOUT_SECONDS:
            timeout = prefs.timeout_seconds
        if max_workers is None and prefs.max_workers != DEFAULT_MAX_WORKERS:
            max_workers = prefs.max_workers
    return timeout, max_workers or MAX_WORKERS


def scan_all(
    rules: Iterable[ToolRule] | None = None,
    timeout: float | None = None,
    max_workers: int | None = None,
    config: Config | None = None,
) -> list[ToolInfo]:
    """Detect every tool in the rule set.

    Args:
        rules: Rules to scan (defaults to the built-in rules adjusted by config)
        timeout: Per-probe timeout in seconds
        max_workers: Worker pool size
        config: Loaded configuration

    Returns:
        Installed tools sorted by id; tools that were not found are omitted
    """
    rule_list = list(build_rules(config) if rules is None else rules)
    if not rule_list:
        return []

    timeout, workers = _settings(config, timeout, max_workers)
    shadow_extra = config.shadow_paths if config is not None else {}
    total = len(rule_list)

    logger.debug(f"Scanning {total} rules with {min(workers, total)} workers")

    results: list[ToolInfo] = []
    completed = 0
    with ThreadPoolExecutor(max_workers=min(workers, total), thread_name_prefix="detect") as executor:
        future_to_rule = {
            executor.submit(detect_tool, rule, timeout, None, shadow_extra.get(rule.id, ())): rule
            for rule in rule_list
        }

        for future in as_completed(future_to_rule):
            rule = future_to_rule[future]
            completed += 1
            try:
                info = future.result()
            except Exception as e:
                logger.warning(f"Detection of {rule.id} failed: {e}")
                continue

            if info is None:
                logger.debug(f"[{completed}/{total}] {rule.id}: not found")
                continue

            logger.info(
                f"[{completed}/{total}] {rule.id}: "
                + ", ".join(v.version for v in info.versions)
            )
            results.append(info)

    results.sort(key=lambda t: t.id)
    return results


def get_tool_info(
    tool_id: str,
    timeout: float | None = None,
    config: Config | None = None,
) -> ToolInfo | None:
    """Detect a single tool by id.

    Args:
        tool_id: Rule id (case-insensitive)
        timeout: Per-probe timeout in seconds
        config: Loaded configuration

    Returns:
        ToolInfo, or None if the tool is not installed

    Raises:
        ToolNotFoundError: If no rule has this id
    """
    wanted = tool_id.lower()
    rule = next((r for r in build_rules(config) if r.id.lower() == wanted), None)
    if rule is None:
        raise ToolNotFoundError(tool_id)

    timeout, _ = _settings(config, timeout, None)
    extra = config.shadow_paths.get(rule.id, ()) if config is not None else ()
    return detect_tool(rule, timeout, extra_shadow_paths=extra)
