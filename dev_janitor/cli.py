"""
Command-line entry point.

Usage:
    dev-janitor                    # Scan all tools and render a table
    dev-janitor node python        # Scan selected tools
    dev-janitor --category ai_cli  # Scan one category
    dev-janitor --json             # Print results as JSON
    dev-janitor --list-rules       # Show detection rules without probing
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .config import load_config, validate_config
from .errors import ToolNotFoundError
from .logging_config import setup_logging
from .render import print_summary, render_rules, render_table
from .rules import RULE_MAP, build_rules, filter_rules
from .scanner import scan_all

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dev-janitor",
        description="Dev Janitor - inventory of installed development tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "tools",
        nargs="*",
        help="Specific tool ids to scan",
    )
    parser.add_argument(
        "--category", "-c",
        action="append",
        help="Only scan tools in this category (repeatable)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="List detection rules without probing",
    )
    parser.add_argument(
        "--config",
        help="Path to a configuration file",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        help="Per-probe timeout in seconds",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        help="Number of parallel detector workers",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors",
    )
    parser.add_argument(
        "--log-file",
        help="Also write a DEBUG log to this file",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for dev-janitor."""
    args = build_parser().parse_args(argv)

    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    try:
        config = load_config(args.config, verbose=args.verbose)
        rules = build_rules(config)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_USAGE

    for warning in validate_config(config, known_ids=set(RULE_MAP)):
        logger.warning(warning)

    if args.tools:
        known = {r.id.lower() for r in rules}
        for tool_id in args.tools:
            if tool_id.lower() not in known:
                err = ToolNotFoundError(tool_id)
                logger.error(f"{err.message}. {err.remediation}")
                return EXIT_USAGE

    if args.tools or args.category:
        rules = tuple(filter_rules(args.tools or None, args.category, rules))

    if args.list_rules:
        render_rules(rules)
        return EXIT_OK

    tools = scan_all(rules, timeout=args.timeout, max_workers=args.workers, config=config)

    if args.json:
        print(json.dumps([t.to_dict() for t in tools], indent=2, ensure_ascii=False))
    else:
        render_table(tools)
        print_summary(tools)

    if args.tools and not tools:
        return EXIT_NOT_FOUND
    return EXIT_OK
