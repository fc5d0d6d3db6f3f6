"""
Command-line entry point for inspecting agent profiles.

This file handles startup concerns (arg-parsing, logging) and dispatches to the sub-commands:

- ``profiles``: list the profiles visible from a working directory
- ``route TEXT``: print the profile the router selects for *TEXT*
- ``show NAME``: print one profile in full
"""

import argparse
import logging
import sys
from pathlib import Path

from libra_ai.common import (
    AnsiColors,
    colored_print,
    shorten,
)
from libra_ai.config import settings
from libra_ai.profile import (
    AgentProfileRouter,
    load_profiles,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )


def _router(args: argparse.Namespace) -> AgentProfileRouter:
    profiles = load_profiles(Path(args.workdir))
    return AgentProfileRouter(profiles)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def cmd_profiles(args: argparse.Namespace) -> int:
    """List every loaded profile."""
    for profile in _router(args).profiles:
        colored_print(profile.name, AnsiColors.GREEN, end="")
        print(f"  [{profile.model_preference}]  {shorten(profile.description)}")
    return 0


def cmd_route(args: argparse.Namespace) -> int:
    """Print the profile selected for the given text."""
    text = " ".join(args.text)
    profile = _router(args).select(text)
    if profile is None:
        colored_print("no match", AnsiColors.YELLOW)
        return 1
    print(profile.name)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Print a profile in full."""
    profile = _router(args).get(args.name)
    if profile is None:
        colored_print(f"Unknown profile: {args.name}", AnsiColors.RED, file=sys.stderr)
        return 1
    print(f"name: {profile.name}")
    print(f"description: {profile.description}")
    print(f"model: {profile.model_preference}")
    print(f"tools: {', '.join(profile.tools)}")
    print()
    print(profile.system_prompt)
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="libra-ai", description="Inspect and route agent profiles")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    parser.add_argument(
        "--workdir",
        default=".",
        help="Project directory whose .%s/%s is searched first (default: %%(default)s)"
        % (settings.TOOL_NAME, settings.AGENTS_DIR_NAME),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("profiles", help="List loaded profiles").set_defaults(func=cmd_profiles)

    route = subparsers.add_parser("route", help="Select a profile for free text")
    route.add_argument("text", nargs="+")
    route.set_defaults(func=cmd_route)

    show = subparsers.add_parser("show", help="Print one profile")
    show.add_argument("name")
    show.set_defaults(func=cmd_show)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, configure logging and run the chosen sub-command."""
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_args(argv)
    _init_logging(args.log_level)
    logger.debug("Settings: %s", settings.model_dump())
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
