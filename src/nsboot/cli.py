"""
Command line front end for booting an application outside a host page.

Usage:
    nsboot run --config boot.yaml                 # boot and wait for the entry point
    nsboot run --config boot.yaml --deadline 30   # give up after 30 seconds
    nsboot run --config boot.yaml --entry app.main --verbose
    nsboot locate app.views.main --config boot.yaml [--extension json]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .config import BootConfig, require_config
from .exceptions import ConfigError
from .fetchers import make_fetcher
from .kernel.engine import BootEngine
from .locator import locate
from .timeline import Timeline


# =============================================================================
# Helpers
# =============================================================================

def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load(path: str) -> Optional[BootConfig]:
    try:
        return require_config(path)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


async def run_engine(engine: BootEngine, deadline: Optional[float]) -> bool:
    """Boot with a transport chosen from the config, closing it afterwards."""
    fetcher = engine.loader.fetcher
    try:
        # No document here: markup and page are ready as soon as we start.
        engine.mark_markup_parsed()
        engine.mark_page_loaded()
        return await engine.run(deadline=deadline)
    finally:
        aclose = getattr(fetcher, "aclose", None)
        if aclose is not None:
            await aclose()


# =============================================================================
# Commands
# =============================================================================

def cmd_run(args: argparse.Namespace) -> int:
    """Boot the application described by a configuration file."""
    config = load(args.config)
    if config is None:
        return 1
    if args.entry:
        config = config.model_copy(update={"entry_point": args.entry})

    timeline = Timeline()
    engine = BootEngine(config, fetcher=make_fetcher(config), timeline=timeline)
    started = asyncio.run(run_engine(engine, args.deadline))

    if args.verbose:
        for event in timeline.events:
            print(f"{'  ' * event.indent}{event.title}: {event.at * 1000:.1f}ms")
    if not started:
        print("Error: application did not start", file=sys.stderr)
        return 1
    return 0


def cmd_locate(args: argparse.Namespace) -> int:
    """Print the locator a dotted resource name resolves to."""
    config = load(args.config)
    if config is None:
        return 1
    try:
        print(locate(args.resource_id, config, extension=args.extension))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


# =============================================================================
# Main
# =============================================================================

def main() -> int:
    parser = argparse.ArgumentParser(
        prog="nsboot",
        description="Dependency-driven application boot",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # run command
    run_parser = subparsers.add_parser("run", help="Boot an application")
    run_parser.add_argument("--config", "-c", required=True, help="Boot configuration (YAML)")
    run_parser.add_argument("--entry", "-e", help="Namespace path of the entry point")
    run_parser.add_argument(
        "--deadline", "-d", type=float, default=None,
        help="Seconds to wait for the application to start (default: no limit)"
    )
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging and timings")

    # locate command
    locate_parser = subparsers.add_parser("locate", help="Show the locator for a resource id")
    locate_parser.add_argument("resource_id", help="Dotted resource name, optionally anchored")
    locate_parser.add_argument("--config", "-c", required=True, help="Boot configuration (YAML)")
    locate_parser.add_argument("--extension", "-x", help="File type (default: py)")

    args = parser.parse_args()
    configure_logging(getattr(args, "verbose", False))

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "locate":
        return cmd_locate(args)

    return 1


if __name__ == "__main__":
    sys.exit(main())
