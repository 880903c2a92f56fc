"""
mediashelf - Entry Point

Run with: python -m mediashelf
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

from mediashelf import __version__
from mediashelf.config import LibraryConfig, load_config
from mediashelf.core import CoreError
from mediashelf.core.library import LibraryService


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediashelf",
        description="Catalogue audio files into a SQLite media library",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="TOML file overriding the default configuration",
    )

    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Library database file (overrides the configured path)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("create", help="Create the library tables")
    commands.add_parser("delete", help="Drop all library tables")
    add = commands.add_parser("add", help="Add the audio files under one or more folders")
    add.add_argument("roots", nargs="+", type=Path, help="Folders to scan")
    commands.add_parser("show", help="Print row counts per table")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


async def run_command(args: argparse.Namespace, config: LibraryConfig) -> None:
    if args.db is not None:
        config = dataclasses.replace(config, database=args.db)

    async with LibraryService.from_config(config) as library:
        if args.command == "create":
            await library.create_library()
        elif args.command == "delete":
            await library.delete_library()
        elif args.command == "add":
            await library.create_library()
            for root in args.roots:
                result = await library.add_path(root)
                print(
                    f"{root}: {result.decoded_files} catalogued, "
                    f"{result.skipped_files} skipped of {result.scanned_files} files"
                )
        elif args.command == "show":
            for repository in library.session.repositories():
                print(f"{repository.table}: {await repository.count()}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"mediashelf: cannot load config: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level, verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except (CoreError, OSError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
