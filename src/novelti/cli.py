"""
Command-line front end.

Usage:
  novelti search by_subject fantasy --offset 20
  novelti search by_id hUZWAAAAcAAJ --json
  novelti thumbnail hUZWAAAAcAAJ
  novelti attach hUZWAAAAcAAJ https://example.com/cover.jpg
  novelti config init
  novelti config install ./my-settings.toml
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from novelti import __version__
from novelti.infra.config import (
    ConfigAdapter,
    copy_default_config,
    load_config,
    save_config_file,
)
from novelti.infra.logger import default_log_dir, setup_logging
from novelti.infra.paths import DEFAULT_CONFIG_FILENAME, SETTING_PATH
from novelti.resolution import BookResolver
from novelti.schemas import SEARCH_MODES, SearchResult
from novelti.upstream import NoResultsFound, NoveltiError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_RESULTS = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="novelti",
        description="Search books through the Novelti resolution engine.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--config", help="Path to a settings.toml / settings.json")
    parser.add_argument(
        "--log-level",
        help="Override the configured log level (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write a rotating log file under the user log directory",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Resolve a search")
    search.add_argument("mode", choices=SEARCH_MODES)
    search.add_argument("term")
    search.add_argument("--offset", type=int, default=0)
    search.add_argument(
        "--detailed",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include descriptions (default: only for by_id)",
    )
    search.add_argument("--json", action="store_true", help="Print JSON output")

    thumb = sub.add_parser("thumbnail", help="Show the stored thumbnail for a book")
    thumb.add_argument("book_id")

    attach = sub.add_parser("attach", help="Record a thumbnail for a book")
    attach.add_argument("book_id")
    attach.add_argument("thumbnail")

    config = sub.add_parser("config", help="Create or install a settings file")
    config_sub = config.add_subparsers(dest="config_command", required=True)

    init = config_sub.add_parser("init", help="Write the sample settings.toml")
    init.add_argument(
        "--path",
        type=Path,
        help=f"Target file (default: ./{DEFAULT_CONFIG_FILENAME})",
    )
    init.add_argument("--force", action="store_true", help="Overwrite an existing file")

    install = config_sub.add_parser(
        "install", help="Validate a settings file and install it for this user"
    )
    install.add_argument("source", type=Path)
    install.add_argument(
        "--output",
        type=Path,
        help="Install location (default: the user config directory)",
    )

    return parser


def _print_result(result: SearchResult, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    for book in result.books:
        authors = ", ".join(book.authors)
        date = f" ({book.published_date})" if book.published_date else ""
        print(f"{book.identifier}  {book.title}{date} - {authors}")
        if book.cover:
            print(f"    cover: {book.cover}")
        if book.description:
            print(f"    {book.description}")


def _run_config(args: argparse.Namespace) -> int:
    if args.config_command == "init":
        target = args.path or Path.cwd() / DEFAULT_CONFIG_FILENAME
        if target.exists() and not args.force:
            print(f"error: {target} already exists (use --force)", file=sys.stderr)
            return EXIT_ERROR
        copy_default_config(target)
        print(f"Sample settings written to {target}")
        return EXIT_OK

    output = args.output or SETTING_PATH
    save_config_file(args.source, output)
    print(f"Settings installed at {output}")
    return EXIT_OK


async def _run(args: argparse.Namespace, adapter: ConfigAdapter) -> int:
    async with BookResolver.from_config(adapter) as resolver:
        match args.command:
            case "search":
                result = await resolver.resolve(
                    args.term, args.mode, args.offset, args.detailed
                )
                _print_result(result, args.json)
            case "thumbnail":
                print(await resolver.get_thumbnail(args.book_id))
            case "attach":
                await resolver.attach_thumbnail(args.book_id, args.thumbnail)
                print(f"Thumbnail added for {args.book_id}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "config":
        try:
            return _run_config(args)
        except (OSError, ValueError) as e:
            print(f"error: {e}", file=sys.stderr)
            return EXIT_ERROR

    try:
        adapter = ConfigAdapter(load_config(args.config))
    except (FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(
        args.log_level or adapter.get_log_level(),
        log_dir=default_log_dir() if args.log_file else None,
    )

    try:
        return asyncio.run(_run(args, adapter))
    except NoResultsFound as e:
        print(str(e), file=sys.stderr)
        return EXIT_NO_RESULTS
    except (NoveltiError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
