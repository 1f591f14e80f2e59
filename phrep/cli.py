"""
cli.py - Command-line entry point for phrep.

Usage:
    phrep 'sendMail'                       # hits + enclosing function
    phrep '\\$this->db' -d src/ -f Repo    # only files whose name contains Repo
    phrep -m '^save' -d app/               # method names, full bodies
    phrep -g 'TODO'                        # plain grep
    phrep -p 'id$'                         # class properties

Results go to stdout; logging and the summary go to stderr so --json
output stays clean for piping.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from . import __version__
from .errors import InvalidPattern
from .formatters import summary, to_text
from .models import SearchMode
from .search import MAX_WORKERS, PhpSearch

logger = logging.getLogger(__name__)

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2

LOG_LEVEL_ENV = "PHREP_LOG_LEVEL"


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "WARNING").upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _count(value: str) -> int:
    try:
        count = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count: {value!r}")
    if count < 0:
        raise argparse.ArgumentTypeError(f"count must be zero or more, got {count}")
    return count


def _use_color(args: argparse.Namespace) -> bool:
    if args.no_color or args.json or os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phrep",
        description="Grep inside PHP functions/methods.",
        epilog="Examples:\n"
        "  phrep 'sendMail'                  # Hits with their enclosing function\n"
        "  phrep -b 'cache->get' -d src/     # ...and print each function body once\n"
        "  phrep -m 'save' -d app/           # Search method names, dump bodies\n"
        "  phrep -g 'TODO' -f Controller     # Plain line search\n"
        "  phrep -p 'id$'                    # Search class properties\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("query", help="Search query (regular expression)")
    parser.add_argument("-d", "--dir", default=".", help="Directory or file to search (default: .)")
    parser.add_argument("-f", "--file", default=None, help="Only files whose name contains FILE")
    parser.add_argument("--glob", default=None, help="Only files whose name matches GLOB")
    parser.add_argument(
        "-e", "--exclude", action="append", default=[], metavar="DIR",
        help="Directory name to skip (repeatable)",
    )
    parser.add_argument(
        "--ext", action="append", default=None, metavar="EXT",
        help="File extension to search (repeatable, default: .php)",
    )

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument(
        "-m", "--method", dest="mode", action="store_const", const=SearchMode.METHOD,
        help="Match function/method names and print their bodies",
    )
    modes.add_argument(
        "-g", "--grep", dest="mode", action="store_const", const=SearchMode.GREP,
        help="Plain line search without function context",
    )
    modes.add_argument(
        "-p", "--properties", dest="mode", action="store_const", const=SearchMode.PROPERTIES,
        help="Match class property names",
    )
    parser.set_defaults(mode=SearchMode.BASIC)

    parser.add_argument("-b", "--body", action="store_true", help="Basic mode: print the full function body")
    parser.add_argument("-i", "--ignore-case", action="store_true", help="Case-insensitive matching")
    parser.add_argument("-F", "--fixed-strings", action="store_true", help="Treat the query as literal text")
    parser.add_argument("--fuzzy", action="store_true", help="Match identifier variations (getUser ~ get_user)")
    parser.add_argument("--max-count", type=_count, default=None, help="Stop after N matches")
    parser.add_argument("-j", "--jobs", type=int, default=MAX_WORKERS, help=f"Worker threads (default: {MAX_WORKERS})")
    parser.add_argument("--json", action="store_true", help="JSON output")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print results")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """phrep CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    if args.body and args.mode is not SearchMode.BASIC:
        parser.error("--body only applies to the default (basic) mode")

    search = PhpSearch(
        args.dir,
        extensions=args.ext,
        name_contains=args.file,
        glob=args.glob,
        exclude_dirs=args.exclude,
        workers=args.jobs,
    )

    try:
        result = search.hunt(
            args.query,
            mode=args.mode,
            print_body=args.body,
            ignore_case=args.ignore_case,
            literal=args.fixed_strings,
            fuzzy=args.fuzzy,
            max_matches=args.max_count,
        )
    except InvalidPattern as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    color = _use_color(args)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.hits:
        print(to_text(result, color=color))

    if not args.quiet:
        print(summary(result, color=color and sys.stderr.isatty()), file=sys.stderr)

    return EXIT_MATCH if result.total_matches else EXIT_NO_MATCH


if __name__ == "__main__":
    sys.exit(main())
