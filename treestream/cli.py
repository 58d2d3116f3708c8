# treestream/cli.py

"""Command-line front door for treestream.

Parses ``tree``-style flags, registers the matching walker filters and
formatter toggles, then streams each root's rendered tree to the selected
output followed by a directory/file count report.
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import shutil
import sys
import time
from collections.abc import Iterator
from typing import BinaryIO

from . import filters
from .formatter import Formatter
from .walker import TreeWalker, by_name, dirs_first

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treestream",
        description="List the contents of directories in a tree-like format.",
    )
    parser.add_argument("paths", nargs="*", default=["."], metavar="PATH", help="Roots to list (default: .).")
    parser.add_argument("-a", dest="show_hidden", action="store_true", help="Show hidden files.")
    parser.add_argument("-d", dest="dirs_only", action="store_true", help="Only show directories.")
    parser.add_argument("-F", dest="decorate", action="store_true", help="Show decorations like 'ls -F'.")
    parser.add_argument("-f", dest="full_path", action="store_true", help="Show relative paths.")
    parser.add_argument("-i", dest="hide_prefix", action="store_true", help="Do not show indentation lines.")
    parser.add_argument(
        "-I",
        dest="exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Exclude entries matching a gitignore-style pattern (repeatable).",
    )
    parser.add_argument("--dirsfirst", action="store_true", help="List directories before files.")
    parser.add_argument("--noreport", action="store_true", help="Do not display file and directory counts.")
    parser.add_argument(
        "--checksum",
        action="store_true",
        help="Print SHA1 checksum for files (implies -f and -i).",
    )
    parser.add_argument("-o", dest="output", default="-", metavar="DEST", help="stdout(-)|stderr|/dev/null|file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages to stderr.")
    return parser


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose or os.environ.get("DEBUG") else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def build_walker(args: argparse.Namespace) -> TreeWalker:
    walker = TreeWalker(order=dirs_first if args.dirsfirst else by_name)
    if not args.show_hidden:
        walker.add_filter(filters.hide_hidden)
    if args.dirs_only:
        walker.add_filter(filters.dirs_only)
    return walker


def build_formatter(args: argparse.Namespace) -> Formatter:
    full_path = args.full_path
    hide_prefix = args.hide_prefix
    if args.checksum:
        full_path = True
        hide_prefix = True

    fmt = Formatter()
    fmt.set_show_checksum(args.checksum)
    fmt.set_show_full_path(full_path)
    fmt.set_show_prefix(not hide_prefix)
    fmt.set_show_decoration(args.decorate)
    fmt.set_show_symlink_target(True)
    return fmt


@contextlib.contextmanager
def open_sink(dest: str) -> Iterator[BinaryIO]:
    """Yield a binary writer for ``dest``; only files we open are closed."""
    if dest in ("-", "stdout"):
        sys.stdout.flush()
        yield sys.stdout.buffer
        sys.stdout.buffer.flush()
    elif dest == "stderr":
        sys.stderr.flush()
        yield sys.stderr.buffer
        sys.stderr.buffer.flush()
    elif dest == "/dev/null":
        with open(os.devnull, "wb") as sink:
            yield sink
    else:
        with open(dest, "wb") as sink:
            yield sink


def report_line(ndirs: int, nfiles: int, elapsed: float | None = None) -> str:
    text = f"\n{ndirs} directories"
    if nfiles > 0:
        text += f", {nfiles} files"
    if elapsed is not None:
        text += f" [{elapsed:.6f}s]"
    return text + "\n"


def write_trees(sink: BinaryIO, args: argparse.Namespace, t0: float) -> None:
    walker = build_walker(args)
    fmt = build_formatter(args)
    matcher = filters.IgnoreMatcher(args.exclude, ".") if args.exclude else None
    if matcher is not None:
        walker.add_filter(matcher)

    for i, root in enumerate(args.paths):
        if i > 0:
            sink.write(b"\n")
        if matcher is not None:
            # Anchored patterns are relative to the root being listed.
            matcher.rebase(root)
        logger.debug("listing %s", root)
        with walker.traverse(root) as stream:
            shutil.copyfileobj(fmt.new_reader(stream), sink)

    if not args.noreport:
        ndirs, nfiles = walker.get_counts()
        elapsed = time.perf_counter() - t0 if os.environ.get("DEBUG") else None
        sink.write(report_line(ndirs, nfiles, elapsed).encode("utf-8"))


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and print one tree per root. Returns the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    t0 = time.perf_counter()

    try:
        with open_sink(args.output) as sink:
            write_trees(sink, args, t0)
    except BrokenPipeError:
        return 1
    except OSError as exc:
        if exc.filename == args.output:
            parser.error(f"cannot open output {args.output!r}: {exc.strerror}")
        print(f"treestream: failed to write output: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
