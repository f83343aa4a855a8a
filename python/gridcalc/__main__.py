"""CLI entry point for gridcalc.

Usage:
    python -m gridcalc set <file> <coordinate> <content>
    python -m gridcalc show <file> <coordinate>
    python -m gridcalc display <file>

The sheet file is created on the first ``set`` if it does not exist.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from gridcalc import Workbook, load_workbook
from gridcalc._utils import InvalidCoordinate, normalize
from gridcalc.config import configure_logging

logger = logging.getLogger(__name__)


def _open(path: Path) -> Workbook:
    if path.exists():
        return load_workbook(path)
    return Workbook()


def cmd_set(args: argparse.Namespace) -> int:
    path = Path(args.file)
    wb = _open(path)
    try:
        result = wb.set(args.coordinate, args.content)
    except InvalidCoordinate as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    wb.save(path)
    for delta in result.deltas:
        print(f"{delta.cell_ref}: {delta.old_value!r} -> {delta.new_value!r}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1
    wb = load_workbook(path)
    try:
        coordinate = normalize(args.coordinate)
    except InvalidCoordinate as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print(f"Cell {coordinate} content: {wb.source(coordinate)}")
    print(f"Cell {coordinate} value: {wb.value(coordinate)}")
    return 0


def cmd_display(args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1
    print(load_workbook(path).to_table())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gridcalc",
        description="Edit and inspect gridcalc sheet files",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from GRIDCALC_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # set
    set_parser = subparsers.add_parser("set", help="Set a cell's content and save")
    set_parser.add_argument("file", help="Path to the sheet file")
    set_parser.add_argument("coordinate", help="Cell coordinate, e.g. A1")
    set_parser.add_argument("content", help="Number, text, or =formula")
    set_parser.set_defaults(func=cmd_set)

    # show
    show_parser = subparsers.add_parser("show", help="Show one cell's content and value")
    show_parser.add_argument("file", help="Path to the sheet file")
    show_parser.add_argument("coordinate", help="Cell coordinate, e.g. A1")
    show_parser.set_defaults(func=cmd_show)

    # display
    display_parser = subparsers.add_parser("display", help="Print the sheet as a table")
    display_parser.add_argument("file", help="Path to the sheet file")
    display_parser.set_defaults(func=cmd_display)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        result: int = args.func(args)
    except OSError as e:
        logger.debug("I/O failure", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
