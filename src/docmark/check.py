"""``docmark check``: report markdown files that do not round-trip."""

from __future__ import annotations

import argparse
import difflib
import sys
from pathlib import Path
from typing import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docmark.convert.cli import add_config_arguments, load_from_args
from docmark.markdown import (
    ConversionError,
    RoundTripReport,
    TransformerLoadError,
    check_round_trip,
)
from docmark.tree import TreeStructureError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmark check",
        description=(
            "Import each markdown file, export it again and report files "
            "whose text changes."
        ),
    )
    parser.add_argument("paths", nargs="+", type=Path, help="Markdown files.")
    add_config_arguments(parser)
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Show a unified diff for files that are not lossless.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    config = load_from_args(parser, args).config

    try:
        transformers = config.build_transformers()
    except TransformerLoadError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    console = Console(highlight=False)
    table = Table(title="Round-trip check", box=box.SIMPLE)
    table.add_column("File")
    table.add_column("Lossless")
    table.add_column("Idempotent")

    exit_code = 0
    for path in args.paths:
        try:
            # The final newline terminates the file; it is not a blank line.
            text = (
                path.read_text(encoding="utf-8")
                .replace("\r\n", "\n")
                .removesuffix("\n")
            )
            report = check_round_trip(
                text, transformers, config.preserve_newlines
            )
        except (
            OSError, ValueError, ConversionError, TreeStructureError
        ) as exc:
            table.add_row(escape(str(path)), "[red]error[/]", escape(str(exc)))
            exit_code = 1
            continue

        table.add_row(
            escape(str(path)),
            _flag(report.is_lossless),
            _flag(report.is_idempotent),
        )
        if not report.is_lossless:
            exit_code = 1
            if args.diff:
                _print_diff(console, path, report)

    console.print(table)
    return exit_code


def _flag(value: bool) -> str:
    return "[green]yes[/]" if value else "[red]no[/]"


def _print_diff(console: Console, path: Path, report: RoundTripReport) -> None:
    diff = difflib.unified_diff(
        report.original.splitlines(keepends=True),
        report.exported.splitlines(keepends=True),
        fromfile=str(path),
        tofile=f"{path} (exported)",
    )
    console.print("".join(diff), markup=False, soft_wrap=True)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
