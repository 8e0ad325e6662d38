"""CLI entry point for batch markdown/tree conversion."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from docmark.core import workspace as workspace_mod
from docmark.core.logging import ROOT_LOGGER, configure_logger
from docmark.core.workspace import WorkspaceError
from docmark.markdown import TransformerLoadError

from .config import (
    CONFIG_FILENAME,
    CollisionPolicy,
    ConfigOverrides,
    DocmarkConfigError,
    LoadResult,
    load_config,
    write_template,
)
from .converter import ConversionOptions
from .executor import ExecutionSummary, run_conversion


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command that reads docmark.toml."""

    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory or DOCMARK_CONFIG)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root (defaults to DOCMARK_HOME).",
    )
    parser.add_argument(
        "--preserve-newlines",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Keep blank lines as empty paragraphs.",
    )
    parser.add_argument(
        "--extra",
        action="append",
        metavar="MODULE:ATTR",
        help="Prepend custom transformers (repeatable).",
    )


def load_from_args(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    **overrides: object,
) -> LoadResult:
    """Load configuration for ``args``; config errors exit through ``parser``."""

    try:
        return load_config(
            config_path=args.config,
            overrides=ConfigOverrides(
                preserve_newlines=args.preserve_newlines,
                extra=args.extra,
                **overrides,  # type: ignore[arg-type]
            ),
            workspace_path=args.workspace,
        )
    except DocmarkConfigError as exc:
        parser.error(str(exc))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmark convert",
        description=(
            "Convert markdown files (.md, .markdown) into JSON document "
            "trees and JSON trees (.json) back into markdown."
        ),
        epilog=(
            "Run `docmark convert config init` to scaffold the default "
            "docmark.toml template."
        ),
    )
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Files or directories to convert.",
    )
    add_config_arguments(parser)
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Override the output directory for converted files.",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Overwrite existing outputs when names collide.",
    )
    parser.add_argument(
        "--version-output",
        action="store_true",
        help="Version conflicting outputs using -01, -02 style suffixes.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level and mirror log records on stderr.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = _build_parser()
    args = parser.parse_args(args_list)

    if args.overwrite and args.version_output:
        parser.error("--overwrite and --version-output are mutually exclusive.")

    load_result = load_from_args(
        parser,
        args,
        output_dir=args.output_dir,
        collision=_collision_from_args(args),
        log_level=args.log_level,
    )
    config = load_result.config

    try:
        transformers = config.build_transformers()
    except TransformerLoadError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    logger, log_path = configure_logger(
        ROOT_LOGGER,
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
        filename="convert.log",
    )
    logger.debug(
        "docmark convert invoked",
        extra={"config_path": str(load_result.config_path)},
    )

    summary = run_conversion(
        args.paths,
        config=config,
        options=ConversionOptions(
            transformers=transformers,
            preserve_new_lines=config.preserve_newlines,
        ),
        logger=logger,
    )

    _print_summary(summary, log_path, config.output_dir)
    return summary.exit_code


def _print_summary(
    summary: ExecutionSummary, log_path: Path, output_dir: Path
) -> None:
    lines = [
        "docmark convert summary:",
        f"  converted: {summary.success_count}",
        f"  skipped:   {summary.skipped_count}",
        f"  failed:    {summary.failure_count}",
        f"  output dir: {output_dir}",
        f"  log file:   {log_path}",
    ]
    for outcome in summary.outcomes:
        if outcome.reason and outcome.error is not None:
            lines.append(f"  error: {outcome.source}: {outcome.reason}")
    sys.stdout.write("\n".join(lines) + "\n")


def _collision_from_args(args: argparse.Namespace) -> CollisionPolicy | None:
    if args.overwrite:
        return CollisionPolicy.OVERWRITE
    if args.version_output:
        return CollisionPolicy.VERSION
    return None


def _handle_config(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="docmark convert config",
        description="Manage the docmark configuration file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    init_parser = subparsers.add_parser(
        "init",
        help="Write the default docmark.toml template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root used to resolve the default config path.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    args = parser.parse_args(argv)

    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    try:
        written = write_template(target, overwrite=args.force)
    except DocmarkConfigError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote docmark config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
