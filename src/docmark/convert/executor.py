"""Sequential executor for batch conversions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .config import DocmarkConfig
from .converter import (
    SUPPORTED_EXTENSIONS,
    ConversionOptions,
    ConversionOutcome,
    ConversionStatus,
    convert_file,
)


@dataclass(frozen=True)
class ExecutionSummary:
    """Aggregated results for one ``docmark convert`` run."""

    requested: tuple[Path, ...]
    processed: tuple[Path, ...]
    outcomes: tuple[ConversionOutcome, ...]

    def _count(self, status: ConversionStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def success_count(self) -> int:
        return self._count(ConversionStatus.SUCCESS)

    @property
    def skipped_count(self) -> int:
        return self._count(ConversionStatus.SKIPPED)

    @property
    def failure_count(self) -> int:
        return self._count(ConversionStatus.FAILED)

    @property
    def exit_code(self) -> int:
        return 1 if self.failure_count else 0


def run_conversion(
    inputs: Sequence[Path],
    *,
    config: DocmarkConfig,
    options: ConversionOptions,
    logger: logging.Logger,
) -> ExecutionSummary:
    """Convert every file reachable from ``inputs`` and summarize the run."""

    requested = tuple(_normalize_inputs(inputs))
    logger.info(
        "Starting docmark convert run",
        extra={
            "input_count": len(requested),
            "output_dir": str(config.output_dir),
            "collision": config.collision.value,
            "preserve_newlines": options.preserve_new_lines,
            "transformer_count": len(options.transformers),
        },
    )

    candidates = tuple(_expand_inputs(requested))
    logger.info(
        "Prepared conversion candidates",
        extra={"candidate_count": len(candidates)},
    )

    outcomes: list[ConversionOutcome] = []
    for source in candidates:
        outcome = convert_file(
            source,
            output_dir=config.output_dir,
            collision=config.collision,
            options=options,
        )
        outcomes.append(outcome)
        _log_outcome(logger, outcome)

    summary = ExecutionSummary(
        requested=requested,
        processed=candidates,
        outcomes=tuple(outcomes),
    )
    logger.info(
        "Completed docmark convert run",
        extra={
            "success_count": summary.success_count,
            "skipped_count": summary.skipped_count,
            "failure_count": summary.failure_count,
        },
    )
    return summary


def _log_outcome(logger: logging.Logger, outcome: ConversionOutcome) -> None:
    if outcome.status is ConversionStatus.SUCCESS:
        logger.info(
            "Converted document",
            extra={
                "source": str(outcome.source),
                "output_path": str(outcome.output_path),
            },
        )
    elif outcome.status is ConversionStatus.SKIPPED:
        logger.info(
            "Skipped document",
            extra={"source": str(outcome.source), "reason": outcome.reason},
        )
    else:
        logger.error(
            "Failed to convert document",
            extra={
                "source": str(outcome.source),
                "reason": outcome.reason,
                "error_type": type(outcome.error).__name__,
            },
        )


def _normalize_inputs(inputs: Sequence[Path]) -> Iterable[Path]:
    for raw in inputs:
        expanded = raw.expanduser()
        try:
            yield expanded.resolve(strict=False)
        except OSError:
            yield expanded


def _expand_inputs(inputs: Sequence[Path]) -> Iterable[Path]:
    seen: set[Path] = set()
    for path in sorted(inputs, key=str):
        children = _iter_directory(path) if path.is_dir() else (path,)
        for child in children:
            if child not in seen:
                seen.add(child)
                yield child


def _iter_directory(directory: Path) -> Iterable[Path]:
    for candidate in sorted(directory.rglob("*")):
        if (
            candidate.is_file()
            and candidate.suffix.lstrip(".").lower() in SUPPORTED_EXTENSIONS
        ):
            yield candidate


__all__ = ["ExecutionSummary", "run_conversion"]
