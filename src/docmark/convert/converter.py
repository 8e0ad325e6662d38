"""Single-file conversion between markdown files and JSON tree documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from docmark.markdown import (
    TRANSFORMERS,
    TransformerSet,
    convert_from_text,
    convert_to_text,
)
from docmark.tree import RootNode

from .config import CollisionPolicy
from .output import read_tree_document, render_markdown, render_tree_document

MARKDOWN_EXTENSIONS: frozenset[str] = frozenset({"md", "markdown"})
TREE_EXTENSIONS: frozenset[str] = frozenset({"json"})

SUPPORTED_EXTENSIONS: frozenset[str] = MARKDOWN_EXTENSIONS | TREE_EXTENSIONS


class FileConversionError(RuntimeError):
    """Raised when a file fails to convert."""


class UnsupportedFormatError(FileConversionError):
    """Raised when the source file extension is not supported."""


class ConversionStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionOutcome:
    """Result of converting (or attempting to convert) a single file."""

    source: Path
    status: ConversionStatus
    output_path: Optional[Path] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class ConversionOptions:
    """Engine settings shared by every file of a run."""

    transformers: TransformerSet = field(
        default_factory=lambda: TransformerSet.coerce(TRANSFORMERS)
    )
    preserve_new_lines: bool = False


def convert_file(
    source: Path,
    *,
    output_dir: Path,
    collision: CollisionPolicy,
    options: ConversionOptions | None = None,
    now: Callable[[], datetime] | None = None,
) -> ConversionOutcome:
    """Convert ``source`` in the direction implied by its extension.

    Failures, including engine and tree errors, are reported as a
    ``FAILED`` outcome rather than raised.
    """

    try:
        return _convert_file(
            source,
            output_dir=output_dir,
            collision=collision,
            options=options or ConversionOptions(),
            now=now or _default_now,
        )
    except Exception as exc:
        return ConversionOutcome(
            source=source,
            status=ConversionStatus.FAILED,
            reason=str(exc),
            error=exc,
        )


def _convert_file(
    source: Path,
    *,
    output_dir: Path,
    collision: CollisionPolicy,
    options: ConversionOptions,
    now: Callable[[], datetime],
) -> ConversionOutcome:
    normalized_source = source.resolve()
    if not normalized_source.exists():
        raise FileConversionError(f"Source file not found: {normalized_source}")
    if not normalized_source.is_file():
        raise FileConversionError(
            f"Source path is not a file: {normalized_source}"
        )

    extension = _normalize_extension(normalized_source)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"Unsupported file extension '.{extension}' for conversion."
        )

    text = normalized_source.read_text(encoding="utf-8")
    if extension in MARKDOWN_EXTENSIONS:
        # The final newline terminates the file; it is not a blank line.
        body = text.replace("\r\n", "\n").removesuffix("\n")
        root = RootNode()
        convert_from_text(
            body, options.transformers, root, options.preserve_new_lines
        )
        metadata = {
            "source_path": str(normalized_source),
            "converted_at": _normalize_timestamp(now()),
        }
        document = render_tree_document(metadata, root)
        suffix = ".json"
    else:
        _, root = read_tree_document(text)
        document = render_markdown(
            convert_to_text(
                options.transformers, root, options.preserve_new_lines
            )
        )
        suffix = ".md"

    target_path, skip_reason = _resolve_output_path(
        output_dir / f"{normalized_source.stem}{suffix}",
        collision=collision,
    )
    if skip_reason is not None:
        return ConversionOutcome(
            source=normalized_source,
            status=ConversionStatus.SKIPPED,
            output_path=target_path,
            reason=skip_reason,
        )

    target_path.parent.mkdir(parents=True, exist_ok=True)
    target_path.write_text(document, encoding="utf-8")
    return ConversionOutcome(
        source=normalized_source,
        status=ConversionStatus.SUCCESS,
        output_path=target_path,
    )


def _default_now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_extension(path: Path) -> str:
    if not path.suffix:
        raise UnsupportedFormatError(
            "Files without an extension are not supported."
        )
    return path.suffix.lstrip(".").lower()


def _normalize_timestamp(candidate: datetime) -> datetime:
    if candidate.tzinfo is None:
        return candidate.replace(tzinfo=timezone.utc)
    return candidate.astimezone(timezone.utc)


def _resolve_output_path(
    base: Path, *, collision: CollisionPolicy
) -> tuple[Path, Optional[str]]:
    if not base.exists() or collision is CollisionPolicy.OVERWRITE:
        return base, None
    if collision is CollisionPolicy.SKIP:
        return base, "Output already exists and collision policy is 'skip'."

    counter = 1
    while True:
        candidate = base.with_name(f"{base.stem}-{counter:02d}{base.suffix}")
        if not candidate.exists():
            return candidate, None
        counter += 1


__all__ = [
    "ConversionOptions",
    "ConversionOutcome",
    "ConversionStatus",
    "FileConversionError",
    "MARKDOWN_EXTENSIONS",
    "SUPPORTED_EXTENSIONS",
    "TREE_EXTENSIONS",
    "UnsupportedFormatError",
    "convert_file",
]
