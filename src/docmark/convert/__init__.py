"""Batch conversion between markdown files and JSON document trees."""

from __future__ import annotations

from .config import (
    CollisionPolicy,
    ConfigOverrides,
    DocmarkConfig,
    DocmarkConfigError,
    LoadResult,
    load_config,
)
from .converter import (
    SUPPORTED_EXTENSIONS,
    ConversionOptions,
    ConversionOutcome,
    ConversionStatus,
    FileConversionError,
    UnsupportedFormatError,
    convert_file,
)
from .executor import ExecutionSummary, run_conversion

__all__ = [
    "CollisionPolicy",
    "ConfigOverrides",
    "DocmarkConfig",
    "DocmarkConfigError",
    "LoadResult",
    "load_config",
    "SUPPORTED_EXTENSIONS",
    "ConversionOptions",
    "ConversionOutcome",
    "ConversionStatus",
    "FileConversionError",
    "UnsupportedFormatError",
    "convert_file",
    "ExecutionSummary",
    "run_conversion",
]
