"""Exceptions raised by the markdown conversion engine."""

from __future__ import annotations


class ConversionError(RuntimeError):
    """Base class for engine failures."""


class TransformerError(ConversionError):
    """Raised when a transformer callback returns an unrecognized result."""


class MissingDependencyError(ConversionError):
    """Raised when a transformer needs a node class the tree does not know."""


__all__ = [
    "ConversionError",
    "MissingDependencyError",
    "TransformerError",
]
