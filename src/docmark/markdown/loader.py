"""Resolve ``module:attribute`` references to custom transformers."""

from __future__ import annotations

import importlib
from typing import Iterable

from .errors import ConversionError
from .transformers import (
    ElementTransformer,
    MultilineElementTransformer,
    TextFormatTransformer,
    TextMatchTransformer,
    Transformer,
    kind_of,
)

_RECORD_TYPES = (
    ElementTransformer,
    MultilineElementTransformer,
    TextFormatTransformer,
    TextMatchTransformer,
)


class TransformerLoadError(ConversionError):
    """Raised when a transformer reference cannot be resolved."""


def load_transformer(reference: str) -> tuple[Transformer, ...]:
    """Import ``package.module:ATTRIBUTE`` and return its transformer(s).

    The attribute may be a single transformer or an iterable of them.
    """

    module_name, separator, attribute = reference.partition(":")
    if not separator or not module_name or not attribute:
        raise TransformerLoadError(
            f"Transformer reference '{reference}' must look like "
            "'package.module:ATTRIBUTE'."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise TransformerLoadError(
            f"Could not import module '{module_name}' for '{reference}'."
        ) from exc

    value = module
    for part in attribute.split("."):
        try:
            value = getattr(value, part)
        except AttributeError as exc:
            raise TransformerLoadError(
                f"Module '{module_name}' has no attribute '{attribute}'."
            ) from exc

    candidates = _as_candidates(value)
    for candidate in candidates:
        try:
            kind_of(candidate)
        except TypeError as exc:
            raise TransformerLoadError(
                f"'{reference}' does not resolve to transformers: {exc}"
            ) from exc
    return tuple(candidates)


def load_transformers(references: Iterable[str]) -> tuple[Transformer, ...]:
    loaded: list[Transformer] = []
    for reference in references:
        loaded.extend(load_transformer(reference))
    return tuple(loaded)


def _as_candidates(value: object) -> list:
    if isinstance(value, _RECORD_TYPES) or isinstance(value, (str, bytes)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


__all__ = ["TransformerLoadError", "load_transformer", "load_transformers"]
