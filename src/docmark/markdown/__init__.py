"""Bidirectional markdown conversion engine."""

from __future__ import annotations

from .builtins import (
    BUILTIN_TRANSFORMERS,
    CHECK_LIST,
    CODE,
    ELEMENT_TRANSFORMERS,
    HEADING,
    HIGHLIGHT,
    HORIZONTAL_RULE,
    INLINE_CODE,
    LINK,
    MULTILINE_ELEMENT_TRANSFORMERS,
    ORDERED_LIST,
    QUOTE,
    TEXT_FORMAT_TRANSFORMERS,
    TEXT_MATCH_TRANSFORMERS,
    TRANSFORMERS,
    UNORDERED_LIST,
    builtin_names,
    resolve_transformers,
)
from .errors import ConversionError, MissingDependencyError, TransformerError
from .escaping import Escaper
from .exporter import MarkdownExporter, convert_to_text
from .importer import ConversionContext, MarkdownImporter, convert_from_text
from .loader import TransformerLoadError, load_transformer, load_transformers
from .matcher import Match, Matcher, RegexMatcher, regex
from .registry import TransformerSet
from .roundtrip import RoundTripReport, check_round_trip
from .transformers import (
    ElementTransformer,
    MultilineElementTransformer,
    Outcome,
    TextFormatTransformer,
    TextMatchTransformer,
    Transformer,
    TransformerKind,
    kind_of,
)

__all__ = [
    "BUILTIN_TRANSFORMERS",
    "CHECK_LIST",
    "CODE",
    "ConversionContext",
    "ConversionError",
    "ELEMENT_TRANSFORMERS",
    "ElementTransformer",
    "Escaper",
    "HEADING",
    "HIGHLIGHT",
    "HORIZONTAL_RULE",
    "INLINE_CODE",
    "LINK",
    "MULTILINE_ELEMENT_TRANSFORMERS",
    "MarkdownExporter",
    "MarkdownImporter",
    "Match",
    "Matcher",
    "MissingDependencyError",
    "MultilineElementTransformer",
    "ORDERED_LIST",
    "Outcome",
    "QUOTE",
    "RegexMatcher",
    "RoundTripReport",
    "TEXT_FORMAT_TRANSFORMERS",
    "TEXT_MATCH_TRANSFORMERS",
    "TRANSFORMERS",
    "TextFormatTransformer",
    "TextMatchTransformer",
    "Transformer",
    "TransformerError",
    "TransformerKind",
    "TransformerLoadError",
    "TransformerSet",
    "UNORDERED_LIST",
    "builtin_names",
    "check_round_trip",
    "convert_from_text",
    "convert_to_text",
    "kind_of",
    "load_transformer",
    "load_transformers",
    "regex",
    "resolve_transformers",
]
