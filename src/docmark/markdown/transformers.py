"""Transformer records: the four rule kinds the pipelines dispatch on."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, Optional, Sequence, Union

from docmark.tree import ElementNode, Node, TextNode

from .errors import TransformerError
from .matcher import Match, Matcher


class Outcome(Enum):
    """Result of a ``replace`` callback."""

    HANDLED = "handled"
    DEFER = "defer"
    DECLINED = "declined"


class TransformerKind(Enum):
    ELEMENT = "element"
    MULTILINE_ELEMENT = "multilineElement"
    TEXT_FORMAT = "textFormat"
    TEXT_MATCH = "textMatch"


ExportChildren = Callable[[ElementNode], str]
ExportFormat = Callable[[TextNode, str], str]
ImportLines = Callable[[Sequence[str], ElementNode], None]

ElementReplace = Callable[[ElementNode, list[Node], Match, bool], Outcome]
ElementExport = Callable[[Node, ExportChildren], Optional[str]]
MultilineReplace = Callable[
    [ElementNode, Match, Optional[Match], list[str], ImportLines, bool],
    Outcome,
]
TextMatchReplace = Callable[[TextNode, Match], Outcome]
TextMatchExport = Callable[[Node, ExportChildren, ExportFormat], Optional[str]]


@dataclass(frozen=True)
class ElementTransformer:
    """Single-line block rule; ``matcher`` must match at line start."""

    matcher: Matcher
    replace: ElementReplace
    export: Optional[ElementExport] = None
    dependencies: tuple[type[Node], ...] = ()
    name: str = ""

    kind: ClassVar[TransformerKind] = TransformerKind.ELEMENT


@dataclass(frozen=True)
class MultilineElementTransformer:
    """Block rule spanning from a ``start`` line to an ``end`` line.

    Without ``end`` the start line is also the end line.
    """

    start: Matcher
    replace: MultilineReplace
    end: Optional[Matcher] = None
    export: Optional[ElementExport] = None
    dependencies: tuple[type[Node], ...] = ()
    name: str = ""

    kind: ClassVar[TransformerKind] = TransformerKind.MULTILINE_ELEMENT


@dataclass(frozen=True)
class TextFormatTransformer:
    """Delimiter pair mapped to one or more character formats."""

    formats: tuple[str, ...]
    tag: str
    close_tag: Optional[str] = None
    intraword: bool = True
    dependencies: tuple[type[Node], ...] = ()
    name: str = ""

    kind: ClassVar[TransformerKind] = TransformerKind.TEXT_FORMAT

    def __post_init__(self) -> None:
        if not self.formats:
            raise ValueError("Text format transformers need a format.")
        if not self.tag or (self.close_tag is not None and not self.close_tag):
            raise ValueError("Text format tags must be non-empty.")

    @property
    def closing(self) -> str:
        return self.close_tag if self.close_tag is not None else self.tag

    @property
    def tag_chars(self) -> frozenset[str]:
        return frozenset(self.tag) | frozenset(self.closing)


@dataclass(frozen=True)
class TextMatchTransformer:
    """Inline rule recognizing a content pattern such as a link."""

    import_matcher: Optional[Matcher] = None
    replace: Optional[TextMatchReplace] = None
    export: Optional[TextMatchExport] = None
    trigger: Optional[str] = None
    dependencies: tuple[type[Node], ...] = ()
    name: str = ""

    kind: ClassVar[TransformerKind] = TransformerKind.TEXT_MATCH


Transformer = Union[
    ElementTransformer,
    MultilineElementTransformer,
    TextFormatTransformer,
    TextMatchTransformer,
]


def kind_of(transformer: object) -> TransformerKind:
    """Return the kind of ``transformer`` or raise for foreign objects."""

    if isinstance(transformer, ElementTransformer):
        return TransformerKind.ELEMENT
    if isinstance(transformer, MultilineElementTransformer):
        return TransformerKind.MULTILINE_ELEMENT
    if isinstance(transformer, TextFormatTransformer):
        return TransformerKind.TEXT_FORMAT
    if isinstance(transformer, TextMatchTransformer):
        return TransformerKind.TEXT_MATCH
    raise TypeError(
        f"Expected a transformer record, found {type(transformer).__name__}."
    )


def describe(transformer: Transformer) -> str:
    if transformer.name:
        return transformer.name
    return f"<unnamed {kind_of(transformer).value}>"


def check_outcome(result: object, transformer: Transformer) -> Outcome:
    """Return ``result`` if it is an :class:`Outcome`, else fail loudly."""

    if isinstance(result, Outcome):
        return result
    raise TransformerError(
        "Transformer {0} returned {1!r}; replace callbacks must return an "
        "Outcome.".format(describe(transformer), result)
    )


__all__ = [
    "ElementExport",
    "ElementReplace",
    "ElementTransformer",
    "ExportChildren",
    "ExportFormat",
    "ImportLines",
    "MultilineElementTransformer",
    "MultilineReplace",
    "Outcome",
    "TextFormatTransformer",
    "TextMatchExport",
    "TextMatchReplace",
    "TextMatchTransformer",
    "Transformer",
    "TransformerKind",
    "check_outcome",
    "describe",
    "kind_of",
]
