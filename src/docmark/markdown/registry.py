"""Ordered transformer registry partitioned by transformer kind."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Iterable, Iterator, Union

from docmark.tree import Node

from .errors import MissingDependencyError
from .escaping import Escaper
from .transformers import (
    ElementTransformer,
    MultilineElementTransformer,
    TextFormatTransformer,
    TextMatchTransformer,
    Transformer,
    TransformerKind,
    describe,
    kind_of,
)


@dataclass(frozen=True)
class TransformerSet:
    """Four ordered rule families; earlier entries take precedence.

    Build it once and treat it as read-only: the pipelines share it by
    reference and cache derived tables on it.
    """

    element: tuple[ElementTransformer, ...] = ()
    multiline_element: tuple[MultilineElementTransformer, ...] = ()
    text_format: tuple[TextFormatTransformer, ...] = ()
    text_match: tuple[TextMatchTransformer, ...] = ()

    @classmethod
    def from_transformers(
        cls, transformers: Iterable[Transformer]
    ) -> "TransformerSet":
        """Partition ``transformers`` by kind, keeping relative order."""

        buckets: dict[TransformerKind, list[Transformer]] = {
            kind: [] for kind in TransformerKind
        }
        for transformer in transformers:
            buckets[kind_of(transformer)].append(transformer)
        return cls(
            element=tuple(buckets[TransformerKind.ELEMENT]),  # type: ignore[arg-type]
            multiline_element=tuple(
                buckets[TransformerKind.MULTILINE_ELEMENT]  # type: ignore[arg-type]
            ),
            text_format=tuple(buckets[TransformerKind.TEXT_FORMAT]),  # type: ignore[arg-type]
            text_match=tuple(buckets[TransformerKind.TEXT_MATCH]),  # type: ignore[arg-type]
        )

    @classmethod
    def coerce(
        cls, transformers: Union["TransformerSet", Iterable[Transformer]]
    ) -> "TransformerSet":
        if isinstance(transformers, TransformerSet):
            return transformers
        return cls.from_transformers(transformers)

    def __iter__(self) -> Iterator[Transformer]:
        yield from self.multiline_element
        yield from self.element
        yield from self.text_format
        yield from self.text_match

    def __len__(self) -> int:
        return (
            len(self.element)
            + len(self.multiline_element)
            + len(self.text_format)
            + len(self.text_match)
        )

    def dependencies(self) -> frozenset[type[Node]]:
        return frozenset(
            dependency
            for transformer in self
            for dependency in transformer.dependencies
        )

    def check_dependencies(self, available: Iterable[type[Node]]) -> None:
        """Raise :class:`MissingDependencyError` for unavailable node classes."""

        known = frozenset(available)
        missing: list[str] = []
        for transformer in self:
            for dependency in transformer.dependencies:
                if dependency not in known:
                    missing.append(
                        f"{describe(transformer)} needs {dependency.__name__}"
                    )
        if missing:
            raise MissingDependencyError(
                "Transformer dependencies are not registered: "
                + "; ".join(missing)
            )

    @cached_property
    def escaper(self) -> Escaper:
        tags: list[str] = []
        for transformer in self.text_format:
            tags.append(transformer.tag)
            tags.append(transformer.closing)
        return Escaper.for_tags(tags)

    @cached_property
    def formats_by_length(self) -> tuple[TextFormatTransformer, ...]:
        """Text formats ordered longest open tag first, ties by registration."""

        return tuple(
            sorted(self.text_format, key=lambda item: -len(item.tag))
        )

    @cached_property
    def export_formats(self) -> tuple[TextFormatTransformer, ...]:
        """First registered single-format transformer for each format."""

        seen: set[str] = set()
        chosen: list[TextFormatTransformer] = []
        for transformer in self.text_format:
            if len(transformer.formats) != 1:
                continue
            name = transformer.formats[0]
            if name in seen:
                continue
            seen.add(name)
            chosen.append(transformer)
        return tuple(chosen)


__all__ = ["TransformerSet"]
