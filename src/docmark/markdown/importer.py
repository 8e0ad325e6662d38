"""Markdown text to document tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from docmark.tree import (
    ElementNode,
    LineBreakNode,
    ListItemNode,
    ListNode,
    Node,
    ParagraphNode,
    QuoteNode,
    RootNode,
    is_empty_paragraph,
)

from .inline import InlineImporter
from .matcher import Match
from .registry import TransformerSet
from .transformers import (
    MultilineElementTransformer,
    Outcome,
    Transformer,
    check_outcome,
    describe,
)

logger = logging.getLogger(__name__)


@dataclass
class ConversionContext:
    """Per-call import state: the lines and the cursor into them."""

    lines: list[str]
    preserve_new_lines: bool = False
    cursor: int = 0

    def current(self) -> str:
        return self.lines[self.cursor]

    def exhausted(self) -> bool:
        return self.cursor >= len(self.lines)


@dataclass(frozen=True)
class _Span:
    end_index: int
    end_match: Optional[Match]
    lines: list[str]


class MarkdownImporter:
    """Run the multiline, element and inline families over input lines."""

    def __init__(
        self, transformers: TransformerSet, *, preserve_new_lines: bool = False
    ) -> None:
        self.transformers = transformers
        self.preserve_new_lines = preserve_new_lines
        self._inline = InlineImporter(transformers)

    def import_lines(self, lines: Sequence[str], container: ElementNode) -> None:
        """Import ``lines`` as blocks appended to ``container``."""

        context = ConversionContext(list(lines), self.preserve_new_lines)
        while not context.exhausted():
            if self._import_multiline(context, container):
                continue
            self._import_line(context.current(), container)
            context.cursor += 1

        if not context.preserve_new_lines:
            _remove_empty_paragraphs(container)

    def _import_multiline(
        self, context: ConversionContext, parent: ElementNode
    ) -> bool:
        line = context.current()
        for transformer in self.transformers.multiline_element:
            start = transformer.start.match(line)
            if start is None:
                continue
            span = _find_span(transformer, context, start)
            if span is None:
                logger.debug(
                    "Multiline span has no end; importing line by line",
                    extra={
                        "transformer": describe(transformer),
                        "line_number": context.cursor + 1,
                    },
                )
                continue
            result = transformer.replace(
                parent,
                start,
                span.end_match,
                span.lines,
                self.import_lines,
                True,
            )
            if check_outcome(result, transformer) is Outcome.HANDLED:
                context.cursor = span.end_index + 1
                return True
            logger.debug(
                "Multiline transformer passed on span",
                extra={
                    "transformer": describe(transformer),
                    "outcome": result.value,
                    "line_number": context.cursor + 1,
                },
            )
        return False

    def _import_line(self, line: str, parent: ElementNode) -> None:
        for transformer in self.transformers.element:
            match = transformer.matcher.match(line)
            if match is None:
                continue
            block = ParagraphNode()
            block.append(*self._inline.import_text(line[match.end():]))
            parent.append(block)
            result = transformer.replace(block, block.get_children(), match, True)
            if check_outcome(result, transformer) is Outcome.HANDLED:
                return
            block.remove()

        self._import_paragraph(line, parent)

    def _import_paragraph(self, line: str, parent: ElementNode) -> None:
        children = self._inline.import_text(line)
        if line.strip():
            target = _soft_break_target(parent.get_last_child())
            if target is not None:
                target.append(LineBreakNode(), *children)
                return
        paragraph = ParagraphNode()
        paragraph.append(*children)
        parent.append(paragraph)


def _find_span(
    transformer: MultilineElementTransformer,
    context: ConversionContext,
    start: Match,
) -> Optional[_Span]:
    line = context.current()
    if transformer.end is None:
        return _Span(context.cursor, None, [line[start.end():]])

    end = transformer.end.search(line, start.end())
    if end is not None:
        return _Span(context.cursor, end, [line[start.end():end.start()]])

    for index in range(context.cursor + 1, len(context.lines)):
        candidate = context.lines[index]
        end = transformer.end.search(candidate)
        if end is None:
            continue
        lines = [
            line[start.end():],
            *context.lines[context.cursor + 1:index],
            candidate[:end.start()],
        ]
        return _Span(index, end, lines)
    return None


def _soft_break_target(node: Optional[Node]) -> Optional[ElementNode]:
    target: Optional[Node] = None
    if isinstance(node, (ParagraphNode, QuoteNode)):
        target = node
    elif isinstance(node, ListNode):
        target = node.get_last_descendant()
        while target is not None and not isinstance(target, ListItemNode):
            target = target.get_parent()
    if isinstance(target, ElementNode) and target.get_text_content_size() > 0:
        return target
    return None


def _remove_empty_paragraphs(container: ElementNode) -> None:
    for child in container.get_children():
        if is_empty_paragraph(child) and container.get_children_size() > 1:
            child.remove()


def convert_from_text(
    text: str,
    transformers: Union[TransformerSet, Iterable[Transformer]],
    target_root: RootNode,
    preserve_new_lines: bool = False,
) -> None:
    """Replace the content of ``target_root`` with the blocks parsed from ``text``."""

    transformer_set = TransformerSet.coerce(transformers)
    if target_root.node_types is not None:
        transformer_set.check_dependencies(target_root.node_types)

    lines = text.replace("\r\n", "\n").split("\n")
    had_selection = target_root.selection is not None
    target_root.clear()
    target_root.selection = None

    importer = MarkdownImporter(
        transformer_set, preserve_new_lines=preserve_new_lines
    )
    importer.import_lines(lines, target_root)

    if had_selection:
        target_root.select_start()

    logger.debug(
        "Imported markdown",
        extra={
            "line_count": len(lines),
            "block_count": target_root.get_children_size(),
            "preserve_new_lines": preserve_new_lines,
        },
    )


__all__ = ["ConversionContext", "MarkdownImporter", "convert_from_text"]
