"""Document tree to markdown text."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from docmark.tree import ElementNode, Node, RootNode, is_empty_paragraph

from .inline import InlineExporter
from .registry import TransformerSet
from .transformers import Transformer

logger = logging.getLogger(__name__)


class MarkdownExporter:
    """Render blocks through multiline then element exports."""

    def __init__(
        self, transformers: TransformerSet, *, preserve_new_lines: bool = False
    ) -> None:
        self.transformers = transformers
        self.preserve_new_lines = preserve_new_lines
        self._inline = InlineExporter(transformers)

    def export_blocks(self, container: ElementNode) -> str:
        children = container.get_children()
        output: list[str] = []
        for index, child in enumerate(children):
            result = self.export_block(child)
            if result is None:
                continue
            if (
                not self.preserve_new_lines
                and index > 0
                and not is_empty_paragraph(child)
                and not is_empty_paragraph(children[index - 1])
            ):
                result = "\n" + result
            output.append(result)
        return "\n".join(output)

    def export_block(self, node: Node) -> Optional[str]:
        for transformer in (
            *self.transformers.multiline_element,
            *self.transformers.element,
        ):
            if transformer.export is None:
                continue
            result = transformer.export(node, self._inline.export_children)
            if result is not None:
                return result

        if isinstance(node, ElementNode):
            if any(not child.is_inline() for child in node):
                return self.export_blocks(node)
            return self._inline.export_children(node)
        return node.get_text_content()


def convert_to_text(
    transformers: Union[TransformerSet, Iterable[Transformer]],
    source_root: RootNode,
    preserve_new_lines: bool = False,
) -> str:
    """Serialize ``source_root`` to markdown; the tree is not modified."""

    exporter = MarkdownExporter(
        TransformerSet.coerce(transformers),
        preserve_new_lines=preserve_new_lines,
    )
    text = exporter.export_blocks(source_root)
    logger.debug(
        "Exported markdown",
        extra={
            "block_count": source_root.get_children_size(),
            "character_count": len(text),
            "preserve_new_lines": preserve_new_lines,
        },
    )
    return text


__all__ = ["MarkdownExporter", "convert_to_text"]
