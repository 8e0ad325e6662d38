"""Rich-document tree consumed and produced by the markdown engine."""

from __future__ import annotations

from .nodes import (
    CORE_NODE_TYPES,
    FORMATS,
    CodeNode,
    ElementNode,
    HeadingNode,
    HorizontalRuleNode,
    LineBreakNode,
    LinkNode,
    ListItemNode,
    ListNode,
    Node,
    ParagraphNode,
    QuoteNode,
    RootNode,
    Selection,
    TextNode,
    TreeStructureError,
    UnregisteredNodeError,
    is_empty_paragraph,
)
from .serialize import (
    TreeSerializationError,
    dumps,
    loads,
    node_from_dict,
    node_to_dict,
)

__all__ = [
    "CORE_NODE_TYPES",
    "FORMATS",
    "CodeNode",
    "ElementNode",
    "HeadingNode",
    "HorizontalRuleNode",
    "LineBreakNode",
    "LinkNode",
    "ListItemNode",
    "ListNode",
    "Node",
    "ParagraphNode",
    "QuoteNode",
    "RootNode",
    "Selection",
    "TextNode",
    "TreeSerializationError",
    "TreeStructureError",
    "UnregisteredNodeError",
    "dumps",
    "is_empty_paragraph",
    "loads",
    "node_from_dict",
    "node_to_dict",
]
