"""JSON serialization for document trees."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional

from .nodes import (
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
    TextNode,
    TreeStructureError,
)

_DEFAULT_NODE_CLASSES: tuple[type[Node], ...] = (
    RootNode,
    ParagraphNode,
    HeadingNode,
    QuoteNode,
    CodeNode,
    ListNode,
    ListItemNode,
    LinkNode,
    TextNode,
    LineBreakNode,
    HorizontalRuleNode,
)


class TreeSerializationError(TreeStructureError):
    """Raised when a serialized tree cannot be decoded."""


def node_to_dict(node: Node) -> dict[str, Any]:
    """Return the JSON-compatible mapping for ``node`` and its subtree."""

    return node.to_dict()


def node_from_dict(
    data: Mapping[str, Any],
    *,
    node_classes: Optional[Iterable[type[Node]]] = None,
) -> Node:
    """Rebuild a node (and its children) from :func:`node_to_dict` output.

    ``node_classes`` extends the built-in classes so custom nodes can be
    decoded; a custom class replaces a built-in sharing its ``kind``.
    """

    registry = _build_registry(node_classes)
    return _decode(data, registry)


def dumps(root: RootNode, *, indent: Optional[int] = 2) -> str:
    return json.dumps(node_to_dict(root), indent=indent, ensure_ascii=False)


def loads(
    payload: str,
    *,
    node_classes: Optional[Iterable[type[Node]]] = None,
) -> RootNode:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise TreeSerializationError(f"Invalid tree JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise TreeSerializationError("Tree JSON must be an object.")
    node = node_from_dict(data, node_classes=node_classes)
    if not isinstance(node, RootNode):
        raise TreeSerializationError(
            f"Expected a 'root' node at the top level, found '{node.kind}'."
        )
    return node


def _build_registry(
    extra: Optional[Iterable[type[Node]]],
) -> dict[str, type[Node]]:
    registry = {cls.kind: cls for cls in _DEFAULT_NODE_CLASSES}
    for cls in extra or ():
        registry[cls.kind] = cls
    return registry


def _decode(data: Mapping[str, Any], registry: Mapping[str, type[Node]]) -> Node:
    if not isinstance(data, Mapping):
        raise TreeSerializationError("Every node must be a JSON object.")
    kind = data.get("type")
    if not isinstance(kind, str):
        raise TreeSerializationError("Every node needs a string 'type' field.")
    try:
        cls = registry[kind]
    except KeyError as exc:
        raise TreeSerializationError(f"Unknown node type '{kind}'.") from exc

    try:
        node = cls.from_dict(dict(data))
    except (TypeError, ValueError) as exc:
        raise TreeSerializationError(
            f"Invalid attributes for '{kind}' node: {exc}"
        ) from exc

    children = data.get("children", ())
    if children and not isinstance(node, ElementNode):
        raise TreeSerializationError(f"'{kind}' nodes cannot have children.")
    if isinstance(node, ElementNode):
        if not isinstance(children, list):
            raise TreeSerializationError(
                f"'children' of '{kind}' must be a list."
            )
        node.append(*(_decode(child, registry) for child in children))
    return node


__all__ = [
    "TreeSerializationError",
    "dumps",
    "loads",
    "node_from_dict",
    "node_to_dict",
]
