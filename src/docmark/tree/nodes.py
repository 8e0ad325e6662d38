"""In-memory rich-document tree used as the conversion target and source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Iterator, Optional, Sequence

FORMATS: frozenset[str] = frozenset(
    {"bold", "italic", "strikethrough", "code", "highlight"}
)

LIST_TYPES: frozenset[str] = frozenset({"bullet", "number", "check"})


class TreeStructureError(RuntimeError):
    """Raised when a mutation would violate the tree's nesting rules."""


class UnregisteredNodeError(TreeStructureError):
    """Raised when a root rejects a node class it was not configured with."""


@dataclass(frozen=True)
class Selection:
    """Collapsed selection anchored at ``offset`` inside ``anchor``."""

    anchor: "Node"
    offset: int = 0


class Node:
    """Base class for every document node."""

    kind: ClassVar[str] = "node"

    def __init__(self) -> None:
        self._parent: Optional[ElementNode] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get_text_content()!r})"

    # -- tree queries -----------------------------------------------------

    def is_inline(self) -> bool:
        return False

    def get_parent(self) -> Optional["ElementNode"]:
        return self._parent

    def get_root(self) -> Optional["RootNode"]:
        node: Optional[Node] = self
        while node is not None:
            if isinstance(node, RootNode):
                return node
            node = node.get_parent()
        return None

    def is_attached(self) -> bool:
        return self.get_root() is not None

    def get_index(self) -> int:
        parent = self._require_parent()
        return parent._index_of(self)

    def get_previous_sibling(self) -> Optional["Node"]:
        parent = self._parent
        if parent is None:
            return None
        index = parent._index_of(self)
        return parent._children[index - 1] if index > 0 else None

    def get_next_sibling(self) -> Optional["Node"]:
        parent = self._parent
        if parent is None:
            return None
        index = parent._index_of(self)
        if index + 1 < len(parent._children):
            return parent._children[index + 1]
        return None

    def get_text_content(self) -> str:
        return ""

    def get_text_content_size(self) -> int:
        return len(self.get_text_content())

    # -- mutation ---------------------------------------------------------

    def remove(self) -> None:
        parent = self._parent
        if parent is None:
            return
        parent._children.remove(self)
        self._parent = None

    def replace(self, replacement: "Node") -> "Node":
        parent = self._require_parent()
        if replacement is self:
            return self
        parent._check_child(replacement)
        replacement.remove()
        index = parent._index_of(self)
        parent._children[index] = replacement
        self._parent = None
        replacement._parent = parent
        parent._after_attach(replacement)
        return replacement

    def insert_before(self, node: "Node") -> "Node":
        parent = self._require_parent()
        parent.splice(parent._index_of(self), 0, [node])
        return node

    def insert_after(self, node: "Node") -> "Node":
        parent = self._require_parent()
        parent.splice(parent._index_of(self) + 1, 0, [node])
        return node

    # -- serialization ----------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        return cls()

    def _require_parent(self) -> "ElementNode":
        if self._parent is None:
            raise TreeStructureError(
                f"{type(self).__name__} is not attached to a parent."
            )
        return self._parent


class TextNode(Node):
    """A run of text sharing one set of character formats."""

    kind = "text"

    def __init__(self, text: str = "", formats: Iterable[str] = ()) -> None:
        super().__init__()
        self._text = text
        self._formats: set[str] = set()
        self.set_format(*formats)

    def is_inline(self) -> bool:
        return True

    def get_text_content(self) -> str:
        return self._text

    def set_text(self, text: str) -> "TextNode":
        self._text = text
        return self

    @property
    def formats(self) -> frozenset[str]:
        return frozenset(self._formats)

    def has_format(self, name: str) -> bool:
        return name in self._formats

    def toggle_format(self, name: str) -> "TextNode":
        _validate_format(name)
        if name in self._formats:
            self._formats.discard(name)
        else:
            self._formats.add(name)
        return self

    def set_format(self, *names: str) -> "TextNode":
        for name in names:
            _validate_format(name)
        self._formats = set(names)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "text": self._text,
            "format": sorted(self._formats),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TextNode":
        return cls(str(data.get("text", "")), data.get("format", ()))


class LineBreakNode(Node):
    """Soft line break inside a block."""

    kind = "linebreak"

    def is_inline(self) -> bool:
        return True

    def get_text_content(self) -> str:
        return "\n"


class HorizontalRuleNode(Node):
    """Thematic break; remembers the marker it was written with."""

    kind = "horizontalrule"

    def __init__(self, marker: str = "***") -> None:
        super().__init__()
        self.marker = marker

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "marker": self.marker}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HorizontalRuleNode":
        return cls(str(data.get("marker", "***")))


class ElementNode(Node):
    """Node with ordered children; accepts inline children by default."""

    kind = "element"

    def __init__(self) -> None:
        super().__init__()
        self._children: list[Node] = []

    def __iter__(self) -> Iterator[Node]:
        return iter(tuple(self._children))

    def can_contain(self, child: Node) -> bool:
        return child.is_inline()

    def get_children(self) -> list[Node]:
        return list(self._children)

    def get_children_size(self) -> int:
        return len(self._children)

    def get_first_child(self) -> Optional[Node]:
        return self._children[0] if self._children else None

    def get_last_child(self) -> Optional[Node]:
        return self._children[-1] if self._children else None

    def get_first_descendant(self) -> Optional[Node]:
        node = self.get_first_child()
        while isinstance(node, ElementNode) and node._children:
            node = node._children[0]
        return node

    def get_last_descendant(self) -> Optional[Node]:
        node = self.get_last_child()
        while isinstance(node, ElementNode) and node._children:
            node = node._children[-1]
        return node

    def is_empty(self) -> bool:
        return not self._children

    def get_text_content(self) -> str:
        parts: list[str] = []
        for index, child in enumerate(self._children):
            parts.append(child.get_text_content())
            if (
                index + 1 < len(self._children)
                and not child.is_inline()
                and not self._children[index + 1].is_inline()
            ):
                parts.append("\n\n")
        return "".join(parts)

    def append(self, *nodes: Node) -> "ElementNode":
        return self.splice(len(self._children), 0, nodes)

    def splice(
        self, start: int, delete_count: int, nodes: Sequence[Node]
    ) -> "ElementNode":
        for node in nodes:
            if node is self or _is_ancestor(node, self):
                raise TreeStructureError(
                    "Cannot insert a node into its own subtree."
                )
            self._check_child(node)
        for removed in self._children[start:start + delete_count]:
            removed._parent = None
        del self._children[start:start + delete_count]
        offset = start
        for node in nodes:
            if node._parent is self and self._index_of(node) < offset:
                offset -= 1
            node.remove()
            self._children.insert(offset, node)
            node._parent = self
            offset += 1
        for node in nodes:
            self._after_attach(node)
        return self

    def clear(self) -> "ElementNode":
        for child in self._children:
            child._parent = None
        self._children.clear()
        return self

    def to_dict(self) -> dict[str, Any]:
        payload = self._attributes()
        payload["children"] = [child.to_dict() for child in self._children]
        return payload

    def _attributes(self) -> dict[str, Any]:
        return {"type": self.kind}

    def _index_of(self, node: Node) -> int:
        for index, child in enumerate(self._children):
            if child is node:
                return index
        raise TreeStructureError(
            f"{type(node).__name__} is not a child of {type(self).__name__}."
        )

    def _check_child(self, node: Node) -> None:
        if isinstance(node, RootNode):
            raise TreeStructureError("A root node cannot be nested.")
        if not self.can_contain(node):
            raise TreeStructureError(
                f"{type(self).__name__} cannot contain {type(node).__name__}."
            )

    def _after_attach(self, node: Node) -> None:
        root = self.get_root()
        if root is not None:
            root._check_registered(node)


class RootNode(ElementNode):
    """Top of a document; holds block nodes only.

    ``node_types`` restricts which node classes may be attached below the
    root. ``None`` accepts every class.
    """

    kind = "root"

    def __init__(self, node_types: Optional[Iterable[type[Node]]] = None) -> None:
        super().__init__()
        self.node_types: Optional[frozenset[type[Node]]] = (
            None
            if node_types is None
            else frozenset((*CORE_NODE_TYPES, *node_types))
        )
        self.selection: Optional[Selection] = None

    def can_contain(self, child: Node) -> bool:
        return not child.is_inline()

    def select(self, anchor: Node, offset: int = 0) -> Selection:
        if anchor.get_root() is not self:
            raise TreeStructureError("Selection anchor must belong to this root.")
        self.selection = Selection(anchor=anchor, offset=offset)
        return self.selection

    def select_start(self) -> Selection:
        anchor = self.get_first_descendant()
        if anchor is None:
            anchor = self
        elif not isinstance(anchor, (TextNode, ElementNode)):
            anchor = anchor.get_parent() or self
        self.selection = Selection(anchor=anchor, offset=0)
        return self.selection

    def _check_registered(self, node: Node) -> None:
        if self.node_types is None:
            return
        for candidate in _walk(node):
            if type(candidate) not in self.node_types:
                raise UnregisteredNodeError(
                    f"{type(candidate).__name__} is not registered on this root."
                )


class ParagraphNode(ElementNode):
    kind = "paragraph"


class HeadingNode(ElementNode):
    """Heading of ``level`` 1-6."""

    kind = "heading"

    def __init__(self, level: int = 1) -> None:
        super().__init__()
        if not 1 <= level <= 6:
            raise TreeStructureError(f"Heading level must be 1-6, got {level}.")
        self.level = level

    @property
    def tag(self) -> str:
        return f"h{self.level}"

    def _attributes(self) -> dict[str, Any]:
        return {"type": self.kind, "tag": self.tag}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HeadingNode":
        tag = str(data.get("tag", "h1"))
        return cls(int(tag.lstrip("h") or 1))


class QuoteNode(ElementNode):
    kind = "quote"


class CodeNode(ElementNode):
    """Fenced code block; holds raw text and line breaks."""

    kind = "code"

    def __init__(self, language: Optional[str] = None) -> None:
        super().__init__()
        self.language = language

    def can_contain(self, child: Node) -> bool:
        return isinstance(child, (TextNode, LineBreakNode))

    def _attributes(self) -> dict[str, Any]:
        return {"type": self.kind, "language": self.language}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeNode":
        return cls(data.get("language"))


class ListNode(ElementNode):
    """Bullet, numbered or check list."""

    kind = "list"

    def __init__(
        self, list_type: str = "bullet", start: int = 1, marker: str = "-"
    ) -> None:
        super().__init__()
        if list_type not in LIST_TYPES:
            expected = ", ".join(sorted(LIST_TYPES))
            raise TreeStructureError(
                f"Unknown list type '{list_type}'. Expected one of: {expected}."
            )
        self.list_type = list_type
        self.start = start
        self.marker = marker

    def can_contain(self, child: Node) -> bool:
        return isinstance(child, ListItemNode)

    def _attributes(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "listType": self.list_type,
            "start": self.start,
            "marker": self.marker,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListNode":
        return cls(
            str(data.get("listType", "bullet")),
            int(data.get("start", 1)),
            str(data.get("marker", "-")),
        )


class ListItemNode(ElementNode):
    """List entry; ``checked`` is only meaningful inside check lists."""

    kind = "listitem"

    def __init__(self, checked: Optional[bool] = None) -> None:
        super().__init__()
        self.checked = checked

    def can_contain(self, child: Node) -> bool:
        return child.is_inline() or isinstance(child, ListNode)

    def nested_list(self) -> Optional[ListNode]:
        """Return the list this item wraps, if it wraps nothing else."""

        child = self.get_first_child()
        if len(self._children) == 1 and isinstance(child, ListNode):
            return child
        return None

    def _attributes(self) -> dict[str, Any]:
        return {"type": self.kind, "checked": self.checked}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListItemNode":
        return cls(data.get("checked"))


class LinkNode(ElementNode):
    """Inline link with a destination and optional title."""

    kind = "link"

    def __init__(self, url: str = "", title: Optional[str] = None) -> None:
        super().__init__()
        self.url = url
        self.title = title

    def is_inline(self) -> bool:
        return True

    def can_contain(self, child: Node) -> bool:
        return isinstance(child, (TextNode, LineBreakNode))

    def _attributes(self) -> dict[str, Any]:
        return {"type": self.kind, "url": self.url, "title": self.title}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LinkNode":
        return cls(str(data.get("url", "")), data.get("title"))


def is_empty_paragraph(node: Optional[Node]) -> bool:
    """Return True for paragraphs holding nothing or only short blank text."""

    if not isinstance(node, ParagraphNode):
        return False
    first = node.get_first_child()
    if first is None:
        return True
    return (
        node.get_children_size() == 1
        and isinstance(first, TextNode)
        and len(first.get_text_content()) <= 3
        and not first.get_text_content().strip()
    )


def _validate_format(name: str) -> None:
    if name not in FORMATS:
        expected = ", ".join(sorted(FORMATS))
        raise TreeStructureError(
            f"Unknown text format '{name}'. Expected one of: {expected}."
        )


def _is_ancestor(candidate: Node, node: Node) -> bool:
    parent = node.get_parent()
    while parent is not None:
        if parent is candidate:
            return True
        parent = parent.get_parent()
    return False


def _walk(node: Node) -> Iterator[Node]:
    yield node
    if isinstance(node, ElementNode):
        for child in node._children:
            yield from _walk(child)


CORE_NODE_TYPES = (RootNode, ParagraphNode, TextNode, LineBreakNode)


__all__ = [
    "CORE_NODE_TYPES",
    "FORMATS",
    "LIST_TYPES",
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
    "TreeStructureError",
    "UnregisteredNodeError",
    "is_empty_paragraph",
]
