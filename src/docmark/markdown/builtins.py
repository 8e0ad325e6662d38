"""Built-in transformers covering the supported markdown subset.

Tuples are in precedence order and can be concatenated with custom rules:
``[*custom, *TRANSFORMERS]``. Earlier rules win within a family.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from docmark.tree import (
    CodeNode,
    ElementNode,
    HeadingNode,
    HorizontalRuleNode,
    LineBreakNode,
    LinkNode,
    ListItemNode,
    ListNode,
    Node,
    QuoteNode,
    TextNode,
)

from .matcher import Match, regex
from .transformers import (
    ElementReplace,
    ElementTransformer,
    ExportChildren,
    ExportFormat,
    ImportLines,
    MultilineElementTransformer,
    Outcome,
    TextFormatTransformer,
    TextMatchTransformer,
    Transformer,
)

LIST_INDENT_SIZE = 4

_PUNCTUATION_ESCAPE_RE = re.compile(r"\\([!-/:-@\[-`{-~])")


# -- element rules ----------------------------------------------------------


def _heading_replace(
    block: ElementNode, children: list[Node], match: Match, is_import: bool
) -> Outcome:
    heading = HeadingNode(len(match.group(1)))
    heading.append(*children)
    block.replace(heading)
    return Outcome.HANDLED


def _heading_export(node: Node, export_children: ExportChildren) -> Optional[str]:
    if not isinstance(node, HeadingNode):
        return None
    return "#" * node.level + " " + export_children(node)


def _quote_replace(
    block: ElementNode, children: list[Node], match: Match, is_import: bool
) -> Outcome:
    previous = block.get_previous_sibling()
    if is_import and isinstance(previous, QuoteNode):
        previous.append(LineBreakNode(), *children)
        block.remove()
        return Outcome.HANDLED
    quote = QuoteNode()
    quote.append(*children)
    block.replace(quote)
    return Outcome.HANDLED


def _quote_export(node: Node, export_children: ExportChildren) -> Optional[str]:
    if not isinstance(node, QuoteNode):
        return None
    lines = export_children(node).split("\n")
    return "\n".join("> " + line for line in lines)


def _indent_depth(whitespace: str) -> int:
    tabs = whitespace.count("\t")
    spaces = whitespace.count(" ")
    return tabs + spaces // LIST_INDENT_SIZE


def _same_list(node: Optional[Node], list_type: str, marker: str) -> bool:
    return (
        isinstance(node, ListNode)
        and node.list_type == list_type
        and node.marker == marker
    )


def _list_replace(list_type: str) -> ElementReplace:
    def replace(
        block: ElementNode, children: list[Node], match: Match, is_import: bool
    ) -> Outcome:
        if list_type == "number":
            marker = "."
            start = int(match.group(2))
        else:
            marker = "-" if list_type == "check" else match.group(2)
            start = 1
        checked = match.group(3) == "x" if list_type == "check" else None

        item = ListItemNode(checked)
        item.append(*children)

        depth = _indent_depth(match.group(1))
        previous = block.get_previous_sibling()
        if depth == 0 or not isinstance(previous, ListNode):
            if _same_list(previous, list_type, marker):
                previous.append(item)  # type: ignore[union-attr]
                block.remove()
            else:
                new_list = ListNode(list_type, start, marker)
                new_list.append(item)
                block.replace(new_list)
            return Outcome.HANDLED

        target: ListNode = previous
        for level in range(depth):
            last = target.get_last_child()
            nested = last.nested_list() if isinstance(last, ListItemNode) else None
            innermost = level == depth - 1
            if nested is None or (
                innermost and not _same_list(nested, list_type, marker)
            ):
                nested = ListNode(list_type, start, marker)
                wrapper = ListItemNode()
                wrapper.append(nested)
                target.append(wrapper)
            target = nested
        target.append(item)
        block.remove()
        return Outcome.HANDLED

    return replace


def _list_export(node: Node, export_children: ExportChildren) -> Optional[str]:
    if not isinstance(node, ListNode):
        return None
    return _export_list(node, export_children, 0)


def _export_list(
    node: ListNode, export_children: ExportChildren, depth: int
) -> str:
    output: list[str] = []
    indent = " " * (depth * LIST_INDENT_SIZE)
    index = 0
    for item in node.get_children():
        if not isinstance(item, ListItemNode):
            continue
        nested = item.nested_list()
        if nested is not None:
            output.append(_export_list(nested, export_children, depth + 1))
            continue
        if node.list_type == "number":
            prefix = f"{node.start + index}. "
        elif node.list_type == "check":
            prefix = "- [x] " if item.checked else "- [ ] "
        else:
            prefix = f"{node.marker} "
        output.append(indent + prefix + export_children(item))
        index += 1
    return "\n".join(output)


def _horizontal_rule_replace(
    block: ElementNode, children: list[Node], match: Match, is_import: bool
) -> Outcome:
    block.replace(HorizontalRuleNode(match.group(1)))
    return Outcome.HANDLED


def _horizontal_rule_export(
    node: Node, export_children: ExportChildren
) -> Optional[str]:
    if not isinstance(node, HorizontalRuleNode):
        return None
    return node.marker


HEADING = ElementTransformer(
    matcher=regex(r"^(#{1,6})\s"),
    replace=_heading_replace,
    export=_heading_export,
    dependencies=(HeadingNode,),
    name="heading",
)

QUOTE = ElementTransformer(
    matcher=regex(r"^>\s"),
    replace=_quote_replace,
    export=_quote_export,
    dependencies=(QuoteNode,),
    name="quote",
)

CHECK_LIST = ElementTransformer(
    matcher=regex(r"^(\s*)(?:-\s)?\s?(\[(\s|x)?\])\s"),
    replace=_list_replace("check"),
    export=_list_export,
    dependencies=(ListNode, ListItemNode),
    name="check_list",
)

UNORDERED_LIST = ElementTransformer(
    matcher=regex(r"^(\s*)([-*+])\s"),
    replace=_list_replace("bullet"),
    export=_list_export,
    dependencies=(ListNode, ListItemNode),
    name="unordered_list",
)

ORDERED_LIST = ElementTransformer(
    matcher=regex(r"^(\s*)(\d{1,})\.\s"),
    replace=_list_replace("number"),
    export=_list_export,
    dependencies=(ListNode, ListItemNode),
    name="ordered_list",
)

HORIZONTAL_RULE = ElementTransformer(
    matcher=regex(r"^(---|\*\*\*|___)\s?$"),
    replace=_horizontal_rule_replace,
    export=_horizontal_rule_export,
    dependencies=(HorizontalRuleNode,),
    name="horizontal_rule",
)


# -- multiline rules --------------------------------------------------------


def _code_replace(
    parent: ElementNode,
    start: Match,
    end: Optional[Match],
    lines: list[str],
    import_lines: ImportLines,
    is_import: bool,
) -> Outcome:
    if len(lines) == 1:
        # ```word``` on one line: the captured word is code, not a language.
        code_node = CodeNode()
        content = [(start.group(1) or "") + lines[0]]
    else:
        code_node = CodeNode(start.group(1))
        content = list(lines)
        if not content[0].strip():
            content.pop(0)
        if content and not content[-1].strip():
            content.pop()

    for index, line in enumerate(content):
        if index:
            code_node.append(LineBreakNode())
        if line:
            code_node.append(TextNode(line))
    parent.append(code_node)
    return Outcome.HANDLED


def _code_export(node: Node, export_children: ExportChildren) -> Optional[str]:
    if not isinstance(node, CodeNode):
        return None
    content = node.get_text_content()
    body = "\n" + content if content else ""
    return "```" + (node.language or "") + body + "\n```"


CODE = MultilineElementTransformer(
    start=regex(r"^[ \t]*```(\w+)?"),
    end=regex(r"[ \t]*```$"),
    replace=_code_replace,
    export=_code_export,
    dependencies=(CodeNode,),
    name="code",
)


# -- text formats -----------------------------------------------------------

INLINE_CODE = TextFormatTransformer(formats=("code",), tag="`", name="inline_code")
HIGHLIGHT = TextFormatTransformer(formats=("highlight",), tag="==", name="highlight")
BOLD_ITALIC_STAR = TextFormatTransformer(
    formats=("bold", "italic"), tag="***", name="bold_italic_star"
)
BOLD_ITALIC_UNDERSCORE = TextFormatTransformer(
    formats=("bold", "italic"),
    tag="___",
    intraword=False,
    name="bold_italic_underscore",
)
BOLD_STAR = TextFormatTransformer(formats=("bold",), tag="**", name="bold_star")
BOLD_UNDERSCORE = TextFormatTransformer(
    formats=("bold",), tag="__", intraword=False, name="bold_underscore"
)
STRIKETHROUGH = TextFormatTransformer(
    formats=("strikethrough",), tag="~~", name="strikethrough"
)
ITALIC_STAR = TextFormatTransformer(formats=("italic",), tag="*", name="italic_star")
ITALIC_UNDERSCORE = TextFormatTransformer(
    formats=("italic",), tag="_", intraword=False, name="italic_underscore"
)


# -- text match -------------------------------------------------------------


def _link_replace(node: TextNode, match: Match) -> Outcome:
    text = _PUNCTUATION_ESCAPE_RE.sub(r"\1", match.group(1))
    link = LinkNode(match.group(2), match.group(3))
    link.append(TextNode(text, node.formats))
    node.replace(link)
    return Outcome.HANDLED


def _link_export(
    node: Node, export_children: ExportChildren, export_format: ExportFormat
) -> Optional[str]:
    if not isinstance(node, LinkNode):
        return None
    label = _LINK_LABEL_ESCAPE_RE.sub(r"\\\1", node.get_text_content())
    if node.title:
        content = f'[{label}]({node.url} "{node.title}")'
    else:
        content = f"[{label}]({node.url})"
    first = node.get_first_child()
    if node.get_children_size() == 1 and isinstance(first, TextNode):
        return export_format(first, content)
    return content


_LINK_LABEL_ESCAPE_RE = re.compile(r"([\\\[\]*_~`=])")

LINK = TextMatchTransformer(
    import_matcher=regex(
        r'(?:\[([^[]+)\])(?:\((?:([^()\s]+)(?:\s"((?:[^"]*\\")*[^"]*)"\s*)?)\))'
    ),
    replace=_link_replace,
    export=_link_export,
    trigger=")",
    dependencies=(LinkNode,),
    name="link",
)


ELEMENT_TRANSFORMERS: tuple[ElementTransformer, ...] = (
    HEADING,
    QUOTE,
    HORIZONTAL_RULE,
    CHECK_LIST,
    UNORDERED_LIST,
    ORDERED_LIST,
)

MULTILINE_ELEMENT_TRANSFORMERS: tuple[MultilineElementTransformer, ...] = (CODE,)

TEXT_FORMAT_TRANSFORMERS: tuple[TextFormatTransformer, ...] = (
    INLINE_CODE,
    HIGHLIGHT,
    BOLD_ITALIC_STAR,
    BOLD_ITALIC_UNDERSCORE,
    BOLD_STAR,
    BOLD_UNDERSCORE,
    STRIKETHROUGH,
    ITALIC_STAR,
    ITALIC_UNDERSCORE,
)

TEXT_MATCH_TRANSFORMERS: tuple[TextMatchTransformer, ...] = (LINK,)

TRANSFORMERS: tuple[Transformer, ...] = (
    *ELEMENT_TRANSFORMERS,
    *MULTILINE_ELEMENT_TRANSFORMERS,
    *TEXT_FORMAT_TRANSFORMERS,
    *TEXT_MATCH_TRANSFORMERS,
)

BUILTIN_TRANSFORMERS: dict[str, Transformer] = {
    transformer.name: transformer for transformer in TRANSFORMERS
}


def builtin_names() -> tuple[str, ...]:
    return tuple(BUILTIN_TRANSFORMERS)


def resolve_transformers(names: Iterable[str]) -> tuple[Transformer, ...]:
    """Map built-in transformer names to transformers, keeping the order."""

    resolved: list[Transformer] = []
    unknown: list[str] = []
    for name in names:
        transformer = BUILTIN_TRANSFORMERS.get(name)
        if transformer is None:
            unknown.append(name)
        else:
            resolved.append(transformer)
    if unknown:
        expected = ", ".join(BUILTIN_TRANSFORMERS)
        raise ValueError(
            f"Unknown transformer name(s): {', '.join(unknown)}. "
            f"Expected any of: {expected}."
        )
    return tuple(resolved)


__all__ = [
    "BOLD_ITALIC_STAR",
    "BOLD_ITALIC_UNDERSCORE",
    "BOLD_STAR",
    "BOLD_UNDERSCORE",
    "BUILTIN_TRANSFORMERS",
    "CHECK_LIST",
    "CODE",
    "ELEMENT_TRANSFORMERS",
    "HEADING",
    "HIGHLIGHT",
    "HORIZONTAL_RULE",
    "INLINE_CODE",
    "ITALIC_STAR",
    "ITALIC_UNDERSCORE",
    "LINK",
    "LIST_INDENT_SIZE",
    "MULTILINE_ELEMENT_TRANSFORMERS",
    "ORDERED_LIST",
    "QUOTE",
    "STRIKETHROUGH",
    "TEXT_FORMAT_TRANSFORMERS",
    "TEXT_MATCH_TRANSFORMERS",
    "TRANSFORMERS",
    "UNORDERED_LIST",
    "builtin_names",
    "resolve_transformers",
]
