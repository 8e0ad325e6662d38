"""``docmark show``: print the document tree parsed from a file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from docmark.convert.cli import add_config_arguments, load_from_args
from docmark.convert.converter import MARKDOWN_EXTENSIONS, TREE_EXTENSIONS
from docmark.convert.output import read_tree_document
from docmark.markdown import (
    TransformerLoadError,
    TransformerSet,
    convert_from_text,
)
from docmark.tree import (
    CodeNode,
    ElementNode,
    HeadingNode,
    HorizontalRuleNode,
    LinkNode,
    ListItemNode,
    ListNode,
    Node,
    RootNode,
    TextNode,
    TreeStructureError,
    dumps,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmark show",
        description="Parse a markdown or JSON tree file and print its tree.",
    )
    parser.add_argument("path", type=Path, help="File to inspect.")
    add_config_arguments(parser)
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the tree as JSON instead of an outline.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    config = load_from_args(parser, args).config

    try:
        root = load_tree(
            args.path,
            config.build_transformers(),
            preserve_new_lines=config.preserve_newlines,
        )
    except (OSError, TransformerLoadError, TreeStructureError, ValueError) as exc:
        sys.stderr.write(f"{args.path}: {exc}\n")
        return 1

    console = Console(highlight=False)
    if args.json:
        console.print(dumps(root), markup=False, soft_wrap=True)
    else:
        console.print(render_tree(root, label=str(args.path)))
    return 0


def load_tree(
    path: Path, transformers: TransformerSet, *, preserve_new_lines: bool = False
) -> RootNode:
    """Read ``path`` as markdown or a JSON tree document."""

    extension = path.suffix.lstrip(".").lower()
    text = path.read_text(encoding="utf-8")
    if extension in TREE_EXTENSIONS:
        _, root = read_tree_document(text)
        return root
    if extension not in MARKDOWN_EXTENSIONS:
        raise ValueError(f"Unsupported file extension '.{extension}'.")
    root = RootNode()
    body = text.replace("\r\n", "\n").removesuffix("\n")
    convert_from_text(body, transformers, root, preserve_new_lines)
    return root


def render_tree(root: RootNode, *, label: str = "root") -> Tree:
    tree = Tree(f"[bold]{escape(label)}[/]")
    for child in root.get_children():
        _add_node(tree, child)
    return tree


def _add_node(branch: Tree, node: Node) -> None:
    child_branch = branch.add(_describe(node))
    if isinstance(node, ElementNode):
        for child in node.get_children():
            _add_node(child_branch, child)


def _describe(node: Node) -> str:
    label = f"[cyan]{node.kind}[/]"
    if isinstance(node, TextNode):
        formats = ",".join(sorted(node.formats))
        suffix = f" [magenta]\\[{formats}][/]" if formats else ""
        return f"{label} {escape(repr(node.get_text_content()))}{suffix}"
    if isinstance(node, HeadingNode):
        return f"{label} {node.tag}"
    if isinstance(node, ListNode):
        return (
            f"{label} {node.list_type} start={node.start} "
            f"marker={escape(node.marker)}"
        )
    if isinstance(node, ListItemNode) and node.checked is not None:
        return f"{label} checked={node.checked}"
    if isinstance(node, CodeNode) and node.language:
        return f"{label} {escape(node.language)}"
    if isinstance(node, LinkNode):
        title = f" {escape(repr(node.title))}" if node.title else ""
        return f"{label} {escape(node.url)}{title}"
    if isinstance(node, HorizontalRuleNode):
        return f"{label} {escape(node.marker)}"
    return label


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
