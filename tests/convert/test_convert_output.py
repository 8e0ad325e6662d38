from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from docmark.convert import output
from docmark.tree import ParagraphNode, RootNode, TextNode, TreeSerializationError


def _root(text: str) -> RootNode:
    root = RootNode()
    paragraph = ParagraphNode()
    paragraph.append(TextNode(text))
    root.append(paragraph)
    return root


def test_render_tree_document_serializes_metadata():
    converted_at = datetime(
        2025, 3, 18, 16, 30, 15, 999, tzinfo=timezone(timedelta(hours=2))
    )

    rendered = output.render_tree_document(
        {"source_path": "/docs/a.md", "converted_at": converted_at},
        _root("hi"),
    )

    assert rendered.endswith("}\n")
    document = json.loads(rendered)
    assert document["version"] == output.FORMAT_VERSION
    assert document["metadata"] == {
        "source_path": "/docs/a.md",
        "converted_at": "2025-03-18T14:30:15Z",
    }
    assert document["root"]["children"][0]["children"][0]["text"] == "hi"


def test_render_keeps_non_ascii_text():
    rendered = output.render_tree_document({}, _root("café"))

    assert "café" in rendered


def test_read_tree_document_envelope():
    rendered = output.render_tree_document({"source_path": "a.md"}, _root("x"))

    metadata, root = output.read_tree_document(rendered)

    assert metadata == {"source_path": "a.md"}
    assert root.get_text_content() == "x"


def test_read_tree_document_accepts_bare_root():
    payload = json.dumps(_root("bare").to_dict())

    metadata, root = output.read_tree_document(payload)

    assert metadata == {}
    assert root.get_text_content() == "bare"


@pytest.mark.parametrize(
    "payload, message",
    [
        ("{", "Invalid tree JSON"),
        ("[1]", "must be a JSON object"),
        ('{"root": {"type": "root"}, "metadata": "x"}', "metadata"),
        ('{"root": {"type": "paragraph"}}', "Expected a 'root'"),
    ],
)
def test_read_tree_document_errors(payload, message):
    with pytest.raises(TreeSerializationError, match=message):
        output.read_tree_document(payload)


@pytest.mark.parametrize(
    "body, expected",
    [("text", "text\n"), ("text\n\n", "text\n"), ("", "")],
)
def test_render_markdown_single_trailing_newline(body, expected):
    assert output.render_markdown(body) == expected
