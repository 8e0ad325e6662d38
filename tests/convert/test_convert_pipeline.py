from __future__ import annotations

import json
from datetime import datetime, timezone

from docmark.convert import converter
from docmark.convert.config import CollisionPolicy
from docmark.convert.output import render_tree_document
from docmark.markdown import HEADING, TransformerSet
from docmark.tree import HeadingNode, RootNode, TextNode


def _fixed_now() -> datetime:
    return datetime(2025, 3, 18, 14, 0, tzinfo=timezone.utc)


def _tree_file(path, root):
    path.write_text(
        render_tree_document({"source_path": "x.md"}, root), encoding="utf-8"
    )
    return path


def test_markdown_converts_to_tree_document(tmp_path):
    source = tmp_path / "notes.md"
    source.write_text("# Notes\n\nSome **bold** text.\n", encoding="utf-8")
    output_dir = tmp_path / "out"

    result = converter.convert_file(
        source,
        output_dir=output_dir,
        collision=CollisionPolicy.SKIP,
        now=_fixed_now,
    )

    assert result.status is converter.ConversionStatus.SUCCESS
    assert result.output_path == output_dir / "notes.json"
    document = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert document["version"] == 1
    assert document["metadata"] == {
        "source_path": str(source.resolve()),
        "converted_at": "2025-03-18T14:00:00Z",
    }
    kinds = [child["type"] for child in document["root"]["children"]]
    assert kinds == ["heading", "paragraph"]


def test_final_newline_does_not_add_blank_paragraph(tmp_path):
    source = tmp_path / "keep.md"
    source.write_text("one\n\ntwo\n", encoding="utf-8")

    result = converter.convert_file(
        source,
        output_dir=tmp_path / "out",
        collision=CollisionPolicy.SKIP,
        options=converter.ConversionOptions(preserve_new_lines=True),
        now=_fixed_now,
    )

    document = json.loads(result.output_path.read_text(encoding="utf-8"))
    texts = [
        "".join(part.get("text", "") for part in child["children"])
        for child in document["root"]["children"]
    ]
    assert texts == ["one", "", "two"]


def test_tree_document_converts_to_markdown(tmp_path):
    root = RootNode()
    heading = HeadingNode(2)
    heading.append(TextNode("Title"))
    root.append(heading)
    source = _tree_file(tmp_path / "doc.json", root)

    result = converter.convert_file(
        source,
        output_dir=tmp_path / "out",
        collision=CollisionPolicy.SKIP,
    )

    assert result.status is converter.ConversionStatus.SUCCESS
    assert result.output_path.name == "doc.md"
    assert result.output_path.read_text(encoding="utf-8") == "## Title\n"


def test_markdown_round_trips_through_tree_file(tmp_path):
    original = "# Title\n\n- [x] done\n- [ ] todo\n\n> quote\n"
    source = tmp_path / "page.md"
    source.write_text(original, encoding="utf-8")

    forward = converter.convert_file(
        source, output_dir=tmp_path / "tree", collision=CollisionPolicy.SKIP
    )
    back = converter.convert_file(
        forward.output_path,
        output_dir=tmp_path / "md",
        collision=CollisionPolicy.SKIP,
    )

    assert back.output_path.read_text(encoding="utf-8") == original


def test_custom_transformers_are_used(tmp_path):
    source = tmp_path / "plain.md"
    source.write_text("# Title\n- not a list\n", encoding="utf-8")
    options = converter.ConversionOptions(
        transformers=TransformerSet.from_transformers([HEADING])
    )

    result = converter.convert_file(
        source,
        output_dir=tmp_path / "out",
        collision=CollisionPolicy.SKIP,
        options=options,
    )

    document = json.loads(result.output_path.read_text(encoding="utf-8"))
    kinds = [child["type"] for child in document["root"]["children"]]
    assert kinds == ["heading", "paragraph"]


def test_collision_skip(tmp_path):
    source = tmp_path / "a.md"
    source.write_text("x\n", encoding="utf-8")
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    existing = output_dir / "a.json"
    existing.write_text("keep", encoding="utf-8")

    result = converter.convert_file(
        source, output_dir=output_dir, collision=CollisionPolicy.SKIP
    )

    assert result.status is converter.ConversionStatus.SKIPPED
    assert "skip" in result.reason
    assert existing.read_text(encoding="utf-8") == "keep"


def test_collision_overwrite(tmp_path):
    source = tmp_path / "a.md"
    source.write_text("x\n", encoding="utf-8")
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    existing = output_dir / "a.json"
    existing.write_text("old", encoding="utf-8")

    result = converter.convert_file(
        source, output_dir=output_dir, collision=CollisionPolicy.OVERWRITE
    )

    assert result.status is converter.ConversionStatus.SUCCESS
    assert result.output_path == existing
    assert json.loads(existing.read_text(encoding="utf-8"))["version"] == 1


def test_collision_version_picks_next_free_name(tmp_path):
    source = tmp_path / "a.md"
    source.write_text("x\n", encoding="utf-8")
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    (output_dir / "a.json").write_text("0", encoding="utf-8")
    (output_dir / "a-01.json").write_text("1", encoding="utf-8")

    result = converter.convert_file(
        source, output_dir=output_dir, collision=CollisionPolicy.VERSION
    )

    assert result.output_path == output_dir / "a-02.json"


def test_unsupported_extension_fails(tmp_path):
    source = tmp_path / "image.png"
    source.write_bytes(b"")

    result = converter.convert_file(
        source, output_dir=tmp_path / "out", collision=CollisionPolicy.SKIP
    )

    assert result.status is converter.ConversionStatus.FAILED
    assert isinstance(result.error, converter.UnsupportedFormatError)


def test_missing_source_fails(tmp_path):
    result = converter.convert_file(
        tmp_path / "absent.md",
        output_dir=tmp_path / "out",
        collision=CollisionPolicy.SKIP,
    )

    assert result.status is converter.ConversionStatus.FAILED
    assert "not found" in result.reason


def test_invalid_tree_document_fails(tmp_path):
    source = tmp_path / "bad.json"
    source.write_text('{"root": {"type": "table"}}', encoding="utf-8")

    result = converter.convert_file(
        source, output_dir=tmp_path / "out", collision=CollisionPolicy.SKIP
    )

    assert result.status is converter.ConversionStatus.FAILED
    assert "Unknown node type" in result.reason
    assert not (tmp_path / "out").exists()
