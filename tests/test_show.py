from __future__ import annotations

import json

from docmark import show
from docmark.markdown import TRANSFORMERS, TransformerSet
from docmark.tree import HeadingNode, RootNode, TextNode


def test_show_prints_outline_for_markdown(workspace, docmark_home, capsys):
    source = workspace.markdown(
        "page.md", "# Title", "", "- [x] done", "", "Some **bold** text"
    )

    code = show.main([str(source)])

    out = capsys.readouterr().out
    assert code == 0
    assert "heading h1" in out
    assert "'Title'" in out
    assert "list check" in out
    assert "listitem checked=True" in out
    assert "'bold' [bold]" in out


def test_show_json_output_parses(workspace, docmark_home, capsys):
    source = workspace.markdown("page.md", "## Sub")

    code = show.main([str(source), "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["type"] == "root"
    assert payload["children"][0]["tag"] == "h2"


def test_show_reads_tree_documents(workspace, docmark_home, capsys):
    root = RootNode()
    heading = HeadingNode(3)
    heading.append(TextNode("From JSON"))
    root.append(heading)
    source = workspace.tree_document("doc.json", root)

    code = show.main([str(source)])

    out = capsys.readouterr().out
    assert code == 0
    assert "heading h3" in out
    assert "'From JSON'" in out


def test_show_rejects_unsupported_extension(workspace, docmark_home, capsys):
    source = workspace.write("notes.txt", "plain")

    code = show.main([str(source)])

    assert code == 1
    assert "Unsupported file extension '.txt'" in capsys.readouterr().err


def test_show_reports_missing_file(workspace, docmark_home, capsys):
    code = show.main([str(workspace.root / "absent.md")])

    assert code == 1
    assert "absent.md" in capsys.readouterr().err


def test_load_tree_strips_final_newline(workspace):
    source = workspace.write("one.md", "one\r\n")

    root = show.load_tree(
        source,
        TransformerSet.from_transformers(TRANSFORMERS),
        preserve_new_lines=True,
    )

    assert [child.kind for child in root.get_children()] == ["paragraph"]
    assert root.get_text_content() == "one"
