from __future__ import annotations

from fixtures import import_markdown, outline

from docmark.tree import (
    CodeNode,
    HeadingNode,
    HorizontalRuleNode,
    LinkNode,
    ListItemNode,
    ListNode,
    ParagraphNode,
    QuoteNode,
    RootNode,
    TextNode,
)


def test_heading_becomes_heading_node():
    root = import_markdown("# Hello world")

    (heading,) = root.get_children()
    assert isinstance(heading, HeadingNode)
    assert heading.tag == "h1"
    assert outline(heading) == ("heading", [("text", "Hello world", ())])


def test_heading_level_follows_hash_count():
    root = import_markdown("### Third")

    (heading,) = root.get_children()
    assert heading.level == 3


def test_seven_hashes_stay_a_paragraph():
    root = import_markdown("####### too deep")

    (paragraph,) = root.get_children()
    assert isinstance(paragraph, ParagraphNode)
    assert paragraph.get_text_content() == "####### too deep"


def test_bold_run_and_plain_run():
    root = import_markdown("**Hello** world")

    assert outline(root) == (
        "root",
        [
            (
                "paragraph",
                [("text", "Hello", ("bold",)), ("text", " world", ())],
            )
        ],
    )


def test_nested_formats_accumulate():
    root = import_markdown("**bold *both***")

    paragraph = root.get_first_child()
    assert outline(paragraph) == (
        "paragraph",
        [
            ("text", "bold ", ("bold",)),
            ("text", "both", ("bold", "italic")),
        ],
    )


def test_closing_tag_can_end_a_nested_run():
    root = import_markdown("*a **b***")

    paragraph = root.get_first_child()
    assert outline(paragraph) == (
        "paragraph",
        [
            ("text", "a ", ("italic",)),
            ("text", "b", ("bold", "italic")),
        ],
    )


def test_opening_run_can_start_a_nested_span():
    root = import_markdown("***a** b*")

    paragraph = root.get_first_child()
    assert outline(paragraph) == (
        "paragraph",
        [
            ("text", "a", ("bold", "italic")),
            ("text", " b", ("italic",)),
        ],
    )


def test_inner_opener_without_closer_stays_literal():
    root = import_markdown("**a *b**")

    paragraph = root.get_first_child()
    assert outline(paragraph) == (
        "paragraph",
        [("text", "a *b", ("bold",))],
    )


def test_escapes_inside_formatted_text():
    root = import_markdown(r"**a \*\* b**")

    text = root.get_first_descendant()
    assert text.get_text_content() == "a ** b"
    assert text.formats == frozenset({"bold"})


def test_triple_star_sets_bold_and_italic():
    root = import_markdown("***loud***")

    text = root.get_first_descendant()
    assert isinstance(text, TextNode)
    assert text.formats == frozenset({"bold", "italic"})


def test_inline_code_content_is_literal():
    root = import_markdown("run `a *b* c` now")

    paragraph = root.get_first_child()
    assert outline(paragraph) == (
        "paragraph",
        [
            ("text", "run ", ()),
            ("text", "a *b* c", ("code",)),
            ("text", " now", ()),
        ],
    )


def test_other_text_formats():
    root = import_markdown("~~gone~~ ==marked== _soft_")

    formats = [
        child.formats
        for child in root.get_first_child().get_children()
        if child.get_text_content().strip()
    ]
    assert formats == [
        frozenset({"strikethrough"}),
        frozenset({"highlight"}),
        frozenset({"italic"}),
    ]


def test_underscore_does_not_format_inside_words():
    root = import_markdown("snake_case_name")

    text = root.get_first_descendant()
    assert text.get_text_content() == "snake_case_name"
    assert text.formats == frozenset()


def test_unmatched_delimiter_is_literal():
    root = import_markdown("2 * 3")

    text = root.get_first_descendant()
    assert text.get_text_content() == "2 * 3"
    assert text.formats == frozenset()


def test_backslash_escape_gives_literal_character():
    root = import_markdown(r"\*not italic\*")

    text = root.get_first_descendant()
    assert text.get_text_content() == "*not italic*"
    assert text.formats == frozenset()


def test_link_with_title():
    root = import_markdown('See [the docs](https://example.com "Docs") now')

    paragraph = root.get_first_child()
    link = paragraph.get_children()[1]
    assert isinstance(link, LinkNode)
    assert link.url == "https://example.com"
    assert link.title == "Docs"
    assert link.get_text_content() == "the docs"
    assert paragraph.get_text_content() == "See the docs now"


def test_link_inside_bold_keeps_format_on_label():
    root = import_markdown("**[x](https://x.test)**")

    link = root.get_first_child().get_first_child()
    assert isinstance(link, LinkNode)
    assert link.get_first_child().formats == frozenset({"bold"})


def test_link_label_unescapes_punctuation():
    root = import_markdown(r"[a\*b](u)")

    link = root.get_first_child().get_first_child()
    assert link.get_text_content() == "a*b"


def test_soft_line_break_joins_paragraph():
    root = import_markdown("first line\nsecond line")

    assert outline(root) == (
        "root",
        [
            (
                "paragraph",
                [
                    ("text", "first line", ()),
                    ("linebreak",),
                    ("text", "second line", ()),
                ],
            )
        ],
    )


def test_blank_line_separates_paragraphs():
    root = import_markdown("one\n\ntwo")

    assert [child.get_text_content() for child in root.get_children()] == [
        "one",
        "two",
    ]


def test_crlf_line_endings_are_normalized():
    root = import_markdown("one\r\n\r\ntwo")

    assert [child.get_text_content() for child in root.get_children()] == [
        "one",
        "two",
    ]


def test_preserve_mode_keeps_empty_paragraphs():
    root = import_markdown("one\n\n\ntwo", preserve_new_lines=True)

    kinds = [child.get_text_content() for child in root.get_children()]
    assert kinds == ["one", "", "", "two"]


def test_empty_input_leaves_one_empty_paragraph():
    root = import_markdown("")

    (paragraph,) = root.get_children()
    assert isinstance(paragraph, ParagraphNode)
    assert paragraph.is_empty()


def test_consecutive_quote_lines_merge():
    root = import_markdown("> first\n> second")

    (quote,) = root.get_children()
    assert isinstance(quote, QuoteNode)
    assert quote.get_text_content() == "first\nsecond"


def test_lazy_quote_continuation():
    root = import_markdown("> quoted\nlazy")

    (quote,) = root.get_children()
    assert quote.get_text_content() == "quoted\nlazy"


def test_bullet_list_items():
    root = import_markdown("- one\n- two")

    (bullets,) = root.get_children()
    assert isinstance(bullets, ListNode)
    assert bullets.list_type == "bullet"
    assert bullets.marker == "-"
    assert [item.get_text_content() for item in bullets] == ["one", "two"]


def test_different_bullet_markers_start_new_lists():
    root = import_markdown("- one\n* two")

    markers = [child.marker for child in root.get_children()]
    assert markers == ["-", "*"]


def test_ordered_list_keeps_start():
    root = import_markdown("3. three\n4. four")

    (numbers,) = root.get_children()
    assert numbers.list_type == "number"
    assert numbers.start == 3
    assert numbers.get_children_size() == 2


def test_check_list_items_record_state():
    root = import_markdown("- [ ] todo\n- [x] done")

    (checks,) = root.get_children()
    assert checks.list_type == "check"
    assert [item.checked for item in checks] == [False, True]
    assert [item.get_text_content() for item in checks] == ["todo", "done"]


def test_indented_item_nests_under_wrapper():
    root = import_markdown("- outer\n    - inner\n- after")

    (bullets,) = root.get_children()
    outer, wrapper, after = bullets.get_children()
    assert outer.get_text_content() == "outer"
    nested = wrapper.nested_list()
    assert isinstance(nested, ListNode)
    assert [item.get_text_content() for item in nested] == ["inner"]
    assert after.get_text_content() == "after"


def test_tab_indent_counts_as_one_level():
    root = import_markdown("1. a\n\t1. b")

    (numbers,) = root.get_children()
    wrapper = numbers.get_last_child()
    assert isinstance(wrapper, ListItemNode)
    assert wrapper.nested_list().list_type == "number"


def test_nested_list_of_other_type():
    root = import_markdown("- a\n    1. b")

    wrapper = root.get_first_child().get_last_child()
    assert wrapper.nested_list().list_type == "number"


def test_text_after_list_item_continues_it():
    root = import_markdown("- item\ncontinued")

    (bullets,) = root.get_children()
    assert bullets.get_first_child().get_text_content() == "item\ncontinued"


def test_horizontal_rule_keeps_marker():
    root = import_markdown("above\n\n___\n\nbelow")

    rule = root.get_children()[1]
    assert isinstance(rule, HorizontalRuleNode)
    assert rule.marker == "___"


def test_fenced_code_block_with_language():
    root = import_markdown("```python\nprint(1)\n\nprint(2)\n```")

    (code,) = root.get_children()
    assert isinstance(code, CodeNode)
    assert code.language == "python"
    assert code.get_text_content() == "print(1)\n\nprint(2)"


def test_code_block_content_is_not_parsed():
    root = import_markdown("```\n# not a heading\n**raw**\n```")

    (code,) = root.get_children()
    assert code.language is None
    assert code.get_text_content() == "# not a heading\n**raw**"


def test_single_line_fence_treats_word_as_code():
    root = import_markdown("```js```")

    (code,) = root.get_children()
    assert code.language is None
    assert code.get_text_content() == "js"


def test_unterminated_fence_falls_back_to_paragraph():
    root = import_markdown("```\nstill text")

    children = root.get_children()
    assert not any(isinstance(child, CodeNode) for child in children)
    assert [type(child) for child in children] == [ParagraphNode]
    assert children[0].get_text_content().endswith("still text")


def test_blocks_after_code_continue_normally():
    root = import_markdown("```\nx\n```\n# After")

    kinds = [child.kind for child in root.get_children()]
    assert kinds == ["code", "heading"]


def test_import_replaces_previous_content():
    root = RootNode()
    root.append(ParagraphNode().append(TextNode("stale")))

    import_markdown("fresh", root=root)

    assert root.get_text_content() == "fresh"


def test_selection_moves_to_document_start():
    root = RootNode()
    paragraph = ParagraphNode()
    paragraph.append(TextNode("stale"))
    root.append(paragraph)
    root.select(paragraph)

    import_markdown("# Title\n\nbody", root=root)

    assert root.selection is not None
    assert root.selection.anchor.get_text_content() == "Title"
    assert root.selection.offset == 0


def test_no_selection_is_created_without_one():
    root = import_markdown("plain")

    assert root.selection is None
