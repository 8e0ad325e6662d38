from __future__ import annotations

import pytest

from fixtures import export_markdown, import_markdown

from docmark.markdown import (
    CODE,
    HEADING,
    TRANSFORMERS,
    ElementTransformer,
    MarkdownImporter,
    MissingDependencyError,
    MultilineElementTransformer,
    Outcome,
    TextFormatTransformer,
    TextMatchTransformer,
    TransformerError,
    TransformerKind,
    TransformerSet,
    kind_of,
    regex,
)
from docmark.tree import (
    CodeNode,
    ElementNode,
    HeadingNode,
    ParagraphNode,
    QuoteNode,
    RootNode,
    TextNode,
    UnregisteredNodeError,
)


class ComponentNode(ElementNode):
    kind = "component"

    def __init__(self, name=""):
        super().__init__()
        self.name = name

    def can_contain(self, child):
        return not child.is_inline()


def _component_rule(accepted):
    seen = []

    def replace(parent, start, end, lines, import_lines, is_import):
        seen.append(start.group(1))
        if start.group(1) not in accepted:
            return Outcome.DECLINED
        component = ComponentNode(start.group(1))
        parent.append(component)
        import_lines(lines, component)
        return Outcome.HANDLED

    rule = MultilineElementTransformer(
        start=regex(r"^<(\w+)>"),
        end=regex(r"</(\w+)>"),
        replace=replace,
        dependencies=(ComponentNode,),
        name="component",
    )
    return rule, seen


def test_multiline_rule_claims_component_and_imports_body():
    rule, _ = _component_rule({"MyComponent"})

    root = import_markdown(
        "<MyComponent>\n# Inside\n</MyComponent>\nafter",
        [rule, *TRANSFORMERS],
    )

    component, paragraph = root.get_children()
    assert isinstance(component, ComponentNode)
    assert component.name == "MyComponent"
    (heading,) = component.get_children()
    assert isinstance(heading, HeadingNode)
    assert heading.get_text_content() == "Inside"
    assert paragraph.get_text_content() == "after"


def test_declined_span_falls_back_to_paragraphs():
    rule, seen = _component_rule({"MyComponent"})

    root = import_markdown("<Foo>\ntext\n</Foo>", [rule, *TRANSFORMERS])

    assert seen == ["Foo"]
    (paragraph,) = root.get_children()
    assert isinstance(paragraph, ParagraphNode)
    assert paragraph.get_text_content() == "<Foo>\ntext\n</Foo>"


def test_declined_span_is_offered_to_next_multiline_rule():
    first, first_seen = _component_rule({"MyComponent"})
    second, second_seen = _component_rule({"Foo"})

    root = import_markdown("<Foo>\nbody\n</Foo>", [first, second, *TRANSFORMERS])

    assert first_seen == ["Foo"]
    assert second_seen == ["Foo"]
    (component,) = root.get_children()
    assert component.name == "Foo"


def test_deferring_rule_passes_to_next_multiline_rule():
    def defer(parent, start, end, lines, import_lines, is_import):
        return Outcome.DEFER

    deferring = MultilineElementTransformer(
        start=regex(r"^```"), end=regex(r"```$"), replace=defer
    )

    root = import_markdown("```\nx\n```", [deferring, *TRANSFORMERS])

    assert isinstance(root.get_first_child(), CodeNode)


def test_unterminated_span_is_imported_line_by_line():
    rule, seen = _component_rule({"MyComponent"})

    root = import_markdown("<MyComponent>\n# Heading", [rule, *TRANSFORMERS])

    assert seen == []
    kinds = [child.kind for child in root.get_children()]
    assert kinds == ["paragraph", "heading"]


def test_multiline_rules_run_before_element_rules():
    def as_code(parent, start, end, lines, import_lines, is_import):
        code = CodeNode("note")
        code.append(TextNode(lines[0]))
        parent.append(code)
        return Outcome.HANDLED

    hash_code = MultilineElementTransformer(
        start=regex(r"^#\s"), replace=as_code, dependencies=(CodeNode,)
    )

    # Registered after the heading rule and still wins.
    root = import_markdown("# Looks like a heading", [HEADING, hash_code])

    (code,) = root.get_children()
    assert isinstance(code, CodeNode)
    assert code.get_text_content() == "Looks like a heading"


def test_earlier_element_rule_takes_precedence():
    def as_quote(block, children, match, is_import):
        quote = QuoteNode()
        quote.append(*children)
        block.replace(quote)
        return Outcome.HANDLED

    override = ElementTransformer(matcher=regex(r"^#\s"), replace=as_quote)

    root = import_markdown("# Title", [override, *TRANSFORMERS])

    assert isinstance(root.get_first_child(), QuoteNode)


def test_declined_element_rule_falls_through():
    calls = []

    def decline(block, children, match, is_import):
        calls.append(block.get_text_content())
        return Outcome.DECLINED

    shy = ElementTransformer(matcher=regex(r"^#\s"), replace=decline)

    root = import_markdown("# Title", [shy, *TRANSFORMERS])

    assert calls == ["Title"]
    (heading,) = root.get_children()
    assert isinstance(heading, HeadingNode)


def test_element_rule_receives_inline_children():
    received = []

    def capture(block, children, match, is_import):
        received.extend(children)
        block.replace(QuoteNode().append(*children))
        return Outcome.HANDLED

    rule = ElementTransformer(matcher=regex(r"^!\s"), replace=capture)

    import_markdown("! **bold** tail", [rule, *TRANSFORMERS])

    assert [(node.get_text_content(), node.formats) for node in received] == [
        ("bold", frozenset({"bold"})),
        (" tail", frozenset()),
    ]


def test_text_match_rule_with_trigger():
    def dollar(node, match):
        node.set_text(match.group(1))
        node.toggle_format("highlight")
        return Outcome.HANDLED

    rule = TextMatchTransformer(
        import_matcher=regex(r"\$([^$]+)\$"), replace=dollar, trigger="$"
    )

    root = import_markdown("a $b$ c", [rule, *TRANSFORMERS])

    children = root.get_first_child().get_children()
    assert [(node.get_text_content(), node.formats) for node in children] == [
        ("a ", frozenset()),
        ("b", frozenset({"highlight"})),
        (" c", frozenset()),
    ]
    assert export_markdown(root, [rule, *TRANSFORMERS]) == "a ==b== c"


def test_text_match_rule_skipped_without_trigger():
    calls = []

    def record(node, match):
        calls.append(match.group(0))
        return Outcome.HANDLED

    rule = TextMatchTransformer(
        import_matcher=regex(r"\w+"), replace=record, trigger="@"
    )

    import_markdown("plain words", [rule, *TRANSFORMERS])

    assert calls == []


def test_text_match_export_overrides_text():
    def shout(node, export_children, export_format):
        if isinstance(node, TextNode) and node.has_format("highlight"):
            return node.get_text_content().upper()
        return None

    rule = TextMatchTransformer(export=shout)
    root = import_markdown("a ==quiet== b")

    assert export_markdown(root, [rule, *TRANSFORMERS]) == "a QUIET b"


def test_custom_text_format_tag():
    plus = TextFormatTransformer(formats=("strikethrough",), tag="++")

    root = import_markdown("x ++gone++", [plus])

    text = root.get_first_child().get_last_child()
    assert text.formats == frozenset({"strikethrough"})
    assert export_markdown(root, [plus]) == "x ++gone++"


def test_replace_must_return_outcome():
    rule = ElementTransformer(
        matcher=regex(r"^!\s"), replace=lambda *args: None, name="broken"
    )

    with pytest.raises(TransformerError, match="broken"):
        import_markdown("! boom", [rule])


def test_missing_dependency_is_reported_before_mutation():
    root = RootNode(node_types=[])
    root.append(ParagraphNode().append(TextNode("kept")))

    with pytest.raises(MissingDependencyError, match="HeadingNode"):
        import_markdown("# Title", TRANSFORMERS, root=root)

    assert root.get_text_content() == "kept"


def test_registered_dependencies_allow_import():
    root = RootNode(node_types=[HeadingNode])

    import_markdown("# Title", [HEADING], root=root)

    assert isinstance(root.get_first_child(), HeadingNode)


def test_rule_without_declared_dependency_hits_registry():
    def as_quote(block, children, match, is_import):
        block.replace(QuoteNode().append(*children))
        return Outcome.HANDLED

    rule = ElementTransformer(matcher=regex(r"^>\s"), replace=as_quote)
    root = RootNode(node_types=[])

    with pytest.raises(UnregisteredNodeError):
        import_markdown("> undeclared", [rule], root=root)


def test_import_lines_into_custom_container(builtin_set):
    container = ComponentNode()
    MarkdownImporter(builtin_set).import_lines(
        ["# Title", "", "body", "```", "code", "```"], container
    )

    kinds = [child.kind for child in container.get_children()]
    assert kinds == ["heading", "paragraph", "code"]


def test_kind_of_rejects_foreign_objects():
    assert kind_of(CODE) is TransformerKind.MULTILINE_ELEMENT

    with pytest.raises(TypeError):
        kind_of("heading")


def test_transformer_set_partitions_by_kind():
    transformer_set = TransformerSet.from_transformers(TRANSFORMERS)

    assert len(transformer_set) == len(TRANSFORMERS)
    assert transformer_set.multiline_element == (CODE,)
    assert transformer_set.element[0] is HEADING
    assert list(transformer_set)[0] is CODE
    assert TransformerSet.coerce(transformer_set) is transformer_set


def test_formats_by_length_prefers_longer_tags(builtin_set):
    tags = [transformer.tag for transformer in builtin_set.formats_by_length]

    assert tags[:2] == ["***", "___"]
    assert tags[-3:] == ["`", "*", "_"]


def test_export_formats_pick_first_single_format_rule(builtin_set):
    chosen = {
        transformer.formats[0]: transformer.tag
        for transformer in builtin_set.export_formats
    }

    assert chosen == {
        "code": "`",
        "highlight": "==",
        "bold": "**",
        "strikethrough": "~~",
        "italic": "*",
    }


def test_dependencies_collects_node_classes(builtin_set):
    assert HeadingNode in builtin_set.dependencies()
    assert CodeNode in builtin_set.dependencies()


def test_text_format_requires_tag_and_format():
    with pytest.raises(ValueError):
        TextFormatTransformer(formats=(), tag="*")
    with pytest.raises(ValueError):
        TextFormatTransformer(formats=("bold",), tag="")
