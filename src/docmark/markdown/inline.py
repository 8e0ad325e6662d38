"""Inline import and export of text-match and text-format rules."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional

from docmark.tree import (
    ElementNode,
    LineBreakNode,
    Node,
    ParagraphNode,
    TextNode,
)

from .escaping import ESCAPE_CHAR
from .matcher import Matcher
from .registry import TransformerSet
from .transformers import (
    Outcome,
    TextFormatTransformer,
    TextMatchReplace,
    TextMatchTransformer,
    check_outcome,
)

CODE_FORMAT = "code"

_BOUNDARY_CHARS = frozenset(string.punctuation)

_ActiveRule = tuple[TextMatchTransformer, Matcher, TextMatchReplace]


class InlineImporter:
    """Turn one line of markup into text runs and inline nodes.

    A format span opens on its tag and closes on the first valid closing
    tag. When the closing tag ends a run of tag characters, such as the
    ``***`` of ``**a *b***``, the characters before it must close a span
    nested in the content; likewise content starting with tag characters
    must start with a nested span. Of the spans that can open at one
    position the widest wins, ties going to the longer tag.
    """

    def __init__(self, transformers: TransformerSet) -> None:
        self._transformers = transformers
        self._escaper = transformers.escaper
        self._formats = transformers.formats_by_length
        self._shapes: dict[str, tuple[bool, bool]] = {}

    def import_text(
        self, text: str, formats: frozenset[str] = frozenset()
    ) -> list[Node]:
        rules = self._active_rules(text)
        nodes: list[Node] = []
        buffer: list[str] = []
        pos = 0
        while pos < len(text):
            if self._escapes(text, pos):
                buffer.append(text[pos:pos + 2])
                pos += 2
                continue

            matched = self._match_rule(text, pos, rules, formats)
            if matched is not None:
                end, produced = matched
                self._flush(buffer, nodes, formats)
                nodes.extend(produced)
                pos = end
                continue

            span = self._match_format(text, pos)
            if span is not None:
                transformer, content_end = span
                content_start = pos + len(transformer.tag)
                content = text[content_start:content_end]
                inner = formats | frozenset(transformer.formats)
                self._flush(buffer, nodes, formats)
                if CODE_FORMAT in transformer.formats:
                    nodes.append(TextNode(content, inner))
                else:
                    nodes.extend(self.import_text(content, inner))
                pos = content_end + len(transformer.closing)
                continue

            buffer.append(text[pos])
            pos += 1

        self._flush(buffer, nodes, formats)
        return nodes

    def _escapes(self, text: str, pos: int) -> bool:
        return (
            text[pos] == ESCAPE_CHAR
            and pos + 1 < len(text)
            and self._escaper.is_escapable(text[pos + 1])
        )

    def _flush(
        self, buffer: list[str], nodes: list[Node], formats: frozenset[str]
    ) -> None:
        if buffer:
            text = self._escaper.unescape("".join(buffer))
            nodes.append(TextNode(text, formats))
            buffer.clear()

    def _active_rules(self, text: str) -> tuple[_ActiveRule, ...]:
        return tuple(
            (rule, rule.import_matcher, rule.replace)
            for rule in self._transformers.text_match
            if rule.import_matcher is not None
            and rule.replace is not None
            and (not rule.trigger or rule.trigger in text)
        )

    def _match_rule(
        self,
        text: str,
        pos: int,
        rules: tuple[_ActiveRule, ...],
        formats: frozenset[str],
    ) -> Optional[tuple[int, list[Node]]]:
        for rule, matcher, replace in rules:
            match = matcher.match(text, pos)
            if match is None or match.end() <= pos:
                continue
            scratch = ParagraphNode()
            seed = TextNode(match.group(0), formats)
            scratch.append(seed)
            outcome = check_outcome(replace(seed, match), rule)
            if outcome is not Outcome.HANDLED:
                continue
            produced = scratch.get_children()
            scratch.clear()
            return match.end(), produced
        return None

    def _match_format(
        self, text: str, pos: int
    ) -> Optional[tuple[TextFormatTransformer, int]]:
        best: Optional[tuple[TextFormatTransformer, int]] = None
        best_end = -1
        for transformer in self._formats:
            if not text.startswith(transformer.tag, pos):
                continue
            if pos > 0:
                before = text[pos - 1]
                if before in transformer.tag_chars and not _is_escaped(
                    text, pos - 1
                ):
                    continue
                if not transformer.intraword and not _is_boundary(before):
                    continue
            content_start = pos + len(transformer.tag)
            if content_start >= len(text) or text[content_start].isspace():
                continue
            close = self._find_close(text, content_start, transformer)
            if close is None:
                continue
            end = close + len(transformer.closing)
            if end > best_end:
                best, best_end = (transformer, close), end
        return best

    def _find_close(
        self, text: str, content_start: int, transformer: TextFormatTransformer
    ) -> Optional[int]:
        index = content_start + 1
        while True:
            index = text.find(transformer.closing, index)
            if index == -1:
                return None
            if self._closes_at(text, content_start, index, transformer):
                return index
            index += 1

    def _closes_at(
        self,
        text: str,
        content_start: int,
        index: int,
        transformer: TextFormatTransformer,
    ) -> bool:
        tag_chars = transformer.tag_chars
        after = index + len(transformer.closing)
        next_char = text[after] if after < len(text) else None
        if text[index - 1].isspace():
            return False
        if next_char is not None and (
            next_char in tag_chars
            or not (transformer.intraword or _is_boundary(next_char))
        ):
            return False
        if CODE_FORMAT in transformer.formats:
            return True
        if _is_escaped(text, index):
            return False

        run_start = index
        while (
            run_start > content_start
            and text[run_start - 1] in tag_chars
            and not _is_escaped(text, run_start - 1)
        ):
            run_start -= 1
        opens_run = text[content_start] in tag_chars
        if run_start == index and not opens_run:
            return True

        starts, ends = self._shape(text[content_start:index])
        return (run_start == index or ends) and (not opens_run or starts)

    def _shape(self, text: str) -> tuple[bool, bool]:
        """Whether ``text`` starts, and whether it ends, with a format span."""

        shape = self._shapes.get(text)
        if shape is None:
            shape = self._measure(text)
            self._shapes[text] = shape
        return shape

    def _measure(self, text: str) -> tuple[bool, bool]:
        rules = self._active_rules(text)
        starts = ends = False
        pos = 0
        while pos < len(text):
            ends = False
            if self._escapes(text, pos):
                pos += 2
                continue
            rule_end = _rule_end(text, pos, rules)
            if rule_end is not None:
                pos = rule_end
                continue
            span = self._match_format(text, pos)
            if span is None:
                pos += 1
                continue
            transformer, close = span
            starts = starts or pos == 0
            pos = close + len(transformer.closing)
            ends = True
        return starts, ends


def _rule_end(
    text: str, pos: int, rules: tuple[_ActiveRule, ...]
) -> Optional[int]:
    for _, matcher, _ in rules:
        match = matcher.match(text, pos)
        if match is not None and match.end() > pos:
            return match.end()
    return None


def _is_escaped(text: str, index: int) -> bool:
    count = 0
    cursor = index - 1
    while cursor >= 0 and text[cursor] == ESCAPE_CHAR:
        count += 1
        cursor -= 1
    return count % 2 == 1


def _is_boundary(char: str) -> bool:
    return char.isspace() or char in _BOUNDARY_CHARS


@dataclass
class _RunWriter:
    """Tags still open across the text runs of one inline container.

    ``stack`` lists open formats outermost first. A run keeps the longest
    prefix of the stack it shares, closes the rest innermost first and
    opens its new formats inside what it kept.
    """

    tags: Mapping[str, TextFormatTransformer]
    rank: Mapping[str, int]
    following: Mapping[int, frozenset[str]]
    stack: list[str] = field(default_factory=list)
    pending: str = ""
    runs: int = 0

    def snapshot(self) -> tuple[tuple[str, ...], str, int]:
        return tuple(self.stack), self.pending, self.runs

    def restore(self, state: tuple[tuple[str, ...], str, int]) -> None:
        stack, self.pending, self.runs = state
        self.stack = list(stack)

    def place(
        self, node: TextNode, core: str, leading: str, trailing: str
    ) -> str:
        wanted = [name for name in self.rank if node.has_format(name)]
        keep = self._kept(wanted)
        # Code content is literal; nothing can open inside it.
        if CODE_FORMAT in self.stack[:keep] and any(
            name not in self.stack for name in wanted
        ):
            keep = self.stack.index(CODE_FORMAT)
        opening = [name for name in wanted if name not in self.stack[:keep]]
        following = self.following.get(id(node), frozenset())
        opening.sort(
            key=lambda name: (
                name == CODE_FORMAT,
                name not in following,
                -self.rank[name],
            )
        )
        piece = (
            self._close(keep)
            + self.pending
            + leading
            + "".join(self.tags[name].tag for name in opening)
            + core
        )
        self.stack.extend(opening)
        self.pending = trailing
        return piece

    def pad(self, node: TextNode, whitespace: str) -> str:
        wanted = [name for name in self.rank if node.has_format(name)]
        keep = self._kept(wanted)
        if keep == len(self.stack):
            self.pending += whitespace
            return ""
        piece = self._close(keep) + self.pending
        self.pending = whitespace
        return piece

    def literal(self, text: str) -> str:
        return self.finish() + text

    def finish(self) -> str:
        piece = self._close(0) + self.pending
        self.pending = ""
        return piece

    def _kept(self, wanted: list[str]) -> int:
        keep = 0
        while keep < len(self.stack) and self.stack[keep] in wanted:
            keep += 1
        return keep

    def _close(self, keep: int) -> str:
        closing = self.stack[keep:]
        del self.stack[keep:]
        return "".join(self.tags[name].closing for name in reversed(closing))


class InlineExporter:
    """Render inline children back into markup."""

    def __init__(self, transformers: TransformerSet) -> None:
        self._transformers = transformers
        self._escaper = transformers.escaper
        self._tags = {
            transformer.formats[0]: transformer
            for transformer in transformers.export_formats
        }
        self._rank = {name: index for index, name in enumerate(self._tags)}
        self._writers: list[_RunWriter] = []

    def export_children(self, node: ElementNode) -> str:
        writer = _RunWriter(self._tags, self._rank, _following_formats(node))
        self._writers.append(writer)
        try:
            output = self._export_runs(node, writer)
            output.append(writer.finish())
        finally:
            self._writers.pop()
        return "".join(output)

    def export_format(self, node: TextNode, content: str) -> str:
        """Wrap already-rendered ``content`` with the formats of ``node``."""

        if self._writers:
            return self._place(self._writers[-1], node, content, escape=False)
        writer = _RunWriter(self._tags, self._rank, {})
        placed = self._place(writer, node, content, escape=False)
        return placed + writer.finish()

    def _export_runs(self, node: ElementNode, writer: _RunWriter) -> list[str]:
        output: list[str] = []
        for child in node.get_children():
            output.extend(self._export_child(child, writer))
        return output

    def _export_child(self, child: Node, writer: _RunWriter) -> list[str]:
        for rule in self._transformers.text_match:
            if rule.export is None:
                continue
            state = writer.snapshot()
            result = rule.export(
                child, self.export_children, self.export_format
            )
            if result is None:
                writer.restore(state)
                continue
            if writer.runs == state[2]:
                return [writer.literal(result)]
            return [result]
        if isinstance(child, TextNode):
            return [
                self._place(
                    writer, child, child.get_text_content(), escape=True
                )
            ]
        if isinstance(child, LineBreakNode):
            return [writer.literal("\n")]
        if isinstance(child, ElementNode) and child.is_inline():
            return self._export_runs(child, writer)
        if isinstance(child, ElementNode):
            return [writer.literal(self.export_children(child))]
        return [writer.literal(child.get_text_content())]

    def _place(
        self, writer: _RunWriter, node: TextNode, content: str, *, escape: bool
    ) -> str:
        writer.runs += 1
        # "**  foo  **" is not valid markup; keep the padding outside the tags.
        core = content.strip()
        if not core:
            return writer.pad(node, content)
        if escape and not node.has_format(CODE_FORMAT):
            core = self._escaper.escape(core)
        leading = content[: len(content) - len(content.lstrip())]
        trailing = content[len(content.rstrip()):]
        return writer.place(node, core, leading, trailing)


def _following_formats(container: ElementNode) -> dict[int, frozenset[str]]:
    """Map each text run of ``container`` to the formats of the next run."""

    following: dict[int, frozenset[str]] = {}
    previous: Optional[TextNode] = None
    for node in _inline_leaves(container):
        if isinstance(node, TextNode):
            if previous is not None:
                following[id(previous)] = node.formats
            previous = node
        else:
            previous = None
    return following


def _inline_leaves(node: ElementNode) -> Iterator[Node]:
    for child in node.get_children():
        if isinstance(child, ElementNode) and child.is_inline():
            yield from _inline_leaves(child)
        else:
            yield child


__all__ = ["CODE_FORMAT", "InlineExporter", "InlineImporter"]
