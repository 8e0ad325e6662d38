"""Backslash escaping of characters that collide with markup syntax."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

ESCAPE_CHAR = "\\"
CORE_ESCAPES: frozenset[str] = frozenset({ESCAPE_CHAR, "[", "]"})


@dataclass(frozen=True)
class Escaper:
    """Escape table for one transformer set.

    ``unescape(escape(text)) == text`` holds for every ``text``.
    """

    characters: frozenset[str]
    _escape_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _unescape_re: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        characters = frozenset(self.characters) | CORE_ESCAPES
        object.__setattr__(self, "characters", characters)
        char_class = "".join(re.escape(char) for char in sorted(characters))
        object.__setattr__(self, "_escape_re", re.compile(f"([{char_class}])"))
        object.__setattr__(
            self,
            "_unescape_re",
            re.compile(rf"{re.escape(ESCAPE_CHAR)}([{char_class}])"),
        )

    @classmethod
    def for_tags(cls, tags: Iterable[str]) -> "Escaper":
        """Build the table covering every character of ``tags``."""

        characters: set[str] = set()
        for tag in tags:
            characters.update(tag)
        return cls(frozenset(characters))

    def is_escapable(self, char: str) -> bool:
        return char in self.characters

    def escape(self, text: str) -> str:
        return self._escape_re.sub(r"\\\1", text)

    def unescape(self, text: str) -> str:
        return self._unescape_re.sub(r"\1", text)


__all__ = ["CORE_ESCAPES", "ESCAPE_CHAR", "Escaper"]
