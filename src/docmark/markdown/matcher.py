"""Pattern matching capability used by transformers.

The pipelines only rely on the :class:`Matcher` protocol, so a transformer can
bring any pattern engine as long as it matches at a position, searches from a
position and hands back objects exposing ``group``/``start``/``end``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol


class Match(Protocol):
    def group(self, *indices: Any) -> Any: ...

    def groups(self, default: Any = None) -> tuple[Any, ...]: ...

    def start(self, group: Any = 0) -> int: ...

    def end(self, group: Any = 0) -> int: ...

    def __getitem__(self, index: Any) -> Any: ...


class Matcher(Protocol):
    def match(self, text: str, pos: int = 0) -> Optional[Match]:
        """Match anchored at ``pos``."""

    def search(self, text: str, pos: int = 0) -> Optional[Match]:
        """Return the first match starting at or after ``pos``."""


@dataclass(frozen=True)
class RegexMatcher:
    """:class:`Matcher` backed by a compiled :mod:`re` pattern."""

    pattern: re.Pattern[str]

    def match(self, text: str, pos: int = 0) -> Optional[re.Match[str]]:
        return self.pattern.match(text, pos)

    def search(self, text: str, pos: int = 0) -> Optional[re.Match[str]]:
        return self.pattern.search(text, pos)

    def __str__(self) -> str:
        return self.pattern.pattern


def regex(source: str, flags: int = 0) -> RegexMatcher:
    """Compile ``source`` into a :class:`RegexMatcher`."""

    return RegexMatcher(re.compile(source, flags))


__all__ = ["Match", "Matcher", "RegexMatcher", "regex"]
