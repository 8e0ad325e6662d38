"""Import/export/import checks for a piece of markdown."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from docmark.tree import RootNode

from .builtins import TRANSFORMERS
from .exporter import convert_to_text
from .importer import convert_from_text
from .registry import TransformerSet
from .transformers import Transformer


@dataclass(frozen=True)
class RoundTripReport:
    original: str
    exported: str
    re_exported: str

    @property
    def is_lossless(self) -> bool:
        """True when exporting the imported text reproduces it exactly."""

        return self.exported == self.original

    @property
    def is_idempotent(self) -> bool:
        """True when a second import/export cycle changes nothing."""

        return self.re_exported == self.exported


def check_round_trip(
    text: str,
    transformers: Optional[Union[TransformerSet, Iterable[Transformer]]] = None,
    preserve_new_lines: bool = False,
) -> RoundTripReport:
    transformer_set = TransformerSet.coerce(
        TRANSFORMERS if transformers is None else transformers
    )

    root = RootNode()
    convert_from_text(text, transformer_set, root, preserve_new_lines)
    exported = convert_to_text(transformer_set, root, preserve_new_lines)

    convert_from_text(exported, transformer_set, root, preserve_new_lines)
    re_exported = convert_to_text(transformer_set, root, preserve_new_lines)

    return RoundTripReport(
        original=text, exported=exported, re_exported=re_exported
    )


__all__ = ["RoundTripReport", "check_round_trip"]
