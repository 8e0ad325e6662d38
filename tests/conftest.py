from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import WorkspaceBuilder  # noqa: E402

from docmark.markdown import TRANSFORMERS, TransformerSet  # noqa: E402


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def docmark_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point DOCMARK_HOME at a fresh directory and clear other overrides."""

    home = tmp_path / "docmark-home"
    monkeypatch.setenv("DOCMARK_HOME", str(home))
    for name in (
        "DOCMARK_CONFIG",
        "DOCMARK_PRESERVE_NEWLINES",
        "DOCMARK_TRANSFORMERS",
        "DOCMARK_EXTRA",
        "DOCMARK_OUTPUT_DIR",
        "DOCMARK_COLLISION",
        "DOCMARK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def builtin_set() -> TransformerSet:
    return TransformerSet.from_transformers(TRANSFORMERS)


@pytest.fixture(autouse=True)
def _reset_docmark_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("docmark")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
