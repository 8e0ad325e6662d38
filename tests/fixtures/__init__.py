"""Shared testing helpers for the docmark test suite."""

from .markdown import export_markdown, import_markdown, outline  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "WorkspaceBuilder",
    "build_tree",
    "export_markdown",
    "import_markdown",
    "outline",
]
