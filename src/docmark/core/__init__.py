"""Shared configuration, logging and workspace helpers."""

from __future__ import annotations

from .config import (
    TomlConfigError,
    env_overrides,
    load_toml,
    merge_defaults,
    parse_bool,
    write_toml_template,
)
from .logging import ROOT_LOGGER, JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    describe_layout,
    ensure_workspace,
)

__all__ = [
    "TomlConfigError",
    "env_overrides",
    "load_toml",
    "merge_defaults",
    "parse_bool",
    "write_toml_template",
    "ROOT_LOGGER",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "describe_layout",
    "ensure_workspace",
]
