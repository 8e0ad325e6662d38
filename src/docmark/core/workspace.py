"""Workspace directory layout shared by docmark commands."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, MutableMapping

WORKSPACE_ENV = "DOCMARK_HOME"
DEFAULT_WORKSPACE = Path.home() / ".docmark"

SUBDIRECTORIES: Mapping[str, str] = MappingProxyType(
    {
        "config": "config",
        "logs": "logs",
        "converted": "converted",
    }
)


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace root and its named subdirectories."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise WorkspaceError(f"Unknown workspace directory '{key}'.") from exc

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the workspace and, with ``create``, make its directories.

    The root comes from ``path``, then ``DOCMARK_HOME``, then ``~/.docmark``.
    Only the implicit default falls back to a temp directory when the home
    directory is not writable.
    """

    base, explicit = _resolve_base(os.environ if env is None else env, path)
    candidates = [base]
    if create and not explicit:
        candidates.append(_fallback_base())

    error: PermissionError | None = None
    for candidate in candidates:
        try:
            return _build_layout(candidate, create=create)
        except PermissionError as exc:
            error = exc
    raise WorkspaceError(f"Unable to prepare workspace at {base}") from error


def describe_layout(
    *, env: Mapping[str, str] | None = None, path: Path | None = None
) -> Mapping[str, Path]:
    """Return ``home`` plus each subdirectory without touching the disk."""

    layout = ensure_workspace(env=env, path=path, create=False)
    mapping: dict[str, Path] = {"home": layout.home}
    mapping.update(layout.directories)
    return MappingProxyType(mapping)


def _resolve_base(
    env: Mapping[str, str], override: Path | None
) -> tuple[Path, bool]:
    if override is not None:
        target, explicit = override, True
    else:
        custom = (env.get(WORKSPACE_ENV) or "").strip()
        if custom:
            target, explicit = Path(custom), True
        else:
            target, explicit = DEFAULT_WORKSPACE, False
    target = target.expanduser()
    try:
        return target.resolve(), explicit
    except FileNotFoundError:
        return target.absolute(), explicit


def _fallback_base() -> Path:
    return Path(tempfile.gettempdir()) / "docmark"


def _build_layout(base: Path, *, create: bool) -> WorkspaceLayout:
    if base.exists() and not base.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {base}"
        )

    created: MutableMapping[str, bool] = {"home": _make_dir(base) if create else False}
    directories: MutableMapping[str, Path] = {}
    for key, relative in SUBDIRECTORIES.items():
        directory = base / relative
        if create:
            created[key] = _make_dir(directory)
        else:
            created[key] = False
            if directory.exists() and not directory.is_dir():
                raise WorkspaceError(
                    f"Expected workspace directory for '{key}' but found a "
                    f"file: {directory}"
                )
        directories[key] = directory

    return WorkspaceLayout(
        home=base,
        directories=MappingProxyType(dict(directories)),
        created=MappingProxyType(dict(created)),
    )


def _make_dir(path: Path) -> bool:
    existed = path.exists()
    if existed and not path.is_dir():
        raise WorkspaceError(
            f"Expected directory but found a non-directory entry: {path}"
        )
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return not existed
