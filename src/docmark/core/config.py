"""TOML and environment configuration helpers."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Callable, Mapping, MutableMapping

__all__ = [
    "TomlConfigError",
    "env_overrides",
    "load_toml",
    "merge_defaults",
    "parse_bool",
    "write_toml_template",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class TomlConfigError(RuntimeError):
    """Raised when reading, merging or writing a TOML config fails."""


def load_toml(path: Path) -> Mapping[str, Any]:
    """Parse the TOML document at ``path``.

    Missing files and syntax errors both surface as :class:`TomlConfigError`
    so each command can wrap them in its own error type.
    """

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Merge ``override`` into ``base`` in place, rejecting unknown keys."""

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        current = base[key]
        if not isinstance(current, MutableMapping):
            base[key] = value
            continue
        if not isinstance(value, Mapping):
            raise TomlConfigError(
                "Expected table for '{0}', found {1}.".format(
                    dotted, type(value).__name__
                )
            )
        merge_defaults(current, value, path=f"{dotted}.")


def env_overrides(
    env: Mapping[str, str],
    *,
    prefix: str,
    keys: Mapping[str, tuple[str, str, Callable[[str], Any]]],
) -> dict[str, dict[str, Any]]:
    """Collect ``{table: {key: value}}`` overrides from prefixed variables.

    ``keys`` maps a variable suffix (``PRESERVE_NEWLINES``) to the table, key
    and parser of the setting it overrides. Blank values are ignored.
    """

    result: dict[str, dict[str, Any]] = {}
    for suffix, (table, key, parse) in keys.items():
        variable = f"{prefix}{suffix}"
        raw = env.get(variable)
        if raw is None or not raw.strip():
            continue
        try:
            value = parse(raw.strip())
        except ValueError as exc:
            raise TomlConfigError(
                f"Invalid value for {variable}: {exc}"
            ) from exc
        result.setdefault(table, {})[key] = value
    return result


def parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"expected a boolean, found '{raw}'")


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write ``template`` to ``path``; refuse to clobber unless ``overwrite``."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
