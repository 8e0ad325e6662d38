"""Configuration loader for docmark conversions."""

from __future__ import annotations

import os
from importlib import resources
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, Sequence

from docmark.core import config as core_config
from docmark.core import workspace as workspace_mod
from docmark.markdown import (
    TransformerSet,
    builtin_names,
    load_transformers,
    resolve_transformers,
)

CONFIG_FILENAME = "docmark.toml"
TEMPLATE_NAME = "template.toml"
CONFIG_ENV = "DOCMARK_CONFIG"
ENV_PREFIX = "DOCMARK_"

_DEFAULT_COLLISION = "skip"
_DEFAULT_LOG_LEVEL = "INFO"


class DocmarkConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


class CollisionPolicy(Enum):
    """What to do when an output file already exists."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    VERSION = "version"

    @classmethod
    def from_value(cls, value: str) -> "CollisionPolicy":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise DocmarkConfigError(
            f"Unknown collision policy '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class DocmarkConfig:
    """Fully resolved configuration for a docmark run."""

    preserve_newlines: bool
    transformers: tuple[str, ...]
    extra: tuple[str, ...]
    output_dir: Path
    collision: CollisionPolicy
    log_level: str

    def build_transformers(self) -> TransformerSet:
        """Custom ``extra`` rules first, then the configured built-ins.

        Raises :class:`docmark.markdown.TransformerLoadError` when an
        ``extra`` reference cannot be imported.
        """

        return TransformerSet.from_transformers(
            (
                *load_transformers(self.extra),
                *resolve_transformers(self.transformers),
            )
        )


@dataclass(frozen=True)
class ConfigOverrides:
    """Command-line values applied on top of environment and file options."""

    preserve_newlines: Optional[bool] = None
    extra: Optional[Sequence[str]] = None
    output_dir: Optional[Path] = None
    collision: Optional[CollisionPolicy] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: DocmarkConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def _split_list(raw: str) -> list[str]:
    return [part for part in raw.replace(",", " ").split() if part]


_ENV_KEYS = {
    "PRESERVE_NEWLINES": ("conversion", "preserve_newlines", core_config.parse_bool),
    "TRANSFORMERS": ("conversion", "transformers", _split_list),
    "EXTRA": ("conversion", "extra", _split_list),
    "OUTPUT_DIR": ("paths", "output_dir", str),
    "COLLISION": ("execution", "collision", str),
    "LOG_LEVEL": ("logging", "level", str),
}


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings with precedence CLI > environment > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise DocmarkConfigError(str(exc)) from exc

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    options = _default_table()
    loaded_path: Optional[Path] = None
    try:
        if requested_path.exists():
            loaded_path = requested_path
            core_config.merge_defaults(
                options, core_config.load_toml(requested_path)
            )
        elif config_path is not None or _has_env_config(env_map):
            raise DocmarkConfigError(f"Config file not found: {requested_path}")

        core_config.merge_defaults(
            options,
            core_config.env_overrides(env_map, prefix=ENV_PREFIX, keys=_ENV_KEYS),
        )
    except core_config.TomlConfigError as exc:
        raise DocmarkConfigError(str(exc)) from exc

    _apply_overrides(options, overrides)

    conversion = options["conversion"]
    config = DocmarkConfig(
        preserve_newlines=_require_bool(
            conversion["preserve_newlines"], "conversion.preserve_newlines"
        ),
        transformers=_resolve_names(conversion["transformers"]),
        extra=_string_tuple(conversion["extra"], "conversion.extra"),
        output_dir=_resolve_output_dir(options["paths"]["output_dir"], layout),
        collision=_resolve_collision(options["execution"]["collision"]),
        log_level=_resolve_log_level(options["logging"]["level"]),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "conversion": {
            "preserve_newlines": False,
            "transformers": list(builtin_names()),
            "extra": [],
        },
        "paths": {"output_dir": ""},
        "execution": {"collision": _DEFAULT_COLLISION},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _apply_overrides(
    options: MutableMapping[str, MutableMapping[str, Any]],
    overrides: ConfigOverrides,
) -> None:
    if overrides.preserve_newlines is not None:
        options["conversion"]["preserve_newlines"] = overrides.preserve_newlines
    if overrides.extra:
        options["conversion"]["extra"] = [
            *overrides.extra,
            *options["conversion"]["extra"],
        ]
    if overrides.output_dir is not None:
        options["paths"]["output_dir"] = overrides.output_dir
    if overrides.collision is not None:
        options["execution"]["collision"] = overrides.collision
    if overrides.log_level is not None:
        options["logging"]["level"] = overrides.log_level


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    if _has_env_config(env_map):
        return Path(env_map[CONFIG_ENV].strip()).expanduser()
    return default_path


def _has_env_config(env_map: Mapping[str, str]) -> bool:
    return bool((env_map.get(CONFIG_ENV) or "").strip())


def _require_bool(value: object, key: str) -> bool:
    if not isinstance(value, bool):
        raise DocmarkConfigError(f"{key} must be true or false.")
    return value


def _string_tuple(value: object, key: str) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise DocmarkConfigError(f"{key} must be a list of strings.")
    result: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise DocmarkConfigError(f"{key} entries must be non-empty strings.")
        result.append(item.strip())
    return tuple(result)


def _resolve_names(value: object) -> tuple[str, ...]:
    names = _string_tuple(value, "conversion.transformers")
    try:
        resolve_transformers(names)
    except ValueError as exc:
        raise DocmarkConfigError(str(exc)) from exc
    return names


def _resolve_output_dir(
    value: object, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return layout.path_for("converted")
        value = Path(value)
    if not isinstance(value, Path):
        raise DocmarkConfigError("paths.output_dir must be a string.")
    candidate = value.expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    return candidate.resolve()


def _resolve_collision(value: object) -> CollisionPolicy:
    if isinstance(value, CollisionPolicy):
        return value
    if isinstance(value, str):
        return CollisionPolicy.from_value(value)
    raise DocmarkConfigError(
        "execution.collision must be one of: skip, overwrite, version."
    )


def _resolve_log_level(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DocmarkConfigError("logging.level must be a non-empty string.")
    return value.strip().upper()


def read_template() -> str:
    """Return the packaged ``template.toml`` with every default spelled out."""

    try:
        resource = resources.files("docmark.convert").joinpath(TEMPLATE_NAME)
        return resource.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DocmarkConfigError(
            f"Packaged config template {TEMPLATE_NAME} is missing."
        ) from exc


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the packaged template to ``path`` and return the path."""

    try:
        return core_config.write_toml_template(
            path, template=read_template(), overwrite=overwrite
        )
    except (core_config.TomlConfigError, OSError) as exc:
        raise DocmarkConfigError(str(exc)) from exc
