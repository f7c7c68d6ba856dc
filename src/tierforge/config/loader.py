"""
tierforge — runtime config loader.

File: src/tierforge/config/loader.py

Purpose
- Resolve the effective runtime settings for one CLI run.

Sources, lowest to highest precedence
- ``DEFAULT_CONFIG``.
- ``tierforge.toml`` in the working directory, or the file passed with ``--config``.
- ``TIERFORGE_<SECTION>_<KEY>`` environment variables listed in ``ENV_BINDINGS``.
- Dotted CLI overrides such as ``{"engine.ranking_strategy": "prefix"}``.

The merged result is validated twice: once after the file (so file errors are
reported against the file) and once after env/CLI overrides.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from tierforge.config.schema import (
    PATH_FIELDS,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "tierforge.toml"
ENV_PREFIX: Final[str] = "TIERFORGE_"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def env_name_for_path(path: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(part.upper() for part in path)


def _parse_text(raw: str) -> object:
    return raw.strip()


def _parse_flag(raw: str) -> object:
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError("must be a boolean (true/false/1/0/yes/no/on/off)")


def _parse_model_list(raw: str) -> object:
    # "a, ,b" -> ["a", "b"]
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True, slots=True)
class EnvBinding:
    """One settings leaf that may be overridden from the environment."""

    path: tuple[str, ...]
    parse: Callable[[str], object]

    @property
    def env_name(self) -> str:
        return env_name_for_path(self.path)

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


ENV_BINDINGS: Final[tuple[EnvBinding, ...]] = (
    EnvBinding(("engine", "ranking_strategy"), _parse_text),
    EnvBinding(("engine", "prefix_priorities"), _parse_model_list),
    EnvBinding(("engine", "excluded_models"), _parse_model_list),
    EnvBinding(("observability", "log_level"), _parse_text),
    EnvBinding(("observability", "log_dir"), _parse_text),
    EnvBinding(("observability", "log_to_file"), _parse_flag),
    EnvBinding(("observability", "redact_secrets"), _parse_flag),
)


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with deterministic precedence: CLI > env > file > defaults."""

    if config_path is None:
        source = (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    else:
        source = Path(config_path).expanduser().resolve()

    file_layer = _read_settings_file(source, required=config_path is not None)
    settings = assert_valid_config(merge_config(default_config(), file_layer))

    env_layer = _env_layer(os.environ if environ is None else environ)
    cli_layer = _cli_layer(cli_overrides or {})
    settings = assert_valid_config(merge_config(merge_config(settings, env_layer), cli_layer))

    return normalize_paths(settings, base_dir=source.parent)


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Resolve relative path settings (``observability.log_dir``) against ``base_dir``."""

    normalized = merge_config({}, config)
    for section, key in PATH_FIELDS:
        block = normalized.get(section)
        if isinstance(block, dict) and isinstance(block.get(key), str):
            block[key] = _absolute_posix(block[key], base_dir)
    return normalized


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return deterministic JSON dump of the effective config."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_settings_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: not valid UTF-8") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for binding in ENV_BINDINGS:
        raw = environ.get(binding.env_name)
        if raw is None:
            continue
        try:
            value = binding.parse(raw)
        except ValueError as exc:
            raise ConfigLoadError(f"{binding.env_name} -> {binding.dotted} {exc}") from exc
        _assign(layer, binding.path, value)
    return layer


def _cli_layer(cli_overrides: Mapping[str, object]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for dotted in sorted(cli_overrides):
        path = tuple(part for part in dotted.split(".") if part)
        if len(path) < 2:
            raise ConfigLoadError(f"invalid CLI override key {dotted!r}")
        _assign(layer, path, cli_overrides[dotted])
    return layer


def _assign(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    *parents, leaf = path
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value


def _absolute_posix(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_BINDINGS",
    "ENV_PREFIX",
    "EnvBinding",
    "dump_effective_config",
    "env_name_for_path",
    "load_config",
    "normalize_paths",
]
