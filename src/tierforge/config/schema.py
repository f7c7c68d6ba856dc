"""
tierforge — runtime settings schema and validation.

File: src/tierforge/config/schema.py

Purpose
- Define the built-in defaults for ``tierforge.toml`` and validate merged settings.

Layout
- ``meta.schema_version``: integer, must equal ``ConfigSchemaVersion``.
- ``engine``: ranking strategy, prefix priorities and excluded model ids.
- ``observability``: log level, log directory and sink switches.

Validation walks ``_SECTION_RULES`` in order and reports every problem as a
``ConfigValidationIssue`` with a dotted path; a payload is accepted only when
no issue was reported.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Final, Literal, TypedDict

from tierforge.constants import CONFIG_SCHEMA_VERSION, RANKING_STRATEGIES

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")

# (section, key) pairs resolved relative to the config file's directory.
PATH_FIELDS: Final[tuple[tuple[str, str], ...]] = (("observability", "log_dir"),)


class MetaConfig(TypedDict):
    schema_version: int


class EngineConfig(TypedDict):
    ranking_strategy: Literal["heuristic", "prefix"]
    prefix_priorities: list[str]
    excluded_models: list[str]


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_dir: str
    log_to_file: bool
    redact_secrets: bool


class TierforgeConfig(TypedDict):
    meta: MetaConfig
    engine: EngineConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[TierforgeConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "engine": {
        "ranking_strategy": "heuristic",
        "prefix_priorities": [],
        "excluded_models": [],
    },
    "observability": {
        "log_level": "WARNING",
        "log_dir": "logs/",
        "log_to_file": False,
        "redact_secrets": True,
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"- {item.path}: {item.message}" for item in self.issues]
        super().__init__("invalid config:\n" + ("\n".join(lines) or "unknown validation failure"))


_Issues = list[ConfigValidationIssue]
_Rule = Callable[[object, str, _Issues], object]


def default_config() -> TierforgeConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    """Explain how to resolve a ``meta.schema_version`` mismatch."""

    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade tierforge.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the tierforge runtime"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto a copy of ``base``; lists and scalars are replaced."""

    merged = {key: _copied(value) for key, value in base.items()}
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = _copied(value)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues: _Issues = []
    root = _string_keyed(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=tuple(issues))

    _report_unknown(root, _SECTION_RULES, "", issues)
    normalized: dict[str, Any] = {}
    for section, rules in _SECTION_RULES.items():
        if section not in root:
            issues.append(ConfigValidationIssue(section, "missing required field"))
            continue
        block = _string_keyed(root[section], section, issues)
        if block is None:
            continue
        _report_unknown(block, rules, section, issues)
        values: dict[str, Any] = {}
        for key, rule in rules.items():
            path = f"{section}.{key}"
            if key not in block:
                issues.append(ConfigValidationIssue(path, "missing required field"))
                continue
            values[key] = rule(block[key], path, issues)
        normalized[section] = values

    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _copied(value: object) -> object:
    if isinstance(value, Mapping):
        return merge_config({}, value)
    return copy.deepcopy(value)


def _string_keyed(value: object, path: str, issues: _Issues) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.append(ConfigValidationIssue(path, f"expected object, got {type(value).__name__}"))
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if isinstance(key, str):
            out[key] = item
        else:
            issues.append(
                ConfigValidationIssue(
                    path, f"object key must be string, got {type(key).__name__}"
                )
            )
    return out


def _report_unknown(
    payload: Mapping[str, object], known: Mapping[str, object], prefix: str, issues: _Issues
) -> None:
    for key in sorted(set(payload) - set(known)):
        issues.append(ConfigValidationIssue(f"{prefix}.{key}" if prefix else key, "unknown field"))


def _text(value: object, path: str, issues: _Issues) -> str | None:
    if not isinstance(value, str):
        issues.append(ConfigValidationIssue(path, f"expected string, got {type(value).__name__}"))
        return None
    if not value.strip():
        issues.append(ConfigValidationIssue(path, "must not be empty"))
        return None
    return value.strip()


def _choice(allowed: tuple[str, ...], *, upper: bool = False) -> _Rule:
    def rule(value: object, path: str, issues: _Issues) -> str | None:
        if upper and isinstance(value, str):
            value = value.upper()
        parsed = _text(value, path, issues)
        if parsed is not None and parsed not in allowed:
            expected = ", ".join(sorted(allowed))
            issues.append(
                ConfigValidationIssue(
                    path, f"invalid value {parsed!r}; expected one of: {expected}"
                )
            )
            return None
        return parsed

    return rule


def _model_ids(value: object, path: str, issues: _Issues) -> list[str] | None:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        issues.append(
            ConfigValidationIssue(path, f"expected array of strings, got {type(value).__name__}")
        )
        return None
    parsed = [_text(item, f"{path}[{index}]", issues) for index, item in enumerate(value)]
    return [item for item in parsed if item is not None]


def _flag(value: object, path: str, issues: _Issues) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.append(ConfigValidationIssue(path, f"expected boolean, got {type(value).__name__}"))
    return None


def _schema_version(value: object, path: str, issues: _Issues) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.append(ConfigValidationIssue(path, f"expected integer, got {type(value).__name__}"))
        return None
    if value != ConfigSchemaVersion:
        issues.append(ConfigValidationIssue(path, migration_guidance(value)))
    return value


def _log_dir(value: object, path: str, issues: _Issues) -> str | None:
    parsed = _text(value, path, issues)
    if parsed is not None and "\x00" in parsed:
        issues.append(ConfigValidationIssue(path, "must not contain NUL bytes"))
        return None
    return parsed


_SECTION_RULES: Final[Mapping[str, Mapping[str, _Rule]]] = MappingProxyType(
    {
        "meta": {"schema_version": _schema_version},
        "engine": {
            "ranking_strategy": _choice(RANKING_STRATEGIES),
            "prefix_priorities": _model_ids,
            "excluded_models": _model_ids,
        },
        "observability": {
            "log_level": _choice(LOG_LEVELS, upper=True),
            "log_dir": _log_dir,
            "log_to_file": _flag,
            "redact_secrets": _flag,
        },
    }
)


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "TierforgeConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
