"""
tierforge — model catalog and override file inputs.

File: src/tierforge/inputs.py

Purpose
- Parse the upstream "list models" response and user override files for the CLI.

What should be included in this file
- Payload parsing for OpenAI-compatible model lists, bare id lists and text.
- Owner-to-source labelling for display.
- JSON/YAML/TOML file loaders with structured load errors.

Functional requirements
- Keep catalog order and duplicates exactly as delivered upstream.
"""

from __future__ import annotations

import json
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final, cast

import yaml

_OWNER_LABELS: Final[dict[str, str]] = {
    "anthropic": "Claude",
    "google": "Gemini",
    "antigravity": "Gemini",
    "openai": "OpenAI/Codex",
}
_JSON_SUFFIXES: Final[frozenset[str]] = frozenset({".json"})
_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_TOML_SUFFIXES: Final[frozenset[str]] = frozenset({".toml"})


class InputLoadError(ValueError):
    """Raised when a model list or override file cannot be read or parsed."""


def parse_model_list(payload: object) -> tuple[str, ...]:
    """Extract model ids from a list-models response, a JSON list, or text lines."""

    if isinstance(payload, str):
        return _parse_text_lines(payload)
    if isinstance(payload, Mapping):
        payload = payload.get("data", ())
    if isinstance(payload, (bytes, bytearray)) or not isinstance(payload, Sequence):
        return ()

    ids: list[str] = []
    for entry in payload:
        model_id = _entry_id(entry)
        if model_id is not None:
            ids.append(model_id)
    return tuple(ids)


def model_source_labels(entries: object) -> dict[str, str]:
    """Map model id -> display source using each entry's ``owned_by`` field."""

    if isinstance(entries, Mapping):
        entries = entries.get("data", ())
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Sequence):
        return {}

    labels: dict[str, str] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        model_id = _entry_id(entry)
        owner = entry.get("owned_by")
        if model_id is None or not isinstance(owner, str) or not owner:
            continue
        labels[model_id] = _OWNER_LABELS.get(owner, owner)
    return labels


def load_model_ids(path: str | Path) -> tuple[str, ...]:
    """Load model ids from a JSON/YAML file or a plain text file (one id per line)."""

    candidate = Path(path).expanduser()
    suffix = candidate.suffix.lower()
    if suffix in _JSON_SUFFIXES | _YAML_SUFFIXES:
        return parse_model_list(_load_structured(candidate))
    return _parse_text_lines(_read_text(candidate))


def load_model_payload(path: str | Path) -> object:
    """Load the raw structured payload of a model list file (for source labels)."""

    candidate = Path(path).expanduser()
    if candidate.suffix.lower() in _JSON_SUFFIXES | _YAML_SUFFIXES:
        return _load_structured(candidate)
    return list(_parse_text_lines(_read_text(candidate)))


def load_overrides_file(path: str | Path) -> dict[str, Any]:
    """Load an override tree from JSON, YAML or TOML."""

    candidate = Path(path).expanduser()
    loaded = _load_structured(candidate)
    if loaded is None:
        return {}
    if not isinstance(loaded, Mapping):
        raise InputLoadError(
            f"{candidate}: override root must be an object, got {type(loaded).__name__}"
        )
    return dict(loaded)


def _entry_id(entry: object) -> str | None:
    if isinstance(entry, str):
        return entry if entry.strip() else None
    if isinstance(entry, Mapping):
        value = entry.get("id")
        if isinstance(value, str) and value.strip():
            return value
    return None


def _parse_text_lines(text: str) -> tuple[str, ...]:
    ids: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        ids.append(stripped)
    return tuple(ids)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputLoadError(f"unable to read {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise InputLoadError(f"{path}: not valid UTF-8 ({exc})") from exc


def _load_structured(path: Path) -> object:
    suffix = path.suffix.lower()
    if suffix in _TOML_SUFFIXES:
        try:
            with path.open("rb") as handle:
                return tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise InputLoadError(f"{path}: invalid TOML ({exc})") from exc
        except UnicodeDecodeError as exc:
            raise InputLoadError(f"{path}: not valid UTF-8 ({exc})") from exc
        except OSError as exc:
            raise InputLoadError(f"unable to read {path}: {exc}") from exc

    text = _read_text(path)
    if suffix in _YAML_SUFFIXES:
        try:
            return cast("object", yaml.safe_load(text))
        except yaml.YAMLError as exc:
            raise InputLoadError(f"{path}: invalid YAML ({exc})") from exc
    try:
        return cast("object", json.loads(text))
    except json.JSONDecodeError as exc:
        raise InputLoadError(f"{path}: invalid JSON ({exc})") from exc


__all__ = [
    "InputLoadError",
    "load_model_ids",
    "load_model_payload",
    "load_overrides_file",
    "model_source_labels",
    "parse_model_list",
]
