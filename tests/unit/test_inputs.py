"""
tierforge — unit tests for model list and override file inputs

File: tests/unit/test_inputs.py

Purpose
- Validate parsing of list-models payloads and loading of override files.

What this test file should cover
- OpenAI-compatible responses, bare lists and text lines.
- Owner labels.
- JSON/YAML/TOML override files and structured load errors.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from tierforge.inputs import (
    InputLoadError,
    load_model_ids,
    load_model_payload,
    load_overrides_file,
    model_source_labels,
    parse_model_list,
)

if TYPE_CHECKING:
    from pathlib import Path

LIST_MODELS_RESPONSE = {
    "object": "list",
    "data": [
        {"id": "claude-opus-4-6", "object": "model", "owned_by": "anthropic"},
        {"id": "gemini-3-pro-preview", "object": "model", "owned_by": "antigravity"},
        {"id": "gpt-5.2-codex", "object": "model", "owned_by": "openai"},
        {"id": "qwen3-coder", "object": "model", "owned_by": "iflow"},
        {"object": "model"},
    ],
}


def test_parse_model_list_accepts_list_models_response() -> None:
    assert parse_model_list(LIST_MODELS_RESPONSE) == (
        "claude-opus-4-6",
        "gemini-3-pro-preview",
        "gpt-5.2-codex",
        "qwen3-coder",
    )


def test_parse_model_list_accepts_bare_lists_and_text() -> None:
    assert parse_model_list(["a", {"id": "b"}, 3, "", "a"]) == ("a", "b", "a")
    assert parse_model_list("a\n\n# comment\n  b  \n") == ("a", "b")
    assert parse_model_list(42) == ()
    assert parse_model_list({"models": ["a"]}) == ()


def test_model_source_labels() -> None:
    assert model_source_labels(LIST_MODELS_RESPONSE) == {
        "claude-opus-4-6": "Claude",
        "gemini-3-pro-preview": "Gemini",
        "gpt-5.2-codex": "OpenAI/Codex",
        "qwen3-coder": "iflow",
    }
    assert model_source_labels(["a", "b"]) == {}


def test_load_model_ids_by_suffix(tmp_path: Path) -> None:
    json_path = tmp_path / "models.json"
    json_path.write_text(json.dumps(LIST_MODELS_RESPONSE), encoding="utf-8")
    yaml_path = tmp_path / "models.yaml"
    yaml_path.write_text("- claude-opus-4-6\n- gpt-5.1\n", encoding="utf-8")
    text_path = tmp_path / "models.txt"
    text_path.write_text("gpt-5.1\ngemini-3-flash\n", encoding="utf-8")

    assert load_model_ids(json_path)[0] == "claude-opus-4-6"
    assert load_model_ids(yaml_path) == ("claude-opus-4-6", "gpt-5.1")
    assert load_model_ids(text_path) == ("gpt-5.1", "gemini-3-flash")
    assert load_model_payload(text_path) == ["gpt-5.1", "gemini-3-flash"]


def test_load_model_ids_reports_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(InputLoadError, match="unable to read"):
        load_model_ids(tmp_path / "missing.txt")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(InputLoadError, match="invalid JSON"):
        load_model_ids(broken)


def test_load_overrides_file_formats(tmp_path: Path) -> None:
    toml_path = tmp_path / "overrides.toml"
    toml_path.write_text('[agents.sisyphus]\nmodel = "gpt-5.2-codex"\n', encoding="utf-8")
    yaml_path = tmp_path / "overrides.yaml"
    yaml_path.write_text("tmux:\n  main_pane_size: 70\n", encoding="utf-8")
    empty_yaml = tmp_path / "empty.yml"
    empty_yaml.write_text("", encoding="utf-8")

    assert load_overrides_file(toml_path) == {"agents": {"sisyphus": {"model": "gpt-5.2-codex"}}}
    assert load_overrides_file(yaml_path) == {"tmux": {"main_pane_size": 70}}
    assert load_overrides_file(empty_yaml) == {}


def test_load_overrides_file_rejects_bad_roots_and_syntax(tmp_path: Path) -> None:
    list_root = tmp_path / "overrides.json"
    list_root.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InputLoadError, match="override root must be an object"):
        load_overrides_file(list_root)

    bad_yaml = tmp_path / "bad.yaml"
    bad_yaml.write_text("agents: [unclosed\n", encoding="utf-8")
    with pytest.raises(InputLoadError, match="invalid YAML"):
        load_overrides_file(bad_yaml)

    bad_toml = tmp_path / "bad.toml"
    bad_toml.write_text("agents = \n", encoding="utf-8")
    with pytest.raises(InputLoadError, match="invalid TOML"):
        load_overrides_file(bad_toml)


def test_non_utf8_files_raise_input_errors(tmp_path: Path) -> None:
    models = tmp_path / "models.txt"
    models.write_bytes(b"\xff\xfe")
    overrides = tmp_path / "overrides.toml"
    overrides.write_bytes(b"model = \"\xff\"\n")

    with pytest.raises(InputLoadError, match="not valid UTF-8"):
        load_model_ids(models)
    with pytest.raises(InputLoadError, match="not valid UTF-8"):
        load_overrides_file(overrides)
