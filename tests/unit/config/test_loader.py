"""
tierforge — unit tests for the runtime settings loader

File: tests/unit/config/test_loader.py

Purpose
- Validate deterministic settings loading from defaults, TOML, env overrides, and CLI overrides.

What this test file should cover
- Precedence: CLI > env > file > defaults.
- Deterministic env var path mapping and type coercion.
- Path normalization relative to the config file.

Functional requirements
- Works offline and without a config file in the working directory.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from tierforge.config import (
    DEFAULT_CONFIG,
    ENV_BINDINGS,
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    env_name_for_path,
    load_config,
)

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_loader_precedence_default_file_env_cli(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    default_path = tmp_path / "default.toml"
    _write_config(default_path, "")
    _write_config(config_path, '[engine]\nranking_strategy = "prefix"\n')

    default_loaded = load_config(default_path, environ={})
    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(
        config_path, environ={"TIERFORGE_ENGINE_RANKING_STRATEGY": "heuristic"}
    )
    cli_loaded = load_config(
        config_path,
        environ={"TIERFORGE_ENGINE_RANKING_STRATEGY": "heuristic"},
        cli_overrides={"engine.ranking_strategy": "prefix"},
    )

    assert default_loaded["engine"]["ranking_strategy"] == "heuristic"
    assert file_loaded["engine"]["ranking_strategy"] == "prefix"
    assert env_loaded["engine"]["ranking_strategy"] == "heuristic"
    assert cli_loaded["engine"]["ranking_strategy"] == "prefix"


def test_missing_default_file_falls_back_to_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    loaded = load_config(environ={})

    assert loaded["engine"] == {
        "ranking_strategy": "heuristic",
        "prefix_priorities": [],
        "excluded_models": [],
    }
    assert loaded["observability"]["log_level"] == "WARNING"
    assert loaded["observability"]["log_dir"] == (tmp_path / "logs").resolve().as_posix()


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "absent.toml", environ={})


def test_invalid_toml_is_reported(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    _write_config(config_path, "[engine\n")

    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(config_path, environ={})


def test_env_coercion_for_bool_and_list_fields(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    _write_config(config_path, "")

    loaded = load_config(
        config_path,
        environ={
            "TIERFORGE_OBSERVABILITY_LOG_TO_FILE": "yes",
            "TIERFORGE_OBSERVABILITY_REDACT_SECRETS": "off",
            "TIERFORGE_ENGINE_EXCLUDED_MODELS": "gpt-5-mini, ,gemini-2.5-flash-lite",
            "TIERFORGE_OBSERVABILITY_LOG_LEVEL": "info",
        },
    )

    assert loaded["observability"]["log_to_file"] is True
    assert loaded["observability"]["redact_secrets"] is False
    assert loaded["observability"]["log_level"] == "INFO"
    assert loaded["engine"]["excluded_models"] == ["gpt-5-mini", "gemini-2.5-flash-lite"]


def test_env_boolean_coercion_rejects_garbage(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigLoadError, match="TIERFORGE_OBSERVABILITY_LOG_TO_FILE"):
        load_config(config_path, environ={"TIERFORGE_OBSERVABILITY_LOG_TO_FILE": "maybe"})


def test_invalid_values_raise_validation_errors(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    _write_config(config_path, '[engine]\nranking_strategy = "random"\nunknown = 1\n')

    with pytest.raises(ConfigValidationError) as excinfo:
        load_config(config_path, environ={})

    paths = {issue.path for issue in excinfo.value.issues}
    assert paths == {"engine.ranking_strategy", "engine.unknown"}


def test_log_dir_is_normalized_relative_to_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "conf" / "tierforge.toml"
    _write_config(config_path, '[observability]\nlog_dir = "../var/logs"\n')

    loaded = load_config(config_path, environ={})

    assert loaded["observability"]["log_dir"] == (tmp_path.resolve() / "var" / "logs").as_posix()


def test_env_names_and_dump_are_deterministic(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    _write_config(config_path, "")

    first = dump_effective_config(load_config(config_path, environ={}))
    second = dump_effective_config(load_config(config_path, environ={}))

    assert first == second
    assert json.loads(first)["meta"] == {"schema_version": 1}
    assert env_name_for_path(("engine", "prefix_priorities")) == (
        "TIERFORGE_ENGINE_PREFIX_PRIORITIES"
    )


def test_env_bindings_cover_every_setting_except_schema_version() -> None:
    leaves = {
        (section, key)
        for section, block in DEFAULT_CONFIG.items()
        for key in block
        if (section, key) != ("meta", "schema_version")
    }

    assert {binding.path for binding in ENV_BINDINGS} == leaves
    assert len({binding.env_name for binding in ENV_BINDINGS}) == len(ENV_BINDINGS)


def test_unbound_env_vars_are_ignored(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    _write_config(config_path, "")

    loaded = load_config(
        config_path,
        environ={"TIERFORGE_META_SCHEMA_VERSION": "7", "TIERFORGE_ENGINE_UNKNOWN": "x"},
    )

    assert loaded["meta"] == {"schema_version": 1}
    assert "unknown" not in loaded["engine"]


def test_malformed_cli_override_keys_are_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "tierforge.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigLoadError, match="invalid CLI override key"):
        load_config(config_path, environ={}, cli_overrides={"engine": "prefix"})
