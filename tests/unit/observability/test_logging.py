"""
tierforge — unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate structured JSON logging with redaction, correlation metadata, and structlog routing.

What this test file should cover
- JSON line validity and redaction guarantees.
- Correlation field propagation.
- structlog events reaching the stdlib sinks with their keyword fields.
- Settings-driven setup and shutdown behavior.

Functional requirements
- Offline operation.

Non-functional requirements
- Deterministic and non-flaky.
"""

from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
import structlog

from tierforge.observability.logging import (
    LoggingConfig,
    correlation_scope,
    get_active_logging_handle,
    get_correlation_context,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()
    structlog.reset_defaults()


def _logger_name() -> str:
    return f"tierforge.tests.logging.{uuid4().hex}"


def _read_json_lines(path: Path) -> list[dict[str, object]]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


def test_json_logging_redacts_secrets_and_preserves_correlation_fields(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(
        LoggingConfig(
            run_id="run-logging-redaction",
            base_log_dir=tmp_path,
            logger_name=logger_name,
            level="INFO",
            log_to_file=True,
            log_to_stderr=False,
        )
    )
    logger = logging.getLogger(logger_name)

    with correlation_scope(command="build"):
        logger.info(
            "payload token=tok-FAKE and api_key=sk-FAKE123456789012345",
            extra={"nested": {"password": "hunter2", "safe": "ok"}},
        )

    shutdown_logging(handle)

    assert handle.log_path is not None
    assert handle.log_path == tmp_path / "run-logging-redaction" / "tierforge.jsonl"
    parsed = _read_json_lines(handle.log_path)
    assert len(parsed) == 1
    first = parsed[0]
    assert first["run_id"] == "run-logging-redaction"
    assert first["command"] == "build"
    assert first["level"] == "INFO"
    assert first["fields"] == {"nested": {"password": "***REDACTED***", "safe": "ok"}}

    line = handle.log_path.read_text(encoding="utf-8")
    assert "tok-FAKE" not in line
    assert "sk-FAKE" not in line
    assert "hunter2" not in line


def test_structlog_events_are_routed_to_stdlib_sinks() -> None:
    logger_name = _logger_name()
    stream = io.StringIO()
    setup_structured_logging(
        LoggingConfig(run_id="run-structlog", logger_name=logger_name, level="INFO"),
        stream=stream,
    )

    log = structlog.get_logger(f"{logger_name}.resolver")
    log.info("override_model_unavailable", role="sisyphus", model="gpt-9", api_key="secret")
    log.debug("role_skipped_empty_tier", role="explore")

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert len(lines) == 1
    event = lines[0]
    assert event["message"] == "override_model_unavailable"
    assert event["logger"] == f"{logger_name}.resolver"
    assert event["fields"] == {"role": "sisyphus", "model": "gpt-9", "api_key": "***REDACTED***"}


def test_setup_logging_wrapper_uses_observability_settings(tmp_path: Path) -> None:
    handle = setup_logging(
        {
            "log_level": "DEBUG",
            "log_dir": str(tmp_path),
            "log_to_file": True,
            "redact_secrets": False,
        },
        run_id="run-wrapper",
        stream=io.StringIO(),
    )

    handle.logger.debug("hello", extra={"token": "t-123"})
    shutdown_logging()

    files = list((tmp_path / "run-wrapper").glob("*.jsonl"))
    assert len(files) == 1
    assert "t-123" in files[0].read_text(encoding="utf-8")


def test_file_sink_is_optional(tmp_path: Path) -> None:
    stream = io.StringIO()
    handle = setup_logging({"log_dir": str(tmp_path)}, run_id="run-no-file", stream=stream)

    handle.logger.warning("visible")
    handle.logger.info("filtered")

    assert handle.log_path is None
    assert not (tmp_path / "run-no-file").exists()
    assert [json.loads(line)["message"] for line in stream.getvalue().splitlines()] == ["visible"]


def test_setup_replaces_and_shutdown_clears_active_handle() -> None:
    first = setup_structured_logging(
        LoggingConfig(run_id="run-a", logger_name=_logger_name()), stream=io.StringIO()
    )
    second = setup_structured_logging(
        LoggingConfig(run_id="run-b", logger_name=_logger_name()), stream=io.StringIO()
    )

    assert first.is_shutdown
    assert get_active_logging_handle() is second

    shutdown_logging()

    assert second.is_shutdown
    assert get_active_logging_handle() is None


def test_invalid_logging_config_is_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported logging level"):
        setup_structured_logging(LoggingConfig(run_id="run", level="LOUD"))
    with pytest.raises(ValueError, match="run_id must not be empty"):
        setup_structured_logging(LoggingConfig(run_id="  "))
    with pytest.raises(ValueError, match="path separators"):
        setup_structured_logging(LoggingConfig(run_id="run", log_filename="a/b.jsonl"))


def test_correlation_scope_nests_and_resets() -> None:
    with correlation_scope(run_id="outer", command="tiers"):
        with correlation_scope(command=None, role="oracle"):
            assert get_correlation_context() == {"run_id": "outer", "role": "oracle"}
        assert get_correlation_context() == {"run_id": "outer", "command": "tiers"}
    assert get_correlation_context() == {}
