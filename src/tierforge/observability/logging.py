"""
tierforge — structured run logging.

File: src/tierforge/observability/logging.py

Purpose
- One JSON object per log line, on stderr and optionally in
  ``<log_dir>/<run_id>/tierforge.jsonl``.
- structlog events (``override_model_unavailable``, ``config_assembled``, ...)
  are rendered into stdlib records so they reach the same sinks; their keyword
  arguments land under ``fields``.
- Secret-looking keys, ``key=value`` credentials, bearer tokens and provider
  API keys are masked before a line is written.

Line shape
    {"timestamp": ..., "level": ..., "logger": ..., "message": ...,
     "run_id": ..., <correlation keys>, "fields": {...}, "exception": ...}
"""

from __future__ import annotations

import contextvars
import json
import logging
import math
import re
import sys
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, TextIO

import structlog

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogRedactor = Callable[[JSONValue], JSONValue]

REDACTED: Final[str] = "***REDACTED***"

_SECRET_KEY_HINTS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "cookie",
)
_INLINE_SECRET_RULES: Final[tuple[tuple[re.Pattern[str], str], ...]] = (
    (
        re.compile(
            r"(?i)\b(api[_-]?key|token|password|secret|authorization)\b\s*([:=])\s*[^\s,;]+"
        ),
        rf"\1\2{REDACTED}",
    ),
    (re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*"), f"Bearer {REDACTED}"),
    (re.compile(r"\bsk-(?:ant-)?[A-Za-z0-9_-]{12,}\b"), REDACTED),
)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime"}

_correlation: contextvars.ContextVar[Mapping[str, str]] = contextvars.ContextVar(
    "tierforge_correlation", default={}
)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Sinks and filtering for one run."""

    run_id: str
    base_log_dir: Path | str = Path("logs")
    logger_name: str = "tierforge"
    level: int | str = "WARNING"
    log_filename: str = "tierforge.jsonl"
    log_to_file: bool = False
    log_to_stderr: bool = True
    redactor: LogRedactor | None = None


class StructuredLoggingHandle:
    """Owns the handlers installed by :func:`setup_structured_logging`."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        run_id: str,
        log_path: Path | None,
        handlers: tuple[logging.Handler, ...],
    ) -> None:
        self.logger = logger
        self.run_id = run_id
        self.log_path = log_path
        self._handlers = handlers
        self._closed = threading.Event()

    @property
    def is_shutdown(self) -> bool:
        return self._closed.is_set()

    def flush(self) -> None:
        for handler in self._handlers:
            handler.flush()

    def shutdown(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        for handler in self._handlers:
            self.logger.removeHandler(handler)
            handler.close()


class _ActiveRun:
    """Process-wide slot for the handle of the run currently logging."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handle: StructuredLoggingHandle | None = None

    def get(self) -> StructuredLoggingHandle | None:
        with self._lock:
            return self._handle

    def replace(self, handle: StructuredLoggingHandle | None) -> StructuredLoggingHandle | None:
        with self._lock:
            previous, self._handle = self._handle, handle
        return previous

    def clear_if(self, handle: StructuredLoggingHandle) -> None:
        with self._lock:
            if self._handle is handle:
                self._handle = None


_ACTIVE_RUN: Final[_ActiveRun] = _ActiveRun()


class _JsonLineFormatter(logging.Formatter):
    def __init__(self, *, run_id: str, redactor: LogRedactor) -> None:
        super().__init__()
        self._run_id = run_id
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, JSONValue] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": self._text(record.getMessage()),
            "run_id": self._run_id,
        }
        line.update(sorted(get_correlation_context().items()))

        extras = {
            key: _to_json(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if extras:
            line["fields"] = self._redactor(extras)
        if record.exc_info is not None:
            line["exception"] = self._text(self.formatException(record.exc_info))
        return json.dumps(line, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    def _text(self, text: str) -> str:
        redacted = self._redactor(text)
        if isinstance(redacted, str):
            return redacted
        return json.dumps(redacted, sort_keys=True, ensure_ascii=False)


def setup_structured_logging(
    config: LoggingConfig,
    *,
    stream: TextIO | None = None,
) -> StructuredLoggingHandle:
    """Install fresh JSON-lines sinks for ``config`` and route structlog through them."""

    previous = _ACTIVE_RUN.replace(None)
    if previous is not None:
        previous.shutdown()

    run_id = _required_text(config.run_id, "run_id")
    logger_name = _required_text(config.logger_name, "logger_name")
    log_filename = _required_text(config.log_filename, "log_filename")
    if Path(log_filename).name != log_filename:
        raise ValueError("log_filename must not include path separators")
    level = _level_number(config.level)

    formatter = _JsonLineFormatter(
        run_id=run_id,
        redactor=config.redactor if config.redactor is not None else default_log_redactor,
    )
    handlers: list[logging.Handler] = []
    log_path: Path | None = None
    if config.log_to_file:
        log_path = Path(config.base_log_dir) / run_id / log_filename
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    if config.log_to_stderr:
        handlers.append(logging.StreamHandler(stream if stream is not None else sys.stderr))

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    configure_structlog()
    handle = StructuredLoggingHandle(
        logger=logger, run_id=run_id, log_path=log_path, handlers=tuple(handlers)
    )
    _ACTIVE_RUN.replace(handle)
    return handle


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    run_id: str,
    stream: TextIO | None = None,
) -> StructuredLoggingHandle:
    """Configure logging from the ``observability`` settings section."""

    settings = observability_config or {}
    level = settings.get("log_level", "WARNING")
    log_dir = settings.get("log_dir", "logs")
    return setup_structured_logging(
        LoggingConfig(
            run_id=run_id,
            base_log_dir=log_dir if isinstance(log_dir, (str, Path)) else "logs",
            level=level if isinstance(level, (str, int)) else "WARNING",
            log_to_file=settings.get("log_to_file") is True,
            redactor=None if settings.get("redact_secrets", True) else _keep_as_is,
        ),
        stream=stream,
    )


def configure_structlog() -> None:
    """Send structlog events to stdlib logging; event kwargs become record extras."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def shutdown_logging(handle: StructuredLoggingHandle | None = None) -> None:
    """Close the sinks of ``handle``, or of the active run when omitted."""

    target = handle if handle is not None else _ACTIVE_RUN.get()
    if target is None:
        return
    target.shutdown()
    _ACTIVE_RUN.clear_if(target)


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    return _ACTIVE_RUN.get()


def get_correlation_context() -> dict[str, str]:
    return dict(_correlation.get())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Bind correlation keys for records logged inside the block; ``None`` unbinds a key."""

    bound = get_correlation_context()
    for key, value in fields.items():
        key = _required_text(key, "correlation key")
        if value is None:
            bound.pop(key, None)
        else:
            bound[key] = _required_text(value, "correlation value")
    token = _correlation.set(bound)
    try:
        yield
    finally:
        _correlation.reset(token)


def default_log_redactor(value: JSONValue) -> JSONValue:
    """Mask secret-looking keys and inline credentials at any depth."""

    if isinstance(value, str):
        for pattern, replacement in _INLINE_SECRET_RULES:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, list):
        return [default_log_redactor(item) for item in value]
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_secret_key(key) else default_log_redactor(item)
            for key, item in value.items()
        }
    return value


def _is_secret_key(key: str) -> bool:
    lowered = key.lower()
    return any(hint in lowered for hint in _SECRET_KEY_HINTS)


def _keep_as_is(value: JSONValue) -> JSONValue:
    return value


def _required_text(value: str, label: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a string, got {type(value).__name__}")
    if not value.strip():
        raise ValueError(f"{label} must not be empty")
    return value.strip()


def _level_number(value: int | str) -> int:
    if isinstance(value, int):
        return value
    number = logging.getLevelName(str(value).strip().upper())
    if not isinstance(number, int):
        raise ValueError(f"unsupported logging level {value!r}")
    return number


def _to_json(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_to_json(item) for item in value), key=repr)
    return str(value) if isinstance(value, Path) else repr(value)


__all__ = [
    "JSONScalar",
    "JSONValue",
    "LogRedactor",
    "LoggingConfig",
    "REDACTED",
    "StructuredLoggingHandle",
    "configure_structlog",
    "correlation_scope",
    "default_log_redactor",
    "get_active_logging_handle",
    "get_correlation_context",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
