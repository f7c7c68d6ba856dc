"""
tierforge config package public API.

File: src/tierforge/config/__init__.py

Purpose
- Export settings loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``tierforge.toml`` + ``TIERFORGE_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from tierforge.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_BINDINGS,
    ENV_PREFIX,
    ConfigLoadError,
    EnvBinding,
    dump_effective_config,
    env_name_for_path,
    load_config,
    normalize_paths,
)
from tierforge.config.schema import (
    DEFAULT_CONFIG,
    LOG_LEVELS,
    PATH_FIELDS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    TierforgeConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_BINDINGS",
    "ENV_PREFIX",
    "EnvBinding",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "TierforgeConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "env_name_for_path",
    "load_config",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "validate_config",
]
