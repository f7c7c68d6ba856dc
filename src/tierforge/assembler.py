"""
tierforge — oh-my-opencode config assembly.

File: src/tierforge/assembler.py

Purpose
- Turn a model catalog plus optional user overrides into the final
  oh-my-opencode document, or ``None`` when there is nothing to emit.

Merge policies (one per block, never a generic deep merge)
- ``tmux``: emitted only when overridden; shallow merge over defaults.
- ``background_task``, ``sisyphus_agent``, ``git_master``: always emitted;
  shallow merge over defaults.
- ``browser_automation_engine``: passthrough when present, no defaults.
- ``lsp``: passthrough when a non-empty object, no defaults.
- ``disabled_*``: copied when non-empty.
- per-role ``model``: a valid pin bypasses tier selection entirely.

Non-functional requirements
- Pure: no I/O, no shared mutable state, inputs are never mutated.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

import structlog

from tierforge.constants import OH_MY_OPENCODE_SCHEMA_URL, ROUTING_PREFIX
from tierforge.overrides import DISABLED_LIST_KEYS, filter_excluded_models, normalize_overrides
from tierforge.ranking.tiers import build_tiers
from tierforge.resolver import OverrideResolver

if TYPE_CHECKING:
    from tierforge.overrides import FullOverrideConfig
    from tierforge.ranking.rankers import Ranker
    from tierforge.roles import RoleTable

DEFAULT_TMUX: Final[Mapping[str, Any]] = MappingProxyType(
    {
        "enabled": True,
        "layout": "main-vertical",
        "main_pane_size": 60,
        "main_pane_min_width": 120,
        "agent_pane_min_width": 40,
    }
)
DEFAULT_BACKGROUND_TASK: Final[Mapping[str, Any]] = MappingProxyType({"defaultConcurrency": 5})
DEFAULT_SISYPHUS_AGENT: Final[Mapping[str, Any]] = MappingProxyType(
    {"planner_enabled": True, "replace_plan": True}
)
DEFAULT_GIT_MASTER: Final[Mapping[str, Any]] = MappingProxyType(
    {"commit_footer": False, "include_co_authored_by": False}
)


class ConfigAssembler:
    """Assemble oh-my-opencode documents from a catalog and user overrides."""

    def __init__(
        self,
        *,
        ranker: Ranker | None = None,
        role_table: RoleTable | None = None,
        routing_prefix: str = ROUTING_PREFIX,
        schema_url: str = OH_MY_OPENCODE_SCHEMA_URL,
        logger: Any | None = None,
    ) -> None:
        self._ranker = ranker
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._resolver = OverrideResolver(role_table, logger=self._logger)
        self._routing_prefix = routing_prefix
        self._schema_url = schema_url

    def assemble(
        self,
        available_models: Sequence[str],
        overrides: FullOverrideConfig | Mapping[str, Any] | None = None,
        *,
        excluded_models: Sequence[str] | None = None,
    ) -> dict[str, Any] | None:
        models = filter_excluded_models(_as_model_ids(available_models), excluded_models)
        normalized = normalize_overrides(overrides)

        tiers = build_tiers(models, ranker=self._ranker)
        resolved = self._resolver.resolve(tiers, models, normalized)
        if resolved.is_empty:
            self._logger.info("config_empty", available_models=len(models))
            return None

        config: dict[str, Any] = {"$schema": self._schema_url}
        if resolved.agents:
            config["agents"] = {
                name: item.to_dict(self._routing_prefix) for name, item in resolved.agents.items()
            }
        if resolved.categories:
            config["categories"] = {
                name: item.to_dict(self._routing_prefix)
                for name, item in resolved.categories.items()
            }

        config["auto_update"] = False

        for key in DISABLED_LIST_KEYS:
            items = normalized.get(key)
            if items:
                config[key] = list(items)

        tmux = normalized.get("tmux")
        if tmux is not None:
            config["tmux"] = _shallow_merge(DEFAULT_TMUX, tmux)

        config["background_task"] = _shallow_merge(
            DEFAULT_BACKGROUND_TASK, normalized.get("background_task")
        )

        browser = normalized.get("browser_automation_engine")
        if browser is not None:
            config["browser_automation_engine"] = copy.deepcopy(browser)

        config["sisyphus_agent"] = _shallow_merge(
            DEFAULT_SISYPHUS_AGENT, normalized.get("sisyphus_agent")
        )
        config["git_master"] = _shallow_merge(DEFAULT_GIT_MASTER, normalized.get("git_master"))

        lsp = normalized.get("lsp")
        if lsp:
            config["lsp"] = copy.deepcopy(lsp)

        self._logger.info(
            "config_assembled",
            available_models=len(models),
            agents=len(resolved.agents),
            categories=len(resolved.categories),
            pinned=sum(
                1
                for item in (*resolved.agents.values(), *resolved.categories.values())
                if item.source == "override"
            ),
        )
        return config


def build_config(
    available_models: Sequence[str],
    overrides: FullOverrideConfig | Mapping[str, Any] | None = None,
    *,
    excluded_models: Sequence[str] | None = None,
    ranker: Ranker | None = None,
    role_table: RoleTable | None = None,
    logger: Any | None = None,
) -> dict[str, Any] | None:
    """Assemble the oh-my-opencode config; ``None`` means nothing to emit."""

    assembler = ConfigAssembler(ranker=ranker, role_table=role_table, logger=logger)
    return assembler.assemble(available_models, overrides, excluded_models=excluded_models)


def _shallow_merge(
    defaults: Mapping[str, Any],
    override: Mapping[str, Any] | None,
) -> dict[str, Any]:
    merged = {key: copy.deepcopy(value) for key, value in defaults.items()}
    if override:
        for key, value in override.items():
            merged[key] = copy.deepcopy(value)
    return merged


def _as_model_ids(value: object) -> tuple[str, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return ()
    return tuple(item for item in value if isinstance(item, str))


__all__ = [
    "ConfigAssembler",
    "DEFAULT_BACKGROUND_TASK",
    "DEFAULT_GIT_MASTER",
    "DEFAULT_SISYPHUS_AGENT",
    "DEFAULT_TMUX",
    "build_config",
]
