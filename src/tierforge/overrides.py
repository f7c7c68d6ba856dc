"""
tierforge — user override tree for the emitted oh-my-opencode config.

File: src/tierforge/overrides.py

Purpose
- Type the optional, deeply nested override structure read from a per-user record.
- Coerce untrusted payloads into that structure without ever raising.

What should be included in this file
- TypedDicts for per-role overrides and auxiliary blocks.
- ``normalize_overrides``: keep well-typed fields, drop everything else.
- Subscription merging and excluded-model filtering used before assembly.

Functional requirements
- Malformed fields degrade to omission; they never abort config assembly.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping, Sequence
from typing import Any, Final, TypedDict


class AgentOverride(TypedDict, total=False):
    model: str
    variant: str
    temperature: float
    prompt_append: str


class CategoryOverride(TypedDict, total=False):
    model: str
    variant: str
    temperature: float
    description: str


class TmuxOverride(TypedDict, total=False):
    enabled: bool
    layout: str
    main_pane_size: int
    main_pane_min_width: int
    agent_pane_min_width: int


class BackgroundTaskOverride(TypedDict, total=False):
    defaultConcurrency: int


class SisyphusAgentOverride(TypedDict, total=False):
    planner_enabled: bool
    replace_plan: bool


class GitMasterOverride(TypedDict, total=False):
    commit_footer: bool
    include_co_authored_by: bool


class FullOverrideConfig(TypedDict, total=False):
    agents: dict[str, AgentOverride]
    categories: dict[str, CategoryOverride]
    disabled_agents: list[str]
    disabled_skills: list[str]
    disabled_hooks: list[str]
    disabled_commands: list[str]
    disabled_mcps: list[str]
    tmux: TmuxOverride
    background_task: BackgroundTaskOverride
    browser_automation_engine: dict[str, Any]
    sisyphus_agent: SisyphusAgentOverride
    git_master: GitMasterOverride
    lsp: dict[str, Any]
    mcpServers: Any
    customPlugins: Any


DISABLED_LIST_KEYS: Final[tuple[str, ...]] = (
    "disabled_agents",
    "disabled_skills",
    "disabled_hooks",
    "disabled_commands",
    "disabled_mcps",
)
AUXILIARY_BLOCK_KEYS: Final[tuple[str, ...]] = (
    "tmux",
    "background_task",
    "browser_automation_engine",
    "sisyphus_agent",
    "git_master",
    "lsp",
)
SUBSCRIBER_OWNED_KEYS: Final[tuple[str, ...]] = ("mcpServers", "customPlugins")

_ROLE_TEXT_FIELDS: Final[dict[str, tuple[str, ...]]] = {
    "agents": ("model", "variant", "prompt_append"),
    "categories": ("model", "variant", "description"),
}


def normalize_overrides(raw: object) -> FullOverrideConfig:
    """Return a well-typed copy of ``raw``; malformed parts are dropped."""

    if not isinstance(raw, Mapping):
        return {}

    normalized: dict[str, Any] = {}
    for section in ("agents", "categories"):
        roles = _normalize_role_section(raw.get(section), _ROLE_TEXT_FIELDS[section])
        if roles is not None:
            normalized[section] = roles

    for key in DISABLED_LIST_KEYS:
        items = _string_list(raw.get(key))
        if items is not None:
            normalized[key] = items

    for key in AUXILIARY_BLOCK_KEYS:
        block = _string_keyed_copy(raw.get(key))
        if block is not None:
            normalized[key] = block

    for key in SUBSCRIBER_OWNED_KEYS:
        if raw.get(key) is not None:
            normalized[key] = copy.deepcopy(raw[key])

    return normalized  # type: ignore[return-value]


def merge_subscription_overrides(
    publisher: Mapping[str, Any] | None,
    subscriber: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Overrides for a template subscriber: the publisher's tree with the
    subscriber's own MCP servers and custom plugins."""

    merged = copy.deepcopy(dict(publisher or {}))
    for key in SUBSCRIBER_OWNED_KEYS:
        merged.pop(key, None)
        if subscriber is not None and subscriber.get(key) is not None:
            merged[key] = copy.deepcopy(subscriber[key])
    return merged


def filter_excluded_models(
    model_ids: Sequence[str],
    excluded: Sequence[str] | None,
) -> tuple[str, ...]:
    """Drop every excluded id; order and multiplicity of the rest are kept."""

    if not excluded:
        return tuple(model_ids)
    blocked = {item for item in excluded if isinstance(item, str)}
    return tuple(item for item in model_ids if item not in blocked)


def _normalize_role_section(
    value: object,
    text_fields: tuple[str, ...],
) -> dict[str, dict[str, Any]] | None:
    if not isinstance(value, Mapping):
        return None
    section: dict[str, dict[str, Any]] = {}
    for role_name, entry in value.items():
        if not isinstance(role_name, str) or not isinstance(entry, Mapping):
            continue
        cleaned: dict[str, Any] = {}
        for field_name in text_fields:
            item = entry.get(field_name)
            if isinstance(item, str):
                cleaned[field_name] = item
        temperature = entry.get("temperature")
        if _is_finite_number(temperature):
            cleaned["temperature"] = temperature
        section[role_name] = cleaned
    return section


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _string_list(value: object) -> list[str] | None:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return None
    return [item for item in value if isinstance(item, str)]


def _string_keyed_copy(value: object) -> dict[str, Any] | None:
    if not isinstance(value, Mapping):
        return None
    return {key: copy.deepcopy(item) for key, item in value.items() if isinstance(key, str)}


__all__ = [
    "AUXILIARY_BLOCK_KEYS",
    "AgentOverride",
    "BackgroundTaskOverride",
    "CategoryOverride",
    "DISABLED_LIST_KEYS",
    "FullOverrideConfig",
    "GitMasterOverride",
    "SUBSCRIBER_OWNED_KEYS",
    "SisyphusAgentOverride",
    "TmuxOverride",
    "filter_excluded_models",
    "merge_subscription_overrides",
    "normalize_overrides",
]
