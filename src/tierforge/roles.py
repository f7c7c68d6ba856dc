"""
tierforge — agent and task-category role tables.

File: src/tierforge/roles.py

Purpose
- Bind every oh-my-opencode agent and task category to exactly one capability tier.

What should be included in this file
- Role name constants and the versioned default tables.
- An immutable ``RoleTable`` value that is injected into the resolver.

Functional requirements
- Role names and tier bindings are an external contract consumed by the
  oh-my-opencode parser; they must be reproduced verbatim, never computed.

Non-functional requirements
- Tables are read-only after construction and safe to share across threads.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Literal, TypeAlias

from tierforge.constants import TIER_LEVELS

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

RoleKind = Literal["agent", "category"]

AGENT_SISYPHUS = "sisyphus"
AGENT_ATLAS = "atlas"
AGENT_PROMETHEUS = "prometheus"
AGENT_METIS = "metis"
AGENT_ORACLE = "oracle"
AGENT_LIBRARIAN = "librarian"
AGENT_EXPLORE = "explore"
AGENT_MULTIMODAL_LOOKER = "multimodal-looker"
AGENT_MOMUS = "momus"

CATEGORY_VISUAL_ENGINEERING = "visual-engineering"
CATEGORY_ULTRABRAIN = "ultrabrain"
CATEGORY_DEEP = "deep"
CATEGORY_ARTISTRY = "artistry"
CATEGORY_QUICK = "quick"
CATEGORY_UNSPECIFIED_LOW = "unspecified-low"
CATEGORY_UNSPECIFIED_HIGH = "unspecified-high"
CATEGORY_WRITING = "writing"


def _validate_non_empty_str(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    if not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    if value != value.strip():
        raise ValueError(f"{field_name} must not have surrounding whitespace")
    return value


def _validate_tier(value: int, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value not in TIER_LEVELS:
        raise ValueError(f"{field_name} must be one of {list(TIER_LEVELS)}, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class RoleSpec:
    """One agent or category bound to a capability tier."""

    name: str
    tier: int
    label: str

    def __post_init__(self) -> None:
        _validate_non_empty_str(self.name, "RoleSpec.name")
        _validate_tier(self.tier, "RoleSpec.tier")
        _validate_non_empty_str(self.label, "RoleSpec.label")

    def to_dict(self) -> dict[str, JSONValue]:
        return {"name": self.name, "tier": self.tier, "label": self.label}


def _build_table(roles: tuple[RoleSpec, ...], kind: RoleKind) -> Mapping[str, RoleSpec]:
    lookup: dict[str, RoleSpec] = {}
    for role in roles:
        if not isinstance(role, RoleSpec):
            raise ValueError(f"{kind} roles entries must be RoleSpec")
        if role.name in lookup:
            raise ValueError(f"duplicate {kind} role name: {role.name}")
        lookup[role.name] = role
    return MappingProxyType(lookup)


AGENT_ROLES: Final[Mapping[str, RoleSpec]] = _build_table(
    (
        RoleSpec(AGENT_SISYPHUS, 1, "Orchestrator"),
        RoleSpec(AGENT_ATLAS, 1, "Master orchestrator"),
        RoleSpec(AGENT_PROMETHEUS, 1, "Planner"),
        RoleSpec(AGENT_METIS, 2, "Plan consultant"),
        RoleSpec(AGENT_ORACLE, 1, "Technical advisor"),
        RoleSpec(AGENT_LIBRARIAN, 2, "Research"),
        RoleSpec(AGENT_EXPLORE, 3, "Fast exploration"),
        RoleSpec(AGENT_MULTIMODAL_LOOKER, 2, "Vision"),
        RoleSpec(AGENT_MOMUS, 2, "Reviewer"),
    ),
    "agent",
)

CATEGORY_ROLES: Final[Mapping[str, RoleSpec]] = _build_table(
    (
        RoleSpec(CATEGORY_VISUAL_ENGINEERING, 4, "UI work"),
        RoleSpec(CATEGORY_ULTRABRAIN, 1, "Hard logic"),
        RoleSpec(CATEGORY_DEEP, 1, "Deep problem solving"),
        RoleSpec(CATEGORY_ARTISTRY, 4, "Creative work"),
        RoleSpec(CATEGORY_QUICK, 3, "Trivial tasks"),
        RoleSpec(CATEGORY_UNSPECIFIED_LOW, 2, "Low effort general"),
        RoleSpec(CATEGORY_UNSPECIFIED_HIGH, 1, "High effort general"),
        RoleSpec(CATEGORY_WRITING, 3, "Documentation"),
    ),
    "category",
)


@dataclass(frozen=True, slots=True)
class RoleTable:
    """Immutable agent and category tables, iterated in declaration order."""

    agents: Mapping[str, RoleSpec]
    categories: Mapping[str, RoleSpec] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        for name, role in (*self.agents.items(), *self.categories.items()):
            if isinstance(role, RoleSpec) and name != role.name:
                raise ValueError(f"role table key {name!r} does not match role name {role.name!r}")
        object.__setattr__(self, "agents", _build_table(tuple(self.agents.values()), "agent"))
        object.__setattr__(
            self,
            "categories",
            _build_table(tuple(self.categories.values()), "category"),
        )

    @classmethod
    def default(cls) -> RoleTable:
        return cls(agents=AGENT_ROLES, categories=CATEGORY_ROLES)

    def agent_names(self) -> tuple[str, ...]:
        return tuple(self.agents)

    def category_names(self) -> tuple[str, ...]:
        return tuple(self.categories)

    def iter_roles(self) -> Iterator[tuple[RoleKind, RoleSpec]]:
        for role in self.agents.values():
            yield "agent", role
        for role in self.categories.values():
            yield "category", role

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "agents": {name: {"tier": r.tier, "label": r.label} for name, r in self.agents.items()},
            "categories": {
                name: {"tier": r.tier, "label": r.label} for name, r in self.categories.items()
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


def default_role_table() -> RoleTable:
    """Return the versioned oh-my-opencode role table."""

    return RoleTable.default()


__all__ = [
    "AGENT_ATLAS",
    "AGENT_EXPLORE",
    "AGENT_LIBRARIAN",
    "AGENT_METIS",
    "AGENT_MOMUS",
    "AGENT_MULTIMODAL_LOOKER",
    "AGENT_ORACLE",
    "AGENT_PROMETHEUS",
    "AGENT_ROLES",
    "AGENT_SISYPHUS",
    "CATEGORY_ARTISTRY",
    "CATEGORY_DEEP",
    "CATEGORY_QUICK",
    "CATEGORY_ROLES",
    "CATEGORY_ULTRABRAIN",
    "CATEGORY_UNSPECIFIED_HIGH",
    "CATEGORY_UNSPECIFIED_LOW",
    "CATEGORY_VISUAL_ENGINEERING",
    "CATEGORY_WRITING",
    "RoleKind",
    "RoleSpec",
    "RoleTable",
    "default_role_table",
]
