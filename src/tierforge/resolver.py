"""
Per-role model selection with user overrides.

For each role of the injected ``RoleTable`` the resolver either uses the
user's pinned model (exact, case-sensitive catalog member) or the top pick of
the role's tier. Roles whose tier is empty are omitted. Passthrough fields of
the override are copied onto the assignment however the model was chosen.

Decisions that degrade a user's request are logged with ``structlog``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final, Literal

import structlog

from tierforge.constants import ROUTING_PREFIX
from tierforge.roles import RoleKind, RoleSpec, RoleTable

if TYPE_CHECKING:
    from tierforge.overrides import FullOverrideConfig
    from tierforge.ranking.tiers import DynamicTiers

AssignmentSource = Literal["override", "tier"]

_TEXT_PASSTHROUGH: Final[dict[RoleKind, str]] = {
    "agent": "prompt_append",
    "category": "description",
}
_OVERRIDE_SECTION: Final[dict[RoleKind, str]] = {
    "agent": "agents",
    "category": "categories",
}


@dataclass(frozen=True, slots=True)
class ModelAssignment:
    """Resolved model for one role plus the user's passthrough fields."""

    model: str
    source: AssignmentSource = "tier"
    variant: str | None = None
    temperature: float | None = None
    prompt_append: str | None = None
    description: str | None = None

    def to_dict(self, routing_prefix: str = ROUTING_PREFIX) -> dict[str, Any]:
        payload: dict[str, Any] = {"model": f"{routing_prefix}/{self.model}"}
        if self.variant is not None:
            payload["variant"] = self.variant
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.prompt_append is not None:
            payload["prompt_append"] = self.prompt_append
        if self.description is not None:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True, slots=True)
class ResolvedAssignments:
    agents: Mapping[str, ModelAssignment] = field(default_factory=lambda: MappingProxyType({}))
    categories: Mapping[str, ModelAssignment] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def is_empty(self) -> bool:
        return not self.agents and not self.categories


class OverrideResolver:
    """Assign a concrete model to every role of a role table."""

    def __init__(
        self,
        role_table: RoleTable | None = None,
        *,
        logger: Any | None = None,
    ) -> None:
        self._role_table = role_table if role_table is not None else RoleTable.default()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def role_table(self) -> RoleTable:
        return self._role_table

    def resolve(
        self,
        tiers: DynamicTiers,
        available_models: Sequence[str],
        overrides: FullOverrideConfig | None = None,
    ) -> ResolvedAssignments:
        available = frozenset(available_models)
        agents: dict[str, ModelAssignment] = {}
        categories: dict[str, ModelAssignment] = {}

        for kind, role in self._role_table.iter_roles():
            override = _role_override(overrides, kind, role.name)
            assignment = self.resolve_role(kind, role, tiers, available, override)
            if assignment is None:
                continue
            target = agents if kind == "agent" else categories
            target[role.name] = assignment

        return ResolvedAssignments(
            agents=MappingProxyType(agents),
            categories=MappingProxyType(categories),
        )

    def resolve_role(
        self,
        kind: RoleKind,
        role: RoleSpec,
        tiers: DynamicTiers,
        available: frozenset[str],
        override: Mapping[str, Any] | None,
    ) -> ModelAssignment | None:
        pinned = override.get("model") if override is not None else None
        if isinstance(pinned, str) and pinned and pinned in available:
            model = pinned
            source: AssignmentSource = "override"
        else:
            if isinstance(pinned, str) and pinned:
                self._logger.info(
                    "override_model_unavailable",
                    role_kind=kind,
                    role=role.name,
                    model=pinned,
                    tier=role.tier,
                )
            best = tiers.best(role.tier)
            if best is None:
                self._logger.debug(
                    "role_skipped_empty_tier",
                    role_kind=kind,
                    role=role.name,
                    tier=role.tier,
                )
                return None
            model = best
            source = "tier"

        if override is None:
            return ModelAssignment(model=model, source=source)

        text_field = _TEXT_PASSTHROUGH[kind]
        text_value = override.get(text_field) or None
        return ModelAssignment(
            model=model,
            source=source,
            variant=override.get("variant") or None,
            temperature=override.get("temperature"),
            prompt_append=text_value if text_field == "prompt_append" else None,
            description=text_value if text_field == "description" else None,
        )


def _role_override(
    overrides: FullOverrideConfig | None,
    kind: RoleKind,
    role_name: str,
) -> Mapping[str, Any] | None:
    if not overrides:
        return None
    section = overrides.get(_OVERRIDE_SECTION[kind])  # type: ignore[misc]
    if not isinstance(section, Mapping):
        return None
    entry = section.get(role_name)
    return entry if isinstance(entry, Mapping) else None


__all__ = ["AssignmentSource", "ModelAssignment", "OverrideResolver", "ResolvedAssignments"]
