"""
tierforge — interchangeable model ranking strategies.

File: src/tierforge/ranking/rankers.py

Purpose
- Order a model catalog best-first behind a single ``rank(ids) -> ids`` seam.

Strategies
- ``HeuristicRanker``: stable sort by descending ``score_model`` value.
- ``PrefixPriorityRanker``: hand-maintained ordered prefix list, first match wins.

Both strategies are stable: items that compare equal keep their input order,
and duplicates in the input are preserved.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Final, Protocol

from tierforge.constants import RANKING_STRATEGIES
from tierforge.ranking.scoring import score_model

DEFAULT_PREFIX_PRIORITIES: Final[tuple[str, ...]] = (
    "claude-opus",
    "gemini-claude-opus",
    "gpt-5.2-codex",
    "gpt-5.2",
    "gpt-5.1-codex-max",
    "gpt-5.1-codex",
    "gpt-5.1",
    "gemini-3-pro",
    "claude-sonnet",
    "gemini-claude-sonnet",
    "gpt-5-codex",
    "gpt-5",
    "gemini-2.5-pro",
    "gemini-3-flash",
    "gemini-2.5-flash",
    "claude-haiku",
)


class Ranker(Protocol):
    """Orders model identifiers best-first."""

    def rank(self, model_ids: Sequence[str]) -> tuple[str, ...]: ...


@dataclass(frozen=True, slots=True)
class HeuristicRanker:
    """Rank by descending heuristic score; ties keep input order."""

    scorer: Callable[[str], int] = score_model

    def rank(self, model_ids: Sequence[str]) -> tuple[str, ...]:
        scores: dict[str, int] = {}
        for model_id in model_ids:
            if model_id not in scores:
                scores[model_id] = self.scorer(model_id)
        return tuple(sorted(model_ids, key=scores.__getitem__, reverse=True))


@dataclass(frozen=True, slots=True)
class PrefixPriorityRanker:
    """Rank by the first matching entry of an ordered prefix priority list.

    Models that match no prefix follow all matched models in input order.
    """

    priorities: tuple[str, ...] = field(default=DEFAULT_PREFIX_PRIORITIES)

    def __post_init__(self) -> None:
        normalized: list[str] = []
        for index, prefix in enumerate(self.priorities):
            if not isinstance(prefix, str) or not prefix.strip():
                raise ValueError(f"PrefixPriorityRanker.priorities[{index}] must be non-empty")
            normalized.append(prefix.strip())
        object.__setattr__(self, "priorities", tuple(normalized))

    def priority_of(self, model_id: str) -> int:
        for index, prefix in enumerate(self.priorities):
            if model_id.startswith(prefix):
                return index
        return len(self.priorities)

    def rank(self, model_ids: Sequence[str]) -> tuple[str, ...]:
        return tuple(sorted(model_ids, key=self.priority_of))


def ranker_for_strategy(
    strategy: str,
    *,
    priorities: Sequence[str] | None = None,
) -> Ranker:
    """Build the ranker named by runtime settings (``heuristic`` or ``prefix``)."""

    selected = strategy.strip().lower()
    if selected == "heuristic":
        return HeuristicRanker()
    if selected == "prefix":
        if priorities:
            return PrefixPriorityRanker(priorities=tuple(priorities))
        return PrefixPriorityRanker()
    expected = ", ".join(RANKING_STRATEGIES)
    raise ValueError(f"unknown ranking strategy {strategy!r}; expected one of: {expected}")


__all__ = [
    "DEFAULT_PREFIX_PRIORITIES",
    "HeuristicRanker",
    "PrefixPriorityRanker",
    "Ranker",
    "ranker_for_strategy",
]
