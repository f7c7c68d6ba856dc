"""
tierforge — dynamic capability tiers built from a ranked model catalog.

File: src/tierforge/ranking/tiers.py

Purpose
- Partition the upstream catalog into four ordered tiers, one policy per tier.

Tiers
- tier1: top third by rank (orchestrators, planners, hard logic).
- tier2: top two thirds by rank (consultants, reviewers, research).
- tier3: cheap/fast models first, then the rest from weakest to strongest.
- tier4: visual/creative models first, then the rest by rank.

Invariants
- tier1 is a prefix of tier2.
- tier3 and tier4 are permutations of the input; duplicates are kept.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from tierforge.constants import CHEAP_MODEL_MARKERS, VISUAL_MODEL_MARKERS
from tierforge.ranking.rankers import HeuristicRanker, Ranker

TierLevel = Literal[1, 2, 3, 4]


@dataclass(frozen=True, slots=True)
class DynamicTiers:
    """Four ordered tiers, best candidate first in each."""

    tier1: tuple[str, ...] = ()
    tier2: tuple[str, ...] = ()
    tier3: tuple[str, ...] = ()
    tier4: tuple[str, ...] = ()

    def for_level(self, level: int) -> tuple[str, ...]:
        if level == 1:
            return self.tier1
        if level == 2:
            return self.tier2
        if level == 3:
            return self.tier3
        if level == 4:
            return self.tier4
        raise ValueError(f"tier level must be 1-4, got {level!r}")

    def best(self, level: int) -> str | None:
        candidates = self.for_level(level)
        return candidates[0] if candidates else None

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "tier1": list(self.tier1),
            "tier2": list(self.tier2),
            "tier3": list(self.tier3),
            "tier4": list(self.tier4),
        }


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _matches_any(model_id: str, markers: Sequence[str]) -> bool:
    return any(marker in model_id for marker in markers)


def build_tiers(model_ids: Sequence[str], *, ranker: Ranker | None = None) -> DynamicTiers:
    """Build the four dynamic tiers for ``model_ids``."""

    if not model_ids:
        return DynamicTiers()

    ranked = (ranker if ranker is not None else HeuristicRanker()).rank(model_ids)
    count = len(ranked)

    tier1 = ranked[: max(1, _ceil_div(count, 3))]
    tier2 = ranked[: max(1, _ceil_div(count * 2, 3))]

    cheap = tuple(item for item in ranked if _matches_any(item, CHEAP_MODEL_MARKERS))
    non_cheap = tuple(item for item in ranked if not _matches_any(item, CHEAP_MODEL_MARKERS))
    tier3 = cheap + non_cheap[::-1]

    visual = tuple(item for item in ranked if _matches_any(item, VISUAL_MODEL_MARKERS))
    non_visual = tuple(item for item in ranked if not _matches_any(item, VISUAL_MODEL_MARKERS))
    tier4 = visual + non_visual

    return DynamicTiers(tier1=tier1, tier2=tier2, tier3=tier3, tier4=tier4)


def pick_best_model(
    model_ids: Sequence[str],
    tier_level: int,
    *,
    ranker: Ranker | None = None,
) -> str | None:
    """Return the top candidate of ``tier_level``, or ``None`` when that tier is empty."""

    return build_tiers(model_ids, ranker=ranker).best(tier_level)


__all__ = ["DynamicTiers", "TierLevel", "build_tiers", "pick_best_model"]
