"""Ranking plane: heuristic scoring, swappable rankers, and dynamic tier partitioning."""

from tierforge.ranking.rankers import (
    DEFAULT_PREFIX_PRIORITIES,
    HeuristicRanker,
    PrefixPriorityRanker,
    Ranker,
    ranker_for_strategy,
)
from tierforge.ranking.scoring import SCORE_RULES, ScoreRule, score_breakdown, score_model
from tierforge.ranking.tiers import DynamicTiers, TierLevel, build_tiers, pick_best_model

__all__ = [
    "DEFAULT_PREFIX_PRIORITIES",
    "DynamicTiers",
    "HeuristicRanker",
    "PrefixPriorityRanker",
    "Ranker",
    "SCORE_RULES",
    "ScoreRule",
    "TierLevel",
    "build_tiers",
    "pick_best_model",
    "ranker_for_strategy",
    "score_breakdown",
    "score_model",
]
