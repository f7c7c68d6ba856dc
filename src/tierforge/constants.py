"""Stable constants shared by the tiering engine and its outer layers."""

from __future__ import annotations

from typing import Final

# External contract of the emitted oh-my-opencode document.
OH_MY_OPENCODE_SCHEMA_URL: Final[str] = (
    "https://raw.githubusercontent.com/code-yeongyu/oh-my-opencode/master/assets/"
    "oh-my-opencode.schema.json"
)
ROUTING_PREFIX: Final[str] = "cliproxyapi"

# Schema version of ``tierforge.toml``.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Tier levels, best first.
TIER_LEVELS: Final[tuple[int, ...]] = (1, 2, 3, 4)

# Substring markers used by the tier partitioning policies.
CHEAP_MODEL_MARKERS: Final[tuple[str, ...]] = ("haiku", "flash", "mini", "lite", "nano")
VISUAL_MODEL_MARKERS: Final[tuple[str, ...]] = ("pro", "image")

RANKING_STRATEGIES: Final[tuple[str, ...]] = ("heuristic", "prefix")

__all__ = [
    "CHEAP_MODEL_MARKERS",
    "CONFIG_SCHEMA_VERSION",
    "OH_MY_OPENCODE_SCHEMA_URL",
    "RANKING_STRATEGIES",
    "ROUTING_PREFIX",
    "TIER_LEVELS",
    "VISUAL_MODEL_MARKERS",
]
