"""
tierforge — heuristic capability scoring for model identifiers.

File: src/tierforge/ranking/scoring.py

Purpose
- Map an arbitrary model identifier to a non-negative integer capability score.

Rules are an explicit ordered tuple evaluated in sequence and applied
cumulatively. Groups with mutually exclusive markers list the more specific
marker first (``codex-max`` and ``codex-mini`` before ``codex``), so reordering
the tuple or its choices changes scores for identifiers matching several
patterns.

Non-functional requirements
- Total: any input yields a score, never an exception.
- Deterministic: the same identifier always yields the same score.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from fractions import Fraction
from typing import Final, Protocol

_ZERO: Final[Fraction] = Fraction(0)


def _parse_version(text: str) -> Fraction | None:
    """Parse a captured version; digit runs past the int conversion limit yield ``None``."""

    try:
        return Fraction(text)
    except ValueError:
        return None


class ScoreRule(Protocol):
    """One additive rule group of the scoring heuristic."""

    @property
    def name(self) -> str: ...

    def contribution(self, model_id: str) -> Fraction: ...


@dataclass(frozen=True, slots=True)
class FirstMatchBonus:
    """Mutually exclusive substring group; only the first matching marker counts."""

    name: str
    choices: tuple[tuple[str, int], ...]

    def contribution(self, model_id: str) -> Fraction:
        for marker, bonus in self.choices:
            if marker in model_id:
                return Fraction(bonus)
        return _ZERO


@dataclass(frozen=True, slots=True)
class SubstringBonus:
    """Flat bonus when ``marker`` occurs anywhere in the identifier."""

    name: str
    marker: str
    bonus: int

    def contribution(self, model_id: str) -> Fraction:
        return Fraction(self.bonus) if self.marker in model_id else _ZERO


@dataclass(frozen=True, slots=True)
class PrefixBonus:
    """Flat bonus when the identifier starts with ``prefix``."""

    name: str
    prefix: str
    bonus: int

    def contribution(self, model_id: str) -> Fraction:
        return Fraction(self.bonus) if model_id.startswith(self.prefix) else _ZERO


@dataclass(frozen=True, slots=True)
class VersionMultiplierBonus:
    """``version * multiplier`` for the first numeric version captured by ``pattern``."""

    name: str
    pattern: re.Pattern[str]
    multiplier: int

    def contribution(self, model_id: str) -> Fraction:
        match = self.pattern.search(model_id)
        if match is None:
            return _ZERO
        version = _parse_version(match.group(1))
        if version is None:
            return _ZERO
        return version * self.multiplier


@dataclass(frozen=True, slots=True)
class ClaudeVersionBonus:
    """``major * major_weight + minor * minor_weight`` for Claude family ids."""

    name: str
    pattern: re.Pattern[str]
    major_weight: int = 20
    minor_weight: int = 2

    def contribution(self, model_id: str) -> Fraction:
        match = self.pattern.search(model_id)
        if match is None:
            return _ZERO
        major = _parse_version(match.group(1))
        minor = _parse_version(match.group(2)) if match.group(2) else _ZERO
        if major is None or minor is None:
            return _ZERO
        return major * self.major_weight + minor * self.minor_weight


SCORE_RULES: Final[tuple[ScoreRule, ...]] = (
    FirstMatchBonus(
        name="family",
        choices=(
            ("opus", 1000),
            ("sonnet", 600),
            ("haiku", 200),
            ("pro", 500),
            ("flash", 250),
        ),
    ),
    FirstMatchBonus(
        name="codex",
        choices=(
            ("codex-max", 400),
            ("codex-mini", 50),
            ("codex", 300),
        ),
    ),
    SubstringBonus(name="thinking", marker="thinking", bonus=150),
    # gpt-5 = 400, gpt-5.1 = 408, gpt-5.2 = 416
    VersionMultiplierBonus(
        name="gpt_version",
        pattern=re.compile(r"gpt-([0-9]+(?:\.[0-9]+)?)"),
        multiplier=80,
    ),
    # gemini-2.5 = 150, gemini-3 = 180
    VersionMultiplierBonus(
        name="gemini_version",
        pattern=re.compile(r"gemini-([0-9]+(?:\.[0-9]+)?)"),
        multiplier=60,
    ),
    ClaudeVersionBonus(
        name="claude_version",
        pattern=re.compile(r"claude-(?:opus|sonnet|haiku)-([0-9]+)-?([0-9]+)?"),
    ),
    SubstringBonus(name="image", marker="image", bonus=10),
    PrefixBonus(name="gemini_claude_hybrid", prefix="gemini-claude", bonus=50),
)


def score_breakdown(
    model_id: object,
    *,
    rules: Sequence[ScoreRule] = SCORE_RULES,
) -> tuple[tuple[str, Fraction], ...]:
    """Return the non-zero per-rule contributions for ``model_id`` in rule order."""

    if not isinstance(model_id, str):
        return ()
    parts: list[tuple[str, Fraction]] = []
    for rule in rules:
        amount = rule.contribution(model_id)
        if amount:
            parts.append((rule.name, amount))
    return tuple(parts)


def score_model(model_id: object, *, rules: Sequence[ScoreRule] = SCORE_RULES) -> int:
    """Return the capability score for ``model_id``; higher means more capable."""

    total = sum((amount for _, amount in score_breakdown(model_id, rules=rules)), _ZERO)
    return int(total)


__all__ = [
    "ClaudeVersionBonus",
    "FirstMatchBonus",
    "PrefixBonus",
    "SCORE_RULES",
    "ScoreRule",
    "SubstringBonus",
    "VersionMultiplierBonus",
    "score_breakdown",
    "score_model",
]
