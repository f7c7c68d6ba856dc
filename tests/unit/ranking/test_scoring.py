"""
tierforge — unit tests for heuristic model scoring

File: tests/unit/ranking/test_scoring.py

Purpose
- Validate the additive capability score assigned to model identifiers.

What this test file should cover
- Family, codex, thinking, version and hybrid bonuses.
- Relative ordering of Claude generations.
- Totality and determinism for arbitrary input.

Functional requirements
- No I/O.

Non-functional requirements
- Deterministic.
"""

from __future__ import annotations

from fractions import Fraction

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tierforge.ranking.scoring import SCORE_RULES, score_breakdown, score_model


@pytest.mark.parametrize(
    ("model_id", "expected"),
    [
        ("claude-opus-4-6", 1092),
        ("claude-opus-4-5", 1090),
        ("claude-sonnet-4-5", 690),
        ("claude-haiku-4-5", 290),
        ("gpt-5", 400),
        ("gpt-5.1", 408),
        ("gpt-5.2-codex", 716),
        ("gpt-5.1-codex-max", 808),
        ("gpt-5-codex-mini", 450),
        ("gemini-3-pro-preview", 680),
        ("gemini-3-pro-image-preview", 690),
        ("gemini-2.5-flash", 400),
        ("gemini-3-flash", 430),
        ("gemini-claude-opus-4-5-thinking", 1290),
        ("some-unknown-model", 0),
        ("", 0),
    ],
)
def test_score_model_known_identifiers(model_id: str, expected: int) -> None:
    assert score_model(model_id) == expected


def test_newer_claude_generations_outrank_older_and_smaller_ones() -> None:
    assert (
        score_model("claude-opus-4-6")
        > score_model("claude-opus-4-5")
        > score_model("claude-sonnet-4-5")
    )


def test_codex_markers_are_mutually_exclusive() -> None:
    breakdown = dict(score_breakdown("gpt-5.1-codex-max"))

    assert breakdown["codex"] == Fraction(400)
    assert breakdown["gpt_version"] == Fraction(408)


def test_family_markers_take_first_match_only() -> None:
    # "opus" wins over "pro" even though both occur.
    assert dict(score_breakdown("opus-pro"))["family"] == Fraction(1000)


def test_breakdown_lists_only_nonzero_rules_in_rule_order() -> None:
    breakdown = score_breakdown("gemini-claude-opus-4-5-thinking")
    rule_order = [rule.name for rule in SCORE_RULES]

    names = [name for name, _ in breakdown]
    assert names == ["family", "thinking", "claude_version", "gemini_claude_hybrid"]
    assert names == sorted(names, key=rule_order.index)
    assert all(amount > 0 for _, amount in breakdown)


def test_fractional_versions_are_scored_exactly() -> None:
    assert dict(score_breakdown("gemini-2.5-pro"))["gemini_version"] == Fraction(150)
    assert dict(score_breakdown("gpt-5.1"))["gpt_version"] == Fraction(408)


def test_dated_claude_ids_parse_the_date_as_minor_version() -> None:
    assert score_model("claude-opus-4-5-20251101") == 1090
    assert dict(score_breakdown("claude-sonnet-4-20250514"))["claude_version"] == Fraction(
        4 * 20 + 20250514 * 2
    )


def test_oversized_version_digit_runs_score_as_zero_contribution() -> None:
    assert score_model("gpt-" + "9" * 5000) == 0
    assert score_model("claude-opus-" + "4" * 5000) == 1000
    assert score_model("claude-sonnet-4-" + "5" * 5000) == 600
    assert dict(score_breakdown("gemini-" + "3" * 5000 + "-flash")) == {"family": Fraction(250)}


def test_version_patterns_only_match_ascii_digits() -> None:
    assert score_model("gpt-٥") == 0
    assert score_model("gemini-٣-flash") == 250
    assert score_model("claude-opus-٤-6") == 1000


def test_non_string_identifiers_score_zero() -> None:
    assert score_model(None) == 0
    assert score_model(42) == 0
    assert score_breakdown(["claude-opus-4-6"]) == ()


def test_custom_rule_set_can_be_injected() -> None:
    assert score_model("claude-opus-4-6", rules=SCORE_RULES[:1]) == 1000
    assert score_model("claude-opus-4-6", rules=()) == 0


@given(model_id=st.text(max_size=64))
@settings(max_examples=200, deadline=None)
def test_score_is_total_deterministic_and_non_negative(model_id: str) -> None:
    first = score_model(model_id)

    assert isinstance(first, int)
    assert first >= 0
    assert score_model(model_id) == first
