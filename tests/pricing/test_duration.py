from __future__ import annotations

import pytest

from tox_quoter.pricing.duration import DURATION_RULES, count_cycles


@pytest.mark.parametrize(
    ("duration", "expected"),
    [
        ("단회", 1),
        ("1회", 1),
        ("3회", 1),
        ("수회", 1),
        ("1주", 1),
        ("2주", 1),
        ("4주", 1),
        ("5주", 2),
        ("13주", 4),
        ("26주", 7),
        ("39주", 10),
        ("52주", 13),
        ("3일", 1),
        ("GD6-17", 1),
        ("GD6-19", 1),
        ("GD6~PND21", 1),
        ("-", 1),
        ("4-9주", 3),
        ("4~9주", 3),
        ("1개월", 1),
        ("3개월", 3),
        ("6개월", 6),
    ],
)
def test_count_cycles(duration: str, expected: int) -> None:
    assert count_cycles(duration) == expected


@pytest.mark.parametrize("duration", ["", "   ", None, "미정", "0주", "0개월", "주"])
def test_count_cycles_never_below_one(duration) -> None:
    assert count_cycles(duration) == 1


def test_count_cycles_tolerates_surrounding_whitespace() -> None:
    assert count_cycles("  13 주 ") == 4


def test_week_rule_is_tried_before_month_rule() -> None:
    patterns = [pattern.pattern for pattern, _ in DURATION_RULES]
    assert "주" in patterns[0]
    assert "개월" in patterns[1]


def test_trailing_week_count_wins_over_leading_text() -> None:
    assert count_cycles("반복투여 26주") == 7


@pytest.mark.parametrize("unit", ["주", "개월"])
def test_oversized_counts_fall_back_to_one_cycle(unit: str) -> None:
    assert count_cycles("9" * 5000 + unit) == 1
