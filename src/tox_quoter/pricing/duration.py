"""Convert free-text study durations into content-analysis cycle counts.

Catalog durations are free text written by study directors, e.g. ``"13주"``,
``"4-9주"``, ``"3개월"``, ``"단회"`` or ``"GD6~PND21"``. Content analysis is
billed once per four weeks of dosing, so the parser extracts the dosing length
and converts it to a cycle count. Text that does not describe a week or month
length (single doses, day counts, gestational windows, ``"-"``) bills a single
cycle.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Sequence

__all__ = [
    "DURATION_RULES",
    "MONTH_RE",
    "WEEK_RE",
    "WEEKS_PER_CYCLE",
    "count_cycles",
]

WEEKS_PER_CYCLE = 4

_NUM = r"(\d+)"
# Optional range prefix ("4-9주", "4~9주"); the larger bound is billed.
WEEK_RE = re.compile(rf"(?:{_NUM}\s*[-~]\s*)?{_NUM}\s*주\s*$")
MONTH_RE = re.compile(rf"{_NUM}\s*개월\s*$")

Extractor = Callable[[re.Match[str]], int]


def _weeks_to_cycles(match: re.Match[str]) -> int:
    weeks = max(int(group) for group in match.groups() if group is not None)
    return math.ceil(weeks / WEEKS_PER_CYCLE)


def _months_to_cycles(match: re.Match[str]) -> int:
    return int(match.group(1))


DURATION_RULES: Sequence[tuple[re.Pattern[str], Extractor]] = (
    (WEEK_RE, _weeks_to_cycles),
    (MONTH_RE, _months_to_cycles),
)


def count_cycles(duration: str | None) -> int:
    """Return the number of content-analysis cycles billed for ``duration``.

    Rules are tried in order; the first matching rule wins and anything that
    matches no rule counts as one cycle. The result is never below one.
    """

    text = str(duration or "").strip()
    if not text:
        return 1
    for pattern, extract in DURATION_RULES:
        match = pattern.search(text)
        if match:
            try:
                cycles = extract(match)
            except ValueError:
                # digit runs beyond the int conversion limit
                return 1
            return max(1, cycles)
    return 1
