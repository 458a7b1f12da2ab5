"""
fancal.engines.rules
--------------------
Pure calendar arithmetic over a CalendarDefinition.

Every function here depends only on (definition, year) and never logs except when a
leap adjustment would produce a month with no days. The engine builds its per-year
summaries from these functions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

from fancal.core.types import CalendarDefinition, IntercalaryDef

logger = logging.getLogger(__name__)


# ============================================================
# Leap years
# ============================================================

def is_leap_year(defn: CalendarDefinition, year: int) -> bool:
    rule = defn.leap_year
    if rule.rule == "gregorian":
        return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0
    if rule.rule == "custom":
        return (year - rule.offset) % rule.interval == 0  # type: ignore[operator]
    return False


def cycle_period(defn: CalendarDefinition) -> int:
    """Number of years after which the leap pattern (and therefore every year length) repeats."""
    rule = defn.leap_year
    if rule.rule == "gregorian":
        return 400
    if rule.rule == "custom":
        return int(rule.interval)  # type: ignore[arg-type]
    return 1


# ============================================================
# Months
# ============================================================

def month_lengths(defn: CalendarDefinition, year: int) -> List[int]:
    lengths = [m.days for m in defn.months]
    rule = defn.leap_year
    if rule.month is not None and rule.rule != "none" and is_leap_year(defn, year):
        idx = defn.month_number(rule.month)
        if idx is not None:
            adjusted = lengths[idx - 1] + rule.extra_days
            if adjusted < 1:
                logger.warning(
                    "leap adjustment of %d days would leave month '%s' with %d days; clamping to 1",
                    rule.extra_days, rule.month, adjusted,
                )
                adjusted = 1
            lengths[idx - 1] = adjusted
    return lengths


def month_length(defn: CalendarDefinition, year: int, month: int) -> Optional[int]:
    """Length of a 1-based month, or None when the month index is out of range."""
    if not (1 <= month <= len(defn.months)):
        return None
    return month_lengths(defn, year)[month - 1]


def normalize_month(defn: CalendarDefinition, year: int, month: int) -> Tuple[int, int]:
    """Fold an arbitrary (possibly <1 or >n) 1-based month into a valid (year, month)."""
    n = len(defn.months)
    dy, m0 = divmod(month - 1, n)
    return year + dy, m0 + 1


# ============================================================
# Intercalary blocks
# ============================================================

def intercalary_for_year(defn: CalendarDefinition, year: int) -> List[IntercalaryDef]:
    leap = is_leap_year(defn, year)
    return [ic for ic in defn.intercalary if leap or not ic.leap_year_only]


def intercalary_days_for_year(defn: CalendarDefinition, year: int) -> int:
    return sum(ic.days for ic in intercalary_for_year(defn, year))


def year_length(defn: CalendarDefinition, year: int) -> int:
    return sum(month_lengths(defn, year)) + intercalary_days_for_year(defn, year)


def year_weekday_length(defn: CalendarDefinition, year: int) -> int:
    """Days in ``year`` that advance the weekday counter."""
    extra = sum(ic.days for ic in intercalary_for_year(defn, year) if ic.counts_for_weekdays)
    return sum(month_lengths(defn, year)) + extra


# ============================================================
# Year layout
# ============================================================

@dataclass(frozen=True)
class Segment:
    """A contiguous run of days inside one year: a month or an intercalary block."""
    kind: Literal["month", "intercalary"]
    month: int              # 1-based month this run belongs to (or is attached to)
    name: str
    length: int
    counts_for_weekdays: bool
    start: int              # day offset from the start of the year
    weekday_start: int      # weekday-advancing days before this run
    placement: Literal["month", "before", "after"] = "month"


def year_layout(defn: CalendarDefinition, year: int) -> Tuple[Segment, ...]:
    """
    Ordered runs of one year. For month i: its ``before`` blocks, the month itself,
    then its ``after`` blocks, each group in declaration order.
    """
    lengths = month_lengths(defn, year)
    blocks = intercalary_for_year(defn, year)

    out: List[Segment] = []
    start = 0
    wstart = 0
    for i, m in enumerate(defn.months):
        month_no = i + 1
        attached = [ic for ic in blocks if defn.month_number(ic.anchor) == month_no]
        runs = [(ic, "before") for ic in attached if ic.placement == "before"]
        runs.append((None, "month"))
        runs.extend((ic, "after") for ic in attached if ic.placement == "after")
        for ic, placement in runs:
            if ic is None:
                seg = Segment("month", month_no, m.name, lengths[i], True, start, wstart)
            else:
                seg = Segment("intercalary", month_no, ic.name, ic.days, ic.counts_for_weekdays,
                              start, wstart, placement)
            out.append(seg)
            start += seg.length
            if seg.counts_for_weekdays:
                wstart += seg.length
    return tuple(out)
