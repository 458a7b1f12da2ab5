from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fancal.core.date import CalendarDate
from fancal.core.types import WeekName

if TYPE_CHECKING:
    from fancal.engines.calendar import CalendarEngine


def ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 23 -> '23rd'."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def week_of_month(engine: "CalendarEngine", date: CalendarDate) -> Optional[int]:
    """
    1-based week within the month, or None when the calendar has no month-based weeks,
    the date is intercalary, or the day is a remainder day under ``remainderHandling='none'``.
    """
    cfg = engine.definition.weeks
    if cfg is None or cfg.type == "year-based" or date.intercalary is not None:
        return None
    month_days = engine.get_month_length(engine.int_year(date.year), date.month)
    if month_days is None:
        return None

    per_week = cfg.days_per_week or engine.definition.weekday_count
    raw = (date.day - 1) // per_week + 1
    if month_days % per_week == 0:
        return raw

    expected = cfg.per_month if cfg.per_month is not None else month_days // per_week
    if cfg.remainder_handling == "extend-last" and raw == expected + 1:
        return expected
    if cfg.remainder_handling == "none" and raw > expected:
        return None
    return raw


def week_info(engine: "CalendarEngine", date: CalendarDate) -> Optional[WeekName]:
    n = week_of_month(engine, date)
    cfg = engine.definition.weeks
    if n is None or cfg is None:
        return None
    if n - 1 < len(cfg.names):
        return cfg.names[n - 1]
    if cfg.naming_pattern == "ordinal":
        return WeekName(f"{ordinal(n)} Week", str(n))
    if cfg.naming_pattern == "numeric":
        return WeekName(f"Week {n}", str(n))
    return None
