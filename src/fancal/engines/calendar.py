"""
fancal.engines.calendar
-----------------------
The Orchestrator. Converts linear world time (seconds) to calendar dates and back,
and performs date arithmetic, for one immutable CalendarDefinition.

Absolute day numbers count days from the first day of ``year.epoch`` (day 0). Years are
located by whole leap cycles plus a prefix-sum lookup inside the cycle, so the cost of a
conversion does not grow with the distance from the epoch.

An engine never mutates: ``with_definition`` and ``with_system`` return new engines that
share the compatibility registry. Per-year summaries are memoised; the cache is invisible.
"""

from __future__ import annotations

import logging
import math
from bisect import bisect_right
from dataclasses import dataclass
from functools import lru_cache
from itertools import accumulate
from typing import Any, Dict, List, Optional, Tuple

from fancal.compat.registry import CompatibilityRegistry
from fancal.core.date import CalendarDate, TimeOfDay, YearT
from fancal.core.errors import InvalidDateError
from fancal.core.time import split_seconds, time_to_seconds, to_int_seconds, utc_parts
from fancal.core.types import CalendarDefinition, WeekName
from fancal.engines import moons as _moons
from fancal.engines import rules
from fancal.engines import weeks as _weeks

logger = logging.getLogger(__name__)

WARM_WINDOW = 10


@dataclass(frozen=True)
class YearSummary:
    year: int
    leap: bool
    length: int
    weekday_length: int
    month_lengths: Tuple[int, ...]
    segments: Tuple[rules.Segment, ...]

    def month_segment(self, month: int) -> Optional[rules.Segment]:
        for seg in self.segments:
            if seg.kind == "month" and seg.month == month:
                return seg
        return None

    def block_segment(self, name: str, month: int) -> Optional[rules.Segment]:
        fallback = None
        for seg in self.segments:
            if seg.kind == "intercalary" and seg.name == name:
                if seg.month == month:
                    return seg
                if fallback is None:
                    fallback = seg
        return fallback


class CalendarEngine:
    def __init__(
        self,
        definition: CalendarDefinition,
        compat: Optional[CompatibilityRegistry] = None,
        *,
        system_id: Optional[str] = None,
        warm_window: int = WARM_WINDOW,
    ):
        self.definition = definition
        self.compat = compat if compat is not None else CompatibilityRegistry()
        self.system_id = system_id
        self._warm_window = warm_window

        self._tc = definition.time
        self._spd = definition.seconds_per_day
        self._epoch = definition.year.epoch
        self._summary = lru_cache(maxsize=4096)(self._build_summary)

        # One leap cycle starting at the epoch; every later cycle repeats it.
        self._period = rules.cycle_period(definition)
        cycle = [self._summary(self._epoch + k) for k in range(self._period)]
        self._prefix = [0] + list(accumulate(s.length for s in cycle))
        self._wprefix = [0] + list(accumulate(s.weekday_length for s in cycle))
        self._cycle_days = self._prefix[-1]
        self._cycle_wdays = self._wprefix[-1]

        self._shift = 0
        wt = definition.world_time
        if wt is not None and wt.interpretation == "real-time-based":
            self._shift = (self.days_before_year(wt.current_year) - self.days_before_year(wt.epoch_year)) * self._spd

        cur = definition.year.current_year
        for y in range(cur - warm_window, cur + warm_window + 1):
            self._summary(y)
        logger.debug("engine '%s' ready: cycle=%d years / %d days, shift=%ds",
                     definition.id, self._period, self._cycle_days, self._shift)

    # ---------------------------------------------------------
    # Construction helpers
    # ---------------------------------------------------------

    def with_definition(self, definition: CalendarDefinition) -> "CalendarEngine":
        """New engine for ``definition`` sharing this engine's registry and system id."""
        return CalendarEngine(definition, self.compat, system_id=self.system_id, warm_window=self._warm_window)

    def with_system(self, system_id: Optional[str]) -> "CalendarEngine":
        return CalendarEngine(self.definition, self.compat, system_id=system_id, warm_window=self._warm_window)

    def info(self) -> Dict[str, Any]:
        d = self.definition
        return {
            "id": d.id,
            "name": d.name,
            "epoch": d.year.epoch,
            "current_year": d.year.current_year,
            "months": len(d.months),
            "weekdays": d.weekday_count,
            "leap_rule": d.leap_year.rule,
            "cycle_years": self._period,
            "cycle_days": self._cycle_days,
            "seconds_per_day": self._spd,
            "interpretation": d.world_time.interpretation if d.world_time else "epoch-based",
            "system_id": self.system_id,
        }

    # ---------------------------------------------------------
    # Year data
    # ---------------------------------------------------------

    def _build_summary(self, year: int) -> YearSummary:
        d = self.definition
        segments = rules.year_layout(d, year)
        return YearSummary(
            year=year,
            leap=rules.is_leap_year(d, year),
            length=rules.year_length(d, year),
            weekday_length=rules.year_weekday_length(d, year),
            month_lengths=tuple(rules.month_lengths(d, year)),
            segments=segments,
        )

    def year_summary(self, year: int) -> YearSummary:
        return self._summary(year)

    def is_leap_year(self, year: int) -> bool:
        return self._summary(year).leap

    def get_year_length(self, year: int) -> int:
        return self._summary(year).length

    def get_year_weekday_length(self, year: int) -> int:
        return self._summary(year).weekday_length

    def get_month_lengths(self, year: int) -> List[int]:
        return list(self._summary(year).month_lengths)

    def get_month_length(self, year: int, month: int) -> Optional[int]:
        if not (1 <= month <= len(self.definition.months)):
            return None
        return self._summary(year).month_lengths[month - 1]

    def days_before_year(self, year: int) -> int:
        """Signed day count from the epoch's first day to the first day of ``year``."""
        q, r = divmod(year - self._epoch, self._period)
        return q * self._cycle_days + self._prefix[r]

    def weekday_days_before_year(self, year: int) -> int:
        q, r = divmod(year - self._epoch, self._period)
        return q * self._cycle_wdays + self._wprefix[r]

    def _year_from_days(self, days: int) -> Tuple[int, int]:
        q, rem = divmod(days, self._cycle_days)
        r = bisect_right(self._prefix, rem) - 1
        return self._epoch + q * self._period + r, rem - self._prefix[r]

    # ---------------------------------------------------------
    # Day numbers
    # ---------------------------------------------------------

    @staticmethod
    def int_year(year: YearT) -> int:
        """Integer year for calendar math; NaN, fractional and boolean years raise InvalidDateError."""
        if isinstance(year, bool):
            raise InvalidDateError(f"invalid year {year!r}")
        if isinstance(year, int):
            return year
        if isinstance(year, float) and year.is_integer():
            return int(year)
        raise InvalidDateError(f"cannot place year {year!r} on the calendar")

    def _day_in_year(self, year: int, month: int, day: int, intercalary: Optional[str]) -> int:
        s = self._summary(year)
        if intercalary is not None:
            seg = s.block_segment(intercalary, month)
            if seg is not None:
                if not (1 <= day <= seg.length):
                    raise InvalidDateError(f"day {day} out of range 1..{seg.length} for '{intercalary}'")
                return seg.start + day - 1
            logger.debug("intercalary '%s' not present in %d; treating as a regular day", intercalary, year)
        seg = s.month_segment(month)
        if seg is None:
            raise InvalidDateError(f"month {month} out of range 1..{len(self.definition.months)}")
        return seg.start + day - 1

    def date_to_days(self, date: CalendarDate) -> int:
        """Absolute day number of ``date`` (0 = first day of the epoch year)."""
        year = self.int_year(date.year)
        return self.days_before_year(year) + self._day_in_year(year, date.month, date.day, date.intercalary)

    def days_to_date(self, days: int, time: Optional[TimeOfDay] = None) -> CalendarDate:
        time = time if time is not None else TimeOfDay()
        year, rem = self._year_from_days(days)
        s = self._summary(year)
        for seg in s.segments:
            if rem < seg.start + seg.length:
                day = rem - seg.start + 1
                if seg.kind == "intercalary":
                    return CalendarDate(year, seg.month, day, 0, seg.name, time, self.definition)
                return CalendarDate(year, seg.month, day, self.calculate_weekday(year, seg.month, day),
                                    None, time, self.definition)
        # Unreachable while segment lengths sum to the year length.
        last = s.month_segment(len(self.definition.months))
        day = rem - last.start + 1  # type: ignore[union-attr]
        return CalendarDate(year, last.month, day, self.calculate_weekday(year, last.month, day),  # type: ignore[union-attr]
                            None, time, self.definition)

    def day_of_year(self, date: CalendarDate) -> int:
        year = self.int_year(date.year)
        return self._day_in_year(year, date.month, date.day, date.intercalary) + 1

    def days_between(self, a: CalendarDate, b: CalendarDate) -> int:
        return self.date_to_days(b) - self.date_to_days(a)

    # ---------------------------------------------------------
    # Weekdays
    # ---------------------------------------------------------

    def raw_weekday(self, year: int, month: int, day: int) -> int:
        """Weekday from calendar math alone, before any compatibility adjustment."""
        n = len(self.definition.months)
        if not (1 <= month <= n):
            year, month = rules.normalize_month(self.definition, year, month)
        seg = self._summary(year).month_segment(month)
        count = self.weekday_days_before_year(year) + seg.weekday_start + day - 1  # type: ignore[union-attr]
        return (count + self.definition.year.start_day) % self.definition.weekday_count

    def calculate_weekday(self, year: int, month: int, day: int) -> int:
        raw = self.raw_weekday(year, month, day)
        return self.compat.apply_weekday_adjustment(raw, self.definition, self.system_id)

    # ---------------------------------------------------------
    # World time
    # ---------------------------------------------------------

    def _date_from_seconds(self, seconds: int) -> CalendarDate:
        days, hour, minute, second = split_seconds(seconds + self._shift, self._tc)
        return self.days_to_date(days, TimeOfDay(hour, minute, second))

    def _seconds_from_date(self, date: CalendarDate) -> int:
        t = date.time
        secs = self.date_to_days(date) * self._spd + time_to_seconds(t.hour, t.minute, t.second, self._tc)
        return secs - self._shift

    def _anchor_seconds(self) -> Optional[int]:
        """World-time seconds of the active system's base date, if a usable one is registered."""
        base = self.compat.base_date(self.system_id)
        if base is None:
            return None
        month_days = self.get_month_length(base.year, base.month)
        if month_days is None or not (1 <= base.day <= month_days):
            logger.warning("base date %s for system '%s' does not fit calendar '%s'",
                           base, self.system_id, self.definition.id)
            return None
        anchor = CalendarDate(base.year, base.month, base.day, 0, None,
                              TimeOfDay(base.hour, base.minute, base.second))
        try:
            return self._seconds_from_date(anchor)
        except InvalidDateError:
            logger.warning("base date %s for system '%s' does not fit calendar '%s'",
                           base, self.system_id, self.definition.id)
            return None

    def world_time_to_date(self, world_time: Any, world_creation_timestamp: Optional[float] = None) -> CalendarDate:
        seconds = to_int_seconds(world_time)
        if world_creation_timestamp is None:
            return self._date_from_seconds(seconds)

        if utc_parts(world_creation_timestamp) is None:
            logger.debug("unusable world creation timestamp %r", world_creation_timestamp)
            return self._date_from_seconds(seconds).replace(year=math.nan)

        anchor = self._anchor_seconds()
        if anchor is None:
            return self._date_from_seconds(seconds).replace(year=self.definition.year.current_year)
        return self._date_from_seconds(anchor + seconds)

    def date_to_world_time(self, date: CalendarDate, world_creation_timestamp: Optional[float] = None) -> int:
        if world_creation_timestamp is None:
            return self._seconds_from_date(date)

        if utc_parts(world_creation_timestamp) is None:
            raise InvalidDateError(f"unusable world creation timestamp {world_creation_timestamp!r}")

        anchor = self._anchor_seconds()
        if anchor is not None:
            return self._seconds_from_date(date) - anchor

        # Forward conversion replaced the computed year with year.current_year.
        base_year = self._date_from_seconds(0).year
        year = self.int_year(date.year) - self.definition.year.current_year + base_year
        return self._seconds_from_date(date.replace(year=year))

    # ---------------------------------------------------------
    # Arithmetic
    # ---------------------------------------------------------

    def add_days(self, date: CalendarDate, days: int) -> CalendarDate:
        return self.days_to_date(self.date_to_days(date) + days, date.time)

    def add_weeks(self, date: CalendarDate, weeks: int) -> CalendarDate:
        return self.add_days(date, weeks * self.definition.weekday_count)

    def _regular(self, year: int, month: int, day: int, time: TimeOfDay) -> CalendarDate:
        day = max(1, min(day, self._summary(year).month_lengths[month - 1]))
        return CalendarDate(year, month, day, self.calculate_weekday(year, month, day), None, time, self.definition)

    def add_months(self, date: CalendarDate, months: int) -> CalendarDate:
        year, month = rules.normalize_month(self.definition, self.int_year(date.year), date.month + months)
        return self._regular(year, month, date.day, date.time)

    def add_years(self, date: CalendarDate, years: int) -> CalendarDate:
        year = self.int_year(date.year) + years
        month = date.month
        if not (1 <= month <= len(self.definition.months)):
            year, month = rules.normalize_month(self.definition, year, month)
        if date.intercalary is not None:
            seg = self._summary(year).block_segment(date.intercalary, month)
            if seg is not None:
                return CalendarDate(year, seg.month, min(date.day, seg.length), 0, seg.name,
                                    date.time, self.definition)
        return self._regular(year, month, date.day, date.time)

    def add_hours(self, date: CalendarDate, hours: int) -> CalendarDate:
        carry, hour = divmod(date.time.hour + hours, self._tc.hours_in_day)
        moved = date.replace(time=TimeOfDay(hour, date.time.minute, date.time.second))
        return self.add_days(moved, carry) if carry else moved

    def add_minutes(self, date: CalendarDate, minutes: int) -> CalendarDate:
        carry, minute = divmod(date.time.minute + minutes, self._tc.minutes_in_hour)
        moved = date.replace(time=TimeOfDay(date.time.hour, minute, date.time.second))
        return self.add_hours(moved, carry) if carry else moved

    def add_seconds(self, date: CalendarDate, seconds: int) -> CalendarDate:
        carry, second = divmod(date.time.second + seconds, self._tc.seconds_in_minute)
        moved = date.replace(time=TimeOfDay(date.time.hour, date.time.minute, second))
        return self.add_minutes(moved, carry) if carry else moved

    # ---------------------------------------------------------
    # Weeks & moons
    # ---------------------------------------------------------

    def week_of_month(self, date: CalendarDate) -> Optional[int]:
        return _weeks.week_of_month(self, date)

    def week_info(self, date: CalendarDate) -> Optional[WeekName]:
        return _weeks.week_info(self, date)

    def moon_phases(self, date: CalendarDate, moon_name: Optional[str] = None) -> List[_moons.MoonPhaseInfo]:
        return _moons.moon_phases(self, date, moon_name)

    def moon_phases_at(self, world_time: Any, moon_name: Optional[str] = None) -> List[_moons.MoonPhaseInfo]:
        return self.moon_phases(self.world_time_to_date(world_time), moon_name)
