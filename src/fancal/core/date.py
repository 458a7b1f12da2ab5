"""
fancal.core.date
----------------
Immutable calendar date value object.

A CalendarDate is produced by an engine and keeps a reference to the definition it was
computed under so that it can format itself. The reference is excluded from equality,
hashing and repr: two dates are equal when their calendar fields are equal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from functools import total_ordering
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .types import CalendarDefinition

YearT = Union[int, float]  # float only for NaN (unusable creation timestamp)


@dataclass(frozen=True)
class TimeOfDay:
    hour: int = 0
    minute: int = 0
    second: int = 0

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"

    def to_dict(self) -> Dict[str, int]:
        return {"hour": self.hour, "minute": self.minute, "second": self.second}

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "TimeOfDay":
        if not raw:
            return cls()
        return cls(int(raw.get("hour", 0)), int(raw.get("minute", 0)), int(raw.get("second", 0)))


@total_ordering
@dataclass(frozen=True)
class CalendarDate:
    year: YearT
    month: int
    day: int
    weekday: int = 0
    intercalary: Optional[str] = None
    time: TimeOfDay = TimeOfDay()
    definition: Optional[CalendarDefinition] = field(default=None, compare=False, repr=False)

    # ---------------------------------------------------------
    # Predicates
    # ---------------------------------------------------------

    @property
    def is_intercalary(self) -> bool:
        return self.intercalary is not None

    @property
    def has_valid_year(self) -> bool:
        return not (isinstance(self.year, float) and math.isnan(self.year))

    # ---------------------------------------------------------
    # Ordering
    # ---------------------------------------------------------

    def sort_key(self) -> Tuple[Any, ...]:
        rank = 0
        if self.intercalary is not None:
            ic = self.definition.intercalary_def(self.intercalary, self.month) if self.definition else None
            rank = -1 if (ic is not None and ic.placement == "before") else 1
        t = self.time
        return (self.year, self.month, rank, self.day, t.hour, t.minute, t.second)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CalendarDate):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def compare_to(self, other: "CalendarDate") -> int:
        a, b = self.sort_key(), other.sort_key()
        return (a > b) - (a < b)

    def is_before(self, other: "CalendarDate") -> bool:
        return self.compare_to(other) < 0

    def is_after(self, other: "CalendarDate") -> bool:
        return self.compare_to(other) > 0

    def replace(self, **changes: Any) -> "CalendarDate":
        return replace(self, **changes)

    # ---------------------------------------------------------
    # Plain-data form
    # ---------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "weekday": self.weekday,
            "time": self.time.to_dict(),
        }
        if self.intercalary is not None:
            out["intercalary"] = self.intercalary
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], definition: Optional[CalendarDefinition] = None) -> "CalendarDate":
        return cls(
            year=raw["year"],
            month=int(raw["month"]),
            day=int(raw["day"]),
            weekday=int(raw.get("weekday", 0)),
            intercalary=raw.get("intercalary"),
            time=TimeOfDay.from_dict(raw.get("time")),
            definition=definition,
        )

    # ---------------------------------------------------------
    # Formatting
    # ---------------------------------------------------------

    def _formatter(self):
        from ..format.formatter import DateFormatter
        return DateFormatter(self.definition)

    def format(self, template: Optional[str] = None, *, name: Optional[str] = None,
               variant: Optional[str] = None) -> str:
        """Render with an explicit template, a named ``dateFormats`` entry, or the basic format."""
        f = self._formatter()
        if template is not None:
            return f.format(self, template)
        if name is not None:
            return f.format_named(self, name, variant)
        return f.basic(self)

    def to_short_string(self) -> str:
        return self._formatter().short(self)

    def to_long_string(self) -> str:
        return self._formatter().long(self)

    def to_date_string(self) -> str:
        return self._formatter().date_string(self)

    def to_time_string(self) -> str:
        return self._formatter().time_string(self)
