"""
fancal.core.types
-----------------
Frozen data model of a calendar definition.

Definitions arrive as camelCase JSON-like documents (``leapYear``,
``countsForWeekdays``, ``worldTime.interpretation`` ...). ``CalendarDefinition.from_dict``
turns such a document into the immutable dataclasses below and rejects structurally
invalid input with ``CalendarConfigError``. Engines never re-validate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from .errors import CalendarConfigError

logger = logging.getLogger(__name__)

LeapRuleName = Literal["none", "gregorian", "custom"]
Interpretation = Literal["epoch-based", "real-time-based"]
RemainderHandling = Literal["partial-last", "extend-last", "none"]
NamingPattern = Literal["ordinal", "numeric", "none"]

LEAP_RULES = ("none", "gregorian", "custom")
INTERPRETATIONS = ("epoch-based", "real-time-based")
REMAINDER_HANDLING = ("partial-last", "extend-last", "none")
NAMING_PATTERNS = ("ordinal", "numeric", "none")
WEEK_TYPES = ("month-based", "year-based")


def _positive_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise CalendarConfigError(f"{what} must be a positive integer, got {value!r}")
    return value


# ============================================================
# Building blocks
# ============================================================

@dataclass(frozen=True)
class MonthDef:
    name: str
    days: int
    abbreviation: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise CalendarConfigError("month name must be non-empty")
        _positive_int(self.days, f"month '{self.name}' days")

    @property
    def abbr(self) -> str:
        return self.abbreviation or self.name[:3]


@dataclass(frozen=True)
class WeekdayDef:
    name: str
    abbreviation: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise CalendarConfigError("weekday name must be non-empty")

    @property
    def abbr(self) -> str:
        return self.abbreviation or self.name[:3]


@dataclass(frozen=True)
class LeapYearRule:
    """
    rule:
      none      -> never leap
      gregorian -> (y%4==0 and y%100!=0) or y%400==0
      custom    -> (y - offset) % interval == 0
    The leap month (by name) gains ``extra_days`` in leap years; negative values shrink it.
    """
    rule: LeapRuleName = "none"
    interval: Optional[int] = None
    offset: int = 0
    month: Optional[str] = None
    extra_days: int = 1

    def __post_init__(self):
        if self.rule not in LEAP_RULES:
            raise CalendarConfigError(f"unknown leap-year rule {self.rule!r}; expected one of {LEAP_RULES}")
        if self.rule == "custom":
            _positive_int(self.interval, "custom leap-year interval")


@dataclass(frozen=True)
class IntercalaryDef:
    """A block of ``days`` extra days placed directly after (or before) a named month."""
    name: str
    days: int = 1
    after: Optional[str] = None
    before: Optional[str] = None
    leap_year_only: bool = False
    counts_for_weekdays: bool = True
    description: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise CalendarConfigError("intercalary name must be non-empty")
        if (self.after is None) == (self.before is None):
            raise CalendarConfigError(
                f"intercalary '{self.name}' must name exactly one of 'after' or 'before'"
            )
        _positive_int(self.days, f"intercalary '{self.name}' days")

    @property
    def anchor(self) -> str:
        return self.after if self.after is not None else self.before  # type: ignore[return-value]

    @property
    def placement(self) -> Literal["after", "before"]:
        return "after" if self.after is not None else "before"


@dataclass(frozen=True)
class YearConfig:
    epoch: int = 0
    current_year: int = 0
    start_day: int = 0
    prefix: str = ""
    suffix: str = ""


@dataclass(frozen=True)
class TimeConfig:
    hours_in_day: int = 24
    minutes_in_hour: int = 60
    seconds_in_minute: int = 60

    def __post_init__(self):
        _positive_int(self.hours_in_day, "hoursInDay")
        _positive_int(self.minutes_in_hour, "minutesInHour")
        _positive_int(self.seconds_in_minute, "secondsInMinute")

    @property
    def seconds_per_hour(self) -> int:
        return self.minutes_in_hour * self.seconds_in_minute

    @property
    def seconds_per_day(self) -> int:
        return self.hours_in_day * self.seconds_per_hour


@dataclass(frozen=True)
class WorldTimeConfig:
    interpretation: Interpretation = "epoch-based"
    epoch_year: int = 0
    current_year: int = 0

    def __post_init__(self):
        if self.interpretation not in INTERPRETATIONS:
            raise CalendarConfigError(
                f"unknown worldTime interpretation {self.interpretation!r}; expected one of {INTERPRETATIONS}"
            )


@dataclass(frozen=True)
class DateFormatAdjustment:
    month_offset: int = 0
    day_offset: int = 0


@dataclass(frozen=True)
class CompatibilityAdjustment:
    """Per (system, calendar) correction. ``provider`` records where it came from."""
    weekday_offset: int = 0
    date_formatting: Optional[DateFormatAdjustment] = None
    description: Optional[str] = None
    provider: str = "registered"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], *, provider: str = "registered") -> "CompatibilityAdjustment":
        fmt = raw.get("dateFormatting")
        return cls(
            weekday_offset=int(raw.get("weekdayOffset", 0) or 0),
            date_formatting=(
                DateFormatAdjustment(int(fmt.get("monthOffset", 0)), int(fmt.get("dayOffset", 0)))
                if fmt else None
            ),
            description=raw.get("description"),
            provider=provider,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"weekdayOffset": self.weekday_offset}
        if self.date_formatting is not None:
            out["dateFormatting"] = {
                "monthOffset": self.date_formatting.month_offset,
                "dayOffset": self.date_formatting.day_offset,
            }
        if self.description is not None:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class WeekName:
    name: str
    abbreviation: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class WeekConfig:
    type: str = "month-based"
    per_month: Optional[int] = None
    days_per_week: Optional[int] = None
    remainder_handling: RemainderHandling = "partial-last"
    names: Tuple[WeekName, ...] = ()
    naming_pattern: NamingPattern = "numeric"

    def __post_init__(self):
        object.__setattr__(self, "names", tuple(self.names))
        if self.type not in WEEK_TYPES:
            raise CalendarConfigError(f"unknown weeks.type {self.type!r}")
        if self.remainder_handling not in REMAINDER_HANDLING:
            raise CalendarConfigError(f"unknown weeks.remainderHandling {self.remainder_handling!r}")
        if self.naming_pattern not in NAMING_PATTERNS:
            raise CalendarConfigError(f"unknown weeks.namingPattern {self.naming_pattern!r}")
        if self.days_per_week is not None:
            _positive_int(self.days_per_week, "weeks.daysPerWeek")


@dataclass(frozen=True)
class MoonPhase:
    name: str
    length: float
    single_day: bool = False
    icon: Optional[str] = None


@dataclass(frozen=True)
class MoonDef:
    name: str
    cycle_length: float
    first_new_moon: Tuple[int, int, int]
    phases: Tuple[MoonPhase, ...]
    color: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "phases", tuple(self.phases))
        object.__setattr__(self, "first_new_moon", tuple(self.first_new_moon))
        if not (self.cycle_length > 0):
            raise CalendarConfigError(f"moon '{self.name}' cycleLength must be > 0")
        if not self.phases:
            raise CalendarConfigError(f"moon '{self.name}' needs at least one phase")
        if any(p.length < 0 for p in self.phases):
            raise CalendarConfigError(f"moon '{self.name}' has a negative phase length")


# ============================================================
# Calendar definition
# ============================================================

@dataclass(frozen=True)
class CalendarDefinition:
    id: str
    months: Tuple[MonthDef, ...]
    weekdays: Tuple[WeekdayDef, ...]
    leap_year: LeapYearRule = LeapYearRule()
    intercalary: Tuple[IntercalaryDef, ...] = ()
    year: YearConfig = YearConfig()
    time: TimeConfig = TimeConfig()
    world_time: Optional[WorldTimeConfig] = None
    compatibility: Dict[str, CompatibilityAdjustment] = field(default_factory=dict)
    weeks: Optional[WeekConfig] = None
    moons: Tuple[MoonDef, ...] = ()
    date_formats: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "months", tuple(self.months))
        object.__setattr__(self, "weekdays", tuple(self.weekdays))
        object.__setattr__(self, "intercalary", tuple(self.intercalary))
        object.__setattr__(self, "moons", tuple(self.moons))

        if not self.id:
            raise CalendarConfigError("calendar id must be non-empty")
        if not self.months:
            raise CalendarConfigError(f"calendar '{self.id}' needs at least one month")
        if not self.weekdays:
            raise CalendarConfigError(f"calendar '{self.id}' needs at least one weekday")
        if not (0 <= self.year.start_day < len(self.weekdays)):
            raise CalendarConfigError(
                f"calendar '{self.id}': startDay {self.year.start_day} outside [0, {len(self.weekdays)})"
            )

        names = {m.name for m in self.months}
        if self.leap_year.month is not None and self.leap_year.month not in names:
            raise CalendarConfigError(
                f"calendar '{self.id}': leap month '{self.leap_year.month}' is not a month"
            )
        for ic in self.intercalary:
            if ic.anchor not in names:
                raise CalendarConfigError(
                    f"calendar '{self.id}': intercalary '{ic.name}' refers to unknown month '{ic.anchor}'"
                )

    # ---------------------------------------------------------
    # Lookups
    # ---------------------------------------------------------

    @property
    def weekday_count(self) -> int:
        return len(self.weekdays)

    @property
    def seconds_per_day(self) -> int:
        return self.time.seconds_per_day

    def month_number(self, name: str) -> Optional[int]:
        """1-based index of the first month called ``name``; None if absent."""
        for i, m in enumerate(self.months):
            if m.name == name:
                return i + 1
        return None

    def month_def(self, month: int) -> Optional[MonthDef]:
        if 1 <= month <= len(self.months):
            return self.months[month - 1]
        return None

    def weekday_def(self, weekday: int) -> Optional[WeekdayDef]:
        if 0 <= weekday < len(self.weekdays):
            return self.weekdays[weekday]
        return None

    def intercalary_def(self, name: str, month: Optional[int] = None) -> Optional[IntercalaryDef]:
        """Find an intercalary block by name, preferring the one attached to ``month``."""
        hits = [ic for ic in self.intercalary if ic.name == name]
        if month is not None:
            for ic in hits:
                if self.month_number(ic.anchor) == month:
                    return ic
        return hits[0] if hits else None

    def year_string(self, year: Any) -> str:
        return f"{self.year.prefix}{year}{self.year.suffix}".strip()

    # ---------------------------------------------------------
    # (De)serialization
    # ---------------------------------------------------------

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "CalendarDefinition":
        """Build a definition from a camelCase document, filling structural gaps with Gregorian defaults."""
        if not isinstance(doc, Mapping):
            raise CalendarConfigError(f"calendar document must be a mapping, got {type(doc).__name__}")
        cal_id = doc.get("id")
        if not cal_id:
            raise CalendarConfigError("calendar document has no 'id'")

        def section(key: str) -> Any:
            if key in doc and doc[key] is not None:
                return doc[key]
            logger.warning("calendar '%s' has no '%s' section; using Gregorian default", cal_id, key)
            return GREGORIAN_DEFAULTS[key]

        try:
            months = tuple(_month(m) for m in section("months"))
            leap_year = _leap(section("leapYear"))
            if doc.get("leapYear") is None and leap_year.month not in {m.name for m in months}:
                logger.warning("calendar '%s' has no month '%s'; default leap rule adds no leap day",
                               cal_id, leap_year.month)
                leap_year = replace(leap_year, month=None)
            return cls(
                id=str(cal_id),
                name=doc.get("name") or _label(doc),
                description=doc.get("description"),
                months=months,
                weekdays=tuple(_weekday(w) for w in section("weekdays")),
                leap_year=leap_year,
                intercalary=tuple(_intercalary(i) for i in section("intercalary")),
                year=_year(section("year")),
                time=_time(section("time")),
                world_time=_world_time(doc.get("worldTime")),
                compatibility={
                    str(k): CompatibilityAdjustment.from_dict(v, provider="calendar-defined")
                    for k, v in (doc.get("compatibility") or {}).items()
                },
                weeks=_weeks(doc.get("weeks")),
                moons=tuple(_moon(m) for m in (doc.get("moons") or ())),
                date_formats=dict(doc.get("dateFormats") or {}),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise CalendarConfigError(f"calendar '{cal_id}' is malformed: {e!r}") from e

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "months": [_drop_none({"name": m.name, "days": m.days, "abbreviation": m.abbreviation,
                                   "description": m.description}) for m in self.months],
            "weekdays": [_drop_none({"name": w.name, "abbreviation": w.abbreviation,
                                     "description": w.description}) for w in self.weekdays],
            "leapYear": _drop_none({
                "rule": self.leap_year.rule,
                "interval": self.leap_year.interval,
                "offset": self.leap_year.offset or None,
                "month": self.leap_year.month,
                "extraDays": self.leap_year.extra_days,
            }),
            "intercalary": [_drop_none({
                "name": i.name, "days": i.days, "after": i.after, "before": i.before,
                "leapYearOnly": i.leap_year_only, "countsForWeekdays": i.counts_for_weekdays,
                "description": i.description,
            }) for i in self.intercalary],
            "year": {
                "epoch": self.year.epoch, "currentYear": self.year.current_year,
                "startDay": self.year.start_day, "prefix": self.year.prefix, "suffix": self.year.suffix,
            },
            "time": {
                "hoursInDay": self.time.hours_in_day,
                "minutesInHour": self.time.minutes_in_hour,
                "secondsInMinute": self.time.seconds_in_minute,
            },
        }
        if self.name is not None:
            out["name"] = self.name
        if self.description is not None:
            out["description"] = self.description
        if self.world_time is not None:
            out["worldTime"] = {
                "interpretation": self.world_time.interpretation,
                "epochYear": self.world_time.epoch_year,
                "currentYear": self.world_time.current_year,
            }
        if self.compatibility:
            out["compatibility"] = {k: v.to_dict() for k, v in self.compatibility.items()}
        if self.weeks is not None:
            out["weeks"] = _drop_none({
                "type": self.weeks.type,
                "perMonth": self.weeks.per_month,
                "daysPerWeek": self.weeks.days_per_week,
                "remainderHandling": self.weeks.remainder_handling,
                "namingPattern": self.weeks.naming_pattern,
                "names": [_drop_none({"name": n.name, "abbreviation": n.abbreviation,
                                      "description": n.description}) for n in self.weeks.names] or None,
            })
        if self.moons:
            out["moons"] = [_drop_none({
                "name": m.name,
                "cycleLength": m.cycle_length,
                "firstNewMoon": dict(zip(("year", "month", "day"), m.first_new_moon)),
                "phases": [_drop_none({"name": p.name, "length": p.length, "singleDay": p.single_day,
                                       "icon": p.icon}) for p in m.phases],
                "color": m.color,
            }) for m in self.moons]
        if self.date_formats:
            out["dateFormats"] = dict(self.date_formats)
        return out


# ---------------------------------------------------------
# Section parsers
# ---------------------------------------------------------

def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _label(doc: Mapping[str, Any]) -> Optional[str]:
    tr = doc.get("translations") or {}
    en = tr.get("en") if isinstance(tr, Mapping) else None
    return en.get("label") if isinstance(en, Mapping) else None


def _month(raw: Mapping[str, Any]) -> MonthDef:
    return MonthDef(
        name=raw["name"],
        days=raw["days"],
        abbreviation=raw.get("abbreviation"),
        description=raw.get("description"),
    )


def _weekday(raw: Mapping[str, Any]) -> WeekdayDef:
    return WeekdayDef(name=raw["name"], abbreviation=raw.get("abbreviation"), description=raw.get("description"))


def _leap(raw: Mapping[str, Any]) -> LeapYearRule:
    return LeapYearRule(
        rule=raw.get("rule", "none"),
        interval=raw.get("interval"),
        offset=int(raw.get("offset", 0) or 0),
        month=raw.get("month"),
        extra_days=int(raw["extraDays"]) if raw.get("extraDays") is not None else 1,
    )


def _intercalary(raw: Mapping[str, Any]) -> IntercalaryDef:
    return IntercalaryDef(
        name=raw["name"],
        days=raw.get("days", 1) if raw.get("days") is not None else 1,
        after=raw.get("after"),
        before=raw.get("before"),
        leap_year_only=bool(raw.get("leapYearOnly", False)),
        counts_for_weekdays=raw.get("countsForWeekdays", True) is not False,
        description=raw.get("description"),
    )


def _year(raw: Mapping[str, Any]) -> YearConfig:
    return YearConfig(
        epoch=int(raw.get("epoch", 0)),
        current_year=int(raw.get("currentYear", raw.get("epoch", 0))),
        start_day=int(raw.get("startDay", 0)),
        prefix=raw.get("prefix") or "",
        suffix=raw.get("suffix") or "",
    )


def _time(raw: Mapping[str, Any]) -> TimeConfig:
    return TimeConfig(
        hours_in_day=raw.get("hoursInDay", 24),
        minutes_in_hour=raw.get("minutesInHour", 60),
        seconds_in_minute=raw.get("secondsInMinute", 60),
    )


def _world_time(raw: Optional[Mapping[str, Any]]) -> Optional[WorldTimeConfig]:
    if not raw:
        return None
    return WorldTimeConfig(
        interpretation=raw.get("interpretation", "epoch-based"),
        epoch_year=int(raw.get("epochYear", 0)),
        current_year=int(raw.get("currentYear", 0)),
    )


def _weeks(raw: Optional[Mapping[str, Any]]) -> Optional[WeekConfig]:
    if not raw:
        return None
    return WeekConfig(
        type=raw.get("type", "month-based"),
        per_month=raw.get("perMonth"),
        days_per_week=raw.get("daysPerWeek"),
        remainder_handling=raw.get("remainderHandling", "partial-last"),
        names=tuple(
            WeekName(n["name"], n.get("abbreviation"), n.get("description")) for n in (raw.get("names") or ())
        ),
        naming_pattern=raw.get("namingPattern", "numeric"),
    )


def _moon(raw: Mapping[str, Any]) -> MoonDef:
    ref = raw["firstNewMoon"]
    return MoonDef(
        name=raw["name"],
        cycle_length=float(raw["cycleLength"]),
        first_new_moon=(int(ref["year"]), int(ref["month"]), int(ref["day"])),
        phases=tuple(
            MoonPhase(p["name"], float(p["length"]), bool(p.get("singleDay", False)), p.get("icon"))
            for p in raw["phases"]
        ),
        color=raw.get("color"),
    )


# ============================================================
# Gregorian defaults for missing structural sections
# ============================================================

_GREG_MONTHS: List[Tuple[str, int]] = [
    ("January", 31), ("February", 28), ("March", 31), ("April", 30),
    ("May", 31), ("June", 30), ("July", 31), ("August", 31),
    ("September", 30), ("October", 31), ("November", 30), ("December", 31),
]

GREGORIAN_DEFAULTS: Dict[str, Any] = {
    "months": [{"name": n, "days": d} for n, d in _GREG_MONTHS],
    "weekdays": [{"name": n} for n in
                 ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")],
    "leapYear": {"rule": "gregorian", "month": "February", "extraDays": 1},
    "intercalary": [],
    "year": {"epoch": 1970, "currentYear": 2024, "startDay": 4, "prefix": "", "suffix": ""},
    "time": {"hoursInDay": 24, "minutesInHour": 60, "secondsInMinute": 60},
}
