# tests/test_weeks_moons.py

import random

import pytest

from fancal.core.date import CalendarDate
from fancal.core.types import CalendarDefinition


def week_calendar(**weeks):
    return CalendarDefinition.from_dict({
        "id": "weeks",
        "months": [{"name": "Long", "days": 31}, {"name": "Even", "days": 28}],
        "weekdays": [{"name": f"D{i}"} for i in range(7)],
        "leapYear": {"rule": "none"},
        "intercalary": [],
        "year": {"epoch": 0, "currentYear": 0, "startDay": 0},
        "time": {},
        "weeks": {"type": "month-based", **weeks},
    })


@pytest.mark.parametrize("handling, expected", [
    ("partial-last", 5),
    ("extend-last", 4),
    ("none", None),
])
def test_remainder_handling(make, handling, expected):
    eng = make(week_calendar(remainderHandling=handling))
    assert eng.week_of_month(CalendarDate(0, 1, 29)) == expected
    assert eng.week_of_month(CalendarDate(0, 1, 28)) == 4
    assert eng.week_of_month(CalendarDate(0, 1, 1)) == 1
    # 28 days divide evenly; remainder handling never applies
    assert eng.week_of_month(CalendarDate(0, 2, 28)) == 4


def test_explicit_per_month(make):
    eng = make(week_calendar(perMonth=3, remainderHandling="extend-last"))
    # the fourth raw week folds into the declared third
    assert eng.week_of_month(CalendarDate(0, 1, 22)) == 3
    assert eng.week_of_month(CalendarDate(0, 1, 20)) == 3


def test_week_naming_patterns(make):
    d = CalendarDate(0, 1, 10)
    assert make(week_calendar(namingPattern="ordinal")).week_info(d).name == "2nd Week"
    assert make(week_calendar(namingPattern="numeric")).week_info(d).name == "Week 2"
    assert make(week_calendar(namingPattern="none")).week_info(d) is None
    named = make(week_calendar(names=[{"name": "Seedweek", "abbreviation": "Sd"}]))
    assert named.week_info(CalendarDate(0, 1, 3)).abbreviation == "Sd"
    assert named.week_info(d).name == "Week 2"


def test_harptos_tendays(make, harptos):
    eng = make(harptos)
    assert eng.week_info(CalendarDate(1492, 1, 1)).name == "First Tenday"
    assert eng.week_info(CalendarDate(1492, 1, 21)).name == "Third Tenday"
    assert eng.week_of_month(CalendarDate(1492, 1, 30)) == 3
    assert eng.week_info(CalendarDate(1492, 1, 1, intercalary="Midwinter")) is None


def test_no_month_weeks(make, golarion):
    assert make(golarion).week_of_month(CalendarDate(4725, 1, 1)) is None
    year_based = make(week_calendar(type="year-based"))
    assert year_based.week_info(CalendarDate(0, 1, 1)) is None


def test_phase_lengths_sum_to_cycle(golarion, harptos):
    for defn in (golarion, harptos):
        for moon in defn.moons:
            assert sum(p.length for p in moon.phases) == pytest.approx(moon.cycle_length, abs=1e-9)


def test_somal_around_reference(make, golarion):
    eng = make(golarion)

    (info,) = eng.moon_phases(CalendarDate(4725, 1, 1))
    assert info.moon.name == "Somal"
    assert (info.phase.name, info.phase_index, info.day_in_phase, info.days_until_next) == ("New Moon", 0, 0, 1)
    assert info.phase_progress == 0.0

    (info,) = eng.moon_phases(CalendarDate(4725, 1, 2))
    assert (info.phase.name, info.day_in_phase, info.days_until_next) == ("Waxing Crescent", 0, 7)
    assert info.days_until_next_exact == pytest.approx(6.38)

    (info,) = eng.moon_phases(CalendarDate(4724, 12, 31))
    assert info.phase.name == "Waning Crescent"
    assert info.day_in_phase_exact == pytest.approx(5.37)
    assert info.day_in_phase == 5
    assert info.days_until_next == 1

    (info,) = eng.moon_phases(CalendarDate(4725, 1, 31))
    assert info.phase.name == "New Moon"
    assert info.day_in_phase_exact == pytest.approx(0.5)
    assert info.days_until_next == 1


def test_moon_filter_and_world_time(make, golarion):
    eng = make(golarion)
    assert eng.moon_phases(CalendarDate(4725, 1, 1), "Nope") == []
    assert len(eng.moon_phases(CalendarDate(4725, 1, 1), "Somal")) == 1
    wt = 123456789
    assert eng.moon_phases_at(wt) == eng.moon_phases(eng.world_time_to_date(wt))
    assert make(CalendarDefinition.from_dict({**golarion.to_dict(), "moons": []})).moon_phases(
        CalendarDate(4725, 1, 1)) == []


def test_phase_bounds(make, harptos):
    eng = make(harptos)
    random.seed(42)
    for _ in range(500):
        d = eng.days_to_date(random.randint(-10**6, 10**6))
        (info,) = eng.moon_phases(d)
        assert 0 <= info.phase_index < len(info.moon.phases)
        assert 0.0 <= info.day_in_phase_exact <= info.phase.length
        assert 0.0 <= info.phase_progress <= 1.0
        assert info.days_until_next >= 0
