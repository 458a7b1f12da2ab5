# tests/test_engine.py

import math
import random

import pytest

from fancal.core.date import CalendarDate, TimeOfDay
from fancal.core.errors import InvalidDateError
from fancal.core.types import CalendarDefinition
from fancal.diagnostics.round_trip import random_date
from fancal.engines.calendar import CalendarEngine


def test_unix_epoch_and_known_dates(make, gregorian):
    eng = make(gregorian)
    d = eng.world_time_to_date(0)
    assert (d.year, d.month, d.day, d.weekday) == (1970, 1, 1, 4)
    assert d.time == TimeOfDay(0, 0, 0)

    # 2000-01-01 was a Saturday
    y2k = CalendarDate(2000, 1, 1)
    assert eng.date_to_world_time(y2k) == 946684800
    assert eng.world_time_to_date(946684800).weekday == 6

    leap_day = eng.world_time_to_date(1709164800)
    assert (leap_day.year, leap_day.month, leap_day.day, leap_day.weekday) == (2024, 2, 29, 4)


def test_negative_world_time(make, gregorian):
    eng = make(gregorian)
    d = eng.world_time_to_date(-1)
    assert (d.year, d.month, d.day) == (1969, 12, 31)
    assert d.time == TimeOfDay(23, 59, 59)
    assert d.weekday == 3


def test_fractional_world_time_is_floored(make, gregorian):
    eng = make(gregorian)
    assert eng.world_time_to_date(59.9).time == TimeOfDay(0, 0, 59)
    assert eng.world_time_to_date(-0.5).time == TimeOfDay(23, 59, 59)


def test_round_trip_world_time(make, gregorian, harptos, golarion, small):
    """world time -> date -> world time is exact, far from the epoch in both directions."""
    random.seed(42)
    for defn in (gregorian, harptos, golarion, small):
        eng = make(defn)
        for _ in range(2000):
            wt = random.randint(-10**11, 10**11)
            d = eng.world_time_to_date(wt)
            assert eng.date_to_world_time(d) == wt


def test_round_trip_dates(make, harptos, small):
    """date -> world time -> date, including intercalary and before-month blocks."""
    random.seed(42)
    for defn in (harptos, small):
        eng = make(defn)
        for _ in range(2000):
            d0 = random_date(eng, -3000, 3000)
            back = eng.world_time_to_date(eng.date_to_world_time(d0))
            assert back == d0


def test_far_year(make, gregorian):
    eng = make(gregorian)
    d = eng.world_time_to_date(10**15)
    assert eng.date_to_world_time(d) == 10**15
    old = CalendarDate(-500, 3, 1, time=TimeOfDay(12, 0, 0))
    back = eng.world_time_to_date(eng.date_to_world_time(old))
    assert (back.year, back.month, back.day, back.time) == (-500, 3, 1, TimeOfDay(12, 0, 0))


def test_real_time_based_world_time(make, gregorian):
    doc = gregorian.to_dict()
    doc["id"] = "greg-now"
    doc["worldTime"] = {"interpretation": "real-time-based", "epochYear": 1970, "currentYear": 2024}
    eng = make(CalendarDefinition.from_dict(doc))
    d = eng.world_time_to_date(0)
    assert (d.year, d.month, d.day) == (2024, 1, 1)
    assert eng.date_to_world_time(d) == 0
    assert eng.world_time_to_date(-1).year == 2023


def test_golarion_start(make, golarion):
    eng = make(golarion)
    d = eng.world_time_to_date(0)
    assert (d.year, d.month, d.day, d.weekday) == (2700, 1, 1, 0)
    assert d.time == TimeOfDay(0, 0, 0)

    nxt = eng.add_days(d, 1)
    assert (nxt.year, nxt.month, nxt.day, nxt.weekday) == (2700, 1, 2, 1)


def test_end_of_day_rollover(make, golarion):
    eng = make(golarion)
    d = CalendarDate(2700, 1, 31, time=TimeOfDay(23, 59, 58))
    after = eng.world_time_to_date(eng.date_to_world_time(d) + 2)
    assert (after.month, after.day) == (2, 1)
    assert after.time == TimeOfDay(0, 0, 0)

    moved = eng.add_seconds(d, 2)
    assert moved == after


def test_custom_time_units(make, small_doc):
    small_doc["time"] = {"hoursInDay": 10, "minutesInHour": 100, "secondsInMinute": 100}
    eng = make(CalendarDefinition.from_dict(small_doc))
    d = eng.world_time_to_date(100000 + 3 * 10000 + 5 * 100 + 7)
    assert (d.year, d.month, d.day) == (0, 1, 2)
    assert d.time == TimeOfDay(3, 5, 7)


def test_intercalary_days_are_located(make, small):
    eng = make(small)
    assert eng.days_before_year(1) == 45

    fest = eng.days_to_date(45 + 20)
    assert (fest.year, fest.month, fest.day, fest.intercalary) == (1, 2, 1, "Fest")
    assert fest.weekday == 0
    assert eng.days_to_date(45 + 21).day == 2

    after = eng.days_to_date(45 + 22)
    assert (after.month, after.day, after.intercalary) == (3, 1, None)

    eve = eng.days_to_date(45 + 32)
    assert (eve.month, eve.day, eve.intercalary) == (4, 1, "Eve")
    assert eng.date_to_days(eve) == 45 + 32
    assert eng.day_of_year(eve) == 33


def test_leap_only_block_missing_in_common_year(make, small):
    eng = make(small)
    ghost = CalendarDate(1, 4, 1, intercalary="Leapfest")
    # treated as D 1 in a year without Leapfest
    assert eng.date_to_days(ghost) == eng.date_to_days(CalendarDate(1, 4, 1))


def test_intercalary_day_out_of_range(make, small):
    eng = make(small)
    assert eng.day_of_year(CalendarDate(5, 2, 2, intercalary="Fest")) == 22
    for day in (0, 3, 5):
        with pytest.raises(InvalidDateError):
            eng.date_to_days(CalendarDate(5, 2, day, intercalary="Fest"))


def test_int_year():
    assert CalendarEngine.int_year(2024) == 2024
    assert CalendarEngine.int_year(2024.0) == 2024
    for bad in (True, math.nan, 2024.5, "2024"):
        with pytest.raises(InvalidDateError):
            CalendarEngine.int_year(bad)


def test_invalid_dates_raise(make, gregorian):
    eng = make(gregorian)
    with pytest.raises(InvalidDateError):
        eng.date_to_world_time(CalendarDate(2024, 13, 1))
    with pytest.raises(InvalidDateError):
        eng.date_to_world_time(CalendarDate(math.nan, 1, 1))
    with pytest.raises(ValueError):
        eng.date_to_world_time(CalendarDate(2024.5, 1, 1))


def test_days_between(make, gregorian):
    eng = make(gregorian)
    assert eng.days_between(CalendarDate(2024, 1, 1), CalendarDate(2025, 1, 1)) == 366
    assert eng.days_between(CalendarDate(2025, 1, 1), CalendarDate(2024, 1, 1)) == -366


def test_add_months_clamps_and_wraps(make, gregorian):
    eng = make(gregorian)
    d = eng.add_months(CalendarDate(2023, 1, 31), 1)
    assert (d.year, d.month, d.day) == (2023, 2, 28)
    d = eng.add_months(CalendarDate(2024, 1, 31), 1)
    assert (d.year, d.month, d.day) == (2024, 2, 29)
    d = eng.add_months(CalendarDate(2023, 11, 15), 3)
    assert (d.year, d.month, d.day) == (2024, 2, 15)
    d = eng.add_months(CalendarDate(2023, 2, 15), -14)
    assert (d.year, d.month, d.day) == (2021, 12, 15)
    d = eng.add_months(CalendarDate(2024, 3, 31), 25)
    assert (d.year, d.month, d.day) == (2026, 4, 30)
    assert d.weekday == eng.calculate_weekday(2026, 4, 30)


def test_add_years(make, gregorian, harptos):
    eng = make(gregorian)
    d = eng.add_years(CalendarDate(2024, 2, 29), 1)
    assert (d.year, d.month, d.day) == (2025, 2, 28)
    d = eng.add_years(CalendarDate(2024, 2, 29), 4)
    assert (d.year, d.month, d.day) == (2028, 2, 29)

    hp = make(harptos)
    shieldmeet = CalendarDate(1492, 7, 1, intercalary="Shieldmeet")
    assert hp.add_years(shieldmeet, 4).intercalary == "Shieldmeet"
    common = hp.add_years(shieldmeet, 1)
    assert (common.year, common.month, common.day, common.intercalary) == (1493, 7, 1, None)


def test_add_hours_and_minutes_carry(make, gregorian):
    eng = make(gregorian)
    d = eng.add_hours(CalendarDate(2023, 12, 31, time=TimeOfDay(22, 0, 0)), 5)
    assert (d.year, d.month, d.day, d.time) == (2024, 1, 1, TimeOfDay(3, 0, 0))
    d = eng.add_hours(CalendarDate(2024, 1, 1, time=TimeOfDay(1, 0, 0)), -3)
    assert (d.year, d.month, d.day, d.time) == (2023, 12, 31, TimeOfDay(22, 0, 0))
    d = eng.add_minutes(CalendarDate(2024, 3, 1, time=TimeOfDay(0, 10, 0)), -20)
    assert (d.month, d.day, d.time) == (2, 29, TimeOfDay(23, 50, 0))


def test_add_weeks(make, gregorian):
    eng = make(gregorian)
    d = eng.add_weeks(CalendarDate(2024, 2, 29), 1)
    assert (d.month, d.day, d.weekday) == (3, 7, 4)


def test_engine_is_immutable(make, gregorian, golarion):
    eng = make(gregorian)
    other = eng.with_definition(golarion)
    assert other is not eng
    assert eng.definition is gregorian
    assert other.compat is eng.compat
    assert eng.with_system("dnd5e").system_id == "dnd5e"
    assert eng.system_id is None


def test_info(make, golarion):
    info = make(golarion).info()
    assert info["id"] == "golarion-pf2e"
    assert info["cycle_years"] == 8
    assert info["cycle_days"] == 8 * 365 + 1
    assert info["seconds_per_day"] == 86400
    assert info["interpretation"] == "epoch-based"
