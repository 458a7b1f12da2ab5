# tests/test_clock.py

import logging

import pytest

from fancal.compat.providers import install_creation_anchor
from fancal.core.date import CalendarDate, TimeOfDay
from fancal.engines.clock import WorldClock

CREATED = 1751438463


def test_advancing(make, golarion):
    clock = WorldClock(make(golarion))
    d = clock.current_date()
    assert (d.year, d.month, d.day) == (2700, 1, 1)

    assert clock.advance_days(1) == 86400
    assert clock.current_date().day == 2

    clock.advance_hours(25)
    d = clock.current_date()
    assert (d.day, d.time) == (3, TimeOfDay(1, 0, 0))

    clock.advance_minutes(-61)
    assert clock.current_date().time == TimeOfDay(23, 59, 0)
    clock.advance_seconds(3660)

    clock.advance_months(1)
    d = clock.current_date()
    assert (d.year, d.month, d.day, d.time) == (2700, 2, 3, TimeOfDay(1, 0, 0))
    assert clock.world_time == clock.engine.date_to_world_time(d)

    clock.advance_years(1)
    d = clock.current_date()
    assert (d.year, d.month, d.day) == (2701, 2, 3)

    clock.advance_weeks(1)
    assert clock.current_date().day == 10


def test_time_of_day(make, golarion):
    clock = WorldClock(make(golarion), world_time=5 * 86400 + 17)
    clock.set_time_of_day(12)
    d = clock.current_date()
    assert (d.day, d.time) == (6, TimeOfDay(12, 0, 0))
    assert clock.day_progress() == pytest.approx(0.5)
    with pytest.raises(ValueError):
        clock.set_time_of_day(24)
    with pytest.raises(ValueError):
        clock.set_time_of_day(1, 60)


def test_set_date(make, gregorian):
    clock = WorldClock(make(gregorian))
    wt = clock.set_date(CalendarDate(2000, 1, 1))
    assert wt == 946684800
    assert clock.world_time == wt


def test_external_time_source_overrides(make, compat, golarion):
    compat.register_time_source("sys", lambda: 3 * 86400)
    clock = WorldClock(make(golarion, system_id="sys"))
    assert clock.current_date().day == 4
    clock.advance_days(10)
    assert clock.current_date().day == 4
    assert clock.world_time == 10 * 86400


def test_creation_anchor_through_clock(make, compat, golarion):
    install_creation_anchor(compat, "pf2e", lambda: CREATED, golarion)
    clock = WorldClock(make(golarion, system_id="pf2e"))
    d = clock.current_date()
    assert (d.year, d.month, d.day, d.time) == (4725, 7, 2, TimeOfDay(6, 41, 3))
    assert clock.effective_world_time() == (0, CREATED)

    wt = clock.set_date(d.replace(day=3))
    assert wt == 86400
    assert clock.current_date().day == 3


def test_listeners(make, golarion, caplog):
    clock = WorldClock(make(golarion))
    seen = []

    def broken(date):
        raise RuntimeError("listener bug")

    clock.add_listener(broken)
    clock.add_listener(seen.append)
    with caplog.at_level(logging.WARNING, logger="fancal.engines.clock"):
        clock.advance_days(1)
    assert [d.day for d in seen] == [2]
    assert "listener" in caplog.text

    assert clock.remove_listener(seen.append) is True
    assert clock.remove_listener(seen.append) is False
    clock.advance_days(1)
    assert len(seen) == 1


def test_swap_engine(make, golarion, harptos, caplog):
    old = make(golarion)
    clock = WorldClock(old)
    seen = []
    clock.add_listener(seen.append)
    with caplog.at_level(logging.INFO, logger="fancal.engines.clock"):
        returned = clock.swap_engine(make(harptos))
    assert returned is old
    assert clock.engine.definition.id == "harptos"
    assert seen[-1].year == 0
    assert seen[-1].definition is harptos
    assert "golarion-pf2e -> harptos" in caplog.text
