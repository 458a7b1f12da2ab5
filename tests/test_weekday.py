# tests/test_weekday.py

import random

from fancal.core.types import CalendarDefinition, CompatibilityAdjustment


def test_weekday_advances_by_one_per_day(make, gregorian, golarion):
    random.seed(42)
    for defn in (gregorian, golarion):
        eng = make(defn)
        n = defn.weekday_count
        for _ in range(500):
            days = random.randint(-10**6, 10**6)
            a = eng.days_to_date(days)
            b = eng.days_to_date(days + 1)
            assert b.weekday == (a.weekday + 1) % n


def test_non_counting_festival_does_not_advance(make, harptos):
    eng = make(harptos)
    last_hammer = eng.calculate_weekday(1492, 1, 30)
    assert eng.calculate_weekday(1492, 2, 1) == (last_hammer + 1) % 10

    # Every Harptos month starts on First-day, festivals or not
    for year in (1, 1491, 1492, 1493, -7):
        for month in range(1, 13):
            assert eng.calculate_weekday(year, month, 1) == 0


def test_removing_non_counting_blocks_keeps_weekdays(make, harptos):
    doc = harptos.to_dict()
    doc["intercalary"] = []
    plain = make(CalendarDefinition.from_dict(doc))
    eng = make(harptos)
    random.seed(42)
    for _ in range(300):
        y, m, d = random.randint(-2000, 2000), random.randint(1, 12), random.randint(1, 30)
        assert eng.calculate_weekday(y, m, d) == plain.calculate_weekday(y, m, d)


def test_counting_block_advances(make, small):
    eng = make(small)
    last_c = eng.calculate_weekday(5, 3, 10)
    # Eve (one counting day) sits between C 10 and D 1
    assert eng.calculate_weekday(5, 4, 1) == (last_c + 2) % 5
    last_a = eng.calculate_weekday(5, 2, 10)
    # Fest (two days) is outside the week
    assert eng.calculate_weekday(5, 3, 1) == (last_a + 1) % 5


def test_start_day_of_epoch(make, small):
    assert make(small).calculate_weekday(0, 1, 1) == 2


def test_out_of_range_month_is_normalized(make, gregorian):
    eng = make(gregorian)
    assert eng.calculate_weekday(2024, 13, 1) == eng.calculate_weekday(2025, 1, 1)
    assert eng.calculate_weekday(2024, 0, 1) == eng.calculate_weekday(2023, 12, 1)


def test_registered_weekday_offset(make, compat, golarion):
    plain = make(golarion)
    compat.register_adjustment("pf2e", golarion.id, CompatibilityAdjustment(weekday_offset=3))
    adjusted = make(golarion, system_id="pf2e")
    for day in range(1, 15):
        raw = plain.calculate_weekday(4725, 3, day)
        assert adjusted.raw_weekday(4725, 3, day) == raw
        assert adjusted.calculate_weekday(4725, 3, day) == (raw + 3) % 7
    assert adjusted.world_time_to_date(0).weekday == 3


def test_negative_offset_stays_in_range(make, compat, gregorian):
    compat.register_adjustment("sys", gregorian.id, CompatibilityAdjustment(weekday_offset=-1))
    eng = make(gregorian, system_id="sys")
    # 1970-01-01 is Thursday (4); shifted one back
    assert eng.calculate_weekday(1970, 1, 1) == 3
    assert all(0 <= eng.calculate_weekday(1970, 1, d) < 7 for d in range(1, 32))


def test_embedded_adjustment_wins(make, compat, gregorian):
    doc = gregorian.to_dict()
    doc["id"] = "greg-shifted"
    doc["compatibility"] = {"sys": {"weekdayOffset": 1, "description": "embedded"}}
    defn = CalendarDefinition.from_dict(doc)
    compat.register_adjustment("sys", "greg-shifted", CompatibilityAdjustment(weekday_offset=2))
    eng = make(defn, system_id="sys")
    assert eng.calculate_weekday(1970, 1, 1) == 5
    # a different system sees no adjustment
    assert make(defn, system_id="other").calculate_weekday(1970, 1, 1) == 4
