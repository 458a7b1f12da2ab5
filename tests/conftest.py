# tests/conftest.py

import copy

import pytest

from fancal.compat.registry import CompatibilityRegistry
from fancal.core.types import CalendarDefinition
from fancal.engines.calendar import CalendarEngine
from fancal.specs import ALL_SPECS

# Four 10-day months, a 5-day week and three kinds of intercalary block:
#   Fest      2 days after B, outside the week
#   Eve       1 day before D, counts for weekdays
#   Leapfest  1 day after D in leap years only, outside the week
# Leap years (every 4th, from year 0) also give B an extra day.
SMALL_DOC = {
    "id": "small",
    "year": {"epoch": 0, "currentYear": 10, "startDay": 2},
    "leapYear": {"rule": "custom", "interval": 4, "month": "B", "extraDays": 1},
    "months": [{"name": n, "days": 10} for n in ("A", "B", "C", "D")],
    "weekdays": [{"name": f"W{i}"} for i in range(5)],
    "intercalary": [
        {"name": "Fest", "after": "B", "days": 2, "leapYearOnly": False, "countsForWeekdays": False},
        {"name": "Eve", "before": "D", "days": 1, "leapYearOnly": False},
        {"name": "Leapfest", "after": "D", "days": 1, "leapYearOnly": True, "countsForWeekdays": False},
    ],
    "time": {"hoursInDay": 24, "minutesInHour": 60, "secondsInMinute": 60},
}


@pytest.fixture
def small_doc():
    return copy.deepcopy(SMALL_DOC)


@pytest.fixture
def small(small_doc):
    return CalendarDefinition.from_dict(small_doc)


@pytest.fixture
def gregorian():
    return ALL_SPECS["gregorian"]


@pytest.fixture
def golarion():
    return ALL_SPECS["golarion-pf2e"]


@pytest.fixture
def harptos():
    return ALL_SPECS["harptos"]


@pytest.fixture
def compat():
    return CompatibilityRegistry()


@pytest.fixture
def make(compat):
    """Engine factory bound to a fresh, test-local compatibility registry."""
    def _make(defn, system_id=None):
        return CalendarEngine(defn, compat, system_id=system_id)
    return _make
