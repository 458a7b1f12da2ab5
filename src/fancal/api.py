from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .compat.registry import BaseDateProvider, CompatibilityRegistry, TimeSourceProvider
from .core.date import CalendarDate, TimeOfDay
from .core.engine import CalendarRegistry
from .core.types import CalendarDefinition, CompatibilityAdjustment, DateFormatAdjustment
from .engines.calendar import CalendarEngine
from .engines.factory import make_engine as _make_engine

DEFAULT_CALENDAR = "gregorian"

_registry: Optional[CalendarRegistry] = None
_compat: Optional[CompatibilityRegistry] = None

# (calendar, system_id) -> (registered engine, engine bound to system_id)
_system_engines: Dict[Tuple[str, str], Tuple[CalendarEngine, CalendarEngine]] = {}
_system_lock = threading.Lock()


def set_registry(reg: CalendarRegistry, compat: Optional[CompatibilityRegistry] = None) -> None:
    global _registry, _compat
    _registry = reg
    with _system_lock:
        _system_engines.clear()
    if compat is not None:
        _compat = compat


def _reg() -> CalendarRegistry:
    if _registry is None:
        raise RuntimeError("Calendar registry not initialized")
    return _registry


def compatibility() -> CompatibilityRegistry:
    """The process-wide compatibility registry shared by engines built through this module."""
    global _compat
    if _compat is None:
        _compat = CompatibilityRegistry()
    return _compat


def list_calendars() -> List[str]:
    return _reg().list()


def calendar_info(calendar: str) -> Dict[str, Any]:
    return _reg().get(calendar).info()


def get_engine(calendar: str = DEFAULT_CALENDAR, *, system_id: Optional[str] = None) -> CalendarEngine:
    eng = _reg().get(calendar)
    if system_id is None or system_id == eng.system_id:
        return eng
    key = (calendar, system_id)
    with _system_lock:
        hit = _system_engines.get(key)
        if hit is not None and hit[0] is eng:
            return hit[1]
        derived = eng.with_system(system_id)
        _system_engines[key] = (eng, derived)
        return derived


def make_engine(spec: Union[CalendarDefinition, Mapping[str, Any]], *, system_id: Optional[str] = None) -> CalendarEngine:
    return _make_engine(spec, compat=compatibility(), system_id=system_id)


def register_calendar(
    name: str,
    calendar: Union[CalendarEngine, CalendarDefinition, Mapping[str, Any]],
    *,
    overwrite: bool = False,
) -> CalendarEngine:
    eng = calendar if isinstance(calendar, CalendarEngine) else make_engine(calendar)
    _reg().register(name, eng, overwrite=overwrite)
    return eng


# ============================================================
# Conversions
# ============================================================

def world_time_to_date(
    world_time: int,
    *,
    calendar: str = DEFAULT_CALENDAR,
    creation_timestamp: Optional[float] = None,
    system_id: Optional[str] = None,
) -> CalendarDate:
    return get_engine(calendar, system_id=system_id).world_time_to_date(world_time, creation_timestamp)


def date_to_world_time(
    date: CalendarDate,
    *,
    calendar: str = DEFAULT_CALENDAR,
    creation_timestamp: Optional[float] = None,
    system_id: Optional[str] = None,
) -> int:
    return get_engine(calendar, system_id=system_id).date_to_world_time(date, creation_timestamp)


def make_date(
    year: int,
    month: int,
    day: int,
    *,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    intercalary: Optional[str] = None,
    calendar: str = DEFAULT_CALENDAR,
) -> CalendarDate:
    """Build a date on ``calendar`` with its weekday filled in (0 for intercalary days)."""
    eng = get_engine(calendar)
    weekday = 0 if intercalary is not None else eng.calculate_weekday(year, month, day)
    return CalendarDate(year, month, day, weekday, intercalary, TimeOfDay(hour, minute, second), eng.definition)


def format_date(date: CalendarDate, template: Optional[str] = None, *, name: Optional[str] = None,
                variant: Optional[str] = None) -> str:
    return date.format(template, name=name, variant=variant)


# ============================================================
# Compatibility registration
# ============================================================

def register_adjustment(
    system_id: str,
    calendar_id: str,
    *,
    weekday_offset: int = 0,
    month_offset: int = 0,
    day_offset: int = 0,
    description: Optional[str] = None,
) -> bool:
    fmt = DateFormatAdjustment(month_offset, day_offset) if (month_offset or day_offset) else None
    adj = CompatibilityAdjustment(weekday_offset, fmt, description, provider="registered")
    return compatibility().register_adjustment(system_id, calendar_id, adj)


def register_base_date_provider(system_id: str, fn: BaseDateProvider) -> bool:
    return compatibility().register_base_date_provider(system_id, fn)


def register_time_source(system_id: str, fn: TimeSourceProvider) -> bool:
    return compatibility().register_time_source(system_id, fn)


def register_data_provider(system_id: str, key: str, fn: Callable[..., Any]) -> bool:
    return compatibility().register_data_provider(system_id, key, fn)
