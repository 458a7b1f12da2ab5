"""
fancal.engines.clock
--------------------
WorldClock: the host-facing holder of "now".

It owns the current world time (seconds) and a reference to the active CalendarEngine.
Switching calendars swaps the engine reference under the clock's lock; conversions
already running against the old engine finish on the old definition.

When the active system registers an external time source, that value replaces the
stored world time for reads. A registered world-time transform is applied last and may
supply a world creation timestamp for re-basing.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Tuple

from fancal.core.date import CalendarDate, TimeOfDay
from fancal.core.time import time_to_seconds, to_int_seconds
from fancal.engines.calendar import CalendarEngine

logger = logging.getLogger(__name__)

Listener = Callable[[CalendarDate], None]


class WorldClock:
    def __init__(self, engine: CalendarEngine, world_time: int = 0):
        self._lock = threading.RLock()
        self._engine = engine
        self._world_time = to_int_seconds(world_time)
        self._listeners: List[Listener] = []

    # ---------------------------------------------------------
    # State
    # ---------------------------------------------------------

    @property
    def engine(self) -> CalendarEngine:
        with self._lock:
            return self._engine

    @property
    def world_time(self) -> int:
        with self._lock:
            return self._world_time

    def swap_engine(self, engine: CalendarEngine) -> CalendarEngine:
        """Install ``engine`` and return the previous one."""
        with self._lock:
            old, self._engine = self._engine, engine
        logger.info("active calendar: %s -> %s", old.definition.id, engine.definition.id)
        self._notify()
        return old

    def set_world_time(self, world_time: int) -> None:
        with self._lock:
            self._world_time = to_int_seconds(world_time)
        self._notify()

    def _snapshot(self) -> Tuple[CalendarEngine, int]:
        with self._lock:
            return self._engine, self._world_time

    def effective_world_time(self) -> Tuple[int, Optional[float]]:
        """World time after external time source and transform, with the creation timestamp if any."""
        engine, wt = self._snapshot()
        external = engine.compat.external_time(engine.system_id)
        if external is not None:
            wt = external
        return engine.compat.transform_world_time(engine.system_id, wt)

    def current_date(self) -> CalendarDate:
        engine = self.engine
        wt, ts = self.effective_world_time()
        return engine.world_time_to_date(wt, ts)

    def set_date(self, date: CalendarDate) -> int:
        """Move the clock to ``date``; returns the new stored world time."""
        engine, wt = self._snapshot()
        _, ts = engine.compat.transform_world_time(engine.system_id, wt)
        target = engine.date_to_world_time(date, ts)
        self.set_world_time(target)
        return target

    # ---------------------------------------------------------
    # Advancing
    # ---------------------------------------------------------

    def advance_seconds(self, seconds: int) -> int:
        with self._lock:
            self._world_time += int(seconds)
            wt = self._world_time
        self._notify()
        return wt

    def advance_minutes(self, minutes: int) -> int:
        return self.advance_seconds(minutes * self.engine.definition.time.seconds_in_minute)

    def advance_hours(self, hours: int) -> int:
        return self.advance_seconds(hours * self.engine.definition.time.seconds_per_hour)

    def advance_days(self, days: int) -> int:
        return self.advance_seconds(days * self.engine.definition.seconds_per_day)

    def advance_weeks(self, weeks: int) -> int:
        return self.advance_days(weeks * self.engine.definition.weekday_count)

    def advance_months(self, months: int) -> int:
        engine = self.engine
        return self.set_date(engine.add_months(self.current_date(), months))

    def advance_years(self, years: int) -> int:
        engine = self.engine
        return self.set_date(engine.add_years(self.current_date(), years))

    def set_time_of_day(self, hour: int, minute: int = 0, second: int = 0) -> int:
        tc = self.engine.definition.time
        if not (0 <= hour < tc.hours_in_day and 0 <= minute < tc.minutes_in_hour and 0 <= second < tc.seconds_in_minute):
            raise ValueError(f"time {hour}:{minute}:{second} outside the calendar's day")
        return self.set_date(self.current_date().replace(time=TimeOfDay(hour, minute, second)))

    def day_progress(self) -> float:
        """Fraction of the current day elapsed, in [0, 1)."""
        engine = self.engine
        t = self.current_date().time
        return time_to_seconds(t.hour, t.minute, t.second, engine.definition.time) / engine.definition.seconds_per_day

    # ---------------------------------------------------------
    # Listeners
    # ---------------------------------------------------------

    def add_listener(self, fn: Listener) -> None:
        with self._lock:
            self._listeners.append(fn)

    def remove_listener(self, fn: Listener) -> bool:
        with self._lock:
            if fn in self._listeners:
                self._listeners.remove(fn)
                return True
            return False

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        date = self.current_date()
        for fn in listeners:
            try:
                fn(date)
            except Exception:
                logger.warning("clock listener %r failed", fn, exc_info=True)
