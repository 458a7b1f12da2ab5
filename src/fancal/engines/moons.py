"""
fancal.engines.moons
--------------------
Moon phase tracking by whole-day distance from a reference new moon.

Cycle and phase lengths may be fractional. Boundaries use a 1e-6 day tolerance and
reported day counts are rounded to 1e-6 so that accumulated float error never flips
a date into the neighbouring phase.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from fancal.core.date import CalendarDate
from fancal.core.types import MoonDef, MoonPhase

if TYPE_CHECKING:
    from fancal.engines.calendar import CalendarEngine

_TOL = 1e-6
_PRECISION = 1_000_000


@dataclass(frozen=True)
class MoonPhaseInfo:
    moon: MoonDef
    phase: MoonPhase
    phase_index: int
    day_in_phase: int
    day_in_phase_exact: float
    days_until_next: int
    days_until_next_exact: float
    phase_progress: float


def _clean(x: float) -> float:
    r = round(x * _PRECISION) / _PRECISION
    if r == 0 or not math.isfinite(r):
        return 0.0
    return r


def moon_phase(engine: "CalendarEngine", moon: MoonDef, date: CalendarDate) -> MoonPhaseInfo:
    y, m, d = moon.first_new_moon
    ref = CalendarDate(y, m, d)
    elapsed = engine.date_to_days(date) - engine.date_to_days(ref)
    pos = elapsed % moon.cycle_length  # non-negative for a positive cycle

    start = 0.0
    index = len(moon.phases) - 1
    for i, phase in enumerate(moon.phases):
        end = start + phase.length
        if pos < end - _TOL or i == len(moon.phases) - 1:
            index = i
            break
        start = end

    phase = moon.phases[index]
    in_phase = min(max(_clean(pos - start), 0.0), phase.length)
    until_next = max(_clean(phase.length - in_phase), 0.0)
    progress = min(max(in_phase / phase.length, 0.0), 1.0) if phase.length > 0 else 0.0
    return MoonPhaseInfo(
        moon=moon,
        phase=phase,
        phase_index=index,
        day_in_phase=math.floor(in_phase),
        day_in_phase_exact=in_phase,
        days_until_next=max(math.ceil(until_next), 0),
        days_until_next_exact=until_next,
        phase_progress=progress,
    )


def moon_phases(engine: "CalendarEngine", date: CalendarDate, moon_name: Optional[str] = None) -> List[MoonPhaseInfo]:
    moons = engine.definition.moons
    if moon_name is not None:
        moons = tuple(mn for mn in moons if mn.name == moon_name)
    return [moon_phase(engine, mn, date) for mn in moons]
