"""
fancal.compat.providers
-----------------------
Ready-made providers for hosts whose world starts at a real-world creation moment.

A host that records "the world was created at Unix time T" can anchor world time 0 at
the calendar's ``currentYear`` with the real month/day/time of T. ``install_creation_anchor``
wires the three providers such a host needs into a CompatibilityRegistry.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from fancal.core.time import utc_parts
from fancal.core.types import CalendarDefinition
from fancal.engines.rules import month_length
from .registry import WORLD_CREATION_TIMESTAMP, BaseDate, CompatibilityRegistry

logger = logging.getLogger(__name__)

TimestampSource = Callable[[], Optional[float]]


def real_date_base_provider(timestamp_source: TimestampSource,
                            definition: CalendarDefinition) -> Callable[[], Optional[BaseDate]]:
    """
    Base date = (definition.year.current_year, UTC month, UTC day, UTC time) of the creation timestamp.
    Returns None when the timestamp is unusable or the real month/day does not exist in the calendar.
    """
    def provide() -> Optional[BaseDate]:
        parts = utc_parts(timestamp_source())
        if parts is None:
            return None
        _, month, day, hour, minute, second = parts
        year = definition.year.current_year
        n = month_length(definition, year, month)
        if n is None or day > n:
            logger.debug("creation date %02d-%02d does not exist in calendar '%s'", month, day, definition.id)
            return None
        tc = definition.time
        if hour >= tc.hours_in_day or minute >= tc.minutes_in_hour or second >= tc.seconds_in_minute:
            return None
        return BaseDate(year, month, day, hour, minute, second)

    return provide


def creation_timestamp_transform(timestamp_source: TimestampSource) -> Callable[[int], Tuple[int, Optional[float]]]:
    """World time is passed through unchanged, paired with the creation timestamp."""
    def transform(world_time: int) -> Tuple[int, Optional[float]]:
        return world_time, timestamp_source()

    return transform


def install_creation_anchor(registry: CompatibilityRegistry, system_id: str,
                            timestamp_source: TimestampSource, definition: CalendarDefinition) -> bool:
    """Register timestamp, base-date and transform providers for ``system_id``. True if all were new."""
    results = [
        registry.register_data_provider(system_id, WORLD_CREATION_TIMESTAMP, timestamp_source),
        registry.register_base_date_provider(system_id, real_date_base_provider(timestamp_source, definition)),
        registry.register_world_time_transform(system_id, creation_timestamp_transform(timestamp_source)),
    ]
    return all(results)
