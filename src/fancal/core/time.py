from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from .types import TimeConfig


def split_seconds(seconds: int, tc: TimeConfig) -> Tuple[int, int, int, int]:
    """Split signed seconds into (days, hour, minute, second); the time part is never negative."""
    days, rem = divmod(seconds, tc.seconds_per_day)
    hour, rem = divmod(rem, tc.seconds_per_hour)
    minute, second = divmod(rem, tc.seconds_in_minute)
    return days, hour, minute, second


def time_to_seconds(hour: int, minute: int, second: int, tc: TimeConfig) -> int:
    return hour * tc.seconds_per_hour + minute * tc.seconds_in_minute + second


def to_int_seconds(world_time: Any) -> int:
    """Floor a world time (int, float, numeric string) to whole seconds."""
    if isinstance(world_time, int) and not isinstance(world_time, bool):
        return world_time
    return math.floor(float(world_time))


def is_valid_timestamp(ts: Any) -> bool:
    return utc_parts(ts) is not None


def utc_parts(ts: Any) -> Optional[Tuple[int, int, int, int, int, int]]:
    """
    Unix seconds -> (year, month, day, hour, minute, second) in UTC.
    Returns None when the value is not a usable timestamp (non-numeric, non-finite, out of range).
    """
    if isinstance(ts, bool):
        return None
    try:
        value = float(ts)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    try:
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second
