"""
fancal.compat.registry
----------------------
Keyed registry of host-system adjustments and data providers.

Two tables live here:

* adjustments, keyed by (system_id, calendar_id): static weekday / date-formatting
  offsets. A calendar may also embed its own per-system adjustments; those win.
* data providers, keyed by (system_id, key): zero-argument callables (or, for the
  world-time transform, a one-argument callable) queried at conversion time. The
  well-known keys have typed wrappers: ``systemBaseDate``, ``externalTimeSource``,
  ``worldTimeTransform``.

Registration policy: the first registration for a key wins. A second ``register_*``
call for the same key is logged and ignored (returns False); ``update_*`` replaces
explicitly and ``unregister_*`` removes.

All table access goes through one lock and each lookup copies what it needs before
releasing it, so a provider may itself register or unregister without deadlocking.
Providers that raise are logged and treated as absent.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple, Union

from fancal.core.date import CalendarDate
from fancal.core.types import CalendarDefinition, CompatibilityAdjustment

logger = logging.getLogger(__name__)

SYSTEM_BASE_DATE = "systemBaseDate"
EXTERNAL_TIME_SOURCE = "externalTimeSource"
WORLD_TIME_TRANSFORM = "worldTimeTransform"
WORLD_CREATION_TIMESTAMP = "worldCreationTimestamp"


@dataclass(frozen=True)
class BaseDate:
    """Calendar date/time that a host system treats as world time 0."""
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    @classmethod
    def from_value(cls, value: Any) -> Optional["BaseDate"]:
        if value is None or isinstance(value, BaseDate):
            return value
        if isinstance(value, Mapping):
            return cls(
                year=int(value["year"]),
                month=int(value["month"]),
                day=int(value["day"]),
                hour=int(value.get("hour", 0) or 0),
                minute=int(value.get("minute", 0) or 0),
                second=int(value.get("second", 0) or 0),
            )
        raise TypeError(f"cannot interpret {type(value).__name__} as a base date")


class BaseDateProvider(Protocol):
    def __call__(self) -> Union[BaseDate, Mapping[str, Any], None]: ...


class TimeSourceProvider(Protocol):
    def __call__(self) -> Optional[int]: ...


class WorldTimeTransform(Protocol):
    def __call__(self, world_time: int) -> Tuple[int, Optional[float]]: ...


class CompatibilityRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._adjustments: Dict[Tuple[str, str], CompatibilityAdjustment] = {}
        self._providers: Dict[Tuple[str, str], Callable[..., Any]] = {}

    # ---------------------------------------------------------
    # Adjustments
    # ---------------------------------------------------------

    def register_adjustment(self, system_id: str, calendar_id: str, adjustment: CompatibilityAdjustment) -> bool:
        key = (system_id, calendar_id)
        with self._lock:
            if key in self._adjustments:
                logger.warning("adjustment for %s:%s already registered; ignoring duplicate", *key)
                return False
            self._adjustments[key] = adjustment
        logger.debug("registered adjustment for %s:%s (%s)", system_id, calendar_id, adjustment)
        return True

    def update_adjustment(self, system_id: str, calendar_id: str, adjustment: CompatibilityAdjustment) -> None:
        with self._lock:
            self._adjustments[(system_id, calendar_id)] = adjustment

    def unregister_adjustment(self, system_id: str, calendar_id: str) -> bool:
        with self._lock:
            return self._adjustments.pop((system_id, calendar_id), None) is not None

    def get_adjustment(self, definition: CalendarDefinition,
                       system_id: Optional[str]) -> Optional[CompatibilityAdjustment]:
        """Calendar-embedded adjustment for ``system_id`` first, then the runtime registration."""
        if not system_id:
            return None
        embedded = definition.compatibility.get(system_id)
        if embedded is not None:
            return embedded
        with self._lock:
            return self._adjustments.get((system_id, definition.id))

    def apply_weekday_adjustment(self, weekday: int, definition: CalendarDefinition,
                                 system_id: Optional[str]) -> int:
        adj = self.get_adjustment(definition, system_id)
        if adj is None or not adj.weekday_offset:
            return weekday
        return (weekday + adj.weekday_offset) % definition.weekday_count

    def apply_date_format_adjustment(self, date: CalendarDate, definition: CalendarDefinition,
                                     system_id: Optional[str]) -> CalendarDate:
        """Shift month/day by the registered display offsets; the result is for display only."""
        adj = self.get_adjustment(definition, system_id)
        if adj is None or adj.date_formatting is None:
            return date
        fmt = adj.date_formatting
        return date.replace(month=date.month + fmt.month_offset, day=date.day + fmt.day_offset)

    def list_adjustments(self) -> Dict[str, CompatibilityAdjustment]:
        with self._lock:
            return {f"{s}:{c}": adj for (s, c), adj in sorted(self._adjustments.items())}

    # ---------------------------------------------------------
    # Data providers (generic)
    # ---------------------------------------------------------

    def register_data_provider(self, system_id: str, key: str, fn: Callable[..., Any]) -> bool:
        k = (system_id, key)
        with self._lock:
            if k in self._providers:
                logger.warning("data provider %s for system '%s' already registered; ignoring duplicate",
                               key, system_id)
                return False
            self._providers[k] = fn
        logger.debug("registered data provider %s for system '%s'", key, system_id)
        return True

    def update_data_provider(self, system_id: str, key: str, fn: Callable[..., Any]) -> None:
        with self._lock:
            self._providers[(system_id, key)] = fn

    def unregister_data_provider(self, system_id: str, key: str) -> bool:
        with self._lock:
            return self._providers.pop((system_id, key), None) is not None

    def has_data_provider(self, system_id: Optional[str], key: str) -> bool:
        if not system_id:
            return False
        with self._lock:
            return (system_id, key) in self._providers

    def _provider(self, system_id: Optional[str], key: str) -> Optional[Callable[..., Any]]:
        if not system_id:
            return None
        with self._lock:
            return self._providers.get((system_id, key))

    def get_system_data(self, system_id: Optional[str], key: str) -> Any:
        fn = self._provider(system_id, key)
        if fn is None:
            return None
        try:
            return fn()
        except Exception:
            logger.warning("data provider %s for system '%s' failed", key, system_id, exc_info=True)
            return None

    # ---------------------------------------------------------
    # Typed providers
    # ---------------------------------------------------------

    def register_base_date_provider(self, system_id: str, fn: BaseDateProvider) -> bool:
        return self.register_data_provider(system_id, SYSTEM_BASE_DATE, fn)

    def register_time_source(self, system_id: str, fn: TimeSourceProvider) -> bool:
        return self.register_data_provider(system_id, EXTERNAL_TIME_SOURCE, fn)

    def register_world_time_transform(self, system_id: str, fn: WorldTimeTransform) -> bool:
        return self.register_data_provider(system_id, WORLD_TIME_TRANSFORM, fn)

    def base_date(self, system_id: Optional[str]) -> Optional[BaseDate]:
        raw = self.get_system_data(system_id, SYSTEM_BASE_DATE)
        try:
            return BaseDate.from_value(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("base date provider for system '%s' returned unusable value %r", system_id, raw)
            return None

    def external_time(self, system_id: Optional[str]) -> Optional[int]:
        raw = self.get_system_data(system_id, EXTERNAL_TIME_SOURCE)
        if raw is None:
            return None
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
            logger.warning("time source for system '%s' returned non-numeric value %r", system_id, raw)
            return None
        return math.floor(raw)

    def transform_world_time(self, system_id: Optional[str], world_time: int) -> Tuple[int, Optional[float]]:
        """Apply a system's world-time transform. Returns (world_time, creation_timestamp or None)."""
        fn = self._provider(system_id, WORLD_TIME_TRANSFORM)
        if fn is None:
            return world_time, None
        try:
            wt, ts = fn(world_time)
            return wt, ts
        except Exception:
            logger.warning("world time transform for system '%s' failed", system_id, exc_info=True)
            return world_time, None

    # ---------------------------------------------------------
    # Introspection
    # ---------------------------------------------------------

    def debug_info(self, definition: CalendarDefinition, system_id: Optional[str]) -> Dict[str, Any]:
        adj = self.get_adjustment(definition, system_id)
        with self._lock:
            keys: List[str] = sorted(k for (s, k) in self._providers if s == system_id)
            registered = sorted(f"{s}:{c}" for (s, c) in self._adjustments)
        return {
            "system_id": system_id,
            "calendar_id": definition.id,
            "adjustment": None if adj is None else {
                "weekday_offset": adj.weekday_offset,
                "date_formatting": adj.date_formatting,
                "description": adj.description,
                "provider": adj.provider,
            },
            "data_providers": keys,
            "registered_adjustments": registered,
        }
