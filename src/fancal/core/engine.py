from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .date import CalendarDate
from .errors import DuplicateRegistrationError, UnknownCalendarError
from .types import CalendarDefinition


class CalendarEngineProtocol(Protocol):
    definition: CalendarDefinition

    def info(self) -> Dict[str, Any]: ...
    def world_time_to_date(self, world_time: Any, world_creation_timestamp: Optional[float] = None) -> CalendarDate: ...
    def date_to_world_time(self, date: CalendarDate, world_creation_timestamp: Optional[float] = None) -> int: ...
    def calculate_weekday(self, year: int, month: int, day: int) -> int: ...


@dataclass
class CalendarRegistry:
    """Calendar id -> engine. Replacing an entry swaps the reference; engines are never mutated."""
    _engines: Dict[str, CalendarEngineProtocol]
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def get(self, name: str) -> CalendarEngineProtocol:
        with self._lock:
            if name not in self._engines:
                raise UnknownCalendarError(f"Unknown calendar '{name}'. Available: {sorted(self._engines)}")
            return self._engines[name]

    def list(self) -> List[str]:
        with self._lock:
            return sorted(self._engines.keys())

    def register(self, name: str, engine: CalendarEngineProtocol, *, overwrite: bool = False) -> None:
        with self._lock:
            if (not overwrite) and (name in self._engines):
                raise DuplicateRegistrationError(
                    f"Calendar '{name}' already exists. Use overwrite=True to replace."
                )
            self._engines[name] = engine

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._engines.pop(name, None) is not None
