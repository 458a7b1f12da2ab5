"""fancal public API.

Keep this surface small: users should mostly interact with functions re-exported here.
"""

# Initialize registry on import
from . import api_init as _api_init  # noqa: F401

from .api import (
    list_calendars,
    calendar_info,
    get_engine,
    make_engine,
    register_calendar,
    world_time_to_date,
    date_to_world_time,
    make_date,
    format_date,
    compatibility,
    register_adjustment,
    register_base_date_provider,
    register_time_source,
    register_data_provider,
)
from .core.date import CalendarDate, TimeOfDay
from .core.errors import FancalError, CalendarConfigError, UnknownCalendarError, InvalidDateError
from .core.types import CalendarDefinition
from .engines.calendar import CalendarEngine
from .engines.clock import WorldClock
from .specs import load_definition

__all__ = [
    "list_calendars",
    "calendar_info",
    "get_engine",
    "make_engine",
    "register_calendar",
    "world_time_to_date",
    "date_to_world_time",
    "make_date",
    "format_date",
    "compatibility",
    "register_adjustment",
    "register_base_date_provider",
    "register_time_source",
    "register_data_provider",
    "CalendarDate",
    "TimeOfDay",
    "CalendarDefinition",
    "CalendarEngine",
    "WorldClock",
    "FancalError",
    "CalendarConfigError",
    "UnknownCalendarError",
    "InvalidDateError",
    "load_definition",
]
