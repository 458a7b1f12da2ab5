class FancalError(Exception):
    """Base error."""

class CalendarConfigError(FancalError, ValueError):
    """Raised when a calendar definition is structurally invalid."""

class UnknownCalendarError(FancalError, KeyError):
    """Raised when a calendar id is not registered."""

class DuplicateRegistrationError(FancalError, KeyError):
    """Raised when a calendar id is registered twice without overwrite=True."""

class InvalidDateError(FancalError, ValueError):
    """Raised when a date cannot be placed on the calendar (NaN year, unknown month)."""

class TemplateError(FancalError):
    """Raised for malformed date-format templates."""
