"""Diagnostics package.

- round_trip, pretty_month: always available, text output
- year_lengths: plot needs the diagnostics extras (matplotlib, numpy); --text works without
"""

__all__ = ["round_trip", "pretty_month", "year_lengths"]
