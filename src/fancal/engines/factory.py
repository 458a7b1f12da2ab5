"""
fancal.engines.factory
----------------------
Transforms pure calendar definitions (or raw documents) into live engines.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from fancal.compat.registry import CompatibilityRegistry
from fancal.core.types import CalendarDefinition
from fancal.engines.calendar import CalendarEngine


def make_engine(
    spec: Union[CalendarDefinition, Mapping[str, Any]],
    *,
    compat: Optional[CompatibilityRegistry] = None,
    system_id: Optional[str] = None,
) -> CalendarEngine:
    """The universal entry point."""
    if not isinstance(spec, CalendarDefinition):
        spec = CalendarDefinition.from_dict(spec)
    return CalendarEngine(spec, compat, system_id=system_id)
