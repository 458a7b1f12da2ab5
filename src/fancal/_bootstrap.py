from __future__ import annotations

from typing import Optional

from fancal.compat.registry import CompatibilityRegistry
from fancal.core.engine import CalendarRegistry
from fancal.engines.factory import make_engine
from fancal.specs import ALL_SPECS


def build_registry(compat: Optional[CompatibilityRegistry] = None) -> CalendarRegistry:
    compat = compat if compat is not None else CompatibilityRegistry()
    engines = {}
    for name, spec in ALL_SPECS.items():
        engines[name] = make_engine(spec, compat=compat)
    return CalendarRegistry(engines)
