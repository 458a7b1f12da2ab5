"""
fancal.specs
------------
Built-in calendar definitions, shipped as JSON package data under ``fancal.data``.
"""

from __future__ import annotations

import importlib
import importlib.resources
import json
import logging
from pathlib import Path
from typing import Dict, Union

from fancal.core.errors import CalendarConfigError
from fancal.core.types import CalendarDefinition

logger = logging.getLogger(__name__)

BUILTIN_IDS = ("gregorian", "golarion-pf2e", "harptos")


def load_builtin(calendar_id: str) -> CalendarDefinition:
    pkg = importlib.import_module("fancal.data")
    path = importlib.resources.files(pkg).joinpath(f"{calendar_id}.json")
    with path.open("r", encoding="utf-8") as f:
        return CalendarDefinition.from_dict(json.load(f))


def load_definition(path: Union[str, Path]) -> CalendarDefinition:
    """Read a calendar document from a local JSON file."""
    p = Path(path).expanduser()
    try:
        with p.open("r", encoding="utf-8") as f:
            doc = json.load(f)
    except json.JSONDecodeError as e:
        raise CalendarConfigError(f"{p}: not valid JSON ({e})") from e
    logger.debug("loaded calendar '%s' from %s", doc.get("id") if isinstance(doc, dict) else None, p)
    return CalendarDefinition.from_dict(doc)


ALL_SPECS: Dict[str, CalendarDefinition] = {cid: load_builtin(cid) for cid in BUILTIN_IDS}
