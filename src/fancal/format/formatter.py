"""
fancal.format.formatter
-----------------------
Template substitution for calendar dates.

Templates use a small moustache syntax:

    {{year}} {{month}} {{day}} {{weekday}} {{hour}} {{minute}} {{second}}
    {{intercalary}} {{dayOfYear}}

plus helpers taking an optional positional value and ``key=value`` options:

    {{ss-day format="ordinal"}}      ordinal | pad
    {{ss-month format="name"}}       name | abbr | pad
    {{ss-weekday format="abbr"}}     name | abbr
    {{ss-hour format="12hour"}}      pad | 12hour | 12hour-pad | ampm (am=, pm=)
    {{ss-minute format="pad"}}       pad
    {{ss-second format="pad"}}       pad
    {{ss-week format="ordinal"}}     pad | ordinal (daysPerWeek=)
    {{ss-dateFmt "name"}}            embed another named format

Named formats live in the definition's ``dateFormats``; a value may be a template
string or a mapping of variants. Intercalary dates prefer ``<name>-intercalary``.
Any template problem falls back to the basic format.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from fancal.core.date import CalendarDate
from fancal.core.errors import TemplateError
from fancal.core.types import CalendarDefinition
from fancal.engines.rules import month_lengths
from fancal.engines.weeks import ordinal

logger = logging.getLogger(__name__)

_TAG = re.compile(r"\{\{\s*(.*?)\s*\}\}")
_ARG = re.compile(
    r"""([A-Za-z][\w-]*)=(?:"([^"]*)"|'([^']*)'|([^\s"']+))"""   # key=value
    r"""|"([^"]*)"|'([^']*)'"""                                   # quoted positional
    r"""|([^\s"'=]+)"""                                           # bare word
)

WIDGETS = ("mini", "main", "grid")


def _parse_tag(body: str) -> Tuple[str, List[Any], Dict[str, Any]]:
    pos: List[Any] = []
    opts: Dict[str, Any] = {}
    end = 0
    for m in _ARG.finditer(body):
        if body[end:m.start()].strip():
            raise TemplateError(f"cannot parse '{{{{{body}}}}}'")
        end = m.end()
        key, v1, v2, v3, q1, q2, bare = m.groups()
        if key is not None:
            raw = v1 if v1 is not None else v2 if v2 is not None else v3
            opts[key] = int(raw) if (v3 is not None and raw.lstrip("-").isdigit()) else raw
        elif q1 is not None or q2 is not None:
            pos.append(q1 if q1 is not None else q2)
        else:
            pos.append(("word", bare))
    if body[end:].strip() or not pos:
        raise TemplateError(f"cannot parse '{{{{{body}}}}}'")
    head = pos.pop(0)
    if not (isinstance(head, tuple) and head[0] == "word"):
        raise TemplateError(f"tag must start with a name: '{{{{{body}}}}}'")
    return head[1], pos, opts


class DateFormatter:
    def __init__(self, definition: Optional[CalendarDefinition]):
        self.definition = definition
        self._helpers: Dict[str, Callable[[Dict[str, Any], Any, Dict[str, Any]], str]] = {
            "ss-day": self._h_day,
            "ss-month": self._h_month,
            "ss-weekday": self._h_weekday,
            "ss-hour": self._h_hour,
            "ss-minute": self._h_unit("minute"),
            "ss-second": self._h_unit("second"),
            "ss-week": self._h_week,
        }

    @property
    def formats(self) -> Mapping[str, Any]:
        return self.definition.date_formats if self.definition is not None else {}

    # ---------------------------------------------------------
    # Names
    # ---------------------------------------------------------

    def month_name(self, month: int) -> str:
        m = self.definition.month_def(month) if self.definition else None
        return m.name if m else f"Month {month}"

    def month_abbr(self, month: int) -> str:
        m = self.definition.month_def(month) if self.definition else None
        return m.abbr if m else f"M{month}"

    def weekday_name(self, weekday: int) -> str:
        w = self.definition.weekday_def(weekday) if self.definition else None
        return w.name if w else f"Day {weekday}"

    def weekday_abbr(self, weekday: int) -> str:
        w = self.definition.weekday_def(weekday) if self.definition else None
        return w.abbr if w else f"D{weekday}"

    def year_string(self, year: Any) -> str:
        return self.definition.year_string(year) if self.definition else str(year)

    def day_of_year(self, date: CalendarDate) -> int:
        d = self.definition
        if d is None or not (1 <= date.month <= len(d.months)):
            return 1
        if date.has_valid_year and float(date.year).is_integer():
            lengths = month_lengths(d, int(date.year))
        else:
            lengths = [m.days for m in d.months]
        return sum(lengths[: date.month - 1]) + date.day

    # ---------------------------------------------------------
    # Rendering
    # ---------------------------------------------------------

    def context(self, date: CalendarDate) -> Dict[str, Any]:
        return {
            "year": date.year,
            "month": date.month,
            "day": date.day,
            "weekday": date.weekday,
            "intercalary": date.intercalary,
            "hour": date.time.hour,
            "minute": date.time.minute,
            "second": date.time.second,
            "dayOfYear": self.day_of_year(date),
        }

    def render(self, date: CalendarDate, template: str, visited: FrozenSet[str] = frozenset()) -> str:
        """Strict rendering: raises TemplateError on unknown tags or unbalanced braces."""
        ctx = self.context(date)
        out: List[str] = []
        end = 0
        for m in _TAG.finditer(template):
            literal = template[end:m.start()]
            if "{{" in literal or "}}" in literal:
                raise TemplateError(f"unbalanced braces in template {template!r}")
            out.append(literal)
            out.append(self._render_tag(date, ctx, m.group(1), visited))
            end = m.end()
        tail = template[end:]
        if "{{" in tail or "}}" in tail:
            raise TemplateError(f"unbalanced braces in template {template!r}")
        out.append(tail)
        return "".join(out)

    def _render_tag(self, date: CalendarDate, ctx: Dict[str, Any], body: str, visited: FrozenSet[str]) -> str:
        name, pos, opts = _parse_tag(body)
        if name == "ss-dateFmt":
            target = pos[0] if pos else opts.get("name")
            if not isinstance(target, str) or not target:
                raise TemplateError("ss-dateFmt needs a format name")
            return self.format_named(date, target, _visited=visited)
        if name in self._helpers:
            value = None
            if pos:
                p = pos[0]
                if isinstance(p, tuple):
                    word = p[1]
                    value = int(word) if word.lstrip("-").isdigit() else ctx.get(word)
                else:
                    value = p
            return self._helpers[name](ctx, value, opts)
        if pos or opts:
            raise TemplateError(f"unknown helper '{name}'")
        if name not in ctx:
            raise TemplateError(f"unknown variable '{name}'")
        v = ctx[name]
        return "" if v is None else str(v)

    def format(self, date: CalendarDate, template: str, *, _visited: FrozenSet[str] = frozenset()) -> str:
        try:
            return self.render(date, template, _visited)
        except TemplateError as e:
            logger.warning("date template %r failed (%s); using basic format", template, e)
            return self.basic(date)

    @staticmethod
    def _pick(fmt: Any, variant: Optional[str]) -> Optional[str]:
        if isinstance(fmt, str):
            return fmt or None
        if isinstance(fmt, Mapping):
            if variant is not None and fmt.get(variant):
                return fmt[variant]
            if fmt.get("default"):
                return fmt["default"]
            for v in fmt.values():
                if isinstance(v, str) and v:
                    return v
        return None

    def format_named(self, date: CalendarDate, name: str, variant: Optional[str] = None, *,
                     _visited: FrozenSet[str] = frozenset()) -> str:
        if name in _visited:
            logger.warning("circular date format reference via '%s'", name)
            return self.basic(date)
        formats = self.formats

        if date.intercalary is not None:
            iname = f"{name}-intercalary"
            if iname not in _visited:
                tpl = self._pick(formats.get(iname), variant)
                if tpl is not None:
                    return self.format(date, tpl, _visited=_visited | {iname})

        tpl = self._pick(formats.get(name), variant)
        if tpl is None:
            return self.basic(date)
        return self.format(date, tpl, _visited=_visited | {name})

    def format_widget(self, date: CalendarDate, widget: str) -> str:
        widgets = self.formats.get("widgets")
        if not isinstance(widgets, Mapping):
            return self.basic(date)
        if date.intercalary is not None and widgets.get(f"{widget}-intercalary"):
            return self.format(date, widgets[f"{widget}-intercalary"])
        tpl = widgets.get(widget)
        if not tpl:
            return self.basic(date)
        return self.format(date, tpl)

    # ---------------------------------------------------------
    # Fixed shapes
    # ---------------------------------------------------------

    def basic(self, date: CalendarDate) -> str:
        if date.intercalary is not None:
            return date.intercalary
        if self.definition is None:
            return f"{date.year}-{date.month:02d}-{date.day:02d}"
        return (f"{self.weekday_name(date.weekday)}, {ordinal(date.day)} "
                f"{self.month_name(date.month)} {self.year_string(date.year)}")

    def short(self, date: CalendarDate) -> str:
        widgets = self.formats.get("widgets")
        if isinstance(widgets, Mapping) and widgets.get("mini"):
            return self.format_widget(date, "mini")
        if date.intercalary is not None:
            return f"{date.intercalary} {self.year_string(date.year)}"
        return f"{date.day} {self.month_abbr(date.month)} {self.year_string(date.year)}"

    def long(self, date: CalendarDate) -> str:
        widgets = self.formats.get("widgets")
        if isinstance(widgets, Mapping) and widgets.get("main"):
            return self.format_widget(date, "main")
        return f"{self.basic(date)} {date.time}"

    def date_string(self, date: CalendarDate) -> str:
        if "date" in self.formats:
            return self.format_named(date, "date")
        return self.basic(date)

    def time_string(self, date: CalendarDate) -> str:
        if "time" in self.formats:
            return self.format_named(date, "time")
        return str(date.time)

    # ---------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------

    @staticmethod
    def _int(ctx: Dict[str, Any], key: str, value: Any, default: int) -> int:
        v = ctx.get(key) if value is None else value
        if v is None or (isinstance(v, float) and math.isnan(v)):
            return default
        try:
            return int(v)
        except (TypeError, ValueError) as e:
            raise TemplateError(f"{key} value {v!r} is not a number") from e

    def _h_day(self, ctx, value, opts) -> str:
        day = self._int(ctx, "day", value, 1)
        fmt = opts.get("format")
        if fmt == "ordinal":
            return ordinal(day)
        if fmt == "pad":
            return f"{day:02d}"
        return str(day)

    def _h_month(self, ctx, value, opts) -> str:
        month = self._int(ctx, "month", value, 1)
        fmt = opts.get("format")
        if fmt == "name":
            return self.month_name(month)
        if fmt == "abbr":
            return self.month_abbr(month)
        if fmt == "pad":
            return f"{month:02d}"
        return str(month)

    def _h_weekday(self, ctx, value, opts) -> str:
        wd = self._int(ctx, "weekday", value, 0)
        fmt = opts.get("format")
        if fmt == "name":
            return self.weekday_name(wd)
        if fmt == "abbr":
            return self.weekday_abbr(wd)
        return str(wd)

    def _h_hour(self, ctx, value, opts) -> str:
        hour = self._int(ctx, "hour", value, 0)
        fmt = opts.get("format")
        if fmt == "pad":
            return f"{hour:02d}"
        if fmt in ("12hour", "12hour-pad"):
            h12 = hour % 12 or 12
            return f"{h12:02d}" if fmt == "12hour-pad" else str(h12)
        if fmt == "ampm":
            return str(opts.get("am", "AM")) if hour < 12 else str(opts.get("pm", "PM"))
        return str(hour)

    def _h_unit(self, key: str) -> Callable[[Dict[str, Any], Any, Dict[str, Any]], str]:
        def helper(ctx, value, opts) -> str:
            v = self._int(ctx, key, value, 0)
            return f"{v:02d}" if opts.get("format") == "pad" else str(v)
        return helper

    def _h_week(self, ctx, value, opts) -> str:
        day = self._int(ctx, "day", value, 1)
        per_week = self.definition.weekday_count if self.definition else 7
        if opts.get("daysPerWeek"):
            per_week = int(opts["daysPerWeek"])
        week = -(-day // per_week)
        fmt = opts.get("format")
        if fmt == "pad":
            return f"{week:02d}"
        if fmt == "ordinal":
            return ordinal(week)
        return str(week)
