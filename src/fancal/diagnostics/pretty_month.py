from __future__ import annotations

import argparse
from typing import List, Tuple

from fancal.cli import add_calendar_args, engine_from_args
from fancal.engines.calendar import CalendarEngine


def dow_header(engine: CalendarEngine, w: int = 4) -> str:
    return " ".join(wd.abbr[:w].ljust(w) for wd in engine.definition.weekdays)


def month_grid(engine: CalendarEngine, year: int, month: int, w: int = 4) -> List[str]:
    """Rows of day numbers laid out under the weekday columns."""
    n = engine.get_month_length(year, month)
    if n is None:
        raise SystemExit(f"month {month} out of range for calendar '{engine.definition.id}'")
    cols = engine.definition.weekday_count

    rows: List[str] = []
    wk: List[str] = [" " * w] * engine.raw_weekday(year, month, 1)
    for day in range(1, n + 1):
        wk.append(f"{day:>{w - 1}d} ")
        if len(wk) == cols:
            rows.append(" ".join(wk).rstrip())
            wk = []
    if wk:
        rows.append(" ".join(wk).rstrip())
    return rows


def blocks_near(engine: CalendarEngine, year: int, month: int) -> List[Tuple[str, str, int]]:
    """(placement, name, days) of intercalary blocks attached to the month this year."""
    return [(s.placement, s.name, s.length) for s in engine.year_summary(year).segments
            if s.kind == "intercalary" and s.month == month]


def print_month(engine: CalendarEngine, year: int, month: int) -> None:
    d = engine.definition
    title = f"{d.months[month - 1].name} {d.year_string(year)}   ({d.id})"
    blocks = blocks_near(engine, year, month)
    print(title)
    for placement, name, days in blocks:
        if placement == "before":
            print(f"  [before] {name} ({days} day{'s' if days != 1 else ''})")
    header = dow_header(engine)
    print(header)
    print("-" * len(header))
    for row in month_grid(engine, year, month):
        print(row)
    for placement, name, days in blocks:
        if placement == "after":
            print(f"  [after]  {name} ({days} day{'s' if days != 1 else ''})")
    print()


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Print a month calendar grid with its intercalary blocks.")
    p.add_argument("year", type=int)
    p.add_argument("month", type=int, nargs="?", default=None, help="1-based month (default: whole year)")
    add_calendar_args(p)
    args = p.parse_args(argv)

    eng = engine_from_args(args)
    months = [args.month] if args.month is not None else range(1, len(eng.definition.months) + 1)
    for m in months:
        print_month(eng, args.year, m)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
