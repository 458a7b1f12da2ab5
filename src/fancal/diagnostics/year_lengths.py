#!/usr/bin/env python3
from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import List, Optional

from fancal.cli import add_calendar_args, engine_from_args
from fancal.engines.calendar import CalendarEngine


def _need_numpy():
    try:
        import numpy as np
        return np
    except ImportError as e:
        raise RuntimeError('Need numpy. Install: pip install "fancal[diagnostics]"') from e


def _need_matplotlib():
    try:
        import matplotlib.pyplot as plt
        return plt
    except ImportError as e:
        raise RuntimeError('Need matplotlib. Install: pip install "fancal[diagnostics]"') from e


@dataclass(frozen=True)
class YearRow:
    year: int
    leap: bool
    days: int
    weekday_days: int
    new_year_weekday: int


def year_rows(engine: CalendarEngine, start: int, end: int) -> List[YearRow]:
    rows = []
    for y in range(start, end + 1):
        s = engine.year_summary(y)
        first = engine.days_to_date(engine.days_before_year(y))
        wd = first.weekday if first.intercalary is None else engine.raw_weekday(y, 1, 1)
        rows.append(YearRow(y, s.leap, s.length, s.weekday_length, wd))
    return rows


def print_table(engine: CalendarEngine, rows: List[YearRow]) -> None:
    names = engine.definition.weekdays
    print(f"{'Year':>6s}  {'Leap':4s}  {'Days':>4s}  {'WkDays':>6s}  New year")
    for r in rows:
        print(f"{r.year:>6d}  {'yes' if r.leap else '':4s}  {r.days:>4d}  {r.weekday_days:>6d}  "
              f"{names[r.new_year_weekday].name}")


def plot(engine: CalendarEngine, rows: List[YearRow], outbase: str, show: bool) -> None:
    np = _need_numpy()
    plt = _need_matplotlib()

    years = np.array([r.year for r in rows])
    days = np.array([r.days for r in rows])
    wds = np.array([r.new_year_weekday for r in rows])
    leap = np.array([r.leap for r in rows], dtype=bool)

    fig, (ax1, ax2) = plt.subplots(2, 1, sharex=True, figsize=(10, 6))
    ax1.step(years, days, where="mid", color="0.15", lw=1.2)
    ax1.scatter(years[leap], days[leap], s=14, color="tab:red", label="leap year", zorder=3)
    ax1.set_ylabel("days in year")
    ax1.legend(loc="upper right")

    ax2.scatter(years, wds, s=10, color="tab:blue")
    ax2.set_yticks(range(engine.definition.weekday_count))
    ax2.set_yticklabels([w.abbr for w in engine.definition.weekdays])
    ax2.set_ylabel("weekday of new year")
    ax2.set_xlabel("year")

    fig.suptitle(f"{engine.definition.name or engine.definition.id}: year lengths")
    fig.tight_layout()
    fig.savefig(f"{outbase}.png", dpi=150)
    fig.savefig(f"{outbase}.pdf")
    print(f"wrote {outbase}.png, {outbase}.pdf")
    if show:
        plt.show()
    plt.close(fig)


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Year lengths and new-year weekdays over a range of years.")
    add_calendar_args(p)
    p.add_argument("--start", type=int, default=None, help="first year (default: currentYear - 20)")
    p.add_argument("--end", type=int, default=None, help="last year (default: currentYear + 20)")
    p.add_argument("--text", action="store_true", help="print a table instead of plotting")
    p.add_argument("--outbase", default="year_lengths", help="Output base name (writes .png and .pdf)")
    p.add_argument("--show", action="store_true")
    args = p.parse_args(argv)

    eng = engine_from_args(args)
    cur = eng.definition.year.current_year
    start = args.start if args.start is not None else cur - 20
    end = args.end if args.end is not None else cur + 20
    if end < start:
        raise SystemExit("--end must be >= --start")

    rows = year_rows(eng, start, end)
    if args.text:
        print_table(eng, rows)
    else:
        plot(eng, rows, args.outbase, args.show)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
