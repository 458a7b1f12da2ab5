from __future__ import annotations

import argparse
import random
from typing import List

import fancal
from fancal.core.date import CalendarDate, TimeOfDay
from fancal.engines.calendar import CalendarEngine


def parse_calendars(s: str) -> List[str]:
    # "gregorian,harptos" -> ["gregorian", "harptos"]
    return [x.strip() for x in s.split(",") if x.strip()]


def random_date(engine: CalendarEngine, year0: int, year1: int) -> CalendarDate:
    """Uniform over days (regular and intercalary) of years year0..year1, with a random time."""
    d = engine.definition
    year = random.randint(year0, year1)
    seg = random.choice(engine.year_summary(year).segments)
    day = random.randint(1, seg.length)
    tc = d.time
    t = TimeOfDay(random.randrange(tc.hours_in_day), random.randrange(tc.minutes_in_hour),
                  random.randrange(tc.seconds_in_minute))
    if seg.kind == "intercalary":
        return CalendarDate(year, seg.month, day, 0, seg.name, t, d)
    return CalendarDate(year, seg.month, day, engine.calculate_weekday(year, seg.month, day), None, t, d)


def roundtrip_test(
    engine: CalendarEngine,
    N: int,
    year0: int,
    year1: int,
    seed: int,
    *,
    max_failures: int,
    verbose: bool = True,
) -> int:
    random.seed(seed)
    failures = 0

    for _ in range(N):
        d0 = random_date(engine, year0, year1)
        wt = engine.date_to_world_time(d0)
        back = engine.world_time_to_date(wt)
        if back != d0:
            failures += 1
            if verbose:
                print("\nFAIL (date -> world time -> date)")
                print("calendar:", engine.definition.id)
                print("d0:", d0)
                print("world time:", wt)
                print("back:", back)
            if failures >= max_failures:
                return failures

        wt_again = engine.date_to_world_time(back)
        if wt_again != wt:
            failures += 1
            if verbose:
                print("\nFAIL (world time -> date -> world time)")
                print("calendar:", engine.definition.id)
                print("world time:", wt, "->", back, "->", wt_again)
            if failures >= max_failures:
                return failures

    return failures


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Random round-trip tests: date -> world time -> date.")
    p.add_argument("--calendars", type=str, default="", help="Comma-separated calendar ids (default: all).")
    p.add_argument("--N", type=int, default=2000, help="Trials per calendar.")
    p.add_argument("--span", type=int, default=500, help="Years either side of each calendar's current year.")
    p.add_argument("--seed", type=int, default=123, help="RNG seed.")
    p.add_argument("--max-failures", type=int, default=5, help="Stop after this many failures per calendar.")
    args = p.parse_args(argv)

    names = parse_calendars(args.calendars) if args.calendars else fancal.list_calendars()

    total_fail = 0
    for name in names:
        eng = fancal.get_engine(name)
        cur = eng.definition.year.current_year
        print(f"Testing {name} ...")
        total_fail += roundtrip_test(eng, N=args.N, year0=cur - args.span, year1=cur + args.span,
                                     seed=args.seed, max_failures=args.max_failures)

    if total_fail == 0:
        print("All round-trip tests passed.")
        return 0

    print(f"Round-trip failures: {total_fail}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
