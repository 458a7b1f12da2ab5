from __future__ import annotations

import argparse
import importlib
import inspect
import logging
import sys


def _run_module_main(modpath: str, argv: list[str]) -> int:
    """
    Import module and run its main().

    Supports:
      - main(argv: list[str] | None = None) -> int|None
      - main() -> int|None
    """
    mod = importlib.import_module(modpath)
    if not hasattr(mod, "main"):
        raise SystemExit(f"Module {modpath} has no main()")
    fn = getattr(mod, "main")

    sig = inspect.signature(fn)
    if len(sig.parameters) == 0:
        rv = fn()
    else:
        rv = fn(argv)
    return int(rv or 0)


def add_calendar_args(p: argparse.ArgumentParser) -> None:
    g = p.add_mutually_exclusive_group()
    g.add_argument("--calendar", default="gregorian", help="built-in or registered calendar id (default: gregorian)")
    g.add_argument("--file", help="path to a calendar JSON document")
    p.add_argument("--system", default=None, help="host system id used for compatibility lookups")


def engine_from_args(args: argparse.Namespace):
    import fancal

    if getattr(args, "file", None):
        return fancal.make_engine(fancal.load_definition(args.file), system_id=args.system)
    return fancal.get_engine(args.calendar, system_id=args.system)


def cmd_date(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="fancal date", description="World time (seconds) -> calendar date")
    p.add_argument("world_time", type=int)
    add_calendar_args(p)
    p.add_argument("--creation-ts", type=float, default=None, help="world creation Unix timestamp")
    p.add_argument("--format", dest="fmt", default=None, help="named dateFormats entry")
    p.add_argument("--template", default=None, help="explicit template, e.g. '{{year}}-{{month}}'")
    args = p.parse_args(argv)

    eng = engine_from_args(args)
    d = eng.world_time_to_date(args.world_time, args.creation_ts)
    if args.template or args.fmt:
        print(d.format(args.template, name=args.fmt))
    else:
        print(d.to_long_string())
    print(d.to_dict())
    return 0


def cmd_world_time(argv: list[str]) -> int:
    from fancal.core.date import CalendarDate, TimeOfDay

    p = argparse.ArgumentParser(prog="fancal world-time", description="Calendar date -> world time (seconds)")
    p.add_argument("year", type=int)
    p.add_argument("month", type=int)
    p.add_argument("day", type=int)
    p.add_argument("--hour", type=int, default=0)
    p.add_argument("--minute", type=int, default=0)
    p.add_argument("--second", type=int, default=0)
    p.add_argument("--intercalary", default=None, help="intercalary block name (day indexes into the block)")
    add_calendar_args(p)
    p.add_argument("--creation-ts", type=float, default=None, help="world creation Unix timestamp")
    args = p.parse_args(argv)

    eng = engine_from_args(args)
    d = CalendarDate(args.year, args.month, args.day, 0, args.intercalary,
                     TimeOfDay(args.hour, args.minute, args.second), eng.definition)
    print(eng.date_to_world_time(d, args.creation_ts))
    return 0


def cmd_year(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="fancal year", description="Summary of one calendar year")
    p.add_argument("year", type=int)
    add_calendar_args(p)
    args = p.parse_args(argv)

    eng = engine_from_args(args)
    s = eng.year_summary(args.year)
    first = eng.days_to_date(eng.days_before_year(args.year))
    print(f"{eng.definition.year_string(args.year)}  ({eng.definition.id})")
    print(f"  leap year        : {s.leap}")
    print(f"  days             : {s.length}")
    print(f"  weekday days     : {s.weekday_length}")
    print(f"  first day        : {first.to_date_string()}")
    for seg in s.segments:
        note = ""
        if seg.kind == "intercalary":
            week = "" if seg.counts_for_weekdays else ", outside the week"
            note = f"  ({seg.placement} month {seg.month}{week})"
        print(f"  {seg.start:4d}  {seg.name:<20s} {seg.length:3d}{note}")
    return 0


def cmd_list(argv: list[str]) -> int:
    import fancal

    p = argparse.ArgumentParser(prog="fancal list", description="List registered calendars")
    p.parse_args(argv)
    for name in fancal.list_calendars():
        info = fancal.calendar_info(name)
        print(f"{name:<16s} {info['name'] or '':<32s} months={info['months']} weekdays={info['weekdays']} "
              f"leap={info['leap_rule']} epoch={info['epoch']}")
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(prog="fancal", description="Fantasy calendar toolkit CLI.")
    p.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, WARNING, ...)")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("date", help="World time -> calendar date")
    sub.add_parser("world-time", help="Calendar date -> world time")
    sub.add_parser("year", help="Summary of one calendar year")
    sub.add_parser("month", help="Print a month grid (diagnostics)")
    sub.add_parser("list", help="List registered calendars")

    p_diag = sub.add_parser("diag", help="Diagnostics tools")
    p_diag.add_argument(
        "tool",
        choices=["round-trip", "year-lengths"],
        help="Which diagnostic to run",
    )

    args, rest = p.parse_known_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")

    if args.cmd == "date":
        return cmd_date(rest)

    if args.cmd == "world-time":
        return cmd_world_time(rest)

    if args.cmd == "year":
        return cmd_year(rest)

    if args.cmd == "list":
        return cmd_list(rest)

    if args.cmd == "month":
        return _run_module_main("fancal.diagnostics.pretty_month", rest)

    if args.cmd == "diag":
        tool_map = {
            "round-trip": "fancal.diagnostics.round_trip",
            "year-lengths": "fancal.diagnostics.year_lengths",
        }
        return _run_module_main(tool_map[args.tool], rest)

    raise RuntimeError("unreachable")


if __name__ == "__main__":
    raise SystemExit(main())
