"""
CLI wrapper for compute_chart_context().

Usage:
    qimen-compass --latitude LAT --longitude LON \
        [--date YYYY-MM-DD] [--time HH:MM[:SS]] [--heading DEG] \
        [--name NAME --birth-date YYYY-MM-DD [--birth-time HH:MM]] \
        [--utc-offset OFFSET | --auto-offset] [--no-true-solar-time] \
        [--magnetic-north] [--precision high|low] [--verbose]
"""

import argparse
import json
import logging
from datetime import datetime

from qimen.astro_calendar import DEFAULT_TIMEZONE_OFFSET
from qimen.engine import compute_chart_context
from qimen.models import SCORE_PRECISIONS, ChartInput, Location, Settings, UserProfile

logger = logging.getLogger(__name__)


def parse_moment(date_str, time_str):
    """Combine YYYY-MM-DD and HH:MM[:SS] into a naive datetime."""
    fmt = "%Y-%m-%d %H:%M:%S" if time_str.count(":") == 2 else "%Y-%m-%d %H:%M"
    try:
        return datetime.strptime(f"{date_str} {time_str}", fmt)
    except ValueError as exc:
        raise ValueError(f"Invalid date/time '{date_str} {time_str}': {exc}") from exc


def build_parser():
    parser = argparse.ArgumentParser(description="Compute the eight-direction compass chart.")
    parser.add_argument("--latitude", required=True, type=float)
    parser.add_argument("--longitude", required=True, type=float)
    parser.add_argument("--date", default=None, help="YYYY-MM-DD (default: today)")
    parser.add_argument("--time", default=None, help="HH:MM or HH:MM:SS (default: now)")
    parser.add_argument("--heading", type=float, default=0.0)
    parser.add_argument("--name", default=None)
    parser.add_argument("--birth-date", dest="birth_date", default=None)
    parser.add_argument("--birth-time", dest="birth_time", default="00:00")
    parser.add_argument("--utc-offset", dest="utc_offset", type=float,
                        default=DEFAULT_TIMEZONE_OFFSET)
    parser.add_argument("--auto-offset", dest="auto_offset", action="store_true",
                        help="Resolve the standard UTC offset from the coordinates")
    parser.add_argument("--no-true-solar-time", dest="true_solar_time", action="store_false")
    parser.add_argument("--magnetic-north", dest="magnetic_north", action="store_true")
    parser.add_argument("--precision", default="high", choices=SCORE_PRECISIONS)
    parser.add_argument("--verbose", action="store_true")
    return parser


def input_from_args(args) -> ChartInput:
    now = datetime.now().replace(microsecond=0)
    date_str = args.date or now.strftime("%Y-%m-%d")
    time_str = args.time or now.strftime("%H:%M:%S")

    user = None
    if args.birth_date:
        user = UserProfile(
            name=args.name or "User",
            birth=parse_moment(args.birth_date, args.birth_time),
        )

    settings = Settings(
        use_true_solar_time=args.true_solar_time,
        use_magnetic_north=args.magnetic_north,
        score_precision=args.precision,
        timezone_offset=None if args.auto_offset else args.utc_offset,
    )

    return ChartInput(
        time=parse_moment(date_str, time_str),
        location=Location(lat=args.latitude, lng=args.longitude),
        settings=settings,
        user=user,
        heading=args.heading,
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        inp = input_from_args(args)
        result = compute_chart_context(inp)
    except ValueError as exc:
        logger.error("%s", exc)
        parser.exit(2, f"error: {exc}\n")

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
