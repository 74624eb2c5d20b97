"""
Sunset Score: will tonight's sunset be worth watching?

Scores the upcoming sunset from the hourly forecast around it (cloud cover,
humidity, visibility) and flags afterglow / Tyndall-ray chances.

Usage:
    python main.py today
    python main.py calendar --days 7
    python main.py calendar --remind 2026-10-21
    python main.py today --synthetic --seed 42
    python main.py feedback --score 72 --label dull --reason Haze_Issue
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

from dotenv import load_dotenv

from sunset_score.config import load_settings
from sunset_score.feedback import FLIP_REASONS
from sunset_score.scheduler import main as run_scheduler, setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description='Sunset Score - sunset quality forecaster')
    parser.add_argument('command', nargs='?', default='today', choices=['today', 'calendar', 'feedback'])
    parser.add_argument('--days', type=int, default=7, help='Calendar length in days')
    parser.add_argument('--lat', type=float, help='Latitude (overrides SUNSET_LAT)')
    parser.add_argument('--lon', type=float, help='Longitude (overrides SUNSET_LON)')
    parser.add_argument('--synthetic', action='store_true', help='Use generated forecast data')
    parser.add_argument('--seed', type=int, help='Seed for --synthetic')
    parser.add_argument('--astronomical', action='store_true', help='Compute real sunset times')
    parser.add_argument('--score', type=int, help='Predicted score being corrected (feedback)')
    parser.add_argument('--label', help='What the sunset actually looked like (feedback)')
    parser.add_argument('--reason', choices=sorted(FLIP_REASONS), help='Why the prediction was off')
    parser.add_argument('--remind', type=date.fromisoformat, metavar='YYYY-MM-DD',
                        help='Set a 15:00 reminder for this calendar day (calendar)')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    settings = load_settings()

    if args.lat is not None:
        settings.latitude = args.lat
    if args.lon is not None:
        settings.longitude = args.lon
    if args.synthetic:
        settings.forecast_source = "synthetic"
    if args.seed is not None:
        settings.seed = args.seed
    if args.astronomical:
        settings.solar_model = "astronomical"

    if args.command == 'feedback' and (args.score is None or not args.label):
        print("feedback needs --score and --label")
        return 2
    if args.remind is not None and args.command != 'calendar':
        print("--remind only applies to the calendar command")
        return 2

    setup_logging(settings.log_level)
    logger.info(f"[main] Settings: {settings}")

    return asyncio.run(run_scheduler(
        args.command,
        settings,
        days=args.days,
        score=args.score,
        label=args.label,
        reason=args.reason,
        remind=args.remind,
    ))


if __name__ == "__main__":
    sys.exit(main())
