#!/usr/bin/env python3
"""
Command-line script to preview the bay schedule from a snapshot file.

Usage:
    python -m bayplan.scripts.preview_schedule --snapshot FILE [--today YYYY-MM-DD]
        [--horizon-days N] [--weeks N] [--team NAME]

Options:
    --snapshot FILE        JSON file with "projects", "bays" and "schedules" lists
    --today YYYY-MM-DD     Reference date for calculations (defaults to today)
    --horizon-days N       Days ahead an upcoming schedule or shipment is listed
    --weeks N              Number of forecast weeks
    --team NAME            Only show utilization and forecast for one team
"""

import argparse
import sys

from bayplan.config import get_config
from bayplan.logging_config import configure_logging
from bayplan.scheduling.report import run_preview_script


def main(argv=None):
    config = get_config()

    parser = argparse.ArgumentParser(
        description='Preview bay schedule status, utilization and forecast without changing anything'
    )
    parser.add_argument(
        '--snapshot',
        type=str,
        required=True,
        help='JSON snapshot with projects, bays and schedules'
    )
    parser.add_argument(
        '--today',
        type=str,
        help='Reference date for calculations (YYYY-MM-DD format, defaults to today)'
    )
    parser.add_argument(
        '--horizon-days',
        type=int,
        default=config.UPCOMING_HORIZON_DAYS,
        help='Days ahead an upcoming schedule or shipment is listed'
    )
    parser.add_argument(
        '--weeks',
        type=int,
        default=config.FORECAST_WEEKS,
        help='Number of forecast weeks'
    )
    parser.add_argument(
        '--team',
        type=str,
        help='Only show utilization and forecast for this team'
    )

    args = parser.parse_args(argv)

    configure_logging(log_level=config.LOG_LEVEL, log_file=config.LOG_FILE)

    try:
        run_preview_script(
            args.snapshot,
            today_str=args.today,
            horizon_days=args.horizon_days,
            weeks=args.weeks,
            team=args.team,
            excluded_teams=config.FORECAST_EXCLUDED_TEAMS,
        )
    except Exception as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
