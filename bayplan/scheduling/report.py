"""
Read-only scheduling report.

Runs the engine over a snapshot of projects, bays and schedules and prints
the production status list, team utilization and the weekly bay forecast.
Nothing is written back anywhere.
"""

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from bayplan.datetime_utils import format_date, shop_today, to_calendar_day
from bayplan.logging_config import get_logger
from bayplan.scheduling.aggregation import ProductionStatusRow, production_status
from bayplan.scheduling.config import SchedulingConfig
from bayplan.scheduling.models import parse_records, team_names
from bayplan.scheduling.utilization import WeeklyBayUtilization, team_utilization, weekly_bay_forecast

logger = get_logger(__name__)


def forecast_frame(rows: Iterable[WeeklyBayUtilization]) -> pd.DataFrame:
    """
    Pivot forecast rows into a bays × weeks table of utilization percentages.

    Index is (team, bay_name), columns are week start dates (ISO strings).
    """
    records = [
        {'team': r.team, 'bay_name': r.bay_name or str(r.bay_id), 'week': r.week_key, 'utilization': r.utilization}
        for r in rows
    ]
    if not records:
        return pd.DataFrame()
    df = pd.DataFrame.from_records(records)
    return df.pivot_table(index=['team', 'bay_name'], columns='week', values='utilization', aggfunc='max')


def production_status_frame(rows: Iterable[ProductionStatusRow]) -> pd.DataFrame:
    """Production status rows as a DataFrame, one row per schedule."""
    columns = ['project_number', 'project_name', 'bay_name', 'team',
               'start_date', 'end_date', 'ship_date', 'phase', 'days_until_ship']
    df = pd.DataFrame.from_records([r.to_dict() for r in rows], columns=columns + ['project_id', 'active'])
    return df[columns]


def preview_schedule(
    snapshot: Dict[str, Any],
    today: Optional[date] = None,
    horizon_days: int = SchedulingConfig.UPCOMING_HORIZON_DAYS,
    weeks: int = SchedulingConfig.FORECAST_WEEKS,
    team: Optional[str] = None,
    excluded_teams=SchedulingConfig.FORECAST_EXCLUDED_TEAMS,
) -> Dict[str, Any]:
    """
    Compute everything the report shows for a snapshot.

    Args:
        snapshot: {"projects": [...], "bays": [...], "schedules": [...]}
        today: Reference day (defaults to the shop's current day)
        horizon_days: Upcoming window for the status list
        weeks: Forecast length
        team: Restrict team utilization and forecast to one team

    Returns:
        dict: status rows, team utilization list, forecast rows and a summary
    """
    if today is None:
        today = shop_today()

    projects, bays, schedules = parse_records(snapshot)
    if team:
        bays_in_scope = [b for b in bays if b.team == team]
    else:
        bays_in_scope = bays

    logger.info("Previewing schedule", today=today.isoformat(), projects=len(projects),
                bays=len(bays), schedules=len(schedules), team=team)

    status_rows = production_status(projects, schedules, bays, today, horizon_days)
    teams = [team] if team else list(team_names(bays))
    utilization = [team_utilization(name, bays, schedules, today) for name in teams]
    forecast = weekly_bay_forecast(schedules, projects, bays_in_scope, today, weeks, excluded_teams)

    summary = {
        'reference_date': today.isoformat(),
        'total_projects': len(projects),
        'total_bays': len(bays),
        'total_schedules': len(schedules),
        'active_or_upcoming': len(status_rows),
        'teams': len(teams),
        'forecast_weeks': weeks,
    }

    return {
        'status': status_rows,
        'utilization': utilization,
        'forecast': forecast,
        'summary': summary,
    }


def print_preview(results: Dict[str, Any]):
    """
    Print a formatted schedule preview.

    Args:
        results: Results from preview_schedule()
    """
    summary = results.get('summary', {})
    status_rows: List[ProductionStatusRow] = results.get('status', [])

    print("\n" + "=" * 80)
    print("BAY SCHEDULE PREVIEW - Summary")
    print("=" * 80)
    print(f"\nReference Date: {summary.get('reference_date', 'N/A')}")
    print(f"Projects: {summary.get('total_projects', 0)}")
    print(f"Bays: {summary.get('total_bays', 0)}")
    print(f"Schedules: {summary.get('total_schedules', 0)}")
    print(f"Active or Upcoming: {summary.get('active_or_upcoming', 0)}")

    print("\n" + "=" * 80)
    print("PRODUCTION STATUS")
    print("=" * 80)
    if not status_rows:
        print("\nNo active or upcoming schedules")
    for row in status_rows:
        label = row.project_number or row.project_id
        ship = format_date(row.ship_date)
        days = row.days_until_ship if row.days_until_ship is not None else '-'
        print(f"\n{label} - {row.project_name or 'N/A'}")
        print(f"  Bay: {row.bay_name or row.bay_id} ({row.team or 'no team'})")
        print(f"  Schedule: {format_date(row.start_date)} → {format_date(row.end_date)}")
        print(f"  Phase: {row.phase}")
        print(f"  Ship: {ship} ({days} days)")

    print("\n" + "=" * 80)
    print("TEAM UTILIZATION")
    print("=" * 80)
    for util in results.get('utilization', []):
        print(f"\n{util.team}: {util.percent}% - {util.status}")
        print(f"  Week: {format_date(util.week_start)} → {format_date(util.week_end)}")
        print(f"  Scheduled: {util.scheduled_hours:.1f} h / Capacity: {util.weekly_capacity:.1f} h")

    print("\n" + "=" * 80)
    print("WEEKLY BAY FORECAST (%)")
    print("=" * 80)
    frame = forecast_frame(results.get('forecast', []))
    if frame.empty:
        print("\nNo bays in forecast")
    else:
        print()
        print(frame.to_string())

    print("\n" + "=" * 80)


def load_snapshot(path) -> Dict[str, Any]:
    """Read a JSON snapshot file."""
    with open(Path(path), 'r', encoding='utf-8') as fh:
        return json.load(fh)


def run_preview_script(
    snapshot_path: str,
    today_str: Optional[str] = None,
    horizon_days: int = SchedulingConfig.UPCOMING_HORIZON_DAYS,
    weeks: int = SchedulingConfig.FORECAST_WEEKS,
    team: Optional[str] = None,
    excluded_teams=SchedulingConfig.FORECAST_EXCLUDED_TEAMS,
):
    """
    Run the preview from the command line.

    Args:
        snapshot_path: Path to the JSON snapshot
        today_str: Optional ISO date string (YYYY-MM-DD)
    """
    today = None
    if today_str:
        try:
            today = to_calendar_day(today_str)
        except (ValueError, TypeError):
            print(f"Warning: Invalid date '{today_str}', using today")
            today = None

    try:
        results = preview_schedule(
            load_snapshot(snapshot_path),
            today=today,
            horizon_days=horizon_days,
            weeks=weeks,
            team=team,
            excluded_teams=excluded_teams,
        )
        print_preview(results)
        return results

    except Exception as e:
        logger.error("Error in preview script", error=str(e), exc_info=True)
        print(f"\nError: {e}")
        raise
