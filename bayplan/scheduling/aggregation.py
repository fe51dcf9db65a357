"""
Schedule aggregation helpers.

Filters and roll-ups over many schedules at once: which placements are
running or about to start, which projects ship soon, and the production
status list shown on the dashboard.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from bayplan.datetime_utils import days_between, to_calendar_day
from bayplan.logging_config import get_logger
from bayplan.scheduling.config import SchedulingConfig
from bayplan.scheduling.models import ManufacturingBay, Project, Schedule
from bayplan.scheduling.timeline import current_phase

logger = get_logger(__name__)


def is_active(schedule: Schedule, today) -> bool:
    """start_date <= today <= end_date"""
    today = to_calendar_day(today)
    return to_calendar_day(schedule.start_date) <= today <= to_calendar_day(schedule.end_date)


def is_starting_soon(schedule: Schedule, today, horizon_days: int = SchedulingConfig.UPCOMING_HORIZON_DAYS) -> bool:
    """today < start_date <= today + horizon_days"""
    today = to_calendar_day(today)
    start = to_calendar_day(schedule.start_date)
    return today < start <= today + timedelta(days=horizon_days)


def active_or_upcoming(
    schedules: Iterable[Schedule],
    today,
    horizon_days: int = SchedulingConfig.UPCOMING_HORIZON_DAYS,
) -> List[Schedule]:
    """
    Schedules that are running today or start within the horizon.

    Input order is preserved; the input is not modified.

    Args:
        schedules: Schedules to filter
        today: Reference day
        horizon_days: How far ahead a start still counts as upcoming

    Returns:
        list: The matching schedules
    """
    today = to_calendar_day(today)
    return [s for s in schedules if is_active(s, today) or is_starting_soon(s, today, horizon_days)]


def days_until(target, today) -> Optional[int]:
    """Whole days from today to target, 0 for past dates, None when target is None."""
    if to_calendar_day(target) is None:
        return None
    return max(0, days_between(today, target))


def upcoming_shipments(
    projects: Iterable[Project],
    today,
    horizon_days: int = SchedulingConfig.UPCOMING_HORIZON_DAYS,
) -> List[Project]:
    """Projects shipping between today and today + horizon_days (inclusive), soonest first."""
    today = to_calendar_day(today)
    horizon_end = today + timedelta(days=horizon_days)
    shipping = [p for p in projects if p.ship_date and today <= p.ship_date <= horizon_end]
    return sorted(shipping, key=lambda p: p.ship_date)


@dataclass(frozen=True)
class ProductionStatusRow:
    """One line of the production status list."""
    project_id: Any
    project_number: Optional[str]
    project_name: Optional[str]
    bay_id: Any
    bay_name: Optional[str]
    team: Optional[str]
    start_date: date
    end_date: date
    ship_date: Optional[date]
    phase: str
    days_until_ship: Optional[int]
    active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project_id': self.project_id,
            'project_number': self.project_number,
            'project_name': self.project_name,
            'bay_id': self.bay_id,
            'bay_name': self.bay_name,
            'team': self.team,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'ship_date': self.ship_date.isoformat() if self.ship_date else None,
            'phase': self.phase,
            'days_until_ship': self.days_until_ship,
            'active': self.active,
        }


def production_status(
    projects: Iterable[Project],
    schedules: Iterable[Schedule],
    bays: Iterable[ManufacturingBay],
    today,
    horizon_days: int = SchedulingConfig.UPCOMING_HORIZON_DAYS,
) -> List[ProductionStatusRow]:
    """
    Build the production status list.

    One row per active-or-upcoming schedule whose project is known, with the
    project's current phase (from its position in the schedule) and days left
    until it ships. Rows are sorted by days until ship; projects without a
    ship date go last, in schedule order.
    """
    today = to_calendar_day(today)
    projects_by_id = {p.id: p for p in projects}
    bays_by_id = {b.id: b for b in bays}

    rows = []
    for schedule in active_or_upcoming(schedules, today, horizon_days):
        project = projects_by_id.get(schedule.project_id)
        if project is None:
            logger.debug("Schedule references unknown project",
                         schedule_id=schedule.id, project_id=schedule.project_id)
            continue
        bay = bays_by_id.get(schedule.bay_id)
        rows.append(ProductionStatusRow(
            project_id=project.id,
            project_number=project.project_number,
            project_name=project.name,
            bay_id=schedule.bay_id,
            bay_name=bay.name if bay else None,
            team=bay.team if bay else None,
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            ship_date=project.ship_date,
            phase=current_phase(project, schedule, today),
            days_until_ship=days_until(project.ship_date, today),
            active=is_active(schedule, today),
        ))

    # sorted() is stable, so ties keep schedule order
    return sorted(rows, key=lambda r: (r.days_until_ship is None, r.days_until_ship or 0))
