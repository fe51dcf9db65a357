"""
Bay capacity and utilization calculations.

Two views of how busy the bays are:

- Team utilization: scheduled weekly hours against the team's weekly labor
  capacity, for the calendar week (Sunday-Saturday) containing today.
- Weekly bay forecast: for each bay and each week (Monday-Sunday), how many
  projects have their Production, IT Integration or NTC Testing span in that
  week, mapped to a utilization band.
"""

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bayplan.datetime_utils import days_between, to_calendar_day
from bayplan.logging_config import get_logger
from bayplan.scheduling.config import SchedulingConfig
from bayplan.scheduling.models import ManufacturingBay, Project, Schedule, Team
from bayplan.scheduling.timeline import phase_timeline

logger = get_logger(__name__)


# ==============================================================================
# Week windows
# ==============================================================================

def week_window(today) -> Tuple[date, date]:
    """Sunday through Saturday of the week containing today (inclusive)."""
    today = to_calendar_day(today)
    # date.weekday(): Monday=0 ... Sunday=6
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def monday_week_window(day) -> Tuple[date, date]:
    """Monday through Sunday of the week containing day (inclusive)."""
    day = to_calendar_day(day)
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def overlaps_window(start_date, end_date, window_start, window_end) -> bool:
    """True if the inclusive range [start_date, end_date] touches the window."""
    return to_calendar_day(start_date) <= to_calendar_day(window_end) and \
        to_calendar_day(end_date) >= to_calendar_day(window_start)


# ==============================================================================
# Team utilization
# ==============================================================================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class TeamUtilization:
    """A team's load for one calendar week."""
    team: str
    percent: int
    status: str
    weekly_capacity: float
    scheduled_hours: float
    staff_count: float
    hours_per_person_per_week: float
    active_project_count: int
    week_start: date
    week_end: date

    def to_dict(self) -> Dict[str, Any]:
        return {
            'team': self.team,
            'percent': self.percent,
            'status': self.status,
            'weekly_capacity': self.weekly_capacity,
            'scheduled_hours': self.scheduled_hours,
            'staff_count': self.staff_count,
            'hours_per_person_per_week': self.hours_per_person_per_week,
            'active_project_count': self.active_project_count,
            'week_start': self.week_start.isoformat(),
            'week_end': self.week_end.isoformat(),
        }


def _schedule_hours(schedule: Schedule) -> float:
    """Schedule hours usable in a utilization sum: negative or non-finite counts as 0."""
    hours = schedule.total_hours
    if hours is None or not math.isfinite(hours) or hours < 0:
        return 0.0
    return float(hours)


def weekly_schedule_hours(schedule: Schedule) -> float:
    """
    A schedule's hours spread evenly over its days, per 7-day week.

    Formula: total_hours / max(1, total_schedule_days) × 7
    """
    total_days = max(1, days_between(schedule.start_date, schedule.end_date))
    return _schedule_hours(schedule) / total_days * SchedulingConfig.DAYS_PER_WEEK


def team_utilization(
    team: str,
    bays: Iterable[ManufacturingBay],
    schedules: Iterable[Schedule],
    today,
) -> TeamUtilization:
    """
    Calculate a team's utilization for the week containing today.

    Steps:
    1. Team bays: bays whose team label equals `team`
    2. Weekly capacity = total staff × first bay's hours per person per week
    3. Sum weekly_schedule_hours for schedules on the team's bays that overlap
       the Sunday-Saturday week of today
    4. percent = min(100, round(sum / capacity × 100)), 0 when capacity is 0

    Args:
        team: Team label
        bays: All bays (filtered here)
        schedules: All schedules (filtered here)
        today: Reference day

    Returns:
        TeamUtilization: Percent, status label and the intermediate values
    """
    team_record = Team.from_bays(team, bays)
    default_rate = SchedulingConfig.DEFAULT_HOURS_PER_PERSON_PER_WEEK
    rate = team_record.hours_per_person_per_week(default_rate)

    rates = {b.hours_per_person_per_week for b in team_record.bays if b.hours_per_person_per_week}
    if len(rates) > 1:
        logger.warning("Team bays have different hours per person, using the first bay's rate",
                       team=team, rates=sorted(rates), used=rate)

    capacity = team_record.weekly_capacity(default_rate)
    week_start, week_end = week_window(today)

    bay_ids = set(team_record.bay_ids)
    team_schedules = [s for s in schedules if s.bay_id in bay_ids]

    scheduled_hours = sum(
        weekly_schedule_hours(s)
        for s in team_schedules
        if overlaps_window(s.start_date, s.end_date, week_start, week_end)
    )

    if capacity > 0:
        percent = min(100, _round_half_up(scheduled_hours / capacity * 100))
    else:
        percent = 0

    active_projects = {s.project_id for s in team_schedules}

    return TeamUtilization(
        team=team,
        percent=percent,
        status=SchedulingConfig.get_utilization_status(percent),
        weekly_capacity=capacity,
        scheduled_hours=scheduled_hours,
        staff_count=team_record.staff_count,
        hours_per_person_per_week=rate,
        active_project_count=len(active_projects),
        week_start=week_start,
        week_end=week_end,
    )


# ==============================================================================
# Per-bay status
# ==============================================================================

@dataclass(frozen=True)
class BayStatus:
    """Load of a single bay against its own weekly capacity."""
    bay_id: Any
    bay_name: Optional[str]
    weekly_capacity: float
    scheduled_hours: float
    utilization: float
    status: str
    team_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bay_id': self.bay_id,
            'bay_name': self.bay_name,
            'weekly_capacity': self.weekly_capacity,
            'scheduled_hours': self.scheduled_hours,
            'utilization': self.utilization,
            'status': self.status,
            'team_type': self.team_type,
        }


def bay_team_type(bay: ManufacturingBay) -> str:
    """'Mixed', 'Assembly' or 'Electrical' depending on which staff the bay has."""
    assembly = bay.assembly_staff_count or 0
    electrical = bay.electrical_staff_count or 0
    if assembly > 0 and electrical > 0:
        return 'Mixed'
    if electrical > 0:
        return 'Electrical'
    return 'Assembly'


def bay_status(bay: ManufacturingBay, schedules: Iterable[Schedule]) -> BayStatus:
    """
    Status of one bay from the hours scheduled on it.

    - underutilized: utilization < 30%
    - overloaded: utilization > 85%
    - balanced: otherwise (including a bay with no capacity)
    """
    rate = bay.hours_per_person_per_week or SchedulingConfig.DEFAULT_HOURS_PER_PERSON_PER_WEEK
    capacity = bay.staff_count * rate
    hours = sum(_schedule_hours(s) for s in schedules if s.bay_id == bay.id)

    if capacity > 0:
        utilization = min(100.0, hours / capacity * 100)
        if utilization < SchedulingConfig.BAY_UNDERUTILIZED_BELOW:
            status = 'underutilized'
        elif utilization > SchedulingConfig.BAY_OVERLOADED_ABOVE:
            status = 'overloaded'
        else:
            status = 'balanced'
    else:
        utilization = 0.0
        status = 'balanced'

    return BayStatus(
        bay_id=bay.id,
        bay_name=bay.name,
        weekly_capacity=capacity,
        scheduled_hours=hours,
        utilization=utilization,
        status=status,
        team_type=bay_team_type(bay),
    )


# ==============================================================================
# Weekly bay forecast
# ==============================================================================

@dataclass(frozen=True)
class PhaseAlignment:
    """A project phase that occupies a bay during a forecast week."""
    project_id: Any
    project_number: Optional[str]
    phase: str
    start_date: date
    end_date: date

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project_id': self.project_id,
            'project_number': self.project_number,
            'phase': self.phase,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class WeeklyBayUtilization:
    """Forecast utilization of one bay in one Monday-Sunday week."""
    week_start: date
    week_end: date
    bay_id: Any
    bay_name: Optional[str]
    team: str
    project_count: int
    utilization: int
    aligned_phases: Tuple[PhaseAlignment, ...] = field(default_factory=tuple)

    @property
    def week_key(self) -> str:
        return self.week_start.isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'week_key': self.week_key,
            'week_start': self.week_start.isoformat(),
            'week_end': self.week_end.isoformat(),
            'bay_id': self.bay_id,
            'bay_name': self.bay_name,
            'team': self.team,
            'project_count': self.project_count,
            'utilization': self.utilization,
            'aligned_phases': [a.to_dict() for a in self.aligned_phases],
        }


def phase_alignments_for_week(
    week_start,
    week_end,
    schedules: Iterable[Schedule],
    projects_by_id: Dict[Any, Project],
    bay_id: Any,
) -> List[PhaseAlignment]:
    """
    Bay-occupying phases of the bay's schedules that overlap the week.

    Only the forecast phases (Production, IT Integration, NTC Testing) count.
    Schedules whose project is unknown are skipped.
    """
    alignments = []
    for schedule in schedules:
        if schedule.bay_id != bay_id:
            continue
        project = projects_by_id.get(schedule.project_id)
        if project is None:
            continue
        for span in phase_timeline(project, schedule):
            if span.phase in SchedulingConfig.FORECAST_PHASES and span.overlaps(week_start, week_end):
                alignments.append(PhaseAlignment(
                    project_id=project.id,
                    project_number=project.project_number,
                    phase=span.phase,
                    start_date=span.start_date,
                    end_date=span.end_date,
                ))
    return alignments


def _forecast_bays(bays: Iterable[ManufacturingBay], excluded_teams: Sequence[str]) -> List[ManufacturingBay]:
    excluded = {t.upper() for t in excluded_teams}
    return [b for b in bays if b.team and b.team.upper() not in excluded]


def weekly_bay_forecast(
    schedules: Iterable[Schedule],
    projects: Iterable[Project],
    bays: Iterable[ManufacturingBay],
    start,
    weeks: int = SchedulingConfig.FORECAST_WEEKS,
    excluded_teams: Sequence[str] = SchedulingConfig.FORECAST_EXCLUDED_TEAMS,
) -> List[WeeklyBayUtilization]:
    """
    Forecast weekly utilization for every bay.

    Weeks run Monday-Sunday, beginning with the week containing `start`.
    Bays without a team, or in an excluded team, are left out. Utilization
    comes from the number of distinct projects aligned in the week
    (0 -> 0, 1 -> 50, 2 -> 85, 3+ -> 115).

    Returns:
        list: One WeeklyBayUtilization per (week, bay), week-major
    """
    schedules = list(schedules)
    projects_by_id = {p.id: p for p in projects}
    forecast_bays = _forecast_bays(bays, excluded_teams)
    first_week_start, _ = monday_week_window(start)

    rows = []
    for offset in range(max(0, weeks)):
        week_start = first_week_start + timedelta(weeks=offset)
        week_end = week_start + timedelta(days=6)
        for bay in forecast_bays:
            aligned = phase_alignments_for_week(week_start, week_end, schedules, projects_by_id, bay.id)
            project_count = len({a.project_id for a in aligned})
            rows.append(WeeklyBayUtilization(
                week_start=week_start,
                week_end=week_end,
                bay_id=bay.id,
                bay_name=bay.name,
                team=bay.team,
                project_count=project_count,
                utilization=SchedulingConfig.get_forecast_utilization(project_count),
                aligned_phases=tuple(aligned),
            ))

    logger.debug("Weekly bay forecast", weeks=weeks, bays=len(forecast_bays), rows=len(rows))
    return rows


def current_week_team_forecast(
    team: str,
    bays: Iterable[ManufacturingBay],
    schedules: Iterable[Schedule],
    projects: Iterable[Project],
    today,
) -> Dict[str, Any]:
    """
    Forecast-style utilization of a whole team for the week containing today.

    Alignments from all of the team's bays are pooled, and distinct projects
    across the team decide the band.

    Returns:
        dict: team, week_start, week_end, project_count, utilization, aligned_phases
    """
    schedules = list(schedules)
    projects_by_id = {p.id: p for p in projects}
    week_start, week_end = monday_week_window(today)

    aligned: List[PhaseAlignment] = []
    for bay in Team.from_bays(team, bays).bays:
        aligned.extend(phase_alignments_for_week(week_start, week_end, schedules, projects_by_id, bay.id))

    project_count = len({a.project_id for a in aligned})
    return {
        'team': team,
        'week_start': week_start,
        'week_end': week_end,
        'project_count': project_count,
        'utilization': SchedulingConfig.get_forecast_utilization(project_count),
        'aligned_phases': aligned,
    }
