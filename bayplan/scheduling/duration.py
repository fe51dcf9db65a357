"""
Duration estimation module.

Recommends how many weeks a bay team needs for a project, from the labor
hours of the phases the team works and the team's weekly capacity.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Optional, Union

from bayplan.datetime_utils import to_calendar_day
from bayplan.logging_config import get_logger
from bayplan.scheduling.config import SchedulingConfig
from bayplan.scheduling.errors import MissingCapacityError, SchedulingError
from bayplan.scheduling.models import ManufacturingBay, Project, Team
from bayplan.scheduling.phases import resolve_weights, weight_map

logger = get_logger(__name__)

# ceil(4.0000000001) should still be 4 weeks
_CEIL_EPSILON = 1e-9


@dataclass(frozen=True)
class DurationEstimate:
    """Recommended bay duration for a project."""
    weeks: int
    start_date: date
    end_date: date
    production_hours: float
    production_related_percentage: float
    capacity_per_week: float

    @property
    def days(self) -> int:
        return self.weeks * SchedulingConfig.DAYS_PER_WEEK

    def to_dict(self) -> Dict[str, Any]:
        return {
            'weeks': self.weeks,
            'days': self.days,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'production_hours': self.production_hours,
            'production_related_percentage': self.production_related_percentage,
            'capacity_per_week': self.capacity_per_week,
        }


def team_weekly_capacity(bays: Union[Team, Iterable[ManufacturingBay]]) -> float:
    """
    Weekly labor capacity of a team.

    Formula: (assembly staff + electrical staff) × hours per person per week

    The hours rate is taken from the first bay; a missing rate uses the
    configured default. Missing staff counts count as zero.

    Args:
        bays: A Team, or the team's bays

    Returns:
        float: Hours per week (0.0 for no bays or no staff)
    """
    team = bays if isinstance(bays, Team) else Team(name=None, bays=tuple(bays))
    return team.weekly_capacity(SchedulingConfig.DEFAULT_HOURS_PER_PERSON_PER_WEEK)


def production_related_percentage(phase_weights: Any) -> float:
    """Sum of the weights of the phases worked in the bay (no normalization)."""
    weights = weight_map(phase_weights)
    return sum(weights[phase] for phase in SchedulingConfig.PRODUCTION_RELATED_PHASES)


def production_related_hours(total_hours: Optional[float], phase_weights: Any) -> float:
    """
    Labor hours that fall on the bay team.

    Formula: total_hours × (production + it + ntc + qc) / 100

    Fabrication and Paint are excluded. Missing or negative total hours are
    treated as 0, as are NaN and infinite values.
    """
    if total_hours is None or not math.isfinite(total_hours) or total_hours <= 0:
        return 0.0
    return total_hours * production_related_percentage(phase_weights) / 100.0


def estimate_duration(
    total_hours: Optional[float],
    phase_weights: Any,
    team_capacity_hours_per_week: Optional[float],
    start_date,
) -> DurationEstimate:
    """
    Estimate the recommended duration for a project on a team.

    Formula:
    - production_hours = production_related_hours(total_hours, phase_weights)
    - weeks = ceil(production_hours / capacity), 0 when there are no hours
    - end_date = start_date + weeks × 7 days

    The weights are used exactly as given; pass resolve_weights(project) to
    apply the usual normalization.

    Args:
        total_hours: Total labor hours for the project
        phase_weights: Mapping or PhaseWeight list (missing phases use defaults)
        team_capacity_hours_per_week: Team's weekly capacity in hours
        start_date: First day of the bay run

    Returns:
        DurationEstimate: Weeks, end date and the intermediate values

    Raises:
        MissingCapacityError: If the capacity is missing, zero, negative or not finite
    """
    capacity = team_capacity_hours_per_week
    if capacity is None or not math.isfinite(capacity) or capacity <= 0:
        raise MissingCapacityError(team_capacity_hours_per_week)

    start = to_calendar_day(start_date)
    if start is None:
        raise ValueError("start_date is required to estimate a duration")

    percentage = production_related_percentage(phase_weights)
    hours = production_related_hours(total_hours, phase_weights)

    if hours <= 0:
        weeks = 0
    else:
        ratio = hours / capacity
        if not math.isfinite(ratio):
            raise SchedulingError(f"{hours} hours at {capacity} hours per week has no finite duration")
        weeks = max(1, math.ceil(ratio - _CEIL_EPSILON))

    try:
        end = start + timedelta(days=weeks * SchedulingConfig.DAYS_PER_WEEK)
    except OverflowError:
        raise SchedulingError(f"{weeks} weeks from {start} is past the last representable date")

    logger.debug("Estimated duration",
                 production_hours=hours,
                 capacity_per_week=team_capacity_hours_per_week,
                 weeks=weeks)

    return DurationEstimate(
        weeks=weeks,
        start_date=start,
        end_date=end,
        production_hours=hours,
        production_related_percentage=percentage,
        capacity_per_week=float(team_capacity_hours_per_week),
    )


def estimate_project_duration(
    project: Project,
    bays: Union[Team, Iterable[ManufacturingBay]],
    today,
) -> DurationEstimate:
    """
    Estimate a project's duration on the given team's bays.

    Starts on the project's declared start date, or on today when none is
    recorded. Uses the project's resolved (normalized) weights.

    Raises:
        MissingCapacityError: If the team has no capacity
    """
    if isinstance(bays, Team):
        team = bays
    else:
        team = Team(name=project.team, bays=tuple(bays))

    capacity = team_weekly_capacity(team)
    if capacity <= 0:
        raise MissingCapacityError(capacity, team.name)

    start = project.start_date or to_calendar_day(today)
    return estimate_duration(project.total_hours, resolve_weights(project), capacity, start)
