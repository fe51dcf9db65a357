"""
Bay scheduling and phase-timeline engine.

Pure calculations over project, bay and schedule snapshots: phase weights,
the phase a project is in, recommended durations, team and bay utilization,
and schedule roll-ups. Nothing here reads the clock or does I/O; "today" is
always passed in.
"""

from bayplan.scheduling.errors import (
    SchedulingError,
    InvalidIntervalError,
    MissingCapacityError,
    InvalidRecordError,
)
from bayplan.scheduling.models import (
    Project,
    ManufacturingBay,
    Schedule,
    ScheduleInterval,
    Team,
    team_names,
    parse_records,
)
from bayplan.scheduling.phases import (
    PHASE_SEQUENCE,
    PHASE_ORDER,
    DEFAULT_PHASE_WEIGHTS,
    PhaseWeight,
    phase_rank,
    resolve_weights,
)
from bayplan.scheduling.config import SchedulingConfig
from bayplan.scheduling.timeline import (
    PhaseSpan,
    interval_days,
    phase_partition,
    phase_timeline,
    current_phase,
)
from bayplan.scheduling.duration import (
    DurationEstimate,
    team_weekly_capacity,
    production_related_hours,
    estimate_duration,
    estimate_project_duration,
)
from bayplan.scheduling.utilization import (
    TeamUtilization,
    BayStatus,
    WeeklyBayUtilization,
    team_utilization,
    bay_status,
    weekly_bay_forecast,
    current_week_team_forecast,
)
from bayplan.scheduling.aggregation import (
    ProductionStatusRow,
    active_or_upcoming,
    days_until,
    upcoming_shipments,
    production_status,
)
from bayplan.scheduling.calendar import (
    us_holidays,
    is_business_day,
    count_working_days,
    adjust_to_next_business_day,
    adjust_to_previous_business_day,
    add_business_days,
)

__all__ = [
    'SchedulingError',
    'InvalidIntervalError',
    'MissingCapacityError',
    'InvalidRecordError',
    'Project',
    'ManufacturingBay',
    'Schedule',
    'ScheduleInterval',
    'Team',
    'team_names',
    'parse_records',
    'PHASE_SEQUENCE',
    'PHASE_ORDER',
    'DEFAULT_PHASE_WEIGHTS',
    'PhaseWeight',
    'phase_rank',
    'resolve_weights',
    'SchedulingConfig',
    'PhaseSpan',
    'interval_days',
    'phase_partition',
    'phase_timeline',
    'current_phase',
    'DurationEstimate',
    'team_weekly_capacity',
    'production_related_hours',
    'estimate_duration',
    'estimate_project_duration',
    'TeamUtilization',
    'BayStatus',
    'WeeklyBayUtilization',
    'team_utilization',
    'bay_status',
    'weekly_bay_forecast',
    'current_week_team_forecast',
    'ProductionStatusRow',
    'active_or_upcoming',
    'days_until',
    'upcoming_shipments',
    'production_status',
    'us_holidays',
    'is_business_day',
    'count_working_days',
    'adjust_to_next_business_day',
    'adjust_to_previous_business_day',
    'add_business_days',
]
