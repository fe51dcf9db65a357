"""
Phase-position calculation.

Determines which phase a project is in on a given day, either from its
proportional position inside a scheduled bay interval, or (for projects
without a schedule) from the phase marker dates recorded on the project.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from bayplan.datetime_utils import days_between, to_calendar_day
from bayplan.logging_config import get_logger
from bayplan.scheduling.errors import InvalidIntervalError
from bayplan.scheduling.models import Project
from bayplan.scheduling.phases import (
    EXECUTIVE_REVIEW,
    FABRICATION,
    IT_INTEGRATION,
    NTC_TESTING,
    PAINT,
    PRE_PRODUCTION,
    PRODUCTION,
    QC,
    SHIPPED,
    resolve_weights,
)

logger = get_logger(__name__)

# Absorbs float error in weight * days products (e.g. 6.9999999999 -> 7)
_FLOOR_EPSILON = 1e-9

# Marker attribute for each lifecycle state, earliest first
PHASE_MARKERS: Tuple[Tuple[str, str], ...] = (
    (FABRICATION, 'fabrication_start'),
    (PAINT, 'paint_start'),
    (PRODUCTION, 'production_start'),
    (IT_INTEGRATION, 'it_start'),
    (NTC_TESTING, 'ntc_testing_date'),
    (QC, 'qc_start_date'),
    (EXECUTIVE_REVIEW, 'executive_review_date'),
    (SHIPPED, 'ship_date'),
)


@dataclass(frozen=True)
class PhaseSpan:
    """
    A phase's share of a scheduled interval.

    Spans are half-open: the phase runs from start_date up to, but not
    including, end_date. Consecutive spans share a boundary day.
    """
    phase: str
    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days

    def contains(self, day) -> bool:
        day = to_calendar_day(day)
        return self.start_date <= day < self.end_date

    def overlaps(self, window_start, window_end) -> bool:
        """True if the span covers any day of the inclusive window."""
        if self.days <= 0:
            return False
        return self.start_date <= to_calendar_day(window_end) and \
            self.end_date > to_calendar_day(window_start)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'phase': self.phase,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'days': self.days,
        }


def interval_days(start_date, end_date, strict: bool = False) -> int:
    """
    Whole days in an interval.

    Args:
        start_date: Interval start
        end_date: Interval end
        strict: If True, an interval ending before it starts raises instead of
                counting as zero days

    Returns:
        int: Number of days (never negative)

    Raises:
        InvalidIntervalError: If strict and end_date < start_date
    """
    days = days_between(start_date, end_date)
    if days < 0:
        if strict:
            raise InvalidIntervalError(to_calendar_day(start_date), to_calendar_day(end_date))
        return 0
    return days


def effective_end_date(project: Optional[Project], interval) -> date:
    """The project's ship date when recorded, otherwise the interval's end."""
    if project is not None and project.ship_date:
        return to_calendar_day(project.ship_date)
    return to_calendar_day(interval.end_date)


def phase_partition(total_days: int, weights: Any) -> List[Tuple[str, int]]:
    """
    Split a number of days across the six phases.

    Every phase except the last gets floor(total_days * weight / 100) days;
    the last phase (QC) absorbs the remainder, so the counts always add up to
    total_days exactly.

    Args:
        total_days: Days to split (negative is treated as 0)
        weights: Anything resolve_weights accepts (normalized here)

    Returns:
        list: (phase, days) tuples in phase order
    """
    total_days = max(0, int(total_days))
    resolved = resolve_weights(weights)

    partition = []
    used = 0
    for pw in resolved[:-1]:
        days = math.floor(total_days * pw.weight / 100.0 + _FLOOR_EPSILON)
        days = min(days, total_days - used)
        partition.append((pw.phase, days))
        used += days
    partition.append((resolved[-1].phase, total_days - used))

    logger.debug("Phase partition", total_days=total_days, partition=partition)
    return partition


def phase_timeline(project: Project, interval) -> List[PhaseSpan]:
    """
    Lay the six phases out over a scheduled interval.

    The timeline runs from the interval's start to the project's ship date
    (or the interval's end when no ship date is recorded). The spans tile
    that range exactly: no gaps, no overlap, and the last span ends on the
    effective end date. A zero-length or inverted interval yields six empty
    spans at the start date.

    Args:
        project: Project providing weights and ship date
        interval: ScheduleInterval or Schedule (anything with start_date/end_date)

    Returns:
        list: Six PhaseSpan entries in phase order
    """
    start = to_calendar_day(interval.start_date)
    end = effective_end_date(project, interval)
    total_days = interval_days(start, end)

    spans = []
    cursor = start
    for phase, days in phase_partition(total_days, project):
        span_end = cursor + timedelta(days=days)
        spans.append(PhaseSpan(phase, cursor, span_end))
        cursor = span_end
    return spans


def phase_markers(project: Project) -> List[Tuple[str, date]]:
    """
    The project's usable phase marker dates, earliest phase first.

    Markers must be non-decreasing in phase order. A marker dated before
    the marker of any earlier phase is out of order and is left out, so that
    phase counts as not yet reached.
    """
    markers = []
    latest_earlier = None
    for phase, attr in PHASE_MARKERS:
        marker = to_calendar_day(getattr(project, attr, None))
        if marker is None:
            continue
        if latest_earlier is not None and marker < latest_earlier:
            logger.debug("Skipping out-of-order phase marker",
                         project_id=project.id, phase=phase, marker=marker.isoformat(),
                         earlier_marker=latest_earlier.isoformat())
            continue
        markers.append((phase, marker))
        latest_earlier = marker
    return markers


def phase_from_markers(project: Project, today) -> str:
    """
    Phase from marker dates: the latest phase whose marker is on or before today.

    Returns:
        str: Phase name, or 'Pre-Production' if no marker has been reached
    """
    today = to_calendar_day(today)
    for phase, marker in reversed(phase_markers(project)):
        if marker <= today:
            return phase
    return PRE_PRODUCTION


def phase_from_interval(project: Project, interval, today) -> str:
    """
    Phase from the project's position inside a scheduled interval.

    - Before the interval starts: 'Pre-Production'
    - On or after the effective end (ship date, else interval end): 'Shipped'
    - Otherwise: the phase whose cumulative day boundary first exceeds the
      number of days elapsed since the start

    Phases floored to zero days are skipped, so on intervals too short for
    Fabrication to get a whole day the start day already falls in a later
    phase (with default weights: QC for 1 day, Production for 2-4 days).
    """
    today = to_calendar_day(today)
    start = to_calendar_day(interval.start_date)

    if today < start:
        return PRE_PRODUCTION

    end = effective_end_date(project, interval)
    if today >= end:
        return SHIPPED

    elapsed_days = days_between(start, today)
    total_days = days_between(start, end)

    cumulative = 0
    for phase, days in phase_partition(total_days, project):
        cumulative += days
        if elapsed_days < cumulative:
            return phase

    # Unreachable: the partition covers total_days and elapsed_days < total_days
    return QC


def current_phase(project: Project, interval, today) -> str:
    """
    Determine the phase a project is in on a given day.

    Uses the scheduled interval when one is given, otherwise falls back to
    the project's phase marker dates. The result depends only on the
    arguments; the function never reads the clock.

    Args:
        project: Project record
        interval: ScheduleInterval/Schedule, or None for date-marker mode
        today: Reference day (date, datetime or ISO string)

    Returns:
        str: One of the six phases, 'Pre-Production', 'Executive Review' or 'Shipped'

    Raises:
        ValueError: If today is missing
    """
    if to_calendar_day(today) is None:
        raise ValueError("today is required to determine the current phase")

    if interval is None:
        return phase_from_markers(project, today)
    return phase_from_interval(project, interval, today)
