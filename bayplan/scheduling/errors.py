"""
Exceptions raised by the scheduling engine.

Only conditions the caller must see are raised: a capacity of zero when a
duration is requested, an inverted interval when a numeric span is requested,
and records that cannot be read at all. Malformed phase weights and missing
optional fields are recovered locally and never raised.
"""


class SchedulingError(ValueError):
    """Base class for scheduling engine errors."""


class InvalidIntervalError(SchedulingError):
    """A schedule interval ends before it starts where a numeric span is required."""

    def __init__(self, start_date, end_date):
        super().__init__(f"Interval ends before it starts: {start_date} > {end_date}")
        self.start_date = start_date
        self.end_date = end_date


class MissingCapacityError(SchedulingError):
    """A team has no weekly capacity, so no duration can be estimated."""

    def __init__(self, capacity=None, team=None):
        label = f"Team {team}" if team else "Team"
        super().__init__(f"{label} has zero capacity (capacity_per_week={capacity})")
        self.capacity = capacity
        self.team = team


class InvalidRecordError(SchedulingError):
    """A project, bay or schedule record cannot be interpreted."""

    def __init__(self, record_type, reason):
        super().__init__(f"Invalid {record_type} record: {reason}")
        self.record_type = record_type
        self.reason = reason
