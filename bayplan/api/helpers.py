"""
Helper functions for reading scheduling requests and shaping responses.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from flask import request

from bayplan.datetime_utils import shop_today, to_calendar_day
from bayplan.scheduling.errors import InvalidRecordError, SchedulingError
from bayplan.scheduling.models import (
    ManufacturingBay,
    Project,
    Schedule,
    ScheduleInterval,
    parse_record_list,
)


def serialize_value(value):
    """
    Safely serialize a value to a JSON-compatible type.

    Handles dates, dataclass results (anything with to_dict), lists and dicts.
    """
    if value is None:
        return None
    elif isinstance(value, (date, datetime)):
        return value.isoformat()
    elif isinstance(value, (int, float, str, bool)):
        return value
    elif hasattr(value, 'to_dict'):
        return value.to_dict()
    elif isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    else:
        # Fallback: convert to string
        return str(value)


def get_json_body() -> Dict[str, Any]:
    """The request's JSON object, or an empty dict when there is no body."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchedulingError("Request body must be a JSON object")
    return data


def parse_today(data: Dict[str, Any]) -> date:
    """
    The reference day from the body's `today`, or the shop's current day.

    Raises:
        SchedulingError: If today is given but is not a date
    """
    value = data.get('today')
    if value in (None, ''):
        return shop_today()
    try:
        return to_calendar_day(value)
    except (TypeError, ValueError):
        raise SchedulingError(f"today={value!r} is not a date")


def parse_int(data: Dict[str, Any], key: str, default: int) -> int:
    """Read a non-negative integer field, falling back to default when absent."""
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise SchedulingError(f"{key} must be a non-negative integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise SchedulingError(f"{key} must be a non-negative integer")
    if number < 0:
        raise SchedulingError(f"{key} must be a non-negative integer")
    return number


def parse_project(data: Dict[str, Any]) -> Project:
    project = data.get('project')
    if not isinstance(project, dict):
        raise InvalidRecordError('project', "a project object is required")
    return Project.from_dict(project)


def parse_interval(data: Dict[str, Any]) -> Optional[ScheduleInterval]:
    """The body's `schedule` or `interval`, as a ScheduleInterval, or None."""
    if isinstance(data.get('schedule'), dict):
        return ScheduleInterval.from_dict(data['schedule'])
    if isinstance(data.get('interval'), dict):
        return ScheduleInterval.from_dict(data['interval'])
    return None


def parse_projects(data: Dict[str, Any]) -> List[Project]:
    return parse_record_list(data, 'projects', Project)


def parse_bays(data: Dict[str, Any]) -> List[ManufacturingBay]:
    return parse_record_list(data, 'bays', ManufacturingBay)


def parse_schedules(data: Dict[str, Any]) -> List[Schedule]:
    return parse_record_list(data, 'schedules', Schedule)
