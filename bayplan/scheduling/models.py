"""
Record types consumed by the scheduling engine.

These are read-only snapshots of the dashboard's project, bay and schedule
records. The REST layer hands them over as camelCase JSON; scripts and tests
usually use snake_case. `from_dict` accepts either spelling.
"""
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, Optional, Tuple

from bayplan.datetime_utils import to_calendar_day
from bayplan.scheduling.errors import InvalidRecordError


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first non-None value among keys, or None."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _day(record_type: str, name: str, value: Any) -> Optional[date]:
    """Parse a date field, wrapping parse failures in InvalidRecordError."""
    try:
        return to_calendar_day(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRecordError(record_type, f"{name}={value!r} is not a date ({exc})")


def _number(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Coerce a numeric-looking value to a finite float, or return default."""
    if value is None or value == '' or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class ScheduleInterval:
    """A bay placement interval: start_date through end_date (calendar days)."""
    start_date: date
    end_date: date

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduleInterval':
        start = _day('interval', 'start_date', _pick(data, 'start_date', 'startDate'))
        end = _day('interval', 'end_date', _pick(data, 'end_date', 'endDate'))
        if start is None or end is None:
            raise InvalidRecordError('interval', "start_date and end_date are required")
        return cls(start_date=start, end_date=end)

    def to_dict(self) -> Dict[str, Any]:
        return {'start_date': _iso(self.start_date), 'end_date': _iso(self.end_date)}


@dataclass(frozen=True)
class Project:
    """
    A project moving through the production pipeline.

    Phase weight fields are kept exactly as received (they may be strings,
    negative or missing); only `resolve_weights` interprets them.
    """
    id: Any
    project_number: Optional[str] = None
    name: Optional[str] = None
    team: Optional[str] = None
    status: Optional[str] = None
    total_hours: Optional[float] = None
    start_date: Optional[date] = None

    # Phase marker dates
    fabrication_start: Optional[date] = None
    paint_start: Optional[date] = None
    production_start: Optional[date] = None
    it_start: Optional[date] = None
    ntc_testing_date: Optional[date] = None
    qc_start_date: Optional[date] = None
    executive_review_date: Optional[date] = None
    ship_date: Optional[date] = None

    # Phase weights (percentages)
    fab_percentage: Any = None
    paint_percentage: Any = None
    production_percentage: Any = None
    it_percentage: Any = None
    ntc_percentage: Any = None
    qc_percentage: Any = None

    # record attribute -> accepted input keys, first match wins
    DATE_FIELDS = {
        'start_date': ('start_date', 'startDate'),
        'fabrication_start': ('fabrication_start', 'fabricationStart'),
        'paint_start': ('paint_start', 'paintStart', 'wrap_date', 'wrapDate'),
        'production_start': ('production_start', 'productionStart', 'assembly_start', 'assemblyStart'),
        'it_start': ('it_start', 'itStart'),
        'ntc_testing_date': ('ntc_testing_date', 'ntcTestingDate'),
        'qc_start_date': ('qc_start_date', 'qcStartDate'),
        'executive_review_date': ('executive_review_date', 'executiveReviewDate'),
        'ship_date': ('ship_date', 'shipDate'),
    }
    WEIGHT_FIELDS = {
        'fab_percentage': ('fab_percentage', 'fabPercentage'),
        'paint_percentage': ('paint_percentage', 'paintPercentage'),
        'production_percentage': ('production_percentage', 'productionPercentage'),
        'it_percentage': ('it_percentage', 'itPercentage'),
        'ntc_percentage': ('ntc_percentage', 'ntcPercentage'),
        'qc_percentage': ('qc_percentage', 'qcPercentage'),
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        """
        Build a Project from a JSON-style dict.

        Raises:
            InvalidRecordError: If the id is missing or a date field does not parse
        """
        if data.get('id') is None:
            raise InvalidRecordError('project', "id is required")

        kwargs = {
            'id': data['id'],
            'project_number': _pick(data, 'project_number', 'projectNumber'),
            'name': data.get('name'),
            'team': data.get('team'),
            'status': data.get('status'),
            'total_hours': _number(_pick(data, 'total_hours', 'totalHours')),
        }
        for attr, keys in cls.DATE_FIELDS.items():
            kwargs[attr] = _day('project', attr, _pick(data, *keys))
        for attr, keys in cls.WEIGHT_FIELDS.items():
            kwargs[attr] = _pick(data, *keys)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'project_number': self.project_number,
            'name': self.name,
            'team': self.team,
            'status': self.status,
            'total_hours': self.total_hours,
        }
        for attr in self.DATE_FIELDS:
            result[attr] = _iso(getattr(self, attr))
        for attr in self.WEIGHT_FIELDS:
            result[attr] = getattr(self, attr)
        return result


@dataclass(frozen=True)
class ManufacturingBay:
    """A physical work-cell with fixed staffing."""
    id: Any
    name: Optional[str] = None
    bay_number: Optional[int] = None
    team: Optional[str] = None
    status: Optional[str] = None
    assembly_staff_count: Optional[float] = None
    electrical_staff_count: Optional[float] = None
    hours_per_person_per_week: Optional[float] = None

    # Dimensional bounds, not used by the scheduling math
    capacity_tonn: Optional[float] = None
    max_width: Optional[float] = None
    max_height: Optional[float] = None
    max_length: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ManufacturingBay':
        if data.get('id') is None:
            raise InvalidRecordError('bay', "id is required")
        return cls(
            id=data['id'],
            name=data.get('name'),
            bay_number=_pick(data, 'bay_number', 'bayNumber'),
            team=data.get('team'),
            status=data.get('status'),
            assembly_staff_count=_number(_pick(data, 'assembly_staff_count', 'assemblyStaffCount')),
            electrical_staff_count=_number(_pick(data, 'electrical_staff_count', 'electricalStaffCount')),
            hours_per_person_per_week=_number(_pick(data, 'hours_per_person_per_week', 'hoursPerPersonPerWeek')),
            capacity_tonn=_number(_pick(data, 'capacity_tonn', 'capacityTonn')),
            max_width=_number(_pick(data, 'max_width', 'maxWidth')),
            max_height=_number(_pick(data, 'max_height', 'maxHeight')),
            max_length=_number(_pick(data, 'max_length', 'maxLength')),
        )

    @property
    def staff_count(self) -> float:
        return (self.assembly_staff_count or 0) + (self.electrical_staff_count or 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'bay_number': self.bay_number,
            'team': self.team,
            'status': self.status,
            'assembly_staff_count': self.assembly_staff_count,
            'electrical_staff_count': self.electrical_staff_count,
            'hours_per_person_per_week': self.hours_per_person_per_week,
            'capacity_tonn': self.capacity_tonn,
            'max_width': self.max_width,
            'max_height': self.max_height,
            'max_length': self.max_length,
        }


@dataclass(frozen=True)
class Schedule:
    """One project's placement in one bay over one interval."""
    id: Any
    project_id: Any
    bay_id: Any
    start_date: date
    end_date: date
    total_hours: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Schedule':
        if data.get('id') is None:
            raise InvalidRecordError('schedule', "id is required")
        start = _day('schedule', 'start_date', _pick(data, 'start_date', 'startDate'))
        end = _day('schedule', 'end_date', _pick(data, 'end_date', 'endDate'))
        if start is None or end is None:
            raise InvalidRecordError('schedule', f"schedule {data['id']} needs start_date and end_date")
        return cls(
            id=data['id'],
            project_id=_pick(data, 'project_id', 'projectId'),
            bay_id=_pick(data, 'bay_id', 'bayId'),
            start_date=start,
            end_date=end,
            total_hours=_number(_pick(data, 'total_hours', 'totalHours'), 0.0),
        )

    @property
    def interval(self) -> ScheduleInterval:
        return ScheduleInterval(self.start_date, self.end_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'project_id': self.project_id,
            'bay_id': self.bay_id,
            'start_date': _iso(self.start_date),
            'end_date': _iso(self.end_date),
            'total_hours': self.total_hours,
        }


@dataclass(frozen=True)
class Team:
    """
    The bays sharing one team label.

    Teams have no storage of their own; they are always rebuilt from bays.
    All bays of a team are assumed to work the same hours per person, so the
    first bay's rate is used for the whole team.
    """
    name: str
    bays: Tuple[ManufacturingBay, ...] = field(default_factory=tuple)

    @classmethod
    def from_bays(cls, name: str, bays: Iterable[ManufacturingBay]) -> 'Team':
        return cls(name=name, bays=tuple(b for b in bays if b.team == name))

    @property
    def bay_ids(self) -> Tuple[Any, ...]:
        return tuple(b.id for b in self.bays)

    @property
    def assembly_staff_count(self) -> float:
        return sum(b.assembly_staff_count or 0 for b in self.bays)

    @property
    def electrical_staff_count(self) -> float:
        return sum(b.electrical_staff_count or 0 for b in self.bays)

    @property
    def staff_count(self) -> float:
        return self.assembly_staff_count + self.electrical_staff_count

    def hours_per_person_per_week(self, default: float) -> float:
        if not self.bays or not self.bays[0].hours_per_person_per_week:
            return default
        return self.bays[0].hours_per_person_per_week

    def weekly_capacity(self, default_hours_per_person: float) -> float:
        return self.staff_count * self.hours_per_person_per_week(default_hours_per_person)


def team_names(bays: Iterable[ManufacturingBay]) -> Tuple[str, ...]:
    """Distinct team labels in first-seen order (bays without a team are skipped)."""
    seen = []
    for bay in bays:
        if bay.team and bay.team not in seen:
            seen.append(bay.team)
    return tuple(seen)


def parse_record_list(data: Dict[str, Any], key: str, model) -> list:
    """
    Build model instances from the list stored under `key` (missing -> []).

    Raises:
        InvalidRecordError: If the value is not a list of objects, or a record is invalid
    """
    records = data.get(key) or []
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise InvalidRecordError(key, "expected a list of objects")
    return [model.from_dict(r) for r in records]


def parse_records(data: Dict[str, Any]) -> Tuple[list, list, list]:
    """Build (projects, bays, schedules) from a snapshot-style dict."""
    return (
        parse_record_list(data, 'projects', Project),
        parse_record_list(data, 'bays', ManufacturingBay),
        parse_record_list(data, 'schedules', Schedule),
    )
