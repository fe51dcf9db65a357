"""
API routes for the scheduling engine.

Every endpoint takes a JSON body holding the records to work on and returns
the computed values. Nothing is stored. `today` is optional everywhere and
defaults to the shop's current day.
"""
from flask import current_app, jsonify

from bayplan.api import api_bp
from bayplan.api.helpers import (
    get_json_body,
    parse_bays,
    parse_int,
    parse_interval,
    parse_project,
    parse_projects,
    parse_schedules,
    parse_today,
    serialize_value,
)
from bayplan.datetime_utils import to_calendar_day
from bayplan.logging_config import CalculationContext, get_logger
from bayplan.scheduling.aggregation import active_or_upcoming, production_status, upcoming_shipments
from bayplan.scheduling.calendar import count_working_days
from bayplan.scheduling.duration import estimate_duration, estimate_project_duration
from bayplan.scheduling.errors import InvalidRecordError, MissingCapacityError, SchedulingError
from bayplan.scheduling.models import Team, team_names
from bayplan.scheduling.phases import resolve_weights, weight_map
from bayplan.scheduling.timeline import current_phase, interval_days, phase_timeline
from bayplan.scheduling.utilization import (
    bay_status,
    current_week_team_forecast,
    team_utilization,
    weekly_bay_forecast,
)

logger = get_logger(__name__)


def _error_response(exc, endpoint):
    """Map an exception raised while handling a request to a JSON error response."""
    if isinstance(exc, MissingCapacityError):
        logger.warning("Scheduling request rejected", endpoint=endpoint, error=str(exc))
        return jsonify({"error": "Team has no capacity", "details": str(exc)}), 422
    if isinstance(exc, SchedulingError):
        logger.warning("Scheduling request rejected", endpoint=endpoint, error=str(exc))
        return jsonify({"error": "Invalid scheduling request", "details": str(exc)}), 400
    logger.error(f"Error in {endpoint}", error=str(exc), exc_info=True)
    return jsonify({"error": "Failed to calculate schedule", "details": str(exc)}), 500


@api_bp.route("/scheduling/weights", methods=["POST"])
def scheduling_weights():
    """Return a project's resolved (normalized) phase weights."""
    try:
        data = get_json_body()
        project = parse_project(data)
        with CalculationContext("weights"):
            raw = weight_map(project)
            weights = resolve_weights(project)
        return jsonify({
            "project_id": project.id,
            "weights": [w.to_dict() for w in weights],
            "raw_total": sum(raw.values()),
        }), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/weights")


@api_bp.route("/scheduling/phase", methods=["POST"])
def scheduling_phase():
    """Return the phase a project is in on `today`.

    Uses the posted schedule/interval when present, otherwise the project's
    phase marker dates.
    """
    try:
        data = get_json_body()
        project = parse_project(data)
        interval = parse_interval(data)
        today = parse_today(data)
        with CalculationContext("phase"):
            phase = current_phase(project, interval, today)
        return jsonify({
            "project_id": project.id,
            "phase": phase,
            "mode": "interval" if interval is not None else "markers",
            "today": today.isoformat(),
        }), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/phase")


@api_bp.route("/scheduling/timeline", methods=["POST"])
def scheduling_timeline():
    """Return the six phase spans of a scheduled interval."""
    try:
        data = get_json_body()
        project = parse_project(data)
        interval = parse_interval(data)
        if interval is None:
            raise InvalidRecordError('interval', "a schedule or interval object is required")

        # A posted interval that ends before it starts cannot be laid out
        interval_days(interval.start_date, interval.end_date, strict=True)

        with CalculationContext("timeline"):
            spans = phase_timeline(project, interval)
        return jsonify({
            "project_id": project.id,
            "start_date": interval.start_date.isoformat(),
            "end_date": spans[-1].end_date.isoformat(),
            "phases": [span.to_dict() for span in spans],
        }), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/timeline")


@api_bp.route("/scheduling/duration", methods=["POST"])
def scheduling_duration():
    """Return the recommended duration for a project.

    Capacity comes from `capacity_per_week` when posted, otherwise from the
    posted team bays (filtered to the project's team when it has one).
    """
    try:
        data = get_json_body()
        project = parse_project(data)
        today = parse_today(data)

        with CalculationContext("duration"):
            if data.get("capacity_per_week") is not None:
                try:
                    capacity = float(data["capacity_per_week"])
                except (TypeError, ValueError):
                    raise SchedulingError("capacity_per_week must be a number")
                start = project.start_date or today
                estimate = estimate_duration(project.total_hours, resolve_weights(project), capacity, start)
            else:
                bays = parse_bays(data)
                if project.team:
                    bays = list(Team.from_bays(project.team, bays).bays)
                estimate = estimate_project_duration(project, bays, today)

        return jsonify({"project_id": project.id, **estimate.to_dict()}), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/duration")


@api_bp.route("/scheduling/utilization", methods=["POST"])
def scheduling_utilization():
    """Return team utilization for the week of `today`, plus per-bay status.

    Without a `team`, every team found on the posted bays is returned.
    """
    try:
        data = get_json_body()
        bays = parse_bays(data)
        schedules = parse_schedules(data)
        today = parse_today(data)
        team = data.get("team")

        with CalculationContext("utilization"):
            names = [team] if team else list(team_names(bays))
            teams = [team_utilization(name, bays, schedules, today) for name in names]
            bay_rows = [bay_status(b, schedules) for b in bays if not team or b.team == team]

        return jsonify({
            "today": today.isoformat(),
            "teams": [t.to_dict() for t in teams],
            "bays": [b.to_dict() for b in bay_rows],
        }), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/utilization")


@api_bp.route("/scheduling/active", methods=["POST"])
def scheduling_active():
    """Return schedules that are active today or start within the horizon."""
    try:
        data = get_json_body()
        schedules = parse_schedules(data)
        today = parse_today(data)
        horizon_days = parse_int(data, "horizon_days", current_app.config["UPCOMING_HORIZON_DAYS"])

        with CalculationContext("active"):
            selected = active_or_upcoming(schedules, today, horizon_days)

        return jsonify({
            "today": today.isoformat(),
            "horizon_days": horizon_days,
            "schedules": [s.to_dict() for s in selected],
            "total_count": len(selected),
        }), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/active")


@api_bp.route("/scheduling/production-status", methods=["POST"])
def scheduling_production_status():
    """Return the production status list and upcoming shipments."""
    try:
        data = get_json_body()
        projects = parse_projects(data)
        schedules = parse_schedules(data)
        bays = parse_bays(data)
        today = parse_today(data)
        horizon_days = parse_int(data, "horizon_days", current_app.config["UPCOMING_HORIZON_DAYS"])

        with CalculationContext("production_status"):
            rows = production_status(projects, schedules, bays, today, horizon_days)
            shipping = upcoming_shipments(projects, today, horizon_days)

        return jsonify({
            "today": today.isoformat(),
            "rows": [r.to_dict() for r in rows],
            "upcoming_shipments": [
                {"project_id": p.id, "project_number": p.project_number, "ship_date": serialize_value(p.ship_date)}
                for p in shipping
            ],
        }), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/production-status")


@api_bp.route("/scheduling/forecast", methods=["POST"])
def scheduling_forecast():
    """Return the weekly bay forecast starting with the week of `today`."""
    try:
        data = get_json_body()
        projects = parse_projects(data)
        schedules = parse_schedules(data)
        bays = parse_bays(data)
        today = parse_today(data)
        weeks = parse_int(data, "weeks", current_app.config["FORECAST_WEEKS"])
        excluded = tuple(current_app.config["FORECAST_EXCLUDED_TEAMS"])

        with CalculationContext("forecast"):
            rows = weekly_bay_forecast(schedules, projects, bays, today, weeks, excluded)
            current_week = [
                current_week_team_forecast(name, bays, schedules, projects, today)
                for name in team_names(bays)
                if name.upper() not in {t.upper() for t in excluded}
            ]

        return jsonify({
            "today": today.isoformat(),
            "weeks": weeks,
            "rows": [r.to_dict() for r in rows],
            "current_week": serialize_value(current_week),
        }), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/forecast")


@api_bp.route("/scheduling/working-days", methods=["POST"])
def scheduling_working_days():
    """Return the number of working days from start to end (inclusive)."""
    try:
        data = get_json_body()
        start = data.get("start")
        end = data.get("end")
        working_days = count_working_days(start, end)
        if working_days is not None:
            start, end = to_calendar_day(start).isoformat(), to_calendar_day(end).isoformat()
        return jsonify({"start": start, "end": end, "working_days": working_days}), 200
    except Exception as exc:
        return _error_response(exc, "/api/scheduling/working-days")
