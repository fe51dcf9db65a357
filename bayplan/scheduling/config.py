"""
Scheduling configuration module.

Fixed parameters of the bay scheduling engine. The environment-dependent
defaults (horizon, forecast length, excluded teams) are read from
bayplan.config so engine defaults and the app agree.
"""

from typing import Dict, Tuple

from bayplan.config import Config
from bayplan.scheduling.phases import IT_INTEGRATION, NTC_TESTING, PRODUCTION, QC


class SchedulingConfig:
    """
    Configuration for scheduling calculations.

    DO NOT CHANGE these values without explicit approval.
    """

    DAYS_PER_WEEK: int = 7

    # Used when a bay has no hours-per-person rate recorded
    DEFAULT_HOURS_PER_PERSON_PER_WEEK: float = 40.0

    # Phases worked by the bay team. Fabrication and Paint are done by a
    # separate line and do not count toward a bay's recommended duration.
    PRODUCTION_RELATED_PHASES: Tuple[str, ...] = (PRODUCTION, IT_INTEGRATION, NTC_TESTING, QC)

    # Default window for "starting soon" schedules and upcoming ship dates
    UPCOMING_HORIZON_DAYS: int = Config.UPCOMING_HORIZON_DAYS

    # Team utilization bands, checked top-down: percent > threshold -> label
    UTILIZATION_BANDS: Tuple[Tuple[int, str], ...] = (
        (90, 'Over Capacity'),
        (75, 'High Utilization'),
        (40, 'Good Utilization'),
    )
    UTILIZATION_DEFAULT_STATUS: str = 'Available'

    # Per-bay load status
    BAY_UNDERUTILIZED_BELOW: float = 30.0
    BAY_OVERLOADED_ABOVE: float = 85.0

    # Weekly bay forecast: phases occupying a bay, and the utilization
    # assigned by number of distinct projects aligned in a week
    FORECAST_PHASES: Tuple[str, ...] = (PRODUCTION, IT_INTEGRATION, NTC_TESTING)
    FORECAST_UTILIZATION_BY_PROJECT_COUNT: Dict[int, int] = {
        0: 0,
        1: 50,
        2: 85,
    }
    FORECAST_SATURATED_UTILIZATION: int = 115  # 3 or more projects
    FORECAST_WEEKS: int = Config.FORECAST_WEEKS
    FORECAST_EXCLUDED_TEAMS: Tuple[str, ...] = Config.FORECAST_EXCLUDED_TEAMS

    @classmethod
    def get_utilization_status(cls, percent: float) -> str:
        """
        Get the status label for a team utilization percentage.

        Args:
            percent: Utilization percentage (0-100)

        Returns:
            str: 'Over Capacity', 'High Utilization', 'Good Utilization' or 'Available'
        """
        for threshold, label in cls.UTILIZATION_BANDS:
            if percent > threshold:
                return label
        return cls.UTILIZATION_DEFAULT_STATUS

    @classmethod
    def get_forecast_utilization(cls, project_count: int) -> int:
        """
        Get the forecast utilization for a bay-week from its aligned project count.

        Returns:
            int: 0, 50, 85, or 115 for three or more projects
        """
        if project_count <= 0:
            return 0
        return cls.FORECAST_UTILIZATION_BY_PROJECT_COUNT.get(
            project_count, cls.FORECAST_SATURATED_UTILIZATION
        )
