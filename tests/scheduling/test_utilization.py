"""
Tests for team utilization, per-bay status and the weekly bay forecast.
"""
from datetime import date

import pytest

from bayplan.scheduling.config import SchedulingConfig
from bayplan.scheduling.models import ManufacturingBay, Project, Schedule
from bayplan.scheduling.phases import IT_INTEGRATION, NTC_TESTING, PRODUCTION
from bayplan.scheduling.utilization import (
    bay_status,
    current_week_team_forecast,
    monday_week_window,
    team_utilization,
    week_window,
    weekly_bay_forecast,
    weekly_schedule_hours,
)


def make_schedule(schedule_id, bay_id, start, end, hours=0.0, project_id=None):
    return Schedule(id=schedule_id, project_id=project_id or schedule_id, bay_id=bay_id,
                    start_date=start, end_date=end, total_hours=hours)


@pytest.fixture
def bays():
    return [
        ManufacturingBay(id=1, name='Bay 1', team='Alpha', assembly_staff_count=4,
                         electrical_staff_count=2, hours_per_person_per_week=40),
        ManufacturingBay(id=2, name='Bay 2', team='Bravo', assembly_staff_count=3,
                         hours_per_person_per_week=40),
        ManufacturingBay(id=3, name='Libby 1', team='LIBBY', assembly_staff_count=2),
        ManufacturingBay(id=4, name='Spare', team=None),
    ]


# ==============================================================================
# WEEK WINDOW TESTS
# ==============================================================================

class TestWeekWindows:
    """Tests for calendar week windows."""

    @pytest.mark.parametrize('day', [date(2025, 1, 5), date(2025, 1, 8), date(2025, 1, 11)])
    def test_sunday_to_saturday(self, day):
        assert week_window(day) == (date(2025, 1, 5), date(2025, 1, 11))

    @pytest.mark.parametrize('day', [date(2025, 1, 6), date(2025, 1, 8), date(2025, 1, 12)])
    def test_monday_to_sunday(self, day):
        assert monday_week_window(day) == (date(2025, 1, 6), date(2025, 1, 12))


# ==============================================================================
# TEAM UTILIZATION TESTS
# ==============================================================================

class TestTeamUtilization:
    """Tests for team_utilization."""

    def test_reference_scenario(self, bays):
        """Test 240 h over 14 days against 240 h/week capacity is 50%."""
        schedules = [make_schedule(1, 1, date(2025, 1, 6), date(2025, 1, 20), hours=240)]
        result = team_utilization('Alpha', bays, schedules, date(2025, 1, 8))

        assert result.weekly_capacity == 240
        assert result.scheduled_hours == pytest.approx(120)
        assert result.percent == 50
        assert result.status == 'Good Utilization'
        assert result.week_start == date(2025, 1, 5)

    def test_schedule_outside_week_ignored(self, bays):
        schedules = [make_schedule(1, 1, date(2025, 2, 1), date(2025, 2, 15), hours=240)]
        result = team_utilization('Alpha', bays, schedules, date(2025, 1, 8))
        assert result.percent == 0
        assert result.status == 'Available'

    def test_other_team_schedule_ignored(self, bays):
        schedules = [make_schedule(1, 2, date(2025, 1, 6), date(2025, 1, 20), hours=240)]
        assert team_utilization('Alpha', bays, schedules, date(2025, 1, 8)).percent == 0

    def test_capped_at_100(self, bays):
        schedules = [make_schedule(1, 1, date(2025, 1, 6), date(2025, 1, 13), hours=5000)]
        result = team_utilization('Alpha', bays, schedules, date(2025, 1, 8))
        assert result.percent == 100
        assert result.status == 'Over Capacity'

    def test_zero_capacity_is_zero_percent(self):
        """Test a team without staff reports 0% instead of failing."""
        empty = [ManufacturingBay(id=9, team='Empty')]
        schedules = [make_schedule(1, 9, date(2025, 1, 6), date(2025, 1, 20), hours=240)]
        result = team_utilization('Empty', empty, schedules, date(2025, 1, 8))
        assert result.percent == 0
        assert result.weekly_capacity == 0

    def test_unknown_team(self, bays):
        result = team_utilization('Nobody', bays, [], date(2025, 1, 8))
        assert result.percent == 0
        assert result.staff_count == 0

    def test_counts_active_projects(self, bays):
        schedules = [
            make_schedule(1, 1, date(2025, 1, 6), date(2025, 1, 20), project_id=10),
            make_schedule(2, 1, date(2025, 3, 1), date(2025, 3, 20), project_id=10),
            make_schedule(3, 1, date(2025, 3, 1), date(2025, 3, 20), project_id=11),
        ]
        assert team_utilization('Alpha', bays, schedules, date(2025, 1, 8)).active_project_count == 2

    def test_zero_day_schedule_counts_as_one_day(self):
        schedule = make_schedule(1, 1, date(2025, 1, 6), date(2025, 1, 6), hours=10)
        assert weekly_schedule_hours(schedule) == 70

    @pytest.mark.parametrize('hours', [-2000, float('nan'), float('inf')])
    def test_unusable_hours_count_as_zero(self, bays, hours):
        """Test negative or non-finite hours never push the percent outside 0-100."""
        schedules = [
            make_schedule(1, 1, date(2025, 1, 1), date(2025, 1, 31), hours=hours),
            make_schedule(2, 1, date(2025, 1, 6), date(2025, 1, 20), hours=240),
        ]
        result = team_utilization('Alpha', bays, schedules, date(2025, 1, 15))

        assert result.percent == 50
        assert result.scheduled_hours == pytest.approx(120)

    def test_nan_hours_from_record(self, bays):
        schedule = Schedule.from_dict({'id': 1, 'bayId': 1, 'startDate': '2025-01-01',
                                       'endDate': '2025-01-31', 'totalHours': 'NaN'})
        result = team_utilization('Alpha', bays, [schedule], date(2025, 1, 15))
        assert result.percent == 0
        assert result.status == 'Available'

    @pytest.mark.parametrize('percent, status', [
        (91, 'Over Capacity'),
        (90, 'High Utilization'),
        (76, 'High Utilization'),
        (75, 'Good Utilization'),
        (41, 'Good Utilization'),
        (40, 'Available'),
        (0, 'Available'),
    ])
    def test_status_bands(self, percent, status):
        assert SchedulingConfig.get_utilization_status(percent) == status


# ==============================================================================
# BAY STATUS TESTS
# ==============================================================================

class TestBayStatus:
    """Tests for per-bay load status."""

    @pytest.mark.parametrize('hours, status', [
        (60, 'underutilized'),
        (120, 'balanced'),
        (240, 'overloaded'),
    ])
    def test_status_thresholds(self, bays, hours, status):
        schedules = [make_schedule(1, 1, date(2025, 1, 6), date(2025, 1, 20), hours=hours)]
        assert bay_status(bays[0], schedules).status == status

    def test_utilization_capped(self, bays):
        schedules = [make_schedule(1, 1, date(2025, 1, 6), date(2025, 1, 20), hours=1000)]
        assert bay_status(bays[0], schedules).utilization == 100

    @pytest.mark.parametrize('hours', [-500, float('nan')])
    def test_unusable_hours_count_as_zero(self, bays, hours):
        schedules = [make_schedule(1, 1, date(2025, 1, 6), date(2025, 1, 20), hours=hours)]
        result = bay_status(bays[0], schedules)

        assert result.utilization == 0
        assert result.scheduled_hours == 0
        assert result.status == 'underutilized'

    def test_zero_capacity_is_balanced(self, bays):
        result = bay_status(bays[3], [])
        assert result.utilization == 0
        assert result.status == 'balanced'

    def test_team_type(self, bays):
        assert bay_status(bays[0], []).team_type == 'Mixed'
        assert bay_status(bays[1], []).team_type == 'Assembly'
        electrical = ManufacturingBay(id=5, electrical_staff_count=2)
        assert bay_status(electrical, []).team_type == 'Electrical'


# ==============================================================================
# FORECAST TESTS
# ==============================================================================

class TestWeeklyBayForecast:
    """Tests for the weekly bay forecast."""

    @pytest.fixture
    def projects(self):
        return [Project(id=i, project_number=f'P-{i}') for i in (1, 2, 3)]

    def january(self, project_id, schedule_id=None, bay_id=1):
        return make_schedule(schedule_id or project_id, bay_id, date(2025, 1, 1), date(2025, 1, 31),
                             project_id=project_id)

    def test_excludes_libby_and_teamless_bays(self, bays, projects):
        rows = weekly_bay_forecast([], projects, bays, date(2025, 1, 1), weeks=2)
        assert {r.bay_id for r in rows} == {1, 2}
        assert len(rows) == 4

    def test_weeks_start_on_monday(self, bays, projects):
        rows = weekly_bay_forecast([], projects, bays, date(2025, 1, 1), weeks=2)
        assert rows[0].week_start == date(2024, 12, 30)
        assert rows[0].week_end == date(2025, 1, 5)
        assert rows[-1].week_key == '2025-01-06'

    def test_single_project_by_week(self, bays, projects):
        """Test only Production, IT and NTC weeks count."""
        rows = weekly_bay_forecast([self.january(1)], projects, bays[:1], date(2025, 1, 1), weeks=5)

        assert [r.utilization for r in rows] == [0, 50, 50, 50, 0]
        assert {a.phase for a in rows[3].aligned_phases} == {PRODUCTION, IT_INTEGRATION, NTC_TESTING}
        assert rows[3].project_count == 1

    def test_utilization_by_project_count(self, bays, projects):
        two = [self.january(1), self.january(2)]
        three = two + [self.january(3)]

        assert weekly_bay_forecast(two, projects, bays[:1], date(2025, 1, 13), weeks=1)[0].utilization == 85
        assert weekly_bay_forecast(three, projects, bays[:1], date(2025, 1, 13), weeks=1)[0].utilization == 115

    def test_unknown_project_skipped(self, bays, projects):
        rows = weekly_bay_forecast([self.january(99)], projects, bays[:1], date(2025, 1, 13), weeks=1)
        assert rows[0].utilization == 0

    def test_custom_exclusions(self, bays, projects):
        rows = weekly_bay_forecast([], projects, bays, date(2025, 1, 1), weeks=1, excluded_teams=('alpha',))
        assert {r.bay_id for r in rows} == {2, 3}

    def test_current_week_team_forecast(self, bays, projects):
        result = current_week_team_forecast('Alpha', bays, [self.january(1)], projects, date(2025, 1, 15))
        assert result['week_start'] == date(2025, 1, 13)
        assert result['project_count'] == 1
        assert result['utilization'] == 50
