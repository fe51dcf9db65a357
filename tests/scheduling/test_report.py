"""
Tests for the read-only schedule report and its command-line script.
"""
import json
from datetime import date

import pytest

from bayplan.scheduling.report import (
    forecast_frame,
    preview_schedule,
    print_preview,
    production_status_frame,
    run_preview_script,
)
from bayplan.scripts.preview_schedule import main


@pytest.fixture
def snapshot():
    return {
        'projects': [
            {'id': 1, 'projectNumber': 'P-1', 'name': 'First', 'shipDate': '2025-01-31'},
            {'id': 2, 'projectNumber': 'P-2', 'name': 'Second'},
        ],
        'bays': [
            {'id': 1, 'name': 'Bay 1', 'team': 'Alpha', 'assemblyStaffCount': 4,
             'electricalStaffCount': 2, 'hoursPerPersonPerWeek': 40},
            {'id': 2, 'name': 'Bay 2', 'team': 'Bravo', 'assemblyStaffCount': 3},
            {'id': 3, 'name': 'Libby', 'team': 'LIBBY'},
        ],
        'schedules': [
            {'id': 10, 'projectId': 1, 'bayId': 1, 'startDate': '2025-01-01',
             'endDate': '2025-01-31', 'totalHours': 300},
            {'id': 11, 'projectId': 2, 'bayId': 2, 'startDate': '2025-01-20',
             'endDate': '2025-02-20', 'totalHours': 200},
        ],
    }


class TestPreviewSchedule:
    """Tests for preview_schedule."""

    def test_summary_and_sections(self, snapshot):
        results = preview_schedule(snapshot, today=date(2025, 1, 15), weeks=3)

        assert results['summary']['reference_date'] == '2025-01-15'
        assert results['summary']['active_or_upcoming'] == 2
        assert [u.team for u in results['utilization']] == ['Alpha', 'Bravo', 'LIBBY']
        assert {r.bay_id for r in results['forecast']} == {1, 2}
        assert len(results['forecast']) == 6

    def test_team_filter(self, snapshot):
        results = preview_schedule(snapshot, today=date(2025, 1, 15), weeks=2, team='Alpha')

        assert [u.team for u in results['utilization']] == ['Alpha']
        assert {r.bay_id for r in results['forecast']} == {1}


class TestFrames:
    """Tests for the pandas views."""

    def test_forecast_frame_pivots_bays_by_week(self, snapshot):
        results = preview_schedule(snapshot, today=date(2025, 1, 15), weeks=3)
        frame = forecast_frame(results['forecast'])

        assert frame.shape == (2, 3)
        assert list(frame.columns) == ['2025-01-13', '2025-01-20', '2025-01-27']
        assert frame.loc[('Alpha', 'Bay 1'), '2025-01-13'] == 50

    def test_forecast_frame_empty(self):
        assert forecast_frame([]).empty

    def test_production_status_frame(self, snapshot):
        results = preview_schedule(snapshot, today=date(2025, 1, 15))
        frame = production_status_frame(results['status'])

        assert list(frame['project_number']) == ['P-1', 'P-2']
        assert frame.iloc[0]['phase'] == 'Production'


class TestPrintPreview:
    """Tests for printed output."""

    def test_prints_sections(self, snapshot, capsys):
        print_preview(preview_schedule(snapshot, today=date(2025, 1, 15), weeks=2))
        out = capsys.readouterr().out

        assert 'PRODUCTION STATUS' in out
        assert 'TEAM UTILIZATION' in out
        assert 'WEEKLY BAY FORECAST' in out
        assert 'P-1 - First' in out

    def test_run_preview_script_reads_file(self, snapshot, tmp_path, capsys):
        path = tmp_path / 'snapshot.json'
        path.write_text(json.dumps(snapshot))

        results = run_preview_script(str(path), today_str='2025-01-15', weeks=2)

        assert results['summary']['total_schedules'] == 2
        assert 'BAY SCHEDULE PREVIEW' in capsys.readouterr().out

    def test_main_exit_codes(self, snapshot, tmp_path):
        path = tmp_path / 'snapshot.json'
        path.write_text(json.dumps(snapshot))

        assert main(['--snapshot', str(path), '--today', '2025-01-15', '--weeks', '1']) == 0
        assert main(['--snapshot', str(tmp_path / 'missing.json')]) == 1
