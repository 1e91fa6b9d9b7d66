"""Tests for results.py – the JSON result file."""
import json

import pytest

from pilates_booking.results import RunResult, RunStatus, read_result, write_result


def make(status=RunStatus.SUCCESS, **kwargs):
    kwargs.setdefault('timestamp', '2025-03-04T00:00:05+09:00')
    return RunResult(date='2025-3-11', slot='10:30', status=status, message='ok', **kwargs)


class TestRunStatus:
    @pytest.mark.parametrize('status, code', [
        (RunStatus.SUCCESS, 0),
        (RunStatus.WAITING, 0),
        (RunStatus.ALREADY_BOOKED, 0),
        (RunStatus.WEEKEND_SKIP, 0),
        (RunStatus.TEST, 0),
        (RunStatus.CLOSED, 1),
        (RunStatus.FAILED, 1),
    ])
    def test_exit_codes(self, status, code):
        assert status.exit_code == code


class TestRunResult:
    def test_to_dict(self):
        assert make(verified=True).to_dict() == {
            'timestamp': '2025-03-04T00:00:05+09:00',
            'date': '2025-3-11',
            'class': '10:30',
            'status': 'SUCCESS',
            'message': 'ok',
            'verified': True,
        }

    def test_timestamp_defaults_to_now_in_kst(self):
        result = RunResult(date='2025-3-11', slot='10:30', status=RunStatus.TEST, message='x')
        assert result.timestamp.endswith('+09:00')


class TestResultFile:
    def test_write_overwrites(self, tmp_path):
        path = str(tmp_path / 'booking-result.json')
        write_result(path, make(RunStatus.FAILED, verified=None))
        write_result(path, make(RunStatus.SUCCESS, verified=False))

        with open(path, encoding='utf-8') as f:
            data = json.load(f)
        assert data['status'] == 'SUCCESS'
        assert data['verified'] is False
        assert read_result(path) == data

    def test_korean_kept_readable(self, tmp_path):
        path = tmp_path / 'booking-result.json'
        result = RunResult(date='2025-3-11', slot='10:30', status=RunStatus.CLOSED,
                           message='10:30 마감', timestamp='t')
        write_result(str(path), result)
        assert '10:30 마감' in path.read_text(encoding='utf-8')

    def test_read_missing(self, tmp_path):
        assert read_result(str(tmp_path / 'nope.json')) is None
