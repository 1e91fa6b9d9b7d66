"""Tests for verify.py – booking evidence."""
from pilates_booking.schedule import TargetDate
from pilates_booking.verify import calendar_confirms, has_success_marker, history_confirms

from conftest import month_calendar

TARGET = TargetDate(2025, 3, 11, 1)


class TestSuccessMarker:
    def test_found(self):
        assert has_success_marker("알림\n예약이 완료되었습니다.") == "예약이 완료"

    def test_not_found(self):
        assert has_success_marker("10:30 바렐 체어 예약하기") is None
        assert has_success_marker("") is None


class TestHistoryConfirms:
    def test_same_line(self):
        text = "번호\t날짜\t시간\n1\t2025-03-11\t10:30\t바렐 체어"
        assert history_confirms(text, TARGET, "10:30") == "2025-03-11"

    def test_korean_date(self):
        assert history_confirms("3월 11일 (화) 오전 10:30 바렐", TARGET, "10:30") == "3월 11일"

    def test_other_day_does_not_count(self):
        text = "2025-03-04 10:30 바렐\n2025-03-11 14:00 매트"
        assert history_confirms(text, TARGET, "10:30") is None

    def test_day_prefix_does_not_count(self):
        # 3/11 must not be read as 3/1
        assert history_confirms("3/1 10:30 요가", TargetDate(2025, 3, 1, 5), "10:30") == "3/1"
        assert history_confirms("3/11 10:30 요가", TargetDate(2025, 3, 1, 5), "10:30") is None

    def test_neighbour_time(self):
        assert history_confirms("2025-03-11 09:30 매트", TARGET, "10:30") is None


class TestCalendarConfirms:
    def test_starred_day(self):
        assert calendar_confirms(month_calendar(2025, 3, 31, marks={11: "*"}), TARGET)

    def test_unstarred_day(self):
        html = month_calendar(2025, 3, 31, marks={1: "*"})
        assert not calendar_confirms(html, TARGET)
        assert calendar_confirms(html, TargetDate(2025, 3, 1, 5))

    def test_star_in_another_month(self):
        html = month_calendar(2025, 4, 30, marks={11: "*"})
        assert not calendar_confirms(html, TARGET)

    def test_untitled_calendar(self):
        assert calendar_confirms("<table><tr><td>1</td><td>2 *</td></tr></table>", TargetDate(2025, 3, 2, 6))
