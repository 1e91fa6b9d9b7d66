"""Evidence that a booking went through."""

import re
from typing import Optional

from .matcher import matches_time
from .schedule import TargetDate
from .timetable import read_calendar

SUCCESS_PHRASES = (
    '예약완료',
    '예약 완료',
    '예약이 완료',
    '예약되었습니다',
    '예약 되었습니다',
    '정상적으로 예약',
    '대기예약 완료',
    '예약신청이 완료',
)

# Booked or waitlisted days are starred in the calendar and history views
BOOKED_MARKER = '*'


def has_success_marker(text: str) -> Optional[str]:
    """Return the first completion phrase found in the page text, if any."""
    for phrase in SUCCESS_PHRASES:
        if phrase in (text or ''):
            return phrase
    return None


def date_formats(target: TargetDate) -> list[str]:
    year, month, day = target.year, target.month, target.day
    return [
        f"{month}월 {day}일",
        f"{month}월{day}일",
        f"{year}-{month}-{day}",
        f"{year}-{month:02d}-{day:02d}",
        f"{year}.{month}.{day}",
        f"{year}.{month:02d}.{day:02d}",
        f"{year}/{month}/{day}",
        f"{year}/{month:02d}/{day:02d}",
        f"{month}/{day}",
        f"{month:02d}/{day:02d}",
        f"{month}.{day}",
        f"{month:02d}.{day:02d}",
    ]


def history_confirms(text: str, target: TargetDate, slot: str) -> Optional[str]:
    """Check the booking-history view for the target date at the slot time.

    Lines are checked one at a time so that a 10:30 booking on another day
    does not count.
    """
    formats = date_formats(target)
    for line in (text or '').splitlines():
        if not matches_time(line, slot):
            continue
        for fmt in formats:
            if re.search(rf'(?<!\d){re.escape(fmt)}(?!\d)', line):
                return fmt
    return None


def calendar_confirms(html: str, target: TargetDate) -> bool:
    """True when the calendar shows the target's month and its day carries the booked marker."""
    view = read_calendar(html)
    if view.month is not None and view.month != (target.year, target.month):
        return False
    return any(cell.day == target.day and BOOKED_MARKER in cell.text for cell in view.days)
