"""
Target date calculation and the pre-run wait.

Bookings open seven days ahead in Korean time, so every date decision here is
made in Asia/Seoul (a fixed UTC+9 offset) no matter where the runner lives.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

import pytz

logger = logging.getLogger(__name__)

KST = pytz.timezone('Asia/Seoul')

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

# Only wait for the opening time when it is this close; otherwise run now.
DEFAULT_WAIT_WINDOW = 30 * 60


@dataclass(frozen=True)
class TargetDate:
    year: int
    month: int
    day: int
    weekday: int  # 0=Monday ... 6=Sunday

    @classmethod
    def from_date(cls, value: date) -> 'TargetDate':
        return cls(value.year, value.month, value.day, value.weekday())

    @property
    def label(self) -> str:
        """Date as the result file stores it, e.g. '2025-3-7'."""
        return f"{self.year}-{self.month}-{self.day}"

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.weekday]

    def as_date(self) -> date:
        return date(self.year, self.month, self.day)


def now_kst(now: Optional[datetime] = None) -> datetime:
    """Convert `now` (default: the current instant) to Korean time.

    Naive datetimes are taken to be UTC.
    """
    if now is None:
        now = datetime.now(pytz.utc)
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(KST)


def compute_target(now: Optional[datetime] = None, days_ahead: int = 7) -> TargetDate:
    """Return the calendar date `days_ahead` days after `now` in KST."""
    today = now_kst(now).date()
    return TargetDate.from_date(today + timedelta(days=days_ahead))


def should_skip(target: TargetDate) -> bool:
    """True when the target falls on a Saturday or Sunday."""
    return target.weekday >= 5


def _parse_clock(value: str) -> tuple[int, int]:
    hours, minutes = value.strip().split(':')
    return int(hours), int(minutes)


def seconds_until(now: datetime, clock_time: str, window: float = DEFAULT_WAIT_WINDOW) -> float:
    """Seconds until the next `clock_time` (HH:MM, KST) if it is within `window`.

    Returns 0 when the opening time is further away than the window or has
    just passed, so a late or manual run proceeds immediately.
    """
    local_now = now_kst(now)
    hour, minute = _parse_clock(clock_time)
    opening = local_now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if opening <= local_now:
        opening += timedelta(days=1)
    remaining = (opening - local_now).total_seconds()
    if remaining > window:
        return 0.0
    return remaining


async def wait_for_opening(
    clock_time: str,
    window: float = DEFAULT_WAIT_WINDOW,
    clock: Callable[[], datetime] = lambda: datetime.now(pytz.utc),
    sleep=asyncio.sleep,
) -> float:
    """Sleep until the booking window opens. Returns the seconds waited."""
    remaining = seconds_until(clock(), clock_time, window)
    if remaining <= 0:
        logger.info(f"⏰ No wait needed (opening time {clock_time} KST is not imminent)")
        return 0.0

    minutes, seconds = divmod(int(remaining), 60)
    logger.info(f"⏳ Waiting {minutes}m {seconds}s for {clock_time} KST...")

    waited = 0.0
    while remaining > 0:
        if remaining <= 10:
            logger.info(f"🔥 {int(remaining + 0.999)}...")
            step = min(1.0, remaining)
        else:
            step = min(remaining - 10, 60.0)
        await sleep(step)
        waited += step
        remaining -= step

    logger.info(f"✅ Reached {clock_time} KST")
    return waited
