"""
Pilates class booking bot.

Books the configured class (10:30 by default) seven days ahead in Korean time:
log in, open the target date, find the class row, reserve or join the
waitlist, submit and verify. Each attempt runs in a fresh browser session and
the whole run is retried a bounded number of times.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

import pytz

from .actions import ActionKind, ActionOutcome, not_found, resolve_action
from .config import Settings
from .dialogs import DialogKind
from .errors import (
    AuthenticationError,
    ConcurrencyConflictError,
    DateUnavailableError,
    SlotNotFoundError,
    TransientNavigationError,
)
from .notify import send_failure_email
from .results import RunResult, RunStatus, write_result
from .schedule import TargetDate, compute_target, now_kst, should_skip
from .site import open_session
from .timetable import locate_slot
from .verify import calendar_confirms, has_success_marker, history_confirms

logger = logging.getLogger(__name__)


class BookingState(Enum):
    INIT = 'init'
    LOGGING_IN = 'logging_in'
    NAVIGATING = 'navigating'
    LOCATING = 'locating'
    ACTING = 'acting'
    SUBMITTING = 'submitting'
    VERIFYING = 'verifying'
    DONE = 'done'


@dataclass
class RetryState:
    attempt: int = 0
    max_attempts: int = 3
    last_error: Optional[BaseException] = None


@dataclass
class AttemptResult:
    status: RunStatus
    message: str
    verified: Optional[bool] = None


class PilatesBookingBot:
    def __init__(
        self,
        settings: Settings,
        session_factory=open_session,
        clock: Callable[[], datetime] = lambda: datetime.now(pytz.utc),
        sleep=asyncio.sleep,
        notifier=send_failure_email,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.clock = clock
        self.sleep = sleep
        self.notifier = notifier
        self.target: Optional[TargetDate] = None
        self.retry = RetryState(max_attempts=settings.max_attempts)
        self.trail: List[BookingState] = []

    def _enter(self, state: BookingState) -> None:
        self.trail.append(state)
        logger.debug(f"➡️  {state.value}")

    def _result(self, status: RunStatus, message: str, verified: Optional[bool] = None) -> RunResult:
        return RunResult(
            date=self.target.label,
            slot=self.settings.class_time,
            status=status,
            message=message,
            verified=verified,
            timestamp=now_kst(self.clock()).isoformat(),
        )

    def _save(self, result: RunResult) -> None:
        try:
            write_result(self.settings.result_file, result)
        except OSError as e:
            logger.error(f"❌ Could not write {self.settings.result_file}: {e}")

    async def run(self) -> int:
        """
        Run the booking once.

        Returns:
            Process exit code: 0 for success, weekend skip, dry run or an
            existing booking; 1 otherwise
        """
        kst_now = now_kst(self.clock())
        # Computed once; every later step reuses it even if midnight passes
        self.target = compute_target(kst_now, self.settings.days_ahead)

        logger.info(f"=== Booking start: {kst_now.strftime('%Y-%m-%d %H:%M:%S')} (KST) ===")
        logger.info(f"📅 Target date: {self.target.label} ({self.target.day_name})")
        logger.info(f"🕘 Target class: {self.settings.class_time}")

        if should_skip(self.target):
            logger.info(f"🚫 No bookings on weekends ({self.target.day_name})")
            self._save(self._result(RunStatus.WEEKEND_SKIP, f"Weekend ({self.target.day_name}) skipped"))
            return 0

        logger.info(f"✅ Weekday ({self.target.day_name}) - booking")
        if self.settings.test_mode:
            logger.info("⚠️  Running in TEST MODE (nothing will be submitted)")

        result = await self._run_attempts()
        self._save(result)

        if result.status == RunStatus.FAILED:
            logger.info("❌❌❌ Booking failed ❌❌❌")
        elif result.status in (RunStatus.SUCCESS, RunStatus.WAITING):
            logger.info("🎉🎉🎉 Booking process succeeded! 🎉🎉🎉")
            if result.status == RunStatus.WAITING:
                logger.info("⚠️  Registered on the waitlist")

        if result.status.exit_code:
            self.notifier(result, self.settings, str(self.retry.last_error or ''))
        return result.status.exit_code

    async def _run_attempts(self) -> RunResult:
        retry = self.retry
        while retry.attempt < retry.max_attempts:
            retry.attempt += 1
            self._enter(BookingState.INIT)
            delay = self.settings.retry_delay

            try:
                outcome = await self._attempt()
            except (AuthenticationError, DateUnavailableError) as e:
                retry.last_error = e
                self._enter(BookingState.DONE)
                logger.error(f"🛑 Attempt {retry.attempt}/{retry.max_attempts} aborted: {e}")
                reason = "Login rejected" if isinstance(e, AuthenticationError) else "Date unavailable"
                return self._result(RunStatus.FAILED, f"{reason}: {e}")
            except ConcurrencyConflictError as e:
                retry.last_error = e
                self._enter(BookingState.DONE)
                logger.warning(f"❌ Attempt {retry.attempt}/{retry.max_attempts} failed: concurrent submission conflict ({e})")
                delay = self.settings.conflict_delay
            except Exception as e:
                retry.last_error = e
                self._enter(BookingState.DONE)
                logger.warning(f"❌ Attempt {retry.attempt}/{retry.max_attempts} failed: {e}")
            else:
                return self._result(outcome.status, outcome.message, outcome.verified)

            if retry.attempt < retry.max_attempts:
                logger.info(f"⏳ Retrying in {delay:g}s...")
                await self.sleep(delay)

        return self._result(
            RunStatus.FAILED,
            f"Booking failed after {retry.max_attempts} attempts: {retry.last_error}",
        )

    async def _attempt(self) -> AttemptResult:
        settings = self.settings
        async with self.session_factory(settings) as site:
            self._enter(BookingState.LOGGING_IN)
            try:
                await site.login()
            except TransientNavigationError:
                # A rejected-member alert explains a login that went nowhere
                await self._absorb_dialogs(site)
                raise
            await self._absorb_dialogs(site)

            self._enter(BookingState.NAVIGATING)
            await site.open_date(self.target)

            self._enter(BookingState.LOCATING)
            logger.info(f"🔍 Looking for the {settings.class_time} class...")
            row = locate_slot(await site.timetable_html(), settings.class_time)
            if row is None:
                raise SlotNotFoundError(not_found(settings.class_time).message)

            outcome = resolve_action(row)
            logger.info(f"🔍 Search result: {outcome.message}")
            if outcome.course:
                course = outcome.course
                logger.info(f"   {course.name} / {course.instructor or '-'} ({course.current}/{course.max})")

            if outcome.kind == ActionKind.ALREADY_BOOKED:
                self._enter(BookingState.DONE)
                logger.info("✅ Already booked - nothing to do")
                return AttemptResult(RunStatus.ALREADY_BOOKED, outcome.message, verified=True)

            if outcome.kind == ActionKind.CLOSED:
                self._enter(BookingState.DONE)
                logger.info(f"🚫 {outcome.message}")
                return AttemptResult(RunStatus.CLOSED, outcome.message)

            if settings.test_mode:
                self._enter(BookingState.DONE)
                logger.info(f"🧪 Dry run: {outcome.kind.value} is available, not clicking")
                return AttemptResult(RunStatus.TEST, f"[TEST] {outcome.message}")

            return await self._book(site, row, outcome)

    async def _book(self, site, row, outcome: ActionOutcome) -> AttemptResult:
        settings = self.settings

        self._enter(BookingState.ACTING)
        navigated = await site.activate(row, outcome)
        wait = settings.dialog_wait if outcome.expects_dialog else 0
        confirmed = await self._absorb_dialogs(site, wait)

        # A link's inline handler may already have submitted the form
        auto_submitted = outcome.via == 'link' and (navigated or confirmed)
        if outcome.requires_submit and not auto_submitted:
            self._enter(BookingState.SUBMITTING)
            if not await site.submit():
                logger.warning("⚠️  Nothing to submit on the page")
            confirmed = await self._absorb_dialogs(site, settings.dialog_wait) or confirmed

        self._enter(BookingState.VERIFYING)
        verified = await self._verify(site, confirmed)
        self._enter(BookingState.DONE)

        status = RunStatus.WAITING if outcome.kind == ActionKind.WAITLIST else RunStatus.SUCCESS
        return AttemptResult(status, outcome.message, verified)

    async def _absorb_dialogs(self, site, wait: float = 0) -> bool:
        """Turn queued dialogs into errors; True if one reported success."""
        confirmed = False
        for event in await site.dialogs.collect(wait):
            if event.kind == DialogKind.AUTH_FAILED:
                raise AuthenticationError(event.message)
            if event.kind == DialogKind.CONFLICT:
                raise ConcurrencyConflictError(event.message)
            if event.kind == DialogKind.TIMEOUT:
                raise TransientNavigationError(f"Site timed out: {event.message}")
            if event.kind == DialogKind.SUCCESS:
                logger.info("🎉 Booking success dialog seen!")
                confirmed = True
        return confirmed

    async def _verify(self, site, confirmed: bool) -> bool:
        """
        Look for evidence that the booking exists.

        An inconclusive check still counts as done (verified=False): the click
        already went through and a retry could book twice.
        """
        logger.info("🔍 Verifying booking...")
        if confirmed:
            logger.info("✅ Confirmed by the site's success dialog")
            return True

        try:
            phrase = has_success_marker(await site.body_text())
            if phrase:
                logger.info(f"✅ Success message on page: {phrase}")
                await site.screenshot('08-booking-success-message')
                return True

            found = history_confirms(await site.history_text(), self.target, self.settings.class_time)
            if found:
                logger.info(f"✅ Booking found in history ({found} {self.settings.class_time})")
                return True

            if calendar_confirms(await site.calendar_html(), self.target):
                logger.info("✅ Booking marked in the calendar")
                return True
        except (ConcurrencyConflictError, AuthenticationError):
            raise
        except Exception as e:
            logger.warning(f"⚠️  Verification error: {e}")

        if await self._absorb_dialogs(site):
            return True

        logger.warning("⚠️  No explicit confirmation found - booking flow completed")
        return False
