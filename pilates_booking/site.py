"""
Playwright driver for the mbgym reservation site.

Everything that touches the live page lives here; the decisions about what to
click are made from HTML snapshots by `timetable` and `actions`.
"""

import logging
import os
import platform
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Locator, Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .actions import ActionOutcome, OnclickCall, parse_onclick
from .config import Settings
from .dialogs import DialogWatcher
from .errors import DateUnavailableError, TransientNavigationError
from .schedule import TargetDate
from .timetable import CHECKBOX_SELECTOR, CONTROL_SELECTOR, RowControl, TimeTableRow, read_calendar

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'

BOOKING_PAGE_MARKER = 'res_postform.php'
LOGOUT_LINK = 'a[href*="yeout.php"]'
USERNAME_SELECTORS = ['input#user_id', 'input[name="name"]']
PASSWORD_SELECTORS = ['input#passwd', 'input[name="passwd"]']
SUBMIT_SELECTOR = 'input[type="submit"], button[type="submit"], input[type="image"], button'
SUBMIT_WORDS = ('예약', '확인', '등록')

SCREENSHOT_DIR = 'screenshots'

# Upper bound on month-link clicks while paging the calendar
MAX_MONTH_STEPS = 12


def detect_browser_executable() -> Optional[str]:
    """Find a local Chrome/Chromium when running on a developer Mac."""
    if platform.system() != 'Darwin':
        return None

    local_chromium_paths = [
        '/Applications/Google Chrome.app/Contents/MacOS/Google Chrome',
        '/usr/local/bin/chromium',
        '/opt/homebrew/bin/chromium',
        '/Applications/Chromium.app/Contents/MacOS/Chromium'
    ]
    for path in local_chromium_paths:
        if os.path.exists(path):
            logger.info(f"✅ Found browser at: {path}")
            return path

    logger.info("⚠️  No local browser found, trying default Playwright installation")
    return None


def launch_options(settings: Settings) -> dict:
    args = [
        '--no-sandbox',
        '--disable-setuid-sandbox',
        '--disable-dev-shm-usage',
        '--disable-gpu',
        '--window-size=1920,1080',
        '--lang=ko-KR',
    ]
    if settings.ci:
        # Constrained CI sandboxes cannot fork zygote processes
        args += ['--single-process', '--no-zygote']

    options = {'headless': settings.headless, 'args': args}
    executable = None if settings.ci else detect_browser_executable()
    if executable:
        options['executable_path'] = executable
    return options


class MbgymSite:
    def __init__(self, page: Page, settings: Settings, dialogs: DialogWatcher):
        self.page = page
        self.settings = settings
        self.dialogs = dialogs

    async def screenshot(self, name: str) -> Optional[str]:
        """Save a full-page capture for debugging. Never raises."""
        try:
            os.makedirs(SCREENSHOT_DIR, exist_ok=True)
            filename = os.path.join(
                SCREENSHOT_DIR,
                f"{self.settings.screenshot_prefix}{name}-{int(time.time() * 1000)}.png",
            )
            await self.page.screenshot(path=filename, full_page=True)
            logger.info(f"📸 Screenshot saved: {filename}")
            return filename
        except Exception as e:
            logger.warning(f"⚠️  Screenshot failed: {e}")
            return None

    async def _settle(self, seconds: Optional[float] = None) -> None:
        try:
            await self.page.wait_for_load_state('networkidle', timeout=10000)
        except PlaywrightTimeoutError:
            pass
        delay = self.settings.settle_delay if seconds is None else seconds
        if delay > 0:
            await self.page.wait_for_timeout(delay * 1000)

    async def _first_present(self, selectors: list[str]) -> Optional[str]:
        for selector in selectors:
            if await self.page.query_selector(selector):
                return selector
        return None

    async def _invoke(self, call: OnclickCall, fallback: Locator) -> None:
        """Run the page's own handler by name with the numbers parsed from it."""
        defined = await self.page.evaluate("(name) => typeof window[name] === 'function'", call.name)
        if not defined:
            logger.info(f"⚠️  Handler {call.name}() not defined on page, clicking instead")
            await fallback.click()
            return
        logger.info(f"🎯 Calling {call.name}{call.args}")
        await self.page.evaluate("([name, args]) => { window[name](...args); }", [call.name, list(call.args)])

    async def login(self) -> None:
        """
        Log into the reservation site.

        Raises:
            TransientNavigationError: the login form or button never showed up,
                or the site did not let us in
        """
        logger.info("🔐 Logging in...")
        page = self.page
        await page.set_extra_http_headers({'Accept-Language': 'ko-KR,ko;q=0.9'})

        try:
            await page.goto(self.settings.login_url, wait_until='networkidle', timeout=30000)
        except PlaywrightTimeoutError as e:
            raise TransientNavigationError(f"Login page did not load: {e}") from e

        await self.screenshot('01-login-page')

        if await page.query_selector(LOGOUT_LINK):
            logger.info("✅ Already logged in")
            return

        try:
            await page.wait_for_selector(', '.join(USERNAME_SELECTORS), timeout=10000)
        except PlaywrightTimeoutError as e:
            raise TransientNavigationError("Could not find the login form") from e

        username_selector = await self._first_present(USERNAME_SELECTORS) or USERNAME_SELECTORS[-1]
        password_selector = await self._first_present(PASSWORD_SELECTORS) or PASSWORD_SELECTORS[-1]

        # Clear the fields, then type like a person would
        for selector, value in ((username_selector, self.settings.username),
                                (password_selector, self.settings.password)):
            field = page.locator(selector).first
            await field.fill('')
            await field.press_sequentially(value, delay=50)

        logger.info(f"📝 Entered credentials for {self.settings.username}")

        submit_button = page.locator('input[type="submit"]').first
        if await submit_button.count() == 0:
            raise TransientNavigationError("Could not find the login button")

        try:
            async with page.expect_navigation(wait_until='networkidle', timeout=30000):
                await submit_button.click()
        except PlaywrightTimeoutError:
            logger.info("⚠️  No navigation after login click")

        await self.screenshot('02-after-login')

        if BOOKING_PAGE_MARKER in page.url:
            logger.info("✅ Login successful - booking page reached")
        elif await page.query_selector(LOGOUT_LINK):
            logger.info("✅ Login successful")
        else:
            raise TransientNavigationError(f"Login did not complete (still on {page.url})")

    async def _press(self, control: RowControl) -> None:
        element = self.page.locator(CONTROL_SELECTOR).nth(control.index)
        call = parse_onclick(control.onclick)
        if call:
            await self._invoke(call, element)
        else:
            await element.click()

    async def open_date(self, target: TargetDate) -> None:
        """
        Select the target date in the booking calendar, paging through months
        until the calendar shows the target's month.

        Raises:
            TransientNavigationError: the calendar or its month links are not there
            DateUnavailableError: the date's cell is marked closed
        """
        page = self.page
        wanted = (target.year, target.month)
        logger.info(f"📅 Opening {target.year}-{target.month:02d}-{target.day:02d} in the calendar...")

        if BOOKING_PAGE_MARKER not in page.url:
            logger.info("📍 Not on the booking page yet, reopening it")
            await page.goto(self.settings.login_url, wait_until='networkidle', timeout=30000)

        for attempt in range(MAX_MONTH_STEPS):
            view = read_calendar(await page.content())
            if not view.days:
                raise TransientNavigationError(f"Calendar did not load (on {page.url})")

            if view.month is None or view.month == wanted:
                break

            logger.info(f"📆 Calendar shows {view.month[0]}-{view.month[1]:02d} (attempt {attempt + 1})")
            if view.month < wanted:
                logger.info("➡️  Navigating forward a month...")
                control = view.next_month
            else:
                logger.info("⬅️  Navigating back a month...")
                control = view.previous_month
            if control is None:
                raise TransientNavigationError("Could not find the calendar's month links")
            await self._press(control)
            await self._settle(1.0)
        else:
            raise TransientNavigationError(f"Calendar never reached {wanted[0]}-{wanted[1]:02d}")

        cell = view.cell_for(target.day)
        if cell is None:
            raise TransientNavigationError(f"day {target.day} is not in the calendar")
        if not cell.selectable:
            raise DateUnavailableError(f"day {target.day} is closed ({cell.text})")

        cell_locator = page.locator('td').nth(cell.index)
        if cell.has_link:
            link = cell_locator.locator('a').first
            call = parse_onclick(cell.onclick)
            if call:
                await self._invoke(call, link)
            else:
                await link.click()
        else:
            await cell_locator.click()

        logger.info(f"✅ Day {target.day} selected")
        await self._settle(3.0)
        await self.screenshot('03-booking-page')

    async def timetable_html(self) -> str:
        try:
            await self.page.wait_for_selector('table', timeout=5000)
        except PlaywrightTimeoutError:
            logger.warning("⚠️  Timed out waiting for the time table")
        await self.screenshot('04-time-table')
        return await self.page.content()

    def _row_locator(self, row: TimeTableRow) -> Locator:
        return self.page.locator('table').nth(row.table_index).locator('tr').nth(row.row_index)

    async def activate(self, row: TimeTableRow, outcome: ActionOutcome) -> bool:
        """Click the control chosen for the row.

        Returns True when the click navigated away (an inline handler already
        submitted the form).
        """
        page = self.page
        row_locator = self._row_locator(row)
        url_before = page.url

        if outcome.via == 'checkbox':
            logger.info("☑️  Selecting the row checkbox")
            await row_locator.locator(CHECKBOX_SELECTOR).first.check()
        elif outcome.via == 'row':
            logger.info("👆 Clicking the row")
            await row_locator.click()
        else:
            control = row_locator.locator(CONTROL_SELECTOR).nth(outcome.control.index)
            logger.info(f"👆 Clicking '{outcome.control.label}'")
            call = parse_onclick(outcome.control.onclick)
            if call:
                await self._invoke(call, control)
            else:
                await control.click()

        await self._settle()
        await self.screenshot('05-after-click')
        return page.url != url_before

    async def submit(self) -> bool:
        """Press the form's confirm button, or submit the first form."""
        logger.info("📝 Looking for the submit button...")
        page = self.page
        await page.wait_for_timeout(500)

        for element in await page.query_selector_all(SUBMIT_SELECTOR):
            try:
                text = ((await element.get_attribute('value')) or (await element.text_content()) or '').strip()
                if not (any(word in text for word in SUBMIT_WORDS) or text == 'Submit'):
                    continue
                if not await element.is_visible():
                    continue
                logger.info(f"✅ Clicking submit: {text}")
                await element.click()
                break
            except PlaywrightTimeoutError:
                continue
        else:
            form = await page.query_selector('form')
            if not form:
                logger.warning("⚠️  No submit button or form found")
                return False
            logger.info("✅ Submitting the first form")
            await form.evaluate("(form) => form.submit()")

        await self._settle()
        await self.screenshot('06-after-submit')
        return True

    async def body_text(self) -> str:
        await self.page.wait_for_timeout(1000)
        return await self.page.inner_text('body')

    async def history_text(self) -> str:
        logger.info("📋 Opening booking history...")
        await self.page.goto(self.settings.history_url, wait_until='networkidle', timeout=30000)
        await self._settle()
        await self.screenshot('08-booking-list-page')
        return await self.page.inner_text('body')

    async def calendar_html(self) -> str:
        logger.info("📅 Checking the calendar...")
        await self.page.goto(self.settings.login_url, wait_until='networkidle', timeout=30000)
        await self._settle()
        await self.screenshot('08-calendar')
        return await self.page.content()


@asynccontextmanager
async def open_session(settings: Settings) -> AsyncIterator[MbgymSite]:
    """One browser, one page, dialogs watched from the first navigation on.

    The browser is closed on the way out whatever happened inside.
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(**launch_options(settings))
        try:
            context = await browser.new_context(
                user_agent=USER_AGENT,
                viewport={'width': 1920, 'height': 1080},
                locale='ko-KR',
                timezone_id='Asia/Seoul',
            )
            page = await context.new_page()
            page.set_default_timeout(30000)

            dialogs = DialogWatcher()
            page.on('dialog', dialogs.handle)
            page.on('console', lambda msg: logger.debug(f"[browser]: {msg.text}") if msg.type == 'log' else None)

            yield MbgymSite(page, settings, dialogs)
        finally:
            await browser.close()
            logger.info("🧹 Browser closed")
