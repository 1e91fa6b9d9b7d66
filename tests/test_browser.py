"""Real-browser checks. Needs `playwright install chromium`; opt in with RUN_BROWSER_TESTS=true."""
import asyncio
import os

import pytest

from pilates_booking.actions import resolve_action
from pilates_booking.dialogs import DialogKind
from pilates_booking.site import open_session
from pilates_booking.timetable import locate_slot

from conftest import TIMETABLE_HTML

pytestmark = pytest.mark.skipif(
    os.getenv('RUN_BROWSER_TESTS') != 'true',
    reason="set RUN_BROWSER_TESTS=true to launch a browser",
)

PAGE = TIMETABLE_HTML.replace(
    '<html><body>',
    '<html><head><script>function res_ok(n) { window.picked = n; alert("예약이 완료되었습니다"); }</script></head><body>',
)


def test_dialogs_are_accepted_and_queued(settings, workdir):
    async def scenario():
        async with open_session(settings) as site:
            await site.page.set_content('<p>hello</p>')
            await site.page.evaluate("() => alert('잠시 후 다시 시도해 주세요')")
            return await site.dialogs.collect(wait=2)

    events = asyncio.run(scenario())
    assert [e.kind for e in events] == [DialogKind.CONFLICT]


def test_activate_calls_row_handler(settings, workdir):
    async def scenario():
        async with open_session(settings) as site:
            await site.page.set_content(PAGE)
            row = locate_slot(await site.page.content(), '10:30')
            outcome = resolve_action(row)
            await site.activate(row, outcome)
            picked = await site.page.evaluate('() => window.picked')
            return picked, await site.dialogs.collect(wait=2)

    picked, events = asyncio.run(scenario())
    assert picked == 3
    assert [e.kind for e in events] == [DialogKind.SUCCESS]
