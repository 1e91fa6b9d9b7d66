"""Shared fixtures: settings, a fixed clock and an in-memory booking site."""
from contextlib import asynccontextmanager
from datetime import datetime

import pytest

from pilates_booking.config import Settings
from pilates_booking.dialogs import DialogWatcher
from pilates_booking.errors import DateUnavailableError
from pilates_booking.schedule import KST


TIMETABLE_HTML = """
<html><body>
<table class="calendar">
  <tr><td>10</td><td><a href="#" onclick="goDate(11)">11</a></td><td>12 X</td></tr>
</table>
<table class="timetable">
  <tr><th>시간</th><th>수업</th><th>예약</th></tr>
  <tr><td>오전 09:30</td><td>매트(지수쌤)(3/8)</td><td><a href="#" onclick="res_ok(2)">예약하기</a></td></tr>
  <tr><td>오전 10:30</td><td>바렐 체어(승정쌤)(4/8)</td><td><a href="#" onclick="res_ok(3)">예약하기</a></td></tr>
  <tr><td>오전 11:30</td><td>리포머(민지쌤)(8/8)</td><td><a href="#">대기예약</a></td></tr>
</table>
</body></html>
"""


def timetable(action_cell: str, course: str = "바렐 체어(승정쌤)(4/8)", time_cell: str = "오전 10:30") -> str:
    """A one-class time table with a custom action cell."""
    return f"""
    <table>
      <tr><th>시간</th><th>수업</th><th>예약</th></tr>
      <tr><td>오전 09:30</td><td>매트(지수쌤)(3/8)</td><td><a href="#">예약하기</a></td></tr>
      <tr><td>{time_cell}</td><td>{course}</td><td>{action_cell}</td></tr>
    </table>
    """


def month_calendar(year: int, month: int, last_day: int, marks=None, leading=(), trailing=()) -> str:
    """A month calendar with month links; `marks` maps a day to "X" (closed) or "*" (booked)."""
    marks = marks or {}
    cells = [f'<td class="other">{day}</td>' for day in leading]
    for day in range(1, last_day + 1):
        mark = marks.get(day)
        if mark == "X":
            cells.append(f"<td>{day} X</td>")
        else:
            suffix = f" {mark}" if mark else ""
            cells.append(f'<td><a href="#" onclick="goDate({day})">{day}</a>{suffix}</td>')
    cells += [f'<td class="other">{day}</td>' for day in trailing]
    rows = "".join("<tr>" + "".join(cells[i:i + 7]) + "</tr>" for i in range(0, len(cells), 7))

    prev_year, prev_month = (year, month - 1) if month > 1 else (year - 1, 12)
    next_year, next_month = (year, month + 1) if month < 12 else (year + 1, 1)
    return f"""
    <div class="month-nav">
      <a href="#" onclick="goMonth({prev_year}, {prev_month})">◀ 이전달</a>
      <b>{year}년 {month}월</b>
      <a href="#" onclick="goMonth({next_year}, {next_month})">다음달 ▶</a>
    </div>
    <table class="calendar">
      <tr><th>일</th><th>월</th><th>화</th><th>수</th><th>목</th><th>금</th><th>토</th></tr>
      {rows}
    </table>
    """


def kst(*args) -> datetime:
    return KST.localize(datetime(*args))


# 2025-03-04 is a Tuesday, so the target (2025-03-11) is a Tuesday too
TUESDAY_MORNING = kst(2025, 3, 4, 0, 0, 5)
# 2025-03-02 is a Sunday, target 2025-03-09 is a Sunday
SUNDAY_MORNING = kst(2025, 3, 2, 0, 0, 5)


@pytest.fixture
def settings():
    return Settings(
        username="홍길동",
        password="1234",
        retry_delay=0,
        conflict_delay=0,
        dialog_wait=0.01,
        settle_delay=0,
    )


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


class FakeSite:
    """Stands in for MbgymSite; dialogs go through a real DialogWatcher."""

    def __init__(
        self,
        html=TIMETABLE_HTML,
        login_error=None,
        login_dialogs=(),
        date_unavailable=False,
        click_dialogs=(),
        submit_dialogs=(),
        navigate_on_click=False,
        body="",
        history="",
        calendar="",
    ):
        self.html = html
        self.login_error = login_error
        self.login_dialogs = login_dialogs
        self.date_unavailable = date_unavailable
        self.click_dialogs = click_dialogs
        self.submit_dialogs = submit_dialogs
        self.navigate_on_click = navigate_on_click
        self.body = body
        self.history = history
        self.calendar = calendar
        self.dialogs = DialogWatcher()
        self.calls = []

    async def login(self):
        self.calls.append("login")
        for message in self.login_dialogs:
            self.dialogs.push(message)
        if self.login_error:
            raise self.login_error

    async def open_date(self, target):
        self.calls.append(("open_date", target.day))
        if self.date_unavailable:
            raise DateUnavailableError(f"day {target.day} is closed ({target.day} X)")

    async def timetable_html(self):
        self.calls.append("timetable")
        if isinstance(self.html, Exception):
            raise self.html
        return self.html

    async def activate(self, row, outcome):
        self.calls.append(("activate", outcome.kind, outcome.via))
        for message in self.click_dialogs:
            self.dialogs.push(message)
        return self.navigate_on_click

    async def submit(self):
        self.calls.append("submit")
        for message in self.submit_dialogs:
            self.dialogs.push(message)
        return True

    async def body_text(self):
        self.calls.append("body")
        return self.body

    async def history_text(self):
        self.calls.append("history")
        return self.history

    async def calendar_html(self):
        self.calls.append("calendar")
        return self.calendar

    async def screenshot(self, name):
        return None


class FakeSessions:
    """Session factory handing out a fresh FakeSite per attempt."""

    def __init__(self, build):
        self.build = build
        self.sites = []
        self.closed = 0

    @asynccontextmanager
    async def __call__(self, settings):
        site = self.build(len(self.sites) + 1)
        self.sites.append(site)
        try:
            yield site
        finally:
            self.closed += 1

    @property
    def opened(self):
        return len(self.sites)
