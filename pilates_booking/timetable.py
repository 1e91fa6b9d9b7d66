"""
Locate the target class row in the rendered time table.

The booking page is scanned from an HTML snapshot (``page.content()``), so
this module never touches the live page. Rows and controls are addressed by
their document-order index, which the site driver uses to find the same
element again through Playwright locators.

Known markup shapes:
- one table per date with a time cell, a "name(instructor)(current/max)"
  cell and an action cell holding a link ("예약하기", "대기예약", "삭제")
- layout tables wrapping the time table (rows holding a nested table)
- a calendar table whose cells carry the day number and an "X" when closed,
  titled with the displayed month and flanked by previous/next month links
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag  # type: ignore[import]

from .capacity import CourseInfo, parse_capacity
from .matcher import clock_tokens, matches_time
from .schedule import TargetDate

# Interactive controls inside a row, in the order Playwright will see them
CONTROL_SELECTOR = 'a, button, input[type="button"], input[type="submit"], input[type="image"]'
CHECKBOX_SELECTOR = 'input[type="checkbox"]'

CLOSED_MARKER = 'X'

NEXT_MONTH_WORDS = ('다음달', '다음 달', 'next')
PREV_MONTH_WORDS = ('이전달', '이전 달', '지난달', 'prev')
NEXT_MONTH_SYMBOLS = ('>', '>>', '▶', '►', '▷', '»', '›')
PREV_MONTH_SYMBOLS = ('<', '<<', '◀', '◄', '◁', '«', '‹')

_DAY_CELL = re.compile(r'^0?(\d{1,2})(?![\d:：/.월시])')
_MONTH_TITLES = (
    re.compile(r'(\d{4})\s*년\s*(\d{1,2})\s*월'),
    re.compile(r'(?<!\d)(\d{4})\s*[./-]\s*(\d{1,2})(?![\d./-])'),
)
_MONTH_NAME_TITLE = re.compile(
    r'\b(Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?'
    r'|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?\s+(\d{4})\b',
    re.IGNORECASE,
)


@dataclass
class RowControl:
    index: int
    tag: str
    label: str
    onclick: Optional[str] = None
    href: Optional[str] = None


@dataclass
class TimeTableRow:
    table_index: int
    row_index: int
    cells: List[str]
    time_label: Optional[str] = None
    capacity_label: Optional[str] = None
    course: Optional[CourseInfo] = None
    controls: List[RowControl] = field(default_factory=list)
    checkboxes: int = 0

    @property
    def text(self) -> str:
        return ' | '.join(cell for cell in self.cells if cell)


@dataclass
class CalendarCell:
    index: int
    day: int
    text: str
    selectable: bool
    has_link: bool
    onclick: Optional[str] = None


@dataclass
class CalendarView:
    month: Optional[Tuple[int, int]]  # (year, month) from the title, if shown
    days: List[CalendarCell] = field(default_factory=list)
    previous_month: Optional[RowControl] = None
    next_month: Optional[RowControl] = None

    def cell_for(self, day: int) -> Optional[CalendarCell]:
        """The selectable cell for `day`, else its closed cell, else None."""
        matches = [cell for cell in self.days if cell.day == day]
        return next((cell for cell in matches if cell.selectable), matches[0] if matches else None)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or '', 'html.parser')


def _text(node: Tag, separator: str = ' ') -> str:
    return re.sub(r'\s+', ' ', node.get_text(separator)).strip()


def _control_label(node: Tag) -> str:
    label = _text(node)
    if not label:
        label = (node.get('value') or node.get('alt') or node.get('title') or '').strip()
    if not label:
        image = node.find('img')
        if image is not None:
            label = (image.get('alt') or image.get('title') or '').strip()
    if not label:
        # Fall back to the surrounding cell, e.g. an icon link inside "예약하기"
        cell = node.find_parent(['td', 'th'])
        if cell is not None:
            label = _text(cell)
    return label


def _row_cells(row: Tag) -> List[Tag]:
    return row.find_all(['td', 'th'], recursive=False)


def _build_row(table_index: int, row_index: int, row: Tag, target_time: str) -> TimeTableRow:
    cells = _row_cells(row)
    texts = [_text(cell) for cell in cells]

    time_label = next((text for text in texts if matches_time(text, target_time)), None)

    capacity_label = None
    course = None
    for text in texts:
        parsed = parse_capacity(text)
        if parsed:
            capacity_label, course = text, parsed
            break

    controls = []
    for index, node in enumerate(row.select(CONTROL_SELECTOR)):
        controls.append(RowControl(
            index=index,
            tag=node.name,
            label=_control_label(node),
            onclick=node.get('onclick'),
            href=node.get('href'),
        ))

    return TimeTableRow(
        table_index=table_index,
        row_index=row_index,
        cells=texts,
        time_label=time_label,
        capacity_label=capacity_label,
        course=course,
        controls=controls,
        checkboxes=len(row.select(CHECKBOX_SELECTOR)),
    )


def _scan_table(table_index: int, table: Tag, target_time: str) -> Optional[TimeTableRow]:
    for row_index, row in enumerate(table.find_all('tr')):
        if row.find('table') is not None:
            # Layout row wrapping another table; its rows are scanned on their own
            continue
        for cell in _row_cells(row):
            if matches_time(_text(cell), target_time):
                return _build_row(table_index, row_index, row, target_time)
    return None


def _scan_table_rows(table_index: int, table: Tag, target_time: str) -> Optional[TimeTableRow]:
    """Looser pass over a single table: match on the whole row text."""
    for row_index, row in enumerate(table.find_all('tr')):
        if row.find('table') is not None:
            continue
        if matches_time(_text(row), target_time):
            built = _build_row(table_index, row_index, row, target_time)
            if built.time_label is None:
                built.time_label = _text(row)
            return built
    return None


def locate_slot(html: str, target_time: str) -> Optional[TimeTableRow]:
    """
    Find the row of the class starting at `target_time`.

    Tables and rows are scanned in document order and the first matching row
    wins. When no cell matches anywhere, the table with the most clock times
    is taken to be the time table and its rows are matched on their full text.

    Returns:
        TimeTableRow, or None when the slot is not on the page
    """
    soup = _soup(html)
    tables = soup.find_all('table')

    for table_index, table in enumerate(tables):
        row = _scan_table(table_index, table, target_time)
        if row:
            return row

    best_index, best_count = None, 0
    for table_index, table in enumerate(tables):
        count = len(clock_tokens(_text(table)))
        if count > best_count:
            best_index, best_count = table_index, count

    if best_index is None:
        return None
    return _scan_table_rows(best_index, tables[best_index], target_time)


def _month_title(text: str) -> Optional[Tuple[int, int]]:
    """Parse the displayed month from titles like "2025년 3월", "2025.03" or "March 2025"."""
    for pattern in _MONTH_TITLES:
        for match in pattern.finditer(text):
            year, month = int(match.group(1)), int(match.group(2))
            if 1 <= month <= 12:
                return year, month

    for match in _MONTH_NAME_TITLE.finditer(text):
        try:
            parsed = datetime.strptime(f"{match.group(1)[:3]} {match.group(2)}", "%b %Y")
        except ValueError:
            continue
        return parsed.year, parsed.month
    return None


def _month_direction(node: Tag) -> int:
    """+1 for a next-month control, -1 for a previous-month control, else 0."""
    label = _control_label(node).strip().lower()
    classes = ' '.join(node.get('class') or []).lower()
    if label in NEXT_MONTH_SYMBOLS or any(word in label for word in NEXT_MONTH_WORDS) or 'next' in classes:
        return 1
    if label in PREV_MONTH_SYMBOLS or any(word in label for word in PREV_MONTH_WORDS) or 'prev' in classes:
        return -1
    return 0


def _month_run(cells: List[CalendarCell]) -> List[CalendarCell]:
    """The longest run of consecutive days starting at 1.

    Filler days of the neighbouring months sit before the 1st and after the
    last day, so they fall outside the run.
    """
    best: List[CalendarCell] = []
    for start, cell in enumerate(cells):
        if cell.day != 1:
            continue
        run = [cell]
        for following in cells[start + 1:]:
            if following.day != run[-1].day + 1:
                break
            run.append(following)
        if len(run) > len(best):
            best = run
    return best or cells


def read_calendar(html: str) -> CalendarView:
    """
    Read the month calendar: its displayed month, its day cells and the
    month navigation controls.

    Day cells are ``td`` elements whose text starts with a day number (digit
    boundary respected, so "12" is not day 1 and "10:30" or "3월" are not
    days). Indices are positions among all ``td`` elements of the page;
    control indices count every element matching CONTROL_SELECTOR.
    """
    soup = _soup(html)

    candidates = []
    for index, cell in enumerate(soup.find_all('td')):
        if cell.find('td') is not None:
            continue
        text = _text(cell)
        match = _DAY_CELL.match(text)
        if not match or not 1 <= int(match.group(1)) <= 31:
            continue

        link = cell.find('a')
        closed = CLOSED_MARKER in text and link is None
        candidates.append(CalendarCell(
            index=index,
            day=int(match.group(1)),
            text=text,
            selectable=not closed,
            has_link=link is not None,
            onclick=link.get('onclick') if link is not None else cell.get('onclick'),
        ))

    view = CalendarView(month=_month_title(_text(soup)), days=_month_run(candidates))
    for index, node in enumerate(soup.select(CONTROL_SELECTOR)):
        direction = _month_direction(node)
        if not direction:
            continue
        control = RowControl(index=index, tag=node.name, label=_control_label(node),
                             onclick=node.get('onclick'), href=node.get('href'))
        if direction > 0 and view.next_month is None:
            view.next_month = control
        elif direction < 0 and view.previous_month is None:
            view.previous_month = control
    return view


def find_calendar_cell(html: str, target: TargetDate) -> Optional[CalendarCell]:
    """
    Find the calendar cell of the target date.

    Returns None when the calendar shows another month or the day is not
    in it. A closed cell is returned flagged unselectable.
    """
    view = read_calendar(html)
    if view.month is not None and view.month != (target.year, target.month):
        return None
    return view.cell_for(target.day)
