"""
Decide whether a piece of time-table text denotes the target class time.

The time table renders times in several shapes ("10:30", "오전 10:30",
"10:30~11:20", "10시 30분") and neighbouring classes share digits with the
target, so plain substring checks are not enough.
"""

import re
from typing import List, NamedTuple

# Leading period markers are irrelevant for the comparison
_PERIOD_MARKERS = re.compile(r'(오전|오후|(?<![A-Za-z])[AaPp]\.?\s?[Mm]\.?(?![A-Za-z]))')

_CLOCK = re.compile(
    r'(?<![\d:])(\d{1,2})\s*:\s*(\d{2})(?::\d{2})?(?![\d:])'
    r'|(?<!\d)(\d{1,2})\s*시\s*(\d{1,2})\s*분'
)

_RANGE_SEPARATOR = re.compile(r'[-–—~〜]\s*$')

# Classes an hour either side of the target that must never be mistaken for it
ADJACENT_OFFSETS = (-60, 60)


class ClockToken(NamedTuple):
    minutes: int
    text: str
    range_end: bool


def normalize_time_text(text: str) -> str:
    """Use ASCII colons and drop AM/PM style markers."""
    text = (text or '').replace('：', ':')
    text = _PERIOD_MARKERS.sub(' ', text)
    return re.sub(r'\s+', ' ', text).strip()


def parse_clock(value: str) -> int:
    """'10:30' -> 630 (minutes after midnight)."""
    hours, minutes = normalize_time_text(value).split(':')
    return int(hours) * 60 + int(minutes)


def clock_tokens(text: str) -> List[ClockToken]:
    """Every clock time in `text`, in order of appearance."""
    normalized = normalize_time_text(text)
    tokens = []
    for match in _CLOCK.finditer(normalized):
        hours = match.group(1) or match.group(3)
        minutes = match.group(2) or match.group(4)
        hour, minute = int(hours), int(minutes)
        if hour > 23 or minute > 59:
            continue
        preceding = normalized[:match.start()]
        tokens.append(ClockToken(
            minutes=hour * 60 + minute,
            text=match.group(0),
            range_end=bool(_RANGE_SEPARATOR.search(preceding)),
        ))
    return tokens


def matches_time(text: str, target: str) -> bool:
    """True when `text` denotes the class starting at `target` ("HH:MM").

    Exclusions win: if a neighbouring slot (09:30 or 11:30 for
    10:30) appears as a start time anywhere in the text, the text belongs to
    that other class even if the target also appears in it.
    """
    wanted = parse_clock(target)
    excluded = {(wanted + offset) % (24 * 60) for offset in ADJACENT_OFFSETS}
    tokens = clock_tokens(text)

    for token in tokens:
        if token.minutes in excluded and not token.range_end:
            return False

    return any(token.minutes == wanted and not token.range_end for token in tokens)
