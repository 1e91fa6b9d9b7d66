"""Decide what can be done with a located time-table row."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .capacity import CourseInfo
from .timetable import RowControl, TimeTableRow

# Every label variant the site has used for each action, matched case-insensitively
RESERVE_PHRASES = ('예약하기', '예약신청', '예약 하기', 'reserve', 'book now')
WAITLIST_PHRASES = ('대기예약', '대기 예약', '대기', 'waitlist', 'wait list', 'waiting')
CANCEL_PHRASES = ('삭제', '취소', 'cancel', 'delete')


class ActionKind(Enum):
    RESERVE = 'reserve'
    WAITLIST = 'waitlist'
    ALREADY_BOOKED = 'already_booked'
    CLOSED = 'closed'
    NOT_FOUND = 'not_found'


@dataclass
class ActionOutcome:
    kind: ActionKind
    message: str
    course: Optional[CourseInfo] = None
    control: Optional[RowControl] = None
    requires_submit: bool = False
    expects_dialog: bool = False
    via: str = 'link'  # link | checkbox | row

    @property
    def actionable(self) -> bool:
        return self.kind in (ActionKind.RESERVE, ActionKind.WAITLIST)


@dataclass(frozen=True)
class OnclickCall:
    name: str
    args: Tuple[int, ...]


_ONCLICK = re.compile(
    r'^\s*(?:javascript:)?\s*([A-Za-z_$][\w$]*)\s*\(([^()]*)\)\s*;?\s*(?:return\s+(?:true|false)\s*;?\s*)?$'
)
_NUMERIC_ARG = re.compile(r'''^\s*(['"]?)(-?\d+)\1\s*$''')


def parse_onclick(attr: Optional[str]) -> Optional[OnclickCall]:
    """Read an inline handler like "goRes(3, '12')" as a function name and numbers.

    Anything that is not a single call with integer arguments is rejected, so
    handler text from the page is never executed as script.
    """
    if not attr:
        return None
    match = _ONCLICK.match(attr)
    if not match:
        return None

    name, raw_args = match.group(1), match.group(2).strip()
    args: List[int] = []
    if raw_args:
        for raw in raw_args.split(','):
            number = _NUMERIC_ARG.match(raw)
            if not number:
                return None
            args.append(int(number.group(2)))
    return OnclickCall(name=name, args=tuple(args))


def classify_label(label: str) -> Optional[ActionKind]:
    """Map a control label to the action it triggers.

    Cancel wins over waitlist and waitlist over reserve for a single label,
    so "대기취소" is a cancel and "대기예약" is a waitlist.
    """
    text = (label or '').strip().lower()
    if not text:
        return None
    if any(phrase in text for phrase in CANCEL_PHRASES):
        return ActionKind.ALREADY_BOOKED
    if any(phrase in text for phrase in WAITLIST_PHRASES):
        return ActionKind.WAITLIST
    if any(phrase in text for phrase in RESERVE_PHRASES):
        return ActionKind.RESERVE
    return None


def resolve_action(row: TimeTableRow) -> ActionOutcome:
    """
    Pick the action available for a row.

    Order of preference: a reserve control, a waitlist control, a cancel
    control (the slot is already ours). A full class with no recognized
    control is waitlisted through the row's checkbox (or the row itself),
    which needs an explicit confirmation submit afterwards. Anything else is
    treated as closed.
    """
    slot = row.time_label or row.text
    by_kind = {}
    for control in row.controls:
        kind = classify_label(control.label)
        if kind is not None and kind not in by_kind:
            by_kind[kind] = control

    if ActionKind.RESERVE in by_kind:
        return ActionOutcome(
            kind=ActionKind.RESERVE,
            message=f"{slot} class reserve clicked",
            course=row.course,
            control=by_kind[ActionKind.RESERVE],
            requires_submit=True,
        )

    if ActionKind.WAITLIST in by_kind:
        return ActionOutcome(
            kind=ActionKind.WAITLIST,
            message=f"{slot} class waitlist clicked",
            course=row.course,
            control=by_kind[ActionKind.WAITLIST],
            requires_submit=True,
            expects_dialog=True,
        )

    if ActionKind.ALREADY_BOOKED in by_kind:
        return ActionOutcome(
            kind=ActionKind.ALREADY_BOOKED,
            message=f"{slot} class is already booked",
            course=row.course,
        )

    if row.course is not None and row.course.is_full:
        return ActionOutcome(
            kind=ActionKind.WAITLIST,
            message=f"{slot} class is full ({row.course.current}/{row.course.max}), joining waitlist",
            course=row.course,
            requires_submit=True,
            expects_dialog=True,
            via='checkbox' if row.checkboxes else 'row',
        )

    return ActionOutcome(
        kind=ActionKind.CLOSED,
        message=f"{slot} class is not bookable: {row.text}",
        course=row.course,
    )


def not_found(target_time: str) -> ActionOutcome:
    return ActionOutcome(kind=ActionKind.NOT_FOUND, message=f"{target_time} class not found")
