"""
Native alert/confirm handling.

Every dialog is accepted as soon as it appears (an open dialog blocks the
whole page) and turned into a DialogEvent on a queue. The booking flow drains
that queue at its own checkpoints; the handler never changes control flow.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

logger = logging.getLogger(__name__)

AUTH_FAILED_PHRASES = ('등록되어 있지 않습니다',)
CONFLICT_PHRASES = ('동시신청', '잠시 후')
TIMEOUT_PHRASES = ('시간초과', 'time out', 'timeout')
SUCCESS_VERBS = ('완료', '성공', '등록')


class DialogKind(Enum):
    SUCCESS = 'success'
    CONFLICT = 'conflict'
    TIMEOUT = 'timeout'
    AUTH_FAILED = 'auth_failed'
    NOTICE = 'notice'


@dataclass(frozen=True)
class DialogEvent:
    kind: DialogKind
    message: str


def classify_dialog(message: str) -> DialogKind:
    text = (message or '').strip()
    lowered = text.lower()
    if any(phrase in text for phrase in AUTH_FAILED_PHRASES):
        return DialogKind.AUTH_FAILED
    if any(phrase in text for phrase in CONFLICT_PHRASES):
        return DialogKind.CONFLICT
    if any(phrase in lowered for phrase in TIMEOUT_PHRASES):
        return DialogKind.TIMEOUT
    if '예약' in text and any(verb in text for verb in SUCCESS_VERBS):
        return DialogKind.SUCCESS
    return DialogKind.NOTICE


class DialogWatcher:
    """Accepts page dialogs and queues what they said."""

    def __init__(self):
        self._events: asyncio.Queue = asyncio.Queue()

    async def handle(self, dialog) -> None:
        """Playwright ``page.on("dialog")`` callback."""
        message = dialog.message
        logger.info(f"📢 Dialog: {message}")
        try:
            await dialog.accept()
        except Exception as e:
            logger.warning(f"⚠️  Could not accept dialog: {e}")
        self.push(message)

    def push(self, message: str) -> DialogEvent:
        event = DialogEvent(classify_dialog(message), message)
        self._events.put_nowait(event)
        return event

    async def collect(self, wait: float = 0.0) -> List[DialogEvent]:
        """Return queued events, waiting up to `wait` seconds for the first one."""
        events = []
        if wait > 0 and self._events.empty():
            try:
                events.append(await asyncio.wait_for(self._events.get(), timeout=wait))
            except asyncio.TimeoutError:
                return events
        while not self._events.empty():
            events.append(self._events.get_nowait())
        return events
