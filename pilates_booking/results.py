"""The JSON result file written once per run."""

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .schedule import now_kst

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    SUCCESS = 'SUCCESS'
    WAITING = 'WAITING'
    ALREADY_BOOKED = 'ALREADY_BOOKED'
    WEEKEND_SKIP = 'WEEKEND_SKIP'
    CLOSED = 'CLOSED'
    FAILED = 'FAILED'
    TEST = 'TEST'

    @property
    def exit_code(self) -> int:
        return 1 if self in (RunStatus.FAILED, RunStatus.CLOSED) else 0


@dataclass
class RunResult:
    date: str
    slot: str
    status: RunStatus
    message: str
    verified: Optional[bool] = None
    timestamp: Optional[str] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = now_kst().isoformat()

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'date': self.date,
            'class': self.slot,
            'status': self.status.value,
            'message': self.message,
            'verified': self.verified,
        }


def write_result(path: str, result: RunResult) -> None:
    """Overwrite `path` with the run result."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, ensure_ascii=False, indent=2)
    logger.info(f"💾 Result saved to {path}: {result.status.value}")


def read_result(path: str) -> Optional[dict]:
    if not os.path.exists(path):
        return None
    with open(path, encoding='utf-8') as f:
        return json.load(f)
