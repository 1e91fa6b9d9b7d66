"""Console and file logging for a booking run."""

import logging
import os
from datetime import datetime

from .schedule import KST


class KSTFormatter(logging.Formatter):
    """Prefix every line with an ISO-8601 timestamp in Korean time."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, KST)
        return stamp.isoformat(timespec='milliseconds')


def setup_logging(log_file: str, level: int = logging.INFO) -> logging.Logger:
    """Attach a console handler and an append-only file handler.

    Calling it twice replaces the handlers instead of stacking them.
    """
    logger = logging.getLogger('pilates_booking')
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(console)

    try:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(KSTFormatter('[%(asctime)s] %(message)s'))
        logger.addHandler(file_handler)
    except OSError as e:
        # The console still works; a missing log file must not stop a booking
        logger.warning(f"⚠️  Could not open log file {log_file}: {e}")

    return logger
