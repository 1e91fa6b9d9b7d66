"""Runtime settings read from the environment (and a local .env file)."""

import os
import re
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_BASE_URL = 'https://ad2.mbgym.kr'
DEFAULT_CLASS_TIME = '10:30'
DEFAULT_OPEN_AT = '00:00'

_CLOCK_TIME = re.compile(r'^([01]?\d|2[0-3]):[0-5]\d$')

USAGE = """❌ Environment variables are required:
   PILATES_USERNAME: member name
   PILATES_PASSWORD: member number

💡 How to set them:
   1. Create a .env file (local runs)
   2. Configure repository secrets (GitHub Actions)"""


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() == 'true'


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def valid_clock_time(value: str) -> bool:
    """True for a 24-hour "HH:MM" (or "H:MM") time."""
    return bool(_CLOCK_TIME.match(value or ''))


def _env_clock(name: str, default: str) -> str:
    value = os.getenv(name, default).strip()
    if not valid_clock_time(value):
        raise ConfigurationError(f"❌ {name} must be a 24-hour HH:MM time (got '{value}')")
    return value


@dataclass
class Settings:
    username: str
    password: str
    base_url: str = DEFAULT_BASE_URL
    class_time: str = DEFAULT_CLASS_TIME
    open_at: str = DEFAULT_OPEN_AT
    test_mode: bool = False
    skip_wait: bool = False
    headless: bool = True
    ci: bool = False
    days_ahead: int = 7
    max_attempts: int = 3
    retry_delay: float = 1.0
    conflict_delay: float = 3.0
    dialog_wait: float = 2.0
    settle_delay: float = 2.0
    smtp_server: str = 'smtp.gmail.com'
    smtp_port: int = 587
    sender_email: Optional[str] = None
    sender_password: Optional[str] = None
    recipient_email: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from environment variables.

        Raises ConfigurationError when the credentials are missing or a clock
        time is not HH:MM, before anything touches the network.
        """
        load_dotenv()

        username = os.getenv('PILATES_USERNAME')
        password = os.getenv('PILATES_PASSWORD')
        if not username or not password:
            raise ConfigurationError(USAGE)

        try:
            smtp_port = int(os.getenv('SMTP_PORT', '587'))
        except ValueError:
            smtp_port = 587

        return cls(
            username=username,
            password=password,
            base_url=os.getenv('PILATES_BASE_URL', DEFAULT_BASE_URL).rstrip('/'),
            class_time=_env_clock('PILATES_CLASS_TIME', DEFAULT_CLASS_TIME),
            open_at=_env_clock('BOOKING_OPEN_AT', DEFAULT_OPEN_AT),
            test_mode=_env_flag('TEST_MODE'),
            skip_wait=_env_flag('SKIP_WAIT'),
            # Headless unless explicitly disabled
            headless=os.getenv('HEADLESS', 'true').strip().lower() != 'false',
            ci=_env_flag('GITHUB_ACTIONS') or _env_flag('CI'),
            retry_delay=_env_float('RETRY_DELAY', 1.0),
            conflict_delay=_env_float('CONFLICT_RETRY_DELAY', 3.0),
            smtp_server=os.getenv('SMTP_SERVER', 'smtp.gmail.com'),
            smtp_port=smtp_port,
            sender_email=os.getenv('SENDER_EMAIL'),
            sender_password=os.getenv('SENDER_PASSWORD'),
            recipient_email=os.getenv('RECIPIENT_EMAIL'),
        )

    @property
    def result_file(self) -> str:
        return 'test-result.json' if self.test_mode else 'booking-result.json'

    @property
    def log_file(self) -> str:
        return os.path.join('logs', 'test.log' if self.test_mode else 'booking.log')

    @property
    def screenshot_prefix(self) -> str:
        return 'test-' if self.test_mode else ''

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/yeapp/yeapp.php?tm=102"

    @property
    def history_url(self) -> str:
        return f"{self.base_url}/yeapp/yeapp.php?tm=103"
