"""Command-line entry point: wait for the booking window, then book."""

import asyncio
import logging
import sys

from .bot import PilatesBookingBot
from .config import Settings
from .errors import ConfigurationError
from .logs import setup_logging
from .schedule import wait_for_opening

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> int:
    if settings.skip_wait:
        logger.info("⏭️  SKIP_WAIT set - starting immediately")
    else:
        await wait_for_opening(settings.open_at)

    bot = PilatesBookingBot(settings)
    return await bot.run()


def main() -> int:
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(e, file=sys.stderr)
        return 1

    setup_logging(settings.log_file)

    try:
        return asyncio.run(run(settings))
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
