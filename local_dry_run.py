#!/usr/bin/env python3
"""
Local testing script for the pilates booking bot
Run this locally to watch the booking flow in a visible browser before
relying on the scheduled run
"""

import asyncio
import os
from dataclasses import replace

from pilates_booking.bot import PilatesBookingBot
from pilates_booking.config import Settings, valid_clock_time
from pilates_booking.errors import ConfigurationError
from pilates_booking.logs import setup_logging
from pilates_booking.results import read_result
from pilates_booking.schedule import compute_target


def _parse_env_int(name: str, default: int) -> int:
    """Parse an integer from environment variables with a fallback."""
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


async def run_local(settings: Settings) -> int:
    """Run the real booking flow with a visible browser"""
    mode = "DRY RUN" if settings.test_mode else "LIVE BOOKING"
    print(f"🧪 {mode} for the {settings.class_time} class")

    target = compute_target(days_ahead=settings.days_ahead)
    print(f"📅 Target date: {target.label} ({target.day_name})")

    setup_logging(settings.log_file)
    exit_code = await PilatesBookingBot(settings).run()

    result = read_result(settings.result_file)
    if result:
        print(f"📄 {settings.result_file}: {result['status']} - {result['message']} (verified: {result['verified']})")
    print(f"{'✅' if exit_code == 0 else '❌'} Exit code: {exit_code}")
    return exit_code


async def main():
    """Main test function"""
    print("🧪 Local Pilates Booking Bot Test")
    print("=" * 40)

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(e)
        return

    # Always show the browser and never wait for midnight when testing locally
    settings = replace(
        settings,
        headless=False,
        skip_wait=True,
        days_ahead=_parse_env_int('TEST_DAYS_AHEAD', settings.days_ahead),
    )

    print("Choose test type:")
    print(f"1. Dry run ({settings.class_time}, nothing is submitted)")
    print("2. Dry run for a custom class time")
    print("3. Live booking (really books!)")

    choice = input("Enter choice (1-3): ").strip()

    if choice == "1":
        await run_local(replace(settings, test_mode=True))
    elif choice == "2":
        class_time = input("Class time (HH:MM): ").strip() or settings.class_time
        if not valid_clock_time(class_time):
            print(f"❌ Invalid class time: {class_time}")
            return
        await run_local(replace(settings, test_mode=True, class_time=class_time))
    elif choice == "3":
        confirm = input(f"⚠️  This will book {settings.class_time} for real. Type 'yes' to continue: ").strip()
        if confirm.lower() == 'yes':
            await run_local(replace(settings, test_mode=False))
        else:
            print("Cancelled")
    else:
        print("❌ Invalid choice")


if __name__ == "__main__":
    asyncio.run(main())
