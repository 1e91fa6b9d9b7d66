#!/usr/bin/env python3
"""Simple cron entry point for the pilates booking bot"""

import sys

from pilates_booking.cli import main

if __name__ == "__main__":
    sys.exit(main())
