"""Automated booking of the 10:30 pilates class, seven days ahead."""

__version__ = "1.0.0"
