"""Exception types raised while booking."""


class BookingError(Exception):
    """Base class for booking failures."""


class ConfigurationError(BookingError):
    """Required settings are missing."""


class AuthenticationError(BookingError):
    """The site rejected the credentials. Never retried."""


class TransientNavigationError(BookingError):
    """A page or element did not show up in time. Retried."""


class SlotNotFoundError(TransientNavigationError):
    """The time table did not contain the target slot (yet)."""


class ConcurrencyConflictError(BookingError):
    """The site reported a simultaneous-submission conflict."""


class DateUnavailableError(BookingError):
    """The calendar cell for the target date is closed or missing."""
