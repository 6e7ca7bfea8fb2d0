"""
Domain-specific exception hierarchy for the expert slots application.
"""


class ExpertSlotsError(Exception):
    """Base class for all application-level errors."""


class InvalidDurationError(ExpertSlotsError, ValueError):
    """Raised when a session duration is not a positive number of minutes."""


class ScheduleError(ExpertSlotsError, ValueError):
    """Raised when a weekly schedule or break list cannot be edited as requested."""


class DataSourceError(ExpertSlotsError):
    """Raised when availability or booking data cannot be fetched or parsed."""


class ConfigError(ExpertSlotsError, ValueError):
    """Raised when the configuration file is malformed."""
