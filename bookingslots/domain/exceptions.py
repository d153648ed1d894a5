"""
Domain-specific exception hierarchy for the slot allocation engine.
"""


class SlotEngineError(Exception):
    """Base class for all engine-level errors."""


class InvalidTimeFormat(SlotEngineError, ValueError):
    """Raised when a wall-clock time string from the store cannot be parsed."""


class InvalidDuration(SlotEngineError, ValueError):
    """Raised when a requested booking duration is not a positive number of minutes."""


class StoreUnavailable(SlotEngineError):
    """Raised when availability rules or reservations cannot be read from the store."""
