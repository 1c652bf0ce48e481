"""Exception types raised by slowop."""


class SlowOpError(Exception):
    """Base class for all slowop errors."""


class ConfigurationError(SlowOpError, ValueError):
    """Raised when a monitor is constructed with missing or invalid arguments."""


class RetrievalError(SlowOpError):
    """Raised when the database fails to answer a retrieval request."""
