"""Errors raised by the data-access layer.

None of these are caught inside the layer: they propagate to the caller,
which is the only place that decides whether to retry, prompt or give up.
"""


class DataAccessError(Exception):
    """Base exception for data-access errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class NotFoundError(DataAccessError):
    """Raised when a key names no resource, or a single-item key matches no row."""
    pass


class MalformedKeyError(NotFoundError):
    """Raised when a cache key does not parse into a known resource."""
    pass


class ConstraintViolationError(DataAccessError):
    """Raised when storage rejects a write (uniqueness, NOT NULL, bad value)."""
    pass


class StorageError(DataAccessError):
    """Raised when the storage call itself could not complete."""
    pass
