"""Exceptions raised by the stat batcher."""


class BatcherError(Exception):
    """Base class for all stat batcher errors."""


class InvalidFlushIntervalError(BatcherError, ValueError):
    """Raised when a batcher is constructed with a non-positive flush interval."""


class InvalidValueError(BatcherError, ValueError):
    """Raised when a stat is submitted with a NaN number."""


class SerializationError(BatcherError):
    """Raised when a bulk batch cannot be encoded to the wire format."""
