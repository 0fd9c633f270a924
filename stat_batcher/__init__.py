"""Stat batcher — accumulates counter/value stats and forwards them in bulk."""

from stat_batcher.batcher import Batcher
from stat_batcher.errors import (
    BatcherError,
    InvalidFlushIntervalError,
    InvalidValueError,
    SerializationError,
)
from stat_batcher.models import MAX_CHUNK, BulkBatch, Stat, StatKind

__all__ = [
    "Batcher",
    "BatcherError",
    "BulkBatch",
    "InvalidFlushIntervalError",
    "InvalidValueError",
    "MAX_CHUNK",
    "SerializationError",
    "Stat",
    "StatKind",
]
