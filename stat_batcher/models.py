"""Stat record and bulk batch models."""

import enum
import time
from dataclasses import dataclass, field
from typing import Optional

# Maximum number of stats the ingestion API accepts in one bulk request
MAX_CHUNK = 1000


class StatKind(enum.Enum):
    COUNT = "count"
    VALUE = "value"


@dataclass(frozen=True)
class Stat:
    """One counter or value observation.

    Only the field named by ``kind`` is sent on the wire; the other one is
    left out of the payload entirely.
    """

    name: str
    kind: StatKind
    number: float
    timestamp: int = field(default_factory=lambda: int(time.time()))

    @property
    def count(self) -> Optional[float]:
        return self.number if self.kind is StatKind.COUNT else None

    @property
    def value(self) -> Optional[float]:
        return self.number if self.kind is StatKind.VALUE else None


def create_count(name: str, count: float, timestamp: Optional[int] = None) -> Stat:
    """Factory for a counter stat. Uses the current unix time when *timestamp* is None."""
    if timestamp is None:
        return Stat(name=name, kind=StatKind.COUNT, number=float(count))
    return Stat(name=name, kind=StatKind.COUNT, number=float(count), timestamp=int(timestamp))


def create_value(name: str, value: float, timestamp: Optional[int] = None) -> Stat:
    """Factory for a value stat. Uses the current unix time when *timestamp* is None."""
    if timestamp is None:
        return Stat(name=name, kind=StatKind.VALUE, number=float(value))
    return Stat(name=name, kind=StatKind.VALUE, number=float(value), timestamp=int(timestamp))


def stat_to_dict(stat: Stat) -> dict:
    """Convert a Stat to its wire dictionary, omitting the unset count/value key."""
    return {"stat": stat.name, stat.kind.value: stat.number, "t": stat.timestamp}


@dataclass(frozen=True)
class BulkBatch:
    """A single bulk request: one account key and at most MAX_CHUNK stats."""

    ezkey: str
    stats: tuple = ()

    def __post_init__(self):
        if len(self.stats) > MAX_CHUNK:
            raise ValueError(
                f"Bulk batch holds at most {MAX_CHUNK} stats, got {len(self.stats)}"
            )

    def __len__(self) -> int:
        return len(self.stats)

    def to_dict(self) -> dict:
        return {"ezkey": self.ezkey, "data": [stat_to_dict(s) for s in self.stats]}
