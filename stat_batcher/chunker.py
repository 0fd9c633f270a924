"""Chunker — splits an accumulated batch into ingestion-API-sized pieces."""

from typing import Iterator, Sequence

from stat_batcher.models import MAX_CHUNK


def chunks(items: Sequence, size: int = MAX_CHUNK) -> Iterator[list]:
    """Lazily yield consecutive slices of *items*, each holding at most *size* entries.

    Slices cover the input exactly once and in order. An empty input yields
    nothing, and an input whose length is a multiple of *size* does not yield
    a trailing empty slice.
    """
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")

    for start in range(0, len(items), size):
        # The final slice ends at len(items), so the last stat is never cut off
        yield list(items[start:start + size])
