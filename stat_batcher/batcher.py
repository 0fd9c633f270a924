"""Batcher — intake queue, accumulator loop, and periodic bulk flushing of stats."""

import logging
import math
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from stat_batcher.chunker import chunks
from stat_batcher.config import Config
from stat_batcher.errors import (
    InvalidFlushIntervalError,
    InvalidValueError,
    SerializationError,
)
from stat_batcher.models import BulkBatch, Stat, create_count, create_value
from stat_batcher.sender import HTTPSender

logger = logging.getLogger(__name__)

# Control markers passed through the intake queue alongside (ezkey, stat) pairs
_FLUSH = object()
_STOP = object()


def _check_flush_interval(flush_interval: float):
    # queue.get() cannot wait for an infinite timeout, so inf is rejected too
    if not (math.isfinite(flush_interval) and flush_interval > 0):
        raise InvalidFlushIntervalError(
            f"Flush interval must be a positive number of seconds, got {flush_interval}"
        )


class Batcher:
    """Accumulates stats from many producer threads and flushes them in bulk.

    Producers call the ``post_*`` methods, which put records on a bounded
    intake queue. A single worker thread drains the queue into a buffer in
    arrival order and, every *flush_interval* seconds, hands that buffer to
    a flush worker pool and starts over with an empty one. Only the worker
    thread ever touches the live buffer.

    Records posted without an explicit *ezkey* go to the batcher's default
    account key, resolved at flush time. The flush groups records by their
    resolved key, so an explicit key equal to the default shares one ordered
    group with unkeyed records. If no key is known by then, that group is
    skipped.
    """

    def __init__(
        self,
        ezkey: str = "",
        flush_interval: float = 15.0,
        sender: Optional[HTTPSender] = None,
        queue_size: int = 10000,
        enqueue_timeout: Optional[float] = 0.1,
        flush_workers: int = 4,
    ):
        _check_flush_interval(flush_interval)

        self.ezkey = ezkey
        self._flush_interval = flush_interval
        self._sender = sender if sender is not None else HTTPSender()
        self._enqueue_timeout = enqueue_timeout
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._executor = ThreadPoolExecutor(
            max_workers=flush_workers, thread_name_prefix="stat-flush"
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._dropped = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> "Batcher":
        """Build a Batcher and its HTTP sender from a loaded Config."""
        _check_flush_interval(config.flush_interval)
        sender = HTTPSender(
            api_url=config.api_url,
            timeout=config.http_timeout,
            max_attempts=config.max_attempts,
        )
        return cls(
            ezkey=config.ezkey,
            flush_interval=config.flush_interval,
            sender=sender,
            queue_size=config.queue_size,
            enqueue_timeout=config.enqueue_timeout,
            flush_workers=config.flush_workers,
        )

    # ------------------------------------------------------------------
    # Producer API
    # ------------------------------------------------------------------

    def post_count(self, name: str, count: float, ezkey: Optional[str] = None):
        """Enqueue a counter increment stamped with the current time. 0 counts are dropped."""
        # The ingestion API counts a literal 0 as an increment of 1, so a
        # zero count never leaves the process.
        if count == 0:
            return
        self.post_count_time(name, count, int(time.time()), ezkey)

    def post_count_time(
        self, name: str, count: float, timestamp: int, ezkey: Optional[str] = None
    ):
        """Enqueue a counter increment with an explicit unix timestamp. 0 counts are dropped."""
        if count == 0:
            return
        if not math.isfinite(count):
            raise InvalidValueError(f"count for {name!r} is not a finite number: {count}")
        self._record(ezkey, create_count(name, count, timestamp))

    def post_value(self, name: str, value: float, ezkey: Optional[str] = None):
        """Enqueue a value observation stamped with the current time."""
        self.post_value_time(name, value, int(time.time()), ezkey)

    def post_value_time(
        self, name: str, value: float, timestamp: int, ezkey: Optional[str] = None
    ):
        """Enqueue a value observation with an explicit unix timestamp.

        Raises:
            InvalidValueError: If *value* is NaN or infinite. Nothing is enqueued.
        """
        if not math.isfinite(value):
            raise InvalidValueError(f"value for {name!r} is not a finite number: {value}")
        self._record(ezkey, create_value(name, value, timestamp))

    def flush(self):
        """Ask the worker to flush now.

        The request travels through the intake queue, so every stat this
        thread posted before calling flush() is part of that flush.
        """
        self._put(_FLUSH, "flush request")

    def _record(self, ezkey: Optional[str], stat: Stat):
        self._put((ezkey, stat), f"stat {stat.name!r}")

    def _put(self, item, description: str):
        try:
            self._queue.put(item, timeout=self._enqueue_timeout)
        except queue.Full:
            with self._lock:
                self._dropped += 1
            logger.warning("Intake queue full, dropping %s", description)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Start the accumulator worker thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="stat-batcher", daemon=True
        )
        self._thread.start()
        logger.info(
            "Stat batcher started: flush_interval=%.1fs, api_url=%s",
            self._flush_interval,
            self._sender.api_url,
        )

    def stop(self, timeout: Optional[float] = 5.0):
        """Stop the accumulator loop.

        Stats already accumulated get one last best-effort flush; stats
        still waiting in the intake queue are not drained. Flushes already
        in flight are left to finish on their own.
        """
        self._stop_event.set()
        try:
            self._queue.put_nowait(_STOP)
        except queue.Full:
            # The worker is busy draining and will see the stop event next iteration
            pass

        if self._thread is not None:
            self._thread.join(timeout=timeout)
        logger.info("Stat batcher stopped (dropped=%d)", self.dropped_count)

    def close(self):
        """Stop the loop, wait for in-flight flushes, and close the sender."""
        self.stop()
        self._executor.shutdown(wait=True)
        self._sender.close()

    @property
    def running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    @property
    def flush_interval(self) -> float:
        return self._flush_interval

    @property
    def pending_count(self) -> int:
        """Approximate number of items waiting in the intake queue."""
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        with self._lock:
            return self._dropped

    # ------------------------------------------------------------------
    # Accumulator loop (worker thread only)
    # ------------------------------------------------------------------

    def _run(self):
        buffer: list = []
        next_tick = time.monotonic() + self._flush_interval

        while not self._stop_event.is_set():
            now = time.monotonic()
            if now >= next_tick:
                buffer = self._detach(buffer)
                next_tick += self._flush_interval
                if next_tick <= now:
                    next_tick = now + self._flush_interval
                continue

            try:
                item = self._queue.get(timeout=next_tick - now)
            except queue.Empty:
                continue

            if item is _STOP:
                break
            if item is _FLUSH:
                buffer = self._detach(buffer)
                continue

            # (ezkey, stat) pairs, kept in arrival order
            buffer.append(item)

        self._detach(buffer)

    def _detach(self, buffer: list) -> list:
        """Hand *buffer* to the flush pool and return a fresh, empty one."""
        if not buffer:
            return buffer

        try:
            self._executor.submit(self._flush_buffer, buffer)
        except RuntimeError:
            logger.warning("Flush pool shut down, dropping %d stats", len(buffer))
        return []

    # ------------------------------------------------------------------
    # Flush path (flush pool threads)
    # ------------------------------------------------------------------

    def _flush_buffer(self, buffer: list):
        for ezkey, stats in self._group_by_key(buffer).items():
            try:
                self._flush_stats(ezkey, stats)
            except Exception:
                logger.exception("Unexpected error flushing %d stats", len(stats))

    def _group_by_key(self, buffer: list) -> dict:
        """Group (ezkey, stat) pairs by resolved account key, keeping arrival order."""
        default_key = self.ezkey
        groups: dict = {}
        for ezkey, stat in buffer:
            groups.setdefault(ezkey or default_key, []).append(stat)
        return groups

    def _flush_stats(self, ezkey: str, stats: list):
        if not stats:
            return

        if not ezkey:
            logger.warning("Skipping flush, ez key not set: stats=%d", len(stats))
            return

        for chunk in chunks(stats):
            batch = BulkBatch(ezkey=ezkey, stats=tuple(chunk))
            try:
                self._sender.send(batch)
            except SerializationError as exc:
                logger.warning(
                    "Couldn't serialize bulk data, skipping %d stats: %s",
                    len(batch),
                    exc,
                )
