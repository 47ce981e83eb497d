"""
Sample Feed.

Single-consumer bounded channel between the location source and the
tracking service. Producers on any thread push samples; one daemon thread
delivers them to the handler strictly one at a time, in arrival order.
"""

from typing import Callable, Optional
import logging
import queue
import threading

from track_core.errors import InvalidSampleError
from track_core.proto.location_sample import LocationSample
from track_core.metrics import get_metrics

logger = logging.getLogger(__name__)


class SampleFeed:
    """
    Bounded sample queue with a single consumer thread.

    Usage:
        feed = SampleFeed(service.on_sample, max_size=1000)
        feed.start()
        feed.push(sample)        # from the GPS callback thread
        ...
        feed.stop()              # drains queued samples first
    """

    def __init__(
        self,
        handler: Callable[[LocationSample], object],
        max_size: int = 1000,
        poll_interval_s: float = 0.1,
    ):
        """
        Initialize feed.

        Args:
            handler: Called once per sample on the consumer thread
            max_size: Queue capacity; pushes beyond it are dropped
            poll_interval_s: Consumer wake-up interval while idle (s)
        """
        if max_size <= 0:
            raise ValueError(f"max_size must be positive: {max_size}")

        self._handler = handler
        self._queue: "queue.Queue[LocationSample]" = queue.Queue(maxsize=max_size)
        self.poll_interval_s = poll_interval_s
        self.metrics = get_metrics()

        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        """Samples waiting to be delivered."""
        return self._queue.qsize()

    def start(self):
        """Start the consumer thread."""
        if self._running:
            return

        self._running = True
        self._thread = threading.Thread(target=self._consume_loop, daemon=True)
        self._thread.start()
        logger.info("Sample feed started")

    def push(self, sample: LocationSample, block: bool = False, timeout: Optional[float] = None) -> bool:
        """
        Queue a sample for delivery.

        Args:
            sample: Sample to deliver
            block: Wait for free space instead of dropping (replay use)
            timeout: Maximum wait when blocking (s), None waits forever

        Returns:
            True if queued, False if dropped because the queue is full
        """
        try:
            self._queue.put(sample, block=block, timeout=timeout)
            return True
        except queue.Full:
            self.metrics.increment_drop('queue_full')
            logger.warning("Sample queue full, dropping sample t=%.3f", sample.timestamp)
            return False

    def stop(self, drain: bool = True, timeout: float = 5.0):
        """
        Stop the consumer thread.

        Args:
            drain: Deliver every queued sample before stopping
            timeout: Maximum time to wait for the thread (s)
        """
        if not self._running:
            return

        if drain:
            self._queue.join()

        self._running = False
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        discarded = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
            self._queue.task_done()
            discarded += 1

        if discarded:
            logger.info("Sample feed stopped, %d queued samples discarded", discarded)
        else:
            logger.info("Sample feed stopped")

    def _consume_loop(self):
        """Deliver queued samples until stopped."""
        while self._running:
            try:
                sample = self._queue.get(timeout=self.poll_interval_s)
            except queue.Empty:
                continue

            try:
                self._handler(sample)
            except InvalidSampleError as e:
                logger.warning("Rejected invalid sample: %s", e)
            except Exception:
                logger.exception("Sample handler failed")
            finally:
                self._queue.task_done()
