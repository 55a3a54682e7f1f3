"""Bounded worker pool that probes every target once per pass."""

import logging
from collections import deque

from PySide6.QtCore import QMutex, QMutexLocker, QObject, QThreadPool, QTimer, Signal

from latmon.collector import Prober
from latmon.stats import StatsAggregator
from latmon.workers import ProbeWorker

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 6


class ProbePool(QObject):
    """Runs passes over a list of targets with bounded concurrency.

    Key features:
    - FIFO queue seeded with every target of the pass
    - At most max_concurrent probes in flight at any time
    - Persistent workers pull the next target as soon as they finish one,
      so a fast probe never waits for slow ones
    - Non-reentrant: a new pass cannot start until the current one finished

    pass_finished is emitted once every target of the pass has been probed
    and its outcome applied. It may be emitted from a worker thread.
    """

    # Signals
    pass_started = Signal(int, int)  # (pass_id, target count)
    pass_finished = Signal(int)  # pass_id
    error = Signal(str, str)  # (host, error_msg)

    def __init__(
        self,
        prober: Prober,
        aggregator: StatsAggregator,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        parent=None,
    ):
        """Initialize probe pool.

        Args:
            prober: Prober used for every probe
            aggregator: Aggregator receiving each outcome
            max_concurrent: Maximum number of probes in flight
            parent: Qt parent object
        """
        super().__init__(parent)

        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.prober = prober
        self.aggregator = aggregator
        self.max_concurrent = max_concurrent

        # Dedicated threads, one per concurrency slot
        self.thread_pool = QThreadPool(self)
        self.thread_pool.setMaxThreadCount(max_concurrent)

        self._mutex = QMutex()
        self._queue = deque()
        self._pass_id = 0
        self._total = 0
        self._completed = 0
        self._in_flight = 0
        self._peak_in_flight = 0
        self._busy = False

    @property
    def is_busy(self) -> bool:
        with QMutexLocker(self._mutex):
            return self._busy

    @property
    def in_flight(self) -> int:
        with QMutexLocker(self._mutex):
            return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of simultaneous probes seen in the current pass."""
        with QMutexLocker(self._mutex):
            return self._peak_in_flight

    @property
    def pass_id(self) -> int:
        with QMutexLocker(self._mutex):
            return self._pass_id

    def run_pass(self, targets) -> int | None:
        """Start probing every target once.

        Args:
            targets: Targets to probe, in dispatch order

        Returns:
            The new pass id, or None if a pass is already running
        """
        hosts = [target.host for target in targets]

        with QMutexLocker(self._mutex):
            if self._busy:
                busy = True
            else:
                busy = False
                self._pass_id += 1
                pass_id = self._pass_id
                self._queue = deque(hosts)
                self._total = len(hosts)
                self._completed = 0
                self._in_flight = 0
                self._peak_in_flight = 0
                self._busy = self._total > 0

        if busy:
            logger.warning("Pass rejected: previous pass still running")
            return None

        logger.info(
            "Pass started: pass_id=%d, targets=%d, max_concurrent=%d",
            pass_id,
            len(hosts),
            self.max_concurrent,
        )
        self.pass_started.emit(pass_id, len(hosts))

        if not hosts:
            # Nothing to probe; still complete asynchronously like any pass
            QTimer.singleShot(0, lambda: self.pass_finished.emit(pass_id))
            return pass_id

        for _ in range(min(self.max_concurrent, len(hosts))):
            worker = ProbeWorker(self, pass_id)
            worker.signals.error.connect(self._on_worker_error)
            worker.signals.finished.connect(self._on_worker_finished)
            self.thread_pool.start(worker)

        return pass_id

    def take_next(self, pass_id: int) -> str | None:
        """Pop the next queued host for a worker of the given pass.

        Returns None when the queue is empty or the pass is no longer current.
        """
        with QMutexLocker(self._mutex):
            if pass_id != self._pass_id or not self._queue:
                return None

            host = self._queue.popleft()
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
            in_flight = self._in_flight

        logger.debug(
            "Probe dispatched: host=%s (in-flight: %d/%d)",
            host,
            in_flight,
            self.max_concurrent,
        )
        return host

    def release_slot(self, pass_id: int, host: str):
        """Record a completed probe and finish the pass after the last one."""
        with QMutexLocker(self._mutex):
            if pass_id != self._pass_id:
                return

            self._in_flight = max(0, self._in_flight - 1)
            self._completed += 1
            finished = self._completed == self._total
            if finished:
                self._busy = False

        if finished:
            logger.info("Pass finished: pass_id=%d", pass_id)
            self.pass_finished.emit(pass_id)

    def wait_for_done(self, msecs: int = -1) -> bool:
        """Block until all worker threads have exited."""
        return self.thread_pool.waitForDone(msecs)

    def _on_worker_error(self, host, error_msg):
        logger.error("Probe error: host=%s, error=%s", host, error_msg)
        self.error.emit(host, error_msg)

    def _on_worker_finished(self, pass_id):
        logger.debug("Worker finished: pass_id=%d", pass_id)

    def get_stats(self):
        """Get pool statistics.

        Returns:
            Dict with pool state info
        """
        with QMutexLocker(self._mutex):
            return {
                "pass_id": self._pass_id,
                "busy": self._busy,
                "queued": len(self._queue),
                "completed": self._completed,
                "total": self._total,
                "in_flight": self._in_flight,
                "peak_in_flight": self._peak_in_flight,
                "max_concurrent": self.max_concurrent,
            }
