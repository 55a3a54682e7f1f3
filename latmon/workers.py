"""Worker classes for background probing tasks."""

import logging

from PySide6.QtCore import QObject, QRunnable, Signal

from latmon.models import ProbeOutcome

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Signals for communicating between worker threads and main thread."""

    error = Signal(str, str)  # Emits (host, error message)
    finished = Signal(int)  # Emits pass_id when the worker exits


class ProbeWorker(QRunnable):
    """Persistent worker that drains one pass's queue in a background thread.

    The worker repeatedly takes the next host from the pool, marks it as
    testing, probes it and folds the outcome into the aggregator before
    releasing its slot. It exits once the queue of its own pass is empty.
    """

    def __init__(self, pool, pass_id: int):
        super().__init__()
        self.pool = pool
        self.pass_id = pass_id
        self.signals = WorkerSignals()

    def run(self):
        """Execute probes until the pass queue is drained."""
        probed = 0
        try:
            while True:
                host = self.pool.take_next(self.pass_id)
                if host is None:
                    break
                self._probe_host(host)
                probed += 1

            logger.debug("Worker exiting: pass_id=%d, probed=%d", self.pass_id, probed)

        finally:
            # Always signal completion
            self.signals.finished.emit(self.pass_id)

    def _probe_host(self, host: str):
        aggregator = self.pool.aggregator
        try:
            aggregator.mark_testing(host)
            outcome = self.pool.prober.probe(host)
        except Exception as e:
            # Count as a failed probe so the pass still completes
            logger.exception(
                "Worker exception: host=%s, pass_id=%d, error=%s",
                host,
                self.pass_id,
                str(e),
            )
            self.signals.error.emit(host, str(e))
            outcome = ProbeOutcome.failure(host)

        try:
            aggregator.apply(outcome)
        except Exception as e:
            # Keep draining so the pass still completes
            logger.exception(
                "Apply failed: host=%s, pass_id=%d, error=%s",
                host,
                self.pass_id,
                str(e),
            )
            self.signals.error.emit(host, str(e))
        finally:
            self.pool.release_slot(self.pass_id, host)
