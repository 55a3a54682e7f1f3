"""Per-target statistics, ranking and the shared stats aggregator."""

import logging

from PySide6.QtCore import QMutex, QMutexLocker, QObject, Signal

from latmon.models import ProbeOutcome, RankedSnapshot, TargetState, TargetStatus

logger = logging.getLogger(__name__)

# Latency colour thresholds in ms
GOOD_LATENCY_MS = 200.0
FAIR_LATENCY_MS = 400.0


def min_latency(state: TargetState) -> float | None:
    if not state.history:
        return None
    return min(state.history)


def max_latency(state: TargetState) -> float | None:
    if not state.history:
        return None
    return max(state.history)


def average_latency(state: TargetState) -> float | None:
    if not state.history:
        return None
    return sum(state.history) / len(state.history)


def packet_loss_rate(state: TargetState) -> float:
    """Return failed / total probe attempts, 0.0 before the first probe."""
    if state.test_count == 0:
        return 0.0
    return state.failure_count / state.test_count


def format_latency(latency_ms: float | None) -> str:
    """Format a latency for display: whole milliseconds, "-" when unknown."""
    if latency_ms is None:
        return "-"
    return f"{latency_ms:.0f}ms"


def format_packet_loss(state: TargetState) -> str:
    """Format packet loss as a percentage with one decimal.

    An untested target shows "0%".
    """
    if state.test_count == 0:
        return "0%"
    return f"{packet_loss_rate(state) * 100:.1f}%"


def latency_grade(latency_ms: float | None) -> str | None:
    """Classify a latency as "good", "fair" or "poor" (None when unknown)."""
    if latency_ms is None:
        return None
    if latency_ms < GOOD_LATENCY_MS:
        return "good"
    if latency_ms < FAIR_LATENCY_MS:
        return "fair"
    return "poor"


def _rank_key(state: TargetState):
    average = average_latency(state)
    # Targets without any successful probe sort after all measured ones
    return (average is None, average if average is not None else 0.0)


def rank_states(states) -> list[TargetState]:
    """Stable-sort states by ascending average latency.

    States with an empty history go last; ties keep their input order.
    """
    return sorted(states, key=_rank_key)


class StatsAggregator(QObject):
    """Owns every TargetState and folds probe outcomes into them.

    Each update and the re-ranking that follows it runs inside a single
    mutex region, so outcomes arriving concurrently from worker threads are
    applied one at a time and none is lost. Snapshots handed out are copies.

    Signals are emitted from whichever thread applied the update; receivers
    living in the GUI thread get them through queued connections.
    """

    snapshot_changed = Signal(object)  # RankedSnapshot

    def __init__(self, targets, parent=None):
        super().__init__(parent)
        self._mutex = QMutex()
        self._targets = tuple(targets)
        # Kept in the most recent ranked order
        self._states = [TargetState(target=target) for target in self._targets]
        self._by_host = {state.host: state for state in self._states}

    def mark_testing(self, host: str) -> RankedSnapshot:
        """Flag a target as being probed right now."""
        with QMutexLocker(self._mutex):
            self._by_host[host].status = TargetStatus.TESTING
            snapshot = self._snapshot_locked()

        self.snapshot_changed.emit(snapshot)
        return snapshot

    def apply(self, outcome: ProbeOutcome) -> RankedSnapshot:
        """Fold one probe outcome into its target and re-rank all targets.

        Args:
            outcome: Completed probe outcome

        Returns:
            Freshly sorted snapshot of all targets

        Raises:
            KeyError: If the outcome's host is not a known target
        """
        with QMutexLocker(self._mutex):
            state = self._by_host[outcome.host]
            state.test_count += 1
            if outcome.failed:
                state.failure_count += 1
                state.status = TargetStatus.ERROR
            else:
                state.history.append(outcome.latency_ms)
                state.status = TargetStatus.SUCCESS

            self._states = rank_states(self._states)
            snapshot = self._snapshot_locked()

        logger.debug(
            "Outcome applied: host=%s, failed=%s, tests=%d, failures=%d",
            outcome.host,
            outcome.failed,
            state.test_count,
            state.failure_count,
        )
        self.snapshot_changed.emit(snapshot)
        return snapshot

    def snapshot(self) -> RankedSnapshot:
        with QMutexLocker(self._mutex):
            return self._snapshot_locked()

    def state_for(self, host: str) -> TargetState:
        """Return a copy of the current state of one target."""
        with QMutexLocker(self._mutex):
            return self._by_host[host].copy()

    def reset(self) -> RankedSnapshot:
        """Discard all statistics, returning every target to pending.

        Targets go back to their original order, so later ties start from it.
        """
        with QMutexLocker(self._mutex):
            self._states = [TargetState(target=target) for target in self._targets]
            self._by_host = {state.host: state for state in self._states}
            snapshot = self._snapshot_locked()

        logger.info("Statistics reset: %d targets", len(snapshot))
        self.snapshot_changed.emit(snapshot)
        return snapshot

    def _snapshot_locked(self) -> RankedSnapshot:
        return tuple(state.copy() for state in self._states)
