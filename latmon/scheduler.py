"""Round scheduler driving repeated probe passes."""

import logging
from enum import Enum

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from latmon.pool import ProbePool
from latmon.registry import TargetRegistry

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_ROUNDS = 10
DEFAULT_ROUND_PAUSE_MS = 1000


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING_PASS = "running-pass"
    INTER_ROUND_PAUSE = "inter-round-pause"
    DONE = "done"


class SchedulerMode(Enum):
    AUTO = "auto"
    MANUAL = "manual"


class RoundScheduler(QObject):
    """Sequences passes of the probe pool in auto or manual mode.

    Auto mode runs passes back to back until stop() is called. Manual mode
    runs a fixed number of rounds with a pause between consecutive rounds
    and ends in DONE, from where a new manual run may be started.

    Round boundaries are driven by the pool's pass_finished signal; a new
    pass is never started while the pool is busy.
    """

    # Signals
    state_changed = Signal(object)  # SchedulerState
    round_started = Signal(int, int)  # (current_round, total_rounds; 0 in auto mode)
    run_finished = Signal()

    def __init__(
        self,
        pool: ProbePool,
        registry: TargetRegistry,
        total_rounds: int = DEFAULT_TOTAL_ROUNDS,
        round_pause_ms: int = DEFAULT_ROUND_PAUSE_MS,
        parent=None,
    ):
        """Initialize round scheduler.

        Args:
            pool: Pool executing each pass
            registry: Targets probed by every pass
            total_rounds: Default round count for manual runs
            round_pause_ms: Pause between manual rounds in milliseconds
            parent: Qt parent object
        """
        super().__init__(parent)

        if total_rounds < 1:
            raise ValueError("total_rounds must be at least 1")
        if round_pause_ms < 0:
            raise ValueError("round_pause_ms must not be negative")

        self.pool = pool
        self.registry = registry
        self.total_rounds = total_rounds
        self.round_pause_ms = round_pause_ms

        self._state = SchedulerState.IDLE
        self._mode = None
        self._active = False
        self._run_total = total_rounds
        self._current_round = 0
        self._current_pass_id = None
        self._deferred_start = False
        self.passes_started = 0

        self._pause_timer = QTimer(self)
        self._pause_timer.setSingleShot(True)
        self._pause_timer.timeout.connect(self._start_pass)

        self.pool.pass_finished.connect(self._on_pass_finished)

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def mode(self) -> SchedulerMode | None:
        return self._mode

    @property
    def current_round(self) -> int:
        return self._current_round

    @property
    def is_busy(self) -> bool:
        """True while a run is active or the pool is still finishing a pass."""
        return self._active or self.pool.is_busy

    def progress(self) -> tuple[int, int]:
        """Return (current round, total rounds); total is 0 in auto mode."""
        if self._mode == SchedulerMode.MANUAL:
            return self._current_round, self._run_total
        return self._current_round, 0

    def start_auto(self) -> bool:
        """Start probing passes back to back until stop() is called."""
        if self.is_busy:
            logger.debug("Auto start ignored: scheduler busy")
            return False

        if len(self.registry) == 0:
            logger.warning("Auto start ignored: no targets configured")
            return False

        self._mode = SchedulerMode.AUTO
        self._active = True
        self._current_round = 0
        logger.info("Auto mode started: %d targets", len(self.registry))
        self._start_pass()
        return True

    def start_manual(self, total_rounds: int | None = None) -> bool:
        """Start a manual run of a fixed number of rounds.

        Args:
            total_rounds: Rounds for this run (defaults to total_rounds)

        Returns:
            False if a run or pass is still in progress
        """
        if total_rounds is None:
            total_rounds = self.total_rounds
        if total_rounds < 1:
            raise ValueError("total_rounds must be at least 1")

        if self.is_busy:
            logger.debug("Manual start ignored: scheduler busy")
            return False

        self._mode = SchedulerMode.MANUAL
        self._active = True
        self._run_total = total_rounds
        self._current_round = 0
        logger.info("Manual run started: %d rounds", total_rounds)
        self._start_pass()
        return True

    def stop(self):
        """End the current run after the pass in flight, if any."""
        if not self._active:
            return

        self._active = False
        logger.info("Run stop requested (round %d)", self._current_round)

        if self._pause_timer.isActive():
            self._pause_timer.stop()
            self._finish_run()
        elif self._current_pass_id is None and not self._deferred_start:
            self._finish_run()

    def _set_state(self, state: SchedulerState):
        if state == self._state:
            return
        self._state = state
        logger.debug("Scheduler state: %s", state.value)
        self.state_changed.emit(state)

    @Slot()
    def _start_pass(self):
        if not self._active:
            return

        if self.pool.is_busy:
            # Resume once the pool reports the pass in flight as finished
            logger.warning("Pool busy, deferring next pass")
            self._deferred_start = True
            return

        self._current_round += 1
        self.passes_started += 1
        self._set_state(SchedulerState.RUNNING_PASS)

        total = self._run_total if self._mode == SchedulerMode.MANUAL else 0
        self.round_started.emit(self._current_round, total)

        self._current_pass_id = self.pool.run_pass(self.registry.get_targets())

    @Slot(int)
    def _on_pass_finished(self, pass_id: int):
        if pass_id != self._current_pass_id:
            if self._deferred_start:
                self._deferred_start = False
                if self._active:
                    self._start_pass()
                else:
                    self._finish_run()
            return

        self._current_pass_id = None

        if not self._active:
            self._finish_run()
            return

        if self._mode == SchedulerMode.AUTO:
            self._set_state(SchedulerState.IDLE)
            self._start_pass()
            return

        if self._current_round >= self._run_total:
            self._active = False
            self._finish_run()
            return

        self._set_state(SchedulerState.INTER_ROUND_PAUSE)
        self._pause_timer.start(self.round_pause_ms)

    def _finish_run(self):
        if self._mode == SchedulerMode.MANUAL:
            self._set_state(SchedulerState.DONE)
        else:
            self._set_state(SchedulerState.IDLE)

        logger.info(
            "Run finished: mode=%s, rounds=%d",
            self._mode.value if self._mode else "none",
            self._current_round,
        )
        self.run_finished.emit()

    def get_stats(self):
        """Get scheduler statistics.

        Returns:
            Dict with scheduler state info
        """
        current, total = self.progress()
        return {
            "state": self._state.value,
            "mode": self._mode.value if self._mode else None,
            "current_round": current,
            "total_rounds": total,
            "passes_started": self.passes_started,
            "busy": self.is_busy,
        }
