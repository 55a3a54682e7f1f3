"""Tests for latency metrics, ranking and the StatsAggregator."""

import threading

import pytest

from latmon.models import ProbeOutcome, Target, TargetState, TargetStatus
from latmon.stats import (
    StatsAggregator,
    average_latency,
    format_latency,
    format_packet_loss,
    latency_grade,
    max_latency,
    min_latency,
    packet_loss_rate,
    rank_states,
)


def make_state(host, history=(), test_count=None, failure_count=0):
    history = list(history)
    if test_count is None:
        test_count = len(history) + failure_count
    return TargetState(
        target=Target(host),
        history=history,
        test_count=test_count,
        failure_count=failure_count,
    )


def assert_invariants(state):
    assert state.failure_count <= state.test_count
    assert len(state.history) == state.test_count - state.failure_count


class TestMetrics:
    """Test derived per-target metrics."""

    def test_metrics_for_successful_history(self):
        """Latencies [120, 80, 200] give min 80, max 200, average 133.33."""
        state = make_state("a.com", [120.0, 80.0, 200.0])

        assert min_latency(state) == 80.0
        assert max_latency(state) == 200.0
        assert round(average_latency(state), 2) == 133.33
        assert packet_loss_rate(state) == 0.0
        assert format_packet_loss(state) == "0.0%"
        assert format_latency(average_latency(state)) == "133ms"

    def test_metrics_for_empty_history(self):
        """All-failure history has no latency and full loss."""
        state = make_state("a.com", [], test_count=5, failure_count=5)

        assert min_latency(state) is None
        assert max_latency(state) is None
        assert average_latency(state) is None
        assert packet_loss_rate(state) == 1.0
        assert format_packet_loss(state) == "100.0%"

    def test_untested_target(self):
        """An untested target shows 0% loss."""
        state = make_state("a.com")
        assert packet_loss_rate(state) == 0.0
        assert format_packet_loss(state) == "0%"

    def test_partial_loss(self):
        """Loss is failures over tests."""
        state = make_state("a.com", [50.0, 60.0], failure_count=1)
        assert packet_loss_rate(state) == pytest.approx(1 / 3)
        assert format_packet_loss(state) == "33.3%"

    def test_format_latency_unknown(self):
        """Unknown latency is shown as a dash."""
        assert format_latency(None) == "-"

    @pytest.mark.parametrize(
        "latency, grade",
        [(None, None), (0.0, "good"), (199.9, "good"), (200.0, "fair"), (399.0, "fair"), (400.0, "poor")],
    )
    def test_latency_grade(self, latency, grade):
        """Grades split at 200 and 400 ms."""
        assert latency_grade(latency) == grade


class TestRankStates:
    """Test RankedSnapshot ordering rules."""

    def test_ascending_average(self):
        """Lower averages rank first."""
        states = [make_state("slow", [300.0]), make_state("fast", [50.0]), make_state("mid", [100.0, 200.0])]
        assert [s.host for s in rank_states(states)] == ["fast", "mid", "slow"]

    def test_history_less_targets_last(self):
        """Targets without history sort after measured ones."""
        states = [
            make_state("never-1", [], failure_count=2),
            make_state("slow", [900.0]),
            make_state("never-2"),
            make_state("fast", [10.0]),
        ]
        assert [s.host for s in rank_states(states)] == ["fast", "slow", "never-1", "never-2"]

    def test_ties_keep_input_order(self):
        """Sorting is stable on equal averages."""
        states = [make_state("b", [100.0]), make_state("a", [100.0]), make_state("c", [50.0, 150.0])]
        assert [s.host for s in rank_states(states)] == ["b", "a", "c"]

    def test_zero_average_sorts_before_none(self):
        """A zero average still counts as measured."""
        states = [make_state("none"), make_state("zero", [0.0])]
        assert [s.host for s in rank_states(states)] == ["zero", "none"]


class TestStatsAggregator:
    """Test StatsAggregator state transitions."""

    @pytest.fixture
    def aggregator(self, qapp):
        return StatsAggregator([Target("a.com"), Target("b.com"), Target("c.com")])

    def test_initial_snapshot(self, aggregator):
        """Targets start pending in registry order."""
        snapshot = aggregator.snapshot()
        assert [s.host for s in snapshot] == ["a.com", "b.com", "c.com"]
        assert all(s.status == TargetStatus.PENDING for s in snapshot)

    def test_success_updates_state(self, aggregator):
        """A success appends to history."""
        aggregator.apply(ProbeOutcome.success("b.com", 42.0))
        state = aggregator.state_for("b.com")

        assert state.history == [42.0]
        assert state.test_count == 1
        assert state.failure_count == 0
        assert state.status == TargetStatus.SUCCESS

    def test_failure_updates_state(self, aggregator):
        """A failure only bumps the counters."""
        aggregator.apply(ProbeOutcome.failure("b.com"))
        state = aggregator.state_for("b.com")

        assert state.history == []
        assert state.test_count == 1
        assert state.failure_count == 1
        assert state.status == TargetStatus.ERROR

    def test_status_reflects_latest_probe_only(self, aggregator):
        """Status follows the most recent outcome."""
        aggregator.apply(ProbeOutcome.success("a.com", 10.0))
        aggregator.apply(ProbeOutcome.failure("a.com"))
        state = aggregator.state_for("a.com")

        assert state.status == TargetStatus.ERROR
        assert state.history == [10.0]

    def test_apply_returns_ranked_snapshot(self, aggregator):
        """apply() returns the re-ranked snapshot."""
        aggregator.apply(ProbeOutcome.success("c.com", 50.0))
        snapshot = aggregator.apply(ProbeOutcome.success("b.com", 20.0))

        assert [s.host for s in snapshot] == ["b.com", "c.com", "a.com"]

    def test_ties_keep_previous_ranked_order(self, aggregator):
        """Equal averages keep the order of the previous snapshot."""
        aggregator.apply(ProbeOutcome.success("c.com", 100.0))
        snapshot = aggregator.apply(ProbeOutcome.success("a.com", 100.0))

        assert [s.host for s in snapshot] == ["c.com", "a.com", "b.com"]

    def test_always_failing_target_after_five_rounds(self, aggregator):
        """Five failures give 100% loss and no latency."""
        for _ in range(5):
            aggregator.apply(ProbeOutcome.failure("a.com"))

        state = aggregator.state_for("a.com")
        assert state.test_count == 5
        assert state.failure_count == 5
        assert state.history == []
        assert format_packet_loss(state) == "100.0%"
        assert min_latency(state) is None
        assert max_latency(state) is None
        assert average_latency(state) is None

    def test_snapshot_is_a_copy(self, aggregator):
        """Mutating a snapshot does not touch the aggregator."""
        snapshot = aggregator.apply(ProbeOutcome.success("a.com", 10.0))
        snapshot[0].history.append(999.0)

        assert aggregator.state_for("a.com").history == [10.0]

    def test_mark_testing(self, aggregator):
        """mark_testing changes status but not counters."""
        snapshot = aggregator.mark_testing("b.com")

        assert aggregator.state_for("b.com").status == TargetStatus.TESTING
        assert aggregator.state_for("b.com").test_count == 0
        assert [s.status for s in snapshot if s.host == "b.com"] == [TargetStatus.TESTING]

    def test_unknown_host_raises(self, aggregator):
        """Outcomes for unknown hosts are rejected."""
        with pytest.raises(KeyError):
            aggregator.apply(ProbeOutcome.success("unknown.com", 1.0))

    def test_snapshot_changed_emitted(self, aggregator):
        """Each update emits the new snapshot."""
        received = []
        aggregator.snapshot_changed.connect(received.append)

        aggregator.mark_testing("a.com")
        aggregator.apply(ProbeOutcome.success("a.com", 10.0))

        assert len(received) == 2
        assert received[-1][0].host == "a.com"

    def test_reset(self, aggregator):
        """Reset clears every target back to pending."""
        aggregator.apply(ProbeOutcome.success("a.com", 10.0))
        aggregator.apply(ProbeOutcome.failure("b.com"))

        snapshot = aggregator.reset()

        for state in snapshot:
            assert state.history == []
            assert state.test_count == 0
            assert state.failure_count == 0
            assert state.status == TargetStatus.PENDING

    def test_reset_restores_original_order(self, aggregator):
        """After a reset, history-less targets come back in encounter order."""
        aggregator.apply(ProbeOutcome.success("c.com", 10.0))
        aggregator.apply(ProbeOutcome.success("b.com", 20.0))
        assert [s.host for s in aggregator.snapshot()] == ["c.com", "b.com", "a.com"]

        snapshot = aggregator.reset()

        assert [s.host for s in snapshot] == ["a.com", "b.com", "c.com"]
        assert [s.host for s in aggregator.snapshot()] == ["a.com", "b.com", "c.com"]

    def test_concurrent_updates_are_not_lost(self, qapp):
        """Outcomes applied from many threads are all counted."""
        hosts = [f"host{i}.com" for i in range(4)]
        aggregator = StatsAggregator([Target(h) for h in hosts])
        per_thread = 200

        def apply_many(host, fail_every):
            for i in range(per_thread):
                if i % fail_every == 0:
                    aggregator.apply(ProbeOutcome.failure(host))
                else:
                    aggregator.apply(ProbeOutcome.success(host, float(i)))

        threads = []
        for host in hosts:
            # Two threads per host so updates to the same target interleave
            for fail_every in (3, 5):
                threads.append(threading.Thread(target=apply_many, args=(host, fail_every)))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        expected_failures = len(range(0, per_thread, 3)) + len(range(0, per_thread, 5))
        for host in hosts:
            state = aggregator.state_for(host)
            assert state.test_count == 2 * per_thread
            assert state.failure_count == expected_failures
            assert_invariants(state)
