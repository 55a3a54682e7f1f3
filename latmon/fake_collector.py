"""Simulated prober for latmon testing and offline demos."""

import random
import time

from latmon.models import ProbeOutcome


class FakeProber:
    """Generates simulated probe outcomes."""

    def __init__(self, seed: int | None = None, simulate_delay: bool = False):
        """Initialize with optional random seed for deterministic behavior.

        When simulate_delay is set, probe() sleeps for the simulated latency
        so a live view sees realistic completion order.
        """
        # Create isolated random instance for thread safety
        self._random = random.Random(seed)
        self.simulate_delay = simulate_delay

        # Simulation parameters
        self.base_latency = 150.0  # Base latency in ms
        self.latency_variance = 40.0  # Normal variance
        self.spike_probability = 0.05  # 5% chance of latency spike
        self.spike_multiplier = 3.0  # Spike makes latency 3x higher
        self.failure_probability = 0.03  # 3% chance of a failed probe

    def probe(self, host: str) -> ProbeOutcome:
        """Generate a single simulated outcome for the given host."""
        if not host or not host.strip():
            raise ValueError("Host cannot be empty")

        if self._random.random() < self.failure_probability:
            return ProbeOutcome.failure(host)

        if self._random.random() < self.spike_probability:
            latency = self.base_latency * self.spike_multiplier + self._random.gauss(
                0, self.latency_variance
            )
        else:
            latency = self.base_latency + self._random.gauss(0, self.latency_variance)

        # Ensure latency is positive
        latency = max(1.0, latency)

        if self.simulate_delay:
            time.sleep(latency / 1000.0)

        return ProbeOutcome.success(host, round(latency, 2))
