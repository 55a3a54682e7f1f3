"""Prober abstraction for latmon latency sources."""

from typing import Protocol

from latmon.models import ProbeOutcome


class Prober(Protocol):
    """Protocol defining the interface for single-probe executors.

    Implementations report network problems as failed outcomes rather than
    raising, and must be safe to call concurrently for different hosts.
    """

    def probe(self, host: str) -> ProbeOutcome:
        """Perform one timed probe of the given host."""
        ...
