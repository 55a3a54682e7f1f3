"""Shared fixtures for latmon tests."""

import os
import threading
import time

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from latmon.models import ProbeOutcome  # noqa: E402


class ScriptedProber:
    """Deterministic prober for pool and scheduler tests.

    latencies maps a host to a list of latencies returned on successive
    calls (the last value repeats). Hosts in fail_hosts always fail. delays
    maps a host to seconds slept before returning.
    """

    def __init__(self, latencies=None, fail_hosts=(), delays=None, default_latency=100.0):
        self.latencies = latencies or {}
        self.fail_hosts = set(fail_hosts)
        self.delays = delays or {}
        self.default_latency = default_latency

        self._lock = threading.Lock()
        self._in_flight = 0
        self.peak_in_flight = 0
        self.calls = []
        self.completed = []

    def probe(self, host):
        with self._lock:
            call_index = self.calls.count(host)
            self.calls.append(host)
            self._in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self._in_flight)

        try:
            delay = self.delays.get(host, 0.0)
            if delay:
                time.sleep(delay)

            if host in self.fail_hosts:
                return ProbeOutcome.failure(host)

            values = self.latencies.get(host, [self.default_latency])
            return ProbeOutcome.success(host, values[min(call_index, len(values) - 1)])
        finally:
            with self._lock:
                self._in_flight -= 1
                self.completed.append(host)


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication instance for tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def wait_until(qapp):
    """Return a helper that processes Qt events until a predicate holds."""

    def _wait(predicate, timeout=5.0):
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                return False
            QCoreApplication.processEvents()
            time.sleep(0.002)
        return True

    return _wait


@pytest.fixture
def scripted_prober():
    """Factory for ScriptedProber instances."""
    return ScriptedProber
