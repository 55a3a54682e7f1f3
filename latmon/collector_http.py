"""HTTP latency prober for latmon using httpx."""

import asyncio
import logging
import time

import httpx

from latmon.models import ProbeOutcome

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}


def build_probe_url(host: str) -> str:
    """Build the URL probed for a host (pure function).

    Examples:
        >>> build_probe_url("example.com")
        'https://example.com/'
    """
    return f"https://{host}/"


class HttpProber:
    """Prober that times one HTTP GET against https://{host}/.

    The response is treated as opaque: neither status code nor body is
    inspected, and the body is never read. A request counts as a success once
    the response headers arrive within the timeout. Timeouts, DNS failures,
    refused connections and TLS errors are all reported the same way, as a
    failed outcome.

    The timeout bounds the whole attempt. httpx timeouts restart on every
    read, so the request runs on an ``httpx.AsyncClient`` under
    ``asyncio.wait_for`` and is cancelled once the deadline passes.

    Each probe uses a fresh client so no connection is reused between
    probes and every measurement includes connection setup.
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        transport: httpx.AsyncBaseTransport | None = None,
        clock=time.perf_counter,
    ):
        """Initialize HTTP prober.

        Args:
            timeout_ms: Hard limit for one probe in milliseconds.
            transport: Optional async httpx transport (used by tests).
            clock: Monotonic clock returning seconds.
        """
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        self.timeout_ms = timeout_ms
        self.timeout_seconds = timeout_ms / 1000.0
        self._transport = transport
        self._clock = clock

        logger.debug("HttpProber initialized: timeout_ms=%d", timeout_ms)

    def probe(self, host: str) -> ProbeOutcome:
        """Probe the given host once.

        Runs its own event loop, so it is safe to call from worker threads.

        Args:
            host: Target host name

        Returns:
            ProbeOutcome with elapsed milliseconds, or a failed outcome
        """
        if not host or not host.strip():
            return ProbeOutcome.failure(host)

        url = build_probe_url(host)
        start = self._clock()

        try:
            asyncio.run(asyncio.wait_for(self._request(url), timeout=self.timeout_seconds))
        except asyncio.TimeoutError:
            logger.debug("Probe timed out: host=%s, timeout=%dms", host, self.timeout_ms)
            return ProbeOutcome.failure(host)
        except httpx.HTTPError as e:
            logger.debug("Probe failed: host=%s, error=%s", host, type(e).__name__)
            return ProbeOutcome.failure(host)
        except Exception as e:
            logger.warning("Probe error: host=%s, error=%s", host, str(e), exc_info=True)
            return ProbeOutcome.failure(host)

        elapsed_ms = (self._clock() - start) * 1000.0

        if elapsed_ms > self.timeout_ms:
            logger.debug("Probe over time limit: host=%s, elapsed=%.1fms", host, elapsed_ms)
            return ProbeOutcome.failure(host)

        logger.debug("Probe completed: host=%s, latency=%.2fms", host, elapsed_ms)
        return ProbeOutcome.success(host, elapsed_ms)

    async def _request(self, url: str):
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            headers=NO_CACHE_HEADERS,
            follow_redirects=False,
            transport=self._transport,
        ) as client:
            # Headers only, the body is closed unread
            async with client.stream("GET", url):
                pass
