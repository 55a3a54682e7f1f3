"""Runtime settings for latmon, read from environment variables."""

import logging
import os
from dataclasses import dataclass

from latmon.collector_http import DEFAULT_TIMEOUT_MS
from latmon.pool import DEFAULT_MAX_CONCURRENT
from latmon.registry import DEFAULT_TARGETS, parse_target_list
from latmon.scheduler import DEFAULT_ROUND_PAUSE_MS, DEFAULT_TOTAL_ROUNDS

logger = logging.getLogger(__name__)

PROBER_CHOICES = ("http", "fake")
TRUE_VALUES = ("1", "true", "yes", "on")


def _read_int(environ, name: str, default: int, minimum: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None

    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Environment Variables:
        LATMON_TARGETS: Comma-separated host list
        LATMON_CONCURRENCY: Maximum probes in flight (default 6)
        LATMON_TIMEOUT_MS: Hard timeout per probe (default 5000)
        LATMON_ROUNDS: Rounds per manual run (default 10)
        LATMON_ROUND_PAUSE_MS: Pause between manual rounds (default 1000)
        LATMON_PROBER: "http" (default) or "fake" for simulated data
        LATMON_AUTO: Start auto mode on launch when set to 1/true/yes/on

    Examples:
        $ LATMON_TARGETS=api.example.com,share-api.example.com python -m latmon
        $ LATMON_PROBER=fake LATMON_AUTO=1 python -m latmon
    """

    targets: tuple[str, ...] = DEFAULT_TARGETS
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    total_rounds: int = DEFAULT_TOTAL_ROUNDS
    round_pause_ms: int = DEFAULT_ROUND_PAUSE_MS
    prober: str = "http"
    auto_start: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        if environ is None:
            environ = os.environ

        targets_raw = environ.get("LATMON_TARGETS", "")
        targets = tuple(parse_target_list(targets_raw)) or DEFAULT_TARGETS

        prober = environ.get("LATMON_PROBER", "http").strip().lower() or "http"
        if prober not in PROBER_CHOICES:
            raise ValueError(
                f"LATMON_PROBER must be one of {', '.join(PROBER_CHOICES)}, got {prober!r}"
            )

        settings = cls(
            targets=targets,
            max_concurrent=_read_int(environ, "LATMON_CONCURRENCY", DEFAULT_MAX_CONCURRENT, 1),
            timeout_ms=_read_int(environ, "LATMON_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, 1),
            total_rounds=_read_int(environ, "LATMON_ROUNDS", DEFAULT_TOTAL_ROUNDS, 1),
            round_pause_ms=_read_int(
                environ, "LATMON_ROUND_PAUSE_MS", DEFAULT_ROUND_PAUSE_MS, 0
            ),
            prober=prober,
            auto_start=environ.get("LATMON_AUTO", "").strip().lower() in TRUE_VALUES,
        )

        logger.debug("Settings loaded: %s", settings)
        return settings
