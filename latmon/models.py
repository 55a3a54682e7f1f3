"""Data models for latmon targets, probe outcomes and per-target state."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ServiceType(str, Enum):
    """Service category a target belongs to."""

    PUBLIC = "Public"
    PRIVATE = "Private"
    CODEX = "Codex"


def classify_service(host: str) -> ServiceType:
    """Map a host name to its service category (pure function).

    Hosts containing "codex" are Codex endpoints, hosts containing "share"
    are private endpoints, everything else is public. Matching is
    case-insensitive and "codex" takes precedence.

    Examples:
        >>> classify_service("codex-api.example.com")
        <ServiceType.CODEX: 'Codex'>
        >>> classify_service("share-api.example.com")
        <ServiceType.PRIVATE: 'Private'>
    """
    lowered = host.lower()
    if "codex" in lowered:
        return ServiceType.CODEX
    if "share" in lowered:
        return ServiceType.PRIVATE
    return ServiceType.PUBLIC


@dataclass(frozen=True)
class Target:
    """An endpoint to probe. The service category is derived once."""

    host: str
    service: ServiceType = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "service", classify_service(self.host))


@dataclass
class ProbeOutcome:
    """Result of a single probe attempt."""

    ts: datetime
    host: str
    latency_ms: float | None  # None indicates failure
    failed: bool

    def __post_init__(self):
        """Ensure consistency between latency_ms and failed fields.

        A success carries a non-negative latency. Anything else is a failure.
        """
        if not self.failed and (self.latency_ms is None or self.latency_ms < 0):
            self.failed = True
        if self.failed:
            self.latency_ms = None

    @classmethod
    def success(cls, host: str, latency_ms: float) -> "ProbeOutcome":
        return cls(ts=datetime.now(), host=host, latency_ms=latency_ms, failed=False)

    @classmethod
    def failure(cls, host: str) -> "ProbeOutcome":
        return cls(ts=datetime.now(), host=host, latency_ms=None, failed=True)


class TargetStatus(Enum):
    """Status of the most recent probe of a target."""

    PENDING = "pending"
    TESTING = "testing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class TargetState:
    """Running statistics for one target.

    history holds every successful latency in arrival order and is never
    trimmed. status only reflects the most recent probe.
    """

    target: Target
    history: list[float] = field(default_factory=list)
    test_count: int = 0
    failure_count: int = 0
    status: TargetStatus = TargetStatus.PENDING

    @property
    def host(self) -> str:
        return self.target.host

    @property
    def service(self) -> ServiceType:
        return self.target.service

    def copy(self) -> "TargetState":
        """Return an independent copy safe to hand to other threads."""
        return TargetState(
            target=self.target,
            history=list(self.history),
            test_count=self.test_count,
            failure_count=self.failure_count,
            status=self.status,
        )


# Full ranked view of all targets, best average latency first
RankedSnapshot = tuple[TargetState, ...]
