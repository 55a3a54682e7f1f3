"""Registry of the fixed set of targets probed for the process lifetime."""

import logging

from latmon.models import ServiceType, Target

logger = logging.getLogger(__name__)

DEFAULT_TARGETS = (
    "claude.ai",
    "anthropic.com",
    "google.com",
    "github.com",
    "stackoverflow.com",
    "vercel.com",
)


def parse_target_list(text: str) -> list[str]:
    """Parse a comma-separated host list.

    Whitespace around entries is stripped, empty entries are dropped and
    duplicates are ignored (first occurrence wins).

    Examples:
        >>> parse_target_list(" a.com, b.com,,a.com ")
        ['a.com', 'b.com']
    """
    hosts = []
    for entry in text.split(","):
        host = entry.strip()
        if host and host not in hosts:
            hosts.append(host)
    return hosts


class TargetRegistry:
    """Ordered, immutable collection of targets.

    Order is the configured order and defines dispatch order within a pass.
    """

    def __init__(self, hosts=DEFAULT_TARGETS):
        targets = []
        seen = set()
        for host in hosts:
            host = host.strip()
            if not host or host in seen:
                continue
            seen.add(host)
            targets.append(Target(host))

        self._targets = tuple(targets)
        logger.debug("Registry created: %d targets", len(self._targets))

    def __len__(self):
        return len(self._targets)

    def __iter__(self):
        return iter(self._targets)

    def get_targets(self) -> tuple[Target, ...]:
        return self._targets

    def get_hosts(self) -> list[str]:
        return [target.host for target in self._targets]

    def by_service(self, service: ServiceType) -> list[Target]:
        """Return the targets of one service category, in registry order."""
        return [target for target in self._targets if target.service == service]

    def services(self) -> list[ServiceType]:
        """Return the service categories present, in first-seen order."""
        found = []
        for target in self._targets:
            if target.service not in found:
                found.append(target.service)
        return found
