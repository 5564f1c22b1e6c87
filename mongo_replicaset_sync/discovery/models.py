"""Data model for cloud instances that back replica set members."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

RUNNING = "running"

ROLE_PRIMARY = "primary"
ROLE_HIDDEN = "hidden"
ROLE_SECONDARY = "secondary"


def is_valid_ipv4(value: str | None) -> bool:
    """True for a dotted-quad IPv4 address such as '10.0.0.5'."""
    if not value:
        return False
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class CloudInstance:
    """A single VM tagged as belonging to the replica set.

    ``ip`` and ``availability_zone`` are only populated for running instances;
    recently terminated instances keep their tags for a while and show up here
    without network identity.
    """

    instance_id: str
    state: str
    role: str = ROLE_SECONDARY
    ip: str | None = None
    availability_zone: str | None = None

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING

    @property
    def has_valid_ip(self) -> bool:
        return is_valid_ipv4(self.ip)


def parse_replica_set_tag(value: str) -> tuple[str, str]:
    """Split a tag value like 'rs-prod,Primary' into ('rs-prod', 'primary').

    A missing role means an ordinary secondary.
    """
    parts = [p.strip() for p in value.lower().split(",")]
    name = parts[0]
    role = parts[1] if len(parts) > 1 and parts[1] else ROLE_SECONDARY
    return name, role
