"""MongoDB replica set access: status/config reads and reconfiguration writes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import ReplicaMember


@runtime_checkable
class ReplicaSetSource(Protocol):
    """Protocol for anything that can report the current replica set topology."""

    def fetch_members(self) -> list[ReplicaMember]:
        """Return the merged status/configuration view of every member."""
        ...
