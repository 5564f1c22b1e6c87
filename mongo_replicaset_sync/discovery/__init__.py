"""Cloud inventory package: provider-agnostic Protocol for listing replica set instances."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import CloudInstance


@runtime_checkable
class InventorySource(Protocol):
    """Protocol that every cloud inventory client must satisfy."""

    def list_instances(self) -> list[CloudInstance]:
        """Return every instance tagged as belonging to the configured replica set."""
        ...
