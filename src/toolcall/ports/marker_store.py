"""Port definition for first-run marker persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from toolcall.domain.first_run import FirstRunMarker


class MarkerStore(ABC):
    """Abstraction over durable 'completed' flags for one-time actions."""

    @abstractmethod
    def exists(self, marker: FirstRunMarker) -> bool:
        """Return True when the marker has been persisted."""

    @abstractmethod
    def create(self, marker: FirstRunMarker) -> None:
        """Persist the marker; creating an existing marker is a no-op."""


__all__ = ["MarkerStore"]
