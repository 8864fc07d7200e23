"""Marker store implementations."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Set

from toolcall.domain.first_run import FirstRunMarker
from toolcall.ports.marker_store import MarkerStore


class FileMarkerStore(MarkerStore):
    """One empty file per marker inside the profile directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def path_for(self, marker: FirstRunMarker) -> Path:
        return self._directory / marker.value

    def exists(self, marker: FirstRunMarker) -> bool:
        return self.path_for(marker).is_file()

    def create(self, marker: FirstRunMarker) -> None:
        path = self.path_for(marker)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("x", encoding="utf-8"):
                pass
        except FileExistsError:
            return


class NoOpMarkerStore(MarkerStore):
    """Never reads or writes anything; used for the installer callback.

    Every marker reports as present so no gated action runs.
    """

    def __init__(self, reports_existing: bool = True) -> None:
        self._reports_existing = reports_existing

    def exists(self, marker: FirstRunMarker) -> bool:
        return self._reports_existing

    def create(self, marker: FirstRunMarker) -> None:
        return None


class InMemoryMarkerStore(MarkerStore):
    def __init__(self, markers: Iterable[FirstRunMarker] = ()) -> None:
        self.markers: Set[FirstRunMarker] = set(markers)
        self.created: list[FirstRunMarker] = []

    def exists(self, marker: FirstRunMarker) -> bool:
        return marker in self.markers

    def create(self, marker: FirstRunMarker) -> None:
        if marker not in self.markers:
            self.markers.add(marker)
            self.created.append(marker)


__all__ = ["FileMarkerStore", "InMemoryMarkerStore", "NoOpMarkerStore"]
