"""Ports for the installed-tool listing and package installation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from toolcall.domain.tools import ToolRecord


class ToolRepository(ABC):
    """Lists and records installed tools."""

    @abstractmethod
    def list_global(self) -> Sequence[ToolRecord]:
        """Return global tools in listing order."""

    @abstractmethod
    def list_local(self, manifest: Path | None = None) -> Sequence[ToolRecord]:
        """Return local tools paired with the manifest that declares them."""

    @abstractmethod
    def record(self, record: ToolRecord, version: str) -> None:
        """Persist the installed version for a tool."""


class PackageInstaller(ABC):
    @abstractmethod
    def install(self, package_id: str, version: str | None = None) -> str:
        """Install or upgrade the package and return the installed version."""


__all__ = ["PackageInstaller", "ToolRepository"]
