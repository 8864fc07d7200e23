"""Port definition for user PATH augmentation."""

from __future__ import annotations

from abc import ABC, abstractmethod


class EnvironmentPath(ABC):
    @abstractmethod
    def add_tools_directory(self) -> None:
        """Make the global tools directory visible on the user's PATH."""


__all__ = ["EnvironmentPath"]
