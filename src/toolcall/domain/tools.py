"""Installed tool records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ToolScope(str, Enum):
    GLOBAL = "global"
    LOCAL = "local"


@dataclass(frozen=True)
class ToolRecord:
    tool_id: str
    scope: ToolScope
    manifest_path: str | None = None
    version: str | None = None

    def __post_init__(self) -> None:
        if not self.tool_id or not self.tool_id.strip():
            raise ValueError("tool_id must be a non-empty string")
        object.__setattr__(self, "tool_id", self.tool_id.strip())
        if self.scope is ToolScope.GLOBAL and self.manifest_path:
            raise ValueError("global tools cannot carry a manifest path")

    def update_argv(self) -> list[str]:
        """Arguments for the dispatcher that update this tool alone."""

        if self.scope is ToolScope.GLOBAL:
            return ["tool", "update", self.tool_id, "--global"]
        args = ["tool", "update", self.tool_id, "--local"]
        if self.manifest_path:
            args.extend(["--tool-manifest", self.manifest_path])
        return args
