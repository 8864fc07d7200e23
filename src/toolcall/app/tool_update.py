"""Installing, updating and batch-updating tools."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, List, Sequence, TextIO

from packaging.version import InvalidVersion, Version

from toolcall.app.telemetry import TelemetryEvent
from toolcall.domain.tools import ToolRecord, ToolScope
from toolcall.errors import ToolUpdateError
from toolcall.ports.tool_repository import PackageInstaller, ToolRepository

Emit = Callable[[Any], None]
Invoke = Callable[[Sequence[str]], int]


def _parse_version(value: str | None) -> Version | None:
    if value is None:
        return None
    try:
        return Version(value)
    except InvalidVersion:
        return None


class ToolService:
    def __init__(
        self,
        repository: ToolRepository,
        installer: PackageInstaller,
        *,
        emit: Emit | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._repository = repository
        self._installer = installer
        self._emit = emit or (lambda payload: None)
        self._stdout = stdout

    def list(self, scope: ToolScope, manifest: Path | None = None) -> Sequence[ToolRecord]:
        if scope is ToolScope.GLOBAL:
            return self._repository.list_global()
        return self._repository.list_local(manifest)

    def install(
        self,
        tool_id: str,
        scope: ToolScope,
        *,
        version: str | None = None,
        manifest: Path | None = None,
    ) -> str:
        record = ToolRecord(
            tool_id=tool_id,
            scope=scope,
            manifest_path=str(manifest) if manifest and scope is ToolScope.LOCAL else None,
        )
        installed = self._installer.install(record.tool_id, version)
        self._repository.record(record, installed)
        self._print(f"Tool '{record.tool_id}' (version '{installed}') was successfully installed.")
        self._emit(TelemetryEvent("tool/install", {"toolId": record.tool_id, "scope": scope.value}))
        return installed

    def update(self, tool_id: str, scope: ToolScope, *, manifest: Path | None = None) -> str:
        current = self._find(tool_id, scope, manifest)
        installed = self._installer.install(current.tool_id)
        before, after = _parse_version(current.version), _parse_version(installed)
        self._repository.record(current, installed)
        if before is not None and after is not None and after <= before:
            status = "up-to-date"
            self._print(f"Tool '{current.tool_id}' is up to date (version '{installed}').")
        else:
            status = "updated"
            self._print(
                f"Tool '{current.tool_id}' was successfully updated "
                f"from version '{current.version or 'unknown'}' to version '{installed}'."
            )
        self._emit(
            TelemetryEvent(
                "tool/update",
                {"toolId": current.tool_id, "scope": scope.value, "status": status},
            )
        )
        return installed

    def _find(self, tool_id: str, scope: ToolScope, manifest: Path | None) -> ToolRecord:
        for record in self.list(scope, manifest):
            if record.tool_id == tool_id:
                return record
        where = "global tools" if scope is ToolScope.GLOBAL else "local tool manifests"
        raise ToolUpdateError(f"Tool '{tool_id}' is not installed in the {where}.")

    def _print(self, message: str) -> None:
        print(message, file=self._stdout or sys.stdout)


class ToolUpdateAllOrchestrator:
    """Updates every installed tool by re-invoking the dispatcher once per tool.

    Invocations run one after another in listing order. A failing invocation
    is not caught here: it stops the loop and the remaining tools are not
    attempted.
    """

    def __init__(self, repository: ToolRepository, invoke: Invoke) -> None:
        self._repository = repository
        self._invoke = invoke

    def execute(self, *, global_scope: bool, manifest: Path | None = None) -> int:
        if global_scope:
            records = self._repository.list_global()
        else:
            records = self._repository.list_local(manifest)
        for argv in self.synthesize(records):
            self._invoke(argv)
        return 0

    @staticmethod
    def synthesize(records: Sequence[ToolRecord]) -> List[List[str]]:
        return [record.update_argv() for record in records]
