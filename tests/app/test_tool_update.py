from __future__ import annotations

import io
from pathlib import Path
from typing import List, Sequence

import pytest

from tests._fakes import FakeInstaller, FakeToolRepository, GateRecorder, RecordingSink, recording_client
from toolcall.app.telemetry import TelemetryEvent
from toolcall.app.tool_update import ToolService, ToolUpdateAllOrchestrator
from toolcall.cli.main import build_dispatcher
from toolcall.domain.tools import ToolScope
from toolcall.errors import ToolUpdateError
from toolcall.settings import RuntimeSettings


class _Invoker:
    def __init__(self, failing: Sequence[str] = ()) -> None:
        self.calls: List[List[str]] = []
        self._failing = set(failing)

    def __call__(self, argv: Sequence[str]) -> int:
        self.calls.append(list(argv))
        if argv[2] in self._failing:
            raise ToolUpdateError(f"Tool '{argv[2]}' failed to update.")
        return 0


def test_global_update_all_stops_at_first_failure() -> None:
    invoke = _Invoker(failing=["B"])
    orchestrator = ToolUpdateAllOrchestrator(FakeToolRepository(global_ids=["A", "B", "C"]), invoke)
    with pytest.raises(ToolUpdateError):
        orchestrator.execute(global_scope=True)
    assert invoke.calls == [["tool", "update", "A", "--global"], ["tool", "update", "B", "--global"]]


def test_local_update_all_passes_manifest_when_known() -> None:
    repository = FakeToolRepository(local=[("X", "/repo/.config/toolcall-tools.yaml"), ("Y", "")])
    invoke = _Invoker()
    assert ToolUpdateAllOrchestrator(repository, invoke).execute(global_scope=False) == 0
    assert invoke.calls == [
        ["tool", "update", "X", "--local", "--tool-manifest", "/repo/.config/toolcall-tools.yaml"],
        ["tool", "update", "Y", "--local"],
    ]
    assert repository.local_requests == [None]


def test_update_all_forwards_manifest_to_listing() -> None:
    repository = FakeToolRepository(local=[("X", "")])
    ToolUpdateAllOrchestrator(repository, _Invoker()).execute(global_scope=False, manifest=Path("m.yaml"))
    assert repository.local_requests == [Path("m.yaml")]


def test_update_all_with_nothing_installed_invokes_nothing() -> None:
    invoke = _Invoker()
    assert ToolUpdateAllOrchestrator(FakeToolRepository(), invoke).execute(global_scope=True) == 0
    assert invoke.calls == []


def test_update_reports_new_version() -> None:
    events: List[TelemetryEvent] = []
    out = io.StringIO()
    repository = FakeToolRepository(global_ids=["fmt"])
    service = ToolService(repository, FakeInstaller("2.0.0"), emit=events.append, stdout=out)
    assert service.update("fmt", ToolScope.GLOBAL) == "2.0.0"
    assert "Tool 'fmt' was successfully updated from version '1.0.0' to version '2.0.0'." in out.getvalue()
    assert repository.recorded == {"fmt": "2.0.0"}
    assert events[0].name == "tool/update"
    assert events[0].properties["status"] == "updated"


def test_update_reports_up_to_date() -> None:
    out = io.StringIO()
    service = ToolService(FakeToolRepository(global_ids=["fmt"]), FakeInstaller("1.0.0"), stdout=out)
    service.update("fmt", ToolScope.GLOBAL)
    assert "Tool 'fmt' is up to date (version '1.0.0')." in out.getvalue()


def test_update_missing_tool_fails() -> None:
    service = ToolService(FakeToolRepository(global_ids=["fmt"]), FakeInstaller(), stdout=io.StringIO())
    with pytest.raises(ToolUpdateError, match="not installed in the local tool manifests"):
        service.update("lint", ToolScope.LOCAL)


def test_install_records_version() -> None:
    repository = FakeToolRepository()
    installer = FakeInstaller("3.1.0")
    service = ToolService(repository, installer, stdout=io.StringIO())
    assert service.install("fmt", ToolScope.LOCAL, version="3.1.0", manifest=Path("m.yaml")) == "3.1.0"
    assert installer.attempts == ["fmt"]
    assert repository.recorded == {"fmt": "3.1.0"}


def test_update_all_through_dispatcher_aborts_on_failure(runtime_settings: RuntimeSettings, capsys) -> None:
    installer = FakeInstaller("2.0.0", failing=["B"])
    sink = RecordingSink()
    dispatcher = build_dispatcher(
        runtime_settings,
        repository=FakeToolRepository(global_ids=["A", "B", "C"]),
        installer=installer,
        gate_factory=GateRecorder(runtime_settings),
        telemetry_client=recording_client(sink),
        environ={},
        stdout=io.StringIO(),
        stderr=io.StringIO(),
    )
    with pytest.raises(ToolUpdateError):
        dispatcher.run(["tool", "update", "--all", "--global"])
    assert installer.attempts == ["A", "B"]
    assert "Tool 'A' was successfully updated" in capsys.readouterr().out
    verbs = [event.properties.get("verb") for event in sink.events if event.name == "toplevelparser/command"]
    assert verbs == ["tool", "tool", "tool"]
