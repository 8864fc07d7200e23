from __future__ import annotations

import json
from importlib import resources

import jsonschema
import pytest

from toolcall.settings import RuntimeSettings
from toolcall.utils import telemetry


def test_record_and_summarize(runtime_settings: RuntimeSettings) -> None:
    telemetry.record_event(runtime_settings, "tool/update", {"toolId": "hashed"}, status="ok")
    telemetry.record_structured_event(
        runtime_settings,
        "first-run",
        payload={"marker": "TOOLS_PATH_ADDED"},
        level="warn",
        status="error",
        duration_ms=4.5,
    )
    events = list(telemetry.iter_events(runtime_settings))
    assert [evt["event"] for evt in events] == ["tool/update", "first-run"]
    assert events[1]["durationMs"] == 4.5
    summary = telemetry.summarize(events)
    assert summary == {
        "total": 2,
        "by_event": {"tool/update": 1, "first-run": 1},
        "by_status": {"ok": 1, "error": 1},
    }


def test_opt_out_suppresses_log(runtime_settings: RuntimeSettings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLCALL_CLI_TELEMETRY_OPTOUT", "yes")
    assert not telemetry.telemetry_enabled()
    telemetry.record_event(runtime_settings, "tool/update")
    assert list(telemetry.iter_events(runtime_settings)) == []


def test_invalid_level_rejected(runtime_settings: RuntimeSettings) -> None:
    with pytest.raises(ValueError):
        telemetry.record_structured_event(runtime_settings, "evt", level="debug")


def test_measurements_are_stored_as_numbers(runtime_settings: RuntimeSettings) -> None:
    telemetry.record_structured_event(runtime_settings, "evt", measurements={"Startup Time": 12})
    [record] = list(telemetry.iter_events(runtime_settings))
    assert record["measurements"] == {"Startup Time": 12.0}
    schema = json.loads((resources.files("toolcall.resources") / "telemetry.schema.json").read_text(encoding="utf-8"))
    jsonschema.Draft202012Validator(schema).validate(record)


def test_corrupt_lines_are_skipped(runtime_settings: RuntimeSettings) -> None:
    path = telemetry.log_path(runtime_settings)
    assert path == runtime_settings.log_dir / "telemetry.jsonl"
    path.write_text("not json\n\n[1, 2]\n" + json.dumps({"event": "ok"}) + "\n{\"event\": \"cut", encoding="utf-8")
    assert [evt["event"] for evt in telemetry.iter_events(runtime_settings)] == ["ok"]


def test_clear_removes_log(runtime_settings: RuntimeSettings) -> None:
    telemetry.record_event(runtime_settings, "evt")
    telemetry.clear(runtime_settings)
    assert not telemetry.log_path(runtime_settings).exists()
    telemetry.clear(runtime_settings)
