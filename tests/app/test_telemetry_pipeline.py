from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Mapping, Sequence

from tests._fakes import FailingSink, RecordingSink, recording_client
from toolcall.adapters.marker_store import InMemoryMarkerStore
from toolcall.app.telemetry import (
    BuiltInParseReport,
    CommandReport,
    HttpTelemetrySink,
    JsonlTelemetrySink,
    TelemetryClient,
    TelemetryEvent,
    TelemetryFilter,
    TelemetryHub,
    TelemetrySink,
    hash_with_normalized_casing,
)
from toolcall.domain.first_run import FirstRunMarker
from toolcall.settings import RuntimeSettings


def test_hash_normalizes_casing() -> None:
    expected = hashlib.sha256("MY-TOOL".encode("utf-8")).hexdigest()
    assert hash_with_normalized_casing("my-tool") == expected
    assert hash_with_normalized_casing("My-Tool") == expected


def test_filter_hashes_external_verbs_only() -> None:
    telemetry_filter = TelemetryFilter()
    builtin = telemetry_filter.filter(CommandReport("tool", True, {"Startup Time": 1.5}))
    external = telemetry_filter.filter(CommandReport("secret-tool", False))
    assert builtin[0].name == "toplevelparser/command"
    assert builtin[0].properties["verb"] == "tool"
    assert builtin[0].measurements["Startup Time"] == 1.5
    assert external[0].properties["verb"] == hash_with_normalized_casing("secret-tool")


def test_filter_hashes_builtin_arguments() -> None:
    events = TelemetryFilter().filter(BuiltInParseReport.create("tool", ["update", "my-tool"], {}))
    assert events[0].name == "sublevelparser/command"
    assert events[0].properties["argv"] == hash_with_normalized_casing("update my-tool")


def test_filter_scrubs_sensitive_properties() -> None:
    event = TelemetryEvent("tool/update", {"toolId": "my-tool", "scope": "global"})
    [scrubbed] = TelemetryFilter().filter(event)
    assert scrubbed.properties["toolId"] == hash_with_normalized_casing("my-tool")
    assert scrubbed.properties["scope"] == "global"


def test_filter_exception_detail_omits_message() -> None:
    try:
        raise ValueError("/home/ada/secret path")
    except ValueError as exc:
        [event] = TelemetryFilter().filter(exc)
    assert event.name == "mainCatchException/exception"
    assert event.properties["exceptionType"] == "ValueError"
    assert "secret" not in event.properties["detail"]
    assert "test_filter_exception_detail_omits_message" in event.properties["detail"]


def test_filter_ignores_unknown_payloads() -> None:
    assert TelemetryFilter().filter({"name": "raw"}) == []


def test_hub_without_subscribers_is_inert() -> None:
    hub = TelemetryHub()
    hub.send_filtered(CommandReport("tool", True))
    assert not hub.subscribed


def test_hub_swallows_handler_errors() -> None:
    hub = TelemetryHub()
    received: list[TelemetryEvent] = []

    def broken(event: TelemetryEvent) -> None:
        raise RuntimeError("boom")

    hub.subscribe(broken)
    hub.subscribe(received.append)
    hub.send_filtered(CommandReport("tool", True))
    assert [event.name for event in received] == ["toplevelparser/command"]


def test_client_delivers_everything_before_flush_returns() -> None:
    sink = RecordingSink()
    client = recording_client(sink)
    for index in range(50):
        client.track_event(TelemetryEvent("evt", {"index": str(index)}))
    client.flush(timeout=5)
    assert [event.properties["index"] for event in sink.events] == [str(i) for i in range(50)]
    client.track_event(TelemetryEvent("late"))
    assert client.dropped == 1
    assert len(sink.events) == 50


def test_client_disabled_by_opt_out() -> None:
    sink = RecordingSink()
    client = TelemetryClient([sink], opt_out=True, notice_shown=True)
    client.track_event(TelemetryEvent("evt"))
    client.flush()
    assert not client.enabled
    assert client.pending == 0
    assert sink.events == []


def test_client_requires_telemetry_notice_marker() -> None:
    assert not TelemetryClient([RecordingSink()], markers=InMemoryMarkerStore()).enabled
    shown = InMemoryMarkerStore([FirstRunMarker.TELEMETRY_NOTICE_SHOWN])
    assert TelemetryClient([RecordingSink()], markers=shown).enabled


def test_client_swallows_sink_failures() -> None:
    failing = FailingSink()
    sink = RecordingSink()
    client = TelemetryClient([failing, sink], notice_shown=True)
    client.track_event(TelemetryEvent("evt"))
    client.flush(timeout=5)
    assert failing.calls == 1
    assert [event.name for event in sink.events] == ["evt"]


def test_flush_abandons_pending_batches_after_timeout() -> None:
    release = threading.Event()
    calls: list[int] = []

    class _BlockingSink(TelemetrySink):
        def deliver(self, events: Sequence[TelemetryEvent], context: Mapping[str, str]) -> None:
            calls.append(len(events))
            release.wait(5)

    client = TelemetryClient([_BlockingSink()], notice_shown=True)
    for _ in range(40):
        client.track_event(TelemetryEvent("evt"))
    started = time.monotonic()
    client.flush(timeout=0.1)
    elapsed = time.monotonic() - started
    assert elapsed < 0.5
    assert client.abandoned
    calls_at_return = len(calls)
    release.set()
    time.sleep(0.3)
    assert calls_at_return <= 1
    assert len(calls) == calls_at_return


def test_flush_within_timeout_does_not_abandon() -> None:
    sink = RecordingSink()
    client = recording_client(sink)
    client.track_event(TelemetryEvent("evt"))
    client.flush(timeout=5)
    assert not client.abandoned
    assert len(sink.events) == 1


def test_track_event_drops_when_queue_full() -> None:
    release = threading.Event()

    class _BlockingSink(TelemetrySink):
        def deliver(self, events: Sequence[TelemetryEvent], context: Mapping[str, str]) -> None:
            release.wait(5)

    client = TelemetryClient([_BlockingSink()], notice_shown=True, queue_size=2)
    for _ in range(100):
        client.track_event(TelemetryEvent("evt"))
    assert client.dropped > 0
    release.set()
    client.flush(timeout=5)


def test_jsonl_sink_writes_log(runtime_settings: RuntimeSettings) -> None:
    sink = JsonlTelemetrySink(runtime_settings)
    sink.deliver([TelemetryEvent("evt", {"verb": "tool"}, {"Startup Time": 3})], {"sessionId": "abc"})
    lines = (runtime_settings.log_dir / "telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[0])
    assert record["event"] == "evt"
    assert record["payload"]["verb"] == "tool"
    assert record["correlationId"] == "abc"
    assert record["measurements"] == {"Startup Time": 3.0}


def test_http_sink_posts_batch() -> None:
    captured = {}

    class _Response:
        def raise_for_status(self) -> None:
            return None

    class _Session:
        def post(self, url, json, headers, timeout):
            captured.update(url=url, json=json, timeout=timeout)
            return _Response()

    sink = HttpTelemetrySink("https://collector.invalid/v1", session=_Session(), timeout=1.0)
    sink.deliver([TelemetryEvent("evt", {"verb": "tool"})], {"cliVersion": "1.2.0"})
    assert captured["url"] == "https://collector.invalid/v1"
    assert captured["json"]["events"][0] == {"name": "evt", "properties": {"verb": "tool"}, "measurements": {}}
    assert captured["timeout"] == 1.0
