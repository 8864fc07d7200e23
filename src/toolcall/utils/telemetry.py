"""Local telemetry log: structured JSON-lines records under the profile log directory."""

from __future__ import annotations

import json
import time
from collections import Counter
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

import jsonschema

from toolcall.settings import TELEMETRY_OPTOUT_ENV, RuntimeSettings, env_flag

LEVELS = {"info", "warn", "error"}
LOG_FILENAME = "telemetry.jsonl"

_TELEMETRY_VALIDATOR = None


def telemetry_enabled() -> bool:
    return not env_flag(TELEMETRY_OPTOUT_ENV, False)


def record_event(settings: RuntimeSettings, event: str, payload: dict[str, Any] | None = None, **extra: Any) -> None:
    record_structured_event(settings, event, payload=payload, **extra)


def record_structured_event(
    settings: RuntimeSettings,
    event: str,
    *,
    payload: dict[str, Any] | None = None,
    level: str = "info",
    status: str | None = None,
    component: str | None = None,
    correlation_id: str | None = None,
    duration_ms: float | None = None,
    measurements: Mapping[str, float] | None = None,
) -> None:
    if not telemetry_enabled():
        return
    record: dict[str, Any] = {
        "ts": time.time(),
        "event": event,
        "payload": payload or {},
        "level": level,
    }
    if status:
        record["status"] = status
    if component:
        record["component"] = component
    if correlation_id:
        record["correlationId"] = correlation_id
    if duration_ms is not None:
        record["durationMs"] = duration_ms
    if measurements:
        record["measurements"] = {key: float(value) for key, value in measurements.items()}
    _check_record(record)
    _validate_against_schema(record)
    path = log_path(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")


def log_path(settings: RuntimeSettings) -> Path:
    return settings.log_dir / LOG_FILENAME


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    path = log_path(settings)
    if not path.is_file():
        return iter(())
    return _read_events(path)


def _read_events(path: Path) -> Iterator[dict[str, Any]]:
    with path.open("r", encoding="utf-8") as fh:
        for raw in fh:
            raw = raw.strip()
            if not raw:
                continue
            try:
                record = json.loads(raw)
            except json.JSONDecodeError:
                # truncated trailing line from an interrupted write
                continue
            if isinstance(record, dict):
                yield record


def summarize(events: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    by_event: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    for record in events:
        by_event[record.get("event", "unknown")] += 1
        by_status[record.get("status", "unknown")] += 1
    return {"total": sum(by_event.values()), "by_event": dict(by_event), "by_status": dict(by_status)}


def clear(settings: RuntimeSettings) -> None:
    log_path(settings).unlink(missing_ok=True)


def _check_record(record: dict[str, Any]) -> None:
    """Level and duration checks that report a readable ValueError before schema validation."""

    if record["level"] not in LEVELS:
        raise ValueError(f"Telemetry level '{record['level']}' is not supported")
    duration = record.get("durationMs")
    if duration is not None and (isinstance(duration, bool) or duration < 0):
        raise ValueError("Telemetry durationMs must be a non-negative number")


def _telemetry_validator():  # pragma: no cover - trivial cache
    global _TELEMETRY_VALIDATOR
    if _TELEMETRY_VALIDATOR is not None:
        return _TELEMETRY_VALIDATOR
    schema_resource = resources.files("toolcall.resources") / "telemetry.schema.json"
    schema = json.loads(schema_resource.read_text(encoding="utf-8"))
    _TELEMETRY_VALIDATOR = jsonschema.Draft202012Validator(schema)
    return _TELEMETRY_VALIDATOR


def _validate_against_schema(record: dict[str, Any]) -> None:
    _telemetry_validator().validate(record)
