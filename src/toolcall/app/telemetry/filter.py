"""Turns telemetry payloads into events with identifying values hashed."""

from __future__ import annotations

import hashlib
import os
import traceback
from typing import Any, Callable, Iterable, List

from .events import BuiltInParseReport, CommandReport, TelemetryEvent

SENSITIVE_PROPERTIES = frozenset({"packageId", "toolId", "manifestPath", "path", "home", "installerType"})

Hasher = Callable[[str], str]


def hash_with_normalized_casing(value: str) -> str:
    return hashlib.sha256(value.upper().encode("utf-8")).hexdigest()


class TelemetryFilter:
    def __init__(self, hasher: Hasher = hash_with_normalized_casing) -> None:
        self._hash = hasher

    def filter(self, payload: Any) -> List[TelemetryEvent]:
        if isinstance(payload, TelemetryEvent):
            return [self._scrub(payload)]
        if isinstance(payload, CommandReport):
            verb = payload.command if payload.is_builtin else self._hash(payload.command)
            return [TelemetryEvent("toplevelparser/command", {"verb": verb}, payload.measurements)]
        if isinstance(payload, BuiltInParseReport):
            properties = {"verb": payload.command}
            if payload.args:
                properties["argv"] = self._hash(" ".join(payload.args))
            return [TelemetryEvent("sublevelparser/command", properties, payload.measurements)]
        if isinstance(payload, BaseException):
            return [
                TelemetryEvent(
                    "mainCatchException/exception",
                    {"exceptionType": type(payload).__name__, "detail": _detail_without_message(payload)},
                )
            ]
        return []

    def _scrub(self, event: TelemetryEvent) -> TelemetryEvent:
        hashed = {
            key: self._hash(value)
            for key, value in event.properties.items()
            if key in SENSITIVE_PROPERTIES and value
        }
        if not hashed:
            return event
        return event.with_properties(hashed)


def _detail_without_message(exc: BaseException) -> str:
    frames: Iterable[traceback.FrameSummary] = traceback.extract_tb(exc.__traceback__)
    lines = [f"{type(exc).__module__}.{type(exc).__qualname__}"]
    lines.extend(f"  at {frame.name} ({os.path.basename(frame.filename)}:{frame.lineno})" for frame in frames)
    return "\n".join(lines)
