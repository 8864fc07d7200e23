"""Explicit replacement for a process-wide telemetry entry point."""

from __future__ import annotations

from typing import Any, Callable, List

from .events import TelemetryEvent
from .filter import TelemetryFilter

Handler = Callable[[TelemetryEvent], None]


class TelemetryHub:
    """Routes payloads through the filter to subscribed handlers. Never raises."""

    def __init__(self, telemetry_filter: TelemetryFilter | None = None) -> None:
        self.filter = telemetry_filter or TelemetryFilter()
        self._handlers: List[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        self._handlers.append(handler)

    @property
    def subscribed(self) -> bool:
        return bool(self._handlers)

    def send_filtered(self, payload: Any) -> None:
        if not self._handlers:
            return
        try:
            events = self.filter.filter(payload)
        except Exception:  # noqa: BLE001 - telemetry must never surface errors
            return
        for event in events:
            for handler in self._handlers:
                try:
                    handler(event)
                except Exception:  # noqa: BLE001
                    continue
