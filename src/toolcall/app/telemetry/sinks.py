"""Delivery targets for telemetry events."""

from __future__ import annotations

import platform
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Sequence

import requests

from toolcall.settings import RuntimeSettings
from toolcall.utils.telemetry import record_structured_event

from .events import TelemetryEvent


class TelemetrySink(ABC):
    @abstractmethod
    def deliver(self, events: Sequence[TelemetryEvent], context: Mapping[str, str]) -> None:
        """Deliver a batch; may raise, the worker swallows failures."""


class JsonlTelemetrySink(TelemetrySink):
    """Appends events to the local telemetry log."""

    def __init__(self, settings: RuntimeSettings) -> None:
        self._settings = settings

    def deliver(self, events: Sequence[TelemetryEvent], context: Mapping[str, str]) -> None:
        for event in events:
            payload: Dict[str, Any] = dict(event.properties)
            payload["context"] = dict(context)
            record_structured_event(
                self._settings,
                event.name,
                payload=payload,
                component="telemetry",
                correlation_id=context.get("sessionId"),
                measurements=event.measurements,
            )


class HttpTelemetrySink(TelemetrySink):
    """POSTs batches to a collector endpoint."""

    def __init__(self, endpoint: str, session: requests.Session | None = None, *, timeout: float = 3.0) -> None:
        self._endpoint = endpoint
        self._session = session or requests.Session()
        self._timeout = timeout

    def deliver(self, events: Sequence[TelemetryEvent], context: Mapping[str, str]) -> None:
        body = {
            "context": dict(context),
            "events": [
                {
                    "name": event.name,
                    "properties": dict(event.properties),
                    "measurements": dict(event.measurements),
                }
                for event in events
            ],
        }
        response = self._session.post(
            self._endpoint,
            json=body,
            headers={"User-Agent": f"toolcall/{context.get('cliVersion', 'unknown')}"},
            timeout=self._timeout,
        )
        response.raise_for_status()


def default_context(cli_version: str) -> Dict[str, str]:
    return {
        "cliVersion": cli_version,
        "osName": platform.system(),
        "osVersion": platform.release(),
        "pythonVersion": platform.python_version(),
    }
