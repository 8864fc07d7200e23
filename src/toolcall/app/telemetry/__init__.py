"""Fire-and-forget usage telemetry: filtering, queueing and best-effort delivery."""

from .client import DEFAULT_FLUSH_TIMEOUT, DEFAULT_QUEUE_SIZE, TelemetryClient
from .events import BuiltInParseReport, CommandReport, TelemetryEvent
from .filter import TelemetryFilter, hash_with_normalized_casing
from .hub import TelemetryHub
from .sinks import HttpTelemetrySink, JsonlTelemetrySink, TelemetrySink

__all__ = [
    "BuiltInParseReport",
    "CommandReport",
    "DEFAULT_FLUSH_TIMEOUT",
    "DEFAULT_QUEUE_SIZE",
    "HttpTelemetrySink",
    "JsonlTelemetrySink",
    "TelemetryClient",
    "TelemetryEvent",
    "TelemetryFilter",
    "TelemetryHub",
    "TelemetrySink",
    "hash_with_normalized_casing",
]
