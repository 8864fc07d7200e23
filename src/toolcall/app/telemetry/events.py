"""Telemetry payloads accepted by the filter."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence, Tuple


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    properties: Mapping[str, str] = field(default_factory=dict)
    measurements: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Telemetry event name must be a non-empty string")
        object.__setattr__(self, "properties", MappingProxyType({str(k): str(v) for k, v in self.properties.items()}))
        object.__setattr__(
            self,
            "measurements",
            MappingProxyType({str(k): float(v) for k, v in self.measurements.items()}),
        )

    def with_properties(self, properties: Mapping[str, str]) -> "TelemetryEvent":
        return TelemetryEvent(self.name, {**self.properties, **properties}, self.measurements)


@dataclass(frozen=True)
class CommandReport:
    """Top-level command selection plus startup measurements."""

    command: str
    is_builtin: bool
    measurements: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class BuiltInParseReport:
    command: str
    args: Tuple[str, ...] = ()
    measurements: Mapping[str, float] = field(default_factory=dict)

    @classmethod
    def create(cls, command: str, args: Sequence[str], measurements: Mapping[str, float]) -> "BuiltInParseReport":
        return cls(command=command, args=tuple(args), measurements=dict(measurements))
