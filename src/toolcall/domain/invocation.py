"""Value objects produced by the argument prefix scan."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Tuple


class GlobalFlag(str, Enum):
    DIAGNOSTICS = "diagnostics"
    VERSION = "version"
    INFO = "info"
    HELP = "help"


class ScanAction(str, Enum):
    """What the dispatcher should do once the prefix scan is over."""

    RUN = "run"
    VERSION = "version"
    INFO = "info"
    HELP = "help"
    ERROR = "error"


@dataclass(frozen=True)
class InvocationDescriptor:
    global_flags: FrozenSet[GlobalFlag] = frozenset()
    command_name: str = ""
    command_args: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "global_flags", frozenset(self.global_flags))
        object.__setattr__(self, "command_args", tuple(self.command_args))

    @property
    def has_command(self) -> bool:
        return bool(self.command_name)

    @property
    def verbose(self) -> bool:
        return GlobalFlag.DIAGNOSTICS in self.global_flags


@dataclass(frozen=True)
class ScanResult:
    action: ScanAction
    descriptor: InvocationDescriptor = field(default_factory=InvocationDescriptor)
    unknown_option: str | None = None

    @property
    def success(self) -> bool:
        return self.action is not ScanAction.ERROR
