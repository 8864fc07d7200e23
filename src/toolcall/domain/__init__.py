"""Domain value objects for the toolcall dispatcher."""

from .commands import BuiltInCommand, BuiltInRegistry, BuiltInTarget, ExternalTarget, ResolvedCommand
from .first_run import FirstRunConfiguration, FirstRunMarker
from .invocation import GlobalFlag, InvocationDescriptor, ScanAction, ScanResult
from .tools import ToolRecord, ToolScope

__all__ = [
    "BuiltInCommand",
    "BuiltInRegistry",
    "BuiltInTarget",
    "ExternalTarget",
    "FirstRunConfiguration",
    "FirstRunMarker",
    "GlobalFlag",
    "InvocationDescriptor",
    "ResolvedCommand",
    "ScanAction",
    "ScanResult",
    "ToolRecord",
    "ToolScope",
]
