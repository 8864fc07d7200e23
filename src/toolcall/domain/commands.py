"""Built-in command registry and the resolved-command variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Literal, Mapping, Sequence, Tuple, Union

EntryPoint = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class BuiltInCommand:
    name: str
    entry_point: EntryPoint
    help: str = ""
    hidden: bool = False


class BuiltInRegistry:
    """Read-only mapping of built-in command names to their entry points."""

    def __init__(self, commands: Iterable[BuiltInCommand]) -> None:
        table: dict[str, BuiltInCommand] = {}
        for command in commands:
            if command.name in table:
                raise ValueError(f"Built-in command {command.name} already registered")
            table[command.name] = command
        self._commands: Mapping[str, BuiltInCommand] = MappingProxyType(table)

    def get(self, name: str) -> BuiltInCommand | None:
        return self._commands.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def list_commands(self, *, include_hidden: bool = False) -> list[BuiltInCommand]:
        return [
            self._commands[name]
            for name in sorted(self._commands)
            if include_hidden or not self._commands[name].hidden
        ]


@dataclass(frozen=True)
class BuiltInTarget:
    command: BuiltInCommand
    args: Tuple[str, ...] = ()
    kind: Literal["builtin"] = field(default="builtin", init=False)


@dataclass(frozen=True)
class ExternalTarget:
    executable: str
    args: Tuple[str, ...] = ()
    framework_hint: str = ""
    kind: Literal["external"] = field(default="external", init=False)


ResolvedCommand = Union[BuiltInTarget, ExternalTarget]
