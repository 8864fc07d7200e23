"""Resolves a command name to a built-in entry point or an external executable."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Sequence

from toolcall.domain.commands import BuiltInRegistry, BuiltInTarget, ExternalTarget, ResolvedCommand
from toolcall.errors import CommandNotFoundError

EXTERNAL_COMMAND_PREFIX = "toolcall-"
FRAMEWORK_HINT = "py3"
FRAMEWORK_HINT_ENV = "TOOLCALL_TARGET_FRAMEWORK"
_DEFAULT_PATHEXT = ".COM;.EXE;.BAT;.CMD"
_POSIX_EXTENSIONS = ("", ".py", ".sh")

Runner = Callable[..., "subprocess.CompletedProcess[bytes]"]


class ExecutableResolver:
    """Searches the toolcall install directory and PATH for an executable file."""

    def __init__(
        self,
        search_dirs: Sequence[Path] | None = None,
        *,
        platform: str = sys.platform,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._platform = platform
        self._search_dirs = list(search_dirs) if search_dirs is not None else self._default_search_dirs()

    def _default_search_dirs(self) -> List[Path]:
        dirs: List[Path] = []
        if sys.argv and sys.argv[0]:
            dirs.append(Path(sys.argv[0]).resolve().parent)
        for entry in self._environ.get("PATH", "").split(os.pathsep):
            if entry:
                dirs.append(Path(entry))
        return dirs

    def extensions(self) -> Iterable[str]:
        if self._platform == "win32":
            pathext = self._environ.get("PATHEXT", _DEFAULT_PATHEXT)
            return ["", *[ext.lower() for ext in pathext.split(";") if ext]]
        return _POSIX_EXTENSIONS

    def find(self, name: str) -> Path | None:
        seen: set[Path] = set()
        for directory in self._search_dirs:
            if directory in seen:
                continue
            seen.add(directory)
            for ext in self.extensions():
                candidate = directory / f"{name}{ext}"
                if self._is_executable(candidate):
                    return candidate
        return None

    def _is_executable(self, candidate: Path) -> bool:
        if not candidate.is_file():
            return False
        if self._platform == "win32" or candidate.suffix == ".py":
            return True
        return os.access(candidate, os.X_OK)


class CommandResolver:
    """Built-ins first by exact name; otherwise ``toolcall-<name>`` on the search path."""

    def __init__(
        self,
        registry: BuiltInRegistry,
        executables: ExecutableResolver | None = None,
        *,
        runner: Runner = subprocess.run,
    ) -> None:
        self._registry = registry
        self._executables = executables or ExecutableResolver()
        self._runner = runner

    def resolve(self, command_name: str, args: Sequence[str]) -> ResolvedCommand:
        builtin = self._registry.get(command_name)
        if builtin is not None:
            return BuiltInTarget(builtin, tuple(args))
        external_name = EXTERNAL_COMMAND_PREFIX + command_name
        executable = self._executables.find(external_name)
        if executable is None:
            raise CommandNotFoundError(external_name)
        return ExternalTarget(str(executable), tuple(args), framework_hint=FRAMEWORK_HINT)

    def execute(self, resolved: ResolvedCommand) -> int:
        if resolved.kind == "builtin":
            return resolved.command.entry_point(list(resolved.args))
        return self._spawn(resolved)

    def _spawn(self, target: ExternalTarget) -> int:
        command = [target.executable, *target.args]
        if target.executable.endswith(".py"):
            command.insert(0, sys.executable)
        env = os.environ.copy()
        env[FRAMEWORK_HINT_ENV] = target.framework_hint
        try:
            result = self._runner(command, env=env)
        except FileNotFoundError as exc:
            raise CommandNotFoundError(Path(target.executable).name) from exc
        return result.returncode

    def run(self, command_name: str, args: Sequence[str]) -> int:
        return self.execute(self.resolve(command_name, args))
