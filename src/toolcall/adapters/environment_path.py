"""PATH augmentation adapters for POSIX shells and the Windows registry."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from toolcall.ports.environment_path import EnvironmentPath
from toolcall.settings import RuntimeSettings

PROFILE_SNIPPET = "toolcall-tools-path.sh"
WINDOWS_TOOLS_ENTRY = r"%USERPROFILE%\.toolcall\tools"


class NoOpEnvironmentPath(EnvironmentPath):
    def add_tools_directory(self) -> None:
        return None


class PosixProfileEnvironmentPath(EnvironmentPath):
    """Writes a profile snippet exporting the tools directory and sources it from ~/.profile."""

    def __init__(self, settings: RuntimeSettings, profile_file: Path | None = None) -> None:
        self._settings = settings
        self._profile_file = profile_file or Path.home() / ".profile"

    @property
    def snippet_path(self) -> Path:
        return self._settings.home_dir / PROFILE_SNIPPET

    def add_tools_directory(self) -> None:
        tools_dir = self._settings.tools_dir
        snippet = self.snippet_path
        snippet.parent.mkdir(parents=True, exist_ok=True)
        snippet.write_text(
            "# Added by toolcall\n"
            f'case ":$PATH:" in *":{tools_dir}:"*) ;; *) export PATH="$PATH:{tools_dir}" ;; esac\n',
            encoding="utf-8",
        )
        source_line = f'[ -f "{snippet}" ] && . "{snippet}"'
        existing = ""
        if self._profile_file.exists():
            existing = self._profile_file.read_text(encoding="utf-8")
        if source_line in existing:
            return
        with self._profile_file.open("a", encoding="utf-8") as fh:
            if existing and not existing.endswith("\n"):
                fh.write("\n")
            fh.write(source_line + "\n")


class WindowsRegistryEnvironmentPath(EnvironmentPath):
    """Appends the tools directory to the user Path value under HKCU\\Environment."""

    def add_tools_directory(self) -> None:
        current, value_type = _read_user_path()
        entries = [entry for entry in current.split(";") if entry]
        if any(_same_entry(entry, WINDOWS_TOOLS_ENTRY) for entry in entries):
            return
        entries.append(WINDOWS_TOOLS_ENTRY)
        _write_user_path(";".join(entries), value_type)


def correct_default_path(path_value: str, user_profile: str) -> str:
    """Rewrite an expanded tools entry back to its %USERPROFILE% form."""

    expanded = WINDOWS_TOOLS_ENTRY.replace("%USERPROFILE%", user_profile.rstrip("\\"))
    corrected: list[str] = []
    for entry in path_value.split(";"):
        if entry and entry.rstrip("\\").lower() == expanded.lower():
            entry = WINDOWS_TOOLS_ENTRY
        if entry and entry in corrected:
            continue
        corrected.append(entry)
    return ";".join(corrected)


class DefaultPathCorrector:
    """Fixes the tools PATH entry an installer wrote in expanded form."""

    def correct(self) -> None:
        current, value_type = _read_user_path()
        fixed = correct_default_path(current, os.environ.get("USERPROFILE", ""))
        if fixed != current:
            _write_user_path(fixed, value_type)


def create_environment_path(settings: RuntimeSettings) -> EnvironmentPath:
    if sys.platform == "win32":
        return WindowsRegistryEnvironmentPath()
    return PosixProfileEnvironmentPath(settings)


def _same_entry(left: str, right: str) -> bool:
    return left.rstrip("\\").lower() == right.rstrip("\\").lower()


def _read_user_path() -> tuple[str, int]:  # pragma: no cover - Windows only
    import winreg

    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment", 0, winreg.KEY_READ) as key:
        try:
            value, value_type = winreg.QueryValueEx(key, "Path")
        except FileNotFoundError:
            return "", winreg.REG_EXPAND_SZ
    return str(value), value_type


def _write_user_path(value: str, value_type: int) -> None:  # pragma: no cover - Windows only
    import winreg

    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment", 0, winreg.KEY_SET_VALUE) as key:
        winreg.SetValueEx(key, "Path", 0, value_type, value)


__all__ = [
    "DefaultPathCorrector",
    "NoOpEnvironmentPath",
    "PosixProfileEnvironmentPath",
    "WindowsRegistryEnvironmentPath",
    "correct_default_path",
    "create_environment_path",
]
