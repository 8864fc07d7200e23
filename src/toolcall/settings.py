"""Runtime settings for the toolcall CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from toolcall import __version__

HOME_ENV = "TOOLCALL_HOME"
DIAGNOSTICS_ENV = "TOOLCALL_CLI_DIAGNOSTICS"
PERF_LOG_ENV = "TOOLCALL_CLI_PERF_LOG"
TELEMETRY_OPTOUT_ENV = "TOOLCALL_CLI_TELEMETRY_OPTOUT"
GENERATE_CERTIFICATE_ENV = "TOOLCALL_GENERATE_DEV_CERTIFICATE"
ADD_TOOLS_TO_PATH_ENV = "TOOLCALL_ADD_TOOLS_TO_PATH"
NOLOGO_ENV = "TOOLCALL_NOLOGO"
TELEMETRY_ENDPOINT_ENV = "TOOLCALL_TELEMETRY_ENDPOINT"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    state_dir: Path
    log_dir: Path
    tools_dir: Path
    certs_dir: Path
    cli_version: str = __version__

    @property
    def tool_registry_file(self) -> Path:
        return self.tools_dir / "tools.yaml"

    @property
    def marker_dir(self) -> Path:
        return self.state_dir / "markers"


def env_flag(name: str, default: bool, environ: Mapping[str, str] | None = None) -> bool:
    """Read a boolean toggle; unknown values fall back to ``default``."""

    source = os.environ if environ is None else environ
    value = source.get(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    return default


def home_override(environ: Mapping[str, str] | None = None) -> str | None:
    source = os.environ if environ is None else environ
    value = source.get(HOME_ENV, "").strip()
    return value or None


def _default_home_dir() -> Path:
    override = home_override()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".toolcall"


def settings_for_home(base: Path, *, cli_version: str = __version__) -> RuntimeSettings:
    return RuntimeSettings(
        home_dir=base,
        state_dir=base / "state",
        log_dir=base / "logs",
        tools_dir=base / "tools",
        certs_dir=base / "certs",
        cli_version=cli_version,
    )


def load_settings() -> RuntimeSettings:
    return settings_for_home(_default_home_dir())


SETTINGS = load_settings()
