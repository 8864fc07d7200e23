from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
PYTEST_TEMP = Path(os.environ.get("PYTEST_DEBUG_TEMPROOT", "/tmp/toolcall-pytest")).resolve()
os.environ.setdefault("PYTEST_DEBUG_TEMPROOT", str(PYTEST_TEMP))
PYTEST_TEMP.mkdir(parents=True, exist_ok=True)
SANDBOX_HOME = PYTEST_TEMP / "global-home"
os.environ.setdefault("TOOLCALL_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from toolcall.settings import RuntimeSettings, settings_for_home  # noqa: E402

_TOGGLES = (
    "TOOLCALL_CLI_DIAGNOSTICS",
    "TOOLCALL_CLI_PERF_LOG",
    "TOOLCALL_CLI_TELEMETRY_OPTOUT",
    "TOOLCALL_GENERATE_DEV_CERTIFICATE",
    "TOOLCALL_ADD_TOOLS_TO_PATH",
    "TOOLCALL_NOLOGO",
    "TOOLCALL_TELEMETRY_ENDPOINT",
)


@pytest.fixture(autouse=True)
def _clean_toggles(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _TOGGLES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    settings = settings_for_home(tmp_path / "home", cli_version="1.2.0")
    for directory in (settings.home_dir, settings.state_dir, settings.log_dir, settings.tools_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return settings
