"""One-time, marker-gated setup performed before the first command of an installation."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, TextIO

from toolcall.adapters.environment_path import DefaultPathCorrector, NoOpEnvironmentPath
from toolcall.adapters.marker_store import NoOpMarkerStore
from toolcall.domain.first_run import FirstRunConfiguration, FirstRunMarker
from toolcall.ports.environment_path import EnvironmentPath
from toolcall.ports.marker_store import MarkerStore
from toolcall.settings import RuntimeSettings
from toolcall.utils.telemetry import record_event

INSTALLER_CALLBACK_COMMAND = "internal-reportinstallsuccess"

WELCOME_NOTICE = """\
Welcome to toolcall {version}!
---------------------
Tools installed with `toolcall tool install` are available from any shell once
the tools directory is on your PATH. Run `toolcall help` to get started."""

TELEMETRY_NOTICE = """\
Telemetry
---------
toolcall collects usage data to help improve your experience. Command names of
external tools and any identifying values are hashed before they are recorded.
You can opt out by setting TOOLCALL_CLI_TELEMETRY_OPTOUT to '1' or 'true'."""


def is_installer_callback(command_name: str) -> bool:
    return command_name == INSTALLER_CALLBACK_COMMAND


@dataclass
class FirstRunResult:
    performed: List[FirstRunMarker] = field(default_factory=list)
    failures: Dict[FirstRunMarker, str] = field(default_factory=dict)
    installer_callback: bool = False
    duration_ms: float = 0.0


class FirstRunGate:
    """Checks each first-run marker and performs the missing actions once.

    Every action is isolated: a failure is reported on stderr and recorded,
    and the remaining actions still run. The installer callback swaps in
    no-op marker and PATH implementations and, on Windows, corrects the
    tools PATH entry written by the installer.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        markers: MarkerStore,
        configuration: FirstRunConfiguration,
        *,
        environment_path: EnvironmentPath,
        generate_certificate: Callable[[], object],
        path_corrector: Callable[[], None] | None = None,
        platform: str = sys.platform,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._settings = settings
        self._markers = markers
        self._configuration = configuration
        self._environment_path = environment_path
        self._generate_certificate = generate_certificate
        self._path_corrector = path_corrector or DefaultPathCorrector().correct
        self._platform = platform
        self._stdout = stdout
        self._stderr = stderr
        self._ran = False

    def run(self, command_name: str) -> FirstRunResult:
        if self._ran:
            raise RuntimeError("First-run configuration already executed for this process")
        self._ran = True
        start = time.perf_counter()
        result = FirstRunResult(installer_callback=is_installer_callback(command_name))
        if result.installer_callback:
            self._markers = NoOpMarkerStore()
            self._environment_path = NoOpEnvironmentPath()

        self._attempt(result, FirstRunMarker.TOOLS_PATH_ADDED, self._add_tools_to_path)
        self._attempt(result, FirstRunMarker.TELEMETRY_NOTICE_SHOWN, self._show_first_use_notice)
        self._attempt(result, FirstRunMarker.CERTIFICATE_GENERATED, self._generate_dev_certificate)

        if result.installer_callback and self._platform == "win32":
            try:
                self._path_corrector()
            except Exception as exc:  # noqa: BLE001 - isolated like every first-run action
                self._warn(f"failed to correct the tools PATH entry: {exc}")
        result.duration_ms = (time.perf_counter() - start) * 1000
        return result

    @property
    def markers(self) -> MarkerStore:
        return self._markers

    def _attempt(self, result: FirstRunResult, marker: FirstRunMarker, action: Callable[[], bool]) -> None:
        try:
            performed = action()
        except Exception as exc:  # noqa: BLE001 - a failed action must not abort the invocation
            result.failures[marker] = str(exc)
            self._warn(f"first-run step {marker.name.lower()} failed: {exc}")
            self._record_failure(marker, exc)
            return
        if performed:
            result.performed.append(marker)

    def _record_failure(self, marker: FirstRunMarker, exc: Exception) -> None:
        if self._configuration.telemetry_opt_out:
            return
        try:
            record_event(
                self._settings,
                "first-run",
                {"marker": marker.name, "error": type(exc).__name__},
                level="warn",
                status="error",
            )
        except Exception as log_exc:  # noqa: BLE001 - the stderr warning is the last resort
            self._warn(f"could not record the first-run failure: {log_exc}")

    def _add_tools_to_path(self) -> bool:
        marker = FirstRunMarker.TOOLS_PATH_ADDED
        if not self._configuration.add_tools_to_path or self._markers.exists(marker):
            return False
        self._environment_path.add_tools_directory()
        self._markers.create(marker)
        return True

    def _show_first_use_notice(self) -> bool:
        marker = FirstRunMarker.TELEMETRY_NOTICE_SHOWN
        if self._markers.exists(marker):
            return False
        if not self._configuration.no_logo:
            out = self._stdout or sys.stdout
            print(WELCOME_NOTICE.format(version=self._settings.cli_version), file=out)
            if not self._configuration.telemetry_opt_out:
                print(file=out)
                print(TELEMETRY_NOTICE, file=out)
            print(file=out)
        self._markers.create(marker)
        return True

    def _generate_dev_certificate(self) -> bool:
        marker = FirstRunMarker.CERTIFICATE_GENERATED
        if not self._configuration.generate_certificate or self._markers.exists(marker):
            return False
        self._generate_certificate()
        self._markers.create(marker)
        return True

    def _warn(self, message: str) -> None:
        print(f"toolcall: {message}", file=self._stderr or sys.stderr)
