"""Top-level dispatch: prefix scan, first-run gate, telemetry wiring, resolution and execution."""

from __future__ import annotations

import os
import platform
import sys
import time
from typing import Callable, MutableMapping, Sequence, TextIO

from toolcall.adapters.environment_path import create_environment_path
from toolcall.adapters.marker_store import FileMarkerStore
from toolcall.app.argscan import scan_arguments
from toolcall.app.certificates import CertificateGenerator
from toolcall.app.first_run import FirstRunGate, FirstRunResult
from toolcall.app.resolver import CommandResolver
from toolcall.app.telemetry import (
    BuiltInParseReport,
    CommandReport,
    HttpTelemetrySink,
    JsonlTelemetrySink,
    TelemetryClient,
    TelemetryHub,
    TelemetrySink,
)
from toolcall.domain.commands import BuiltInRegistry
from toolcall.domain.first_run import FirstRunConfiguration
from toolcall.domain.invocation import ScanAction
from toolcall.errors import GracefulError, HelpRequested
from toolcall.ports.marker_store import MarkerStore
from toolcall.settings import (
    DIAGNOSTICS_ENV,
    HOME_ENV,
    PERF_LOG_ENV,
    TELEMETRY_ENDPOINT_ENV,
    RuntimeSettings,
    env_flag,
    home_override,
)
from toolcall.utils.perf import PerfTrace

GateFactory = Callable[[FirstRunConfiguration, MarkerStore], FirstRunGate]


def format_help(registry: BuiltInRegistry) -> str:
    lines = [
        "Usage: toolcall [options] [command] [command-options] [arguments]",
        "",
        "Options:",
        "  -h|--help         Show command line help.",
        "  --version         Display the toolcall version in use.",
        "  --info            Display toolcall and runtime information.",
        "  -d|--diagnostics  Enable diagnostic output.",
        "",
        "Commands:",
    ]
    for command in registry.list_commands():
        lines.append(f"  {command.name:<18}{command.help}")
    lines.extend(
        [
            "",
            "Any other command runs the executable 'toolcall-<command>' found on PATH.",
            "Run 'toolcall [command] --help' for more information on a command.",
        ]
    )
    return "\n".join(lines)


def format_info(settings: RuntimeSettings) -> str:
    return "\n".join(
        [
            "toolcall:",
            f" Version:   {settings.cli_version}",
            f" Home:      {settings.home_dir}",
            "",
            "Runtime Environment:",
            f" OS Name:     {platform.system()}",
            f" OS Version:  {platform.release()}",
            f" OS Platform: {sys.platform}",
            f" Python:      {platform.python_version()} ({sys.executable})",
            f" Base Path:   {os.path.dirname(os.path.abspath(__file__))}",
        ]
    )


class Dispatcher:
    """Runs one command line through the dispatch pipeline.

    ``run`` may be re-entered by a built-in command (the tool update
    orchestrator does this); the first-run gate and telemetry wiring happen
    once per dispatcher and flushing happens when the outermost call ends.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        registry: BuiltInRegistry,
        *,
        resolver: CommandResolver | None = None,
        marker_store: MarkerStore | None = None,
        gate_factory: GateFactory | None = None,
        telemetry_client: TelemetryClient | None = None,
        hub: TelemetryHub | None = None,
        environ: MutableMapping[str, str] | None = None,
        started_at: float | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.resolver = resolver or CommandResolver(registry)
        self.hub = hub or TelemetryHub()
        self.telemetry_client = telemetry_client
        self.first_run: FirstRunResult | None = None
        self._marker_store = marker_store or FileMarkerStore(settings.marker_dir)
        self._gate_factory = gate_factory or self._default_gate
        self._environ = os.environ if environ is None else environ
        self._started_at = time.perf_counter() if started_at is None else started_at
        self._stdout = stdout
        self._stderr = stderr
        self._depth = 0
        self._telemetry_ready = False
        self.perf = PerfTrace(enabled=env_flag(PERF_LOG_ENV, False, self._environ))

    @property
    def verbose(self) -> bool:
        return env_flag(DIAGNOSTICS_ENV, False, self._environ)

    @property
    def out(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._stderr or sys.stderr

    def print_help(self) -> None:
        print(format_help(self.registry), file=self.out)

    def run(self, argv: Sequence[str]) -> int:
        scan = scan_arguments(argv)
        descriptor = scan.descriptor
        if descriptor.verbose:
            self._environ[DIAGNOSTICS_ENV] = "true"
        if scan.action is ScanAction.VERSION:
            print(self.settings.cli_version, file=self.out)
            return 0
        if scan.action is ScanAction.INFO:
            print(format_info(self.settings), file=self.out)
            return 0
        if scan.action is ScanAction.HELP:
            self.print_help()
            return 0
        if scan.action is ScanAction.ERROR:
            print(f"Unknown option: {scan.unknown_option}", file=self.err)
            self.print_help()
            return 1

        configuration = FirstRunConfiguration.from_environment(self._environ)
        if descriptor.has_command and self.first_run is None:
            self._report_home_usage()
            with self.perf.stage("first-run"):
                gate = self._gate_factory(configuration, self._marker_store)
                self.first_run = gate.run(descriptor.command_name)
            self._marker_store = gate.markers

        if not self._telemetry_ready:
            with self.perf.stage("telemetry-setup"):
                self._setup_telemetry(configuration)

        self._depth += 1
        try:
            return self._execute(descriptor.command_name, descriptor.command_args)
        except Exception as exc:
            if self._depth == 1 and not isinstance(exc, (GracefulError, HelpRequested)):
                self.hub.send_filtered(exc)
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._flush()

    def _execute(self, command_name: str, args: Sequence[str]) -> int:
        measurements = {
            "Startup Time": (time.perf_counter() - self._started_at) * 1000,
            "First Run Time": self.first_run.duration_ms if self.first_run else 0.0,
        }
        is_builtin = command_name in self.registry
        self.hub.send_filtered(CommandReport(command_name, is_builtin, measurements))
        if not command_name:
            return 0
        with self.perf.stage("resolve"):
            resolved = self.resolver.resolve(command_name, args)
        if resolved.kind == "builtin":
            self.hub.send_filtered(BuiltInParseReport.create(command_name, args, measurements))
        with self.perf.stage("execute"):
            return self.resolver.execute(resolved)

    def _setup_telemetry(self, configuration: FirstRunConfiguration) -> None:
        if self.telemetry_client is None:
            self.telemetry_client = TelemetryClient(
                self._default_sinks(),
                markers=self._marker_store,
                opt_out=configuration.telemetry_opt_out,
                cli_version=self.settings.cli_version,
            )
        if self.telemetry_client.enabled:
            self.hub.subscribe(self.telemetry_client.track_event)
        self._telemetry_ready = True
        if self.verbose:
            state = "Enabled" if self.telemetry_client.enabled else "Disabled"
            print(f"Telemetry is: {state}", file=self.out)

    def _default_sinks(self) -> list[TelemetrySink]:
        sinks: list[TelemetrySink] = [JsonlTelemetrySink(self.settings)]
        endpoint = self._environ.get(TELEMETRY_ENDPOINT_ENV, "").strip()
        if endpoint:
            sinks.append(HttpTelemetrySink(endpoint))
        return sinks

    def _flush(self) -> None:
        try:
            if self._telemetry_ready and self.telemetry_client is not None:
                with self.perf.stage("flush"):
                    self.telemetry_client.flush()
        except Exception:  # noqa: BLE001 - flush failures never fail the command
            pass
        finally:
            self.perf.print_summary(self.out)

    def _report_home_usage(self) -> None:
        home = home_override(self._environ)
        if home and self.verbose:
            print(f"toolcall: profile directory overridden by {HOME_ENV}={home}", file=self.out)

    def _default_gate(self, configuration: FirstRunConfiguration, markers: MarkerStore) -> FirstRunGate:
        return FirstRunGate(
            self.settings,
            markers,
            configuration,
            environment_path=create_environment_path(self.settings),
            generate_certificate=CertificateGenerator(self.settings.certs_dir).generate,
            stdout=self._stdout,
            stderr=self._stderr,
        )
