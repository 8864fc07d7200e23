"""Built-in command entry points and the registry that exposes them."""

from __future__ import annotations

import argparse
import json
import sys
from collections import deque
from pathlib import Path
from typing import Sequence

from toolcall.app.first_run import INSTALLER_CALLBACK_COMMAND
from toolcall.app.telemetry import TelemetryEvent
from toolcall.app.tool_update import ToolService, ToolUpdateAllOrchestrator
from toolcall.domain.commands import BuiltInCommand, BuiltInRegistry
from toolcall.domain.tools import ToolScope
from toolcall.errors import CommandParsingError, HelpRequested
from toolcall.ports.tool_repository import ToolRepository
from toolcall.settings import RuntimeSettings
from toolcall.utils.telemetry import clear as telemetry_clear
from toolcall.utils.telemetry import iter_events as telemetry_iter
from toolcall.utils.telemetry import summarize as telemetry_summarize


class CommandParser(argparse.ArgumentParser):
    """argparse parser that raises instead of exiting the process."""

    def error(self, message: str):  # type: ignore[override]
        raise CommandParsingError(f"{self.prog}: {message}", help_text=self.format_help())

    def print_help(self, file=None) -> None:  # type: ignore[override]
        raise HelpRequested(self.format_help())


def _scope_options(parser: argparse.ArgumentParser) -> None:
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("-g", "--global", dest="global_scope", action="store_true", help="Use the user-wide tool list")
    scope.add_argument("--local", dest="local_scope", action="store_true", help="Use the project tool manifest (default)")
    parser.add_argument("--tool-manifest", dest="manifest", help="Path to the local tool manifest")


def build_tool_parser() -> CommandParser:
    parser = CommandParser(prog="toolcall tool", description="Install, list and update tools.")
    sub = parser.add_subparsers(dest="tool_command", required=True, parser_class=CommandParser)

    list_cmd = sub.add_parser("list", help="List installed tools")
    _scope_options(list_cmd)

    install_cmd = sub.add_parser("install", help="Install a tool")
    install_cmd.add_argument("tool_id", help="Package id of the tool")
    install_cmd.add_argument("--version", help="Exact version to install")
    _scope_options(install_cmd)

    update_cmd = sub.add_parser("update", help="Update one tool or all tools")
    update_cmd.add_argument("tool_id", nargs="?", help="Package id of the tool")
    update_cmd.add_argument("--all", dest="update_all", action="store_true", help="Update every installed tool")
    _scope_options(update_cmd)
    return parser


def build_telemetry_parser() -> CommandParser:
    parser = CommandParser(prog="toolcall telemetry", description="Inspect the local telemetry log.")
    sub = parser.add_subparsers(dest="telemetry_command", required=True, parser_class=CommandParser)
    report = sub.add_parser("report", help="Summarise recorded events")
    report.add_argument("--recent", type=int, default=0, help="Only summarise the last N events")
    tail = sub.add_parser("tail", help="Print the last events")
    tail.add_argument("--limit", type=int, default=20)
    sub.add_parser("clear", help="Delete the telemetry log")
    return parser


class BuiltInCommands:
    """Entry points for commands handled inside the toolcall process.

    The tool command re-enters the dispatcher for ``update --all``; the
    dispatcher is attached after the registry is built.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        tools: ToolService,
        repository: ToolRepository,
    ) -> None:
        self._settings = settings
        self._tools = tools
        self._repository = repository
        self.dispatcher = None

    def registry(self) -> BuiltInRegistry:
        return BuiltInRegistry(
            [
                BuiltInCommand("help", self.help, "Show command line help."),
                BuiltInCommand("tool", self.tool, "Install, list or update tools."),
                BuiltInCommand("telemetry", self.telemetry, "Inspect the local telemetry log."),
                BuiltInCommand(
                    INSTALLER_CALLBACK_COMMAND,
                    self.report_install_success,
                    "Installer callback.",
                    hidden=True,
                ),
            ]
        )

    def help(self, args: Sequence[str]) -> int:
        if not args:
            self._require_dispatcher().print_help()
            return 0
        target = self._require_dispatcher().registry.get(args[0])
        if target is None or target.hidden:
            raise CommandParsingError(
                f"Specified command '{args[0]}' is not a valid toolcall command.",
                help_text="Run 'toolcall help' to list the available commands.",
            )
        return target.entry_point(["--help"])

    def tool(self, args: Sequence[str]) -> int:
        ns = build_tool_parser().parse_args(list(args))
        scope = ToolScope.GLOBAL if ns.global_scope else ToolScope.LOCAL
        manifest = Path(ns.manifest) if ns.manifest else None
        if manifest is not None and scope is ToolScope.GLOBAL:
            raise CommandParsingError(
                "The --tool-manifest option cannot be combined with --global.",
                help_text=build_tool_parser().format_help(),
            )
        if ns.tool_command == "list":
            return self._tool_list(scope, manifest)
        if ns.tool_command == "install":
            self._tools.install(ns.tool_id, scope, version=ns.version, manifest=manifest)
            return 0
        if ns.update_all and ns.tool_id:
            raise CommandParsingError("Specify either a tool id or --all, not both.")
        if ns.update_all:
            orchestrator = ToolUpdateAllOrchestrator(self._repository, self._require_dispatcher().run)
            return orchestrator.execute(global_scope=scope is ToolScope.GLOBAL, manifest=manifest)
        if not ns.tool_id:
            raise CommandParsingError("Specify a tool id or --all.")
        self._tools.update(ns.tool_id, scope, manifest=manifest)
        return 0

    def _tool_list(self, scope: ToolScope, manifest: Path | None) -> int:
        records = self._tools.list(scope, manifest)
        if not records:
            print("No tools installed")
            return 0
        for record in records:
            line = f"{record.tool_id}\t{record.version or 'unknown'}"
            if record.manifest_path:
                line += f"\t{record.manifest_path}"
            print(line)
        return 0

    def telemetry(self, args: Sequence[str]) -> int:
        ns = build_telemetry_parser().parse_args(list(args))
        if ns.telemetry_command == "report":
            if ns.recent and ns.recent > 0:
                events = list(deque(telemetry_iter(self._settings), maxlen=ns.recent))
            else:
                events = list(telemetry_iter(self._settings))
            print(json.dumps(telemetry_summarize(events), indent=2, ensure_ascii=False))
            return 0
        if ns.telemetry_command == "clear":
            telemetry_clear(self._settings)
            print("Telemetry log cleared")
            return 0
        for evt in deque(telemetry_iter(self._settings), maxlen=ns.limit):
            print(json.dumps(evt, ensure_ascii=False))
        return 0

    def report_install_success(self, args: Sequence[str]) -> int:
        usage = f"Usage: toolcall {INSTALLER_CALLBACK_COMMAND} <installer-type>"
        if any(arg in ("-h", "--help") for arg in args):
            raise HelpRequested(usage)
        if len(args) != 1:
            print(usage, file=sys.stderr)
            return 1
        self._require_dispatcher().hub.send_filtered(
            TelemetryEvent("install/reportsuccess", {"installerType": args[0]})
        )
        return 0

    def _require_dispatcher(self):
        if self.dispatcher is None:
            raise RuntimeError("Built-in commands used before the dispatcher was attached")
        return self.dispatcher
