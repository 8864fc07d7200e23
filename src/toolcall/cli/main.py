#!/usr/bin/env python3
"""Entry point for the toolcall CLI."""

from __future__ import annotations

import sys
import time
import traceback
from typing import Sequence

from toolcall.adapters.tool_repository import PipPackageInstaller, YamlToolRepository
from toolcall.app.dispatcher import Dispatcher
from toolcall.app.telemetry import TelemetryHub
from toolcall.app.tool_update import ToolService
from toolcall.cli.commands import BuiltInCommands
from toolcall.errors import CommandParsingError, GracefulError, HelpRequested
from toolcall.ports.tool_repository import PackageInstaller, ToolRepository
from toolcall.settings import SETTINGS, RuntimeSettings


def build_dispatcher(
    settings: RuntimeSettings,
    *,
    repository: ToolRepository | None = None,
    installer: PackageInstaller | None = None,
    started_at: float | None = None,
    **overrides,
) -> Dispatcher:
    hub = overrides.pop("hub", None) or TelemetryHub()
    repository = repository or YamlToolRepository(settings.tool_registry_file)
    tools = ToolService(repository, installer or PipPackageInstaller(), emit=hub.send_filtered)
    commands = BuiltInCommands(settings, tools, repository)
    dispatcher = Dispatcher(settings, commands.registry(), hub=hub, started_at=started_at, **overrides)
    commands.dispatcher = dispatcher
    return dispatcher


def main(argv: Sequence[str] | None = None) -> int:
    started_at = time.perf_counter()
    dispatcher = build_dispatcher(SETTINGS, started_at=started_at)
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        return dispatcher.run(args)
    except HelpRequested as exc:
        print(exc.help_text)
        return 0
    except GracefulError as exc:
        if dispatcher.verbose:
            traceback.print_exc()
            if exc.verbose_message:
                print(exc.verbose_message, file=sys.stderr)
        else:
            print(f"toolcall: {exc}", file=sys.stderr)
        if isinstance(exc, CommandParsingError) and exc.help_text:
            print(exc.help_text)
        return 1
    except Exception:  # noqa: BLE001 - top-level handler renders every failure
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
