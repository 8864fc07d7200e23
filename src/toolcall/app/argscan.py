"""Minimal left-to-right scan of global options preceding the command name."""

from __future__ import annotations

from typing import Sequence

from toolcall.domain.invocation import GlobalFlag, InvocationDescriptor, ScanAction, ScanResult

HELP_TOKENS = ("-?", "/?")


def _is_arg(candidate: str, long_name: str, short_name: str | None = None) -> bool:
    lowered = candidate.lower()
    if short_name is not None and lowered == f"-{short_name}":
        return True
    return lowered == f"--{long_name}"


def scan_arguments(argv: Sequence[str]) -> ScanResult:
    """Split ``argv`` into global flags, the command name and the command's own arguments.

    Scanning stops at the first token that is not an option: it becomes the
    command name and everything after it is passed through untouched.
    ``--version``, ``--info`` and help tokens end the scan immediately, and an
    unknown option ends it with an error. An empty command token selects
    ``help``.
    """

    flags: set[GlobalFlag] = set()
    for index, token in enumerate(argv):
        if _is_arg(token, "diagnostics", "d"):
            flags.add(GlobalFlag.DIAGNOSTICS)
        elif _is_arg(token, "version"):
            flags.add(GlobalFlag.VERSION)
            return ScanResult(ScanAction.VERSION, InvocationDescriptor(flags))
        elif _is_arg(token, "info"):
            flags.add(GlobalFlag.INFO)
            return ScanResult(ScanAction.INFO, InvocationDescriptor(flags))
        elif _is_arg(token, "help", "h") or token in HELP_TOKENS:
            flags.add(GlobalFlag.HELP)
            return ScanResult(ScanAction.HELP, InvocationDescriptor(flags))
        elif token.startswith("-"):
            return ScanResult(ScanAction.ERROR, InvocationDescriptor(flags), unknown_option=token)
        else:
            command = token or "help"
            return ScanResult(
                ScanAction.RUN,
                InvocationDescriptor(flags, command_name=command, command_args=tuple(argv[index + 1 :])),
            )
    return ScanResult(ScanAction.RUN, InvocationDescriptor(flags))
