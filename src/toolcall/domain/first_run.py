"""First-run markers and configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from toolcall import __version__
from toolcall.settings import (
    ADD_TOOLS_TO_PATH_ENV,
    GENERATE_CERTIFICATE_ENV,
    NOLOGO_ENV,
    TELEMETRY_OPTOUT_ENV,
    env_flag,
)


class FirstRunMarker(str, Enum):
    """One-time setup actions; the value is the marker file name."""

    TELEMETRY_NOTICE_SHOWN = f"{__version__}.telemetry-notice.sentinel"
    TOOLS_PATH_ADDED = f"{__version__}.toolpath.sentinel"
    CERTIFICATE_GENERATED = f"{__version__}.dev-certificate.sentinel"


@dataclass(frozen=True)
class FirstRunConfiguration:
    generate_certificate: bool = True
    telemetry_opt_out: bool = False
    add_tools_to_path: bool = True
    no_logo: bool = False

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> "FirstRunConfiguration":
        return cls(
            generate_certificate=env_flag(GENERATE_CERTIFICATE_ENV, True, environ),
            telemetry_opt_out=env_flag(TELEMETRY_OPTOUT_ENV, False, environ),
            add_tools_to_path=env_flag(ADD_TOOLS_TO_PATH_ENV, True, environ),
            no_logo=env_flag(NOLOGO_ENV, False, environ),
        )
