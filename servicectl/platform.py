from __future__ import annotations

import os
import pwd
import shutil
from dataclasses import dataclass

from servicectl.constants import EXIT_ERROR, EXIT_PRECONDITION
from servicectl.errors import PreconditionError


@dataclass
class PlatformInfo:
    """Detected host information relevant to service management."""
    systemctl: str | None  # resolved path of the supervisor binary
    user: str            # effective identity running this tool
    is_root: bool


def _effective_user() -> str:
    """Name of the effective identity, which is what sudo gives us."""
    try:
        return pwd.getpwuid(os.geteuid()).pw_name
    except KeyError:
        return str(os.geteuid())


def detect_platform(systemctl: str = "systemctl") -> PlatformInfo:
    """Detect the supervisor binary and invoking identity."""
    return PlatformInfo(
        systemctl=shutil.which(systemctl),
        user=_effective_user(),
        is_root=os.geteuid() == 0,
    )


def check_preconditions(plat: PlatformInfo) -> None:
    """Raise PreconditionError unless we can manage system services here."""
    if not plat.is_root:
        raise PreconditionError(
            "Please run as root (sudo).", exit_code=EXIT_ERROR,
        )
    if not plat.systemctl:
        raise PreconditionError(
            "systemd not detected; this tool targets systemd hosts.",
            exit_code=EXIT_PRECONDITION,
        )
