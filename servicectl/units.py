"""Unit definition rendering for systemd."""
from __future__ import annotations

import os

from servicectl.constants import (
    NETWORK_TARGET,
    RESTART_POLICY,
    RESTART_SEC,
    UNIT_SUFFIX,
    WANTED_BY,
)


def unit_name(name: str) -> str:
    return f"{name}{UNIT_SUFFIX}"


def get_unit_path(unit_dir: str, name: str) -> str:
    """Return the filesystem path where the unit for ``name`` is written."""
    return os.path.join(unit_dir, unit_name(name))


def generate_systemd_unit(
    description: str,
    user: str,
    env_file: str,
    exec_start: str,
    working_dir: str | None = None,
) -> str:
    """Generate a systemd unit file for a supervised service.

    The env file is referenced with a leading ``-`` so a missing file does
    not stop the service from starting.
    """
    working_dir_line = f"WorkingDirectory={working_dir}\n" if working_dir else ""
    return f"""[Unit]
Description={description}
Wants={NETWORK_TARGET}
After={NETWORK_TARGET}

[Service]
Type=simple
User={user}
Group={user}
EnvironmentFile=-{env_file}
ExecStart={exec_start}
Restart={RESTART_POLICY}
RestartSec={RESTART_SEC}
{working_dir_line}
[Install]
WantedBy={WANTED_BY}
"""
