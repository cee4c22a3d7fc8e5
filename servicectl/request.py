"""Resolve raw command-line input into fully populated, immutable requests.

Every default that depends on another value (env file path and
description derived from the name, run-as identity derived from whoever
runs the tool) is filled in here, before any provisioner runs.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass

from servicectl.config import ToolConfig
from servicectl.constants import NAME_PATTERN
from servicectl.errors import ValidationError
from servicectl.units import get_unit_path

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(NAME_PATTERN)


@dataclass(frozen=True)
class InstallRequest:
    """Everything an install needs, with defaults already applied."""
    name: str
    exec_start: str
    run_as: str
    description: str
    env_file: str
    unit_path: str
    working_dir: str | None = None
    create_user: bool = False


@dataclass(frozen=True)
class UninstallRequest:
    """What to remove beyond the resources recorded in the manifest."""
    name: str
    purge_env: bool = False
    purge_user: str | None = None


def default_env_file(env_dir: str, name: str) -> str:
    return os.path.join(env_dir, name)


def default_description(name: str) -> str:
    return f"{name} service"


def validate_name(name: str | None) -> str:
    """Return the stripped service name or raise ValidationError."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("--name is required")
    if not _NAME_RE.match(name):
        raise ValidationError(
            f"invalid service name {name!r}: use letters, digits, '_', '.', '-'"
        )
    return name


def _single_line(flag: str, value: str | None) -> None:
    if value and ("\n" in value or "\r" in value):
        raise ValidationError(f"{flag} must be a single line")


def resolve_install(
    config: ToolConfig,
    invoking_user: str,
    name: str | None,
    exec_start: str | None,
    user: str | None = None,
    description: str | None = None,
    env_file: str | None = None,
    working_dir: str | None = None,
    create_user: bool = False,
) -> InstallRequest:
    """Validate install input and compute defaults.

    A relative exec command only logs a warning; systemd itself decides
    whether it can run it.

    Raises:
        ValidationError: On a missing name or exec command, a malformed
            name, a relative env file path, or a multi-line value.
    """
    name = validate_name(name)
    exec_start = (exec_start or "").strip()
    if not exec_start:
        raise ValidationError('--exec "<absolute command>" is required for install')
    for flag, value in (
        ("--exec", exec_start), ("--user", user), ("--desc", description),
        ("--env-file", env_file), ("--working-dir", working_dir),
    ):
        _single_line(flag, value)
    if not exec_start.startswith("/"):
        logger.warning("Exec command should be an absolute path: %s", exec_start)
    if env_file and not os.path.isabs(env_file):
        raise ValidationError(f"--env-file must be an absolute path: {env_file}")

    return InstallRequest(
        name=name,
        exec_start=exec_start,
        run_as=user or invoking_user,
        description=description or default_description(name),
        env_file=env_file or default_env_file(config.paths.env_dir, name),
        unit_path=get_unit_path(config.paths.unit_dir, name),
        working_dir=working_dir or None,
        create_user=create_user,
    )


def resolve_uninstall(
    name: str | None,
    purge_env: bool = False,
    purge_user: str | None = None,
) -> UninstallRequest:
    """Validate uninstall input. ``purge_user`` is never defaulted."""
    name = validate_name(name)
    if purge_user is not None:
        purge_user = purge_user.strip()
        if not purge_user:
            raise ValidationError("--purge-user needs an identity name")
        _single_line("--purge-user", purge_user)
    return UninstallRequest(name=name, purge_env=purge_env, purge_user=purge_user)
