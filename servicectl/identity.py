"""Host account helpers for run-as identities."""
from __future__ import annotations

import logging
import pwd
import subprocess

from servicectl.constants import NOLOGIN_SHELL
from servicectl.log_setup import TRACE

logger = logging.getLogger(__name__)


def user_exists(name: str) -> bool:
    """Check the account database for ``name``."""
    try:
        pwd.getpwnam(name)
    except KeyError:
        return False
    return True


def create_system_user(name: str, shell: str = NOLOGIN_SHELL) -> None:
    """Create a system account with no home directory and no login shell.

    Raises:
        subprocess.CalledProcessError: If useradd exits non-zero.
        FileNotFoundError: If useradd is not installed.
    """
    cmd = ["useradd", "--system", "--no-create-home", "--shell", shell, name]
    logger.log(TRACE, "Running: %s", " ".join(cmd))
    subprocess.run(cmd, check=True, capture_output=True, text=True)


def delete_user(name: str) -> None:
    """Delete an account. Raises CalledProcessError if userdel fails."""
    cmd = ["userdel", name]
    logger.log(TRACE, "Running: %s", " ".join(cmd))
    subprocess.run(cmd, check=True, capture_output=True, text=True)
