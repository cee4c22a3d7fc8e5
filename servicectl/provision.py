"""Idempotent provisioning steps. Each is safe to repeat on an existing target."""
from __future__ import annotations

import logging
import os
import subprocess

from servicectl.constants import ENV_FILE_MODE, ENV_FILE_SEED, NOLOGIN_SHELL
from servicectl.errors import ProvisionError
from servicectl.identity import create_system_user, user_exists
from servicectl.request import InstallRequest
from servicectl.units import generate_systemd_unit

logger = logging.getLogger(__name__)


def ensure_identity(name: str, create: bool, shell: str = NOLOGIN_SHELL) -> bool:
    """Create the run-as system account if asked to and it is missing.

    Returns True only when an account was created.

    Raises:
        ProvisionError: If useradd fails.
    """
    if not create:
        return False
    if user_exists(name):
        logger.info("User %s already exists (ok).", name)
        return False
    logger.info("Creating system user %s", name)
    try:
        create_system_user(name, shell=shell)
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"useradd exited {e.returncode}"
        raise ProvisionError("identity", f"cannot create user {name}: {detail}") from e
    except OSError as e:
        raise ProvisionError("identity", f"cannot create user {name}: {e}") from e
    return True


def ensure_environment_file(path: str, name: str) -> bool:
    """Create a seeded env file if none exists. Returns True if created.

    The file is owned by whoever runs this tool, not by the run-as identity.

    Raises:
        ProvisionError: If the file cannot be created.
    """
    if os.path.isfile(path):
        logger.debug("Env file %s already exists", path)
        return False
    try:
        # "x" so a file that appeared since the check is never clobbered
        with open(path, "x") as f:
            f.write(ENV_FILE_SEED.format(name=name))
        os.chmod(path, ENV_FILE_MODE)
    except FileExistsError:
        return False
    except OSError as e:
        raise ProvisionError("env-file", f"cannot create {path}: {e}") from e
    logger.info("Created env file %s", path)
    return True


def ensure_unit_definition(request: InstallRequest) -> str:
    """Render and write the unit, overwriting any previous one. Returns its text.

    Raises:
        ProvisionError: If the unit file cannot be written.
    """
    content = generate_systemd_unit(
        description=request.description,
        user=request.run_as,
        env_file=request.env_file,
        exec_start=request.exec_start,
        working_dir=request.working_dir,
    )
    logger.info("Writing unit to %s", request.unit_path)
    try:
        os.makedirs(os.path.dirname(request.unit_path), exist_ok=True)
        with open(request.unit_path, "w") as f:
            f.write(content)
    except OSError as e:
        raise ProvisionError("unit", f"cannot write {request.unit_path}: {e}") from e
    return content
