"""The process supervisor as an injected capability."""
from __future__ import annotations

import logging
import subprocess
from typing import Protocol

from servicectl.constants import SYSTEMCTL
from servicectl.errors import SupervisorError
from servicectl.log_setup import TRACE
from servicectl.units import unit_name

logger = logging.getLogger(__name__)

# systemctl stderr fragments meaning the unit is simply not there
_MISSING_UNIT_MARKERS = ("not loaded", "does not exist", "not found")


class Supervisor(Protocol):
    """Operations the orchestrators need from the supervisor."""

    def reload_configuration(self) -> None: ...

    def enable_and_start(self, name: str) -> None: ...

    def stop_and_disable(self, name: str) -> None: ...

    def query_status(self, name: str) -> str: ...

    def is_active(self, name: str) -> bool: ...


class SystemdSupervisor:
    """Drives systemd through systemctl. Every failure raises SupervisorError."""

    def __init__(self, systemctl: str = SYSTEMCTL):
        self.systemctl = systemctl

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.systemctl, *args]
        logger.log(TRACE, "Running: %s", " ".join(cmd))
        try:
            return subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise SupervisorError(cmd, None, str(e)) from e

    def _check(self, *args: str) -> subprocess.CompletedProcess:
        result = self._run(*args)
        if result.returncode != 0:
            raise SupervisorError(
                [self.systemctl, *args], result.returncode, result.stderr.strip(),
            )
        return result

    def reload_configuration(self) -> None:
        self._check("daemon-reload")

    def enable_and_start(self, name: str) -> None:
        self._check("enable", "--now", unit_name(name))

    def stop_and_disable(self, name: str) -> None:
        """Stop then disable. A unit that does not exist counts as done.

        Both commands are always attempted; the first real failure is
        raised afterwards.
        """
        failure: SupervisorError | None = None
        for verb in ("stop", "disable"):
            try:
                self._check(verb, unit_name(name))
            except SupervisorError as e:
                if any(marker in str(e) for marker in _MISSING_UNIT_MARKERS):
                    logger.debug("%s %s: unit not present", verb, unit_name(name))
                    continue
                failure = failure or e
        if failure is not None:
            raise failure

    def query_status(self, name: str) -> str:
        """Return ``systemctl status`` text. Inactive units are not an error."""
        args = ("--no-pager", "--full", "status", unit_name(name))
        result = self._run(*args)
        # 3 means "not running", which is still a valid status report
        if result.returncode not in (0, 3):
            raise SupervisorError(
                [self.systemctl, *args], result.returncode, result.stderr.strip(),
            )
        return result.stdout

    def is_active(self, name: str) -> bool:
        result = self._run("is-active", "--quiet", unit_name(name))
        return result.returncode == 0
