"""Error taxonomy shared by the orchestrators and the CLI."""
from __future__ import annotations

from dataclasses import dataclass

from servicectl.constants import (
    EXIT_ERROR,
    EXIT_PRECONDITION,
    EXIT_PROVISION,
)


class ServicectlError(Exception):
    """Base class for errors that end an invocation with a specific exit code."""

    exit_code = EXIT_ERROR


class ValidationError(ServicectlError):
    """Missing or malformed input. Raised before any side effect."""

    exit_code = EXIT_ERROR


class ConfigError(ValidationError):
    """Raised when the tool configuration file cannot be loaded."""

    pass


class PreconditionError(ServicectlError):
    """A required host capability is absent (supervisor, privilege)."""

    def __init__(self, message: str, exit_code: int = EXIT_PRECONDITION):
        super().__init__(message)
        self.exit_code = exit_code


class ProvisionError(ServicectlError):
    """A fatal provisioning step failed; partial state may exist on disk."""

    exit_code = EXIT_PROVISION

    def __init__(self, step: str, message: str):
        super().__init__(f"{step}: {message}")
        self.step = step


class ManifestError(ServicectlError):
    """A manifest exists but cannot be read."""

    pass


class SupervisorError(ServicectlError):
    """A supervisor command failed. Callers decide whether it is fatal."""

    def __init__(self, command: list[str], returncode: int | None, detail: str = ""):
        text = " ".join(command)
        message = f"'{text}' failed"
        if returncode is not None:
            message += f" (exit {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode


@dataclass
class BestEffortWarning:
    """A non-fatal step failure, surfaced to the operator but not fatal."""
    step: str
    message: str

    def __str__(self) -> str:
        return f"{self.step}: {self.message}"
