"""Status report for a managed service."""
from __future__ import annotations

import os
from dataclasses import dataclass

from servicectl.config import ToolConfig
from servicectl.errors import ManifestError, SupervisorError
from servicectl.manifest import ManifestStore, ServiceManifest
from servicectl.request import default_env_file
from servicectl.supervisor import Supervisor
from servicectl.units import get_unit_path


@dataclass
class CheckResult:
    """Result of a single health check."""
    name: str
    passed: bool
    detail: str
    suggestion: str = ""


def read_manifest(
    store: ManifestStore, name: str,
) -> tuple[ServiceManifest | None, str | None]:
    """Load a manifest for reporting. Returns (manifest, read error)."""
    try:
        return store.load(name), None
    except ManifestError as e:
        return None, str(e)


def _check_manifest(
    manifest: ServiceManifest | None, path: str, error: str | None,
) -> CheckResult:
    if error:
        return CheckResult("Manifest", False, error,
                           f"Inspect or remove {path}, then re-run servicectl install")
    if manifest is None:
        return CheckResult("Manifest", False, "not managed by servicectl",
                           "Install with: servicectl install --name ... --exec ...")
    return CheckResult("Manifest", True, path)


def _check_unit(unit_path: str) -> CheckResult:
    if os.path.isfile(unit_path):
        return CheckResult("Unit file", True, unit_path)
    return CheckResult("Unit file", False, f"not found at {unit_path}",
                       "Re-run servicectl install")


def _check_env_file(env_file: str) -> CheckResult:
    # The unit tolerates a missing env file, so this is informational
    if os.path.isfile(env_file):
        return CheckResult("Env file", True, env_file)
    return CheckResult("Env file", False, f"not found at {env_file}",
                       "Create it with KEY=value lines if the service needs any")


def _check_active(supervisor: Supervisor, name: str) -> CheckResult:
    try:
        active = supervisor.is_active(name)
    except SupervisorError as e:
        return CheckResult("Service", False, str(e))
    if active:
        return CheckResult("Service", True, "active")
    return CheckResult("Service", False, "not active",
                       f"Check: journalctl -u {name} -f")


def run_health_checks(
    name: str, config: ToolConfig, supervisor: Supervisor,
) -> list[CheckResult]:
    """Run all checks for ``name`` and return results.

    Paths come from the manifest when it is readable, otherwise from the
    conventional locations for ``name``.
    """
    store = ManifestStore(config.paths.manifest_dir)
    manifest, error = read_manifest(store, name)
    unit_path = (manifest and manifest.unit_path) or get_unit_path(config.paths.unit_dir, name)
    env_file = (manifest and manifest.env_file) or default_env_file(config.paths.env_dir, name)
    return [
        _check_manifest(manifest, store.path_for(name), error),
        _check_unit(unit_path),
        _check_env_file(env_file),
        _check_active(supervisor, name),
    ]


def format_health_report(results: list[CheckResult]) -> list[str]:
    """One line per check, names padded to the longest, hints indented below."""
    width = max((len(r.name) for r in results), default=0)
    lines = []
    for r in results:
        mark = "\u2713" if r.passed else "\u2717"
        lines.append(f"  {mark} {r.name.ljust(width)}  {r.detail}")
        if not r.passed and r.suggestion:
            lines.append(f"    hint: {r.suggestion}")
    return lines


def print_health_report(results: list[CheckResult]) -> bool:
    """Print health check results. Returns True if all passed."""
    for line in format_health_report(results):
        print(line)
    return all(r.passed for r in results)
