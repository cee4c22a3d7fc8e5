"""Uninstall orchestrator: reverse what the manifest says install created."""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field, replace

from servicectl.config import ToolConfig
from servicectl.errors import BestEffortWarning, ManifestError, SupervisorError
from servicectl.identity import delete_user, user_exists
from servicectl.manifest import ManifestStore, ServiceManifest
from servicectl.request import UninstallRequest, default_env_file
from servicectl.supervisor import Supervisor
from servicectl.units import get_unit_path

logger = logging.getLogger(__name__)


@dataclass
class UninstallResult:
    """Outcome of one uninstall run."""
    name: str
    had_manifest: bool
    unit_removed: bool = False
    env_file_removed: bool = False
    user_removed: bool = False
    warnings: list[BestEffortWarning] = field(default_factory=list)


class Uninstaller:
    """Reads the service manifest and reverses the installation.

    Without a manifest the conventional unit and env file paths are
    inferred from the name, and the env file is treated as pre-existing:
    it is only removed with ``purge_env``. Every step here is best-effort,
    and the manifest is always deleted at the end.
    """

    def __init__(
        self,
        request: UninstallRequest,
        config: ToolConfig,
        supervisor: Supervisor,
        store: ManifestStore | None = None,
    ):
        self.request = request
        self.config = config
        self.supervisor = supervisor
        self.store = store or ManifestStore(config.paths.manifest_dir)
        self.warnings: list[BestEffortWarning] = []

    def run(self) -> UninstallResult:
        """Execute the full uninstall flow."""
        name = self.request.name

        logger.info("Stopping and disabling %s.service (if present)", name)
        try:
            self.supervisor.stop_and_disable(name)
        except SupervisorError as e:
            self._warn("deactivate", str(e))

        try:
            manifest = self.store.load(name)
        except ManifestError as e:
            self._warn("manifest", str(e))
            manifest = None
        inferred = self._inferred_manifest()
        if manifest is None:
            logger.info("No manifest found; proceeding with best-effort removal.")
            manifest = inferred
            had_manifest = False
        else:
            # Keys missing from the record keep their conventional paths;
            # a recorded creation flag only covers a recorded env file
            manifest = replace(
                manifest,
                unit_path=manifest.unit_path or inferred.unit_path,
                env_file=manifest.env_file or inferred.env_file,
                env_file_created=manifest.env_file_created and bool(manifest.env_file),
            )
            had_manifest = True

        result = UninstallResult(name=name, had_manifest=had_manifest)
        result.unit_removed = self._remove_unit(manifest.unit_path)
        result.env_file_removed = self._remove_env_file(manifest)

        try:
            self.supervisor.reload_configuration()
        except SupervisorError as e:
            self._warn("reload", str(e))

        if self.request.purge_user:
            result.user_removed = self._purge_user(self.request.purge_user)

        try:
            if self.store.delete(name):
                logger.info("Removed manifest %s", self.store.path_for(name))
        except OSError as e:
            self._warn("manifest", f"cannot remove {self.store.path_for(name)}: {e}")

        logger.info("Uninstall complete.")
        result.warnings = self.warnings
        return result

    def _inferred_manifest(self) -> ServiceManifest:
        """Conventional paths for ``name``; env file provenance unknown."""
        name = self.request.name
        paths = self.config.paths
        return ServiceManifest(
            name=name,
            unit_path=get_unit_path(paths.unit_dir, name),
            env_file=default_env_file(paths.env_dir, name),
            env_file_created=False,
            run_as="",
            description="",
        )

    def _remove_unit(self, unit_path: str) -> bool:
        if not unit_path or not os.path.isfile(unit_path):
            logger.info("Unit not found at %s (ok).", unit_path)
            return False
        logger.info("Removing unit %s", unit_path)
        return self._remove_file("unit", unit_path)

    def _remove_env_file(self, manifest: ServiceManifest) -> bool:
        path = manifest.env_file
        if self.request.purge_env:
            if path and os.path.isfile(path):
                logger.info("Removing env file %s (--purge-env)", path)
                return self._remove_file("env-file", path)
            return False
        if manifest.env_file_created and path and os.path.isfile(path):
            logger.info("Removing env file %s (created by this tool)", path)
            return self._remove_file("env-file", path)
        logger.info("Leaving env file (%s) in place.", path)
        return False

    def _remove_file(self, step: str, path: str) -> bool:
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            self._warn(step, f"cannot remove {path}: {e}")
            return False
        return True

    def _purge_user(self, user: str) -> bool:
        if not user_exists(user):
            logger.info("User %s does not exist (ok).", user)
            return False
        logger.info("Removing user %s (--purge-user)", user)
        try:
            delete_user(user)
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"userdel exited {e.returncode}"
            self._warn("purge-user", f"cannot remove user {user}: {detail}")
            return False
        except OSError as e:
            self._warn("purge-user", f"cannot remove user {user}: {e}")
            return False
        return True

    def _warn(self, step: str, message: str) -> None:
        logger.warning("%s: %s", step, message)
        self.warnings.append(BestEffortWarning(step, message))
