"""Install orchestrator: provision, activate, then commit the manifest."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from servicectl.config import ToolConfig
from servicectl.errors import BestEffortWarning, ManifestError, SupervisorError
from servicectl.manifest import ManifestStore, ServiceManifest
from servicectl.provision import (
    ensure_environment_file,
    ensure_identity,
    ensure_unit_definition,
)
from servicectl.request import InstallRequest
from servicectl.supervisor import Supervisor

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Outcome of one install run."""
    manifest: ServiceManifest
    manifest_path: str
    activated: bool
    user_created: bool = False
    status_text: str = ""
    warnings: list[BestEffortWarning] = field(default_factory=list)


class Installer:
    """Runs the install sequence for a single resolved request.

    Identity, env file and unit creation are fatal on failure and raise
    ProvisionError before anything later is touched. Activation failure is
    not rolled back: the manifest is still written so uninstall can clean
    up, and the result reports ``activated=False``.
    """

    def __init__(
        self,
        request: InstallRequest,
        config: ToolConfig,
        supervisor: Supervisor,
        store: ManifestStore | None = None,
    ):
        self.request = request
        self.config = config
        self.supervisor = supervisor
        self.store = store or ManifestStore(config.paths.manifest_dir)
        self.warnings: list[BestEffortWarning] = []

    def run(self) -> InstallResult:
        """Execute the full install flow."""
        req = self.request

        user_created = ensure_identity(
            req.run_as, req.create_user, shell=self.config.identity.shell,
        )
        env_created = ensure_environment_file(req.env_file, req.name)
        env_created = env_created or self._previously_created_env_file()
        ensure_unit_definition(req)

        activated = self._activate()

        manifest = ServiceManifest(
            name=req.name,
            unit_path=req.unit_path,
            env_file=req.env_file,
            env_file_created=env_created,
            run_as=req.run_as,
            description=req.description,
            working_dir=req.working_dir,
        )
        path = self.store.save(manifest)
        logger.info("Manifest saved to %s", path)

        if activated:
            logger.info("Installed and started: %s.service", req.name)
        else:
            logger.warning("Installed %s.service but it was not started", req.name)

        return InstallResult(
            manifest=manifest,
            manifest_path=path,
            activated=activated,
            user_created=user_created,
            status_text=self._status(),
            warnings=self.warnings,
        )

    def _previously_created_env_file(self) -> bool:
        """Keep provenance from an earlier install of the same env file.

        Without this a re-install would find the file it created last time
        and record it as pre-existing.
        """
        try:
            previous = self.store.load(self.request.name)
        except ManifestError as e:
            self._warn("manifest", f"{e}; treating env file provenance as unknown")
            return False
        return bool(
            previous
            and previous.env_file_created
            and previous.env_file == self.request.env_file
        )

    def _activate(self) -> bool:
        """Reload the supervisor and enable + start the service."""
        try:
            self.supervisor.reload_configuration()
            self.supervisor.enable_and_start(self.request.name)
        except SupervisorError as e:
            self._warn("activate", str(e))
            return False
        return True

    def _status(self) -> str:
        try:
            return self.supervisor.query_status(self.request.name)
        except SupervisorError as e:
            self._warn("status", str(e))
            return ""

    def _warn(self, step: str, message: str) -> None:
        logger.warning("%s: %s", step, message)
        self.warnings.append(BestEffortWarning(step, message))
