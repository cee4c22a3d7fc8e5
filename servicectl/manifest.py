"""Per-service record of what an install created, for uninstall."""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass

from servicectl.constants import MANIFEST_SUFFIX
from servicectl.errors import ManifestError

logger = logging.getLogger(__name__)

_KEY_UNIT_PATH = "UNIT_PATH"
_KEY_ENV_FILE = "ENV_FILE"
_KEY_ENV_CREATED = "ENV_CREATED"
_KEY_RUN_AS = "RUN_AS"
_KEY_DESC = "DESC"
_KEY_WORKING_DIR = "WORKING_DIR"


@dataclass(frozen=True)
class ServiceManifest:
    """Tracks which side effects an install performed for one service."""
    name: str
    unit_path: str
    env_file: str
    env_file_created: bool
    run_as: str
    description: str
    working_dir: str | None = None

    def to_record(self) -> dict[str, str]:
        """Flatten to the KEY=value fields written on disk."""
        record = {
            _KEY_UNIT_PATH: self.unit_path,
            _KEY_ENV_FILE: self.env_file,
            _KEY_ENV_CREATED: "1" if self.env_file_created else "0",
            _KEY_RUN_AS: self.run_as,
            _KEY_DESC: self.description,
        }
        if self.working_dir:
            record[_KEY_WORKING_DIR] = self.working_dir
        return record

    @classmethod
    def from_record(cls, name: str, record: dict[str, str]) -> ServiceManifest:
        """Build a manifest from on-disk fields. Missing keys become empty."""
        return cls(
            name=name,
            unit_path=record.get(_KEY_UNIT_PATH, ""),
            env_file=record.get(_KEY_ENV_FILE, ""),
            env_file_created=record.get(_KEY_ENV_CREATED, "0").strip() == "1",
            run_as=record.get(_KEY_RUN_AS, ""),
            description=record.get(_KEY_DESC, ""),
            working_dir=record.get(_KEY_WORKING_DIR) or None,
        )


def format_record(record: dict[str, str]) -> str:
    """Serialize a record as newline-separated KEY=value lines."""
    return "".join(f"{key}={value}\n" for key, value in record.items())


def parse_record(text: str) -> dict[str, str]:
    """Parse KEY=value lines. Blank lines, comments and junk are skipped."""
    record: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        record[key.strip()] = value
    return record


class ManifestStore:
    """Flat-file key/value table of manifests, one file per service name.

    Names are assumed filesystem-safe; callers validate them first.
    """

    def __init__(self, root: str):
        self.root = root

    def path_for(self, name: str) -> str:
        return os.path.join(self.root, f"{name}{MANIFEST_SUFFIX}")

    def save(self, manifest: ServiceManifest) -> str:
        """Write the manifest, replacing any prior one. Returns the path.

        The record is written to a temporary file in the same directory and
        renamed into place, so readers never see a half-written manifest.
        """
        os.makedirs(self.root, exist_ok=True)
        path = self.path_for(manifest.name)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{manifest.name}.", suffix=".tmp", dir=self.root,
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(format_record(manifest.to_record()))
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug("Saved manifest %s", path)
        return path

    def load(self, name: str) -> ServiceManifest | None:
        """Load the manifest for ``name``. Returns None if there is none.

        Raises:
            ManifestError: If the file exists but cannot be read or decoded.
        """
        path = self.path_for(name)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, encoding="utf-8") as f:
                record = parse_record(f.read())
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"cannot read {path}: {e}") from e
        return ServiceManifest.from_record(name, record)

    def delete(self, name: str) -> bool:
        """Remove the manifest. Returns False if it was already absent."""
        path = self.path_for(name)
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        logger.debug("Removed manifest %s", path)
        return True
