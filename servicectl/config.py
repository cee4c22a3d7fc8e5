from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from servicectl.constants import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    ENV_DIR,
    MANIFEST_DIR,
    NOLOGIN_SHELL,
    SYSTEMCTL,
    UNIT_DIR,
)
from servicectl.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class PathsConfig:
    """Where manifests, unit definitions and default env files live."""

    manifest_dir: str = MANIFEST_DIR
    unit_dir: str = UNIT_DIR
    env_dir: str = ENV_DIR


@dataclass
class IdentityConfig:
    """Settings applied to run-as identities this tool creates."""

    shell: str = NOLOGIN_SHELL


@dataclass
class SupervisorConfig:
    """How to reach the process supervisor."""

    systemctl: str = SYSTEMCTL


@dataclass
class ToolConfig:
    """Top-level tool configuration aggregating all subsections."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)


def default_config_path() -> str:
    """Return $SERVICECTL_CONFIG if set, else the system-wide default path."""
    return os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH


def load_config(path: str | None = None) -> ToolConfig:
    """Load tool configuration from a YAML file.

    When ``path`` is None the default location is used, and a missing file
    there simply yields built-in defaults. A file that was asked for
    explicitly must exist.

    Args:
        path: Filesystem path to the YAML configuration file, or None.

    Returns:
        A fully populated ToolConfig instance.

    Raises:
        ConfigError: If an explicitly requested file does not exist, the
            YAML is malformed, or a configured directory is not absolute.
    """
    explicit = path is not None
    config_path = Path(path if explicit else default_config_path())
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}")
        logger.debug("No config at %s, using defaults", config_path)
        return ToolConfig()

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    # An empty file parses as None
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    paths_raw = raw.get("paths", {}) or {}
    identity_raw = raw.get("identity", {}) or {}
    supervisor_raw = raw.get("supervisor", {}) or {}

    paths = PathsConfig(
        manifest_dir=str(paths_raw.get("manifest_dir", MANIFEST_DIR)),
        unit_dir=str(paths_raw.get("unit_dir", UNIT_DIR)),
        env_dir=str(paths_raw.get("env_dir", ENV_DIR)),
    )
    for key in ("manifest_dir", "unit_dir", "env_dir"):
        if not os.path.isabs(getattr(paths, key)):
            raise ConfigError(f"paths.{key} must be an absolute path")

    logger.debug("Loaded config from %s", config_path)

    return ToolConfig(
        paths=paths,
        identity=IdentityConfig(
            shell=str(identity_raw.get("shell", NOLOGIN_SHELL)),
        ),
        supervisor=SupervisorConfig(
            systemctl=str(supervisor_raw.get("systemctl", SYSTEMCTL)),
        ),
    )
