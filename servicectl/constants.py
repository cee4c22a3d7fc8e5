from __future__ import annotations

APP_NAME = "servicectl"

DEFAULT_CONFIG_PATH = "/etc/servicectl/config.yaml"
CONFIG_ENV_VAR = "SERVICECTL_CONFIG"

MANIFEST_DIR = "/var/lib/servicectl"
MANIFEST_SUFFIX = ".manifest"
UNIT_DIR = "/etc/systemd/system"
UNIT_SUFFIX = ".service"
ENV_DIR = "/etc/default"

NOLOGIN_SHELL = "/usr/sbin/nologin"
SYSTEMCTL = "systemctl"

RESTART_POLICY = "on-failure"
RESTART_SEC = 3
WANTED_BY = "multi-user.target"
NETWORK_TARGET = "network-online.target"

ENV_FILE_MODE = 0o644
ENV_FILE_SEED = "# Add KEY=value here for {name}\n"

NAME_PATTERN = r"^[A-Za-z0-9_.-]+$"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PRECONDITION = 2
EXIT_PROVISION = 3
EXIT_NOT_ACTIVATED = 4
