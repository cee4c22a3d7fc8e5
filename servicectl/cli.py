"""Command-line entry point: servicectl install | uninstall | status."""
from __future__ import annotations

import argparse
import logging
import sys

from servicectl import __version__
from servicectl.config import ToolConfig, load_config
from servicectl.constants import (
    APP_NAME,
    EXIT_ERROR,
    EXIT_NOT_ACTIVATED,
    EXIT_OK,
)
from servicectl.errors import ServicectlError
from servicectl.health import print_health_report, read_manifest, run_health_checks
from servicectl.install import Installer
from servicectl.log_setup import setup_logging
from servicectl.manifest import ManifestStore
from servicectl.platform import check_preconditions, detect_platform
from servicectl.request import resolve_install, resolve_uninstall, validate_name
from servicectl.supervisor import SystemdSupervisor
from servicectl.uninstall import Uninstaller

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """argparse exits 2 on usage errors; this tool reserves 2 for a missing supervisor."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog=APP_NAME,
        description="Install or uninstall a supervised systemd service.",
    )
    p.add_argument("--config", default=None,
                   help="Path to YAML config (default: $SERVICECTL_CONFIG "
                        "or /etc/servicectl/config.yaml)")
    p.add_argument("--debug", action="store_true",
                   help="Enable debug logging")
    p.add_argument("--trace", action="store_true",
                   help="Log every command issued to /var/log/servicectl")
    p.add_argument("--verbose", action="store_true",
                   help="With --trace, also send trace output to terminal")
    p.add_argument("--version", action="version",
                   version=f"%(prog)s {__version__}")

    sub = p.add_subparsers(dest="action", metavar="ACTION",
                           parser_class=_ArgumentParser)
    sub.required = True

    inst = sub.add_parser("install", help="Install and start a service")
    inst.add_argument("--name", required=True, help="Service name")
    inst.add_argument("--exec", dest="exec_start", required=True,
                      help="Absolute command line to run")
    inst.add_argument("--user", default=None,
                      help="Run-as identity (default: the invoking identity)")
    inst.add_argument("--desc", default=None,
                      help='Description (default: "<name> service")')
    inst.add_argument("--env-file", default=None,
                      help="Environment file (default: /etc/default/<name>)")
    inst.add_argument("--working-dir", default=None,
                      help="Working directory for the service")
    inst.add_argument("--create-user", action="store_true",
                      help="Create the run-as identity as a system user if missing")
    inst.set_defaults(handler=_cmd_install)

    uninst = sub.add_parser("uninstall", help="Stop and remove a service")
    uninst.add_argument("--name", required=True, help="Service name")
    uninst.add_argument("--purge-env", action="store_true",
                        help="Remove the env file even if it pre-existed")
    uninst.add_argument("--purge-user", default=None, metavar="USER",
                        help="Also delete this identity")
    uninst.set_defaults(handler=_cmd_uninstall)

    status = sub.add_parser("status", help="Show what servicectl manages for a service")
    status.add_argument("--name", required=True, help="Service name")
    status.set_defaults(handler=_cmd_status)
    return p


def _cmd_install(args: argparse.Namespace, config: ToolConfig) -> int:
    plat = detect_platform(config.supervisor.systemctl)
    request = resolve_install(
        config,
        invoking_user=plat.user,
        name=args.name,
        exec_start=args.exec_start,
        user=args.user,
        description=args.desc,
        env_file=args.env_file,
        working_dir=args.working_dir,
        create_user=args.create_user,
    )
    check_preconditions(plat)

    result = Installer(request, config, SystemdSupervisor(plat.systemctl)).run()

    if result.status_text:
        print(result.status_text.rstrip())
    print(f"Tip: journalctl -u {request.name} -f")
    return EXIT_OK if result.activated else EXIT_NOT_ACTIVATED


def _cmd_uninstall(args: argparse.Namespace, config: ToolConfig) -> int:
    plat = detect_platform(config.supervisor.systemctl)
    request = resolve_uninstall(
        args.name, purge_env=args.purge_env, purge_user=args.purge_user,
    )
    check_preconditions(plat)

    result = Uninstaller(request, config, SystemdSupervisor(plat.systemctl)).run()

    for warning in result.warnings:
        print(f"  Warning: {warning}")
    return EXIT_OK


def _cmd_status(args: argparse.Namespace, config: ToolConfig) -> int:
    name = validate_name(args.name)
    # An unreadable manifest is reported by the Manifest check below
    manifest, _ = read_manifest(ManifestStore(config.paths.manifest_dir), name)
    print(f"\n=== {name} ===\n")
    if manifest is not None:
        for key, value in manifest.to_record().items():
            print(f"  {key:12s} {value}")
        print()
    supervisor = SystemdSupervisor(config.supervisor.systemctl)
    ok = print_health_report(run_health_checks(name, config, supervisor))
    return EXIT_OK if ok else EXIT_ERROR


def main(argv: list[str] | None = None) -> int:
    """Entry point for the servicectl console script."""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug, trace=args.trace, verbose=args.verbose)
    try:
        config = load_config(args.config)
        return args.handler(args, config)
    except ServicectlError as e:
        logger.error("%s", e)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
