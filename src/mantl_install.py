"""mantl-install - cluster package catalog and installer.

    Returns:
        int: Exit code
"""
import json
import logging
import sys

from constants import Constants, ExitCodes
from common.errors import (
    ConflictError,
    InstallError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from args import parse_args
from cli_api import build_installer, run_api_server, setup_logging
from cli_config import load_config
from install.request import PackageRequest

logger = logging.getLogger(__name__)

# Commands that read only the catalog and do not need the platform config
CATALOG_COMMANDS = ("packages", "package", "repositories", "frameworks")


def exit_code_for(exc):
    """Map an error onto the process exit code."""
    if isinstance(exc, ValidationError):
        return ExitCodes.INVALID_REQUEST
    if isinstance(exc, NotFoundError):
        return ExitCodes.NOT_FOUND
    if isinstance(exc, ConflictError):
        return ExitCodes.CONFLICT
    if isinstance(exc, UpstreamError):
        return ExitCodes.CONNECTION_ERROR
    if isinstance(exc, OSError):
        return ExitCodes.FILE_ERROR
    return ExitCodes.CONNECTION_ERROR


def load_user_config(value):
    """Parse ``--config-json``: inline JSON, or ``@path`` to a JSON file."""
    if not value:
        return {}
    if value.startswith("@"):
        with open(value[1:], encoding="utf-8") as handle:
            value = handle.read()
    try:
        config = json.loads(value)
    except ValueError as exc:
        raise ValidationError("config", f"could not parse configuration: {exc}") from exc
    if not isinstance(config, dict):
        raise ValidationError("config", "configuration must be a JSON object")
    return config


def _print_json(payload):
    print(json.dumps(payload, indent=2, sort_keys=True))


def run_command(args, installer):
    """Execute a catalog or install command against ``installer``."""
    command = args.COMMAND
    if command == "packages":
        _print_json([p.to_dict() for p in installer.packages()])
    elif command == "package":
        _print_json(installer.package(args.NAME).to_dict())
    elif command == "repositories":
        _print_json([r.to_dict() for r in installer.repositories()])
    elif command == "frameworks":
        if args.SHUTDOWN_ID:
            installer.shutdown_framework(args.SHUTDOWN_ID)
            logger.info("Framework %s shut down", args.SHUTDOWN_ID)
        else:
            _print_json([fw.to_dict() for fw in installer.frameworks(args.COMPLETED)])
    elif command == "install":
        request = PackageRequest(
            name=args.NAME,
            version=args.PACKAGE_VERSION or "",
            config=load_user_config(args.PACKAGE_CONFIG),
        )
        print(installer.install_package(request))
    elif command == "uninstall":
        result = installer.uninstall_package(PackageRequest(name=args.NAME, app_id=args.APP_ID or ""))
        _print_json(result.to_dict())


def main(argv=None):
    """Main CLI entrypoint."""
    args = parse_args(argv)
    setup_logging(args)

    if args.COMMAND == "version":
        print(f"{Constants.NAME} {Constants.VERSION}")
        sys.exit(ExitCodes.SUCCESS.value)

    try:
        if args.COMMAND == "serve":
            run_api_server(args)
        else:
            config = load_config(args.CONFIG, args)
            installer = build_installer(config, with_platform=args.COMMAND not in CATALOG_COMMANDS)
            run_command(args, installer)
    except (InstallError, OSError) as exc:
        logger.error("%s failed: %s", args.COMMAND, exc)
        sys.exit(exit_code_for(exc).value)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
