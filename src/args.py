"""Argument parsing functionality for mantl-install."""

import argparse
from constants import Constants


def _add_backend_options(parser):
    """Connection settings shared by every subcommand."""
    parser.add_argument("--consul",
                        dest="CONSUL_URL",
                        help="Consul API address",
                        action="store", type=str)
    parser.add_argument("--consul-token",
                        dest="CONSUL_TOKEN",
                        help="Consul ACL token",
                        action="store", type=str)
    parser.add_argument("--consul-no-verify-ssl",
                        dest="CONSUL_NO_VERIFY_SSL",
                        help="Skip Consul TLS certificate verification",
                        action="store_true")
    parser.add_argument("--marathon",
                        dest="MARATHON_URL",
                        help="Marathon API address (discovered through Consul when unset)",
                        action="store", type=str)
    parser.add_argument("--marathon-user",
                        dest="MARATHON_USER",
                        help="Marathon API user",
                        action="store", type=str)
    parser.add_argument("--marathon-password",
                        dest="MARATHON_PASSWORD",
                        help="Marathon API password",
                        action="store", type=str)
    parser.add_argument("--marathon-no-verify-ssl",
                        dest="MARATHON_NO_VERIFY_SSL",
                        help="Skip Marathon TLS certificate verification",
                        action="store_true")
    parser.add_argument("--mesos",
                        dest="MESOS_URL",
                        help="Mesos API address (discovered through Consul when unset)",
                        action="store", type=str)
    parser.add_argument("--mesos-principal",
                        dest="MESOS_PRINCIPAL",
                        help="Mesos principal for framework authentication",
                        action="store", type=str)
    parser.add_argument("--mesos-secret-path",
                        dest="MESOS_SECRET_PATH",
                        help="File holding 'principal secret' lines for framework authentication",
                        action="store", type=str)
    parser.add_argument("--mesos-no-verify-ssl",
                        dest="MESOS_NO_VERIFY_SSL",
                        help="Skip Mesos TLS certificate verification",
                        action="store_true")
    parser.add_argument("--zookeeper",
                        dest="ZOOKEEPER_HOSTS",
                        help="Comma-delimited list of zookeeper servers",
                        action="store", type=str)
    parser.add_argument("--repository-root",
                        dest="REPOSITORY_ROOT",
                        help=f"Key-value prefix holding repository layers (default: {Constants.REPOSITORY_ROOT})",
                        action="store", type=str)


def build_parser():
    """Build the mantl-install argument parser."""
    parser = argparse.ArgumentParser(
        prog="mantl-install",
        description="mantl-install - cluster package catalog and installer",
        add_help=True,
    )
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    _add_backend_options(parser)

    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    serve = subparsers.add_parser("serve", help="Run the HTTP API and the pending-install watcher")
    serve.add_argument("--host",
                       dest="LISTEN_HOST",
                       help=f"Listen address (default: {Constants.DEFAULT_LISTEN_HOST})",
                       action="store", type=str)
    serve.add_argument("--port",
                       dest="LISTEN_PORT",
                       help=f"Listen port (default: {Constants.DEFAULT_LISTEN_PORT})",
                       action="store", type=int)
    serve.add_argument("--refresh-interval",
                       dest="REFRESH_INTERVAL",
                       help="Seconds between checks of the pending-install queue",
                       action="store", type=float)
    serve.add_argument("--apps-root",
                       dest="APPS_ROOT",
                       help=f"Key-value prefix of the pending-install queue (default: {Constants.APPS_ROOT})",
                       action="store", type=str)

    subparsers.add_parser("packages", help="List catalog packages")

    package = subparsers.add_parser("package", help="Show a single catalog package")
    package.add_argument("NAME", help="Package name")

    subparsers.add_parser("repositories", help="List repository layers")

    install = subparsers.add_parser("install", help="Install a package")
    install.add_argument("NAME", help="Package name")
    install.add_argument("--version",
                         dest="PACKAGE_VERSION",
                         help="Package version (default: current version)",
                         action="store", type=str)
    install.add_argument("--config-json",
                         dest="PACKAGE_CONFIG",
                         help="User configuration as JSON, or @path to a JSON file",
                         action="store", type=str)

    uninstall = subparsers.add_parser("uninstall", help="Uninstall a package")
    uninstall.add_argument("NAME", help="Package name")
    uninstall.add_argument("--id",
                           dest="APP_ID",
                           help="App id, required when several instances are installed",
                           action="store", type=str)

    frameworks = subparsers.add_parser("frameworks", help="List or shut down Mesos frameworks")
    frameworks.add_argument("--completed",
                            dest="COMPLETED",
                            help="List completed frameworks instead of active ones",
                            action="store_true")
    frameworks.add_argument("--shutdown",
                            dest="SHUTDOWN_ID",
                            help="Tear down the framework with this id",
                            action="store", type=str)

    subparsers.add_parser("version", help="Print the version")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
