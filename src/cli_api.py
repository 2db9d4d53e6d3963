"""CLI wiring for the mantl-install API server.

Builds the backend clients from the resolved configuration and starts the
HTTP API together with the pending-install watcher.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from constants import Constants
from common.logging_utils import add_file_handler, configure_logging
from backends.consul import ConsulClient
from backends.marathon import MarathonClient
from backends.mesos import MesosClient
from backends.zookeeper import ZookeeperClient
from cli_config import (
    ServiceConfig,
    build_platform_config,
    load_config,
    read_mesos_secret,
    resolve_endpoints,
)
from install.orchestrator import PackageInstaller

logger = logging.getLogger(__name__)


def setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        add_file_handler(log_file)
        logger.info("Logging to file: %s", log_file)


def build_installer(config: ServiceConfig, with_platform: bool = True) -> PackageInstaller:
    """Create the backend clients and the installer that drives them.

    ``with_platform`` queries the resource manager for the platform config;
    read-only catalog commands skip it.
    """
    consul = ConsulClient(config.consul_url, token=config.consul_token or None,
                          verify_ssl=not config.consul_no_verify_ssl)
    resolve_endpoints(config, consul)

    marathon = MarathonClient(
        config.marathon_url,
        username=config.marathon_user or None,
        password=config.marathon_password or None,
        verify_ssl=not config.marathon_no_verify_ssl,
    )
    mesos = MesosClient(
        config.mesos_url,
        principal=config.mesos_principal,
        secret=read_mesos_secret(config),
        secret_path=config.mesos_secret_path,
        verify_ssl=not config.mesos_no_verify_ssl,
    )
    zookeeper = ZookeeperClient(config.zookeeper_hosts)

    platform_config = build_platform_config(mesos, config.zookeeper_hosts) if with_platform else {}
    return PackageInstaller(
        consul,
        marathon,
        mesos,
        zookeeper,
        platform_config=platform_config,
        repository_root=config.repository_root,
    )


def run_api_server(args: Any) -> None:
    """Entry point for the ``serve`` command."""
    from api.server import InstallApiServer, run_api_server_sync
    from install.poller import PendingInstallWatcher

    config = load_config(getattr(args, "CONFIG", None), args)
    logger.info("Starting %s v%s", Constants.NAME, Constants.VERSION)
    installer = build_installer(config)
    watcher = PendingInstallWatcher(
        installer.kv,
        installer,
        apps_root=config.apps_root,
        refresh_interval=config.refresh_interval,
    )
    server = InstallApiServer(installer, watcher, host=config.listen_host, port=config.listen_port)
    run_api_server_sync(server)
