"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NOT_FOUND = 3
    CONFLICT = 4
    INVALID_REQUEST = 5


class ArtifactType(Enum):
    """Per-release artifact files stored in a repository layer.

    Args:
        Enum (string): Artifact file name in the key-value store.
    """

    COMMAND = "command.json"
    CONFIG = "config.json"
    MARATHON = "marathon.json"
    PACKAGE = "package.json"
    OPTIONS = "mantl.json"
    UNINSTALL = "uninstall.json"


class Labels:  # pylint: disable=too-few-public-methods
    """Provenance label keys written onto deployed scheduler apps."""

    PACKAGE_NAME = "MANTL_PACKAGE_NAME"
    PACKAGE_VERSION = "MANTL_PACKAGE_VERSION"
    PACKAGE_INDEX = "MANTL_PACKAGE_INDEX"
    PACKAGE_IS_FRAMEWORK = "MANTL_PACKAGE_IS_FRAMEWORK"
    PACKAGE_FRAMEWORK_NAME = "MANTL_PACKAGE_FRAMEWORK_NAME"
    PACKAGE_UNINSTALL = "MANTL_PACKAGE_UNINSTALL"
    DCOS_PACKAGE_FRAMEWORK_NAME = "DCOS_PACKAGE_FRAMEWORK_NAME"
    LOAD_BALANCER_ENABLE = "traefik.enable"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    NAME = "mantl-install"
    VERSION = "0.3.0"

    REPOSITORY_ROOT = "mantl-install/repository"
    APPS_ROOT = "mantl-install/apps/"
    PACKAGE_INDEX_KEY = "repo/meta/index.json"
    PACKAGES_KEY = "repo/packages"
    REPOSITORY_NAME_KEY = "name"
    SUPPORT_MARKER = ArtifactType.OPTIONS.value

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "MANTL_INSTALL_LOG_LEVEL"
    ENV_PREFIX = "MANTL_API_"
    REQUEST_TIMEOUT = 30  # Transport timeout in seconds for all HTTP requests
    ZOOKEEPER_TIMEOUT = 10

    DEFAULT_CONSUL_URL = "http://localhost:8500"
    DEFAULT_MARATHON_URL = "http://localhost:8080"
    DEFAULT_MESOS_URL = "http://localhost:5050"
    DEFAULT_ZOOKEEPER_HOSTS = ["localhost:2181"]
    DEFAULT_MESOS_SECRET_PATH = "/etc/sysconfig/mantl-api"
    DEFAULT_LISTEN_HOST = "0.0.0.0"
    DEFAULT_LISTEN_PORT = 4001
    DEFAULT_REFRESH_INTERVAL = 10

    LOAD_BALANCER_KEY = "mantl.load-balancer"
    LOAD_BALANCER_DEFAULT = "off"
    LOAD_BALANCER_EXTERNAL = "external"
    FRAMEWORK_NAME_KEY = "framework-name"
    ZOOKEEPER_PATH_PREFIX = "zk:"
