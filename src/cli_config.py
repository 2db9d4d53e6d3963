"""Service configuration: YAML file, then ``MANTL_API_*`` environment, then CLI arguments.

Backend addresses left unset after all three sources are discovered through
the Consul catalog, falling back to localhost defaults.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from constants import Constants
from common.errors import ValidationError
from backends.mesos import parse_credentials

logger = logging.getLogger(__name__)

# Setting names accepted alongside the field names.
ALIASES = {
    "consul": "consul_url",
    "marathon": "marathon_url",
    "mesos": "mesos_url",
    "zookeeper": "zookeeper_hosts",
    "consul_refresh_interval": "refresh_interval",
}


@dataclass
class ServiceConfig:  # pylint: disable=too-many-instance-attributes
    """Runtime configuration for the API server and the CLI commands."""

    consul_url: str = Constants.DEFAULT_CONSUL_URL
    consul_token: str = ""
    consul_no_verify_ssl: bool = False
    marathon_url: str = ""
    marathon_user: str = ""
    marathon_password: str = ""
    marathon_no_verify_ssl: bool = False
    mesos_url: str = ""
    mesos_principal: str = ""
    mesos_secret: str = ""
    mesos_secret_path: str = Constants.DEFAULT_MESOS_SECRET_PATH
    mesos_no_verify_ssl: bool = False
    zookeeper_hosts: List[str] = field(default_factory=list)
    listen_host: str = Constants.DEFAULT_LISTEN_HOST
    listen_port: int = Constants.DEFAULT_LISTEN_PORT
    repository_root: str = Constants.REPOSITORY_ROOT
    apps_root: str = Constants.APPS_ROOT
    refresh_interval: float = Constants.DEFAULT_REFRESH_INTERVAL

    def update(self, values: Mapping[str, Any], source: str) -> None:
        """Apply ``values`` (keys may use ``-`` or ``_``), coercing to field types."""
        fields = {f.name: f for f in dataclasses.fields(self)}
        for raw_key, value in values.items():
            key = str(raw_key).strip().lower().replace("-", "_")
            key = ALIASES.get(key, key)
            if key not in fields:
                logger.warning("Ignoring unknown %s setting %r", source, raw_key)
                continue
            if value is None:
                continue
            setattr(self, key, _coerce(key, fields[key].type, value))


def _coerce(key: str, declared: str, value: Any) -> Any:
    if declared.startswith("List"):
        if isinstance(value, str):
            return [host.strip() for host in value.split(",") if host.strip()]
        return [str(host).strip() for host in value]
    try:
        if declared == "bool":
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if declared == "int":
            return int(value)
        if declared == "float":
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(key, f"invalid value {value!r}") from exc
    return str(value)


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Read a YAML (or JSON) configuration file.

    Raises:
        OSError: The file cannot be read.
        ValidationError: The file is not a YAML mapping.
    """
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValidationError("config", f"could not parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("config", f"{path} must contain a mapping")
    logger.debug("Loaded configuration from %s", path)
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """``MANTL_API_<SETTING>`` variables, keyed by setting name."""
    environ = os.environ if environ is None else environ
    prefix = Constants.ENV_PREFIX
    return {
        key[len(prefix):].lower(): value
        for key, value in environ.items()
        if key.startswith(prefix) and value != ""
    }


def arg_overrides(args: Any) -> Dict[str, Any]:
    """Settings given on the command line (argparse dests are upper-case field names)."""
    values: Dict[str, Any] = {}
    for f in dataclasses.fields(ServiceConfig):
        value = getattr(args, f.name.upper(), None)
        if value is None or value is False:
            continue
        values[f.name] = value
    return values


def load_config(
    config_path: Optional[str] = None,
    args: Any = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServiceConfig:
    """Build a ServiceConfig from file, environment and arguments, in that precedence order."""
    config = ServiceConfig()
    config.update(load_config_file(config_path), "config file")
    config.update(env_overrides(environ), "environment")
    if args is not None:
        config.update(arg_overrides(args), "command line")
    return config


def read_mesos_secret(config: ServiceConfig) -> str:
    """Secret for the configured principal from the secret-path credentials file.

    An explicitly configured secret wins. A missing file is logged and yields
    an empty secret.
    """
    if config.mesos_secret:
        return config.mesos_secret
    if not config.mesos_principal or not config.mesos_secret_path:
        return ""
    try:
        with open(config.mesos_secret_path, "r", encoding="utf-8") as handle:
            credentials = parse_credentials(handle.read())
    except OSError as exc:
        logger.error("Could not open credentials file %s: %s", config.mesos_secret_path, exc)
        return ""
    secret = credentials.get(config.mesos_principal, "")
    if not secret:
        logger.warning("No secret for principal %s in %s", config.mesos_principal, config.mesos_secret_path)
    return secret


def resolve_endpoints(config: ServiceConfig, consul) -> ServiceConfig:
    """Fill unset backend addresses from Consul service discovery or defaults."""
    if not config.marathon_url:
        hosts = consul.service_hosts("marathon")
        config.marathon_url = f"http://{hosts[0]}" if hosts else Constants.DEFAULT_MARATHON_URL
    if not config.mesos_url:
        hosts = consul.service_hosts("mesos", "leader")
        config.mesos_url = f"http://{hosts[0]}" if hosts else Constants.DEFAULT_MESOS_URL
    if not config.zookeeper_hosts:
        config.zookeeper_hosts = consul.service_hosts("zookeeper") or list(Constants.DEFAULT_ZOOKEEPER_HOSTS)
    logger.info(
        "Using marathon %s, mesos %s, zookeeper %s",
        config.marathon_url,
        config.mesos_url,
        ",".join(config.zookeeper_hosts),
    )
    return config


def build_platform_config(mesos, zookeeper_hosts: List[str]) -> Dict[str, Any]:
    """Platform values made available to package templates.

    Built once at startup; queries the resource manager for whether
    framework authentication is enforced.
    """
    return {
        "mantl": {
            "mesos": {
                "principal": mesos.principal,
                "secret": mesos.secret,
                "secret-path": mesos.secret_path,
                "authentication-enabled": mesos.requires_authentication(),
            },
            "zookeeper": {
                "hosts": ",".join(zookeeper_hosts),
            },
        }
    }
