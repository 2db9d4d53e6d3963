"""Mesos master client: cluster state, framework lookup and teardown."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from common.errors import ConflictError, UpstreamError
from common.http_client import ServiceClient

logger = logging.getLogger(__name__)


def _epoch(value: Any) -> Optional[datetime]:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


@dataclass
class Framework:
    """A framework registered with (or remembered by) the Mesos master."""

    name: str
    id: str  # pylint: disable=invalid-name
    active: bool = False
    hostname: str = ""
    user: str = ""
    registered_time: Optional[datetime] = None
    reregistered_time: Optional[datetime] = None
    task_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Framework":
        return cls(
            name=str(data.get("name") or ""),
            id=str(data.get("id") or ""),
            active=bool(data.get("active")),
            hostname=str(data.get("hostname") or ""),
            user=str(data.get("user") or ""),
            registered_time=_epoch(data.get("registered_time")),
            reregistered_time=_epoch(data.get("reregistered_time")),
            task_count=len(data.get("tasks") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "active": self.active,
            "hostname": self.hostname,
            "user": self.user,
            "registeredTime": self.registered_time.isoformat() if self.registered_time else None,
            "reregisteredTime": self.reregistered_time.isoformat() if self.reregistered_time else None,
            "activeTasks": self.task_count,
        }


@dataclass
class ClusterState:
    """Subset of ``/master/state.json`` consumed here."""

    frameworks: List[Framework] = field(default_factory=list)
    completed_frameworks: List[Framework] = field(default_factory=list)
    unregistered_frameworks: List[Framework] = field(default_factory=list)
    flags: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusterState":
        def frameworks(key: str) -> List[Framework]:
            return [Framework.from_dict(fw) for fw in (data.get(key) or []) if isinstance(fw, dict)]

        return cls(
            frameworks=frameworks("frameworks"),
            completed_frameworks=frameworks("completed_frameworks"),
            unregistered_frameworks=frameworks("unregistered_frameworks"),
            flags=dict(data.get("flags") or {}),
        )

    def all_frameworks(self) -> List[Framework]:
        return self.frameworks + self.completed_frameworks + self.unregistered_frameworks


class MesosClient(ServiceClient):
    """Client for the Mesos master HTTP endpoints."""

    context = "mesos"

    def __init__(
        self,
        url: str,
        principal: Optional[str] = None,
        secret: Optional[str] = None,
        secret_path: Optional[str] = None,
        verify_ssl: bool = True,
    ):
        super().__init__(url, username=principal, password=secret, verify_ssl=verify_ssl)
        self.principal = principal or ""
        self.secret = secret or ""
        self.secret_path = secret_path or ""

    def state(self) -> ClusterState:
        res = self.request("GET", "/master/state.json")
        if res.status_code != 200:
            raise self.error("Could not retrieve Mesos state", res, "state", "/master/state.json")
        try:
            return ClusterState.from_dict(json.loads(res.text or "{}"))
        except ValueError as exc:
            raise UpstreamError(
                f"Could not decode Mesos state: {exc}", operation="state", target=self.base_url
            ) from exc

    def frameworks(self) -> List[Framework]:
        """Active (registered) frameworks."""
        return self.state().frameworks

    def completed_frameworks(self) -> List[Framework]:
        return self.state().completed_frameworks

    def requires_authentication(self) -> bool:
        """True when the master enforces framework authentication."""
        value = self.state().flags.get("authenticate", "")
        return str(value).strip().lower() == "true"

    def find_frameworks(self, name: str) -> List[Framework]:
        """Frameworks named ``name`` across active, completed and unregistered lists.

        Entries sharing an id are reported once.
        """
        matching: Dict[str, Framework] = {}
        for fw in self.state().all_frameworks():
            if fw.name == name and fw.id not in matching:
                matching[fw.id] = fw
        return list(matching.values())

    def shutdown(self, framework_id: str) -> str:
        """Tear down ``framework_id``."""
        res = self.request(
            "POST",
            "/master/teardown",
            data={"frameworkId": framework_id},
        )
        if not 200 <= res.status_code < 300:
            raise self.error(f"Could not shutdown framework {framework_id}", res, "teardown", "/master/teardown")
        return res.text or ""

    def shutdown_framework_by_name(self, name: str) -> Optional[Framework]:
        """Tear down the single framework named ``name``.

        Returns the framework torn down, or None when no framework matches.

        Raises:
            ConflictError: More than one framework carries ``name``.
        """
        matching = self.find_frameworks(name)
        if not matching:
            logger.info("No %s framework registered; nothing to tear down", name)
            return None
        if len(matching) > 1:
            raise ConflictError(f"There are {len(matching)} {name} frameworks.")

        framework = matching[0]
        self.shutdown(framework.id)
        logger.info("Tore down framework %s (%s)", framework.name, framework.id)
        return framework


def parse_credentials(text: str) -> Dict[str, str]:
    """Parse ``principal secret`` lines from a Mesos credentials file."""
    credentials: Dict[str, str] = {}
    for line in text.splitlines():
        parts = re.split(r"\s+", line.strip())
        if len(parts) == 2:
            credentials[parts[0].strip()] = parts[1].strip()
    return credentials
